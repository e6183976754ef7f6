# -*- coding: utf-8 -*-
"""
Authentication routes.

Credential checks and session issuance are delegated to the identity
platform; this service keeps the profile row and reports subscription
state alongside the session.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from flask import Blueprint, current_app, g
from flask_limiter.util import get_remote_address

from finanzas.api.envelope import ApiError, success
from finanzas.api.params import json_body
from finanzas.database.repositories import AdminRepository
from finanzas.database.seed import provision_default_categories
from finanzas.infra.auth import current_user_id, require_auth
from finanzas.services.structured_logging import get_logger
from finanzas.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    PasswordUpdateRequest,
    ProfileUpdateRequest,
    RegisterRequest,
)
from finanzas.services.identity_platform import (
    IdentityPlatformError,
    IdentityPlatformUnavailable,
    get_identity_client,
)
from finanzas.services.rate_limiter import auth_rate_limit, limiter
from finanzas.services.subscription_resolver import DEV_SUBSCRIPTION, SubscriptionResolver

auth_bp = Blueprint("auth", __name__)  # mounted at /api
logger = get_logger('finanzas.auth')


# --------------------------------------------------------------------------- #
# Utilities
# --------------------------------------------------------------------------- #
def _unavailable(e: IdentityPlatformError) -> ApiError:
    logger.error(f"Identity platform unavailable: {e.message}")
    return ApiError("SERVICE_UNAVAILABLE")


def _resolve_subscription(user_id: str):
    if current_app.config.get("SUBSCRIPTION_BYPASS"):
        return DEV_SUBSCRIPTION
    return SubscriptionResolver().resolve(user_id)


def _display_name(profile, metadata: Optional[Dict[str, Any]]) -> Optional[str]:
    if profile is not None and profile.full_name:
        return profile.full_name
    return (metadata or {}).get("full_name")


def _session_payload(session: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "token": session.get("access_token"),
        "refreshToken": session.get("refresh_token"),
        "expiresAt": session.get("expires_at"),
    }


# --------------------------------------------------------------------------- #
# Public endpoints
# --------------------------------------------------------------------------- #
@auth_bp.route("/auth/register", methods=["POST"])
@limiter.limit(auth_rate_limit, key_func=get_remote_address)
def register():
    data = RegisterRequest(**json_body())
    identity = get_identity_client()

    try:
        user = identity.sign_up(data.email, data.password, full_name=data.name)
    except IdentityPlatformUnavailable as e:
        raise _unavailable(e)
    except IdentityPlatformError as e:
        logger.warning(f"Sign-up rejected: {e.message}", error_code=e.error_code)
        if "already registered" in e.message.lower() or e.error_code == "user_already_exists":
            raise ApiError("VALIDATION_ERROR", "Este email ya está registrado")
        if e.is_rate_limited:
            raise ApiError("RATE_LIMIT", "Demasiados intentos. Espera unos minutos e intenta de nuevo.")
        raise ApiError("VALIDATION_ERROR", e.message)

    user_id = user.get("id")
    if user_id:
        repo = AdminRepository()
        repo.upsert_profile(user_id, user.get("email") or data.email, full_name=data.name)
        provision_default_categories(user_id, repo)
        repo.commit()
        logger.log_auth_event("register", True, user_id=user_id)

    return success({
        "message": "Usuario registrado exitosamente",
        "user": {"id": user_id, "email": user.get("email") or data.email, "name": data.name},
        "requiresSubscription": True,
    }, 201)


@auth_bp.route("/auth/login", methods=["POST"])
@limiter.limit(auth_rate_limit, key_func=get_remote_address)
def login():
    data = LoginRequest(**json_body())

    try:
        session = get_identity_client().sign_in_with_password(data.email, data.password)
    except IdentityPlatformUnavailable as e:
        raise _unavailable(e)
    except IdentityPlatformError as e:
        logger.log_auth_event("login", False, error_code=e.error_code)
        if e.error_code == "email_not_confirmed" or "email not confirmed" in e.message.lower():
            raise ApiError("EMAIL_NOT_CONFIRMED", "Por favor confirma tu email antes de iniciar sesión")
        raise ApiError("INVALID_CREDENTIALS", "Email o contraseña incorrectos")

    user = session.get("user") or {}
    user_id = user.get("id")
    subscription = _resolve_subscription(user_id)
    if subscription is None:
        logger.log_subscription_gate(user_id, allowed=False, source="login")
        raise ApiError("SUBSCRIPTION_INACTIVE", "Necesitas una suscripción activa para acceder")

    profile = AdminRepository().get_profile(user_id)
    logger.log_auth_event("login", True, user_id=user_id)
    return success({
        "user": {
            "id": user_id,
            "email": user.get("email"),
            "name": _display_name(profile, user.get("user_metadata")),
        },
        **_session_payload(session),
        "subscription": {"status": subscription.status, "provider": subscription.provider},
    })


@auth_bp.route("/auth/refresh", methods=["POST"])
@limiter.limit(auth_rate_limit, key_func=get_remote_address)
def refresh():
    refresh_token = json_body().get("refreshToken")
    if not refresh_token:
        raise ApiError("VALIDATION_ERROR", "Refresh token requerido")

    try:
        session = get_identity_client().refresh_session(refresh_token)
    except IdentityPlatformUnavailable as e:
        raise _unavailable(e)
    except IdentityPlatformError as e:
        logger.log_auth_event("refresh", False, error_code=e.error_code)
        raise ApiError("UNAUTHORIZED", "Token de refresco inválido")

    return success(_session_payload(session))


@auth_bp.route("/auth/forgot-password", methods=["POST"])
@limiter.limit(auth_rate_limit, key_func=get_remote_address)
def forgot_password():
    """Ask the platform for a recovery email. The answer never reveals whether the account exists."""
    data = ForgotPasswordRequest(**json_body())
    redirect_to = f"{current_app.config.get('FRONTEND_URL', '').rstrip('/')}/reset-password"
    try:
        get_identity_client().recover_password(data.email, redirect_to=redirect_to)
    except IdentityPlatformError as e:
        logger.warning(f"Password recovery request failed: {e.message}", error_code=e.error_code)

    return success({"message": "Si el email está registrado, recibirás un enlace para restablecer tu contraseña"})


# --------------------------------------------------------------------------- #
# Authenticated endpoints
# --------------------------------------------------------------------------- #
@auth_bp.route("/auth/logout", methods=["POST"])
@require_auth
def logout():
    try:
        get_identity_client().sign_out(g.access_token)
    except IdentityPlatformError as e:
        # The token may already be revoked; the client drops it either way
        logger.warning(f"Platform sign-out failed: {e.message}", user_id=current_user_id())
    return success({"message": "Sesión cerrada exitosamente"})


@auth_bp.route("/auth/me", methods=["GET"])
@require_auth
def me():
    user = g.current_user
    profile = AdminRepository().get_profile(user.id)
    subscription = _resolve_subscription(user.id)
    return success({
        "user": {
            "id": user.id,
            "email": user.email,
            "name": _display_name(profile, user.metadata),
            "createdAt": profile.created_at.isoformat() if profile and profile.created_at else None,
        },
        "subscription": {
            "id": subscription.id,
            "status": subscription.status,
            "provider": subscription.provider,
            "currentPeriodEnd": (subscription.current_period_end.isoformat()
                                 if subscription.current_period_end else None),
        } if subscription else None,
    })


@auth_bp.route("/auth/profile", methods=["GET"])
@require_auth
def get_profile():
    user = g.current_user
    profile = AdminRepository().get_profile(user.id)
    if profile is not None:
        return success({"profile": profile.to_dict()})
    return success({"profile": {
        "id": user.id,
        "email": user.email,
        "full_name": _display_name(None, user.metadata),
        "subscription_status": None,
    }})


@auth_bp.route("/auth/profile", methods=["PUT"])
@require_auth
def update_profile():
    data = ProfileUpdateRequest(**json_body())
    user = g.current_user
    repo = AdminRepository()
    profile = repo.upsert_profile(user.id, user.email or "", full_name=data.name)
    repo.commit()
    return success({"profile": profile.to_dict()})


@auth_bp.route("/auth/password", methods=["PUT"])
@require_auth
def update_password():
    data = PasswordUpdateRequest(**json_body())
    try:
        get_identity_client().update_user(g.access_token, password=data.password)
    except IdentityPlatformUnavailable as e:
        raise _unavailable(e)
    except IdentityPlatformError as e:
        logger.warning(f"Password update rejected: {e.message}", user_id=current_user_id())
        raise ApiError("VALIDATION_ERROR", e.message)
    return success({"message": "Contraseña actualizada exitosamente"})
