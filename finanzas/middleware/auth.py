# -*- coding: utf-8 -*-
"""
Bearer-token authentication decorators.

Access tokens are issued by the identity platform and verified in-process
(signature, expiry and ``authenticated`` audience) with Flask-JWT-Extended.
The failure reason is logged, never returned; clients only see a generic
UNAUTHORIZED.
"""
from functools import wraps
from types import SimpleNamespace

from flask import g, request
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException, NoAuthorizationError
from jwt.exceptions import PyJWTError

from finanzas.api.envelope import ApiError
from finanzas.services.structured_logging import log_auth_failure, log_auth_success

MISSING_TOKEN = "Token de autenticación requerido"
INVALID_TOKEN = "Token inválido o expirado"


def _bearer_token():
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        return header[7:].strip() or None
    return None


def _identity_from_claims(identity, claims):
    metadata = claims.get("user_metadata") or {}
    return SimpleNamespace(
        id=str(identity),
        email=claims.get("email"),
        metadata=metadata,
        name=metadata.get("full_name") or metadata.get("name"),
    )


def _ensure_jwt_loaded():
    """
    Verify the bearer token and populate g.current_user / g.access_token.
    Raises ApiError(UNAUTHORIZED) on any failure.
    """
    try:
        verify_jwt_in_request()
    except NoAuthorizationError:
        log_auth_failure("missing_token", path=request.path)
        raise ApiError("UNAUTHORIZED", MISSING_TOKEN)
    except (JWTExtendedException, PyJWTError) as e:
        log_auth_failure(type(e).__name__, path=request.path, detail=str(e))
        raise ApiError("UNAUTHORIZED", INVALID_TOKEN)

    identity = get_jwt_identity()
    if not identity:
        log_auth_failure("missing_subject", path=request.path)
        raise ApiError("UNAUTHORIZED", INVALID_TOKEN)

    g.current_user = _identity_from_claims(identity, get_jwt() or {})
    g.access_token = _bearer_token()
    log_auth_success(g.current_user.id, path=request.path)


def require_auth(fn):
    """Decorator: a valid bearer token is mandatory."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        _ensure_jwt_loaded()
        return fn(*args, **kwargs)
    return wrapper


def optional_auth(fn):
    """Decorator: attach the caller when a valid token is sent, else continue anonymously."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            _ensure_jwt_loaded()
        except ApiError:
            g.current_user = None
            g.access_token = None
        return fn(*args, **kwargs)
    return wrapper


def current_user_id():
    user = getattr(g, "current_user", None)
    if user is None:
        raise ApiError("UNAUTHORIZED", MISSING_TOKEN)
    return user.id
