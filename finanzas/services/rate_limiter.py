# -*- coding: utf-8 -*-
"""
Rate Limiting Service.

Flask-Limiter with a global default limit (``RATELIMIT_DEFAULT``, read from
the current app per request) keyed by authenticated user when known,
otherwise client IP, plus a stricter per-IP limit for the credential
endpoints (``AUTH_RATE_LIMIT``).
Storage comes from ``RATELIMIT_STORAGE_URI`` (``memory://`` by default).
"""
from flask import current_app, g, request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from finanzas.services.metrics import get_metrics_service
from finanzas.services.structured_logging import log_rate_limit_hit

EXEMPT_PATHS = ('/health', '/healthz', '/readyz', '/metrics')


def get_actor_identifier() -> str:
    """
    Get unique identifier for rate limiting.

    Priority:
        1. Authenticated user id
        2. IP address (for unauthenticated requests)
    """
    user = getattr(g, 'current_user', None)
    if user is not None:
        return f"user:{user.id}"
    return f"ip:{get_remote_address()}"


def default_rate_limit() -> str:
    """Global limit from the current app's config."""
    return current_app.config.get("RATELIMIT_DEFAULT", "300/minute")


def auth_rate_limit() -> str:
    """Limit string for login/registration style endpoints."""
    return current_app.config.get("AUTH_RATE_LIMIT", "10/minute")


def _on_breach(request_limit):
    log_rate_limit_hit(
        scope=request.endpoint or request.path,
        limit=str(request_limit.limit),
        key=request_limit.key,
    )
    metrics = get_metrics_service()
    if metrics:
        metrics.record_rate_limit_hit(request.path)
    # Returning None lets Flask-Limiter raise RateLimitExceeded (429),
    # which the error handlers render as a RATE_LIMIT envelope.
    return None


limiter = Limiter(
    key_func=get_actor_identifier,
    default_limits=[default_rate_limit],
    strategy="fixed-window",
    headers_enabled=True,
    on_breach=_on_breach,
    default_limits_exempt_when=lambda: request.path in EXEMPT_PATHS,
)


def init_rate_limiter(app):
    """Bind the module-level limiter to ``app`` (reads the RATELIMIT_* config)."""
    limiter.init_app(app)
    app.logger.info(
        f"Rate limiter initialized (enabled={app.config.get('RATELIMIT_ENABLED')}, "
        f"storage={app.config.get('RATELIMIT_STORAGE_URI')})"
    )
    return limiter
