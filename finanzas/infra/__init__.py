"""
Infrastructure package - unified entry points for request guards.

Routes take their authentication and subscription decorators from
``finanzas.infra.auth`` rather than from the middleware modules directly.
"""

from finanzas.infra.auth import require_auth, optional_auth, current_user_id, require_subscription

__all__ = [
    "require_auth",
    "optional_auth",
    "current_user_id",
    "require_subscription",
]
