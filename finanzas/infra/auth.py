"""
Unified authentication infrastructure module.

This module provides a single, standardized entry point for the
authentication and entitlement decorators. All routes should import from here.
"""

from finanzas.middleware.auth import require_auth, optional_auth, current_user_id
from finanzas.middleware.subscription import require_subscription

# Export official auth decorators
__all__ = ["require_auth", "optional_auth", "current_user_id", "require_subscription"]
