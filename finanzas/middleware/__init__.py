# -*- coding: utf-8 -*-
"""
Middleware package for the Finanzas API
"""

from .auth import require_auth, optional_auth, current_user_id
from .subscription import require_subscription
from .errors import register_error_handlers

__all__ = [
    'require_auth',
    'optional_auth',
    'current_user_id',
    'require_subscription',
    'register_error_handlers',
]
