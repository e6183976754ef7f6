# -*- coding: utf-8 -*-
"""
Subscription gate.

Applied after ``require_auth``. With ``SUBSCRIPTION_BYPASS`` on (the default
outside production) resolution is skipped and a synthetic development
subscription is attached instead.
"""
from functools import wraps

from flask import current_app, g
from sqlalchemy.exc import SQLAlchemyError

from finanzas.api.envelope import ApiError
from finanzas.services.metrics import get_metrics_service
from finanzas.services.structured_logging import get_logger
from finanzas.services.subscription_resolver import DEV_SUBSCRIPTION, SubscriptionResolver

logger = get_logger('finanzas.subscription')

SUBSCRIPTION_REQUIRED_MESSAGE = "Necesitas una suscripción activa para acceder a esta función"


def _record(decision: str, source: str):
    metrics = get_metrics_service()
    if metrics:
        metrics.record_subscription_gate(decision, source)


def require_subscription(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        user = getattr(g, "current_user", None)
        if user is None:
            raise ApiError("UNAUTHORIZED")

        if current_app.config.get("SUBSCRIPTION_BYPASS"):
            g.subscription = DEV_SUBSCRIPTION
            _record("bypass", DEV_SUBSCRIPTION.provider)
            return fn(*args, **kwargs)

        try:
            subscription = SubscriptionResolver().resolve(user.id)
        except SQLAlchemyError as e:
            logger.exception("Subscription lookup failed", user_id=user.id, error=str(e))
            raise ApiError("INTERNAL_ERROR", "Error al verificar suscripción") from e

        if subscription is None:
            logger.log_subscription_gate(user.id, allowed=False)
            _record("denied", "none")
            raise ApiError("SUBSCRIPTION_INACTIVE", SUBSCRIPTION_REQUIRED_MESSAGE)

        g.subscription = subscription
        logger.log_subscription_gate(user.id, allowed=True, source=subscription.provider)
        _record("allowed", subscription.provider)
        return fn(*args, **kwargs)
    return wrapper
