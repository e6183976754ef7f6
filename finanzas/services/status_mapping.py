# -*- coding: utf-8 -*-
"""
Subscription status vocabularies.

Each provider has a closed enumeration of the statuses it sends, and an
explicit mapping onto the internal ``SubscriptionStatus``. A value outside a
provider's enumeration raises ``UnknownProviderStatus``; it never falls back
to a default.
"""
from enum import Enum


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    CANCELLED = "cancelled"
    PAST_DUE = "past_due"


class StripeSubscriptionStatus(str, Enum):
    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    UNPAID = "unpaid"
    CANCELED = "canceled"
    INCOMPLETE = "incomplete"
    INCOMPLETE_EXPIRED = "incomplete_expired"
    PAUSED = "paused"


class GhlSubscriptionStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"
    CANCELED = "canceled"
    PAST_DUE = "past_due"
    UNPAID = "unpaid"
    PAUSED = "paused"


class UnknownProviderStatus(ValueError):
    def __init__(self, provider: str, value):
        super().__init__(f"Unknown {provider} subscription status: {value!r}")
        self.provider = provider
        self.value = value


STRIPE_STATUS_MAP = {
    StripeSubscriptionStatus.ACTIVE: SubscriptionStatus.ACTIVE,
    StripeSubscriptionStatus.TRIALING: SubscriptionStatus.ACTIVE,
    StripeSubscriptionStatus.PAST_DUE: SubscriptionStatus.PAST_DUE,
    StripeSubscriptionStatus.UNPAID: SubscriptionStatus.PAST_DUE,
    StripeSubscriptionStatus.CANCELED: SubscriptionStatus.CANCELLED,
    StripeSubscriptionStatus.INCOMPLETE: SubscriptionStatus.INACTIVE,
    StripeSubscriptionStatus.INCOMPLETE_EXPIRED: SubscriptionStatus.INACTIVE,
    StripeSubscriptionStatus.PAUSED: SubscriptionStatus.INACTIVE,
}

GHL_STATUS_MAP = {
    GhlSubscriptionStatus.ACTIVE: SubscriptionStatus.ACTIVE,
    GhlSubscriptionStatus.CANCELLED: SubscriptionStatus.CANCELLED,
    GhlSubscriptionStatus.CANCELED: SubscriptionStatus.CANCELLED,
    GhlSubscriptionStatus.PAST_DUE: SubscriptionStatus.PAST_DUE,
    GhlSubscriptionStatus.UNPAID: SubscriptionStatus.PAST_DUE,
    GhlSubscriptionStatus.PAUSED: SubscriptionStatus.INACTIVE,
}


def map_stripe_status(value) -> SubscriptionStatus:
    try:
        return STRIPE_STATUS_MAP[StripeSubscriptionStatus(value)]
    except ValueError:
        raise UnknownProviderStatus("stripe", value) from None


def map_ghl_status(value) -> SubscriptionStatus:
    """GoHighLevel statuses are matched case-insensitively."""
    normalized = value.strip().lower() if isinstance(value, str) else value
    try:
        return GHL_STATUS_MAP[GhlSubscriptionStatus(normalized)]
    except ValueError:
        raise UnknownProviderStatus("gohighlevel", value) from None
