# -*- coding: utf-8 -*-
"""
Subscription state resolution.

A user has paid access when EITHER the profile flag reads ``active`` (set by
the CRM webhook or the checkout fast path) OR one of their subscription
records is ``active`` with a period end that is absent or not yet past.

The profile flag is checked first and is never expiry-checked. Nothing but
an explicit deactivation event resets it, so a CRM that never sends one
leaves the user with access indefinitely.
"""
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional

from finanzas.database.repositories import AdminRepository
from finanzas.services.status_mapping import SubscriptionStatus
from finanzas.utils.dates import as_aware, utcnow

PROFILE_SOURCE = "ghl_webhook"
DEV_SOURCE = "development"


@dataclass
class ResolvedSubscription:
    id: str
    status: str
    provider: str
    current_period_end: Optional[datetime] = None

    def to_dict(self):
        data = asdict(self)
        data["current_period_end"] = (
            self.current_period_end.isoformat() if self.current_period_end else None)
        return data


DEV_SUBSCRIPTION = ResolvedSubscription(
    id="dev-subscription", status=SubscriptionStatus.ACTIVE.value, provider=DEV_SOURCE)


class SubscriptionResolver:
    def __init__(self, repo: Optional[AdminRepository] = None, clock=utcnow):
        self.repo = repo or AdminRepository()
        self.clock = clock

    def resolve(self, user_id: str) -> Optional[ResolvedSubscription]:
        """Return the user's active subscription, or None."""
        profile = self.repo.get_profile(user_id)
        if profile is not None and profile.subscription_status == SubscriptionStatus.ACTIVE.value:
            return ResolvedSubscription(
                id=f"profile-{profile.id}",
                status=SubscriptionStatus.ACTIVE.value,
                provider=PROFILE_SOURCE,
            )

        now = self.clock()
        for record in self.repo.active_subscriptions_for(user_id):
            period_end = as_aware(record.current_period_end)
            if period_end is not None and period_end < now:
                continue  # stored as active but the period is over
            return ResolvedSubscription(
                id=record.id,
                status=record.status,
                provider=record.provider,
                current_period_end=period_end,
            )
        return None

    def has_access(self, user_id: str) -> bool:
        return self.resolve(user_id) is not None
