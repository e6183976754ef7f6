# -*- coding: utf-8 -*-
"""
GoHighLevel (CRM) webhook handling.

The CRM signs the raw body with HMAC-SHA256 using a shared secret and sends
the hex digest in ``X-GHL-Signature`` (or ``X-Webhook-Signature``). Payloads
look like ``{"type": "...", "data": {...}}``.

Unlike the payment provider, the CRM handler keeps the profile flag in step
with the subscription record: every status it writes to the record is also
written to the owner's profile.
"""
import hashlib
import hmac
from typing import Any, Dict, Optional

from finanzas.database.repositories import AdminRepository
from finanzas.services.identity_platform import IdentityPlatformClient
from finanzas.services.status_mapping import SubscriptionStatus, map_ghl_status
from finanzas.services.structured_logging import get_logger
from finanzas.services.user_provisioning import UserProvisioner
from finanzas.utils.dates import parse_iso_datetime, utcnow

logger = get_logger('finanzas.webhooks')

PROVIDER = "gohighlevel"

ACTIVATION_EVENTS = ("order.completed", "subscription.created")
CANCELLATION_EVENTS = ("subscription.cancelled", "subscription.deleted")
PAYMENT_EVENTS = {
    "payment.succeeded": SubscriptionStatus.ACTIVE,
    "payment.failed": SubscriptionStatus.PAST_DUE,
}


def compute_signature(payload: bytes, secret: str) -> str:
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_ghl_signature(payload: bytes, signature: Optional[str], secret: str) -> bool:
    """Constant-time check of the hex HMAC-SHA256 digest of ``payload``."""
    if not signature:
        return False
    expected = compute_signature(payload, secret)
    return hmac.compare_digest(expected, signature.strip().lower())


class GhlWebhookService:
    def __init__(self, identity: IdentityPlatformClient, repo: Optional[AdminRepository] = None):
        self.repo = repo or AdminRepository()
        self.provisioner = UserProvisioner(identity, self.repo)

    def handle_event(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        event_type = payload.get("type")
        data = payload.get("data") or {}

        logger.info(f"Received GoHighLevel webhook: {event_type}")

        if event_type in ACTIVATION_EVENTS:
            result = self.handle_subscription_created(data)
        elif event_type == "subscription.updated":
            result = self.handle_subscription_updated(data)
        elif event_type in CANCELLATION_EVENTS:
            result = self._set_status(self._subscription_id(data), SubscriptionStatus.CANCELLED)
        elif event_type in PAYMENT_EVENTS:
            # data.id is the payment here, never the subscription
            result = self._set_status(data.get("subscription_id"), PAYMENT_EVENTS[event_type])
        else:
            logger.info(f"Unhandled GoHighLevel event type: {event_type}")
            return {"handled": False}

        self.repo.commit()
        return result

    @staticmethod
    def _email(data):
        contact = data.get("contact") or {}
        return contact.get("email") or data.get("email")

    @staticmethod
    def _subscription_id(data):
        return data.get("subscription_id") or data.get("id")

    def handle_subscription_created(self, data: Dict[str, Any]) -> Dict[str, Any]:
        email = self._email(data)
        if not email:
            logger.error("No email in GoHighLevel payload")
            return {"handled": False, "error": "No email found"}

        subscription_id = self._subscription_id(data)
        if not subscription_id:
            logger.error("No subscription id in GoHighLevel payload")
            return {"handled": False, "error": "No subscription id"}

        name = (data.get("contact") or {}).get("name")
        user = self.provisioner.find_or_create(email, full_name=name)

        record, created = self.repo.upsert_subscription(
            user_id=user.id,
            provider=PROVIDER,
            external_id=str(subscription_id),
            status=SubscriptionStatus.ACTIVE.value,
            period_start=utcnow(),
            period_end=parse_iso_datetime(data.get("next_billing_date")),
        )
        self.repo.set_profile_status(user.id, SubscriptionStatus.ACTIVE.value)

        logger.info("GoHighLevel subscription activated", user_id=user.id, subscription_id=record.external_id)
        return {"handled": True, "subscriptionId": record.id, "userId": user.id, "created": created}

    def handle_subscription_updated(self, data: Dict[str, Any]) -> Dict[str, Any]:
        status = map_ghl_status(data.get("status"))
        period_end = parse_iso_datetime(data.get("next_billing_date"))
        return self._set_status(self._subscription_id(data), status, period_end=period_end)

    def _set_status(self, subscription_id, status: SubscriptionStatus, period_end=None) -> Dict[str, Any]:
        record = None
        if subscription_id:
            record = self.repo.find_subscription(PROVIDER, str(subscription_id))
        if record is None:
            logger.warning("No GoHighLevel subscription record to update", subscription_id=subscription_id)
            return {"handled": True, "subscriptionId": None}

        record.status = status.value
        if period_end is not None:
            record.current_period_end = period_end
        record.updated_at = utcnow()
        self.repo.set_profile_status(record.user_id, status.value)

        logger.info("GoHighLevel subscription status synced", subscription_id=record.external_id,
                    status=status.value, user_id=record.user_id)
        return {"handled": True, "subscriptionId": record.id, "status": status.value}
