# -*- coding: utf-8 -*-
"""
Stripe webhook handling.

Events handled:
- checkout.session.completed, invoice.paid, invoice.payment_succeeded:
  fast path. Find or provision the payer and set the profile flag to
  ``active``. No subscription record is written here.
- customer.subscription.created / updated: upsert the record keyed on
  (stripe, subscription id) with the mapped status and billing period.
- customer.subscription.deleted: record becomes ``cancelled``.
- invoice.payment_failed: record becomes ``past_due``. Dunning and retries
  are left to Stripe.
"""
import json
from typing import Any, Dict, Optional

import stripe

from finanzas.database.repositories import AdminRepository
from finanzas.services.identity_platform import IdentityPlatformClient, IdentityPlatformError
from finanzas.services.status_mapping import SubscriptionStatus, map_stripe_status
from finanzas.services.structured_logging import get_logger
from finanzas.services.user_provisioning import UserProvisioner
from finanzas.utils.dates import from_unix

logger = get_logger('finanzas.webhooks')

PROVIDER = "stripe"

FAST_PATH_EVENTS = ("checkout.session.completed", "invoice.paid", "invoice.payment_succeeded")


class WebhookSignatureError(Exception):
    """Missing or invalid webhook signature."""


def verify_stripe_payload(payload: bytes, signature: Optional[str], secret: str) -> Dict[str, Any]:
    """Check the Stripe-Signature header and decode the event."""
    if not signature:
        raise WebhookSignatureError("Missing Stripe-Signature header")
    try:
        text = payload.decode("utf-8") if isinstance(payload, bytes) else payload
        # Events older than the tolerance window are replays
        stripe.WebhookSignature.verify_header(
            text, signature, secret, tolerance=stripe.Webhook.DEFAULT_TOLERANCE)
    except UnicodeDecodeError as e:
        raise WebhookSignatureError("Invalid webhook payload") from e
    except stripe.SignatureVerificationError as e:
        raise WebhookSignatureError(str(e)) from e
    try:
        return json.loads(text)
    except ValueError as e:
        raise WebhookSignatureError("Invalid webhook payload") from e


def _get(obj, *path):
    """Nested lookup that tolerates missing keys at any level."""
    for key in path:
        if obj is None:
            return None
        if isinstance(obj, list):
            obj = obj[key] if isinstance(key, int) and len(obj) > key else None
        else:
            obj = obj.get(key) if hasattr(obj, "get") else None
    return obj


class StripeWebhookService:
    def __init__(self, identity: IdentityPlatformClient, repo: Optional[AdminRepository] = None,
                 secret_key: Optional[str] = None, send_onboarding_link: bool = False,
                 frontend_url: Optional[str] = None):
        self.repo = repo or AdminRepository()
        self.identity = identity
        self.provisioner = UserProvisioner(identity, self.repo)
        self.secret_key = secret_key
        self.send_onboarding_link = send_onboarding_link
        self.frontend_url = frontend_url

    def handle_event(self, event: Dict[str, Any]) -> Dict[str, Any]:
        event_type = event.get("type")
        data = _get(event, "data", "object") or {}

        logger.info(f"Received Stripe webhook: {event_type}", event_id=event.get("id"))

        if event_type in FAST_PATH_EVENTS:
            result = self.handle_payment_completed(data)
        elif event_type in ("customer.subscription.created", "customer.subscription.updated"):
            result = self.handle_subscription_updated(data)
        elif event_type == "customer.subscription.deleted":
            result = self.handle_subscription_deleted(data)
        elif event_type == "invoice.payment_failed":
            result = self.handle_payment_failed(data)
        else:
            logger.info(f"Unhandled Stripe event type: {event_type}")
            return {"handled": False}

        self.repo.commit()
        return result

    # --- customer resolution ---
    def _customer_email(self, customer_id: Optional[str]) -> Optional[str]:
        if not customer_id:
            return None
        if not self.secret_key:
            logger.warning("STRIPE_SECRET_KEY not configured; cannot resolve customer email",
                           customer_id=customer_id)
            return None
        stripe.api_key = self.secret_key
        customer = stripe.Customer.retrieve(customer_id)
        return getattr(customer, "email", None)

    def _payer_email(self, obj: Dict[str, Any]) -> Optional[str]:
        return (obj.get("customer_email")
                or _get(obj, "customer_details", "email")
                or self._customer_email(obj.get("customer")))

    # --- handlers ---
    def handle_payment_completed(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        """Checkout/invoice paid: activate the payer's profile flag."""
        email = self._payer_email(obj)
        if not email:
            logger.error("No email found in Stripe payment object", object_id=obj.get("id"))
            return {"handled": False, "error": "No email found"}

        name = _get(obj, "customer_details", "name") or obj.get("customer_name")
        user = self.provisioner.find_or_create(email, full_name=name)
        self.repo.set_profile_status(user.id, SubscriptionStatus.ACTIVE.value)

        if user.created and self.send_onboarding_link:
            self._send_onboarding_link(user.email)

        logger.info("Stripe payment activated profile", user_id=user.id)
        return {"handled": True, "userId": user.id, "provisioned": user.created}

    def handle_subscription_updated(self, subscription: Dict[str, Any]) -> Dict[str, Any]:
        # Raises UnknownProviderStatus before anything is written
        status = map_stripe_status(subscription.get("status"))

        email = self._customer_email(subscription.get("customer"))
        if not email:
            logger.error("No customer email for Stripe subscription", subscription_id=subscription.get("id"))
            return {"handled": False, "error": "No customer email"}

        user = self.provisioner.find_or_create(email)
        period_start = subscription.get("current_period_start") or _get(
            subscription, "items", "data", 0, "current_period_start")
        period_end = subscription.get("current_period_end") or _get(
            subscription, "items", "data", 0, "current_period_end")

        record, created = self.repo.upsert_subscription(
            user_id=user.id,
            provider=PROVIDER,
            external_id=subscription["id"],
            status=status.value,
            period_start=from_unix(period_start),
            period_end=from_unix(period_end),
        )
        logger.info(
            f"Stripe subscription {'created' if created else 'updated'}",
            subscription_id=record.external_id,
            status=record.status,
            user_id=user.id,
        )
        return {"handled": True, "subscriptionId": record.id, "status": record.status, "created": created}

    def handle_subscription_deleted(self, subscription: Dict[str, Any]) -> Dict[str, Any]:
        record = self.repo.update_subscription_status(
            PROVIDER, subscription.get("id"), SubscriptionStatus.CANCELLED.value)
        if record is None:
            logger.warning("No subscription record for deleted Stripe subscription",
                           subscription_id=subscription.get("id"))
        return {"handled": True, "subscriptionId": record.id if record else None}

    def handle_payment_failed(self, invoice: Dict[str, Any]) -> Dict[str, Any]:
        subscription_id = invoice.get("subscription") or _get(
            invoice, "parent", "subscription_details", "subscription")
        if not subscription_id:
            return {"handled": True, "subscriptionId": None}

        record = self.repo.update_subscription_status(
            PROVIDER, subscription_id, SubscriptionStatus.PAST_DUE.value)
        if record is None:
            logger.warning("No subscription record for failed invoice", subscription_id=subscription_id)
        return {"handled": True, "subscriptionId": record.id if record else None}

    def _send_onboarding_link(self, email: str):
        try:
            self.identity.send_magic_link(email, redirect_to=f"{self.frontend_url}/dashboard")
        except IdentityPlatformError as e:
            logger.warning("Could not send onboarding link", error=e.message)
