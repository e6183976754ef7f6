# -*- coding: utf-8 -*-
"""
Payment (Stripe) and CRM (GoHighLevel) webhook endpoints.

Both read the raw body for signature checks. Only signature failures are
rejected; once an event is authenticated every outcome, including internal
errors, is acknowledged with 200 so the provider does not start a
redelivery storm. Internal errors are logged and rolled back.
"""
import json

from flask import Blueprint, current_app, request

from finanzas.api.envelope import ApiError, success
from finanzas.api.params import json_body
from finanzas.database import db
from finanzas.services.structured_logging import get_logger
from finanzas.services.ghl_webhooks import GhlWebhookService, verify_ghl_signature
from finanzas.services.identity_platform import get_identity_client
from finanzas.services.metrics import get_metrics_service
from finanzas.services.status_mapping import UnknownProviderStatus
from finanzas.services.stripe_webhooks import (
    StripeWebhookService,
    WebhookSignatureError,
    verify_stripe_payload,
)

webhooks_bp = Blueprint('webhooks', __name__)
logger = get_logger('finanzas.webhooks')

MISSING_SIGNATURE = 'Firma de webhook faltante'
INVALID_SIGNATURE = 'Firma de webhook inválida'


def _record(provider, event, outcome):
    metrics = get_metrics_service()
    if metrics:
        metrics.record_webhook_event(provider, event or 'unknown', outcome)


def _reject(provider, reason):
    logger.log_webhook_event(provider, 'signature', 'rejected', reason=reason)
    _record(provider, 'signature', 'rejected')
    raise ApiError('UNAUTHORIZED', reason)


def _stripe_service():
    config = current_app.config
    return StripeWebhookService(
        get_identity_client(),
        secret_key=config.get('STRIPE_SECRET_KEY'),
        send_onboarding_link=config.get('SEND_ONBOARDING_LINK', False),
        frontend_url=config.get('FRONTEND_URL'),
    )


def _dispatch(provider, event_type, handler, payload) -> dict:
    """Run a handler and turn any outcome into an acknowledgement body."""
    try:
        result = handler(payload)
    except UnknownProviderStatus as e:
        db.session.rollback()
        logger.log_webhook_event(provider, event_type, 'unmapped', status=str(e.value))
        _record(provider, event_type, 'unmapped')
        return {'received': True, 'handled': False, 'error': str(e)}
    except Exception as e:  # acknowledged anyway; see module docstring
        db.session.rollback()
        logger.exception(f"Error handling {provider} webhook {event_type}", error=str(e))
        _record(provider, event_type, 'error')
        return {'received': True, 'error': str(e)}

    outcome = 'processed' if result.get('handled') else 'ignored'
    logger.log_webhook_event(provider, event_type, outcome)
    _record(provider, event_type, outcome)
    return {'received': True, **result}


@webhooks_bp.route('/webhooks/stripe', methods=['POST'])
def stripe_webhook():
    """Stripe events; the body must be the raw bytes Stripe signed."""
    payload = request.get_data()
    signature = request.headers.get('Stripe-Signature')
    secret = current_app.config.get('STRIPE_WEBHOOK_SECRET')
    is_dev = current_app.config.get('IS_DEV')

    if not is_dev and not signature:
        _reject('stripe', MISSING_SIGNATURE)

    if secret and not is_dev:
        try:
            event = verify_stripe_payload(payload, signature, secret)
        except WebhookSignatureError as e:
            logger.warning(f"Stripe signature verification failed: {e}")
            _reject('stripe', INVALID_SIGNATURE)
    else:
        try:
            event = json.loads(payload or b'{}')
        except ValueError:
            _reject('stripe', INVALID_SIGNATURE)

    if not isinstance(event, dict):
        _reject('stripe', INVALID_SIGNATURE)

    return success(_dispatch('stripe', event.get('type'), _stripe_service().handle_event, event))


@webhooks_bp.route('/webhooks/gohighlevel', methods=['POST'])
def gohighlevel_webhook():
    payload = request.get_data()
    secret = current_app.config.get('GHL_WEBHOOK_SECRET')

    if secret and not current_app.config.get('IS_DEV'):
        signature = request.headers.get('X-GHL-Signature') or request.headers.get('X-Webhook-Signature')
        if not signature:
            _reject('gohighlevel', MISSING_SIGNATURE)
        if not verify_ghl_signature(payload, signature, secret):
            _reject('gohighlevel', INVALID_SIGNATURE)

    try:
        event = json.loads(payload or b'{}')
    except ValueError:
        raise ApiError('INVALID_REQUEST', 'JSON inválido en el cuerpo de la solicitud')
    if not isinstance(event, dict):
        raise ApiError('INVALID_REQUEST', 'El cuerpo debe ser un objeto JSON')

    service = GhlWebhookService(get_identity_client())
    return success(_dispatch('gohighlevel', event.get('type'), service.handle_event, event))


@webhooks_bp.route('/webhooks/test', methods=['POST'])
def test_webhook():
    """
    Development helper: replay a provider event without a signature.

    Body: ``{"provider": "stripe"|"gohighlevel", "event": "<type>", "data": {...}}``.
    Not available outside development.
    """
    if not current_app.config.get('IS_DEV'):
        raise ApiError('NOT_FOUND', 'Ruta no encontrada')

    body = json_body()
    provider = body.get('provider')
    event_type = body.get('event')
    data = body.get('data') or {}
    if provider not in ('stripe', 'gohighlevel') or not event_type:
        raise ApiError('VALIDATION_ERROR', 'provider (stripe|gohighlevel) y event son requeridos')

    if provider == 'stripe':
        event = {'id': 'evt_test', 'type': event_type, 'data': {'object': data}}
        handler = _stripe_service().handle_event
    else:
        event = {'type': event_type, 'data': data}
        handler = GhlWebhookService(get_identity_client()).handle_event

    return success({'test': True, **_dispatch(provider, event_type, handler, event)})
