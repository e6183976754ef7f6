# -*- coding: utf-8 -*-
"""
Notification routes.

Personal notifications carry their own read flag. Broadcasts are shared
rows; each user's read state for them lives in ``notification_reads``.
"""
import hmac

from flask import Blueprint, current_app, request
from sqlalchemy.exc import SQLAlchemyError

from finanzas.api.envelope import ApiError, success
from finanzas.api.params import json_body, validate_uuid
from finanzas.database.repositories import AdminRepository, OwnedRepository
from finanzas.infra.auth import current_user_id, require_auth
from finanzas.services.structured_logging import get_logger
from finanzas.models import Notification
from finanzas.schemas.notifications import NotificationListQuery, NotificationWebhookPayload
from finanzas.services.metrics import get_metrics_service

notifications_bp = Blueprint('notifications', __name__)
logger = get_logger('finanzas.webhooks')

EVENT_NAME = 'notification'


def _read_state(notification, broadcast_read_ids):
    if notification.is_broadcast:
        return notification.id in broadcast_read_ids
    return bool(notification.read)


@notifications_bp.route('/notifications', methods=['GET'])
@require_auth
def list_notifications():
    """Personal notifications plus broadcasts, newest first."""
    params = NotificationListQuery.model_validate(request.args.to_dict())
    repo = OwnedRepository(current_user_id())
    read_ids = repo.broadcast_read_ids()
    rows = (repo.visible_notifications()
            .order_by(Notification.created_at.desc(), Notification.id.asc())
            .offset(params.offset)
            .limit(params.limit)
            .all())
    return success({
        'notifications': [n.to_dict(read=_read_state(n, read_ids)) for n in rows],
        'pagination': {'limit': params.limit, 'offset': params.offset},
    })


@notifications_bp.route('/notifications/unread-count', methods=['GET'])
@require_auth
def unread_count():
    repo = OwnedRepository(current_user_id())
    read_ids = repo.broadcast_read_ids()
    count = sum(1 for n in repo.visible_notifications().all() if not _read_state(n, read_ids))
    return success({'count': count})


@notifications_bp.route('/notifications/<notification_id>/read', methods=['PUT'])
@require_auth
def mark_read(notification_id):
    repo = OwnedRepository(current_user_id())
    notification = repo.get_visible_notification(validate_uuid(notification_id))
    if notification is None:
        # Another user's personal notification is indistinguishable from a missing one
        raise ApiError('NOT_FOUND', 'Notificación no encontrada')

    if notification.is_broadcast:
        repo.mark_broadcast_read(notification.id)
    else:
        notification.read = True
    repo.commit()
    return success({'read': True})


@notifications_bp.route('/notifications/read-all', methods=['PUT'])
@require_auth
def mark_all_read():
    repo = OwnedRepository(current_user_id())
    read_ids = repo.broadcast_read_ids()
    for notification in repo.visible_notifications().all():
        if notification.is_broadcast:
            if notification.id not in read_ids:
                repo.mark_broadcast_read(notification.id)
        elif not notification.read:
            notification.read = True
    repo.commit()
    return success({'message': 'Todas las notificaciones marcadas como leídas'})


# --- CRM delivery webhook (no user auth) ---

def _secret_matches(provided, expected) -> bool:
    if not provided:
        return False
    return hmac.compare_digest(str(provided).encode('utf-8'), expected.encode('utf-8'))


def _record(outcome):
    metrics = get_metrics_service()
    if metrics:
        metrics.record_webhook_event('gohighlevel', EVENT_NAME, outcome)


@notifications_bp.route('/notifications/webhook/ghl', methods=['POST'])
def ghl_notification_webhook():
    """
    Publish a notification sent by the CRM.

    ``target`` is ``"all"`` (broadcast, the default) or a user's email. An
    email with no matching profile inserts nothing.
    """
    expected = current_app.config.get('GHL_WEBHOOK_SECRET')
    if expected and not current_app.config.get('IS_DEV'):
        provided = (request.headers.get('X-Webhook-Secret')
                    or request.headers.get('X-GHL-Signature')
                    or request.args.get('secret'))
        if not _secret_matches(provided, expected):
            logger.log_webhook_event('gohighlevel', EVENT_NAME, 'rejected')
            _record('rejected')
            raise ApiError('UNAUTHORIZED', 'Secret inválido')

    body = json_body()
    if not (isinstance(body.get('title'), str) and body['title'].strip()):
        raise ApiError('VALIDATION_ERROR', 'El campo "title" es requerido')
    payload = NotificationWebhookPayload(**body)

    repo = AdminRepository()
    try:
        user_id = None
        if not payload.is_broadcast:
            profile = repo.find_profile_by_email(payload.target)
            if profile is None:
                logger.log_webhook_event('gohighlevel', EVENT_NAME, 'unmatched')
                _record('unmatched')
                return success({'received': True, 'notification_id': None, 'target': 'unmatched'})
            user_id = profile.id

        notification = repo.create_notification(payload.title, payload.message, payload.type, user_id=user_id)
        repo.commit()
    except SQLAlchemyError as e:
        repo.rollback()
        logger.exception("Notification webhook failed", error=str(e))
        _record('error')
        return success({'received': True, 'error': str(e)})

    logger.log_webhook_event('gohighlevel', EVENT_NAME, 'processed', notification_id=notification.id)
    _record('processed')
    return success({
        'received': True,
        'notification_id': notification.id,
        'target': payload.target if user_id else 'broadcast',
    })
