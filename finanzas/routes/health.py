# -*- coding: utf-8 -*-

from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import time

from finanzas.api.envelope import error_response, success
from finanzas.database import db
from finanzas.services.structured_logging import get_logger

health_bp = Blueprint('health', __name__)
logger = get_logger(__name__)

SERVICE_NAME = 'finanzas-api'


@health_bp.route('/health', methods=['GET', 'HEAD'])
@health_bp.route('/healthz', methods=['GET', 'HEAD'])
def healthz():
    """Liveness check (available at both /health and /healthz).

    Exempt from rate limiting; load balancers poll it.
    """
    return success({
        'status': 'ok',
        'service': SERVICE_NAME,
        'environment': current_app.config.get('APP_ENV'),
        'timestamp': time.time(),
    })


@health_bp.route('/readyz', methods=['GET', 'HEAD'])
def readyz():
    """Readiness check: the database must answer ``SELECT 1``."""
    try:
        db.session.execute(text('SELECT 1'))
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Readiness check failed: {e}")
        return error_response('SERVICE_UNAVAILABLE', 'Base de datos no disponible')

    return success({
        'status': 'ready',
        'service': SERVICE_NAME,
        'timestamp': time.time(),
        'checks': {
            'database': True
        }
    })
