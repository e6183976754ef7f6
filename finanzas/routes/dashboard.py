# -*- coding: utf-8 -*-
"""
Dashboard routes (bearer + active subscription).
"""
from flask import Blueprint

from finanzas.api.envelope import success
from finanzas.api.params import period_args
from finanzas.database.repositories import OwnedRepository
from finanzas.infra.auth import current_user_id, require_auth, require_subscription
from finanzas.services.dashboard import DashboardService
from finanzas.utils.dates import utcnow

dashboard_bp = Blueprint('dashboard', __name__)


@dashboard_bp.route('/dashboard/summary', methods=['GET'])
@require_auth
@require_subscription
def summary():
    """Totals, category breakdowns and daily series for one month (default: current)."""
    year, month = period_args(utcnow())

    service = DashboardService(OwnedRepository(current_user_id()))
    return success(service.summary(year, month))


@dashboard_bp.route('/dashboard/stats', methods=['GET'])
@require_auth
@require_subscription
def stats():
    """All-time totals plus the trailing six months."""
    service = DashboardService(OwnedRepository(current_user_id()))
    return success(service.stats(utcnow().date()))
