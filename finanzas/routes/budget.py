# -*- coding: utf-8 -*-
"""
Budget routes (bearer): yearly revenue target, pockets and the overview.
"""
from flask import Blueprint

from finanzas.api.envelope import ApiError, success
from finanzas.api.params import int_arg, json_body, period_args, validate_uuid
from finanzas.database.repositories import AdminRepository, OwnedRepository
from finanzas.database.seed import ensure_expense_category
from finanzas.infra.auth import current_user_id, require_auth
from finanzas.services.structured_logging import get_logger
from finanzas.models import BudgetConfig, BudgetPocket
from finanzas.schemas.budget import BudgetConfigUpdate, PocketCreate, PocketsBulkUpdate, PocketUpdate
from finanzas.services.budget_engine import BudgetEngine
from finanzas.services.ledger import apply_changes
from finanzas.utils.dates import utcnow

budget_bp = Blueprint('budget', __name__)
logger = get_logger(__name__)

POCKET_NOT_FOUND = 'Bolsillo no encontrado'


def _ensure_categories(user_id, names):
    """Each pocket gets an expense category of the same name."""
    admin = AdminRepository()
    for name in names:
        if ensure_expense_category(user_id, name, admin) is not None:
            logger.info("Expense category created for pocket", user_id=user_id, name=name)


# --- config ---

@budget_bp.route('/budget/config', methods=['GET'])
@require_auth
def get_config():
    year = int_arg('year') or utcnow().year
    config = OwnedRepository(current_user_id()).budget_config(year)
    return success({'config': config.to_dict() if config else None})


@budget_bp.route('/budget/config', methods=['PUT'])
@require_auth
def save_config():
    body = json_body()
    if not body.get('year') or body.get('annual_revenue_target') in (None, ''):
        raise ApiError('VALIDATION_ERROR', 'Año y meta de facturación son requeridos')
    data = BudgetConfigUpdate(**body)

    repo = OwnedRepository(current_user_id())
    config = repo.budget_config(data.year)
    if config is None:
        config = repo.add(BudgetConfig(year=data.year, annual_revenue_target=data.annual_revenue_target))
    else:
        config.annual_revenue_target = data.annual_revenue_target
    repo.commit()
    return success({'config': config.to_dict()})


# --- pockets ---

@budget_bp.route('/budget/pockets', methods=['GET'])
@require_auth
def list_pockets():
    pockets = OwnedRepository(current_user_id()).pockets()
    return success({'pockets': [p.to_dict() for p in pockets]})


@budget_bp.route('/budget/pockets', methods=['POST'])
@require_auth
def create_pocket():
    body = json_body()
    if not body.get('name') or body.get('percentage') in (None, ''):
        raise ApiError('VALIDATION_ERROR', 'Nombre y porcentaje son requeridos')
    data = PocketCreate(**body)

    user_id = current_user_id()
    repo = OwnedRepository(user_id)
    pocket = repo.add(BudgetPocket(**data.model_dump()))
    _ensure_categories(user_id, [pocket.name])
    repo.commit()
    return success({'pocket': pocket.to_dict()}, 201)


# Registered before /budget/pockets/<pocket_id> so "bulk" is never taken for an id
@budget_bp.route('/budget/pockets/bulk', methods=['PUT'])
@require_auth
def bulk_save_pockets():
    """
    Save a whole pocket list at once (reorder or adjust percentages).

    Entries with an ``id`` update that pocket; entries without one create a
    pocket. Ids the caller does not own are skipped.
    """
    body = json_body()
    if not isinstance(body.get('pockets'), list):
        raise ApiError('VALIDATION_ERROR', 'Se requiere un array de bolsillos')
    data = PocketsBulkUpdate(**body)

    user_id = current_user_id()
    repo = OwnedRepository(user_id)
    saved = []
    for entry in data.pockets:
        changes = entry.changes()
        changes.pop('id', None)
        if entry.id:
            pocket = repo.get(BudgetPocket, entry.id)
            if pocket is None:
                continue
            apply_changes(pocket, changes)
        else:
            if entry.name is None or entry.percentage is None:
                raise ApiError('VALIDATION_ERROR', 'Nombre y porcentaje son requeridos')
            pocket = repo.add(BudgetPocket(
                name=entry.name, percentage=entry.percentage, sort_order=entry.sort_order or 0))
        saved.append(pocket)

    _ensure_categories(user_id, [p.name for p in saved])
    repo.commit()
    return success({'pockets': [p.to_dict() for p in saved]})


@budget_bp.route('/budget/pockets/<pocket_id>', methods=['PUT'])
@require_auth
def update_pocket(pocket_id):
    repo = OwnedRepository(current_user_id())
    pocket = repo.get(BudgetPocket, validate_uuid(pocket_id))
    if pocket is None:
        raise ApiError('NOT_FOUND', POCKET_NOT_FOUND)

    changes = PocketUpdate(**json_body()).changes()
    if not changes:
        raise ApiError('VALIDATION_ERROR', 'No hay datos para actualizar')
    apply_changes(pocket, changes)
    repo.commit()
    return success({'pocket': pocket.to_dict()})


@budget_bp.route('/budget/pockets/<pocket_id>', methods=['DELETE'])
@require_auth
def delete_pocket(pocket_id):
    repo = OwnedRepository(current_user_id())
    pocket = repo.get(BudgetPocket, validate_uuid(pocket_id))
    if pocket is None:
        raise ApiError('NOT_FOUND', POCKET_NOT_FOUND)
    repo.delete(pocket)
    repo.commit()
    return success({'message': 'Bolsillo eliminado'})


# --- overview ---

@budget_bp.route('/budget/overview', methods=['GET'])
@require_auth
def overview():
    year, month = period_args(utcnow())

    engine = BudgetEngine(OwnedRepository(current_user_id()))
    return success(engine.overview(year, month))
