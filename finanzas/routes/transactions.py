# -*- coding: utf-8 -*-
"""
Transaction ledger routes (bearer + active subscription).
"""
from flask import Blueprint, request

from finanzas.api.envelope import ApiError, success
from finanzas.api.params import json_body, validate_uuid
from finanzas.database.repositories import OwnedRepository
from finanzas.infra.auth import current_user_id, require_auth, require_subscription
from finanzas.services.structured_logging import get_logger
from finanzas.models import Transaction
from finanzas.schemas.transactions import TransactionCreate, TransactionListQuery, TransactionUpdate
from finanzas.services.ledger import apply_changes, list_transactions

transactions_bp = Blueprint('transactions', __name__)
logger = get_logger(__name__)

NOT_FOUND_MESSAGE = 'Transacción no encontrada'


def _owned(transaction_id):
    repo = OwnedRepository(current_user_id())
    transaction = repo.get(Transaction, validate_uuid(transaction_id))
    if transaction is None:
        raise ApiError('NOT_FOUND', NOT_FOUND_MESSAGE)
    return repo, transaction


@transactions_bp.route('/transactions', methods=['GET'])
@require_auth
@require_subscription
def list_all():
    """List the caller's transactions (filters, sorting, pagination)."""
    params = TransactionListQuery.model_validate(request.args.to_dict())
    repo = OwnedRepository(current_user_id())
    items, pagination = list_transactions(repo, params)
    return success({
        'transactions': [t.to_dict() for t in items],
        'pagination': pagination,
    })


@transactions_bp.route('/transactions/<transaction_id>', methods=['GET'])
@require_auth
@require_subscription
def get_one(transaction_id):
    _, transaction = _owned(transaction_id)
    return success({'transaction': transaction.to_dict()})


@transactions_bp.route('/transactions', methods=['POST'])
@require_auth
@require_subscription
def create():
    data = TransactionCreate(**json_body())
    repo = OwnedRepository(current_user_id())
    transaction = repo.add(Transaction(**data.model_dump()))
    repo.commit()
    logger.info("Transaction created", transaction_id=transaction.id, type=transaction.type)
    return success({'transaction': transaction.to_dict()}, 201)


@transactions_bp.route('/transactions/<transaction_id>', methods=['PUT'])
@require_auth
@require_subscription
def update(transaction_id):
    repo, transaction = _owned(transaction_id)
    changes = TransactionUpdate(**json_body()).changes()
    if not changes:
        raise ApiError('VALIDATION_ERROR', 'No hay datos para actualizar')

    apply_changes(transaction, changes)
    repo.commit()
    return success({'transaction': transaction.to_dict()})


@transactions_bp.route('/transactions/<transaction_id>', methods=['DELETE'])
@require_auth
@require_subscription
def delete(transaction_id):
    repo, transaction = _owned(transaction_id)
    payload = transaction.to_dict()
    repo.delete(transaction)
    repo.commit()
    return success({'message': 'Transacción eliminada', 'transaction': payload})
