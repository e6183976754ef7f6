# -*- coding: utf-8 -*-
"""
Transaction ledger queries.
"""
import math
from typing import Any, Dict, List, Tuple

from finanzas.database.repositories import OwnedRepository
from finanzas.models import Transaction
from finanzas.schemas.transactions import TransactionListQuery

SORT_COLUMNS = {
    "date": Transaction.date,
    "amount": Transaction.amount,
    "created_at": Transaction.created_at,
}


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def filtered_query(repo: OwnedRepository, params: TransactionListQuery):
    q = repo.query(Transaction)
    if params.type:
        q = q.filter(Transaction.type == params.type)
    if params.category:
        q = q.filter(Transaction.category.ilike(f"%{_escape_like(params.category)}%", escape="\\"))
    if params.date_from:
        q = q.filter(Transaction.date >= params.date_from)
    if params.date_to:
        q = q.filter(Transaction.date <= params.date_to)
    return q


def list_transactions(repo: OwnedRepository, params: TransactionListQuery) -> Tuple[List[Transaction], Dict[str, Any]]:
    """One page of the caller's transactions plus pagination metadata."""
    q = filtered_query(repo, params)
    total = q.count()

    column = SORT_COLUMNS[params.sort]
    ordering = column.asc() if params.order == "asc" else column.desc()
    # id as tiebreaker keeps pages stable for equal sort keys
    items = q.order_by(ordering, Transaction.id.asc()).offset(params.offset).limit(params.limit).all()

    pagination = {
        "page": params.page,
        "limit": params.limit,
        "total": total,
        "totalPages": math.ceil(total / params.limit) if total else 0,
    }
    return items, pagination


def apply_changes(entity, changes: Dict[str, Any]):
    for field, value in changes.items():
        setattr(entity, field, value)
    return entity
