# -*- coding: utf-8 -*-
"""
Transaction request schemas.

Amounts are parsed as ``Decimal`` and stored unrounded.
"""
import datetime as dt
from decimal import Decimal
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

TransactionType = Literal["income", "expense", "transfer"]

MAX_AMOUNT = Decimal("99999999999999")
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_LIMIT = 100
SORT_FIELDS = ("date", "amount", "created_at")


def blank_to_none(v):
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


class TransactionCreate(BaseModel):
    type: TransactionType
    amount: Decimal = Field(..., gt=0, le=MAX_AMOUNT)
    date: dt.date
    category: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)

    @field_validator('category', 'description', mode='before')
    @classmethod
    def clean_text(cls, v):
        return blank_to_none(v)


class TransactionUpdate(BaseModel):
    """Sparse patch; only the fields sent are applied."""
    type: Optional[TransactionType] = None
    amount: Optional[Decimal] = Field(None, gt=0, le=MAX_AMOUNT)
    date: Optional[dt.date] = None
    category: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=500)

    @field_validator('category', 'description', mode='before')
    @classmethod
    def clean_text(cls, v):
        return blank_to_none(v)

    def changes(self) -> dict:
        patch = self.model_dump(exclude_unset=True)
        # type, amount and date are NOT NULL; a null for them is not a change
        return {k: v for k, v in patch.items() if v is not None or k in ("category", "description")}


class TransactionListQuery(BaseModel):
    """
    Query string for ``GET /transactions``.

    Non-numeric page/limit fall back to defaults and are clamped. Unknown
    sort fields fall back to ``date``; an unknown type disables the filter.
    """
    model_config = ConfigDict(populate_by_name=True)

    type: Optional[TransactionType] = None
    category: Optional[str] = None
    date_from: Optional[dt.date] = Field(None, alias="from")
    date_to: Optional[dt.date] = Field(None, alias="to")
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    sort: str = "date"
    order: Literal["asc", "desc"] = "desc"

    @field_validator('type', mode='before')
    @classmethod
    def ignore_unknown_type(cls, v):
        return v if v in ("income", "expense", "transfer") else None

    @field_validator('category', 'date_from', 'date_to', mode='before')
    @classmethod
    def clean_text(cls, v):
        return blank_to_none(v)

    @field_validator('page', mode='before')
    @classmethod
    def clamp_page(cls, v):
        try:
            return max(1, int(v))
        except (TypeError, ValueError):
            return DEFAULT_PAGE

    @field_validator('limit', mode='before')
    @classmethod
    def clamp_limit(cls, v):
        try:
            return min(MAX_LIMIT, max(1, int(v)))
        except (TypeError, ValueError):
            return DEFAULT_LIMIT

    @field_validator('sort', mode='before')
    @classmethod
    def known_sort(cls, v):
        return v if v in SORT_FIELDS else "date"

    @field_validator('order', mode='before')
    @classmethod
    def known_order(cls, v):
        return "asc" if v == "asc" else "desc"

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit
