# -*- coding: utf-8 -*-
"""
Budget request schemas.
"""
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from finanzas.utils.dates import MAX_YEAR, MIN_YEAR


def _clean_name(v):
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError('El nombre no puede estar vacío')
    return v


class BudgetConfigUpdate(BaseModel):
    year: int = Field(..., ge=MIN_YEAR, le=MAX_YEAR)
    annual_revenue_target: Decimal = Field(..., gt=0)


class PocketCreate(BaseModel):
    name: str = Field(..., max_length=100)
    percentage: Decimal = Field(..., ge=0, le=100)
    sort_order: int = 0

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return _clean_name(v)


class PocketUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    percentage: Optional[Decimal] = Field(None, ge=0, le=100)
    sort_order: Optional[int] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return _clean_name(v)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude_none=True)


class BulkPocket(PocketUpdate):
    """An entry of a bulk save: with an ``id`` it updates, without one it creates."""
    id: Optional[str] = None


class PocketsBulkUpdate(BaseModel):
    pockets: List[BulkPocket]
