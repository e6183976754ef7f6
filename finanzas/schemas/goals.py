# -*- coding: utf-8 -*-
"""
Savings goal request schemas.

``current`` is clamped to zero rather than rejected when negative.
"""
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

DEFAULT_GOAL_COLOR = "#D4AF37"


def _clamp(v):
    if v is not None and v < 0:
        return Decimal("0")
    return v


class GoalCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    target: Decimal = Field(..., gt=0)
    current: Decimal = Decimal("0")
    color: str = Field(DEFAULT_GOAL_COLOR, max_length=7)

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('El nombre no puede estar vacío')
        return v

    @field_validator('current')
    @classmethod
    def clamp_current(cls, v):
        return _clamp(v)


class GoalUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    target: Optional[Decimal] = Field(None, gt=0)
    current: Optional[Decimal] = None
    color: Optional[str] = Field(None, max_length=7)

    @field_validator('current')
    @classmethod
    def clamp_current(cls, v):
        return _clamp(v)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude_none=True)
