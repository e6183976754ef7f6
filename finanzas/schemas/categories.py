# -*- coding: utf-8 -*-
"""
Category and subcategory request schemas.
"""
from pydantic import BaseModel, Field, field_validator
from typing import Literal, Optional
import re

HEX_COLOR_RE = re.compile(r'^#[0-9A-Fa-f]{6}$')

DEFAULT_ICON = "tag"
DEFAULT_COLOR = "#D4AF37"


def _clean_name(v):
    v = (v or '').strip()
    if not v:
        raise ValueError('El nombre no puede estar vacío')
    return v


def _check_color(v):
    if v is not None and not HEX_COLOR_RE.match(v):
        raise ValueError('El color debe tener el formato #RRGGBB')
    return v


class CategoryCreate(BaseModel):
    """Schema for creating a category."""
    name: str = Field(..., max_length=100)
    type: Literal["income", "expense"]
    icon: str = Field(DEFAULT_ICON, max_length=50)
    color: str = Field(DEFAULT_COLOR, max_length=7)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return _clean_name(v)

    @field_validator('color')
    @classmethod
    def validate_color(cls, v):
        return _check_color(v)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=100)
    icon: Optional[str] = Field(None, max_length=50)
    color: Optional[str] = Field(None, max_length=7)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return _clean_name(v) if v is not None else v

    @field_validator('color')
    @classmethod
    def validate_color(cls, v):
        return _check_color(v)

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True, exclude_none=True)


class SubcategoryFields(BaseModel):
    """Invoicing metadata carried by a subcategory. Empty strings become null."""
    provider_name: Optional[str] = Field(None, max_length=255)
    provider_document: Optional[str] = Field(None, max_length=50)
    payment_method: Optional[str] = Field(None, max_length=50)
    client_name: Optional[str] = Field(None, max_length=255)
    client_document: Optional[str] = Field(None, max_length=50)
    client_email: Optional[str] = Field(None, max_length=255)
    client_phone: Optional[str] = Field(None, max_length=50)
    client_address: Optional[str] = Field(None, max_length=500)

    @field_validator(
        'provider_name', 'provider_document', 'payment_method', 'client_name',
        'client_document', 'client_email', 'client_phone', 'client_address',
        mode='before',
    )
    @classmethod
    def empty_to_none(cls, v):
        if isinstance(v, str):
            return v.strip() or None
        return v or None


class SubcategoryCreate(SubcategoryFields):
    category_id: str
    name: str = Field(..., max_length=100)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return _clean_name(v)


class SubcategoryUpdate(SubcategoryFields):
    name: Optional[str] = Field(None, max_length=100)

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return _clean_name(v) if v is not None else v

    def changes(self) -> dict:
        patch = self.model_dump(exclude_unset=True)
        if patch.get('name') is None:
            patch.pop('name', None)
        return patch
