# -*- coding: utf-8 -*-
"""
Authentication request schemas.
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional
import re

EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


def _normalize_email(v):
    v = (v or '').strip().lower()
    if not EMAIL_RE.match(v):
        raise ValueError('Email inválido')
    return v


class RegisterRequest(BaseModel):
    """Schema for self-service sign-up."""
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=6, max_length=128)
    name: Optional[str] = Field(None, max_length=255)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        return _normalize_email(v)

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        return v.strip() or None if v else None


class LoginRequest(BaseModel):
    email: str = Field(..., max_length=255)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        return _normalize_email(v)


class ForgotPasswordRequest(BaseModel):
    email: str = Field(..., max_length=255)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        return _normalize_email(v)


class ProfileUpdateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)

    @field_validator('name')
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError('El nombre no puede estar vacío')
        return v


class PasswordUpdateRequest(BaseModel):
    password: str = Field(..., min_length=6, max_length=128)
