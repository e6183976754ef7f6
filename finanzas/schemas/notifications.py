# -*- coding: utf-8 -*-
"""
Notification schemas.
"""
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from finanzas.models.notification import NOTIFICATION_TYPES


class NotificationWebhookPayload(BaseModel):
    """Body sent by the CRM to publish a notification."""
    title: str = Field(..., max_length=255)
    message: Optional[str] = Field(None, max_length=5000)
    type: str = "info"
    target: str = "all"

    @field_validator('title')
    @classmethod
    def require_title(cls, v):
        v = (v or '').strip()
        if not v:
            raise ValueError('El campo "title" es requerido')
        return v

    @field_validator('type', mode='before')
    @classmethod
    def known_type(cls, v):
        return v if v in NOTIFICATION_TYPES else "info"

    @field_validator('target', mode='before')
    @classmethod
    def normalize_target(cls, v):
        v = (v or '').strip().lower() if isinstance(v, str) else ''
        return v or "all"

    @property
    def is_broadcast(self) -> bool:
        return self.target == "all"


class NotificationListQuery(BaseModel):
    limit: int = 50
    offset: int = 0

    @field_validator('limit', mode='before')
    @classmethod
    def clamp_limit(cls, v):
        try:
            return min(100, max(1, int(v)))
        except (TypeError, ValueError):
            return 50

    @field_validator('offset', mode='before')
    @classmethod
    def clamp_offset(cls, v):
        try:
            return max(0, int(v))
        except (TypeError, ValueError):
            return 0
