"""
Profile and Subscription Models

A profile mirrors one identity on the auth platform. Subscription records
track one paid subscription instance per (provider, external id).
"""

import uuid
from sqlalchemy import Column, String, DateTime, UniqueConstraint, Index

from finanzas.database import db
from finanzas.utils.dates import utcnow


class Profile(db.Model):
    """Represents the app-side profile of an identity-platform user"""
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True)  # same id as the identity
    email = Column(String(320), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=True)
    # Denormalized access flag written by the CRM webhook / checkout fast path
    subscription_status = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "full_name": self.full_name,
            "subscription_status": self.subscription_status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Profile {self.id} {self.email}>"


class Subscription(db.Model):
    """A provider-attributed subscription lifecycle record"""
    __tablename__ = "subscriptions"
    __table_args__ = (
        UniqueConstraint("provider", "external_id", name="uq_subscriptions_provider_external"),
        Index("ix_subscriptions_user_status", "user_id", "status"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    provider = Column(String(32), nullable=False)  # stripe, gohighlevel
    external_id = Column(String(255), nullable=False)
    status = Column(String(32), nullable=False)  # active, inactive, cancelled, past_due
    current_period_start = Column(DateTime(timezone=True), nullable=True)
    current_period_end = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "provider": self.provider,
            "external_id": self.external_id,
            "status": self.status,
            "current_period_start": self.current_period_start.isoformat() if self.current_period_start else None,
            "current_period_end": self.current_period_end.isoformat() if self.current_period_end else None,
        }

    def __repr__(self):
        return f"<Subscription {self.provider}:{self.external_id} {self.status}>"
