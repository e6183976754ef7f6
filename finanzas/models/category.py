"""
Category Models

Per-user taxonomy for transactions. Subcategories carry optional
invoicing metadata (counterparty names, documents and contact data).
"""

import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from finanzas.database import db
from finanzas.utils.dates import utcnow

CATEGORY_TYPES = ("income", "expense")

SUBCATEGORY_METADATA_FIELDS = (
    "provider_name",
    "provider_document",
    "payment_method",
    "client_name",
    "client_document",
    "client_email",
    "client_phone",
    "client_address",
)


class Category(db.Model):
    __tablename__ = "categories"
    __table_args__ = (
        UniqueConstraint("user_id", "type", "name", name="uq_categories_user_type_name"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    type = Column(String(16), nullable=False)  # income, expense
    icon = Column(String(64), nullable=False, default="tag")
    color = Column(String(16), nullable=False, default="#D4AF37")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    subcategories = relationship("Subcategory", back_populates="category", cascade="all, delete-orphan")

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "type": self.type,
            "icon": self.icon,
            "color": self.color,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Category {self.type}:{self.name}>"


class Subcategory(db.Model):
    __tablename__ = "subcategories"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    category_id = Column(String(36), ForeignKey("categories.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    provider_name = Column(String(255))
    provider_document = Column(String(64))
    payment_method = Column(String(64))
    client_name = Column(String(255))
    client_document = Column(String(64))
    client_email = Column(String(320))
    client_phone = Column(String(64))
    client_address = Column(String(500))
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    category = relationship("Category", back_populates="subcategories")

    def to_dict(self):
        data = {
            "id": self.id,
            "category_id": self.category_id,
            "user_id": self.user_id,
            "name": self.name,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        for field in SUBCATEGORY_METADATA_FIELDS:
            data[field] = getattr(self, field)
        return data

    def __repr__(self):
        return f"<Subcategory {self.name} of {self.category_id}>"
