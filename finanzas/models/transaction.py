"""
Ledger Models

A transaction is one dated financial movement owned by a single user.
"""

import uuid
from sqlalchemy import Column, String, Date, DateTime, Numeric, Text, Index

from finanzas.database import db
from finanzas.utils.dates import utcnow

TRANSACTION_TYPES = ("income", "expense", "transfer")


class Transaction(db.Model):
    __tablename__ = "transactions"
    __table_args__ = (
        Index("ix_transactions_user_date", "user_id", "date"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    type = Column(String(16), nullable=False)  # income, expense, transfer
    amount = Column(Numeric(18, 4), nullable=False)  # positive, unrounded
    category = Column(String(100), nullable=True)  # free text, joined by name
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type,
            "amount": float(self.amount) if self.amount is not None else None,
            "category": self.category,
            "description": self.description,
            "date": self.date.isoformat() if self.date else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Transaction {self.id} {self.type} {self.amount}>"
