"""
Budget Models

A budget config holds the annual revenue target for one (user, year).
Pockets split the monthly estimate by percentage. Pocket percentages are
not required to add up to 100.
"""

import uuid
from sqlalchemy import Column, String, Integer, DateTime, Numeric, UniqueConstraint

from finanzas.database import db
from finanzas.utils.dates import utcnow


class BudgetConfig(db.Model):
    __tablename__ = "budget_config"
    __table_args__ = (
        UniqueConstraint("user_id", "year", name="uq_budget_config_user_year"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    year = Column(Integer, nullable=False)
    annual_revenue_target = Column(Numeric(18, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "year": self.year,
            "annual_revenue_target": float(self.annual_revenue_target),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class BudgetPocket(db.Model):
    __tablename__ = "budget_pockets"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    percentage = Column(Numeric(7, 2), nullable=False)
    sort_order = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "percentage": float(self.percentage),
            "sort_order": self.sort_order,
        }

    def __repr__(self):
        return f"<BudgetPocket {self.name} {self.percentage}%>"
