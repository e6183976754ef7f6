import uuid
from sqlalchemy import Column, String, DateTime, Numeric

from finanzas.database import db
from finanzas.utils.dates import utcnow


class Goal(db.Model):
    """Savings/spending target. Progress is entered by hand."""
    __tablename__ = "goals"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    target = Column(Numeric(18, 2), nullable=False)
    current = Column(Numeric(18, 2), nullable=False, default=0)
    color = Column(String(16), nullable=False, default="#D4AF37")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "target": float(self.target),
            "current": float(self.current),
            "color": self.color,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
