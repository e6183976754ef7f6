"""
Notification Models

Personal notifications have an owner and keep their own read flag.
Broadcasts (no owner) are read per user through ``notification_reads``.
"""

import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Text, ForeignKey, UniqueConstraint

from finanzas.database import db
from finanzas.utils.dates import utcnow

NOTIFICATION_TYPES = ("info", "warning", "promo", "update", "alert")


class Notification(db.Model):
    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), nullable=True, index=True)  # NULL = broadcast
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=True)
    type = Column(String(16), nullable=False, default="info")
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    @property
    def is_broadcast(self) -> bool:
        return self.user_id is None

    def to_dict(self, read=None):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "message": self.message,
            "type": self.type,
            "read": self.read if read is None else read,
            "broadcast": self.is_broadcast,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class NotificationRead(db.Model):
    """Per-user read marker for broadcast notifications"""
    __tablename__ = "notification_reads"
    __table_args__ = (
        UniqueConstraint("notification_id", "user_id", name="uq_notification_reads_user"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    notification_id = Column(String(36), ForeignKey("notifications.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), nullable=False, index=True)
    read_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
