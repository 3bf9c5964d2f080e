from datetime import datetime
from enum import Enum

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index, Text

from orderdesk.db.base import Base, MYSQL_ARGS


class NotificationType(str, Enum):
    LEAD_ASSIGNED = "LEAD_ASSIGNED"
    LEAD_STATUS_CHANGED = "LEAD_STATUS_CHANGED"
    ORDER_CREATED = "ORDER_CREATED"
    ORDER_STATUS_CHANGED = "ORDER_STATUS_CHANGED"
    ORDER_DISPATCHED = "ORDER_DISPATCHED"
    PAYMENT_RECEIVED = "PAYMENT_RECEIVED"
    SYSTEM_ALERT = "SYSTEM_ALERT"


class Notification(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "read"),
        MYSQL_ARGS,
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer,
                     ForeignKey("users.id", ondelete="CASCADE"),
                     nullable=False)

    type = Column(String(32), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)

    entity_type = Column(String(60), nullable=True)
    entity_id = Column(String(100), nullable=True)

    read = Column(Boolean, default=False, nullable=False)
    read_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime,
                        default=datetime.utcnow,
                        onupdate=datetime.utcnow,
                        nullable=False)
