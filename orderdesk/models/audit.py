from datetime import datetime
from enum import Enum

from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    Text,
    Index,
)

from sqlalchemy.orm import relationship

from orderdesk.db.base import Base, MYSQL_ARGS


class AuditAction(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    ASSIGN = "ASSIGN"
    LOGIN = "LOGIN"


class AuditLog(Base):
    """
    Append-only audit trail.
    Every CREATE / UPDATE / DELETE / ASSIGN on a business entity writes here.
    """
    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_entity", "entity_type", "entity_id"),
        MYSQL_ARGS,
    )

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, nullable=True)  # system jobs may be null
    action = Column(String(20), nullable=False)  # CREATE / UPDATE / ...

    entity_type = Column(String(60), nullable=False)  # Lead / Order / User
    entity_id = Column(String(100),
                       nullable=False)  # generic pk, stored as string

    changes = Column(Text, nullable=True)  # JSON text (before/after)
    description = Column(String(500), nullable=True)

    ip_address = Column(String(45), nullable=True)  # IPv4/IPv6
    user_agent = Column(String(255), nullable=True)

    created_at = Column(DateTime,
                        default=datetime.utcnow,
                        nullable=False,
                        index=True)

    # user_id carries no FK so deleting a user keeps their trail
    user = relationship("User",
                        primaryjoin="foreign(AuditLog.user_id) == User.id",
                        viewonly=True)
