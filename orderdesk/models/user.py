from datetime import datetime
from enum import Enum

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from orderdesk.db.base import Base, MYSQL_ARGS


class UserRoleType(str, Enum):
    ADMIN = "ADMIN"
    EMPLOYEE = "EMPLOYEE"


class User(Base):
    __tablename__ = "users"
    __table_args__ = MYSQL_ARGS

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    email = Column(String(191), unique=True,
                   nullable=False)  # <= 191, no index=True
    password_hash = Column(String(255), nullable=False)

    # ADMIN | EMPLOYEE
    role = Column(String(16),
                  nullable=False,
                  default=UserRoleType.EMPLOYEE.value)
    is_active = Column(Boolean, default=True, nullable=False)

    phone = Column(String(32), nullable=True)
    bio = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime,
                        default=datetime.utcnow,
                        onupdate=datetime.utcnow,
                        nullable=False)

    # fine-grained role assignments (EMPLOYEE permissions)
    roles = relationship("Role",
                         secondary="user_roles",
                         back_populates="users")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRoleType.ADMIN.value

    @property
    def role_ids(self):
        return [r.id for r in self.roles or []]


class UserRole(Base):
    __tablename__ = "user_roles"
    __table_args__ = MYSQL_ARGS

    user_id = Column(Integer,
                     ForeignKey("users.id", ondelete="CASCADE"),
                     primary_key=True)
    role_id = Column(Integer,
                     ForeignKey("roles.id", ondelete="CASCADE"),
                     primary_key=True)
