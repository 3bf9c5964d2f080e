from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from orderdesk.db.base import Base, MYSQL_ARGS


class Role(Base):
    __tablename__ = "roles"
    __table_args__ = MYSQL_ARGS

    id = Column(Integer, primary_key=True)
    name = Column(String(120), unique=True, nullable=False)
    description = Column(String(255))

    users = relationship("User", secondary="user_roles", back_populates="roles")
    permissions = relationship("Permission", secondary="role_permissions", back_populates="roles")

    @property
    def permission_ids(self):
        return [p.id for p in self.permissions or []]


class RolePermission(Base):
    __tablename__ = "role_permissions"
    __table_args__ = MYSQL_ARGS

    role_id = Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True)
    permission_id = Column(Integer, ForeignKey("permissions.id", ondelete="CASCADE"), primary_key=True)
