from sqlalchemy import Column, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship
from orderdesk.db.base import Base, MYSQL_ARGS


class Permission(Base):
    __tablename__ = "permissions"
    __table_args__ = (
        UniqueConstraint("module", "action", name="uq_permission_module_action"),
        MYSQL_ARGS,
    )

    id = Column(Integer, primary_key=True)
    module = Column(String(120), nullable=False)              # e.g. "leads"
    action = Column(String(60), nullable=False)               # e.g. "update"
    code = Column(String(191), unique=True, nullable=False)   # e.g. "leads.update"
    label = Column(String(255), nullable=False)               # UI label

    roles = relationship("Role", secondary="role_permissions", back_populates="permissions")
