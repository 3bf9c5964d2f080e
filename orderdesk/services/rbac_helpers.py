# orderdesk/services/rbac_helpers.py
from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Set, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from orderdesk.core.config import settings
from orderdesk.core.security import hash_password
from orderdesk.models.permission import Permission
from orderdesk.models.role import Role, RolePermission
from orderdesk.models.user import User, UserRoleType

logger = logging.getLogger(__name__)

# -----------------------------
# Permission catalogue
# -----------------------------
MODULES: List[Tuple[str, List[str]]] = [
    ("leads", ["read", "create", "update", "delete"]),
    ("orders", ["read", "create", "update", "delete"]),
    ("users", ["read", "create", "update", "delete"]),
    ("roles", ["read", "create", "update", "delete"]),
    ("audit", ["read"]),
    ("notifications", ["read", "update"]),
]

ROLE_EMPLOYEE = "Employee"

# baseline for the default Employee role
EMPLOYEE_PERMS = [
    "leads.read",
    "leads.create",
    "leads.update",
    "leads.delete",
    "orders.read",
    "orders.create",
    "orders.update",
    "notifications.read",
    "notifications.update",
]


def _norm(s: str) -> str:
    return (s or "").strip().lower()


def seed_permissions(db: Session) -> int:
    """
    Insert missing permission codes only; safe to run repeatedly.
    Does NOT commit. Returns number of rows added.
    """
    existing = {code for (code, ) in db.query(Permission.code).all()}
    added = 0
    for module, actions in MODULES:
        for action in actions:
            code = f"{module}.{action}"
            if code in existing:
                continue
            existing.add(code)
            db.add(
                Permission(module=module,
                           action=action,
                           code=code,
                           label=f"{module.title()} - {action.title()}"))
            added += 1
    db.flush()
    return added


def _get_or_create_role(db: Session, name: str, desc: str = "") -> Role:
    role = db.query(Role).filter(func.lower(Role.name) == _norm(name)).first()
    if not role:
        role = Role(name=name.strip(), description=desc or "")
        db.add(role)
        db.flush()
    return role


def _permission_ids_by_codes(db: Session, codes: Iterable[str]) -> Set[int]:
    wanted = {_norm(c) for c in codes if c}
    if not wanted:
        return set()
    rows = db.query(Permission.id, Permission.code).all()
    return {pid for (pid, code) in rows if _norm(code) in wanted}


def ensure_default_roles(db: Session) -> Dict[str, Role]:
    """
    Employee role exists and carries at least the baseline permissions.
    Does NOT commit.
    """
    employee = _get_or_create_role(db, ROLE_EMPLOYEE, "Default employee role")

    have = {
        pid
        for (pid, ) in db.query(RolePermission.permission_id).filter(
            RolePermission.role_id == employee.id).all()
    }
    missing = _permission_ids_by_codes(db, EMPLOYEE_PERMS) - have
    if missing:
        db.add_all([
            RolePermission(role_id=employee.id, permission_id=pid)
            for pid in sorted(missing)
        ])
        db.flush()
    return {ROLE_EMPLOYEE: employee}


def ensure_first_admin(db: Session) -> User:
    """
    Create the bootstrap ADMIN from settings if that email is unknown.
    Does NOT commit.
    """
    email = settings.FIRST_ADMIN_EMAIL.strip().lower()
    admin = db.query(User).filter(func.lower(User.email) == email).first()
    if admin:
        return admin
    admin = User(
        name=settings.FIRST_ADMIN_NAME,
        email=email,
        password_hash=hash_password(settings.FIRST_ADMIN_PASSWORD),
        role=UserRoleType.ADMIN.value,
        is_active=True,
    )
    db.add(admin)
    db.flush()
    logger.info("Created first admin %s", email)
    return admin


def default_employee_role(db: Session) -> Role | None:
    return db.query(Role).filter(func.lower(Role.name) == _norm(ROLE_EMPLOYEE)).first()
