from __future__ import annotations

from enum import Enum
from typing import Any, Optional, Set, Tuple

from fastapi import HTTPException, status
from sqlalchemy.orm import Session, selectinload

from orderdesk.models.role import Role
from orderdesk.models.user import User, UserRoleType

INSUFFICIENT_PERMISSIONS = "Insufficient permissions"


def _code(x: Any) -> str:
    """
    Normalize a permission value safely.
    Supports:
      - Enum -> enum.value
      - str  -> str
      - object with .module/.action -> "module.action"
      - object with .code -> str
    """
    if x is None:
        return ""

    if isinstance(x, Enum):
        return str(x.value)

    if isinstance(x, str):
        return x

    module = getattr(x, "module", None)
    action = getattr(x, "action", None)
    if module and action:
        return f"{module}.{action}"

    if hasattr(x, "code"):
        return str(getattr(x, "code"))

    return str(x)


def is_admin_user(user: Any) -> bool:
    """
    ADMIN role bypasses every permission check.
    """
    if not user:
        return False
    v = getattr(user, "role", None)
    if isinstance(v, Enum):
        v = v.value
    return isinstance(v, str) and v.upper() == UserRoleType.ADMIN.value


def iter_user_permissions(user: Any) -> Set[Tuple[str, str]]:
    """
    Collect (module, action) pairs granted through user.roles[*].permissions.
    """
    out: Set[Tuple[str, str]] = set()
    if not user:
        return out

    for r in getattr(user, "roles", None) or []:
        for p in getattr(r, "permissions", None) or []:
            module = getattr(p, "module", None)
            action = getattr(p, "action", None)
            if module and action:
                out.add((module, action))
    return out


def iter_user_perm_codes(user: Any) -> Set[str]:
    return {f"{m}.{a}" for (m, a) in iter_user_permissions(user)}


def user_has_perm(user: Any, module: str, action: str) -> bool:
    """
    Check against an already-loaded user graph. Exact string match, no wildcards.
    """
    if is_admin_user(user):
        return True
    return (module, action) in iter_user_permissions(user)


def load_user_with_permissions(db: Session, user_id: Any) -> Optional[User]:
    return (db.query(User).options(
        selectinload(User.roles).selectinload(Role.permissions)).filter(
            User.id == user_id).first())


def has_permission(db: Session, user_id: Any, module: str, action: str) -> bool:
    """
    Re-reads user -> roles -> permissions on every call (no cache).
    Unknown users have no permissions.
    """
    user = load_user_with_permissions(db, user_id)
    if not user:
        return False
    return user_has_perm(user, _code(module), _code(action))


def require_permission(db: Session,
                       user_id: Any,
                       module: str,
                       action: str,
                       *,
                       message: Optional[str] = None) -> None:
    """
    Raise 403 if the user does not hold module.action.
    """
    if not has_permission(db, user_id, module, action):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=message or INSUFFICIENT_PERMISSIONS,
        )


def require_admin(user: Any, *, message: Optional[str] = None) -> None:
    if not is_admin_user(user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=message or "Admin access required",
        )


def ensure_owner_or_admin(user: Any, assigned_to: Any) -> None:
    """
    Employees may only touch records assigned to themselves.
    """
    if is_admin_user(user):
        return
    if assigned_to != getattr(user, "id", None):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                            detail="Forbidden")
