# orderdesk/api/routes_users.py
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from orderdesk.api.deps import current_user, get_db, get_request_meta, rate_limit
from orderdesk.core.rbac import require_permission
from orderdesk.core.security import hash_password, random_password
from orderdesk.models.audit import AuditAction
from orderdesk.models.role import Role
from orderdesk.models.user import User
from orderdesk.schemas.user import ProfileUpdate, UserCreate, UserOut, UserUpdate
from orderdesk.services.audit_logger import instance_to_audit_dict, log_audit
from orderdesk.services.rbac_helpers import default_employee_role

router = APIRouter()

ENTITY = "User"


def _snapshot(u: User) -> dict:
    data = instance_to_audit_dict(u)
    data.pop("password_hash", None)
    return data


def _resolve_roles(db: Session, role_ids: list[int]) -> list[Role]:
    roles = db.query(Role).filter(Role.id.in_(role_ids)).all()
    if len(roles) != len(set(role_ids)):
        raise HTTPException(status_code=400, detail="Invalid role_ids")
    return roles


def _email_taken(db: Session, email: str, exclude_id: int | None = None) -> bool:
    q = db.query(User.id).filter(func.lower(User.email) == email.lower())
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    return q.first() is not None


@router.get("", response_model=list[UserOut])
def list_users(
        db: Session = Depends(get_db),
        me: User = Depends(current_user),
):
    require_permission(db, me.id, "users", "read")
    return (db.query(User).options(selectinload(User.roles)).order_by(
        User.name.asc()).all())


@router.post("",
             response_model=UserOut,
             status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(rate_limit)])
def create_user(
        payload: UserCreate,
        request: Request,
        db: Session = Depends(get_db),
        me: User = Depends(current_user),
):
    require_permission(db, me.id, "users", "create")

    email = payload.email.lower()
    if _email_taken(db, email):
        raise HTTPException(status_code=409, detail="Email already exists")

    u = User(
        name=payload.name.strip(),
        email=email,
        password_hash=hash_password(payload.password or random_password()),
        role=payload.role.value,
        is_active=payload.is_active,
        phone=payload.phone,
    )

    # EMPLOYEE without explicit roles gets the default Employee role
    if payload.role_ids:
        u.roles = _resolve_roles(db, payload.role_ids)
    elif not u.is_admin:
        default = default_employee_role(db)
        u.roles = [default] if default else []

    db.add(u)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Email already exists")
    db.refresh(u)

    meta = get_request_meta(request)
    log_audit(db,
              user_id=me.id,
              action=AuditAction.CREATE,
              entity_type=ENTITY,
              entity_id=u.id,
              changes=_snapshot(u),
              description=f"Created user {u.email}",
              ip_address=meta["ip"],
              user_agent=meta["ua"])
    db.refresh(u)
    return u


@router.patch("/profile", response_model=UserOut, dependencies=[Depends(rate_limit)])
def update_profile(
        payload: ProfileUpdate,
        db: Session = Depends(get_db),
        me: User = Depends(current_user),
):
    data = payload.model_dump(exclude_unset=True)
    if "name" in data and not (data["name"] or "").strip():
        data.pop("name")
    for k, v in data.items():
        setattr(me, k, v)
    db.commit()
    db.refresh(me)
    return me


@router.get("/{user_id}", response_model=UserOut)
def get_user(
        user_id: int,
        db: Session = Depends(get_db),
        me: User = Depends(current_user),
):
    require_permission(db, me.id, "users", "read")
    u = db.get(User, user_id)
    if not u:
        raise HTTPException(status_code=404, detail="User not found")
    return u


@router.patch("/{user_id}", response_model=UserOut, dependencies=[Depends(rate_limit)])
def update_user(
        user_id: int,
        payload: UserUpdate,
        request: Request,
        db: Session = Depends(get_db),
        me: User = Depends(current_user),
):
    require_permission(db, me.id, "users", "update")

    u = db.get(User, user_id)
    if not u:
        raise HTTPException(status_code=404, detail="User not found")

    data = payload.model_dump(exclude_unset=True)
    old = _snapshot(u)

    if data.get("email"):
        email = data["email"].lower()
        if _email_taken(db, email, exclude_id=u.id):
            raise HTTPException(status_code=409, detail="Email already exists")
        u.email = email
    if data.get("name"):
        u.name = data["name"].strip()
    if data.get("role"):
        u.role = data["role"].value
    if data.get("is_active") is not None:
        if u.id == me.id and not data["is_active"]:
            raise HTTPException(status_code=400,
                                detail="You cannot deactivate your own account")
        u.is_active = data["is_active"]
    if "phone" in data:
        u.phone = data["phone"]
    if data.get("password"):
        u.password_hash = hash_password(data["password"])

    # None => keep existing roles, [] => clear, [..] => replace
    if payload.role_ids is not None:
        u.roles = _resolve_roles(db, payload.role_ids) if payload.role_ids else []

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Update failed")
    db.refresh(u)

    meta = get_request_meta(request)
    log_audit(db,
              user_id=me.id,
              action=AuditAction.UPDATE,
              entity_type=ENTITY,
              entity_id=u.id,
              changes={
                  "old": old,
                  "new": _snapshot(u),
                  "updated_fields": [k for k in data if k != "password"],
              },
              description=f"Updated user {u.email}",
              ip_address=meta["ip"],
              user_agent=meta["ua"])
    db.refresh(u)
    return u


@router.delete("/{user_id}", dependencies=[Depends(rate_limit)])
def delete_user(
        user_id: int,
        request: Request,
        db: Session = Depends(get_db),
        me: User = Depends(current_user),
):
    # never hard delete users (leads/orders/audit point at them); deactivate instead
    require_permission(db, me.id, "users", "delete")

    u = db.get(User, user_id)
    if not u:
        raise HTTPException(status_code=404, detail="User not found")
    if u.id == me.id:
        raise HTTPException(status_code=400,
                            detail="You cannot delete your own account")

    u.is_active = False
    db.commit()

    meta = get_request_meta(request)
    log_audit(db,
              user_id=me.id,
              action=AuditAction.DELETE,
              entity_type=ENTITY,
              entity_id=user_id,
              changes=_snapshot(u),
              description=f"Deactivated user {u.email}",
              ip_address=meta["ip"],
              user_agent=meta["ua"])
    return {"message": "Deactivated"}
