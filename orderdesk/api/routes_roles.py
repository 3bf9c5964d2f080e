from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from orderdesk.api.deps import current_user, get_db, get_request_meta, rate_limit
from orderdesk.core.rbac import require_permission
from orderdesk.models.audit import AuditAction
from orderdesk.models.permission import Permission
from orderdesk.models.role import Role
from orderdesk.models.user import User
from orderdesk.schemas.role import PermissionOut, RoleCreate, RoleOut
from orderdesk.services.audit_logger import log_audit

router = APIRouter()


def _load_permissions(db: Session, ids: list[int]) -> list[Permission]:
    if not ids:
        return []
    perms = db.query(Permission).filter(Permission.id.in_(ids)).all()
    if len(perms) != len(set(ids)):
        raise HTTPException(status_code=400, detail="Invalid permission_ids")
    return perms


def _name_taken(db: Session, name: str, exclude_id: int | None = None) -> bool:
    q = db.query(Role.id).filter(func.lower(Role.name) == name.strip().lower())
    if exclude_id is not None:
        q = q.filter(Role.id != exclude_id)
    return q.first() is not None


@router.get("", response_model=list[RoleOut])
def list_roles(db: Session = Depends(get_db), me: User = Depends(current_user)):
    require_permission(db, me.id, "roles", "read")
    return db.query(Role).order_by(Role.name.asc()).all()


@router.get("/permissions", response_model=list[PermissionOut])
def list_permissions(db: Session = Depends(get_db), me: User = Depends(current_user)):
    require_permission(db, me.id, "roles", "read")
    return db.query(Permission).order_by(Permission.module, Permission.action).all()


@router.post("", response_model=RoleOut, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(rate_limit)])
def create_role(payload: RoleCreate, request: Request, db: Session = Depends(get_db),
                me: User = Depends(current_user)):
    require_permission(db, me.id, "roles", "create")
    if _name_taken(db, payload.name):
        raise HTTPException(status_code=409, detail="Role exists")
    r = Role(name=payload.name.strip(), description=payload.description)
    r.permissions = _load_permissions(db, payload.permission_ids)
    db.add(r); db.commit(); db.refresh(r)

    meta = get_request_meta(request)
    log_audit(db, user_id=me.id, action=AuditAction.CREATE, entity_type="Role",
              entity_id=r.id,
              changes={"name": r.name, "permission_ids": r.permission_ids},
              description=f"Created role {r.name}",
              ip_address=meta["ip"], user_agent=meta["ua"])
    db.refresh(r)
    return r


@router.put("/{role_id}", response_model=RoleOut, dependencies=[Depends(rate_limit)])
def update_role(role_id: int, payload: RoleCreate, request: Request,
                db: Session = Depends(get_db), me: User = Depends(current_user)):
    require_permission(db, me.id, "roles", "update")
    r = db.get(Role, role_id)
    if not r: raise HTTPException(status_code=404, detail="Role not found")
    if _name_taken(db, payload.name, exclude_id=r.id):
        raise HTTPException(status_code=409, detail="Role exists")

    old = {"name": r.name, "description": r.description, "permission_ids": r.permission_ids}
    r.name = payload.name.strip(); r.description = payload.description
    r.permissions = _load_permissions(db, payload.permission_ids)
    db.commit(); db.refresh(r)

    meta = get_request_meta(request)
    log_audit(db, user_id=me.id, action=AuditAction.UPDATE, entity_type="Role",
              entity_id=r.id,
              changes={"old": old,
                       "new": {"name": r.name, "description": r.description,
                               "permission_ids": r.permission_ids}},
              description=f"Updated role {r.name}",
              ip_address=meta["ip"], user_agent=meta["ua"])
    db.refresh(r)
    return r


@router.delete("/{role_id}", dependencies=[Depends(rate_limit)])
def delete_role(role_id: int, request: Request, db: Session = Depends(get_db),
                me: User = Depends(current_user)):
    require_permission(db, me.id, "roles", "delete")
    r = db.get(Role, role_id)
    if not r: raise HTTPException(status_code=404, detail="Role not found")
    name = r.name
    db.delete(r); db.commit()

    meta = get_request_meta(request)
    log_audit(db, user_id=me.id, action=AuditAction.DELETE, entity_type="Role",
              entity_id=role_id, changes={"name": name},
              description=f"Deleted role {name}",
              ip_address=meta["ip"], user_agent=meta["ua"])
    return {"message": "Deleted"}
