# FILE: orderdesk/api/routes_audit_logs.py
from __future__ import annotations

from datetime import date, datetime, time
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session, selectinload

from orderdesk.api.deps import current_user, get_db
from orderdesk.core.rbac import require_permission
from orderdesk.models.audit import AuditAction, AuditLog
from orderdesk.models.user import User
from orderdesk.schemas.audit import AuditLogOut
from orderdesk.schemas.common import Page
from orderdesk.utils.pagination import paginate

router = APIRouter()


@router.get("", response_model=Page[AuditLogOut])
def list_audit_logs(
        entity_type: Optional[str] = Query(
            None, description="Entity name, e.g. 'Lead' or 'Order'"),
        action: Optional[AuditAction] = Query(None),
        user_id: Optional[int] = Query(
            None, description="Who performed the action"),
        start_date: Optional[date] = Query(
            None, description="created_at >= start_date"),
        end_date: Optional[date] = Query(
            None, description="created_at <= end_date (inclusive)"),
        page: int = Query(1, ge=1),
        limit: int = Query(50, ge=1, le=200),
        db: Session = Depends(get_db),
        me: User = Depends(current_user),
):
    """
    GET /api/audit-logs?entity_type=Lead&action=UPDATE&page=1
    """
    require_permission(db, me.id, "audit", "read")

    qry = db.query(AuditLog).options(selectinload(AuditLog.user))

    if entity_type:
        qry = qry.filter(AuditLog.entity_type == entity_type)
    if action is not None:
        qry = qry.filter(AuditLog.action == action.value)
    if user_id is not None:
        qry = qry.filter(AuditLog.user_id == user_id)
    if start_date:
        qry = qry.filter(AuditLog.created_at >= datetime.combine(start_date, time.min))
    if end_date:
        qry = qry.filter(AuditLog.created_at <= datetime.combine(end_date, time.max))

    qry = qry.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
    rows, meta = paginate(qry, page, limit)
    return {"data": rows, "pagination": meta}
