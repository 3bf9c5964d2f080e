# FILE: orderdesk/services/lead_service.py
"""
Lead CRUD plus its side effects (audit trail and inbox notifications).

Every mutation commits first; audit/notify run afterwards and are
best-effort (see audit_logger / notifications).
"""
from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Any, Dict, List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from orderdesk.core.rbac import ensure_owner_or_admin, is_admin_user, require_admin
from orderdesk.models.audit import AuditAction
from orderdesk.models.lead import Lead, LeadActivity, LeadStatus
from orderdesk.models.notification import NotificationType
from orderdesk.models.order import Order
from orderdesk.models.user import User
from orderdesk.schemas.common import Pagination
from orderdesk.schemas.lead import ActivityIn, LeadCreate, LeadUpdate
from orderdesk.services.audit_logger import instance_to_audit_dict, log_audit
from orderdesk.services.notifications import notify, notify_admins
from orderdesk.utils.pagination import paginate

logger = logging.getLogger(__name__)

ENTITY = "Lead"

# columns an update may not clear
REQUIRED_FIELDS = ("status", "priority", "source")

Meta = Dict[str, Optional[str]]


def _actor_label(user: User) -> str:
    return f"{'Admin' if is_admin_user(user) else 'Employee'} {user.name}"


def _ensure_user_exists(db: Session, user_id: int) -> User:
    target = db.get(User, user_id)
    if not target:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                            detail="Assigned user not found")
    return target


def get_lead_or_404(db: Session, lead_id: int) -> Lead:
    lead = db.get(Lead, lead_id)
    if not lead:
        raise HTTPException(status_code=404, detail="Lead not found")
    return lead


def get_lead_for(db: Session, user: User, lead_id: int) -> Lead:
    """
    Load a lead the caller may access (404 before 403).
    """
    lead = get_lead_or_404(db, lead_id)
    ensure_owner_or_admin(user, lead.assigned_to)
    return lead


# ---------------- list ----------------


def _day_start(d: date) -> datetime:
    return datetime.combine(d, time.min)


def _day_end(d: date) -> datetime:
    return datetime.combine(d, time.max)


def list_leads(
    db: Session,
    user: User,
    *,
    status_: Optional[str] = None,
    priority: Optional[str] = None,
    source: Optional[str] = None,
    search: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    page: int = 1,
    limit: int = 20,
) -> Tuple[List[Lead], Pagination]:
    q = db.query(Lead).options(
        selectinload(Lead.assigned_user),
        selectinload(Lead.city),
        selectinload(Lead.pincode),
    )

    # employees only ever see their own leads
    if not is_admin_user(user):
        q = q.filter(Lead.assigned_to == user.id)

    # converted leads live on as orders
    if status_:
        q = q.filter(Lead.status == status_)
    else:
        q = q.filter(Lead.status != LeadStatus.CONVERTED.value)

    if priority:
        q = q.filter(Lead.priority == priority)
    if source:
        q = q.filter(Lead.source == source)

    if search:
        like = f"%{search.strip()}%"
        q = q.filter(
            or_(
                Lead.name.ilike(like),
                Lead.phone.ilike(like),
                Lead.email.ilike(like),
                Lead.disease.ilike(like),
            ))

    if start_date:
        q = q.filter(Lead.created_at >= _day_start(start_date))
    if end_date:
        q = q.filter(Lead.created_at <= _day_end(end_date))

    q = q.order_by(Lead.created_at.desc(), Lead.id.desc())
    return paginate(q, page, limit)


# ---------------- create ----------------


def create_lead(db: Session, user: User, payload: LeadCreate,
                meta: Meta) -> Lead:
    data = payload.model_dump()

    requested = data.pop("assigned_to", None)
    if is_admin_user(user) and requested:
        assigned_to = _ensure_user_exists(db, requested).id
    else:
        assigned_to = user.id

    lead = Lead(**data, assigned_to=assigned_to)
    db.add(lead)
    db.commit()
    db.refresh(lead)

    lead_id, lead_name = lead.id, lead.name

    log_audit(
        db,
        user_id=user.id,
        action=AuditAction.CREATE,
        entity_type=ENTITY,
        entity_id=lead_id,
        changes=instance_to_audit_dict(lead),
        description=f"Created lead {lead_name}",
        ip_address=meta.get("ip"),
        user_agent=meta.get("ua"),
    )

    if assigned_to != user.id:
        notify(
            db,
            user_id=assigned_to,
            type=NotificationType.LEAD_ASSIGNED,
            title="New Lead Assigned",
            message=f"You have been assigned a new lead: {lead_name}",
            entity_type=ENTITY,
            entity_id=lead_id,
        )

    if not is_admin_user(user):
        notify_admins(
            db,
            type=NotificationType.LEAD_ASSIGNED,
            title="New Lead Created",
            message=f"Employee {user.name} created a new lead: {lead_name}",
            entity_type=ENTITY,
            entity_id=lead_id,
        )

    db.refresh(lead)
    return lead


# ---------------- update ----------------


def update_lead(db: Session, user: User, lead: Lead, payload: LeadUpdate,
                meta: Meta) -> Lead:
    """
    Apply only the keys the client sent. ``name`` cannot be cleared
    (null is dropped), ``phone`` null is rejected by the schema.
    """
    ensure_owner_or_admin(user, lead.assigned_to)

    data: Dict[str, Any] = payload.model_dump(exclude_unset=True)

    if "name" in data and not data["name"]:
        data.pop("name")

    # NOT NULL columns: an explicit null leaves them unchanged
    for key in REQUIRED_FIELDS:
        if key in data and data[key] is None:
            data.pop(key)

    if not is_admin_user(user):
        data.pop("assigned_to", None)
    elif "assigned_to" in data:
        if data["assigned_to"] is None:
            data.pop("assigned_to")
        else:
            _ensure_user_exists(db, data["assigned_to"])

    old = instance_to_audit_dict(lead)
    old_status = lead.status
    old_assignee = lead.assigned_to

    for k, v in data.items():
        setattr(lead, k, v)

    db.commit()
    db.refresh(lead)

    new = instance_to_audit_dict(lead)
    lead_id, lead_name = lead.id, lead.name or lead.phone
    new_status, new_assignee = lead.status, lead.assigned_to

    log_audit(
        db,
        user_id=user.id,
        action=AuditAction.UPDATE,
        entity_type=ENTITY,
        entity_id=lead_id,
        changes={
            "old": old,
            "new": new,
            "updated_fields": list(data.keys())
        },
        description=f"Updated lead {lead_name}",
        ip_address=meta.get("ip"),
        user_agent=meta.get("ua"),
    )

    if new_assignee != old_assignee:
        notify(
            db,
            user_id=new_assignee,
            type=NotificationType.LEAD_ASSIGNED,
            title="New Lead Assigned",
            message=f"You have been assigned a new lead: {lead_name}",
            entity_type=ENTITY,
            entity_id=lead_id,
        )

    if new_status != old_status:
        msg = f'{_actor_label(user)} changed lead "{lead_name}" status to {new_status}'
        if new_assignee != user.id:
            notify(
                db,
                user_id=new_assignee,
                type=NotificationType.LEAD_STATUS_CHANGED,
                title="Lead Status Updated",
                message=msg,
                entity_type=ENTITY,
                entity_id=lead_id,
            )
        if not is_admin_user(user):
            notify_admins(
                db,
                type=NotificationType.LEAD_STATUS_CHANGED,
                title="Lead Status Updated",
                message=msg,
                entity_type=ENTITY,
                entity_id=lead_id,
            )

    db.refresh(lead)
    return lead


# ---------------- delete ----------------


def delete_lead(db: Session, user: User, lead: Lead, meta: Meta) -> None:
    ensure_owner_or_admin(user, lead.assigned_to)

    has_order = db.query(Order.id).filter(Order.lead_id == lead.id).first()
    if has_order:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Lead has already been converted to an order",
        )

    snapshot = instance_to_audit_dict(lead)
    lead_id, lead_name = lead.id, lead.name

    db.delete(lead)
    db.commit()

    log_audit(
        db,
        user_id=user.id,
        action=AuditAction.DELETE,
        entity_type=ENTITY,
        entity_id=lead_id,
        changes=snapshot,
        description=f"Deleted lead {lead_name}",
        ip_address=meta.get("ip"),
        user_agent=meta.get("ua"),
    )


# ---------------- bulk assign ----------------


def bulk_assign(db: Session, user: User, lead_ids: List[int],
                assigned_to: int, meta: Meta) -> List[int]:
    """
    Reassign every existing lead in ``lead_ids`` in one commit.
    Unknown ids are skipped. Returns the ids actually updated.
    """
    require_admin(user)

    target = db.get(User, assigned_to)
    if not target:
        raise HTTPException(status_code=404, detail="User not found")

    leads = (db.query(Lead).filter(Lead.id.in_(set(lead_ids))).order_by(
        Lead.id.asc()).all())
    if not leads:
        return []

    previous = {l.id: l.assigned_to for l in leads}
    for l in leads:
        l.assigned_to = target.id
    db.commit()

    updated = list(previous.keys())
    target_id, target_name = target.id, target.name

    for lead_id, old_assignee in previous.items():
        log_audit(
            db,
            user_id=user.id,
            action=AuditAction.ASSIGN,
            entity_type=ENTITY,
            entity_id=lead_id,
            changes={
                "old": {
                    "assigned_to": old_assignee
                },
                "new": {
                    "assigned_to": target_id
                },
            },
            description=f"Assigned lead to {target_name}",
            ip_address=meta.get("ip"),
            user_agent=meta.get("ua"),
        )

    notify(
        db,
        user_id=target_id,
        type=NotificationType.LEAD_ASSIGNED,
        title="Leads Assigned",
        message=f"{len(updated)} lead(s) have been assigned to you",
        entity_type=ENTITY,
    )
    return updated


# ---------------- activities ----------------


def add_activity(db: Session, user: User, lead: Lead,
                 payload: ActivityIn) -> LeadActivity:
    ensure_owner_or_admin(user, lead.assigned_to)

    act = LeadActivity(
        lead_id=lead.id,
        type=payload.type.strip().upper(),
        description=payload.description.strip(),
        created_by=user.id,
    )
    db.add(act)
    db.commit()
    db.refresh(act)
    return act
