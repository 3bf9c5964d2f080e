# FILE: orderdesk/services/order_service.py
"""
Lead -> Order conversion and the order lifecycle.

Conversion (order row, initial payment, lead CONVERTED) is a single
commit; audit and notifications are written afterwards and may fail
without touching the order.
"""
from __future__ import annotations

import logging
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from orderdesk.core.rbac import ensure_owner_or_admin, is_admin_user
from orderdesk.models.audit import AuditAction
from orderdesk.models.lead import Lead, LeadStatus
from orderdesk.models.notification import NotificationType
from orderdesk.models.order import (
    DEFAULT_PAYMENT_METHOD,
    Order,
    OrderStatus,
    Payment,
    PaymentType,
)
from orderdesk.models.user import User
from orderdesk.schemas.common import Pagination
from orderdesk.schemas.order import OrderCreate, OrderUpdate
from orderdesk.services.audit_logger import instance_to_audit_dict, log_audit
from orderdesk.services.notifications import notify, notify_admins
from orderdesk.services.order_numbers import next_order_number
from orderdesk.utils.pagination import paginate

logger = logging.getLogger(__name__)

ENTITY = "Order"

# columns an update may not clear; received_amount also only grows
REQUIRED_FIELDS = ("status", "payment_status", "received_amount")

# copied from the lead when the request leaves them out
ADDRESS_FIELDS = (
    "address_line1",
    "address_line2",
    "address_line3",
    "address_line4",
    "address_line5",
    "address_line6",
    "pincode_id",
    "city_id",
    "state",
    "country",
)

Meta = Dict[str, Optional[str]]


def _money(v: Any) -> Decimal:
    return Decimal(str(v or 0))


def get_order_or_404(db: Session, order_id: int) -> Order:
    order = (db.query(Order).options(selectinload(Order.payments)).filter(
        Order.id == order_id).first())
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return order


def get_order_for(db: Session, user: User, order_id: int) -> Order:
    order = get_order_or_404(db, order_id)
    ensure_owner_or_admin(user, order.assigned_to)
    return order


# ---------------- list ----------------


def list_orders(
    db: Session,
    user: User,
    *,
    status_: Optional[str] = None,
    payment_status: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    search: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
) -> Tuple[List[Order], Pagination]:
    q = (db.query(Order).outerjoin(Lead, Order.lead_id == Lead.id).options(
        selectinload(Order.lead),
        selectinload(Order.assigned_user),
        selectinload(Order.city),
        selectinload(Order.pincode),
    ))

    if not is_admin_user(user):
        q = q.filter(Order.assigned_to == user.id)

    if status_:
        q = q.filter(Order.status == status_)
    if payment_status:
        q = q.filter(Order.payment_status == payment_status)

    # date range is on dispatch date
    if start_date:
        q = q.filter(Order.dispatch_date >= datetime.combine(start_date, time.min))
    if end_date:
        q = q.filter(Order.dispatch_date <= datetime.combine(end_date, time.max))

    if search:
        like = f"%{search.strip()}%"
        q = q.filter(
            or_(
                Order.order_number.ilike(like),
                Order.patient_name.ilike(like),
                Order.tracking_id.ilike(like),
                Lead.phone.ilike(like),
            ))

    q = q.order_by(Order.created_at.desc(), Order.id.desc())
    return paginate(q, page, limit)


# ---------------- create (conversion) ----------------


def create_order_from_lead(db: Session, user: User, payload: OrderCreate,
                           meta: Meta) -> Order:
    lead = db.get(Lead, payload.lead_id)
    if not lead:
        raise HTTPException(status_code=404, detail="Lead not found")
    ensure_owner_or_admin(user, lead.assigned_to)

    if db.query(Order.id).filter(Order.lead_id == lead.id).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                            detail="Lead has already been converted to an order")

    assigned_to = user.id
    if is_admin_user(user) and payload.assigned_to:
        if not db.get(User, payload.assigned_to):
            raise HTTPException(status_code=404,
                                detail="Assigned user not found")
        assigned_to = payload.assigned_to

    data = payload.model_dump(exclude={"lead_id", "assigned_to"})
    for field in ADDRESS_FIELDS:
        if data.get(field) is None:
            data[field] = getattr(lead, field)

    order_number = next_order_number(db)
    received = _money(data["received_amount"])

    order = Order(
        **data,
        order_number=order_number,
        lead_id=lead.id,
        patient_name=lead.name,
        patient_id=order_number,
        status=OrderStatus.PENDING.value,
        booked_by=user.id,
        assigned_to=assigned_to,
    )

    try:
        db.add(order)
        db.flush()

        if received > 0:
            db.add(
                Payment(
                    order_id=order.id,
                    amount=received,
                    payment_type=PaymentType.INITIAL.value,
                    payment_method=order.payment_method or DEFAULT_PAYMENT_METHOD,
                    reference_number=order.money_order_number,
                    received_by=user.id,
                ))

        lead.status = LeadStatus.CONVERTED.value
        db.commit()
    except IntegrityError:
        # unique lead_id / order_number lost a race with another request
        db.rollback()
        logger.warning("Order create conflict for lead %s", payload.lead_id)
        raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                            detail="Lead has already been converted to an order")

    db.refresh(order)
    order_id = order.id
    lead_name = lead.name

    log_audit(
        db,
        user_id=user.id,
        action=AuditAction.CREATE,
        entity_type=ENTITY,
        entity_id=order_id,
        changes=instance_to_audit_dict(order),
        description=f"Created order {order_number} from lead {lead_name}",
        ip_address=meta.get("ip"),
        user_agent=meta.get("ua"),
    )

    if assigned_to != user.id:
        notify(
            db,
            user_id=assigned_to,
            type=NotificationType.ORDER_CREATED,
            title="New Order Created",
            message=f"A new order {order_number} has been created from lead: {lead_name}",
            entity_type=ENTITY,
            entity_id=order_id,
        )

    if not is_admin_user(user):
        notify_admins(
            db,
            type=NotificationType.ORDER_CREATED,
            title="New Order Created",
            message=f"Employee {user.name} created order {order_number} from lead: {lead_name}",
            entity_type=ENTITY,
            entity_id=order_id,
        )

    return get_order_or_404(db, order_id)


# ---------------- update ----------------


def update_order(db: Session, user: User, order: Order, payload: OrderUpdate,
                 meta: Meta) -> Order:
    ensure_owner_or_admin(user, order.assigned_to)

    data: Dict[str, Any] = payload.model_dump(exclude_unset=True)

    if not is_admin_user(user):
        data.pop("assigned_to", None)
    elif "assigned_to" in data:
        if data["assigned_to"] is None:
            data.pop("assigned_to")
        elif not db.get(User, data["assigned_to"]):
            raise HTTPException(status_code=404, detail="Assigned user not found")

    # NOT NULL columns: an explicit null leaves them unchanged
    for key in REQUIRED_FIELDS:
        if key in data and data[key] is None:
            data.pop(key)

    old = instance_to_audit_dict(order)
    old_status = order.status
    old_received = _money(order.received_amount)

    delta = Decimal("0")
    if "received_amount" in data:
        new_received = _money(data["received_amount"])
        if new_received < old_received:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="received_amount cannot decrease",
            )
        delta = new_received - old_received

    new_status = data.get("status", old_status)
    if new_status == OrderStatus.DISPATCHED.value and new_status != old_status:
        if not order.dispatched_by:
            data["dispatched_by"] = user.id
        if not data.get("dispatch_date") and not order.dispatch_date:
            data["dispatch_date"] = datetime.utcnow()

    for k, v in data.items():
        setattr(order, k, v)

    if delta > 0:
        db.add(
            Payment(
                order_id=order.id,
                amount=delta,
                payment_type=(PaymentType.INITIAL.value
                              if old_received == 0 else PaymentType.PARTIAL.value),
                payment_method=order.payment_method or DEFAULT_PAYMENT_METHOD,
                reference_number=order.money_order_number,
                received_by=user.id,
            ))

    # order fields and the new payment commit together
    db.commit()
    db.refresh(order)

    new = instance_to_audit_dict(order)
    order_id = order.id
    order_number = order.order_number
    assignee = order.assigned_to
    tracking = order.tracking_id

    log_audit(
        db,
        user_id=user.id,
        action=AuditAction.UPDATE,
        entity_type=ENTITY,
        entity_id=order_id,
        changes={
            "old": old,
            "new": new,
            "updated_fields": list(data.keys())
        },
        description=f"Updated order {order_number}",
        ip_address=meta.get("ip"),
        user_agent=meta.get("ua"),
    )

    if new_status != old_status:
        if assignee != user.id:
            notify(
                db,
                user_id=assignee,
                type=NotificationType.ORDER_STATUS_CHANGED,
                title="Order Status Updated",
                message=f"Order {order_number} status changed to {new_status} by {user.name}",
                entity_type=ENTITY,
                entity_id=order_id,
            )
        if not is_admin_user(user):
            notify_admins(
                db,
                type=NotificationType.ORDER_STATUS_CHANGED,
                title="Order Status Updated",
                message=f"Employee {user.name} changed order {order_number} status to {new_status}",
                entity_type=ENTITY,
                entity_id=order_id,
            )
        if new_status == OrderStatus.DISPATCHED.value:
            notify(
                db,
                user_id=assignee,
                type=NotificationType.ORDER_DISPATCHED,
                title="Order Dispatched",
                message=f"Order {order_number} has been dispatched. Tracking ID: {tracking or 'N/A'}",
                entity_type=ENTITY,
                entity_id=order_id,
            )

    if delta > 0 and assignee != user.id:
        notify(
            db,
            user_id=assignee,
            type=NotificationType.PAYMENT_RECEIVED,
            title="Payment Received",
            message=f"Payment of {delta} received for order {order_number}",
            entity_type=ENTITY,
            entity_id=order_id,
        )

    return get_order_or_404(db, order_id)
