# orderdesk/api/routes_orders.py
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from orderdesk.api.deps import current_user, get_db, get_request_meta, rate_limit
from orderdesk.models.order import OrderStatus, PaymentStatus
from orderdesk.models.user import User
from orderdesk.schemas.common import Page
from orderdesk.schemas.order import OrderCreate, OrderDetailOut, OrderOut, OrderUpdate
from orderdesk.services import order_service

router = APIRouter()


@router.get("", response_model=Page[OrderOut])
def list_orders(
        status_: Optional[OrderStatus] = Query(None, alias="status"),
        payment_status: Optional[PaymentStatus] = Query(None),
        start_date: Optional[date] = Query(None),
        end_date: Optional[date] = Query(None),
        search: Optional[str] = Query(None),
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1, le=200),
        db: Session = Depends(get_db),
        me: User = Depends(current_user),
):
    rows, meta = order_service.list_orders(
        db,
        me,
        status_=status_.value if status_ else None,
        payment_status=payment_status.value if payment_status else None,
        start_date=start_date,
        end_date=end_date,
        search=search,
        page=page,
        limit=limit,
    )
    return {"data": rows, "pagination": meta}


@router.post("",
             response_model=OrderDetailOut,
             status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(rate_limit)])
def create_order(
        payload: OrderCreate,
        request: Request,
        db: Session = Depends(get_db),
        me: User = Depends(current_user),
):
    return order_service.create_order_from_lead(db, me, payload,
                                                get_request_meta(request))


@router.get("/{order_id}", response_model=OrderDetailOut)
def get_order(
        order_id: int,
        db: Session = Depends(get_db),
        me: User = Depends(current_user),
):
    return order_service.get_order_for(db, me, order_id)


@router.patch("/{order_id}",
              response_model=OrderDetailOut,
              dependencies=[Depends(rate_limit)])
def update_order(
        order_id: int,
        payload: OrderUpdate,
        request: Request,
        db: Session = Depends(get_db),
        me: User = Depends(current_user),
):
    order = order_service.get_order_for(db, me, order_id)
    return order_service.update_order(db, me, order, payload,
                                      get_request_meta(request))
