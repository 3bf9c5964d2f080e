# orderdesk/api/routes_leads.py
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from orderdesk.api.deps import current_user, get_db, get_request_meta, rate_limit
from orderdesk.models.lead import LeadPriority, LeadSource, LeadStatus
from orderdesk.models.user import User
from orderdesk.schemas.common import Page
from orderdesk.schemas.lead import (
    ActivityIn,
    ActivityOut,
    BulkAssignIn,
    BulkAssignOut,
    LeadCreate,
    LeadDetailOut,
    LeadOut,
    LeadUpdate,
)
from orderdesk.services import lead_service

router = APIRouter()


@router.get("", response_model=Page[LeadOut])
def list_leads(
        status_: Optional[LeadStatus] = Query(None, alias="status"),
        priority: Optional[LeadPriority] = Query(None),
        source: Optional[LeadSource] = Query(None),
        search: Optional[str] = Query(None),
        start_date: Optional[date] = Query(None),
        end_date: Optional[date] = Query(None),
        page: int = Query(1, ge=1),
        limit: int = Query(20, ge=1, le=200),
        db: Session = Depends(get_db),
        me: User = Depends(current_user),
):
    rows, meta = lead_service.list_leads(
        db,
        me,
        status_=status_.value if status_ else None,
        priority=priority.value if priority else None,
        source=source.value if source else None,
        search=search,
        start_date=start_date,
        end_date=end_date,
        page=page,
        limit=limit,
    )
    return {"data": rows, "pagination": meta}


@router.post("",
             response_model=LeadOut,
             status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(rate_limit)])
def create_lead(
        payload: LeadCreate,
        request: Request,
        db: Session = Depends(get_db),
        me: User = Depends(current_user),
):
    return lead_service.create_lead(db, me, payload, get_request_meta(request))


@router.post("/bulk-assign",
             response_model=BulkAssignOut,
             dependencies=[Depends(rate_limit)])
def bulk_assign(
        payload: BulkAssignIn,
        request: Request,
        db: Session = Depends(get_db),
        me: User = Depends(current_user),
):
    updated = lead_service.bulk_assign(db, me, payload.lead_ids,
                                       payload.assigned_to,
                                       get_request_meta(request))
    return BulkAssignOut(updated=len(updated), lead_ids=updated)


@router.get("/{lead_id}", response_model=LeadDetailOut)
def get_lead(
        lead_id: int,
        db: Session = Depends(get_db),
        me: User = Depends(current_user),
):
    return lead_service.get_lead_for(db, me, lead_id)


@router.patch("/{lead_id}",
              response_model=LeadOut,
              dependencies=[Depends(rate_limit)])
def update_lead(
        lead_id: int,
        payload: LeadUpdate,
        request: Request,
        db: Session = Depends(get_db),
        me: User = Depends(current_user),
):
    lead = lead_service.get_lead_for(db, me, lead_id)
    return lead_service.update_lead(db, me, lead, payload,
                                    get_request_meta(request))


@router.delete("/{lead_id}", dependencies=[Depends(rate_limit)])
def delete_lead(
        lead_id: int,
        request: Request,
        db: Session = Depends(get_db),
        me: User = Depends(current_user),
):
    lead = lead_service.get_lead_for(db, me, lead_id)
    lead_service.delete_lead(db, me, lead, get_request_meta(request))
    return {"message": "Deleted"}


@router.post("/{lead_id}/activities",
             response_model=ActivityOut,
             status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(rate_limit)])
def add_activity(
        lead_id: int,
        payload: ActivityIn,
        db: Session = Depends(get_db),
        me: User = Depends(current_user),
):
    lead = lead_service.get_lead_for(db, me, lead_id)
    return lead_service.add_activity(db, me, lead, payload)
