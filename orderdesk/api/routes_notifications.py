# orderdesk/api/routes_notifications.py
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from orderdesk.api.deps import current_user, get_db, rate_limit
from orderdesk.core.config import settings
from orderdesk.models.user import User
from orderdesk.schemas.notification import (
    NotificationListOut,
    NotificationMarkIn,
    NotificationOut,
)
from orderdesk.services import notifications

router = APIRouter()


@router.get("", response_model=NotificationListOut)
def list_notifications(
        unread_only: bool = Query(False),
        limit: int = Query(settings.NOTIFICATION_LIST_LIMIT, ge=1, le=200),
        db: Session = Depends(get_db),
        me: User = Depends(current_user),
):
    rows, unread = notifications.list_inbox(db,
                                            me.id,
                                            unread_only=unread_only,
                                            limit=limit)
    return NotificationListOut(
        notifications=[NotificationOut.model_validate(n) for n in rows],
        unread_count=unread,
    )


@router.patch("", dependencies=[Depends(rate_limit)])
def mark_notifications(
        payload: NotificationMarkIn,
        db: Session = Depends(get_db),
        me: User = Depends(current_user),
):
    if payload.mark_all_as_read:
        count = notifications.mark_all_read(db, me.id)
        return {"message": "All notifications marked as read", "updated": count}

    n = notifications.mark_read(db, me.id, payload.notification_id)
    return NotificationOut.model_validate(n)
