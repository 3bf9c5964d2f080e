# FILE: orderdesk/services/notifications.py
"""
Per-user inbox messages raised as side effects of lead/order changes.

``notify`` / ``notify_many`` never raise: they run after the business
transaction has committed and a failed insert must not undo it.
"""
from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Any, Iterable, List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from orderdesk.core.config import settings
from orderdesk.models.notification import Notification
from orderdesk.models.user import User, UserRoleType

logger = logging.getLogger(__name__)


def _val(x: Any) -> Any:
    return x.value if isinstance(x, Enum) else x


def notify(
    db: Session,
    *,
    user_id: int,
    type: str,
    title: str,
    message: str,
    entity_type: Optional[str] = None,
    entity_id: Any = None,
) -> Optional[Notification]:
    try:
        n = Notification(
            user_id=user_id,
            type=_val(type),
            title=title,
            message=message,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            read=False,
        )
        db.add(n)
        db.commit()
        return n
    except Exception:
        db.rollback()
        logger.exception("Failed to create notification for user %s", user_id)
        return None


def notify_many(
    db: Session,
    user_ids: Iterable[int],
    *,
    type: str,
    title: str,
    message: str,
    entity_type: Optional[str] = None,
    entity_id: Any = None,
) -> List[Notification]:
    # de-dup, keep order
    ids = list(dict.fromkeys(uid for uid in user_ids if uid is not None))
    if not ids:
        return []
    try:
        rows = [
            Notification(
                user_id=uid,
                type=_val(type),
                title=title,
                message=message,
                entity_type=entity_type,
                entity_id=str(entity_id) if entity_id is not None else None,
                read=False,
            ) for uid in ids
        ]
        db.add_all(rows)
        db.commit()
        return rows
    except Exception:
        db.rollback()
        logger.exception("Failed to create notifications for users %s", ids)
        return []


def active_admin_ids(db: Session) -> List[int]:
    return [
        uid for (uid, ) in db.query(User.id).filter(
            User.role == UserRoleType.ADMIN.value,
            User.is_active.is_(True),
        ).all()
    ]


def notify_admins(db: Session, **kwargs) -> List[Notification]:
    try:
        ids = active_admin_ids(db)
    except Exception:
        db.rollback()
        logger.exception("Failed to resolve admin recipients")
        return []
    return notify_many(db, ids, **kwargs)


# ---------------- inbox ----------------


def list_inbox(db: Session,
               user_id: int,
               *,
               unread_only: bool = False,
               limit: Optional[int] = None) -> Tuple[List[Notification], int]:
    limit = limit or settings.NOTIFICATION_LIST_LIMIT
    q = db.query(Notification).filter(Notification.user_id == user_id)
    if unread_only:
        q = q.filter(Notification.read.is_(False))
    rows = q.order_by(Notification.created_at.desc(),
                      Notification.id.desc()).limit(limit).all()

    unread = (db.query(func.count(Notification.id)).filter(
        Notification.user_id == user_id,
        Notification.read.is_(False)).scalar()) or 0
    return rows, int(unread)


def mark_read(db: Session, user_id: int, notification_id: int) -> Notification:
    n = (db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.user_id == user_id,
    ).first())
    if not n:
        raise HTTPException(status_code=404, detail="Notification not found")
    if not n.read:
        n.read = True
        n.read_at = datetime.utcnow()
        db.commit()
        db.refresh(n)
    return n


def mark_all_read(db: Session, user_id: int) -> int:
    count = (db.query(Notification).filter(
        Notification.user_id == user_id,
        Notification.read.is_(False),
    ).update({
        Notification.read: True,
        Notification.read_at: datetime.utcnow(),
    }, synchronize_session=False))
    db.commit()
    return count
