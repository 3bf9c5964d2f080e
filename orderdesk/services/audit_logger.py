# FILE: orderdesk/services/audit_logger.py
import json
import logging
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from orderdesk.models.audit import AuditLog

logger = logging.getLogger(__name__)


def instance_to_audit_dict(obj: Any) -> Dict[str, Any]:
    """
    Column snapshot of a SQLAlchemy instance, JSON-safe.
    """
    if obj is None:
        return {}
    data: Dict[str, Any] = {}
    for col in obj.__table__.columns:  # type: ignore[attr-defined]
        val = getattr(obj, col.name)
        if isinstance(val, (date, datetime)):
            val = val.isoformat()
        elif isinstance(val, Decimal):
            val = str(val)
        elif isinstance(val, Enum):
            val = val.value
        data[col.name] = val
    return data


def log_audit(
    db: Session,
    *,
    user_id: Optional[int],
    action: str,  # CREATE | UPDATE | DELETE | ASSIGN | LOGIN
    entity_type: str,
    entity_id: Any,
    changes: Optional[Any] = None,
    description: Optional[str] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
) -> Optional[AuditLog]:
    """
    Persist one audit event. Best-effort: any failure is rolled back,
    logged and swallowed so the calling operation is never affected.
    """
    try:
        log = AuditLog(
            user_id=user_id,
            action=action.value if isinstance(action, Enum) else action,
            entity_type=entity_type,
            entity_id=str(entity_id),
            changes=(json.dumps(jsonable_encoder(changes))
                     if changes is not None else None),
            description=(description or "")[:500] or None,
            ip_address=ip_address,
            user_agent=(user_agent or "")[:255] or None,
        )
        db.add(log)
        db.commit()
        return log
    except Exception:
        db.rollback()
        logger.exception("Failed to write audit log (%s %s #%s)", action,
                         entity_type, entity_id)
        return None
