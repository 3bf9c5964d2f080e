# FILE: orderdesk/schemas/audit.py
import json
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from orderdesk.schemas.user import UserMiniOut


class AuditLogOut(BaseModel):
    id: int
    user_id: Optional[int]
    action: str
    entity_type: str
    entity_id: str
    changes: Optional[Any] = None
    description: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime

    user: Optional[UserMiniOut] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("changes", mode="before")
    @classmethod
    def _parse_changes(cls, v):
        # stored as JSON text
        if isinstance(v, str):
            try:
                return json.loads(v)
            except ValueError:
                return v
        return v
