from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, model_validator


class NotificationOut(BaseModel):
    id: int
    user_id: int
    type: str
    title: str
    message: str
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    read: bool
    read_at: Optional[datetime] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationListOut(BaseModel):
    notifications: List[NotificationOut]
    unread_count: int


class NotificationMarkIn(BaseModel):
    notification_id: Optional[int] = None
    mark_all_as_read: bool = False

    @model_validator(mode="after")
    def _one_target(self):
        if not self.mark_all_as_read and self.notification_id is None:
            raise ValueError("notification_id or mark_all_as_read is required")
        return self
