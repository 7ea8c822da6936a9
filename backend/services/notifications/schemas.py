"""Notification API payload schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field

from .constants import MAX_NOTIFICATION_ID_LENGTH

NotificationId = Annotated[
    str,
    Field(min_length=1, max_length=MAX_NOTIFICATION_ID_LENGTH),
]


class DismissNotificationRequest(BaseModel):
    notification_id: NotificationId
    expires_in_seconds: int = Field(default=0, ge=0)


class DismissNotificationResponse(BaseModel):
    notification_id: str
    dismissed_at: datetime
    expires_at: datetime | None
    dismiss_count: int


class DismissedNotificationListResponse(BaseModel):
    notification_ids: list[str]


class QueuedNotificationItem(BaseModel):
    id: str
    area_slug: str
    group_id: str
    priority: int
    is_dismissible: bool


class NotificationQueueResponse(BaseModel):
    status: Literal["pending", "resolved"]
    view_context: str
    group_id: str
    notifications: list[QueuedNotificationItem]
