"""Notification API schemas."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class NotificationKind(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    SYSTEM = "system"


class Notification(BaseModel):
    id: int
    kind: NotificationKind
    title: str
    message: str
    job_id: str | None = None
    is_read: bool
    created_at: datetime


class NotificationFeed(BaseModel):
    notifications: list[Notification]
    unread_count: int
