# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from app.models.enums import NotificationType

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateNotificationPayload(BaseModel):
    """Manual notification sent by an admin, manager or developer."""

    user_id: uuid.UUID
    title: str = Field(min_length=3, max_length=255)
    message: str = Field(min_length=5, max_length=2000)
    type: NotificationType = NotificationType.INFO
    related_id: str | None = Field(default=None, max_length=64)
    related_type: str | None = Field(default=None, max_length=50)


class SetReadPayload(BaseModel):
    read: bool


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class NotificationResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    message: str
    type: NotificationType
    read: bool
    related_id: str | None
    related_type: str | None
    created_at: datetime


class NotificationListResponse(BaseModel):
    items: list[NotificationResponse]
    unread_count: int


class MarkAllReadResponse(BaseModel):
    updated: int
