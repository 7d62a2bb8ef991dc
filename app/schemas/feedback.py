# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from app.models.enums import FeedbackPriority, FeedbackType


class SubmitFeedbackPayload(BaseModel):
    """Request body for a bug report, feature request or suggestion."""

    type: FeedbackType
    title: str = Field(min_length=3, max_length=255)
    description: str = Field(min_length=10, max_length=5000)
    priority: FeedbackPriority = FeedbackPriority.MEDIUM
    metadata: dict[str, Any] | None = None


class FeedbackResponse(BaseModel):
    id: uuid.UUID
    type: FeedbackType
    title: str
    description: str
    priority: FeedbackPriority
    source: str
    device: str | None
    metadata: dict[str, Any] | None
    created_at: datetime


class FeedbackListResponse(BaseModel):
    items: list[FeedbackResponse]
    total: int
