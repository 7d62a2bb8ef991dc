# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import Any

import sqlalchemy as sa
from sqlmodel import Field

from app.models.base import TimestampMixin, UUIDBase
from app.models.enums import FeedbackPriority


class Feedback(UUIDBase, TimestampMixin, table=True):
    """A bug report or suggestion, with a snapshot of who sent it."""

    __tablename__ = "feedback"

    user_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    user_name: str = Field(max_length=255)
    user_email: str = Field(max_length=255)
    user_role: str = Field(max_length=20)
    company_id: uuid.UUID | None = None
    type: str = Field(max_length=20)
    title: str = Field(max_length=255)
    description: str = Field(max_length=5000)
    priority: str = Field(default=FeedbackPriority.MEDIUM, max_length=20)
    device: str | None = Field(default=None, max_length=500)
    source: str = Field(default="web", max_length=20)
    metadata_json: dict[str, Any] | None = Field(default=None, sa_type=sa.JSON)
