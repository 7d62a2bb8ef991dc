# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from app.models.base import TimestampMixin, UUIDBase
from app.models.enums import NotificationType


class Notification(UUIDBase, TimestampMixin, table=True):
    """An advisory message owned by its recipient."""

    __tablename__ = "notification"
    __table_args__ = (sa.Index("ix_notification_user_read", "user_id", "read"),)

    user_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    title: str = Field(max_length=255)
    message: str = Field(max_length=2000)
    type: str = Field(default=NotificationType.INFO, max_length=20)
    read: bool = Field(default=False, sa_column_kwargs={"server_default": sa.false()})
    related_id: str | None = Field(default=None, max_length=64, index=True)
    related_type: str | None = Field(default=None, max_length=50)
