# ruff: noqa: TC003
from __future__ import annotations

import datetime as dt
import uuid

import sqlalchemy as sa
from sqlmodel import Field

from app.models.base import TimestampMixin, UUIDBase
from app.models.enums import TimeEntryStatus


class TimeEntry(UUIDBase, TimestampMixin, table=True):
    """Hours worked by a user on one day.

    ``approved`` and ``rejected`` are both null while pending; exactly one
    of them is true once an approver has decided.
    """

    __tablename__ = "time_entry"
    __table_args__ = (sa.Index("ix_time_entry_user_date", "user_id", "date"),)

    user_id: uuid.UUID = Field(
        sa_column=sa.Column(
            sa.Uuid, sa.ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True
        ),
    )
    date: dt.date = Field(sa_type=sa.Date)
    start_time: dt.time = Field(sa_type=sa.Time)
    end_time: dt.time = Field(sa_type=sa.Time)
    total_hours: float
    observation: str | None = Field(default=None, max_length=1000)
    project: str | None = Field(default=None, max_length=255)
    approved: bool | None = None
    rejected: bool | None = None
    rejection_reason: str | None = Field(default=None, max_length=1000)

    @property
    def status(self) -> TimeEntryStatus:
        if self.approved:
            return TimeEntryStatus.APPROVED
        if self.rejected:
            return TimeEntryStatus.REJECTED
        return TimeEntryStatus.PENDING
