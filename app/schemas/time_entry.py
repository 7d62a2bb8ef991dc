# ruff: noqa: TC001, TC003
from __future__ import annotations

import datetime as dt
import uuid
from typing import Self

from pydantic import BaseModel, Field, model_validator

from app.models.enums import PaymentStatus, TimeEntryStatus

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateTimeEntryPayload(BaseModel):
    """Request body for logging worked hours. ``total_hours`` is always derived."""

    date: dt.date
    start_time: dt.time
    end_time: dt.time
    observation: str | None = Field(default=None, max_length=1000)
    project: str | None = Field(default=None, max_length=255)

    @model_validator(mode="after")
    def _validate_times(self) -> Self:
        if self.end_time <= self.start_time:
            msg = "O horário de término deve ser posterior ao horário de início"
            raise ValueError(msg)
        return self


class UpdateTimeEntryPayload(BaseModel):
    """Partial update of a pending or rejected entry."""

    date: dt.date | None = None
    start_time: dt.time | None = None
    end_time: dt.time | None = None
    observation: str | None = Field(default=None, max_length=1000)
    project: str | None = Field(default=None, max_length=255)


class DecisionPayload(BaseModel):
    """Approve (``approved=true``) or reject (``approved=false``) an entry."""

    approved: bool
    rejection_reason: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class TimeEntryResponse(BaseModel):
    """Response schema for a single time entry."""

    id: uuid.UUID
    user_id: uuid.UUID
    user_name: str | None = None
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    total_hours: float
    observation: str | None
    project: str | None
    approved: bool | None
    rejected: bool | None
    rejection_reason: str | None
    status: TimeEntryStatus
    created_at: dt.datetime
    updated_at: dt.datetime


class TimeEntryListResponse(BaseModel):
    """Paginated list of time entries."""

    items: list[TimeEntryResponse]
    total: int


class OverlapConflict(BaseModel):
    """An existing entry that collides with the submitted interval."""

    id: uuid.UUID
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    project: str | None
    status: TimeEntryStatus
    overlap_minutes: int
    overlap_period: str


class RejectionHistoryItem(BaseModel):
    id: uuid.UUID
    title: str
    message: str
    created_at: dt.datetime


class RejectionDetailsResponse(BaseModel):
    """Why an entry was rejected, with the rejection notifications sent for it."""

    time_entry: TimeEntryResponse
    rejection_reason: str
    rejected_at: dt.datetime | None
    history: list[RejectionHistoryItem]


class ProjectListResponse(BaseModel):
    projects: list[str]


class LinkedPaymentSummary(BaseModel):
    """The payment that covers an entry, as shown next to it."""

    id: uuid.UUID
    amount: float
    date: dt.date
    reference: str | None
    description: str | None
    status: PaymentStatus


class TimeEntryViewResponse(TimeEntryResponse):
    """A single entry together with the payment that covers it, if any."""

    payment: LinkedPaymentSummary | None = None
