# ruff: noqa: TC001, TC003
from __future__ import annotations

import datetime as dt
import uuid

from pydantic import BaseModel

from app.models.enums import PaymentStatus, Role


class CompanySummaryResponse(BaseModel):
    """Headline numbers for an admin or manager landing page."""

    company_id: uuid.UUID
    company_name: str
    pending_approval_count: int
    total_user_count: int
    unread_notification_count: int


class MonthStats(BaseModel):
    period_start: dt.date
    period_end: dt.date
    total_hours: float
    approved_hours: float
    rejected_hours: float
    pending_hours: float
    pending_entries: int
    estimated_value: float


class DashboardUser(BaseModel):
    id: uuid.UUID
    name: str
    email: str
    role: Role
    hourly_rate: float | None
    company_id: uuid.UUID | None
    company_name: str | None


class RecentPayment(BaseModel):
    id: uuid.UUID
    amount: float
    date: dt.date
    status: PaymentStatus


class PersonalDashboardResponse(BaseModel):
    """The signed-in user's own month at a glance."""

    user: DashboardUser
    unread_notification_count: int
    current_month: MonthStats
    last_month: MonthStats
    recent_payments: list[RecentPayment]
