# ruff: noqa: TC001, TC003
from __future__ import annotations

import datetime as dt
import uuid

from pydantic import BaseModel

from app.models.enums import PaymentStatus


class BalancePaymentItem(BaseModel):
    id: uuid.UUID
    amount: float
    date: dt.date
    status: PaymentStatus
    reference: str | None
    entry_count: int


class UnpaidTimeEntryItem(BaseModel):
    id: uuid.UUID
    date: dt.date
    start_time: dt.time
    end_time: dt.time
    total_hours: float
    project: str | None
    estimated_amount: float


class BalanceResponse(BaseModel):
    """What a user has earned from approved hours versus what was paid."""

    user_id: uuid.UUID
    user_name: str
    user_email: str
    hourly_rate: float
    currency: str = "BRL"
    period_start: dt.date | None
    period_end: dt.date | None
    total_approved_hours: float
    total_amount_due: float
    total_paid: float
    paid_hours: float
    unpaid_hours: float
    balance: float
    payments: list[BalancePaymentItem]
    unpaid_time_entries: list[UnpaidTimeEntryItem]
