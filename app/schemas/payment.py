# ruff: noqa: TC001, TC003
from __future__ import annotations

import datetime as dt
import uuid
from typing import Self

from pydantic import BaseModel, Field, model_validator

from app.models.enums import PaymentMethod, PaymentStatus

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreatePaymentPayload(BaseModel):
    """Request body for paying a recipient for a set of approved entries."""

    user_id: uuid.UUID
    amount: float = Field(gt=0)
    date: dt.date
    period_start: dt.date
    period_end: dt.date
    payment_method: PaymentMethod = PaymentMethod.BANK_TRANSFER
    status: PaymentStatus = PaymentStatus.PENDING
    description: str | None = Field(default=None, max_length=1000)
    reference: str | None = Field(default=None, max_length=255)
    time_entry_ids: list[uuid.UUID] = Field(min_length=1)

    @model_validator(mode="after")
    def _validate_period(self) -> Self:
        if self.period_end < self.period_start:
            msg = "O fim do período deve ser igual ou posterior ao início"
            raise ValueError(msg)
        return self


class UpdatePaymentPayload(BaseModel):
    """Partial update. Recipients may only move status to ``completed``."""

    status: PaymentStatus | None = None
    description: str | None = Field(default=None, max_length=1000)
    reference: str | None = Field(default=None, max_length=255)
    payment_method: PaymentMethod | None = None
    receipt_url: str | None = Field(default=None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class PaymentTimeEntryResponse(BaseModel):
    time_entry_id: uuid.UUID
    amount: float


class PaymentResponse(BaseModel):
    """Response schema for a single payment."""

    id: uuid.UUID
    user_id: uuid.UUID
    creator_id: uuid.UUID
    amount: float
    date: dt.date
    period_start: dt.date
    period_end: dt.date
    description: str | None
    reference: str | None
    payment_method: str
    status: PaymentStatus
    receipt_url: str | None
    confirmed_at: dt.datetime | None
    time_entries: list[PaymentTimeEntryResponse] = []
    created_at: dt.datetime


class PaymentListResponse(BaseModel):
    items: list[PaymentResponse]
    total: int
