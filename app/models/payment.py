# ruff: noqa: TC003
from __future__ import annotations

import datetime as dt
import uuid

import sqlalchemy as sa
from sqlmodel import Field

from app.models.base import TimestampMixin, UUIDBase
from app.models.enums import PaymentMethod, PaymentStatus


class Payment(UUIDBase, TimestampMixin, table=True):
    """A payout to one recipient covering a set of approved time entries."""

    __tablename__ = "payment"
    __table_args__ = (sa.Index("ix_payment_user_status", "user_id", "status"),)

    user_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("app_user.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    creator_id: uuid.UUID = Field(foreign_key="app_user.id")
    amount: float
    date: dt.date = Field(sa_type=sa.Date)
    period_start: dt.date = Field(sa_type=sa.Date)
    period_end: dt.date = Field(sa_type=sa.Date)
    description: str | None = Field(default=None, max_length=1000)
    reference: str | None = Field(default=None, max_length=255)
    payment_method: str = Field(default=PaymentMethod.BANK_TRANSFER, max_length=50)
    status: str = Field(
        default=PaymentStatus.PENDING, max_length=50, sa_column_kwargs={"server_default": "pending"}
    )
    receipt_url: str | None = Field(default=None, max_length=1000)
    confirmed_at: dt.datetime | None = Field(
        default=None,
        sa_type=sa.DateTime(timezone=True),  # ty: ignore[invalid-argument-type]
    )


class PaymentTimeEntry(UUIDBase, table=True):
    """Links a time entry to the payment that covered it.

    The unique constraint on ``time_entry_id`` guarantees an entry is paid
    at most once, even under concurrent payment creation.
    """

    __tablename__ = "payment_time_entry"
    __table_args__ = (sa.UniqueConstraint("time_entry_id", name="uq_payment_time_entry_entry"),)

    payment_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("payment.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    time_entry_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("time_entry.id", ondelete="RESTRICT"), nullable=False),
    )
    amount: float
