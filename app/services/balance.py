# ruff: noqa: TC003
"""Balance reconciliation.

A user's balance is what their approved hours are worth minus what they
have been paid. Approved entries are split into paid and unpaid by looking
them up in the payment link table; an entry can only ever be linked once,
so nothing is counted twice.
"""

from __future__ import annotations

import calendar
import datetime as dt
import uuid
from collections.abc import Collection, Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from app.models.enums import PaymentStatus
from app.models.payment import Payment, PaymentTimeEntry
from app.models.time_entry import TimeEntry
from app.schemas.balance import BalancePaymentItem, BalanceResponse, UnpaidTimeEntryItem
from app.services.policy import Action, ensure_allowed
from app.services.user import get_user_or_404, user_resource

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from app.schemas.auth import Principal

DEFAULT_COUNTED_STATUSES: frozenset[PaymentStatus] = frozenset({PaymentStatus.COMPLETED})


@dataclass(frozen=True)
class Reconciliation:
    """Approved entries partitioned by whether a counted payment covers them."""

    paid: tuple[TimeEntry, ...]
    unpaid: tuple[TimeEntry, ...]

    @property
    def paid_hours(self) -> float:
        return round(sum(e.total_hours for e in self.paid), 2)

    @property
    def unpaid_hours(self) -> float:
        return round(sum(e.total_hours for e in self.unpaid), 2)

    @property
    def total_hours(self) -> float:
        return round(self.paid_hours + self.unpaid_hours, 2)


def reconcile(approved_entries: Iterable[TimeEntry], paid_entry_ids: Collection[uuid.UUID]) -> Reconciliation:
    """Partition approved entries into paid and unpaid. Pure and deterministic."""
    paid: list[TimeEntry] = []
    unpaid: list[TimeEntry] = []
    for entry in approved_entries:
        (paid if entry.id in paid_entry_ids else unpaid).append(entry)
    return Reconciliation(paid=tuple(paid), unpaid=tuple(unpaid))


def current_month_period(today: dt.date | None = None) -> tuple[dt.date, dt.date]:
    """First and last day of the month containing ``today``."""
    today = today or dt.date.today()
    last_day = calendar.monthrange(today.year, today.month)[1]
    return today.replace(day=1), today.replace(day=last_day)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


async def _approved_entries(
    session: AsyncSession,
    user_id: uuid.UUID,
    start_date: dt.date | None,
    end_date: dt.date | None,
) -> Sequence[TimeEntry]:
    query = select(TimeEntry).where(col(TimeEntry.user_id) == user_id, col(TimeEntry.approved).is_(True))
    if start_date is not None:
        query = query.where(col(TimeEntry.date) >= start_date)
    if end_date is not None:
        query = query.where(col(TimeEntry.date) <= end_date)
    result = await session.execute(query.order_by(col(TimeEntry.date), col(TimeEntry.start_time)))
    return result.scalars().all()


async def _counted_payments(
    session: AsyncSession,
    user_id: uuid.UUID,
    statuses: Collection[PaymentStatus],
    start_date: dt.date | None,
    end_date: dt.date | None,
) -> Sequence[Payment]:
    query = select(Payment).where(
        col(Payment.user_id) == user_id,
        col(Payment.status).in_([s.value for s in statuses]),
    )
    if start_date is not None:
        query = query.where(col(Payment.date) >= start_date)
    if end_date is not None:
        query = query.where(col(Payment.date) <= end_date)
    result = await session.execute(query.order_by(col(Payment.date).desc()))
    return result.scalars().all()


async def _paid_entry_ids(session: AsyncSession, payment_ids: Collection[uuid.UUID]) -> set[uuid.UUID]:
    """Entry ids linked to the given payments."""
    if not payment_ids:
        return set()
    result = await session.execute(
        select(PaymentTimeEntry.time_entry_id).where(col(PaymentTimeEntry.payment_id).in_(list(payment_ids)))
    )
    return set(result.scalars().all())


async def _entry_counts(session: AsyncSession, payment_ids: list[uuid.UUID]) -> dict[uuid.UUID, int]:
    if not payment_ids:
        return {}
    result = await session.execute(
        select(PaymentTimeEntry.payment_id, func.count())
        .where(col(PaymentTimeEntry.payment_id).in_(payment_ids))
        .group_by(col(PaymentTimeEntry.payment_id))
    )
    return {payment_id: count for payment_id, count in result.all()}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def compute_balance(
    session: AsyncSession,
    user_id: uuid.UUID,
    start_date: dt.date | None = None,
    end_date: dt.date | None = None,
    statuses: Collection[PaymentStatus] = DEFAULT_COUNTED_STATUSES,
) -> BalanceResponse:
    """Compute a user's balance, optionally bounded by entry/payment date.

    1. Approved entries in range.
    2. Payments in a counted status and in range.
    3. Partition entries into paid and unpaid by the entries linked to those
       same payments.
    4. due = approved hours x hourly rate; paid = sum of those payments.

    Read-only: calling it twice without writes in between yields the same result.
    """
    user = await get_user_or_404(session, user_id)
    hourly_rate = user.hourly_rate or 0.0

    entries = await _approved_entries(session, user_id, start_date, end_date)
    payments = await _counted_payments(session, user_id, statuses, start_date, end_date)
    payment_ids = [p.id for p in payments]

    reconciliation = reconcile(entries, await _paid_entry_ids(session, payment_ids))
    counts = await _entry_counts(session, payment_ids)

    total_amount_due = round(reconciliation.total_hours * hourly_rate, 2)
    total_paid = round(sum(p.amount for p in payments), 2)

    return BalanceResponse(
        user_id=user.id,
        user_name=user.name,
        user_email=user.email,
        hourly_rate=hourly_rate,
        period_start=start_date,
        period_end=end_date,
        total_approved_hours=reconciliation.total_hours,
        total_amount_due=total_amount_due,
        total_paid=total_paid,
        paid_hours=reconciliation.paid_hours,
        unpaid_hours=reconciliation.unpaid_hours,
        balance=round(total_amount_due - total_paid, 2),
        payments=[
            BalancePaymentItem(
                id=p.id,
                amount=p.amount,
                date=p.date,
                status=PaymentStatus(p.status),
                reference=p.reference,
                entry_count=counts.get(p.id, 0),
            )
            for p in payments
        ],
        unpaid_time_entries=[
            UnpaidTimeEntryItem(
                id=e.id,
                date=e.date,
                start_time=e.start_time,
                end_time=e.end_time,
                total_hours=e.total_hours,
                project=e.project,
                estimated_amount=round(e.total_hours * hourly_rate, 2),
            )
            for e in reconciliation.unpaid
        ],
    )


async def get_user_balance(
    session: AsyncSession,
    principal: Principal,
    user_id: uuid.UUID,
    start_date: dt.date | None = None,
    end_date: dt.date | None = None,
    statuses: Collection[PaymentStatus] = DEFAULT_COUNTED_STATUSES,
) -> BalanceResponse:
    """Balance of ``user_id`` as seen by ``principal``."""
    user = await get_user_or_404(session, user_id)
    ensure_allowed(principal, Action.READ, user_resource(user))
    return await compute_balance(session, user_id, start_date, end_date, statuses)
