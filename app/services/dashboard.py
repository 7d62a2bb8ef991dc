from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from app.exceptions import Forbidden
from app.models.company import Company
from app.models.enums import PaymentStatus, Role
from app.models.payment import Payment
from app.models.time_entry import TimeEntry
from app.models.user import User
from app.schemas.dashboard import (
    CompanySummaryResponse,
    DashboardUser,
    MonthStats,
    PersonalDashboardResponse,
    RecentPayment,
)
from app.services.balance import current_month_period
from app.services.company import company_resource, get_company_or_404
from app.services.notification import count_unread
from app.services.policy import Action, ensure_allowed
from app.services.user import get_user_or_404

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from app.schemas.auth import Principal


async def _month_stats(
    session: AsyncSession,
    user: User,
    period: tuple[dt.date, dt.date],
) -> MonthStats:
    start, end = period
    result = await session.execute(
        select(TimeEntry).where(
            col(TimeEntry.user_id) == user.id,
            col(TimeEntry.date) >= start,
            col(TimeEntry.date) <= end,
        )
    )
    entries = result.scalars().all()
    approved = sum(e.total_hours for e in entries if e.approved)
    rejected = sum(e.total_hours for e in entries if e.rejected)
    pending = [e for e in entries if not e.approved and not e.rejected]
    return MonthStats(
        period_start=start,
        period_end=end,
        total_hours=round(sum(e.total_hours for e in entries), 2),
        approved_hours=round(approved, 2),
        rejected_hours=round(rejected, 2),
        pending_hours=round(sum(e.total_hours for e in pending), 2),
        pending_entries=len(pending),
        estimated_value=round(approved * (user.hourly_rate or 0.0), 2),
    )


async def get_company_summary(session: AsyncSession, principal: Principal) -> CompanySummaryResponse:
    """Pending approvals, head count and unread notifications for an admin or manager."""
    if principal.role not in (Role.ADMIN, Role.MANAGER) or principal.company_id is None:
        raise Forbidden("Apenas administradores e gerentes com empresa podem acessar este resumo")
    ensure_allowed(principal, Action.READ, company_resource(principal.company_id))
    company = await get_company_or_404(session, principal.company_id)

    company_users = select(User.id).where(col(User.company_id) == company.id)
    pending = await session.execute(
        select(func.count())
        .select_from(TimeEntry)
        .where(
            col(TimeEntry.user_id).in_(company_users),
            col(TimeEntry.approved).is_not(True),
            col(TimeEntry.rejected).is_not(True),
        )
    )
    users = await session.execute(
        select(func.count()).select_from(User).where(col(User.company_id) == company.id)
    )
    return CompanySummaryResponse(
        company_id=company.id,
        company_name=company.name,
        pending_approval_count=pending.scalar_one(),
        total_user_count=users.scalar_one(),
        unread_notification_count=await count_unread(session, principal.id),
    )


async def get_personal_dashboard(
    session: AsyncSession,
    principal: Principal,
    today: dt.date | None = None,
) -> PersonalDashboardResponse:
    """The caller's current and previous month, unread count and latest payments."""
    user = await get_user_or_404(session, principal.id)
    company = await session.get(Company, user.company_id) if user.company_id else None

    current = current_month_period(today)
    previous = current_month_period(current[0] - dt.timedelta(days=1))

    payments = await session.execute(
        select(Payment).where(col(Payment.user_id) == user.id).order_by(col(Payment.date).desc()).limit(3)
    )
    return PersonalDashboardResponse(
        user=DashboardUser(
            id=user.id,
            name=user.name,
            email=user.email,
            role=Role(user.role),
            hourly_rate=user.hourly_rate,
            company_id=user.company_id,
            company_name=company.name if company else None,
        ),
        unread_notification_count=await count_unread(session, user.id),
        current_month=await _month_stats(session, user, current),
        last_month=await _month_stats(session, user, previous),
        recent_payments=[
            RecentPayment(id=p.id, amount=p.amount, date=p.date, status=PaymentStatus(p.status))
            for p in payments.scalars().all()
        ],
    )
