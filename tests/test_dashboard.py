from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING

from app.models import Payment
from app.services.balance import current_month_period

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

    from app.models import Company, TimeEntry, User


async def test_personal_dashboard_splits_current_and_last_month(
    async_client: AsyncClient,
    employee: User,
    make_time_entry: Callable[..., Awaitable[TimeEntry]],
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    today = dt.date.today()
    first_of_month = today.replace(day=1)
    await make_time_entry(employee, today, "08:00", "12:00", approved=True)
    await make_time_entry(employee, today, "13:00", "15:00")
    await make_time_entry(employee, first_of_month - dt.timedelta(days=1), approved=True)

    response = await async_client.get("/api/dashboard", headers=auth_headers(employee))
    assert response.status_code == 200
    data = response.json()
    assert data["user"]["company_name"] == "Acme Serviços"

    current = data["current_month"]
    assert current["period_start"] == first_of_month.isoformat()
    assert current["total_hours"] == 6.0
    assert current["approved_hours"] == 4.0
    assert current["pending_hours"] == 2.0
    assert current["pending_entries"] == 1
    assert current["estimated_value"] == 80.0

    assert data["last_month"]["approved_hours"] == 4.0
    assert data["last_month"]["period_end"] == (first_of_month - dt.timedelta(days=1)).isoformat()


async def test_personal_dashboard_lists_latest_three_payments(
    async_client: AsyncClient,
    db_session: AsyncSession,
    employee: User,
    manager: User,
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    start, end = current_month_period()
    for day in range(1, 5):
        db_session.add(
            Payment(
                user_id=employee.id,
                creator_id=manager.id,
                amount=float(day * 10),
                date=dt.date(2025, 1, day),
                period_start=start,
                period_end=end,
            )
        )
    await db_session.commit()

    data = (await async_client.get("/api/dashboard", headers=auth_headers(employee))).json()
    assert [p["amount"] for p in data["recent_payments"]] == [40.0, 30.0, 20.0]


async def test_company_summary_counts(
    async_client: AsyncClient,
    admin: User,
    employee: User,
    other_company: Company,
    make_user: Callable[..., Awaitable[User]],
    make_time_entry: Callable[..., Awaitable[TimeEntry]],
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    outsider = await make_user(company=other_company)
    await make_time_entry(employee, start="08:00", end="09:00")
    await make_time_entry(employee, start="09:00", end="10:00", approved=True)
    await make_time_entry(outsider)

    response = await async_client.get("/api/dashboard/summary", headers=auth_headers(admin))
    assert response.status_code == 200
    data = response.json()
    assert data["company_name"] == "Acme Serviços"
    assert data["pending_approval_count"] == 1
    assert data["total_user_count"] == 3
    assert data["unread_notification_count"] == 0


async def test_company_summary_requires_admin_or_manager_with_company(
    async_client: AsyncClient,
    employee: User,
    developer: User,
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    for user in (employee, developer):
        response = await async_client.get("/api/dashboard/summary", headers=auth_headers(user))
        assert response.status_code == 403
