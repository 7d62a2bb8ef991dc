from __future__ import annotations

import datetime as dt
import uuid
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import select
from sqlmodel import col

from app.models import Notification, TimeEntry
from app.models.enums import Role
from app.services.payment import allocate_amounts

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

    from app.models import Company, User

URL = "/api/payments"


def _payment_body(user: User, entries: list[TimeEntry], amount: float, **extra: object) -> dict[str, object]:
    return {
        "user_id": str(user.id),
        "amount": amount,
        "date": "2025-03-31",
        "period_start": "2025-03-01",
        "period_end": "2025-03-31",
        "payment_method": "pix",
        "time_entry_ids": [str(e.id) for e in entries],
        **extra,
    }


def _entry(hours: float) -> TimeEntry:
    return TimeEntry(
        id=uuid.uuid4(),
        user_id=uuid.uuid4(),
        date=dt.date(2025, 3, 10),
        start_time=dt.time(8, 0),
        end_time=dt.time(9, 0),
        total_hours=hours,
    )


# ---------------------------------------------------------------------------
# Allocation
# ---------------------------------------------------------------------------


def test_allocate_amounts_is_proportional_to_hours() -> None:
    a, b = _entry(4.0), _entry(2.0)
    shares = allocate_amounts([a, b], 120.0)
    assert shares == {a.id: 80.0, b.id: 40.0}


def test_allocate_amounts_sums_to_total_despite_rounding() -> None:
    entries = [_entry(1.0), _entry(1.0), _entry(1.0)]
    shares = allocate_amounts(entries, 100.0)
    assert list(shares.values()) == [33.33, 33.33, 33.34]
    assert sum(shares.values()) == pytest.approx(100.0)


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------


async def test_create_payment_links_entries(
    async_client: AsyncClient,
    db_session: AsyncSession,
    employee: User,
    manager: User,
    make_time_entry: Callable[..., Awaitable[TimeEntry]],
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    first = await make_time_entry(employee, start="08:00", end="12:00", approved=True)
    second = await make_time_entry(employee, start="13:00", end="15:00", approved=True)

    response = await async_client.post(
        URL, json=_payment_body(employee, [first, second], 120.0), headers=auth_headers(manager)
    )
    assert response.status_code == 201
    data = response.json()
    assert data["user_id"] == str(employee.id)
    assert data["creator_id"] == str(manager.id)
    assert data["status"] == "pending"
    assert data["payment_method"] == "pix"
    allocations = {item["time_entry_id"]: item["amount"] for item in data["time_entries"]}
    assert allocations == {str(first.id): 80.0, str(second.id): 40.0}

    result = await db_session.execute(select(Notification).where(col(Notification.user_id) == employee.id))
    assert [n.title for n in result.scalars().all()] == ["Novo pagamento registrado"]


async def test_entry_cannot_be_paid_twice(
    async_client: AsyncClient,
    employee: User,
    manager: User,
    make_time_entry: Callable[..., Awaitable[TimeEntry]],
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    entry = await make_time_entry(employee, approved=True)
    headers = auth_headers(manager)
    first = await async_client.post(URL, json=_payment_body(employee, [entry], 80.0), headers=headers)
    assert first.status_code == 201

    response = await async_client.post(URL, json=_payment_body(employee, [entry], 80.0), headers=headers)
    assert response.status_code == 409
    body = response.json()
    assert body["error"] == "Conflict"
    assert body["details"]["time_entry_ids"] == [str(entry.id)]


async def test_pending_entry_cannot_be_paid(
    async_client: AsyncClient,
    employee: User,
    manager: User,
    make_time_entry: Callable[..., Awaitable[TimeEntry]],
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    entry = await make_time_entry(employee)
    response = await async_client.post(URL, json=_payment_body(employee, [entry], 80.0), headers=auth_headers(manager))
    assert response.status_code == 400
    assert response.json()["error"] == "InvalidState"


async def test_entries_of_another_user_cannot_be_paid(
    async_client: AsyncClient,
    employee: User,
    manager: User,
    company: Company,
    make_user: Callable[..., Awaitable[User]],
    make_time_entry: Callable[..., Awaitable[TimeEntry]],
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    colleague = await make_user(Role.EMPLOYEE, company)
    entry = await make_time_entry(colleague, approved=True)
    response = await async_client.post(URL, json=_payment_body(employee, [entry], 80.0), headers=auth_headers(manager))
    assert response.status_code == 400
    assert response.json()["error"] == "InvalidState"


async def test_unknown_entry_is_404(
    async_client: AsyncClient,
    employee: User,
    manager: User,
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    body = _payment_body(employee, [], 80.0, time_entry_ids=[str(uuid.uuid4())])
    response = await async_client.post(URL, json=body, headers=auth_headers(manager))
    assert response.status_code == 404


async def test_payment_requires_entries_and_positive_amount(
    async_client: AsyncClient,
    employee: User,
    manager: User,
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    response = await async_client.post(URL, json=_payment_body(employee, [], 0), headers=auth_headers(manager))
    assert response.status_code == 400
    details = response.json()["details"]
    assert "amount" in details
    assert "time_entry_ids" in details


async def test_employee_cannot_create_payment(
    async_client: AsyncClient,
    employee: User,
    make_time_entry: Callable[..., Awaitable[TimeEntry]],
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    entry = await make_time_entry(employee, approved=True)
    response = await async_client.post(URL, json=_payment_body(employee, [entry], 80.0), headers=auth_headers(employee))
    assert response.status_code == 403


async def test_manager_cannot_pay_other_company(
    async_client: AsyncClient,
    manager: User,
    other_company: Company,
    make_user: Callable[..., Awaitable[User]],
    make_time_entry: Callable[..., Awaitable[TimeEntry]],
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    outsider = await make_user(Role.EMPLOYEE, other_company)
    entry = await make_time_entry(outsider, approved=True)
    response = await async_client.post(URL, json=_payment_body(outsider, [entry], 80.0), headers=auth_headers(manager))
    assert response.status_code == 403


async def test_paid_entry_is_frozen(
    async_client: AsyncClient,
    db_session: AsyncSession,
    employee: User,
    manager: User,
    make_time_entry: Callable[..., Awaitable[TimeEntry]],
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    entry = await make_time_entry(employee, approved=True)
    created = await async_client.post(URL, json=_payment_body(employee, [entry], 80.0), headers=auth_headers(manager))
    assert created.status_code == 201

    # A paid entry stays frozen even if its approval flag is cleared out of band.
    entry.approved = None
    await db_session.commit()
    response = await async_client.delete(f"/api/time-entries/{entry.id}", headers=auth_headers(employee))
    assert response.status_code == 400
    assert "pagamento" in response.json()["message"]


# ---------------------------------------------------------------------------
# Read, confirm, update, delete
# ---------------------------------------------------------------------------


async def test_employee_sees_only_own_payments(
    async_client: AsyncClient,
    employee: User,
    manager: User,
    company: Company,
    make_user: Callable[..., Awaitable[User]],
    make_time_entry: Callable[..., Awaitable[TimeEntry]],
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    colleague = await make_user(Role.EMPLOYEE, company)
    own = await make_time_entry(employee, approved=True)
    theirs = await make_time_entry(colleague, approved=True)
    headers = auth_headers(manager)
    await async_client.post(URL, json=_payment_body(employee, [own], 80.0), headers=headers)
    await async_client.post(URL, json=_payment_body(colleague, [theirs], 80.0), headers=headers)

    response = await async_client.get(URL, headers=auth_headers(employee))
    data = response.json()
    assert data["total"] == 1
    assert data["items"][0]["user_id"] == str(employee.id)

    company_wide = await async_client.get(URL, headers=headers)
    assert company_wide.json()["total"] == 2


async def test_recipient_confirms_payment(
    async_client: AsyncClient,
    db_session: AsyncSession,
    employee: User,
    manager: User,
    make_time_entry: Callable[..., Awaitable[TimeEntry]],
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    entry = await make_time_entry(employee, approved=True)
    created = await async_client.post(URL, json=_payment_body(employee, [entry], 80.0), headers=auth_headers(manager))
    payment_id = created.json()["id"]

    response = await async_client.post(f"{URL}/{payment_id}/confirm", headers=auth_headers(employee))
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "completed"
    assert data["confirmed_at"] is not None

    result = await db_session.execute(select(Notification).where(col(Notification.user_id) == manager.id))
    assert "Pagamento confirmado" in [n.title for n in result.scalars().all()]

    again = await async_client.post(f"{URL}/{payment_id}/confirm", headers=auth_headers(employee))
    assert again.status_code == 400
    assert again.json()["error"] == "InvalidState"


async def test_only_recipient_can_confirm(
    async_client: AsyncClient,
    employee: User,
    manager: User,
    make_time_entry: Callable[..., Awaitable[TimeEntry]],
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    entry = await make_time_entry(employee, approved=True)
    created = await async_client.post(URL, json=_payment_body(employee, [entry], 80.0), headers=auth_headers(manager))
    response = await async_client.post(f"{URL}/{created.json()['id']}/confirm", headers=auth_headers(manager))
    assert response.status_code == 403


async def test_employee_update_is_limited_to_confirmation(
    async_client: AsyncClient,
    employee: User,
    manager: User,
    make_time_entry: Callable[..., Awaitable[TimeEntry]],
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    entry = await make_time_entry(employee, approved=True)
    created = await async_client.post(URL, json=_payment_body(employee, [entry], 80.0), headers=auth_headers(manager))
    payment_url = f"{URL}/{created.json()['id']}"
    headers = auth_headers(employee)

    forbidden = await async_client.put(payment_url, json={"reference": "minha"}, headers=headers)
    assert forbidden.status_code == 403

    confirmed = await async_client.put(payment_url, json={"status": "completed"}, headers=headers)
    assert confirmed.status_code == 200
    assert confirmed.json()["status"] == "completed"


async def test_manager_updates_payment_fields(
    async_client: AsyncClient,
    employee: User,
    manager: User,
    make_time_entry: Callable[..., Awaitable[TimeEntry]],
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    entry = await make_time_entry(employee, approved=True)
    headers = auth_headers(manager)
    created = await async_client.post(URL, json=_payment_body(employee, [entry], 80.0), headers=headers)

    response = await async_client.put(
        f"{URL}/{created.json()['id']}",
        json={"status": "awaiting_confirmation", "reference": "TX-42"},
        headers=headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "awaiting_confirmation"
    assert data["reference"] == "TX-42"
    assert len(data["time_entries"]) == 1


async def test_admin_deletes_payment_and_releases_entries(
    async_client: AsyncClient,
    employee: User,
    admin: User,
    make_time_entry: Callable[..., Awaitable[TimeEntry]],
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    entry = await make_time_entry(employee, approved=True)
    headers = auth_headers(admin)
    created = await async_client.post(URL, json=_payment_body(employee, [entry], 80.0), headers=headers)

    deleted = await async_client.delete(f"{URL}/{created.json()['id']}", headers=headers)
    assert deleted.status_code == 204

    again = await async_client.post(URL, json=_payment_body(employee, [entry], 80.0), headers=headers)
    assert again.status_code == 201


async def test_manager_cannot_delete_payment(
    async_client: AsyncClient,
    employee: User,
    manager: User,
    make_time_entry: Callable[..., Awaitable[TimeEntry]],
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    entry = await make_time_entry(employee, approved=True)
    headers = auth_headers(manager)
    created = await async_client.post(URL, json=_payment_body(employee, [entry], 80.0), headers=headers)
    response = await async_client.delete(f"{URL}/{created.json()['id']}", headers=headers)
    assert response.status_code == 403
