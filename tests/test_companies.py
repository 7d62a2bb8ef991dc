from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from app.models import Company, Feedback, Notification, Payment, PaymentTimeEntry, TimeEntry, User
from conftest import PASSWORD

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

URL = "/api/companies"


def _company_body(name: str = "Nova Empresa", admin_email: str = "chefe@nova.example") -> dict[str, object]:
    return {
        "name": name,
        "plan": "STANDARD",
        "admin": {"name": "Chefe Nova", "email": admin_email, "password": "chefe123"},
    }


async def test_developer_creates_company_with_admin(
    async_client: AsyncClient,
    developer: User,
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    response = await async_client.post(URL, json=_company_body(), headers=auth_headers(developer))
    assert response.status_code == 201
    data = response.json()
    assert data["name"] == "Nova Empresa"
    assert data["plan"] == "STANDARD"
    assert data["active"] is True
    assert data["user_count"] == 1

    login = await async_client.post("/api/auth/login", json={"email": "chefe@nova.example", "password": "chefe123"})
    assert login.status_code == 200
    assert login.json()["user"]["role"] == "ADMIN"
    assert login.json()["user"]["company_id"] == data["id"]


async def test_create_company_with_taken_admin_email_creates_nothing(
    async_client: AsyncClient,
    db_session: AsyncSession,
    developer: User,
    employee: User,
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    before = (await db_session.execute(select(func.count()).select_from(Company))).scalar_one()
    response = await async_client.post(
        URL, json=_company_body(admin_email=employee.email), headers=auth_headers(developer)
    )
    assert response.status_code == 409
    after = (await db_session.execute(select(func.count()).select_from(Company))).scalar_one()
    assert after == before


async def test_admin_cannot_create_company(
    async_client: AsyncClient,
    admin: User,
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    response = await async_client.post(URL, json=_company_body(), headers=auth_headers(admin))
    assert response.status_code == 403


async def test_list_companies_is_developer_only(
    async_client: AsyncClient,
    developer: User,
    admin: User,
    other_company: Company,
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    response = await async_client.get(URL, headers=auth_headers(developer))
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    counts = {item["name"]: item["user_count"] for item in data["items"]}
    assert counts == {"Acme Serviços": 1, "Outra Empresa": 0}

    assert (await async_client.get(URL, headers=auth_headers(admin))).status_code == 403


async def test_admin_reads_own_company_only(
    async_client: AsyncClient,
    admin: User,
    company: Company,
    other_company: Company,
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    headers = auth_headers(admin)
    own = await async_client.get(f"{URL}/{company.id}", headers=headers)
    assert own.status_code == 200
    assert own.json()["name"] == company.name

    other = await async_client.get(f"{URL}/{other_company.id}", headers=headers)
    assert other.status_code == 403


async def test_admin_of_other_company_cannot_update_regardless_of_payload(
    async_client: AsyncClient,
    admin: User,
    other_company: Company,
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    headers = auth_headers(admin)
    valid = await async_client.put(
        f"{URL}/{other_company.id}", json={"name": "Tomada", "plan": "BASIC", "active": True}, headers=headers
    )
    assert valid.status_code == 403

    invalid = await async_client.put(f"{URL}/{other_company.id}", json={"name": ""}, headers=headers)
    assert invalid.status_code == 403
    assert invalid.json()["error"] == "Forbidden"


async def test_developer_updates_and_toggles_company(
    async_client: AsyncClient,
    developer: User,
    company: Company,
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    headers = auth_headers(developer)
    updated = await async_client.put(
        f"{URL}/{company.id}", json={"name": "Acme Renomeada", "plan": "PREMIUM", "active": True}, headers=headers
    )
    assert updated.status_code == 200
    assert updated.json()["name"] == "Acme Renomeada"
    assert updated.json()["plan"] == "PREMIUM"

    toggled = await async_client.patch(f"{URL}/{company.id}", headers=headers)
    assert toggled.json()["active"] is False
    toggled_back = await async_client.patch(f"{URL}/{company.id}", headers=headers)
    assert toggled_back.json()["active"] is True


async def test_deactivated_company_blocks_login(
    async_client: AsyncClient,
    developer: User,
    employee: User,
    company: Company,
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    await async_client.patch(f"{URL}/{company.id}", headers=auth_headers(developer))
    response = await async_client.post("/api/auth/login", json={"email": employee.email, "password": PASSWORD})
    assert response.status_code == 403


async def test_delete_company_removes_its_users(
    async_client: AsyncClient,
    db_session: AsyncSession,
    developer: User,
    employee: User,
    company: Company,
    make_time_entry: Callable[..., Awaitable[TimeEntry]],
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    await make_time_entry(employee, approved=True)
    response = await async_client.delete(f"{URL}/{company.id}", headers=auth_headers(developer))
    assert response.status_code == 204

    remaining = await db_session.execute(
        select(func.count()).select_from(User).where(col(User.company_id) == company.id)
    )
    assert remaining.scalar_one() == 0
    assert (await async_client.get(f"{URL}/{company.id}", headers=auth_headers(developer))).status_code == 404


async def test_manager_cannot_delete_company(
    async_client: AsyncClient,
    manager: User,
    company: Company,
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    response = await async_client.delete(f"{URL}/{company.id}", headers=auth_headers(manager))
    assert response.status_code == 403


async def test_delete_company_with_payments_leaves_no_orphans(
    async_client: AsyncClient,
    db_session: AsyncSession,
    developer: User,
    manager: User,
    employee: User,
    company: Company,
    other_company: Company,
    make_user: Callable[..., Awaitable[User]],
    make_time_entry: Callable[..., Awaitable[TimeEntry]],
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    outsider = await make_user(company=other_company)
    await make_time_entry(outsider, approved=True)
    entry = await make_time_entry(employee, approved=True)
    payment = await async_client.post(
        "/api/payments",
        json={
            "user_id": str(employee.id),
            "amount": 80.0,
            "date": "2025-03-31",
            "period_start": "2025-03-01",
            "period_end": "2025-03-31",
            "time_entry_ids": [str(entry.id)],
        },
        headers=auth_headers(manager),
    )
    assert payment.status_code == 201
    feedback = {"type": "feature", "title": "Exportar", "description": "Exportar horas em planilha"}
    assert (await async_client.post("/api/feedback", json=feedback, headers=auth_headers(employee))).status_code == 201

    response = await async_client.delete(f"{URL}/{company.id}", headers=auth_headers(developer))
    assert response.status_code == 204

    for model in (Payment, PaymentTimeEntry, Notification, Feedback):
        count = await db_session.execute(select(func.count()).select_from(model))
        assert count.scalar_one() == 0, model.__name__
    entries = await db_session.execute(select(TimeEntry.user_id))
    assert entries.scalars().all() == [outsider.id]
    assert (await async_client.get(f"{URL}/{other_company.id}", headers=auth_headers(developer))).status_code == 200
