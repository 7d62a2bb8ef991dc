from __future__ import annotations

from typing import TYPE_CHECKING

from app.models.enums import Role

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from httpx import AsyncClient

    from app.models import Company, TimeEntry, User

URL = "/api/users"


def _user_body(email: str, role: str = "EMPLOYEE", **extra: object) -> dict[str, object]:
    return {"name": "Pessoa Nova", "email": email, "password": "senha123", "role": role, **extra}


async def test_admin_creates_employee_in_own_company(
    async_client: AsyncClient,
    admin: User,
    company: Company,
    manager: User,
    other_company: Company,
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    body = _user_body(
        "nova@example.com", hourly_rate=35.5, manager_id=str(manager.id), company_id=str(other_company.id)
    )
    response = await async_client.post(URL, json=body, headers=auth_headers(admin))
    assert response.status_code == 201
    data = response.json()
    assert data["company_id"] == str(company.id)
    assert data["hourly_rate"] == 35.5
    assert data["manager_id"] == str(manager.id)
    assert "password_hash" not in data


async def test_admin_cannot_create_admin(
    async_client: AsyncClient,
    admin: User,
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    response = await async_client.post(URL, json=_user_body("x@example.com", "ADMIN"), headers=auth_headers(admin))
    assert response.status_code == 403


async def test_create_user_duplicate_email(
    async_client: AsyncClient,
    admin: User,
    employee: User,
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    response = await async_client.post(URL, json=_user_body(employee.email), headers=auth_headers(admin))
    assert response.status_code == 409


async def test_manager_from_other_company_is_rejected_as_manager(
    async_client: AsyncClient,
    admin: User,
    other_company: Company,
    make_user: Callable[..., Awaitable[User]],
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    outsider = await make_user(Role.MANAGER, other_company)
    body = _user_body("nova@example.com", manager_id=str(outsider.id))
    response = await async_client.post(URL, json=body, headers=auth_headers(admin))
    assert response.status_code == 400
    assert "manager_id" in response.json()["details"]


async def test_creating_manager_drops_hourly_rate(
    async_client: AsyncClient,
    admin: User,
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    body = _user_body("gerente2@example.com", "MANAGER", hourly_rate=50)
    response = await async_client.post(URL, json=body, headers=auth_headers(admin))
    assert response.status_code == 201
    assert response.json()["hourly_rate"] is None


async def test_list_users_is_role_scoped(
    async_client: AsyncClient,
    admin: User,
    manager: User,
    employee: User,
    other_company: Company,
    make_user: Callable[..., Awaitable[User]],
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    await make_user(Role.EMPLOYEE, other_company)

    admin_view = (await async_client.get(URL, headers=auth_headers(admin))).json()
    assert {u["id"] for u in admin_view["items"]} == {str(admin.id), str(manager.id), str(employee.id)}

    manager_view = (await async_client.get(URL, headers=auth_headers(manager))).json()
    assert [u["id"] for u in manager_view["items"]] == [str(employee.id)]

    employee_view = (await async_client.get(URL, headers=auth_headers(employee))).json()
    assert [u["id"] for u in employee_view["items"]] == [str(employee.id)]


async def test_developer_lists_everyone_and_filters_by_company(
    async_client: AsyncClient,
    developer: User,
    employee: User,
    company: Company,
    other_company: Company,
    make_user: Callable[..., Awaitable[User]],
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    await make_user(Role.EMPLOYEE, other_company)
    headers = auth_headers(developer)
    everyone = (await async_client.get(URL, headers=headers)).json()
    assert everyone["total"] == 4

    filtered = await async_client.get(URL, params={"company_id": str(company.id), "role": "EMPLOYEE"}, headers=headers)
    assert [u["id"] for u in filtered.json()["items"]] == [str(employee.id)]


async def test_employee_updates_own_name_but_not_rate(
    async_client: AsyncClient,
    employee: User,
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    headers = auth_headers(employee)
    renamed = await async_client.put(f"{URL}/{employee.id}", json={"name": "Nome Novo"}, headers=headers)
    assert renamed.status_code == 200
    assert renamed.json()["name"] == "Nome Novo"

    raise_rate = await async_client.put(f"{URL}/{employee.id}", json={"hourly_rate": 999}, headers=headers)
    assert raise_rate.status_code == 403


async def test_nobody_changes_own_role(
    async_client: AsyncClient,
    admin: User,
    employee: User,
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    for user in (admin, employee):
        response = await async_client.put(f"{URL}/{user.id}", json={"role": "MANAGER"}, headers=auth_headers(user))
        assert response.status_code == 403


async def test_manager_promotes_employee_but_not_to_admin(
    async_client: AsyncClient,
    manager: User,
    employee: User,
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    headers = auth_headers(manager)
    to_admin = await async_client.put(f"{URL}/{employee.id}", json={"role": "ADMIN"}, headers=headers)
    assert to_admin.status_code == 403

    promoted = await async_client.put(f"{URL}/{employee.id}", json={"role": "MANAGER"}, headers=headers)
    assert promoted.status_code == 200
    data = promoted.json()
    assert data["role"] == "MANAGER"
    assert data["hourly_rate"] is None
    assert data["manager_id"] is None


async def test_manager_cannot_read_admin(
    async_client: AsyncClient,
    manager: User,
    admin: User,
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    response = await async_client.get(f"{URL}/{admin.id}", headers=auth_headers(manager))
    assert response.status_code == 403


async def test_admin_deletes_employee_but_not_self(
    async_client: AsyncClient,
    admin: User,
    company: Company,
    make_user: Callable[..., Awaitable[User]],
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    headers = auth_headers(admin)
    leaving = await make_user(Role.EMPLOYEE, company)
    deleted = await async_client.delete(f"{URL}/{leaving.id}", headers=headers)
    assert deleted.status_code == 204
    assert (await async_client.get(f"{URL}/{leaving.id}", headers=headers)).status_code == 404

    self_delete = await async_client.delete(f"{URL}/{admin.id}", headers=headers)
    assert self_delete.status_code == 403


async def test_update_email_conflict(
    async_client: AsyncClient,
    admin: User,
    manager: User,
    employee: User,
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
    response = await async_client.put(
        f"{URL}/{employee.id}", json={"email": manager.email}, headers=auth_headers(admin)
    )
    assert response.status_code == 409


async def test_deleting_payment_creator_is_a_conflict(
    async_client: AsyncClient,
    admin: User,
    manager: User,
    employee: User,
    make_time_entry: Callable[..., Awaitable[TimeEntry]],
    auth_headers: Callable[[User], dict[str, str]],
) -> None:
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

    headers = auth_headers(admin)
    response = await async_client.delete(f"{URL}/{manager.id}", headers=headers)
    assert response.status_code == 409
    assert response.json()["error"] == "Conflict"
    assert (await async_client.get(f"{URL}/{manager.id}", headers=headers)).status_code == 200
