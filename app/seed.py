"""Seed script for development data.

Run with:  uv run python -m app.seed
Inside Docker:  docker compose exec api uv run python -m app.seed

Requires DEVELOPER_EMAIL, DEVELOPER_PASSWORD and SETUP_SECRET_TOKEN to be set
for both the API and this script.
"""

from __future__ import annotations

import asyncio
import sys
from datetime import date, timedelta

import httpx

from app.config import get_settings

BASE_URL = "http://localhost:8000"

COMPANY = {
    "name": "Oficina Modular",
    "plan": "PREMIUM",
    "admin": {"name": "Ana Administradora", "email": "admin@modular.example", "password": "admin123"},
}

# (name, email, password, role, hourly_rate)
MANAGER = ("Marcos Gerente", "gerente@modular.example", "gerente123", "MANAGER", 60.0)
EMPLOYEES = [
    ("Bruno Silva", "bruno@modular.example", "bruno123", "EMPLOYEE", 25.0),
    ("Carla Souza", "carla@modular.example", "carla123", "EMPLOYEE", 30.0),
]

# (start, end, project) per working day
WORKDAY = [("08:00", "12:00", "Portal"), ("13:00", "17:00", "Portal")]


def _auth(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def _safe_post(
    client: httpx.AsyncClient,
    url: str,
    json: dict,
    label: str,
    token: str | None = None,
) -> dict | None:
    """POST with 409-conflict tolerance for idempotency."""
    resp = await client.post(url, json=json, headers=_auth(token) if token else None)
    if resp.status_code in (200, 201):
        print(f"  [OK] {label}")
        return resp.json()
    if resp.status_code == 409:
        print(f"  [SKIP] {label} (already exists)")
        return None
    print(f"  [ERROR] {label}: {resp.status_code} {resp.text[:200]}")
    return None


async def _login(client: httpx.AsyncClient, email: str, password: str) -> str | None:
    resp = await client.post(f"{BASE_URL}/api/auth/login", json={"email": email, "password": password})
    if resp.status_code != 200:
        print(f"  [ERROR] login {email}: {resp.status_code} {resp.text[:200]}")
        return None
    return resp.json()["token"]


def _recent_weekdays(count: int) -> list[date]:
    days: list[date] = []
    candidate = date.today() - timedelta(days=1)
    while len(days) < count:
        if candidate.weekday() < 5:
            days.append(candidate)
        candidate -= timedelta(days=1)
    return sorted(days)


async def seed_developer(client: httpx.AsyncClient) -> str | None:
    print("\n--- Developer account ---")
    settings = get_settings()
    if not settings.setup_secret_token or not settings.developer_email or not settings.developer_password:
        print("  [ERROR] DEVELOPER_EMAIL, DEVELOPER_PASSWORD and SETUP_SECRET_TOKEN must be set")
        return None
    await _safe_post(client, f"{BASE_URL}/api/setup", {"token": settings.setup_secret_token}, "Developer")
    return await _login(client, settings.developer_email, settings.developer_password)


async def seed_company(client: httpx.AsyncClient, developer_token: str) -> str | None:
    """Create the demo company and return its id."""
    print("\n--- Company ---")
    created = await _safe_post(
        client, f"{BASE_URL}/api/companies", COMPANY, f"Company: {COMPANY['name']}", developer_token
    )
    if created:
        return created["id"]

    resp = await client.get(f"{BASE_URL}/api/companies", headers=_auth(developer_token), params={"limit": 100})
    for item in resp.json().get("items", []):
        if item["name"] == COMPANY["name"]:
            return item["id"]
    return None


async def seed_users(client: httpx.AsyncClient, admin_token: str, company_id: str) -> None:
    print("\n--- Users ---")
    manager_id: str | None = None
    for name, email, password, role, rate in [MANAGER, *EMPLOYEES]:
        body = {
            "name": name,
            "email": email,
            "password": password,
            "role": role,
            "company_id": company_id,
            "hourly_rate": rate,
            "manager_id": manager_id if role == "EMPLOYEE" else None,
        }
        created = await _safe_post(client, f"{BASE_URL}/api/users", body, f"{role}: {name}", admin_token)
        if created and role == "MANAGER":
            manager_id = created["id"]


async def seed_time_entries(client: httpx.AsyncClient) -> dict[str, list[str]]:
    """Log a week of work for each employee. Returns entry ids per employee token."""
    print("\n--- Time entries ---")
    entries: dict[str, list[str]] = {}
    for _name, email, password, _role, _rate in EMPLOYEES:
        token = await _login(client, email, password)
        if token is None:
            continue
        ids: list[str] = entries.setdefault(token, [])
        for day in _recent_weekdays(5):
            for start, end, project in WORKDAY:
                created = await _safe_post(
                    client,
                    f"{BASE_URL}/api/time-entries",
                    {"date": day.isoformat(), "start_time": start, "end_time": end, "project": project},
                    f"{email} {day} {start}-{end}",
                    token,
                )
                if created:
                    ids.append(created["id"])
    return entries


async def seed_approvals(client: httpx.AsyncClient, manager_token: str, entries: dict[str, list[str]]) -> None:
    """Approve all but the last entry of each employee, and reject that one."""
    print("\n--- Approvals ---")
    for ids in entries.values():
        for index, entry_id in enumerate(ids):
            approved = index < len(ids) - 1
            body: dict[str, object] = {"approved": approved}
            if not approved:
                body["rejection_reason"] = "Horário não confere com o registro de acesso"
            resp = await client.put(
                f"{BASE_URL}/api/time-entries/{entry_id}/approve", json=body, headers=_auth(manager_token)
            )
            label = "approved" if approved else "rejected"
            print(f"  [{'OK' if resp.status_code == 200 else 'ERROR'}] {entry_id[:8]}... {label}")


async def main() -> None:
    print("Seeding ModularCompany demo data...")
    async with httpx.AsyncClient(timeout=30.0) as client:
        try:
            resp = await client.get(f"{BASE_URL}/health")
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            print(f"API is not reachable at {BASE_URL}: {exc}")
            sys.exit(1)

        developer_token = await seed_developer(client)
        if developer_token is None:
            sys.exit(1)

        company_id = await seed_company(client, developer_token)
        admin_token = await _login(client, COMPANY["admin"]["email"], COMPANY["admin"]["password"])
        if company_id is None or admin_token is None:
            print("Could not resolve the demo company or its administrator")
            sys.exit(1)

        await seed_users(client, admin_token, company_id)
        entries = await seed_time_entries(client)

        manager_token = await _login(client, MANAGER[1], MANAGER[2])
        if manager_token is not None:
            await seed_approvals(client, manager_token, entries)

    print("\nDone.")


if __name__ == "__main__":
    asyncio.run(main())
