"""Unit tests for the role-based decision table."""

from __future__ import annotations

import uuid

import pytest

from app.exceptions import Forbidden, ManagerWithoutCompany
from app.models.enums import Role
from app.schemas.auth import Principal
from app.services.policy import Action, Allow, Deny, Resource, ResourceType, authorize, ensure_allowed

COMPANY_A = uuid.uuid4()
COMPANY_B = uuid.uuid4()


def _principal(role: Role, company_id: uuid.UUID | None = COMPANY_A) -> Principal:
    return Principal(id=uuid.uuid4(), email=f"{role.lower()}@example.com", role=role, company_id=company_id)


def _entry(company_id: uuid.UUID = COMPANY_A, owner_id: uuid.UUID | None = None) -> Resource:
    return Resource(type=ResourceType.TIME_ENTRY, company_id=company_id, owner_id=owner_id or uuid.uuid4())


def _user(
    company_id: uuid.UUID = COMPANY_A,
    owner_id: uuid.UUID | None = None,
    owner_role: Role = Role.EMPLOYEE,
    target_role: Role | None = None,
) -> Resource:
    return Resource(
        type=ResourceType.USER,
        company_id=company_id,
        owner_id=owner_id or uuid.uuid4(),
        owner_role=owner_role,
        target_role=target_role,
    )


# ---------------------------------------------------------------------------
# DEVELOPER
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("action", list(Action))
def test_developer_is_allowed_everything(action: Action) -> None:
    developer = _principal(Role.DEVELOPER, company_id=None)
    assert isinstance(authorize(developer, action, _entry(COMPANY_B)), Allow)


# ---------------------------------------------------------------------------
# ADMIN
# ---------------------------------------------------------------------------


def test_admin_can_approve_in_own_company() -> None:
    assert isinstance(authorize(_principal(Role.ADMIN), Action.APPROVE, _entry()), Allow)


def test_admin_denied_other_company() -> None:
    decision = authorize(_principal(Role.ADMIN), Action.READ, _entry(COMPANY_B))
    assert isinstance(decision, Deny)


def test_admin_may_read_but_not_modify_own_company() -> None:
    admin = _principal(Role.ADMIN)
    company = Resource(type=ResourceType.COMPANY, company_id=COMPANY_A)
    assert isinstance(authorize(admin, Action.READ, company), Allow)
    assert isinstance(authorize(admin, Action.UPDATE, company), Deny)
    assert isinstance(authorize(admin, Action.DELETE, company), Deny)


def test_admin_cannot_promote_to_admin() -> None:
    decision = authorize(_principal(Role.ADMIN), Action.CHANGE_ROLE, _user(target_role=Role.ADMIN))
    assert isinstance(decision, Deny)


def test_admin_cannot_modify_other_admin() -> None:
    decision = authorize(_principal(Role.ADMIN), Action.UPDATE, _user(owner_role=Role.ADMIN))
    assert isinstance(decision, Deny)


def test_admin_cannot_delete_self() -> None:
    admin = _principal(Role.ADMIN)
    decision = authorize(admin, Action.DELETE, _user(owner_id=admin.id, owner_role=Role.ADMIN))
    assert isinstance(decision, Deny)


def test_admin_may_update_self() -> None:
    admin = _principal(Role.ADMIN)
    assert isinstance(authorize(admin, Action.UPDATE, _user(owner_id=admin.id, owner_role=Role.ADMIN)), Allow)


def test_admin_may_change_employee_to_manager() -> None:
    decision = authorize(_principal(Role.ADMIN), Action.CHANGE_ROLE, _user(target_role=Role.MANAGER))
    assert isinstance(decision, Allow)


# ---------------------------------------------------------------------------
# MANAGER
# ---------------------------------------------------------------------------


def test_manager_can_approve_and_reject_in_company() -> None:
    manager = _principal(Role.MANAGER)
    assert isinstance(authorize(manager, Action.APPROVE, _entry()), Allow)
    assert isinstance(authorize(manager, Action.REJECT, _entry()), Allow)


def test_manager_denied_other_company() -> None:
    assert isinstance(authorize(_principal(Role.MANAGER), Action.APPROVE, _entry(COMPANY_B)), Deny)


def test_manager_without_company_gets_specific_denial() -> None:
    manager = _principal(Role.MANAGER, company_id=None)
    decision = authorize(manager, Action.APPROVE, _entry())
    assert isinstance(decision, Deny)
    assert decision.manager_without_company is True

    with pytest.raises(ManagerWithoutCompany):
        ensure_allowed(manager, Action.REJECT, _entry())


def test_manager_cannot_delete_others_entries() -> None:
    assert isinstance(authorize(_principal(Role.MANAGER), Action.DELETE, _entry()), Deny)


def test_manager_cannot_read_admin_user() -> None:
    decision = authorize(_principal(Role.MANAGER), Action.READ, _user(owner_role=Role.ADMIN))
    assert isinstance(decision, Deny)


def test_manager_cannot_promote_to_admin() -> None:
    decision = authorize(_principal(Role.MANAGER), Action.CHANGE_ROLE, _user(target_role=Role.ADMIN))
    assert isinstance(decision, Deny)


def test_manager_cannot_delete_users() -> None:
    assert isinstance(authorize(_principal(Role.MANAGER), Action.DELETE, _user()), Deny)


def test_manager_manages_own_entries_as_owner() -> None:
    manager = _principal(Role.MANAGER)
    assert isinstance(authorize(manager, Action.DELETE, _entry(owner_id=manager.id)), Allow)


# ---------------------------------------------------------------------------
# EMPLOYEE
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("action", [Action.READ, Action.CREATE, Action.UPDATE, Action.DELETE])
def test_employee_owns_its_entries(action: Action) -> None:
    employee = _principal(Role.EMPLOYEE)
    assert isinstance(authorize(employee, action, _entry(owner_id=employee.id)), Allow)


def test_employee_cannot_approve_own_entry() -> None:
    employee = _principal(Role.EMPLOYEE)
    assert isinstance(authorize(employee, Action.APPROVE, _entry(owner_id=employee.id)), Deny)


def test_employee_cannot_read_colleague_entry() -> None:
    with pytest.raises(Forbidden):
        ensure_allowed(_principal(Role.EMPLOYEE), Action.READ, _entry())


def test_employee_cannot_change_own_role() -> None:
    employee = _principal(Role.EMPLOYEE)
    resource = _user(owner_id=employee.id, target_role=Role.MANAGER)
    assert isinstance(authorize(employee, Action.CHANGE_ROLE, resource), Deny)


def test_employee_may_read_own_company() -> None:
    company = Resource(type=ResourceType.COMPANY, company_id=COMPANY_A)
    assert isinstance(authorize(_principal(Role.EMPLOYEE), Action.READ, company), Allow)


def test_employee_cannot_create_payment() -> None:
    employee = _principal(Role.EMPLOYEE)
    payment = Resource(type=ResourceType.PAYMENT, company_id=COMPANY_A, owner_id=employee.id)
    assert isinstance(authorize(employee, Action.CREATE, payment), Deny)
