"""Role-based authorization.

Every permission question in the application is answered here through
:func:`authorize`, which evaluates one fixed decision table in role
precedence order: DEVELOPER, ADMIN, MANAGER, EMPLOYEE. Services describe
the target with a :class:`Resource` and call :func:`ensure_allowed`.
"""

from __future__ import annotations

import enum
import logging
import uuid
from dataclasses import dataclass

from app.exceptions import Forbidden, ManagerWithoutCompany
from app.models.enums import Role
from app.schemas.auth import Principal

logger = logging.getLogger(__name__)


class Action(enum.StrEnum):
    READ = "READ"
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    CHANGE_ROLE = "CHANGE_ROLE"


class ResourceType(enum.StrEnum):
    COMPANY = "COMPANY"
    USER = "USER"
    TIME_ENTRY = "TIME_ENTRY"
    PAYMENT = "PAYMENT"
    NOTIFICATION = "NOTIFICATION"
    FEEDBACK = "FEEDBACK"


@dataclass(frozen=True)
class Resource:
    """What an action targets.

    ``owner_id`` is the user the resource belongs to (the user itself for
    USER resources). ``owner_role`` is that user's current role and
    ``target_role`` the role requested by a CHANGE_ROLE.
    """

    type: ResourceType
    company_id: uuid.UUID | None = None
    owner_id: uuid.UUID | None = None
    owner_role: Role | None = None
    target_role: Role | None = None


@dataclass(frozen=True)
class Allow:
    allowed: bool = True


@dataclass(frozen=True)
class Deny:
    reason: str
    manager_without_company: bool = False
    allowed: bool = False


Decision = Allow | Deny

ALLOW = Allow()

_PRIVILEGED_ROLES = frozenset({Role.ADMIN, Role.DEVELOPER})
_DECISION_ACTIONS = frozenset({Action.APPROVE, Action.REJECT})
_MUTATIONS = frozenset({Action.UPDATE, Action.DELETE, Action.CHANGE_ROLE})

# What any non-developer may do to resources they own.
_OWNER_GRANTS: dict[ResourceType, frozenset[Action]] = {
    ResourceType.TIME_ENTRY: frozenset({Action.READ, Action.CREATE, Action.UPDATE, Action.DELETE}),
    ResourceType.PAYMENT: frozenset({Action.READ, Action.UPDATE}),
    ResourceType.NOTIFICATION: frozenset({Action.READ, Action.UPDATE, Action.DELETE}),
    ResourceType.FEEDBACK: frozenset({Action.READ, Action.CREATE}),
    ResourceType.USER: frozenset({Action.READ, Action.UPDATE}),
}

# What a manager may do to resources of their own company.
_MANAGER_GRANTS: dict[ResourceType, frozenset[Action]] = {
    ResourceType.TIME_ENTRY: frozenset({Action.READ, Action.APPROVE, Action.REJECT}),
    ResourceType.USER: frozenset({Action.READ, Action.UPDATE, Action.CHANGE_ROLE}),
    ResourceType.PAYMENT: frozenset({Action.READ, Action.CREATE, Action.UPDATE}),
    ResourceType.COMPANY: frozenset({Action.READ}),
    ResourceType.NOTIFICATION: frozenset({Action.CREATE}),
}

_SELF_ROLE_CHANGE = Deny("Você não pode alterar seu próprio papel")
_OTHER_COMPANY = Deny("Você não tem permissão para acessar recursos de outra empresa")


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _is_self_role_change(principal: Principal, action: Action, resource: Resource) -> bool:
    return (
        action == Action.CHANGE_ROLE
        and resource.type == ResourceType.USER
        and resource.owner_id == principal.id
    )


def _owner_decision(principal: Principal, action: Action, resource: Resource) -> Decision | None:
    """Allow an owner grant, or return None when ownership does not apply."""
    if resource.owner_id is None or resource.owner_id != principal.id:
        return None
    if action in _OWNER_GRANTS.get(resource.type, frozenset()):
        return ALLOW
    return None


def _admin_rules(principal: Principal, action: Action, resource: Resource) -> Decision:
    if principal.company_id is None or resource.company_id != principal.company_id:
        return _OTHER_COMPANY

    if resource.type == ResourceType.COMPANY and action != Action.READ:
        return Deny("Apenas desenvolvedores podem alterar empresas")

    if resource.type == ResourceType.USER:
        if _is_self_role_change(principal, action, resource):
            return _SELF_ROLE_CHANGE
        is_self = resource.owner_id == principal.id
        if action in _MUTATIONS and resource.owner_role in _PRIVILEGED_ROLES and not is_self:
            return Deny("Administradores não podem alterar outros administradores ou desenvolvedores")
        if action == Action.DELETE and is_self:
            return Deny("Você não pode excluir sua própria conta")
        if action in (Action.CREATE, Action.CHANGE_ROLE) and resource.target_role in _PRIVILEGED_ROLES:
            return Deny("Administradores não podem criar ou promover usuários a ADMIN ou DEVELOPER")

    return ALLOW


def _manager_rules(principal: Principal, action: Action, resource: Resource) -> Decision:
    if _is_self_role_change(principal, action, resource):
        return _SELF_ROLE_CHANGE

    owned = _owner_decision(principal, action, resource)
    if owned is not None:
        return owned

    if resource.company_id is None or resource.company_id != principal.company_id:
        return _OTHER_COMPANY

    if action not in _MANAGER_GRANTS.get(resource.type, frozenset()):
        return Deny("Gerentes não têm permissão para esta ação")

    if resource.type == ResourceType.USER:
        if resource.owner_role in _PRIVILEGED_ROLES:
            return Deny("Gerentes não podem acessar administradores ou desenvolvedores")
        if action == Action.CHANGE_ROLE and resource.target_role in _PRIVILEGED_ROLES:
            return Deny("Gerentes não podem promover usuários a ADMIN ou DEVELOPER")

    return ALLOW


def _employee_rules(principal: Principal, action: Action, resource: Resource) -> Decision:
    if _is_self_role_change(principal, action, resource):
        return _SELF_ROLE_CHANGE

    owned = _owner_decision(principal, action, resource)
    if owned is not None:
        return owned

    if (
        resource.type == ResourceType.COMPANY
        and action == Action.READ
        and principal.company_id is not None
        and resource.company_id == principal.company_id
    ):
        return ALLOW

    return Deny("Você só pode acessar seus próprios registros")


_ROLE_RULES = {
    Role.ADMIN: _admin_rules,
    Role.MANAGER: _manager_rules,
    Role.EMPLOYEE: _employee_rules,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def authorize(principal: Principal, action: Action, resource: Resource) -> Decision:
    """Decide whether ``principal`` may perform ``action`` on ``resource``."""
    if principal.role == Role.DEVELOPER:
        return ALLOW

    if principal.role == Role.MANAGER and principal.company_id is None and action in _DECISION_ACTIONS:
        return Deny(
            "Gerente sem empresa associada. Entre em contato com um administrador.",
            manager_without_company=True,
        )

    return _ROLE_RULES[principal.role](principal, action, resource)


def ensure_allowed(principal: Principal, action: Action, resource: Resource) -> None:
    """Raise ``Forbidden`` (or ``ManagerWithoutCompany``) when the policy denies."""
    decision = authorize(principal, action, resource)
    if isinstance(decision, Allow):
        return
    logger.info(
        "Denied %s on %s for user %s (%s): %s",
        action,
        resource.type,
        principal.id,
        principal.role,
        decision.reason,
    )
    if decision.manager_without_company:
        raise ManagerWithoutCompany(decision.reason)
    raise Forbidden(decision.reason)
