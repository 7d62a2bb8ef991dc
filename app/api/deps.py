# ruff: noqa: B008
from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.config import get_settings
from app.exceptions import Forbidden, ManagerWithoutCompany, Unauthenticated
from app.models.enums import Role
from app.schemas.auth import Principal
from app.services.security import resolve_principal

_bearer = HTTPBearer(auto_error=False)


async def get_principal(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> Principal:
    """Resolve the caller from a bearer token or, failing that, the session cookie."""
    if credentials is not None:
        return resolve_principal(credentials.credentials)
    cookie = request.cookies.get(get_settings().session_cookie_name)
    if cookie:
        return resolve_principal(cookie)
    raise Unauthenticated("Não autorizado")


async def get_mobile_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> Principal:
    """Resolve the caller from ``Authorization: Bearer``. Cookies are ignored."""
    if credentials is None:
        raise Unauthenticated("Token não fornecido")
    return resolve_principal(credentials.credentials)


PrincipalDep = Annotated[Principal, Depends(get_principal)]
MobilePrincipalDep = Annotated[Principal, Depends(get_mobile_principal)]


async def get_mobile_staff_principal(principal: MobilePrincipalDep) -> Principal:
    """A mobile caller who runs a company: an ADMIN or MANAGER attached to one."""
    if principal.role not in (Role.ADMIN, Role.MANAGER):
        raise Forbidden("Acesso negado. Apenas administradores e gerentes podem acessar esta área")
    if principal.company_id is None:
        raise ManagerWithoutCompany("Usuário não está associado a uma empresa")
    return principal


MobileStaffDep = Annotated[Principal, Depends(get_mobile_staff_principal)]
