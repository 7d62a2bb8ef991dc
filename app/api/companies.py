# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Path, Query, status

from app.api.deps import PrincipalDep, get_principal
from app.db import SessionDep
from app.schemas.auth import Principal
from app.schemas.company import (
    CompanyListResponse,
    CompanyResponse,
    CreateCompanyPayload,
    UpdateCompanyPayload,
)
from app.services import company as company_service
from app.services.policy import Action, ensure_allowed

companies_router = APIRouter(prefix="/api/companies", tags=["companies"])


async def authorize_company_mutation(
    company_id: uuid.UUID = Path(),
    principal: Principal = Depends(get_principal),
) -> Principal:
    """Reject callers who may not modify this company before the body is validated."""
    ensure_allowed(principal, Action.UPDATE, company_service.company_resource(company_id))
    return principal


@companies_router.get("", response_model=CompanyListResponse)
async def list_companies(
    session: SessionDep,
    principal: PrincipalDep,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> CompanyListResponse:
    """List all companies (developers only)."""
    return await company_service.list_companies(session, principal, offset, limit)


@companies_router.post("", response_model=CompanyResponse, status_code=status.HTTP_201_CREATED)
async def create_company(
    payload: CreateCompanyPayload,
    session: SessionDep,
    principal: PrincipalDep,
) -> CompanyResponse:
    """Create a company and its first administrator (developers only)."""
    return await company_service.create_company(session, principal, payload)


@companies_router.get("/{company_id}", response_model=CompanyResponse)
async def get_company(company_id: uuid.UUID, session: SessionDep, principal: PrincipalDep) -> CompanyResponse:
    return await company_service.get_company(session, principal, company_id)


@companies_router.put("/{company_id}", response_model=CompanyResponse)
async def update_company(
    company_id: uuid.UUID,
    payload: UpdateCompanyPayload,
    session: SessionDep,
    principal: Principal = Depends(authorize_company_mutation),
) -> CompanyResponse:
    """Replace a company's name, plan and active flag."""
    return await company_service.update_company(session, principal, company_id, payload)


@companies_router.patch("/{company_id}", response_model=CompanyResponse)
async def toggle_company(
    company_id: uuid.UUID,
    session: SessionDep,
    principal: Principal = Depends(authorize_company_mutation),
) -> CompanyResponse:
    """Activate or deactivate a company."""
    return await company_service.toggle_company(session, principal, company_id)


@companies_router.delete("/{company_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_company(
    company_id: uuid.UUID,
    session: SessionDep,
    principal: Principal = Depends(authorize_company_mutation),
) -> None:
    """Delete a company together with all of its users and their records."""
    await company_service.delete_company(session, principal, company_id)
