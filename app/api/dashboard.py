from __future__ import annotations

from fastapi import APIRouter

from app.api.deps import PrincipalDep
from app.db import SessionDep
from app.schemas.dashboard import CompanySummaryResponse, PersonalDashboardResponse
from app.services import dashboard as dashboard_service

dashboard_router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@dashboard_router.get("", response_model=PersonalDashboardResponse)
async def personal_dashboard(session: SessionDep, principal: PrincipalDep) -> PersonalDashboardResponse:
    return await dashboard_service.get_personal_dashboard(session, principal)


@dashboard_router.get("/summary", response_model=CompanySummaryResponse)
async def company_summary(session: SessionDep, principal: PrincipalDep) -> CompanySummaryResponse:
    """Company headline numbers for admins and managers."""
    return await dashboard_service.get_company_summary(session, principal)
