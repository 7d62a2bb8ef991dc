# ruff: noqa: B008, TC003
from __future__ import annotations

import datetime as dt
import uuid

from fastapi import APIRouter, Query, status

from app.api.deps import PrincipalDep
from app.db import SessionDep
from app.models.enums import TimeEntryStatus
from app.schemas.time_entry import (
    CreateTimeEntryPayload,
    DecisionPayload,
    ProjectListResponse,
    TimeEntryListResponse,
    TimeEntryResponse,
    UpdateTimeEntryPayload,
)
from app.services import time_entry as time_entry_service

time_entries_router = APIRouter(prefix="/api/time-entries", tags=["time-entries"])


@time_entries_router.get("", response_model=TimeEntryListResponse)
async def list_time_entries(
    session: SessionDep,
    principal: PrincipalDep,
    user_id: uuid.UUID | None = Query(default=None),
    start_date: dt.date | None = Query(default=None),
    end_date: dt.date | None = Query(default=None),
    status_filter: TimeEntryStatus | None = Query(default=None, alias="status"),
    unpaid: bool = Query(default=False),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
) -> TimeEntryListResponse:
    """List time entries visible to the caller."""
    return await time_entry_service.list_time_entries(
        session, principal, user_id, start_date, end_date, status_filter, unpaid, offset, limit
    )


@time_entries_router.post("", response_model=TimeEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_time_entry(
    payload: CreateTimeEntryPayload,
    session: SessionDep,
    principal: PrincipalDep,
) -> TimeEntryResponse:
    """Log worked hours for the signed-in user."""
    return await time_entry_service.create_time_entry(session, principal, payload)


@time_entries_router.get("/projects", response_model=ProjectListResponse)
async def list_projects(session: SessionDep, principal: PrincipalDep) -> ProjectListResponse:
    return await time_entry_service.list_projects(session, principal)


@time_entries_router.get("/{entry_id}", response_model=TimeEntryResponse)
async def get_time_entry(entry_id: uuid.UUID, session: SessionDep, principal: PrincipalDep) -> TimeEntryResponse:
    return await time_entry_service.get_time_entry(session, principal, entry_id)


@time_entries_router.put("/{entry_id}", response_model=TimeEntryResponse)
async def update_time_entry(
    entry_id: uuid.UUID,
    payload: UpdateTimeEntryPayload,
    session: SessionDep,
    principal: PrincipalDep,
) -> TimeEntryResponse:
    """Edit a pending or rejected entry."""
    return await time_entry_service.update_time_entry(session, principal, entry_id, payload)


@time_entries_router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_time_entry(entry_id: uuid.UUID, session: SessionDep, principal: PrincipalDep) -> None:
    await time_entry_service.delete_time_entry(session, principal, entry_id)


@time_entries_router.put("/{entry_id}/approve", response_model=TimeEntryResponse)
async def decide_time_entry(
    entry_id: uuid.UUID,
    payload: DecisionPayload,
    session: SessionDep,
    principal: PrincipalDep,
) -> TimeEntryResponse:
    """Approve or reject a pending entry."""
    return await time_entry_service.decide_time_entry(session, principal, entry_id, payload)
