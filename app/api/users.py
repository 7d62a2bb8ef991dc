# ruff: noqa: B008, TC003
from __future__ import annotations

import datetime as dt
import uuid

from fastapi import APIRouter, Query, status

from app.api.deps import PrincipalDep
from app.db import SessionDep
from app.models.enums import Role
from app.schemas.balance import BalanceResponse
from app.schemas.user import CreateUserPayload, UpdateUserPayload, UserListResponse, UserResponse
from app.services import balance as balance_service
from app.services import user as user_service

users_router = APIRouter(prefix="/api/users", tags=["users"])


@users_router.get("", response_model=UserListResponse)
async def list_users(
    session: SessionDep,
    principal: PrincipalDep,
    company_id: uuid.UUID | None = Query(default=None),
    role: Role | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> UserListResponse:
    """List users visible to the caller."""
    return await user_service.list_users(session, principal, company_id, role, offset, limit)


@users_router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(payload: CreateUserPayload, session: SessionDep, principal: PrincipalDep) -> UserResponse:
    return await user_service.create_user(session, principal, payload)


@users_router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: uuid.UUID, session: SessionDep, principal: PrincipalDep) -> UserResponse:
    return await user_service.get_user(session, principal, user_id)


@users_router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: uuid.UUID,
    payload: UpdateUserPayload,
    session: SessionDep,
    principal: PrincipalDep,
) -> UserResponse:
    """Update a user. Role changes are checked separately from field edits."""
    return await user_service.update_user(session, principal, user_id, payload)


@users_router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(user_id: uuid.UUID, session: SessionDep, principal: PrincipalDep) -> None:
    await user_service.delete_user(session, principal, user_id)


@users_router.get("/{user_id}/balance", response_model=BalanceResponse)
async def get_user_balance(
    user_id: uuid.UUID,
    session: SessionDep,
    principal: PrincipalDep,
    start_date: dt.date | None = Query(default=None),
    end_date: dt.date | None = Query(default=None),
) -> BalanceResponse:
    """Approved hours versus completed payments for one user."""
    return await balance_service.get_user_balance(session, principal, user_id, start_date, end_date)
