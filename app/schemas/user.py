# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from app.models.enums import Role

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CreateUserPayload(BaseModel):
    """Request body for creating a user inside a company."""

    name: str = Field(min_length=3, max_length=255)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    role: Role = Role.EMPLOYEE
    company_id: uuid.UUID | None = None
    hourly_rate: float | None = Field(default=None, ge=0)
    manager_id: uuid.UUID | None = None


class UpdateUserPayload(BaseModel):
    """Partial update. Only the fields present in the body are applied."""

    name: str | None = Field(default=None, min_length=3, max_length=255)
    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=6, max_length=128)
    role: Role | None = None
    hourly_rate: float | None = Field(default=None, ge=0)
    manager_id: uuid.UUID | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Response schema for a single user. Never carries the password hash."""

    id: uuid.UUID
    name: str
    email: str
    role: Role
    company_id: uuid.UUID | None
    hourly_rate: float | None
    manager_id: uuid.UUID | None
    created_at: datetime
    updated_at: datetime


class UserListResponse(BaseModel):
    items: list[UserResponse]
    total: int
