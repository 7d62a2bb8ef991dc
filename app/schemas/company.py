# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from app.models.enums import PlanType

# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class CompanyAdminPayload(BaseModel):
    """First administrator created together with a company."""

    name: str = Field(min_length=3, max_length=255)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)


class CreateCompanyPayload(BaseModel):
    name: str = Field(min_length=3, max_length=255)
    plan: PlanType = PlanType.BASIC
    active: bool = True
    admin: CompanyAdminPayload


class UpdateCompanyPayload(BaseModel):
    name: str = Field(min_length=3, max_length=255)
    plan: PlanType
    active: bool


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class CompanyResponse(BaseModel):
    """Response schema for a single company."""

    id: uuid.UUID
    name: str
    plan: PlanType
    active: bool
    user_count: int = 0
    created_at: datetime
    updated_at: datetime


class CompanyListResponse(BaseModel):
    items: list[CompanyResponse]
    total: int
