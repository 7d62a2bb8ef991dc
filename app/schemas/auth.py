# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import Self

from pydantic import BaseModel, EmailStr, Field, model_validator

from app.models.enums import Role


class Principal(BaseModel):
    """The authenticated caller, resolved from a bearer token or session cookie."""

    id: uuid.UUID
    email: str
    role: Role
    company_id: uuid.UUID | None = None


# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class LoginPayload(BaseModel):
    """Credentials for web and mobile login."""

    email: EmailStr
    password: str = Field(min_length=1)


class RegisterPayload(BaseModel):
    """Self-registration of an employee into an existing company."""

    name: str = Field(min_length=3, max_length=255)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    company_id: uuid.UUID


class ChangePasswordPayload(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6, max_length=128)
    confirm_password: str = Field(min_length=6, max_length=128)

    @model_validator(mode="after")
    def _validate_confirmation(self) -> Self:
        if self.new_password != self.confirm_password:
            msg = "As senhas não coincidem"
            raise ValueError(msg)
        return self


class SetupPayload(BaseModel):
    """Bootstrap request for the developer account."""

    token: str = Field(min_length=1)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class AuthUserResponse(BaseModel):
    """User summary returned alongside tokens."""

    id: uuid.UUID
    name: str
    email: str
    role: Role
    company_id: uuid.UUID | None
    company_name: str | None = None
    hourly_rate: float | None = None


class TokenResponse(BaseModel):
    token: str
    expires_in: int
    user: AuthUserResponse


class MessageResponse(BaseModel):
    message: str
