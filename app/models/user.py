# ruff: noqa: TC003
from __future__ import annotations

import uuid

import sqlalchemy as sa
from sqlmodel import Field

from app.models.base import TimestampMixin, UUIDBase
from app.models.enums import Role


class User(UUIDBase, TimestampMixin, table=True):
    """An account of any role. Developers may exist without a company."""

    __tablename__ = "app_user"
    __table_args__ = (sa.Index("ix_user_company_role", "company_id", "role"),)

    name: str = Field(max_length=255)
    email: str = Field(max_length=255, unique=True, index=True)
    password_hash: str = Field(max_length=255)
    role: str = Field(default=Role.EMPLOYEE, max_length=20, sa_column_kwargs={"server_default": "EMPLOYEE"})
    company_id: uuid.UUID | None = Field(default=None, foreign_key="company.id", index=True)
    hourly_rate: float | None = None
    manager_id: uuid.UUID | None = Field(
        default=None,
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("app_user.id", ondelete="SET NULL"), nullable=True),
    )
