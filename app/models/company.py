from __future__ import annotations

import sqlalchemy as sa
from sqlmodel import Field

from app.models.base import TimestampMixin, UUIDBase
from app.models.enums import PlanType


class Company(UUIDBase, TimestampMixin, table=True):
    """A tenant. Users, and through them every other row, belong to one."""

    __tablename__ = "company"

    name: str = Field(max_length=255)
    plan: str = Field(default=PlanType.BASIC, max_length=20, sa_column_kwargs={"server_default": "BASIC"})
    active: bool = Field(default=True, sa_column_kwargs={"server_default": sa.true()})
