# ruff: noqa: TC001, TC003
"""Response envelopes and payloads specific to the native client."""

from __future__ import annotations

import uuid
from typing import Self

from pydantic import BaseModel, model_validator

from app.schemas.auth import AuthUserResponse
from app.schemas.balance import BalanceResponse
from app.schemas.feedback import FeedbackResponse
from app.schemas.notification import NotificationResponse
from app.schemas.payment import PaymentResponse
from app.schemas.time_entry import TimeEntryResponse, TimeEntryViewResponse
from app.schemas.user import UserResponse


class MobileUserEnvelope(BaseModel):
    user: AuthUserResponse


class MobileTimeEntryEnvelope(BaseModel):
    time_entry: TimeEntryResponse


class MobileTimeEntryListEnvelope(BaseModel):
    time_entries: list[TimeEntryResponse]
    total: int


class MobileTimeEntryViewEnvelope(BaseModel):
    time_entry: TimeEntryViewResponse


class MobileCompanyUserEnvelope(BaseModel):
    user: UserResponse


class MobileCompanyUserListEnvelope(BaseModel):
    users: list[UserResponse]
    total: int


class MobilePaymentEnvelope(BaseModel):
    payment: PaymentResponse


class MobilePaymentListEnvelope(BaseModel):
    payments: list[PaymentResponse]
    total: int


class MobileBalanceEnvelope(BaseModel):
    balance: BalanceResponse


class MobileNotificationListEnvelope(BaseModel):
    notifications: list[NotificationResponse]
    unread_count: int


class MobileFeedbackEnvelope(BaseModel):
    feedback: FeedbackResponse


class MobileNotificationUpdatePayload(BaseModel):
    """Mark one notification (``id``) or all of them (``all``) as read or unread."""

    id: uuid.UUID | None = None
    read: bool = True
    all: bool = False

    @model_validator(mode="after")
    def _validate_target(self) -> Self:
        if self.id is None and not self.all:
            msg = "Informe o id da notificação ou all=true"
            raise ValueError(msg)
        if self.all and not self.read:
            msg = "all=true só pode marcar notificações como lidas"
            raise ValueError(msg)
        return self
