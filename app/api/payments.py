# ruff: noqa: B008, TC003
from __future__ import annotations

import datetime as dt
import uuid

from fastapi import APIRouter, Query, status

from app.api.deps import PrincipalDep
from app.db import SessionDep
from app.models.enums import PaymentStatus
from app.schemas.payment import (
    CreatePaymentPayload,
    PaymentListResponse,
    PaymentResponse,
    UpdatePaymentPayload,
)
from app.services import payment as payment_service

payments_router = APIRouter(prefix="/api/payments", tags=["payments"])


@payments_router.get("", response_model=PaymentListResponse)
async def list_payments(
    session: SessionDep,
    principal: PrincipalDep,
    user_id: uuid.UUID | None = Query(default=None),
    status_filter: PaymentStatus | None = Query(default=None, alias="status"),
    start_date: dt.date | None = Query(default=None),
    end_date: dt.date | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> PaymentListResponse:
    return await payment_service.list_payments(
        session, principal, user_id, status_filter, start_date, end_date, offset, limit
    )


@payments_router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def create_payment(
    payload: CreatePaymentPayload,
    session: SessionDep,
    principal: PrincipalDep,
) -> PaymentResponse:
    """Pay a user for approved, not yet paid time entries."""
    return await payment_service.create_payment(session, principal, payload)


@payments_router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(payment_id: uuid.UUID, session: SessionDep, principal: PrincipalDep) -> PaymentResponse:
    return await payment_service.get_payment(session, principal, payment_id)


@payments_router.put("/{payment_id}", response_model=PaymentResponse)
async def update_payment(
    payment_id: uuid.UUID,
    payload: UpdatePaymentPayload,
    session: SessionDep,
    principal: PrincipalDep,
) -> PaymentResponse:
    return await payment_service.update_payment(session, principal, payment_id, payload)


@payments_router.post("/{payment_id}/confirm", response_model=PaymentResponse)
async def confirm_payment(payment_id: uuid.UUID, session: SessionDep, principal: PrincipalDep) -> PaymentResponse:
    """Recipient confirms receipt of the payment."""
    return await payment_service.confirm_payment(session, principal, payment_id)


@payments_router.delete("/{payment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_payment(payment_id: uuid.UUID, session: SessionDep, principal: PrincipalDep) -> None:
    await payment_service.delete_payment(session, principal, payment_id)
