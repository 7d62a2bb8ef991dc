# ruff: noqa: B008, TC003
"""Endpoints for the native client.

Same services as the web routers, authenticated by bearer token only and
wrapped in the envelopes the client expects.
"""

from __future__ import annotations

import datetime as dt
import uuid

from fastapi import APIRouter, Header, Query, status

from app.api.deps import MobilePrincipalDep, MobileStaffDep
from app.db import SessionDep
from app.models.enums import PaymentStatus, Role, TimeEntryStatus
from app.schemas.auth import ChangePasswordPayload, LoginPayload, MessageResponse, TokenResponse
from app.schemas.dashboard import CompanySummaryResponse, PersonalDashboardResponse
from app.schemas.feedback import FeedbackListResponse, SubmitFeedbackPayload
from app.schemas.mobile import (
    MobileBalanceEnvelope,
    MobileCompanyUserEnvelope,
    MobileCompanyUserListEnvelope,
    MobileFeedbackEnvelope,
    MobileNotificationListEnvelope,
    MobileNotificationUpdatePayload,
    MobilePaymentEnvelope,
    MobilePaymentListEnvelope,
    MobileTimeEntryEnvelope,
    MobileTimeEntryListEnvelope,
    MobileTimeEntryViewEnvelope,
    MobileUserEnvelope,
)
from app.schemas.payment import CreatePaymentPayload, UpdatePaymentPayload
from app.schemas.time_entry import (
    CreateTimeEntryPayload,
    DecisionPayload,
    ProjectListResponse,
    RejectionDetailsResponse,
    UpdateTimeEntryPayload,
)
from app.schemas.user import UpdateUserPayload
from app.services import auth as auth_service
from app.services import balance as balance_service
from app.services import dashboard as dashboard_service
from app.services import feedback as feedback_service
from app.services import notification as notification_service
from app.services import payment as payment_service
from app.services import time_entry as time_entry_service
from app.services import user as user_service

mobile_auth_router = APIRouter(prefix="/api/mobile-auth", tags=["mobile"])
mobile_profile_router = APIRouter(prefix="/api/mobile-profile", tags=["mobile"])
mobile_time_entries_router = APIRouter(prefix="/api/mobile-time-entries", tags=["mobile"])
mobile_payments_router = APIRouter(prefix="/api/mobile-payments", tags=["mobile"])
mobile_users_router = APIRouter(prefix="/api/mobile-users", tags=["mobile"])
mobile_notifications_router = APIRouter(prefix="/api/mobile-notifications", tags=["mobile"])
mobile_feedback_router = APIRouter(prefix="/api/mobile-feedback", tags=["mobile"])
mobile_admin_router = APIRouter(prefix="/api/mobile-admin", tags=["mobile"])
mobile_misc_router = APIRouter(tags=["mobile"])


# ---------------------------------------------------------------------------
# Auth and profile
# ---------------------------------------------------------------------------


@mobile_auth_router.post("", response_model=TokenResponse)
async def mobile_login(payload: LoginPayload, session: SessionDep) -> TokenResponse:
    """Exchange credentials for a 24h bearer token."""
    return await auth_service.login(session, payload, mobile=True)


@mobile_auth_router.post("/change-password", response_model=MessageResponse)
async def mobile_change_password(
    payload: ChangePasswordPayload,
    session: SessionDep,
    principal: MobilePrincipalDep,
) -> MessageResponse:
    return await auth_service.change_password(session, principal, payload)


@mobile_profile_router.get("", response_model=MobileUserEnvelope)
async def mobile_profile(session: SessionDep, principal: MobilePrincipalDep) -> MobileUserEnvelope:
    return MobileUserEnvelope(user=await auth_service.get_profile(session, principal))


# ---------------------------------------------------------------------------
# Time entries
# ---------------------------------------------------------------------------


@mobile_time_entries_router.get("", response_model=MobileTimeEntryListEnvelope)
async def mobile_list_time_entries(
    session: SessionDep,
    principal: MobilePrincipalDep,
    user_id: uuid.UUID | None = Query(default=None),
    start_date: dt.date | None = Query(default=None),
    end_date: dt.date | None = Query(default=None),
    status_filter: TimeEntryStatus | None = Query(default=None, alias="status"),
    unpaid: bool = Query(default=False),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
) -> MobileTimeEntryListEnvelope:
    result = await time_entry_service.list_time_entries(
        session, principal, user_id, start_date, end_date, status_filter, unpaid, offset, limit
    )
    return MobileTimeEntryListEnvelope(time_entries=result.items, total=result.total)


@mobile_time_entries_router.post("", response_model=MobileTimeEntryEnvelope, status_code=status.HTTP_201_CREATED)
async def mobile_create_time_entry(
    payload: CreateTimeEntryPayload,
    session: SessionDep,
    principal: MobilePrincipalDep,
) -> MobileTimeEntryEnvelope:
    entry = await time_entry_service.create_time_entry(session, principal, payload)
    return MobileTimeEntryEnvelope(time_entry=entry)


@mobile_time_entries_router.get("/{entry_id}", response_model=MobileTimeEntryEnvelope)
async def mobile_get_time_entry(
    entry_id: uuid.UUID,
    session: SessionDep,
    principal: MobilePrincipalDep,
) -> MobileTimeEntryEnvelope:
    entry = await time_entry_service.get_time_entry(session, principal, entry_id)
    return MobileTimeEntryEnvelope(time_entry=entry)


@mobile_time_entries_router.put("/{entry_id}", response_model=MobileTimeEntryEnvelope)
async def mobile_update_time_entry(
    entry_id: uuid.UUID,
    payload: UpdateTimeEntryPayload,
    session: SessionDep,
    principal: MobilePrincipalDep,
) -> MobileTimeEntryEnvelope:
    entry = await time_entry_service.update_time_entry(session, principal, entry_id, payload)
    return MobileTimeEntryEnvelope(time_entry=entry)


@mobile_time_entries_router.delete("/{entry_id}", response_model=MessageResponse)
async def mobile_delete_time_entry(
    entry_id: uuid.UUID,
    session: SessionDep,
    principal: MobilePrincipalDep,
) -> MessageResponse:
    await time_entry_service.delete_time_entry(session, principal, entry_id)
    return MessageResponse(message="Registro excluído com sucesso")


@mobile_time_entries_router.put("/{entry_id}/approve", response_model=MobileTimeEntryEnvelope)
async def mobile_decide_time_entry(
    entry_id: uuid.UUID,
    payload: DecisionPayload,
    session: SessionDep,
    principal: MobilePrincipalDep,
) -> MobileTimeEntryEnvelope:
    entry = await time_entry_service.decide_time_entry(session, principal, entry_id, payload)
    return MobileTimeEntryEnvelope(time_entry=entry)


@mobile_time_entries_router.get("/{entry_id}/rejection", response_model=RejectionDetailsResponse)
async def mobile_rejection_details(
    entry_id: uuid.UUID,
    session: SessionDep,
    principal: MobilePrincipalDep,
) -> RejectionDetailsResponse:
    return await time_entry_service.get_rejection_details(session, principal, entry_id)


@mobile_time_entries_router.get("/{entry_id}/view", response_model=MobileTimeEntryViewEnvelope)
async def mobile_view_time_entry(
    entry_id: uuid.UUID,
    session: SessionDep,
    principal: MobilePrincipalDep,
) -> MobileTimeEntryViewEnvelope:
    """Owner-only view of an entry, including the payment that covers it."""
    entry = await time_entry_service.get_time_entry_view(session, principal, entry_id)
    return MobileTimeEntryViewEnvelope(time_entry=entry)


# ---------------------------------------------------------------------------
# Payments and balance
# ---------------------------------------------------------------------------


@mobile_payments_router.get("", response_model=MobilePaymentListEnvelope)
async def mobile_list_payments(
    session: SessionDep,
    principal: MobilePrincipalDep,
    user_id: uuid.UUID | None = Query(default=None),
    status_filter: PaymentStatus | None = Query(default=None, alias="status"),
    start_date: dt.date | None = Query(default=None),
    end_date: dt.date | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> MobilePaymentListEnvelope:
    result = await payment_service.list_payments(
        session, principal, user_id, status_filter, start_date, end_date, offset, limit
    )
    return MobilePaymentListEnvelope(payments=result.items, total=result.total)


@mobile_payments_router.post("", response_model=MobilePaymentEnvelope, status_code=status.HTTP_201_CREATED)
async def mobile_create_payment(
    payload: CreatePaymentPayload,
    session: SessionDep,
    principal: MobilePrincipalDep,
) -> MobilePaymentEnvelope:
    return MobilePaymentEnvelope(payment=await payment_service.create_payment(session, principal, payload))


@mobile_payments_router.get("/{payment_id}", response_model=MobilePaymentEnvelope)
async def mobile_get_payment(
    payment_id: uuid.UUID,
    session: SessionDep,
    principal: MobilePrincipalDep,
) -> MobilePaymentEnvelope:
    return MobilePaymentEnvelope(payment=await payment_service.get_payment(session, principal, payment_id))


@mobile_payments_router.put("/{payment_id}", response_model=MobilePaymentEnvelope)
async def mobile_update_payment(
    payment_id: uuid.UUID,
    payload: UpdatePaymentPayload,
    session: SessionDep,
    principal: MobilePrincipalDep,
) -> MobilePaymentEnvelope:
    payment = await payment_service.update_payment(session, principal, payment_id, payload)
    return MobilePaymentEnvelope(payment=payment)


@mobile_payments_router.put("/{payment_id}/confirm", response_model=MobilePaymentEnvelope)
async def mobile_confirm_payment(
    payment_id: uuid.UUID,
    session: SessionDep,
    principal: MobilePrincipalDep,
) -> MobilePaymentEnvelope:
    """Recipient confirms receipt."""
    return MobilePaymentEnvelope(payment=await payment_service.confirm_payment(session, principal, payment_id))


@mobile_users_router.get("/balance", response_model=MobileBalanceEnvelope)
async def mobile_balance(
    session: SessionDep,
    principal: MobilePrincipalDep,
    user_id: uuid.UUID | None = Query(default=None),
    start_date: dt.date | None = Query(default=None),
    end_date: dt.date | None = Query(default=None),
) -> MobileBalanceEnvelope:
    """Balance of the caller (or a visible user), defaulting to the current month."""
    if start_date is None and end_date is None:
        start_date, end_date = balance_service.current_month_period()
    balance = await balance_service.get_user_balance(
        session, principal, user_id or principal.id, start_date, end_date
    )
    return MobileBalanceEnvelope(balance=balance)


# ---------------------------------------------------------------------------
# Notifications and feedback
# ---------------------------------------------------------------------------


@mobile_notifications_router.get("", response_model=MobileNotificationListEnvelope)
async def mobile_list_notifications(
    session: SessionDep,
    principal: MobilePrincipalDep,
    read: bool | None = Query(default=None),
    limit: int = Query(default=20, ge=1, le=100),
) -> MobileNotificationListEnvelope:
    result = await notification_service.list_notifications(session, principal, read is False, limit)
    return MobileNotificationListEnvelope(notifications=result.items, unread_count=result.unread_count)


@mobile_notifications_router.put("", response_model=MessageResponse)
async def mobile_update_notifications(
    payload: MobileNotificationUpdatePayload,
    session: SessionDep,
    principal: MobilePrincipalDep,
) -> MessageResponse:
    if payload.id is not None and not payload.all:
        await notification_service.set_read(session, principal, payload.id, payload.read)
        return MessageResponse(message="Notificação atualizada")
    result = await notification_service.mark_all_read(session, principal)
    return MessageResponse(message=f"{result.updated} notificações marcadas como lidas")


@mobile_notifications_router.delete("", response_model=MessageResponse)
async def mobile_delete_notification(
    session: SessionDep,
    principal: MobilePrincipalDep,
    notification_id: uuid.UUID = Query(alias="id"),
) -> MessageResponse:
    await notification_service.delete_notification(session, principal, notification_id)
    return MessageResponse(message="Notificação excluída")


@mobile_feedback_router.post("", response_model=MobileFeedbackEnvelope, status_code=status.HTTP_201_CREATED)
async def mobile_submit_feedback(
    payload: SubmitFeedbackPayload,
    session: SessionDep,
    principal: MobilePrincipalDep,
    user_agent: str | None = Header(default=None),
) -> MobileFeedbackEnvelope:
    feedback = await feedback_service.submit_feedback(
        session, principal, payload, device=user_agent, source="mobile"
    )
    return MobileFeedbackEnvelope(feedback=feedback)


@mobile_feedback_router.get("", response_model=FeedbackListResponse)
async def mobile_list_feedback(
    session: SessionDep,
    principal: MobilePrincipalDep,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
) -> FeedbackListResponse:
    return await feedback_service.list_feedback(session, principal, offset, limit)


# ---------------------------------------------------------------------------
# Company administration
# ---------------------------------------------------------------------------


@mobile_admin_router.get("/users", response_model=MobileCompanyUserListEnvelope)
async def mobile_admin_list_users(
    session: SessionDep,
    principal: MobileStaffDep,
    role: Role | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> MobileCompanyUserListEnvelope:
    result = await user_service.list_users(session, principal, None, role, offset, limit)
    return MobileCompanyUserListEnvelope(users=result.items, total=result.total)


@mobile_admin_router.get("/users/{user_id}", response_model=MobileCompanyUserEnvelope)
async def mobile_admin_get_user(
    user_id: uuid.UUID,
    session: SessionDep,
    principal: MobileStaffDep,
) -> MobileCompanyUserEnvelope:
    return MobileCompanyUserEnvelope(user=await user_service.get_user(session, principal, user_id))


@mobile_admin_router.put("/users/{user_id}", response_model=MobileCompanyUserEnvelope)
async def mobile_admin_update_user(
    user_id: uuid.UUID,
    payload: UpdateUserPayload,
    session: SessionDep,
    principal: MobileStaffDep,
) -> MobileCompanyUserEnvelope:
    user = await user_service.update_user(session, principal, user_id, payload)
    return MobileCompanyUserEnvelope(user=user)


@mobile_admin_router.delete("/users/{user_id}", response_model=MessageResponse)
async def mobile_admin_delete_user(
    user_id: uuid.UUID,
    session: SessionDep,
    principal: MobileStaffDep,
) -> MessageResponse:
    await user_service.delete_user(session, principal, user_id)
    return MessageResponse(message="Usuário excluído com sucesso")


@mobile_admin_router.get("/payments", response_model=MobilePaymentListEnvelope)
async def mobile_admin_list_payments(
    session: SessionDep,
    principal: MobileStaffDep,
    user_id: uuid.UUID | None = Query(default=None),
    status_filter: PaymentStatus | None = Query(default=None, alias="status"),
    start_date: dt.date | None = Query(default=None),
    end_date: dt.date | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> MobilePaymentListEnvelope:
    """Every payment made to the caller's company, newest first."""
    result = await payment_service.list_payments(
        session, principal, user_id, status_filter, start_date, end_date, offset, limit
    )
    return MobilePaymentListEnvelope(payments=result.items, total=result.total)


# ---------------------------------------------------------------------------
# Dashboards and lookups
# ---------------------------------------------------------------------------


@mobile_misc_router.get("/api/mobile-projects", response_model=ProjectListResponse)
async def mobile_projects(session: SessionDep, principal: MobilePrincipalDep) -> ProjectListResponse:
    return await time_entry_service.list_projects(session, principal)


@mobile_misc_router.get("/api/mobile-dashboard", response_model=PersonalDashboardResponse)
async def mobile_dashboard(session: SessionDep, principal: MobilePrincipalDep) -> PersonalDashboardResponse:
    return await dashboard_service.get_personal_dashboard(session, principal)


@mobile_misc_router.get("/api/mobile-admin/dashboard-summary", response_model=CompanySummaryResponse)
@mobile_misc_router.get("/api/mobile-manager/dashboard-summary", response_model=CompanySummaryResponse)
async def mobile_company_summary(session: SessionDep, principal: MobilePrincipalDep) -> CompanySummaryResponse:
    return await dashboard_service.get_company_summary(session, principal)
