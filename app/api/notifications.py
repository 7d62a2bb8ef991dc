# ruff: noqa: B008, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Query, status

from app.api.deps import PrincipalDep
from app.db import SessionDep
from app.schemas.notification import (
    CreateNotificationPayload,
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
    SetReadPayload,
)
from app.services import notification as notification_service

notifications_router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@notifications_router.get("", response_model=NotificationListResponse)
async def list_notifications(
    session: SessionDep,
    principal: PrincipalDep,
    unread_only: bool = Query(default=False),
    limit: int = Query(default=20, ge=1, le=100),
) -> NotificationListResponse:
    """The caller's notifications, newest first, with the unread count."""
    return await notification_service.list_notifications(session, principal, unread_only, limit)


@notifications_router.post("", response_model=NotificationResponse, status_code=status.HTTP_201_CREATED)
async def create_notification(
    payload: CreateNotificationPayload,
    session: SessionDep,
    principal: PrincipalDep,
) -> NotificationResponse:
    return await notification_service.create_notification(session, principal, payload)


@notifications_router.post("/mark-all-read", response_model=MarkAllReadResponse)
async def mark_all_read(session: SessionDep, principal: PrincipalDep) -> MarkAllReadResponse:
    return await notification_service.mark_all_read(session, principal)


@notifications_router.put("/{notification_id}", response_model=NotificationResponse)
async def set_read(
    notification_id: uuid.UUID,
    payload: SetReadPayload,
    session: SessionDep,
    principal: PrincipalDep,
) -> NotificationResponse:
    """Mark one of the caller's notifications as read or unread."""
    return await notification_service.set_read(session, principal, notification_id, payload.read)


@notifications_router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notification(notification_id: uuid.UUID, session: SessionDep, principal: PrincipalDep) -> None:
    await notification_service.delete_notification(session, principal, notification_id)
