# ruff: noqa: TC003
"""Notifications: best-effort emission plus the recipient's inbox operations."""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from typing import TYPE_CHECKING

from sqlalchemy import func, select, update
from sqlmodel import col

from app.exceptions import NotFound
from app.models.enums import NotificationType
from app.models.notification import Notification
from app.models.user import User
from app.schemas.notification import (
    MarkAllReadResponse,
    NotificationListResponse,
    NotificationResponse,
)
from app.services.policy import Action, Resource, ResourceType, ensure_allowed

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from app.schemas.auth import Principal
    from app.schemas.notification import CreateNotificationPayload

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_notification_response(notification: Notification) -> NotificationResponse:
    return NotificationResponse(
        id=notification.id,
        user_id=notification.user_id,
        title=notification.title,
        message=notification.message,
        type=NotificationType(notification.type),
        read=notification.read,
        related_id=notification.related_id,
        related_type=notification.related_type,
        created_at=notification.created_at,
    )


async def _get_own_notification_or_404(
    session: AsyncSession,
    principal: Principal,
    notification_id: uuid.UUID,
) -> Notification:
    """Fetch a notification owned by the caller. Others' are invisible."""
    result = await session.execute(
        select(Notification).where(
            col(Notification.id) == notification_id,
            col(Notification.user_id) == principal.id,
        )
    )
    notification = result.scalar_one_or_none()
    if notification is None:
        raise NotFound("Notificação não encontrada")
    return notification


async def _insert_notifications(session: AsyncSession, notifications: list[Notification]) -> None:
    session.add_all(notifications)
    await session.commit()


# ---------------------------------------------------------------------------
# Emission
# ---------------------------------------------------------------------------


async def emit_notifications(
    session: AsyncSession,
    user_ids: Iterable[uuid.UUID],
    *,
    title: str,
    message: str,
    type_: NotificationType = NotificationType.INFO,
    related_id: uuid.UUID | str | None = None,
    related_type: str | None = None,
) -> bool:
    """Insert one notification per recipient in its own transaction.

    Must be called after the triggering write has been committed. A failure
    is rolled back and logged, never raised: the caller's operation already
    succeeded. Returns whether the notifications were stored.
    """
    recipients = list(dict.fromkeys(user_ids))
    if not recipients:
        return True

    notifications = [
        Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=type_.value,
            related_id=str(related_id) if related_id is not None else None,
            related_type=related_type,
        )
        for user_id in recipients
    ]
    try:
        await _insert_notifications(session, notifications)
    except Exception:
        await session.rollback()
        logger.exception("Failed to emit notification %r to %d recipient(s)", title, len(recipients))
        return False
    return True


async def emit_notification(
    session: AsyncSession,
    user_id: uuid.UUID,
    *,
    title: str,
    message: str,
    type_: NotificationType = NotificationType.INFO,
    related_id: uuid.UUID | str | None = None,
    related_type: str | None = None,
) -> bool:
    """Best-effort notification to a single user. See :func:`emit_notifications`."""
    return await emit_notifications(
        session,
        [user_id],
        title=title,
        message=message,
        type_=type_,
        related_id=related_id,
        related_type=related_type,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def count_unread(session: AsyncSession, user_id: uuid.UUID) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(Notification)
        .where(col(Notification.user_id) == user_id, col(Notification.read).is_(False))
    )
    return result.scalar_one()


async def list_notifications(
    session: AsyncSession,
    principal: Principal,
    unread_only: bool = False,
    limit: int = 20,
) -> NotificationListResponse:
    """List the caller's own notifications, newest first."""
    query = select(Notification).where(col(Notification.user_id) == principal.id)
    if unread_only:
        query = query.where(col(Notification.read).is_(False))
    query = query.order_by(col(Notification.created_at).desc()).limit(limit)

    result = await session.execute(query)
    items = [_build_notification_response(n) for n in result.scalars().all()]
    return NotificationListResponse(items=items, unread_count=await count_unread(session, principal.id))


async def create_notification(
    session: AsyncSession,
    principal: Principal,
    payload: CreateNotificationPayload,
) -> NotificationResponse:
    """Send a manual notification to a user the caller may address."""
    target = await session.get(User, payload.user_id)
    if target is None:
        raise NotFound("Usuário não encontrado")

    ensure_allowed(
        principal,
        Action.CREATE,
        Resource(type=ResourceType.NOTIFICATION, company_id=target.company_id),
    )

    notification = Notification(
        user_id=target.id,
        title=payload.title,
        message=payload.message,
        type=payload.type.value,
        related_id=payload.related_id,
        related_type=payload.related_type,
    )
    session.add(notification)
    await session.commit()
    await session.refresh(notification)
    return _build_notification_response(notification)


async def set_read(
    session: AsyncSession,
    principal: Principal,
    notification_id: uuid.UUID,
    read: bool,
) -> NotificationResponse:
    """Toggle the read flag. Reversible."""
    notification = await _get_own_notification_or_404(session, principal, notification_id)
    notification.read = read
    await session.commit()
    await session.refresh(notification)
    return _build_notification_response(notification)


async def mark_all_read(session: AsyncSession, principal: Principal) -> MarkAllReadResponse:
    result = await session.execute(
        update(Notification)
        .where(col(Notification.user_id) == principal.id, col(Notification.read).is_(False))
        .values(read=True)
    )
    await session.commit()
    return MarkAllReadResponse(updated=result.rowcount or 0)  # ty: ignore[unresolved-attribute]


async def delete_notification(
    session: AsyncSession,
    principal: Principal,
    notification_id: uuid.UUID,
) -> None:
    notification = await _get_own_notification_or_404(session, principal, notification_id)
    await session.delete(notification)
    await session.commit()
