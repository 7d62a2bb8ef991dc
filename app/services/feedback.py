from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from app.models.enums import FeedbackPriority, FeedbackType, NotificationType, RelatedType
from app.models.feedback import Feedback
from app.schemas.feedback import FeedbackListResponse, FeedbackResponse
from app.services.notification import emit_notification
from app.services.user import get_user_or_404

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from app.schemas.auth import Principal
    from app.schemas.feedback import SubmitFeedbackPayload

logger = logging.getLogger(__name__)


def _build_feedback_response(feedback: Feedback) -> FeedbackResponse:
    return FeedbackResponse(
        id=feedback.id,
        type=FeedbackType(feedback.type),
        title=feedback.title,
        description=feedback.description,
        priority=FeedbackPriority(feedback.priority),
        source=feedback.source,
        device=feedback.device,
        metadata=feedback.metadata_json,
        created_at=feedback.created_at,
    )


async def submit_feedback(
    session: AsyncSession,
    principal: Principal,
    payload: SubmitFeedbackPayload,
    *,
    device: str | None = None,
    source: str = "web",
) -> FeedbackResponse:
    """Store feedback with a snapshot of the sender, then acknowledge it."""
    user = await get_user_or_404(session, principal.id)

    feedback = Feedback(
        user_id=user.id,
        user_name=user.name,
        user_email=user.email,
        user_role=user.role,
        company_id=user.company_id,
        type=payload.type.value,
        title=payload.title,
        description=payload.description,
        priority=payload.priority.value,
        device=device[:500] if device else None,
        source=source,
        metadata_json=payload.metadata,
    )
    session.add(feedback)
    await session.commit()
    await session.refresh(feedback)

    response = _build_feedback_response(feedback)
    if payload.type == FeedbackType.BUG and payload.priority == FeedbackPriority.HIGH:
        logger.warning("High priority bug reported by %s: %s", user.id, payload.title)
    else:
        logger.info("Feedback %s (%s) received from %s", feedback.id, payload.type, user.id)

    await emit_notification(
        session,
        principal.id,
        title="Feedback enviado",
        message="Obrigado! Seu feedback foi recebido e será analisado pela equipe.",
        type_=NotificationType.INFO,
        related_id=response.id,
        related_type=RelatedType.FEEDBACK,
    )
    return response


async def list_feedback(
    session: AsyncSession,
    principal: Principal,
    offset: int = 0,
    limit: int = 20,
) -> FeedbackListResponse:
    """The caller's own submissions, newest first."""
    query = select(Feedback).where(col(Feedback.user_id) == principal.id)
    count_result = await session.execute(select(func.count()).select_from(query.subquery()))
    result = await session.execute(
        query.order_by(col(Feedback.created_at).desc()).offset(offset).limit(limit)
    )
    return FeedbackListResponse(
        items=[_build_feedback_response(f) for f in result.scalars().all()],
        total=count_result.scalar_one(),
    )
