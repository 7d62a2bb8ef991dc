# ruff: noqa: B008
from __future__ import annotations

from fastapi import APIRouter, Header, Query, status

from app.api.deps import PrincipalDep
from app.db import SessionDep
from app.schemas.feedback import FeedbackListResponse, FeedbackResponse, SubmitFeedbackPayload
from app.services import feedback as feedback_service

feedback_router = APIRouter(prefix="/api/feedback", tags=["feedback"])


@feedback_router.post("", response_model=FeedbackResponse, status_code=status.HTTP_201_CREATED)
async def submit_feedback(
    payload: SubmitFeedbackPayload,
    session: SessionDep,
    principal: PrincipalDep,
    user_agent: str | None = Header(default=None),
) -> FeedbackResponse:
    return await feedback_service.submit_feedback(session, principal, payload, device=user_agent, source="web")


@feedback_router.get("", response_model=FeedbackListResponse)
async def list_feedback(
    session: SessionDep,
    principal: PrincipalDep,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=20, ge=1, le=100),
) -> FeedbackListResponse:
    return await feedback_service.list_feedback(session, principal, offset, limit)
