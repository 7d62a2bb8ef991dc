# ruff: noqa: TC003
"""Time-entry lifecycle.

An entry starts pending, is approved or rejected by an approver, and can be
edited or deleted by its owner only while it is not approved and not yet
covered by a payment. Editing a rejected entry sends it back to pending.
"""

from __future__ import annotations

import datetime as dt
import logging
import math
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from app.exceptions import Conflict, Forbidden, InvalidState, NotFound, ValidationFailed
from app.models.enums import NotificationType, PaymentStatus, RelatedType, Role, TimeEntryStatus
from app.models.notification import Notification
from app.models.payment import Payment, PaymentTimeEntry
from app.models.time_entry import TimeEntry
from app.models.user import User
from app.schemas.time_entry import (
    LinkedPaymentSummary,
    OverlapConflict,
    ProjectListResponse,
    RejectionDetailsResponse,
    RejectionHistoryItem,
    TimeEntryListResponse,
    TimeEntryResponse,
    TimeEntryViewResponse,
)
from app.services.notification import emit_notification, emit_notifications
from app.services.policy import Action, Resource, ResourceType, ensure_allowed
from app.services.user import get_user_or_404

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from app.schemas.auth import Principal
    from app.schemas.time_entry import CreateTimeEntryPayload, DecisionPayload, UpdateTimeEntryPayload

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Interval arithmetic
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Interval:
    """A half-open [start, end) span in seconds since midnight."""

    start: int
    end: int

    @classmethod
    def from_times(cls, start: dt.time, end: dt.time) -> Interval:
        return cls(_seconds(start), _seconds(end))

    def overlaps(self, other: Interval) -> bool:
        """Whether ``self`` (the new interval) collides with ``other`` (an existing one).

        Adjacent intervals such as 08:00-12:00 and 12:00-14:00 do not overlap.
        """
        starts_inside = other.start <= self.start < other.end
        ends_inside = other.start < self.end <= other.end
        encloses = self.start <= other.start and self.end >= other.end
        enclosed = other.start <= self.start and other.end >= self.end
        return starts_inside or ends_inside or encloses or enclosed

    def overlap_seconds(self, other: Interval) -> int:
        return max(0, min(self.end, other.end) - max(self.start, other.start))

    def overlap_minutes(self, other: Interval) -> int:
        """Overlap rounded up to whole minutes, so any real overlap reports at least 1."""
        return math.ceil(self.overlap_seconds(other) / 60)


def _seconds(value: dt.time) -> int:
    return value.hour * 3600 + value.minute * 60 + value.second


def _format_seconds(seconds: int) -> str:
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if secs:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{hours:02d}:{minutes:02d}"


def calculate_total_hours(start: dt.time, end: dt.time) -> float:
    """Hours between two times of the same day. Must be positive."""
    seconds = _seconds(end) - _seconds(start)
    if seconds <= 0:
        raise ValidationFailed(
            "O horário de término deve ser posterior ao horário de início",
            details={"end_time": ["Deve ser posterior ao horário de início"]},
        )
    return round(seconds / 3600, 2)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def build_time_entry_response(entry: TimeEntry, user_name: str | None = None) -> TimeEntryResponse:
    """Map a time entry model to its response schema."""
    return TimeEntryResponse(
        id=entry.id,
        user_id=entry.user_id,
        user_name=user_name,
        date=entry.date,
        start_time=entry.start_time,
        end_time=entry.end_time,
        total_hours=entry.total_hours,
        observation=entry.observation,
        project=entry.project,
        approved=entry.approved,
        rejected=entry.rejected,
        rejection_reason=entry.rejection_reason,
        status=entry.status,
        created_at=entry.created_at,
        updated_at=entry.updated_at,
    )


def _entry_resource(entry: TimeEntry, owner: User) -> Resource:
    return Resource(type=ResourceType.TIME_ENTRY, company_id=owner.company_id, owner_id=entry.user_id)


async def _get_entry_with_owner_or_404(session: AsyncSession, entry_id: uuid.UUID) -> tuple[TimeEntry, User]:
    """Fetch an entry and its owner. Raises 404 if not found."""
    result = await session.execute(
        select(TimeEntry, User).join(User, col(User.id) == col(TimeEntry.user_id)).where(col(TimeEntry.id) == entry_id)
    )
    row = result.first()
    if row is None:
        raise NotFound("Registro não encontrado")
    entry, owner = row
    return entry, owner


async def is_linked_to_payment(session: AsyncSession, entry_id: uuid.UUID) -> bool:
    result = await session.execute(
        select(PaymentTimeEntry.id).where(col(PaymentTimeEntry.time_entry_id) == entry_id).limit(1)
    )
    return result.first() is not None


async def _ensure_mutable(session: AsyncSession, entry: TimeEntry, verb: str) -> None:
    """Approved or paid entries are frozen."""
    if entry.approved:
        raise InvalidState(f"Não é possível {verb} um registro já aprovado")
    if await is_linked_to_payment(session, entry.id):
        raise InvalidState(f"Não é possível {verb} um registro que já está em um pagamento")


async def _check_overlap(
    session: AsyncSession,
    user_id: uuid.UUID,
    entry_date: dt.date,
    start: dt.time,
    end: dt.time,
    exclude_entry_id: uuid.UUID | None = None,
) -> None:
    """Raise 409 if the interval collides with another non-rejected entry that day."""
    query = select(TimeEntry).where(
        col(TimeEntry.user_id) == user_id,
        col(TimeEntry.date) == entry_date,
        col(TimeEntry.rejected).is_not(True),
    )
    if exclude_entry_id is not None:
        query = query.where(col(TimeEntry.id) != exclude_entry_id)

    result = await session.execute(query)
    new = Interval.from_times(start, end)

    conflicts: list[OverlapConflict] = []
    for existing in result.scalars().all():
        current = Interval.from_times(existing.start_time, existing.end_time)
        if not new.overlaps(current):
            continue
        period_start = max(new.start, current.start)
        period_end = min(new.end, current.end)
        conflicts.append(
            OverlapConflict(
                id=existing.id,
                date=existing.date,
                start_time=existing.start_time,
                end_time=existing.end_time,
                project=existing.project,
                status=existing.status,
                overlap_minutes=new.overlap_minutes(current),
                overlap_period=f"{_format_seconds(period_start)} - {_format_seconds(period_end)}",
            )
        )

    if conflicts:
        raise Conflict(
            "Conflito de horários detectado. Você já possui registros neste período.",
            details={"conflicts": [c.model_dump(mode="json") for c in conflicts]},
        )


async def _approver_ids(session: AsyncSession, company_id: uuid.UUID | None, exclude: uuid.UUID) -> list[uuid.UUID]:
    if company_id is None:
        return []
    result = await session.execute(
        select(User.id).where(
            col(User.company_id) == company_id,
            col(User.role).in_([Role.MANAGER.value, Role.ADMIN.value]),
            col(User.id) != exclude,
        )
    )
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def list_time_entries(
    session: AsyncSession,
    principal: Principal,
    user_id: uuid.UUID | None = None,
    start_date: dt.date | None = None,
    end_date: dt.date | None = None,
    status_filter: TimeEntryStatus | None = None,
    unpaid: bool = False,
    offset: int = 0,
    limit: int = 50,
) -> TimeEntryListResponse:
    """List entries visible to the caller with optional filters.

    Employees only ever see their own entries; admins and managers see their
    company's; developers see everything.
    """
    query = select(TimeEntry, User.name).join(User, col(User.id) == col(TimeEntry.user_id))

    if principal.role == Role.EMPLOYEE:
        query = query.where(col(TimeEntry.user_id) == principal.id)
    elif principal.role in (Role.ADMIN, Role.MANAGER):
        if principal.company_id is None:
            return TimeEntryListResponse(items=[], total=0)
        query = query.where(col(User.company_id) == principal.company_id)

    if user_id is not None:
        query = query.where(col(TimeEntry.user_id) == user_id)
    if start_date is not None:
        query = query.where(col(TimeEntry.date) >= start_date)
    if end_date is not None:
        query = query.where(col(TimeEntry.date) <= end_date)
    if status_filter == TimeEntryStatus.APPROVED:
        query = query.where(col(TimeEntry.approved).is_(True))
    elif status_filter == TimeEntryStatus.REJECTED:
        query = query.where(col(TimeEntry.rejected).is_(True))
    elif status_filter == TimeEntryStatus.PENDING:
        query = query.where(col(TimeEntry.approved).is_not(True), col(TimeEntry.rejected).is_not(True))
    if unpaid:
        query = query.where(col(TimeEntry.id).not_in(select(PaymentTimeEntry.time_entry_id)))

    count_result = await session.execute(select(func.count()).select_from(query.subquery()))
    total = count_result.scalar_one()

    query = query.order_by(col(TimeEntry.date).desc(), col(TimeEntry.start_time).desc()).offset(offset).limit(limit)
    result = await session.execute(query)
    items = [build_time_entry_response(entry, name) for entry, name in result.all()]
    return TimeEntryListResponse(items=items, total=total)


async def get_time_entry(session: AsyncSession, principal: Principal, entry_id: uuid.UUID) -> TimeEntryResponse:
    entry, owner = await _get_entry_with_owner_or_404(session, entry_id)
    ensure_allowed(principal, Action.READ, _entry_resource(entry, owner))
    return build_time_entry_response(entry, owner.name)


async def get_time_entry_view(
    session: AsyncSession,
    principal: Principal,
    entry_id: uuid.UUID,
) -> TimeEntryViewResponse:
    """The caller's own entry with the payment that covers it, if any."""
    entry, owner = await _get_entry_with_owner_or_404(session, entry_id)
    if entry.user_id != principal.id:
        raise Forbidden("Você não tem permissão para visualizar este registro")

    result = await session.execute(
        select(Payment)
        .join(PaymentTimeEntry, col(PaymentTimeEntry.payment_id) == col(Payment.id))
        .where(col(PaymentTimeEntry.time_entry_id) == entry.id)
    )
    payment = result.scalar_one_or_none()
    linked = (
        LinkedPaymentSummary(
            id=payment.id,
            amount=payment.amount,
            date=payment.date,
            reference=payment.reference,
            description=payment.description,
            status=PaymentStatus(payment.status),
        )
        if payment is not None
        else None
    )
    return TimeEntryViewResponse(**build_time_entry_response(entry, owner.name).model_dump(), payment=linked)


async def create_time_entry(
    session: AsyncSession,
    principal: Principal,
    payload: CreateTimeEntryPayload,
) -> TimeEntryResponse:
    """Log hours for the caller, then tell the company's approvers.

    1. Resolve the caller and check policy.
    2. Derive total hours.
    3. Reject overlapping intervals on the same day.
    4. Commit, then notify approvers (best effort).
    """
    owner = await get_user_or_404(session, principal.id)
    ensure_allowed(
        principal,
        Action.CREATE,
        Resource(type=ResourceType.TIME_ENTRY, company_id=owner.company_id, owner_id=owner.id),
    )

    total_hours = calculate_total_hours(payload.start_time, payload.end_time)
    await _check_overlap(session, owner.id, payload.date, payload.start_time, payload.end_time)

    entry = TimeEntry(
        user_id=owner.id,
        date=payload.date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        total_hours=total_hours,
        observation=payload.observation,
        project=payload.project,
    )
    session.add(entry)
    await session.commit()
    await session.refresh(entry)

    response = build_time_entry_response(entry, owner.name)
    owner_name = owner.name
    logger.info("Time entry %s created for user %s (%.2fh)", entry.id, owner.id, total_hours)

    approvers = await _approver_ids(session, owner.company_id, exclude=owner.id)
    await emit_notifications(
        session,
        approvers,
        title="Novo registro de horas",
        message=f"{owner_name} registrou {total_hours:g}h em {payload.date:%d/%m/%Y} e aguarda aprovação.",
        type_=NotificationType.INFO,
        related_id=response.id,
        related_type=RelatedType.TIME_ENTRY,
    )
    return response


async def update_time_entry(
    session: AsyncSession,
    principal: Principal,
    entry_id: uuid.UUID,
    payload: UpdateTimeEntryPayload,
) -> TimeEntryResponse:
    """Edit a pending or rejected entry. A rejected entry returns to pending."""
    entry, owner = await _get_entry_with_owner_or_404(session, entry_id)
    ensure_allowed(principal, Action.UPDATE, _entry_resource(entry, owner))
    await _ensure_mutable(session, entry, "editar")

    changes = payload.model_dump(exclude_unset=True)
    new_date = payload.date if payload.date is not None else entry.date
    new_start = payload.start_time if payload.start_time is not None else entry.start_time
    new_end = payload.end_time if payload.end_time is not None else entry.end_time

    total_hours = calculate_total_hours(new_start, new_end)
    await _check_overlap(session, entry.user_id, new_date, new_start, new_end, exclude_entry_id=entry.id)

    entry.date = new_date
    entry.start_time = new_start
    entry.end_time = new_end
    entry.total_hours = total_hours
    if "observation" in changes:
        entry.observation = payload.observation
    if "project" in changes:
        entry.project = payload.project

    if entry.rejected:
        entry.approved = None
        entry.rejected = None
        entry.rejection_reason = None
        logger.info("Rejected time entry %s resubmitted as pending", entry.id)

    await session.commit()
    await session.refresh(entry)
    return build_time_entry_response(entry, owner.name)


async def delete_time_entry(session: AsyncSession, principal: Principal, entry_id: uuid.UUID) -> None:
    entry, owner = await _get_entry_with_owner_or_404(session, entry_id)
    ensure_allowed(principal, Action.DELETE, _entry_resource(entry, owner))
    await _ensure_mutable(session, entry, "excluir")

    await session.delete(entry)
    await session.commit()
    logger.info("Time entry %s deleted by %s", entry_id, principal.id)


async def decide_time_entry(
    session: AsyncSession,
    principal: Principal,
    entry_id: uuid.UUID,
    payload: DecisionPayload,
) -> TimeEntryResponse:
    """Approve or reject a pending entry.

    The decision is committed on its own; the owner's notification follows
    and may fail without undoing it.
    """
    entry, owner = await _get_entry_with_owner_or_404(session, entry_id)
    action = Action.APPROVE if payload.approved else Action.REJECT
    ensure_allowed(principal, action, _entry_resource(entry, owner))

    if entry.status != TimeEntryStatus.PENDING:
        raise InvalidState("Este registro já foi aprovado ou rejeitado")

    reason = (payload.rejection_reason or "").strip()
    if not payload.approved and not reason:
        raise ValidationFailed(
            "O motivo da rejeição é obrigatório",
            details={"rejection_reason": ["Informe o motivo da rejeição"]},
        )

    if payload.approved:
        entry.approved = True
        entry.rejected = False
        entry.rejection_reason = None
    else:
        entry.approved = False
        entry.rejected = True
        entry.rejection_reason = reason

    await session.commit()
    await session.refresh(entry)
    response = build_time_entry_response(entry, owner.name)
    logger.info("Time entry %s %s by %s", entry.id, response.status, principal.id)

    when = f"{response.date:%d/%m/%Y}"
    if payload.approved:
        await emit_notification(
            session,
            response.user_id,
            title="Registro de horas aprovado",
            message=f"Seu registro de {response.total_hours:g}h em {when} foi aprovado.",
            type_=NotificationType.SUCCESS,
            related_id=response.id,
            related_type=RelatedType.TIME_ENTRY,
        )
    else:
        await emit_notification(
            session,
            response.user_id,
            title="Registro de horas rejeitado",
            message=f"Seu registro de {response.total_hours:g}h em {when} foi rejeitado. Motivo: {reason}",
            type_=NotificationType.ERROR,
            related_id=response.id,
            related_type=RelatedType.TIME_ENTRY,
        )
    return response


async def get_rejection_details(
    session: AsyncSession,
    principal: Principal,
    entry_id: uuid.UUID,
) -> RejectionDetailsResponse:
    """Explain a rejection to the entry's owner."""
    entry, owner = await _get_entry_with_owner_or_404(session, entry_id)
    if entry.user_id != principal.id:
        raise Forbidden("Você não tem permissão para visualizar este registro")
    if not entry.rejected:
        raise InvalidState("Este registro não foi rejeitado")

    result = await session.execute(
        select(Notification)
        .where(
            col(Notification.related_id) == str(entry.id),
            col(Notification.related_type) == RelatedType.TIME_ENTRY.value,
            col(Notification.type) == NotificationType.ERROR.value,
        )
        .order_by(col(Notification.created_at).desc())
        .limit(5)
    )
    history = [
        RejectionHistoryItem(id=n.id, title=n.title, message=n.message, created_at=n.created_at)
        for n in result.scalars().all()
    ]
    return RejectionDetailsResponse(
        time_entry=build_time_entry_response(entry, owner.name),
        rejection_reason=entry.rejection_reason or "Nenhum motivo especificado",
        rejected_at=history[0].created_at if history else None,
        history=history,
    )


async def list_projects(session: AsyncSession, principal: Principal) -> ProjectListResponse:
    """Distinct project names used by the caller or anyone in the caller's company."""
    owners = select(User.id).where(col(User.id) == principal.id)
    if principal.company_id is not None:
        owners = select(User.id).where(
            (col(User.id) == principal.id) | (col(User.company_id) == principal.company_id)
        )
    result = await session.execute(
        select(TimeEntry.project)
        .where(col(TimeEntry.user_id).in_(owners), col(TimeEntry.project).is_not(None))
        .distinct()
    )
    projects = sorted({p.strip() for p in result.scalars().all() if p and p.strip()})
    return ProjectListResponse(projects=projects)
