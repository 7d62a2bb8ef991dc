# ruff: noqa: TC003
from __future__ import annotations

import datetime as dt
import logging
import uuid
from collections.abc import Sequence
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from app.exceptions import Conflict, Forbidden, InvalidState, NotFound
from app.models.base import now_utc
from app.models.enums import NotificationType, PaymentStatus, RelatedType, Role
from app.models.payment import Payment, PaymentTimeEntry
from app.models.time_entry import TimeEntry
from app.models.user import User
from app.schemas.payment import PaymentListResponse, PaymentResponse, PaymentTimeEntryResponse
from app.services.notification import emit_notification
from app.services.policy import Action, Resource, ResourceType, ensure_allowed
from app.services.user import get_user_or_404

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from app.schemas.auth import Principal
    from app.schemas.payment import CreatePaymentPayload, UpdatePaymentPayload

logger = logging.getLogger(__name__)

CONFIRMABLE_STATUSES = frozenset({PaymentStatus.PENDING.value, PaymentStatus.AWAITING_CONFIRMATION.value})


def allocate_amounts(entries: Sequence[TimeEntry], amount: float) -> dict[uuid.UUID, float]:
    """Split ``amount`` across entries in proportion to their hours.

    Shares are rounded to cents; the last entry absorbs the rounding
    difference so the shares always add up to ``amount``.
    """
    total_hours = sum(e.total_hours for e in entries)
    shares: dict[uuid.UUID, float] = {}
    allocated = 0.0
    for index, entry in enumerate(entries):
        if index == len(entries) - 1:
            shares[entry.id] = round(amount - allocated, 2)
        else:
            share = round(entry.total_hours / total_hours * amount, 2)
            shares[entry.id] = share
            allocated += share
    return shares


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_payment_response(payment: Payment, links: Sequence[PaymentTimeEntry] = ()) -> PaymentResponse:
    """Map a payment model and its entry links to the response schema."""
    return PaymentResponse(
        id=payment.id,
        user_id=payment.user_id,
        creator_id=payment.creator_id,
        amount=payment.amount,
        date=payment.date,
        period_start=payment.period_start,
        period_end=payment.period_end,
        description=payment.description,
        reference=payment.reference,
        payment_method=payment.payment_method,
        status=PaymentStatus(payment.status),
        receipt_url=payment.receipt_url,
        confirmed_at=payment.confirmed_at,
        time_entries=[PaymentTimeEntryResponse(time_entry_id=link.time_entry_id, amount=link.amount) for link in links],
        created_at=payment.created_at,
    )


async def _get_payment_with_recipient_or_404(session: AsyncSession, payment_id: uuid.UUID) -> tuple[Payment, User]:
    result = await session.execute(
        select(Payment, User).join(User, col(User.id) == col(Payment.user_id)).where(col(Payment.id) == payment_id)
    )
    row = result.first()
    if row is None:
        raise NotFound("Pagamento não encontrado")
    payment, recipient = row
    return payment, recipient


async def _links_for(session: AsyncSession, payment_id: uuid.UUID) -> Sequence[PaymentTimeEntry]:
    result = await session.execute(
        select(PaymentTimeEntry).where(col(PaymentTimeEntry.payment_id) == payment_id)
    )
    return result.scalars().all()


def _payment_resource(payment: Payment, recipient: User) -> Resource:
    return Resource(type=ResourceType.PAYMENT, company_id=recipient.company_id, owner_id=payment.user_id)


async def _load_payable_entries(
    session: AsyncSession,
    recipient_id: uuid.UUID,
    entry_ids: list[uuid.UUID],
) -> list[TimeEntry]:
    """Load the entries to pay and enforce the payability rules.

    Missing ids are 404, entries of another user or not approved are
    invalid, entries already linked to a payment are a conflict.
    """
    result = await session.execute(select(TimeEntry).where(col(TimeEntry.id).in_(entry_ids)))
    by_id = {entry.id: entry for entry in result.scalars().all()}

    missing = [str(i) for i in entry_ids if i not in by_id]
    if missing:
        raise NotFound("Alguns registros de horas não foram encontrados", details={"time_entry_ids": missing})

    foreign = [str(e.id) for e in by_id.values() if e.user_id != recipient_id]
    if foreign:
        raise InvalidState(
            "Alguns registros não pertencem ao usuário selecionado",
            details={"time_entry_ids": foreign},
        )

    not_approved = [str(e.id) for e in by_id.values() if not e.approved]
    if not_approved:
        raise InvalidState(
            "Apenas registros aprovados podem ser incluídos em um pagamento",
            details={"time_entry_ids": not_approved},
        )

    linked = await session.execute(
        select(PaymentTimeEntry.time_entry_id).where(col(PaymentTimeEntry.time_entry_id).in_(entry_ids))
    )
    already_paid = [str(i) for i in linked.scalars().all()]
    if already_paid:
        raise Conflict(
            "Alguns registros já foram incluídos em outro pagamento",
            details={"time_entry_ids": already_paid},
        )

    return [by_id[i] for i in entry_ids]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def create_payment(
    session: AsyncSession,
    principal: Principal,
    payload: CreatePaymentPayload,
) -> PaymentResponse:
    """Pay a recipient for a set of approved, unpaid entries.

    1. Resolve recipient and check policy.
    2. Validate every entry (exists, owned, approved, unpaid).
    3. Allocate the amount proportionally to hours.
    4. Write payment and links in one transaction; a concurrent claim on
       the same entry hits the unique constraint and becomes a 409.
    5. Notify the recipient (best effort).
    """
    recipient = await get_user_or_404(session, payload.user_id)
    ensure_allowed(
        principal,
        Action.CREATE,
        Resource(type=ResourceType.PAYMENT, company_id=recipient.company_id, owner_id=recipient.id),
    )

    entry_ids = list(dict.fromkeys(payload.time_entry_ids))
    entries = await _load_payable_entries(session, recipient.id, entry_ids)
    shares = allocate_amounts(entries, payload.amount)

    payment = Payment(
        user_id=recipient.id,
        creator_id=principal.id,
        amount=payload.amount,
        date=payload.date,
        period_start=payload.period_start,
        period_end=payload.period_end,
        description=payload.description,
        reference=payload.reference,
        payment_method=payload.payment_method.value,
        status=payload.status.value,
        confirmed_at=now_utc() if payload.status == PaymentStatus.COMPLETED else None,
    )
    session.add(payment)
    links = [
        PaymentTimeEntry(payment_id=payment.id, time_entry_id=entry_id, amount=share)
        for entry_id, share in shares.items()
    ]

    try:
        # Links reference the payment row, so it goes first.
        await session.flush()
        session.add_all(links)
        await session.flush()
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise Conflict("Alguns registros já foram incluídos em outro pagamento") from None

    await session.refresh(payment)
    response = _build_payment_response(payment, links)
    logger.info(
        "Payment %s of %.2f created for user %s covering %d entries",
        payment.id,
        payload.amount,
        recipient.id,
        len(links),
    )

    await emit_notification(
        session,
        response.user_id,
        title="Novo pagamento registrado",
        message=f"Um pagamento de R$ {response.amount:.2f} foi registrado para você.",
        type_=NotificationType.SUCCESS,
        related_id=response.id,
        related_type=RelatedType.PAYMENT,
    )
    return response


async def list_payments(
    session: AsyncSession,
    principal: Principal,
    user_id: uuid.UUID | None = None,
    status_filter: PaymentStatus | None = None,
    start_date: dt.date | None = None,
    end_date: dt.date | None = None,
    offset: int = 0,
    limit: int = 50,
) -> PaymentListResponse:
    """List payments visible to the caller, newest first."""
    query = select(Payment).join(User, col(User.id) == col(Payment.user_id))
    if principal.role == Role.EMPLOYEE:
        query = query.where(col(Payment.user_id) == principal.id)
    elif principal.role in (Role.ADMIN, Role.MANAGER):
        if principal.company_id is None:
            return PaymentListResponse(items=[], total=0)
        query = query.where(col(User.company_id) == principal.company_id)

    if user_id is not None:
        query = query.where(col(Payment.user_id) == user_id)
    if status_filter is not None:
        query = query.where(col(Payment.status) == status_filter.value)
    if start_date is not None:
        query = query.where(col(Payment.date) >= start_date)
    if end_date is not None:
        query = query.where(col(Payment.date) <= end_date)

    count_result = await session.execute(select(func.count()).select_from(query.subquery()))
    total = count_result.scalar_one()

    result = await session.execute(query.order_by(col(Payment.date).desc()).offset(offset).limit(limit))
    payments = result.scalars().all()

    links_by_payment: dict[uuid.UUID, list[PaymentTimeEntry]] = {p.id: [] for p in payments}
    if payments:
        links = await session.execute(
            select(PaymentTimeEntry).where(col(PaymentTimeEntry.payment_id).in_(list(links_by_payment)))
        )
        for link in links.scalars().all():
            links_by_payment[link.payment_id].append(link)

    items = [_build_payment_response(p, links_by_payment[p.id]) for p in payments]
    return PaymentListResponse(items=items, total=total)


async def get_payment(session: AsyncSession, principal: Principal, payment_id: uuid.UUID) -> PaymentResponse:
    payment, recipient = await _get_payment_with_recipient_or_404(session, payment_id)
    ensure_allowed(principal, Action.READ, _payment_resource(payment, recipient))
    return _build_payment_response(payment, await _links_for(session, payment.id))


async def confirm_payment(session: AsyncSession, principal: Principal, payment_id: uuid.UUID) -> PaymentResponse:
    """Recipient acknowledges receipt; the payment becomes completed."""
    payment, _recipient = await _get_payment_with_recipient_or_404(session, payment_id)
    if payment.user_id != principal.id:
        raise Forbidden("Apenas o destinatário pode confirmar este pagamento")
    if payment.status not in CONFIRMABLE_STATUSES:
        raise InvalidState("Este pagamento não pode ser confirmado no status atual")

    payment.status = PaymentStatus.COMPLETED.value
    payment.confirmed_at = now_utc()
    await session.commit()
    await session.refresh(payment)

    response = _build_payment_response(payment, await _links_for(session, payment.id))
    logger.info("Payment %s confirmed by recipient %s", payment.id, principal.id)

    await emit_notification(
        session,
        payment.creator_id,
        title="Pagamento confirmado",
        message=f"O pagamento de R$ {response.amount:.2f} foi confirmado pelo destinatário.",
        type_=NotificationType.SUCCESS,
        related_id=response.id,
        related_type=RelatedType.PAYMENT,
    )
    return response


async def update_payment(
    session: AsyncSession,
    principal: Principal,
    payment_id: uuid.UUID,
    payload: UpdatePaymentPayload,
) -> PaymentResponse:
    """Edit a payment. A recipient without management rights may only confirm it."""
    payment, recipient = await _get_payment_with_recipient_or_404(session, payment_id)
    ensure_allowed(principal, Action.UPDATE, _payment_resource(payment, recipient))

    changes = payload.model_dump(exclude_unset=True)
    if principal.role == Role.EMPLOYEE:
        if changes.keys() != {"status"} or payload.status != PaymentStatus.COMPLETED:
            raise Forbidden("Você só pode confirmar o recebimento do pagamento")
        return await confirm_payment(session, principal, payment_id)

    if "status" in changes and payload.status is not None:
        payment.status = payload.status.value
        if payload.status == PaymentStatus.COMPLETED and payment.confirmed_at is None:
            payment.confirmed_at = now_utc()
    if "description" in changes:
        payment.description = payload.description
    if "reference" in changes:
        payment.reference = payload.reference
    if "payment_method" in changes and payload.payment_method is not None:
        payment.payment_method = payload.payment_method.value
    if "receipt_url" in changes:
        payment.receipt_url = payload.receipt_url

    await session.commit()
    await session.refresh(payment)
    return _build_payment_response(payment, await _links_for(session, payment.id))


async def delete_payment(session: AsyncSession, principal: Principal, payment_id: uuid.UUID) -> None:
    """Cancel a payment, releasing its entries so they can be paid again."""
    payment, recipient = await _get_payment_with_recipient_or_404(session, payment_id)
    ensure_allowed(principal, Action.DELETE, _payment_resource(payment, recipient))

    recipient_id = payment.user_id
    amount = payment.amount
    await session.execute(delete(PaymentTimeEntry).where(col(PaymentTimeEntry.payment_id) == payment.id))
    await session.delete(payment)
    await session.commit()
    logger.info("Payment %s deleted by %s", payment_id, principal.id)

    await emit_notification(
        session,
        recipient_id,
        title="Pagamento cancelado",
        message=f"O pagamento de R$ {amount:.2f} foi cancelado.",
        type_=NotificationType.WARNING,
        related_id=payment_id,
        related_type=RelatedType.PAYMENT,
    )
