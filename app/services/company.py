# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from app.exceptions import Conflict, NotFound
from app.models.company import Company
from app.models.enums import PlanType, Role
from app.models.feedback import Feedback
from app.models.notification import Notification
from app.models.payment import Payment, PaymentTimeEntry
from app.models.time_entry import TimeEntry
from app.models.user import User
from app.schemas.company import CompanyListResponse, CompanyResponse
from app.services.policy import Action, Resource, ResourceType, ensure_allowed
from app.services.security import hash_password
from app.services.user import ensure_email_available

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from app.schemas.auth import Principal
    from app.schemas.company import CreateCompanyPayload, UpdateCompanyPayload

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _build_company_response(company: Company, user_count: int = 0) -> CompanyResponse:
    return CompanyResponse(
        id=company.id,
        name=company.name,
        plan=PlanType(company.plan),
        active=company.active,
        user_count=user_count,
        created_at=company.created_at,
        updated_at=company.updated_at,
    )


def company_resource(company_id: uuid.UUID) -> Resource:
    return Resource(type=ResourceType.COMPANY, company_id=company_id)


async def get_company_or_404(session: AsyncSession, company_id: uuid.UUID) -> Company:
    company = await session.get(Company, company_id)
    if company is None:
        raise NotFound("Empresa não encontrada")
    return company


async def _user_count(session: AsyncSession, company_id: uuid.UUID) -> int:
    result = await session.execute(
        select(func.count()).select_from(User).where(col(User.company_id) == company_id)
    )
    return result.scalar_one()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def list_companies(
    session: AsyncSession,
    principal: Principal,
    offset: int = 0,
    limit: int = 50,
) -> CompanyListResponse:
    """List all companies with their user counts (developers only)."""
    ensure_allowed(principal, Action.READ, Resource(type=ResourceType.COMPANY))

    total_result = await session.execute(select(func.count()).select_from(Company))
    total = total_result.scalar_one()

    user_counts = (
        select(col(User.company_id).label("company_id"), func.count().label("user_count"))
        .group_by(col(User.company_id))
        .subquery()
    )
    result = await session.execute(
        select(Company, func.coalesce(user_counts.c.user_count, 0))
        .outerjoin(user_counts, user_counts.c.company_id == col(Company.id))
        .order_by(col(Company.name))
        .offset(offset)
        .limit(limit)
    )
    items = [_build_company_response(company, count) for company, count in result.all()]
    return CompanyListResponse(items=items, total=total)


async def create_company(
    session: AsyncSession,
    principal: Principal,
    payload: CreateCompanyPayload,
) -> CompanyResponse:
    """Create a company together with its first administrator, atomically."""
    ensure_allowed(principal, Action.CREATE, Resource(type=ResourceType.COMPANY))
    await ensure_email_available(session, payload.admin.email)

    company = Company(name=payload.name, plan=payload.plan.value, active=payload.active)
    session.add(company)
    await session.flush()
    admin = User(
        name=payload.admin.name,
        email=payload.admin.email.lower(),
        password_hash=hash_password(payload.admin.password),
        role=Role.ADMIN.value,
        company_id=company.id,
    )
    session.add(admin)

    try:
        await session.flush()
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise Conflict("Este email já está em uso") from None

    await session.refresh(company)
    logger.info("Company %s created with admin %s", company.id, admin.id)
    return _build_company_response(company, user_count=1)


async def get_company(session: AsyncSession, principal: Principal, company_id: uuid.UUID) -> CompanyResponse:
    company = await get_company_or_404(session, company_id)
    ensure_allowed(principal, Action.READ, company_resource(company.id))
    return _build_company_response(company, await _user_count(session, company.id))


async def update_company(
    session: AsyncSession,
    principal: Principal,
    company_id: uuid.UUID,
    payload: UpdateCompanyPayload,
) -> CompanyResponse:
    ensure_allowed(principal, Action.UPDATE, company_resource(company_id))
    company = await get_company_or_404(session, company_id)

    company.name = payload.name
    company.plan = payload.plan.value
    company.active = payload.active
    await session.commit()
    await session.refresh(company)
    return _build_company_response(company, await _user_count(session, company.id))


async def toggle_company(session: AsyncSession, principal: Principal, company_id: uuid.UUID) -> CompanyResponse:
    """Flip the active flag."""
    ensure_allowed(principal, Action.UPDATE, company_resource(company_id))
    company = await get_company_or_404(session, company_id)

    company.active = not company.active
    await session.commit()
    await session.refresh(company)
    logger.info("Company %s active=%s", company.id, company.active)
    return _build_company_response(company, await _user_count(session, company.id))


async def delete_company(session: AsyncSession, principal: Principal, company_id: uuid.UUID) -> None:
    """Delete a company and everything its users own, in one transaction.

    Order follows the foreign keys: payment links, payments, time entries,
    notifications, feedback, users, then the company itself.
    """
    ensure_allowed(principal, Action.DELETE, company_resource(company_id))
    company = await get_company_or_404(session, company_id)

    user_ids = select(User.id).where(col(User.company_id) == company_id)
    payment_ids = select(Payment.id).where(
        col(Payment.user_id).in_(user_ids) | col(Payment.creator_id).in_(user_ids)
    )
    try:
        await session.execute(delete(PaymentTimeEntry).where(col(PaymentTimeEntry.payment_id).in_(payment_ids)))
        await session.execute(delete(Payment).where(col(Payment.id).in_(payment_ids)))
        await session.execute(delete(TimeEntry).where(col(TimeEntry.user_id).in_(user_ids)))
        await session.execute(delete(Notification).where(col(Notification.user_id).in_(user_ids)))
        await session.execute(delete(Feedback).where(col(Feedback.user_id).in_(user_ids)))
        await session.execute(
            delete(User).where(col(User.company_id) == company_id).execution_options(synchronize_session=False)
        )
        await session.delete(company)
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise Conflict("Não foi possível excluir a empresa pois existem registros vinculados") from None
    logger.info("Company %s deleted with all of its users", company_id)
