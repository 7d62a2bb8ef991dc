# ruff: noqa: TC003
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from app.exceptions import Conflict, Forbidden, NotFound, ValidationFailed
from app.models.company import Company
from app.models.enums import Role
from app.models.user import User
from app.schemas.user import UserListResponse, UserResponse
from app.services.policy import Action, Resource, ResourceType, ensure_allowed
from app.services.security import hash_password

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from app.schemas.auth import Principal
    from app.schemas.user import CreateUserPayload, UpdateUserPayload

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def build_user_response(user: User) -> UserResponse:
    """Map a user model to its response schema."""
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=Role(user.role),
        company_id=user.company_id,
        hourly_rate=user.hourly_rate,
        manager_id=user.manager_id,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def user_resource(user: User, target_role: Role | None = None) -> Resource:
    """Describe a user as a policy resource."""
    return Resource(
        type=ResourceType.USER,
        company_id=user.company_id,
        owner_id=user.id,
        owner_role=Role(user.role),
        target_role=target_role,
    )


async def get_user_or_404(session: AsyncSession, user_id: uuid.UUID) -> User:
    """Fetch a user by ID. Raises 404 if not found."""
    user = await session.get(User, user_id)
    if user is None:
        raise NotFound("Usuário não encontrado")
    return user


async def ensure_email_available(
    session: AsyncSession,
    email: str,
    exclude_user_id: uuid.UUID | None = None,
) -> None:
    """Raise 409 if another account already uses ``email``."""
    query = select(User.id).where(func.lower(col(User.email)) == email.lower())
    if exclude_user_id is not None:
        query = query.where(col(User.id) != exclude_user_id)
    result = await session.execute(query)
    if result.first() is not None:
        raise Conflict("Este email já está em uso")


async def _ensure_company_exists(session: AsyncSession, company_id: uuid.UUID) -> Company:
    company = await session.get(Company, company_id)
    if company is None:
        raise NotFound("Empresa não encontrada")
    return company


async def _validate_manager(session: AsyncSession, manager_id: uuid.UUID, company_id: uuid.UUID | None) -> None:
    manager = await session.get(User, manager_id)
    if manager is None or manager.role != Role.MANAGER:
        raise ValidationFailed("Gerente inválido", details={"manager_id": ["Usuário não é um gerente"]})
    if manager.company_id != company_id:
        raise ValidationFailed(
            "Gerente inválido", details={"manager_id": ["O gerente deve pertencer à mesma empresa"]}
        )


def _apply_role_side_effects(user: User, new_role: Role) -> None:
    """Managers are not paid by the hour; only employees report to a manager."""
    if new_role == Role.MANAGER:
        user.hourly_rate = None
    if new_role != Role.EMPLOYEE:
        user.manager_id = None


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def list_users(
    session: AsyncSession,
    principal: Principal,
    company_id: uuid.UUID | None = None,
    role: Role | None = None,
    offset: int = 0,
    limit: int = 50,
) -> UserListResponse:
    """List users visible to the caller.

    DEVELOPER sees everyone, ADMIN its company, MANAGER its company's
    employees and EMPLOYEE only itself.
    """
    if principal.company_id is None and principal.role != Role.DEVELOPER:
        return UserListResponse(items=[], total=0)

    query = select(User)
    match principal.role:
        case Role.DEVELOPER:
            if company_id is not None:
                query = query.where(col(User.company_id) == company_id)
        case Role.ADMIN:
            query = query.where(col(User.company_id) == principal.company_id)
        case Role.MANAGER:
            query = query.where(
                col(User.company_id) == principal.company_id,
                col(User.role) == Role.EMPLOYEE.value,
            )
        case _:
            query = query.where(col(User.id) == principal.id)
    if role is not None:
        query = query.where(col(User.role) == role.value)

    count_result = await session.execute(select(func.count()).select_from(query.subquery()))
    total = count_result.scalar_one()

    result = await session.execute(query.order_by(col(User.name)).offset(offset).limit(limit))
    items = [build_user_response(u) for u in result.scalars().all()]
    return UserListResponse(items=items, total=total)


async def get_user(session: AsyncSession, principal: Principal, user_id: uuid.UUID) -> UserResponse:
    user = await get_user_or_404(session, user_id)
    ensure_allowed(principal, Action.READ, user_resource(user))
    return build_user_response(user)


async def create_user(
    session: AsyncSession,
    principal: Principal,
    payload: CreateUserPayload,
) -> UserResponse:
    """Create a user. Non-developers always create inside their own company."""
    company_id = payload.company_id if principal.role == Role.DEVELOPER else principal.company_id
    if payload.role != Role.DEVELOPER and company_id is None:
        raise ValidationFailed("Empresa obrigatória", details={"company_id": ["Informe a empresa do usuário"]})

    ensure_allowed(
        principal,
        Action.CREATE,
        Resource(type=ResourceType.USER, company_id=company_id, target_role=payload.role),
    )

    if company_id is not None:
        await _ensure_company_exists(session, company_id)
    await ensure_email_available(session, payload.email)
    if payload.manager_id is not None:
        await _validate_manager(session, payload.manager_id, company_id)

    user = User(
        name=payload.name,
        email=payload.email.lower(),
        password_hash=hash_password(payload.password),
        role=payload.role.value,
        company_id=company_id,
        hourly_rate=payload.hourly_rate,
        manager_id=payload.manager_id,
    )
    _apply_role_side_effects(user, payload.role)
    session.add(user)

    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise Conflict("Este email já está em uso") from None

    await session.commit()
    await session.refresh(user)
    logger.info("User %s created with role %s by %s", user.id, user.role, principal.id)
    return build_user_response(user)


async def update_user(
    session: AsyncSession,
    principal: Principal,
    user_id: uuid.UUID,
    payload: UpdateUserPayload,
) -> UserResponse:
    """Apply a partial update, checking role changes separately from field edits."""
    user = await get_user_or_404(session, user_id)
    ensure_allowed(principal, Action.UPDATE, user_resource(user))

    changes = payload.model_dump(exclude_unset=True)
    new_role = payload.role if "role" in changes else None
    if new_role is not None and new_role != user.role:
        ensure_allowed(principal, Action.CHANGE_ROLE, user_resource(user, target_role=new_role))
        if new_role != Role.DEVELOPER and user.company_id is None:
            raise ValidationFailed(
                "Empresa obrigatória", details={"role": ["Usuário sem empresa só pode ser DEVELOPER"]}
            )

    if principal.role == Role.EMPLOYEE and ({"hourly_rate", "manager_id"} & changes.keys()):
        raise Forbidden("Você não pode alterar seu valor por hora ou gerente")

    if "email" in changes and payload.email is not None:
        await ensure_email_available(session, payload.email, exclude_user_id=user.id)
        user.email = payload.email.lower()
    if "name" in changes and payload.name is not None:
        user.name = payload.name
    if "password" in changes and payload.password is not None:
        user.password_hash = hash_password(payload.password)
    if "hourly_rate" in changes:
        user.hourly_rate = payload.hourly_rate
    if "manager_id" in changes:
        if payload.manager_id is not None:
            await _validate_manager(session, payload.manager_id, user.company_id)
        user.manager_id = payload.manager_id
    if new_role is not None and new_role != user.role:
        logger.info("User %s role changed from %s to %s by %s", user.id, user.role, new_role, principal.id)
        user.role = new_role.value
        _apply_role_side_effects(user, new_role)

    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise Conflict("Este email já está em uso") from None

    await session.commit()
    await session.refresh(user)
    return build_user_response(user)


async def delete_user(session: AsyncSession, principal: Principal, user_id: uuid.UUID) -> None:
    """Delete a user. Rows still referencing the user turn into a 409."""
    user = await get_user_or_404(session, user_id)
    ensure_allowed(principal, Action.DELETE, user_resource(user))

    await session.delete(user)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise Conflict(
            "Não é possível excluir este usuário pois ele possui registros vinculados",
        ) from None
    logger.info("User %s deleted by %s", user_id, principal.id)
