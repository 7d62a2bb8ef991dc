"""Login, registration and account bootstrap."""

from __future__ import annotations

import hmac
import logging
from datetime import timedelta
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from app.config import get_settings
from app.exceptions import Conflict, Forbidden, NotFound, Unauthenticated, ValidationFailed
from app.models.company import Company
from app.models.enums import Role
from app.models.user import User
from app.schemas.auth import AuthUserResponse, MessageResponse, TokenResponse
from app.services.security import create_access_token, hash_password, verify_password
from app.services.user import ensure_email_available, get_user_or_404

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from app.schemas.auth import ChangePasswordPayload, LoginPayload, Principal, RegisterPayload

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Credenciais inválidas"


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


async def _build_auth_user(session: AsyncSession, user: User) -> AuthUserResponse:
    company_name = None
    if user.company_id is not None:
        company = await session.get(Company, user.company_id)
        company_name = company.name if company else None
    return AuthUserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=Role(user.role),
        company_id=user.company_id,
        company_name=company_name,
        hourly_rate=user.hourly_rate,
    )


def _issue_token(user: User, ttl: timedelta) -> str:
    return create_access_token(
        user_id=user.id,
        email=user.email,
        role=user.role,
        company_id=user.company_id,
        expires_delta=ttl,
    )


async def _find_by_email(session: AsyncSession, email: str) -> User | None:
    result = await session.execute(select(User).where(func.lower(col(User.email)) == email.lower()))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def authenticate(session: AsyncSession, payload: LoginPayload) -> User:
    """Check credentials. Users of a deactivated company cannot sign in."""
    user = await _find_by_email(session, payload.email)
    if user is None or not verify_password(payload.password, user.password_hash):
        logger.warning("Failed login attempt for %s", payload.email)
        raise Unauthenticated(INVALID_CREDENTIALS)

    if user.company_id is not None:
        company = await session.get(Company, user.company_id)
        if company is not None and not company.active:
            raise Forbidden("Sua empresa está desativada. Entre em contato com o suporte.")
    return user


async def login(session: AsyncSession, payload: LoginPayload, *, mobile: bool) -> TokenResponse:
    """Exchange credentials for a signed token (24h mobile, longer for the web session)."""
    settings = get_settings()
    user = await authenticate(session, payload)
    hours = settings.mobile_token_ttl_hours if mobile else settings.session_ttl_hours
    ttl = timedelta(hours=hours)
    logger.info("User %s signed in (%s)", user.id, "mobile" if mobile else "web")
    return TokenResponse(
        token=_issue_token(user, ttl),
        expires_in=int(ttl.total_seconds()),
        user=await _build_auth_user(session, user),
    )


async def register(session: AsyncSession, payload: RegisterPayload) -> AuthUserResponse:
    """Self-registration as an EMPLOYEE of an existing, active company."""
    company = await session.get(Company, payload.company_id)
    if company is None or not company.active:
        raise NotFound("Empresa não encontrada")
    await ensure_email_available(session, payload.email)

    user = User(
        name=payload.name,
        email=payload.email.lower(),
        password_hash=hash_password(payload.password),
        role=Role.EMPLOYEE.value,
        company_id=company.id,
    )
    session.add(user)
    try:
        await session.flush()
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise Conflict("Este email já está em uso") from None

    await session.refresh(user)
    logger.info("User %s registered in company %s", user.id, company.id)
    return await _build_auth_user(session, user)


async def get_profile(session: AsyncSession, principal: Principal) -> AuthUserResponse:
    user = await get_user_or_404(session, principal.id)
    return await _build_auth_user(session, user)


async def change_password(
    session: AsyncSession,
    principal: Principal,
    payload: ChangePasswordPayload,
) -> MessageResponse:
    user = await get_user_or_404(session, principal.id)
    if not verify_password(payload.current_password, user.password_hash):
        raise ValidationFailed("Senha atual incorreta", details={"current_password": ["Senha atual incorreta"]})
    if payload.new_password == payload.current_password:
        raise ValidationFailed(
            "A nova senha deve ser diferente da senha atual",
            details={"new_password": ["Deve ser diferente da senha atual"]},
        )

    user.password_hash = hash_password(payload.new_password)
    await session.commit()
    logger.info("User %s changed password", user.id)
    return MessageResponse(message="Senha alterada com sucesso")


async def setup_developer(session: AsyncSession, token: str) -> AuthUserResponse:
    """Create or refresh the developer account from configuration.

    Guarded by ``SETUP_SECRET_TOKEN``; disabled when it is not configured.
    """
    settings = get_settings()
    if not settings.setup_secret_token or not hmac.compare_digest(token, settings.setup_secret_token):
        logger.warning("Rejected developer setup attempt")
        raise Forbidden("Token de configuração inválido")
    if not settings.developer_email or not settings.developer_password:
        raise ValidationFailed("DEVELOPER_EMAIL e DEVELOPER_PASSWORD devem estar configurados")

    user = await _find_by_email(session, settings.developer_email)
    if user is None:
        user = User(
            name="Developer",
            email=settings.developer_email.lower(),
            password_hash=hash_password(settings.developer_password),
            role=Role.DEVELOPER.value,
        )
        session.add(user)
    else:
        user.role = Role.DEVELOPER.value
        user.password_hash = hash_password(settings.developer_password)

    await session.commit()
    await session.refresh(user)
    logger.info("Developer account %s is ready", user.id)
    return await _build_auth_user(session, user)
