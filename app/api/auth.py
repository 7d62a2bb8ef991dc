from __future__ import annotations

from fastapi import APIRouter, Response, status

from app.api.deps import PrincipalDep
from app.config import get_settings
from app.db import SessionDep
from app.schemas.auth import (
    AuthUserResponse,
    ChangePasswordPayload,
    LoginPayload,
    MessageResponse,
    RegisterPayload,
    SetupPayload,
    TokenResponse,
)
from app.services import auth as auth_service

auth_router = APIRouter(prefix="/api/auth", tags=["auth"])
setup_router = APIRouter(prefix="/api/setup", tags=["setup"])


@auth_router.post("/register", response_model=AuthUserResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterPayload, session: SessionDep) -> AuthUserResponse:
    """Register a new employee account in an existing company."""
    return await auth_service.register(session, payload)


@auth_router.post("/login", response_model=TokenResponse)
async def login(payload: LoginPayload, session: SessionDep, response: Response) -> TokenResponse:
    """Sign in and set the HTTP-only session cookie."""
    settings = get_settings()
    token = await auth_service.login(session, payload, mobile=False)
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token.token,
        max_age=token.expires_in,
        httponly=True,
        secure=settings.environment == "production",
        samesite="lax",
    )
    return token


@auth_router.post("/logout", response_model=MessageResponse)
async def logout(response: Response) -> MessageResponse:
    """Clear the session cookie. Tokens are stateless and simply expire."""
    response.delete_cookie(get_settings().session_cookie_name)
    return MessageResponse(message="Sessão encerrada")


@auth_router.get("/session", response_model=AuthUserResponse)
async def current_session(session: SessionDep, principal: PrincipalDep) -> AuthUserResponse:
    """Return the signed-in user."""
    return await auth_service.get_profile(session, principal)


@auth_router.post("/change-password", response_model=MessageResponse)
async def change_password(
    payload: ChangePasswordPayload,
    session: SessionDep,
    principal: PrincipalDep,
) -> MessageResponse:
    return await auth_service.change_password(session, principal, payload)


@setup_router.post("", response_model=AuthUserResponse)
async def setup_developer(payload: SetupPayload, session: SessionDep) -> AuthUserResponse:
    """Create or refresh the developer account from environment configuration."""
    return await auth_service.setup_developer(session, payload.token)
