from __future__ import annotations

import logging
import uuid
from datetime import UTC, datetime, timedelta
from functools import lru_cache
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext
from pydantic import ValidationError

from app.config import get_settings
from app.exceptions import Unauthenticated
from app.schemas.auth import Principal

logger = logging.getLogger(__name__)


@lru_cache
def _password_context() -> CryptContext:
    return CryptContext(
        schemes=["bcrypt"],
        deprecated="auto",
        bcrypt__rounds=get_settings().bcrypt_rounds,
    )


def hash_password(password: str) -> str:
    return _password_context().hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    return _password_context().verify(plain_password, password_hash)


def create_access_token(
    *,
    user_id: uuid.UUID,
    email: str,
    role: str,
    company_id: uuid.UUID | None,
    expires_delta: timedelta,
) -> str:
    """Sign a token carrying the principal claims."""
    settings = get_settings()
    now = datetime.now(UTC)
    claims: dict[str, Any] = {
        "id": str(user_id),
        "email": email,
        "role": role,
        "companyId": str(company_id) if company_id else None,
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(claims, settings.nextauth_secret, algorithm=settings.jwt_algorithm)


def resolve_principal(token: str) -> Principal:
    """Verify a token and return the principal it carries.

    Any signature, expiry or claim problem is reported the same way so
    callers cannot tell which check failed.
    """
    settings = get_settings()
    try:
        claims = jwt.decode(token, settings.nextauth_secret, algorithms=[settings.jwt_algorithm])
        return Principal(
            id=claims["id"],
            email=claims["email"],
            role=claims["role"],
            company_id=claims.get("companyId"),
        )
    except (JWTError, KeyError, ValidationError):
        logger.warning("Rejected invalid or expired token")
        raise Unauthenticated("Token inválido ou expirado") from None
