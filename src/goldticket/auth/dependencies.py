"""FastAPI authentication dependencies.

Routes either require a token, accept one optionally, or require the admin
role. The raw ``Authorization`` header is read directly: a missing or blank
header (or a bare ``Bearer``) means "no token", and anything else is treated
as a token with an optional ``Bearer`` prefix. A token that is present and
fails verification is always rejected, on optional routes too.
"""

from __future__ import annotations

from typing import Any

import jwt
from fastapi import Depends, HTTPException, Security
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from goldticket.auth.jwt import ROLE_ADMIN, verify_token
from goldticket.auth.service import get_user_by_id
from goldticket.database import get_session
from goldticket.db.models import User

_authorization = APIKeyHeader(name="Authorization", auto_error=False, description="Bearer <token>")

_INVALID_TOKEN_HEADERS = {"WWW-Authenticate": 'Bearer error="invalid_token"'}


def extract_token(header: str | None) -> str | None:
    """The token carried by an Authorization header value, or None when there is none."""
    if header is None:
        return None
    value = header.strip()
    scheme, _, rest = value.partition(" ")
    if scheme.lower() == "bearer":
        value = rest.strip()
    return value or None


def _decode(token: str) -> dict[str, Any]:
    try:
        return verify_token(token)
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=401,
            detail="Invalid or expired token",
            headers=_INVALID_TOKEN_HEADERS,
        ) from e


async def get_token_payload(header: str | None = Security(_authorization)) -> dict[str, Any]:
    """Verified claims of a mandatory token."""
    if header is None or not header.strip():
        raise HTTPException(
            status_code=401,
            detail="Access denied. No token provided.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    token = extract_token(header)
    if token is None:
        raise HTTPException(
            status_code=401,
            detail="Access denied. Token is malformed.",
            headers=_INVALID_TOKEN_HEADERS,
        )
    return _decode(token)


async def _resolve_user(db: AsyncSession, payload: dict[str, Any]) -> User:
    user = await get_user_by_id(db, int(payload["sub"]))
    if user is None:
        raise HTTPException(status_code=401, detail="User not found", headers=_INVALID_TOKEN_HEADERS)
    return user


async def get_current_user(
    payload: dict[str, Any] = Depends(get_token_payload),
    db: AsyncSession = Depends(get_session),
) -> User:
    """Resolve the token's subject to a User. Raises 401 when the account is gone."""
    return await _resolve_user(db, payload)


async def get_optional_user(
    header: str | None = Security(_authorization),
    db: AsyncSession = Depends(get_session),
) -> User | None:
    """The caller's User, or None for anonymous callers."""
    token = extract_token(header)
    if token is None:
        return None
    return await _resolve_user(db, _decode(token))


async def require_admin(user: User = Depends(get_current_user)) -> User:
    """Same as get_current_user but additionally requires the admin role."""
    if user.role != ROLE_ADMIN:
        raise HTTPException(status_code=403, detail="Admin role required")
    return user
