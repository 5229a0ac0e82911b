"""
HS256 bearer tokens.

Tokens carry the user id (``sub``), username and role. Admin tokens are
short-lived; regular user tokens last for days.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

from goldticket.config import get_settings

ROLE_NORMAL = "normal"
ROLE_ADMIN = "admin"


def token_lifetime(role: str) -> timedelta:
    """How long a freshly issued token for ``role`` stays valid."""
    settings = get_settings()
    if role == ROLE_ADMIN:
        return timedelta(minutes=settings.jwt_admin_token_expire_minutes)
    return timedelta(days=settings.jwt_user_token_expire_days)


def create_access_token(user_id: int, username: str, role: str = ROLE_NORMAL) -> str:
    """
    Create a signed access token.

    Args:
        user_id: The user's database ID.
        username: Normalised username, echoed back by /api/auth/verify.
        role: "normal" or "admin"; selects the token lifetime.

    Returns:
        Encoded JWT string.
    """
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "sub": str(user_id),
        "username": username,
        "role": role,
        "iat": now,
        "exp": now + token_lifetime(role),
        "iss": settings.jwt_issuer,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def verify_token(token: str) -> dict[str, Any]:
    """
    Verify and decode an access token.

    Raises:
        jwt.InvalidTokenError: If the token is malformed, tampered with, or expired.
    """
    settings = get_settings()
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.jwt_issuer,
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        msg = "Token has expired"
        raise jwt.InvalidTokenError(msg) from None

    if not str(payload.get("sub", "")).isdigit():
        msg = "Invalid token subject"
        raise jwt.InvalidTokenError(msg)
    return payload
