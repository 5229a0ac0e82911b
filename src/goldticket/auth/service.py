"""
Authentication business logic.

Handles account creation, credential checks, and the password reset flow.
"""

from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError

from goldticket.auth.jwt import ROLE_ADMIN, ROLE_NORMAL
from goldticket.auth.password import (
    check_needs_rehash,
    hash_password,
    validate_password_strength,
    verify_password,
)
from goldticket.config import get_settings
from goldticket.db.models import User
from goldticket.game.service import ensure_game_profile
from goldticket.stats.reports import bump_user_report, ensure_user_report

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()


class DuplicateAccountError(ValueError):
    """Username or email is already taken."""


class InvalidCredentialsError(ValueError):
    """Unknown username or wrong password."""


class InvalidResetTokenError(ValueError):
    """Password reset token is unknown or expired."""


# ---------------------------------------------------------------------------
# User queries
# ---------------------------------------------------------------------------


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    """Fetch a user by ID."""
    result = await db.execute(select(User).where(User.id == user_id))
    return result.scalar_one_or_none()


async def get_user_by_username(db: AsyncSession, username: str) -> User | None:
    """Fetch a user by username (case-insensitive)."""
    result = await db.execute(select(User).where(User.username == username.strip().lower()))
    return result.scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """Fetch a user by email (case-insensitive)."""
    result = await db.execute(select(User).where(func.lower(User.email) == email.strip().lower()))
    return result.scalar_one_or_none()


# ---------------------------------------------------------------------------
# Registration / login
# ---------------------------------------------------------------------------


async def register_user(
    db: AsyncSession,
    username: str,
    email: str,
    password: str,
    gender: str | None = None,
    age_range: str | None = None,
    referral: str | None = None,
) -> User:
    """
    Register a new account together with its activity report and game profile.

    Raises:
        PasswordStrengthError: If the password is blank or out of length bounds.
        DuplicateAccountError: If the username or email already exists.
    """
    validate_password_strength(password)
    settings = get_settings()
    username = username.strip().lower()
    email = email.strip().lower()

    existing = await db.execute(
        select(User.id).where(or_(User.username == username, func.lower(User.email) == email))
    )
    if existing.first() is not None:
        msg = "User with this email or username already exists"
        raise DuplicateAccountError(msg)

    admins = {name.strip().lower() for name in settings.admin_usernames}
    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        role=ROLE_ADMIN if username in admins else ROLE_NORMAL,
        gender=gender,
        age_range=age_range,
        referral=referral,
        created_at=datetime.now(timezone.utc),
    )
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as e:
        # Lost a race with a concurrent registration of the same name
        await db.rollback()
        msg = "User with this email or username already exists"
        raise DuplicateAccountError(msg) from e

    await ensure_user_report(db, user.id)
    await ensure_game_profile(db, user.id)
    logger.info("user_created", user_id=user.id, username=username, role=user.role)
    return user


async def authenticate_user(db: AsyncSession, username: str, password: str) -> User:
    """
    Check credentials and stamp the login on the activity report.

    Raises:
        InvalidCredentialsError: If the user is unknown or the password is wrong.
    """
    user = await get_user_by_username(db, username)
    if user is None or not verify_password(password, user.password_hash):
        msg = "Invalid credentials"
        raise InvalidCredentialsError(msg)

    now = datetime.now(timezone.utc)
    # Accounts created before reports/profiles existed are backfilled here
    await bump_user_report(db, user.id, stamps={"last_login": now})
    await ensure_game_profile(db, user.id)

    if check_needs_rehash(user.password_hash):
        user.password_hash = hash_password(password)
        logger.info("password_rehashed", user_id=user.id)
    await db.flush()
    return user


# ---------------------------------------------------------------------------
# Password reset tokens
# ---------------------------------------------------------------------------


def _hash_reset_token(raw_token: str) -> str:
    return hashlib.sha256(raw_token.encode()).hexdigest()


async def create_reset_token(db: AsyncSession, user: User) -> str:
    """
    Issue a password reset token, replacing any previous one.

    Only the SHA-256 of the token is stored. Returns the raw token to email.
    """
    settings = get_settings()
    raw_token = secrets.token_urlsafe(32)
    user.password_reset_token_hash = _hash_reset_token(raw_token)
    user.password_reset_expires = datetime.now(timezone.utc) + timedelta(
        minutes=settings.password_reset_token_ttl_minutes
    )
    await db.flush()
    return raw_token


async def reset_password(db: AsyncSession, raw_token: str, new_password: str) -> User:
    """
    Consume a reset token and set a new password.

    Raises:
        PasswordStrengthError: If the new password is invalid.
        InvalidResetTokenError: If the token is unknown or expired.
    """
    validate_password_strength(new_password)
    result = await db.execute(
        select(User).where(User.password_reset_token_hash == _hash_reset_token(raw_token))
    )
    user = result.scalar_one_or_none()
    now = datetime.now(timezone.utc)
    if user is None or user.password_reset_expires is None or user.password_reset_expires <= now:
        msg = "Password reset token is invalid or has expired"
        raise InvalidResetTokenError(msg)

    user.password_hash = hash_password(new_password)
    user.password_reset_token_hash = None
    user.password_reset_expires = None
    await db.flush()
    logger.info("password_reset_complete", user_id=user.id)
    return user
