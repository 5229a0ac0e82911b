"""Authentication router: all /api/auth/* endpoints."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from goldticket.auth.dependencies import get_token_payload
from goldticket.auth.jwt import create_access_token
from goldticket.auth.password import PasswordStrengthError
from goldticket.auth.schemas import (
    AuthUser,
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    ResetPasswordRequest,
    VerifyResponse,
)
from goldticket.auth.service import (
    DuplicateAccountError,
    InvalidCredentialsError,
    InvalidResetTokenError,
    authenticate_user,
    create_reset_token,
    get_user_by_email,
    get_user_by_id,
    register_user,
    reset_password,
)
from goldticket.config import get_settings
from goldticket.database import get_session
from goldticket.email.service import get_email_service
from goldticket.schemas import MessageResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

FORGOT_PASSWORD_MESSAGE = "If that email exists, a reset link has been sent."


@router.post("/register", response_model=MessageResponse, status_code=201)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Create an account. Username and email are unique case-insensitively."""
    try:
        await register_user(
            db,
            username=body.username,
            email=body.email,
            password=body.password,
            gender=body.gender,
            age_range=body.age_range,
            referral=body.referral,
        )
    except PasswordStrengthError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except DuplicateAccountError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    await db.commit()
    return MessageResponse(message="User registered successfully!")


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    db: AsyncSession = Depends(get_session),
) -> LoginResponse:
    """Exchange username + password for a bearer token."""
    try:
        user = await authenticate_user(db, body.username, body.password)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e
    await db.commit()

    token = create_access_token(user.id, user.username, user.role)
    logger.info("user_logged_in", user_id=user.id)
    return LoginResponse(token=token, user=AuthUser(username=user.username, role=user.role))


@router.get("/verify", response_model=VerifyResponse)
async def verify(
    payload: dict[str, Any] = Depends(get_token_payload),
    db: AsyncSession = Depends(get_session),
) -> VerifyResponse:
    """Check a token and return who it belongs to."""
    user = await get_user_by_id(db, int(payload["sub"]))
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return VerifyResponse(user=AuthUser(username=user.username, role=user.role))


@router.post("/forgot-password", response_model=MessageResponse)
async def forgot_password(
    body: ForgotPasswordRequest,
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Request a password reset email. Always returns 200 with the same message."""
    user = await get_user_by_email(db, body.email)
    if user is None:
        return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)

    raw_token = await create_reset_token(db, user)
    await db.commit()

    settings = get_settings()
    reset_url = f"{settings.frontend_base_url}/reset-password.html?token={raw_token}"
    sent = await get_email_service().send_template(
        to=user.email,
        template_name="password_reset",
        reset_url=reset_url,
        expires_minutes=settings.password_reset_token_ttl_minutes,
    )
    if not sent:
        logger.warning("password_reset_email_not_sent", user_id=user.id)
    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post("/reset-password/{token}", response_model=MessageResponse)
async def reset_password_route(
    token: str,
    body: ResetPasswordRequest,
    db: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Set a new password using the emailed token."""
    try:
        user = await reset_password(db, token, body.password)
    except (PasswordStrengthError, InvalidResetTokenError) as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    await db.commit()

    await get_email_service().send_template(
        to=user.email,
        template_name="password_changed",
        username=user.username,
    )
    return MessageResponse(message="Password has been reset")
