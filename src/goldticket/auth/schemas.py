"""Request/response schemas for authentication endpoints."""

from __future__ import annotations

from typing import Literal

from pydantic import EmailStr, Field, field_validator

from goldticket.schemas import CamelModel

Gender = Literal["male", "female", "lgbtq+", "not-specified"]
AgeRange = Literal["<18", "18-25", "26-35", ">35"]


class RegisterRequest(CamelModel):
    """Account registration."""

    username: str = Field(..., min_length=3, max_length=64, pattern=r"^[A-Za-z0-9_.\-]+$")
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)
    gender: Gender | None = None
    age_range: AgeRange | None = None
    referral: str | None = Field(None, max_length=256)

    @field_validator("username", "email")
    @classmethod
    def normalize(cls, v: str) -> str:
        """Usernames and emails are unique case-insensitively."""
        return v.strip().lower()


class LoginRequest(CamelModel):
    """Login with username + password."""

    username: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("username")
    @classmethod
    def normalize_username(cls, v: str) -> str:
        return v.strip().lower()


class ForgotPasswordRequest(CamelModel):
    """Request a password reset email."""

    email: EmailStr

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


class ResetPasswordRequest(CamelModel):
    """New password for a reset token (the token travels in the path)."""

    password: str = Field(..., min_length=1, max_length=128)


class AuthUser(CamelModel):
    username: str
    role: str


class LoginResponse(CamelModel):
    success: bool = True
    token: str
    user: AuthUser


class VerifyResponse(CamelModel):
    success: bool = True
    user: AuthUser
