"""
Password hashing and validation using argon2id.

Hashes carry their own salt and parameters, so a stored hash is all that is
needed to verify a password later.
"""

from __future__ import annotations

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError

from goldticket.config import get_settings

_hasher = PasswordHasher(time_cost=2, memory_cost=64 * 1024, parallelism=1, hash_len=32, salt_len=16, type=Type.ID)


class PasswordStrengthError(ValueError):
    """Raised when a password does not meet the length requirements."""


def hash_password(password: str) -> str:
    return _hasher.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """True when ``password`` matches the stored hash. An empty password never matches."""
    if not password:
        return False
    try:
        return _hasher.verify(password_hash, password)
    except (VerificationError, InvalidHashError):
        return False


def check_needs_rehash(password_hash: str) -> bool:
    """True when the hash was made with different argon2 parameters than ours."""
    return _hasher.check_needs_rehash(password_hash)


def validate_password_strength(password: str) -> None:
    """
    Validate a new password.

    Raises PasswordStrengthError when the password is blank, shorter than
    ``password_min_length`` or longer than ``password_max_length``.
    """
    settings = get_settings()
    if not password.strip():
        raise PasswordStrengthError("Password cannot be empty")
    length = len(password)
    if length < settings.password_min_length:
        raise PasswordStrengthError(f"Password must be at least {settings.password_min_length} characters")
    if length > settings.password_max_length:
        raise PasswordStrengthError(f"Password must not exceed {settings.password_max_length} characters")
