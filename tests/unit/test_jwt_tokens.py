"""Tests for access token issue and verification."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from goldticket.auth.jwt import ROLE_ADMIN, ROLE_NORMAL, create_access_token, token_lifetime, verify_token
from goldticket.config import get_settings


def _forge(**overrides):
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": "1",
        "username": "alice",
        "role": ROLE_NORMAL,
        "iat": now,
        "exp": now + timedelta(minutes=5),
        "iss": settings.jwt_issuer,
    }
    payload.update(overrides)
    secret = payload.pop("_secret", settings.jwt_secret)
    return jwt.encode(payload, secret, algorithm="HS256")


class TestJwtTokens:
    def test_roundtrip_claims(self):
        token = create_access_token(42, "alice")
        payload = verify_token(token)
        assert payload["sub"] == "42"
        assert payload["username"] == "alice"
        assert payload["role"] == ROLE_NORMAL

    def test_admin_tokens_are_short_lived(self):
        assert token_lifetime(ROLE_ADMIN) == timedelta(minutes=30)
        assert token_lifetime(ROLE_NORMAL) == timedelta(days=30)

    def test_expired_token_rejected(self):
        token = _forge(exp=datetime.now(timezone.utc) - timedelta(seconds=5))
        with pytest.raises(jwt.InvalidTokenError, match="expired"):
            verify_token(token)

    def test_wrong_secret_rejected(self):
        token = _forge(_secret="some-other-secret-of-sufficient-length")
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(token)

    def test_wrong_issuer_rejected(self):
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(_forge(iss="someone-else"))

    def test_non_numeric_subject_rejected(self):
        with pytest.raises(jwt.InvalidTokenError, match="subject"):
            verify_token(_forge(sub="alice"))

    def test_garbage_rejected(self):
        with pytest.raises(jwt.InvalidTokenError):
            verify_token("not.a.token")
