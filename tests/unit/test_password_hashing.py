"""Tests for argon2id hashing and password rules."""

import pytest

from goldticket.auth.password import (
    PasswordStrengthError,
    check_needs_rehash,
    hash_password,
    validate_password_strength,
    verify_password,
)


class TestPasswordHashing:
    def test_hash_and_verify(self):
        hashed = hash_password("pw123")
        assert hashed.startswith("$argon2id$")
        assert verify_password("pw123", hashed)
        assert not verify_password("pw124", hashed)

    def test_hashes_are_salted(self):
        assert hash_password("same") != hash_password("same")

    def test_invalid_hash_does_not_raise(self):
        assert verify_password("pw123", "not-a-hash") is False

    def test_empty_password_never_matches(self):
        assert verify_password("", hash_password("")) is False

    def test_fresh_hash_needs_no_rehash(self):
        assert check_needs_rehash(hash_password("pw123")) is False


class TestPasswordStrength:
    def test_minimum_length_accepted(self):
        validate_password_strength("abcd")

    @pytest.mark.parametrize("password", ["", "   ", "abc"])
    def test_too_short_or_blank(self, password):
        with pytest.raises(PasswordStrengthError):
            validate_password_strength(password)

    def test_too_long(self):
        with pytest.raises(PasswordStrengthError, match="exceed"):
            validate_password_strength("x" * 129)
