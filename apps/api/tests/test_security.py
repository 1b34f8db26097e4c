"""
Tests for security utilities.
"""
from datetime import timedelta

import pytest
from jose import jwt

from gecko.core.config import Settings, get_settings
from gecko.core.security import (
    create_access_token,
    decode_token,
    hash_password,
    verify_password,
)


class TestPasswordHashing:
    """Tests for password hashing functions."""

    def test_hash_password(self):
        """Test password hashing."""
        password = "mysecretpassword"
        hashed = hash_password(password)

        assert hashed != password
        assert hashed.startswith("$2b$")

    def test_verify_password_correct(self):
        password = "mysecretpassword"
        hashed = hash_password(password)

        assert verify_password(password, hashed) is True

    def test_verify_password_incorrect(self):
        hashed = hash_password("mysecretpassword")

        assert verify_password("wrongpassword", hashed) is False


class TestJWT:
    """Tests for JWT token functions."""

    def test_create_access_token_claims(self):
        token = create_access_token(user_id="user-123", email="a@example.com", is_admin=True)
        payload = decode_token(token)

        assert payload is not None
        assert payload["sub"] == "user-123"
        assert payload["email"] == "a@example.com"
        assert payload["is_admin"] is True
        assert "exp" in payload
        assert "iat" in payload

    def test_default_lifetime_is_short(self):
        token = create_access_token(user_id="user-123", email="a@example.com")
        payload = decode_token(token)

        lifetime = payload["exp"] - payload["iat"]
        assert lifetime == get_settings().ACCESS_TOKEN_EXPIRE_MINUTES * 60

    def test_tokens_for_same_user_are_distinct(self):
        """Two sign-ins in the same second still produce different session keys."""
        first = create_access_token(user_id="user-123", email="a@example.com")
        second = create_access_token(user_id="user-123", email="a@example.com")

        assert first != second

    def test_decode_expired_token(self):
        token = create_access_token(
            user_id="user-123",
            email="a@example.com",
            expires_delta=timedelta(seconds=-1),
        )

        assert decode_token(token) is None

    def test_decode_invalid_token(self):
        assert decode_token("invalid-token") is None

    def test_decode_token_signed_with_other_key(self):
        token = jwt.encode({"sub": "user-123"}, "another-key-that-is-long-enough-123456", algorithm="HS256")

        assert decode_token(token) is None

    def test_decode_token_without_subject(self):
        settings = get_settings()
        token = jwt.encode({"email": "a@example.com"}, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

        assert decode_token(token) is None


class TestSettings:
    def test_rejects_insecure_default_secret(self):
        with pytest.raises(ValueError):
            Settings(JWT_SECRET_KEY="changeme")

    def test_rejects_short_secret(self):
        with pytest.raises(ValueError):
            Settings(JWT_SECRET_KEY="short-but-not-default")

    def test_defaults(self):
        settings = Settings(JWT_SECRET_KEY="x" * 40)

        assert settings.ACCESS_TOKEN_EXPIRE_MINUTES == 15
        assert settings.SESSION_EXPIRE_DAYS == 7
        assert settings.LOGIN_LOCKOUT_THRESHOLD == 5
        assert settings.LOGIN_LOCKOUT_WINDOW_MINUTES == 15
