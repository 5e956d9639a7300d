"""
Tests for JWT helpers, password hashing and settings parsing

Author: Water Junction
Date: 2025-06-30
"""
import pytest
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException
from jose import jwt

from waterjunction.core.auth import (
    JWT_ALGORITHM,
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    hash_password,
    verify_password,
)
from waterjunction.core.config import Settings, settings


class TestTokens:

    def test_access_token_round_trip(self):
        payload = decode_access_token(create_access_token(5))

        assert payload['id'] == 5
        assert payload['exp'] > datetime.now(timezone.utc).timestamp()

    def test_refresh_token_uses_its_own_secret(self):
        refresh_token = create_refresh_token(5)

        assert decode_refresh_token(refresh_token)['id'] == 5
        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(refresh_token)

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Not authorized, token failed"

    def test_expired_token(self):
        token = jwt.encode(
            {'id': 5, 'exp': datetime.now(timezone.utc) - timedelta(minutes=1)},
            settings.JWT_SECRET,
            algorithm=JWT_ALGORITHM
        )

        with pytest.raises(HTTPException) as exc_info:
            decode_access_token(token)

        assert exc_info.value.detail == "Token has expired"

    def test_garbage_token(self):
        with pytest.raises(HTTPException):
            decode_access_token("not-a-jwt")


class TestPasswords:

    def test_hash_and_verify(self):
        password_hash = hash_password("s3cret-pass")

        assert password_hash != "s3cret-pass"
        assert verify_password("s3cret-pass", password_hash) is True
        assert verify_password("wrong-pass", password_hash) is False

    def test_missing_hash_never_verifies(self):
        assert verify_password("anything", None) is False


class TestSettings:

    def test_comma_separated_origins_include_frontend(self):
        config = Settings(
            ALLOWED_ORIGINS="https://waterjunction.in, https://admin.waterjunction.in",
            FRONTEND_URL="http://localhost:5173"
        )

        assert config.get_allowed_origins() == [
            "https://waterjunction.in",
            "https://admin.waterjunction.in",
            "http://localhost:5173",
        ]

    def test_json_origins(self):
        config = Settings(ALLOWED_ORIGINS='["https://waterjunction.in"]', FRONTEND_URL="https://waterjunction.in")

        assert config.get_allowed_origins() == ["https://waterjunction.in"]
