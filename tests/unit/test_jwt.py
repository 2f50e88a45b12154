"""Tests for access-token encoding and verification."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from irl.auth.jwt import create_access_token, verify_token
from irl.config import get_settings


class TestAccessToken:
    def test_roundtrip_claims(self):
        payload = verify_token(create_access_token(42, "alex@example.com"))
        assert payload["sub"] == "42"
        assert payload["email"] == "alex@example.com"
        assert payload["type"] == "access"
        assert payload["iss"] == get_settings().jwt_issuer

    def test_wrong_type_rejected(self):
        token = create_access_token(1, "a@example.com")
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(token, expected_type="refresh")

    def test_expired_rejected(self):
        settings = get_settings()
        past = datetime.now(timezone.utc) - timedelta(hours=2)
        token = jwt.encode(
            {
                "sub": "1",
                "iat": past,
                "exp": past + timedelta(minutes=1),
                "iss": settings.jwt_issuer,
                "type": "access",
            },
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
        with pytest.raises(jwt.InvalidTokenError, match="expired"):
            verify_token(token)

    def test_bad_signature_rejected(self):
        settings = get_settings()
        token = jwt.encode(
            {"sub": "1", "iss": settings.jwt_issuer, "type": "access"},
            "not-the-secret",
            algorithm="HS256",
        )
        with pytest.raises(jwt.InvalidTokenError):
            verify_token(token)
