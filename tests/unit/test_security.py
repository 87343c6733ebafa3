"""Unit tests for JWT verification."""

from datetime import timedelta
from uuid import uuid4

import pytest
from jose import JWTError, jwt

from pocketledger.config import settings
from pocketledger.core.security import (
    create_access_token,
    decode_token,
    get_user_id_from_token,
)


class TestJWTTokens:
    """Test JWT token creation and validation."""

    def test_create_access_token(self):
        user_id = uuid4()
        token = create_access_token(user_id)

        payload = decode_token(token)
        assert payload["sub"] == str(user_id)
        assert payload["type"] == "access"
        assert "exp" in payload

    def test_get_user_id_from_token(self):
        user_id = uuid4()
        token = create_access_token(user_id)

        assert get_user_id_from_token(token) == user_id

    def test_expired_token_rejected(self):
        token = create_access_token(uuid4(), expires_delta=timedelta(seconds=-1))

        with pytest.raises(JWTError):
            decode_token(token)

    def test_tampered_token_rejected(self):
        token = create_access_token(uuid4())

        with pytest.raises(JWTError):
            decode_token(token[:-2] + "xx")

    def test_token_signed_with_other_secret_rejected(self):
        token = jwt.encode({"sub": str(uuid4())}, "not-the-secret", algorithm=settings.jwt_algorithm)

        with pytest.raises(JWTError):
            get_user_id_from_token(token)

    def test_missing_sub_rejected(self):
        token = jwt.encode({"type": "access"}, settings.jwt_secret, algorithm=settings.jwt_algorithm)

        with pytest.raises(JWTError):
            get_user_id_from_token(token)

    def test_non_uuid_sub_rejected(self):
        token = jwt.encode({"sub": "alice"}, settings.jwt_secret, algorithm=settings.jwt_algorithm)

        with pytest.raises(ValueError):
            get_user_id_from_token(token)
