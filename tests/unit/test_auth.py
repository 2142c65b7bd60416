"""
Unit Tests for Authentication Utilities
Tests password hashing and JWT token generation in isolation
"""

from datetime import UTC, datetime, timedelta

import pytest

from claimportal.utils.auth import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    create_access_token,
    create_refresh_token,
    create_token_pair,
    decode_token,
    get_password_hash,
    verify_password,
)


@pytest.mark.unit
class TestPasswordHashing:
    """Test password hashing and verification"""

    def test_password_hashing(self):
        password = "TestPassword123!"
        hashed = get_password_hash(password)

        assert hashed != password
        assert hashed.startswith("$2b$")

    def test_password_verification(self):
        hashed = get_password_hash("TestPassword123!")

        assert verify_password("TestPassword123!", hashed) is True
        assert verify_password("WrongPassword123!", hashed) is False

    def test_same_password_different_hashes(self):
        """bcrypt salts every hash"""
        hash1 = get_password_hash("TestPassword123!")
        hash2 = get_password_hash("TestPassword123!")

        assert hash1 != hash2
        assert verify_password("TestPassword123!", hash1)
        assert verify_password("TestPassword123!", hash2)

    def test_malformed_hash_does_not_verify(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False


@pytest.mark.unit
class TestJWTTokens:
    """Test JWT token creation and decoding"""

    def test_decode_valid_token(self):
        token = create_access_token({"sub": "user123"})
        payload = decode_token(token)

        assert payload is not None
        assert payload["sub"] == "user123"
        assert payload["type"] == ACCESS_TOKEN_TYPE
        assert "exp" in payload

    def test_decode_invalid_token(self):
        assert decode_token("invalid.token.here") is None

    def test_expected_type_is_enforced(self):
        refresh = create_refresh_token({"sub": "user123"})

        assert decode_token(refresh, expected_type=REFRESH_TOKEN_TYPE) is not None
        assert decode_token(refresh, expected_type=ACCESS_TOKEN_TYPE) is None

    def test_expired_token_rejected(self):
        token = create_access_token({"sub": "user123"}, expires_delta=timedelta(seconds=-5))
        assert decode_token(token) is None

    def test_custom_expiration(self):
        custom_expire = timedelta(minutes=60)
        token = create_access_token({"sub": "user123"}, expires_delta=custom_expire)
        payload = decode_token(token)

        expected_exp = datetime.now(UTC) + custom_expire
        actual_exp = datetime.fromtimestamp(payload["exp"], tz=UTC)
        assert abs((expected_exp - actual_exp).total_seconds()) < 5

    def test_token_pair_carries_role_on_access_token(self):
        pair = create_token_pair("user123", "BANK")

        access = decode_token(pair["access_token"], expected_type=ACCESS_TOKEN_TYPE)
        refresh = decode_token(pair["refresh_token"], expected_type=REFRESH_TOKEN_TYPE)

        assert access["role"] == "BANK"
        assert refresh["sub"] == "user123"
