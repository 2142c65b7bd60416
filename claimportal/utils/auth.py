"""
Authentication Utilities
JWT token generation and password hashing
Source: https://fastapi.tiangolo.com/tutorial/security/oauth2-jwt/
"""

from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
from jose import JWTError, jwt

from claimportal.api.config import settings

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against its bcrypt hash.

    Note: bcrypt only looks at the first 72 bytes of a password.
    Source: https://pypi.org/project/bcrypt/
    """
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        # Malformed hash in storage
        return False


def get_password_hash(password: str) -> str:
    """Hash a password with a fresh bcrypt salt."""
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def _encode(data: dict[str, Any], token_type: str, expires_delta: timedelta) -> str:
    to_encode = data.copy()
    expire = datetime.now(UTC) + expires_delta
    to_encode.update({"exp": expire, "type": token_type})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_access_token(data: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    """
    Create a JWT access token.

    Args:
        data: Token payload data; `sub` carries the user id
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token
    """
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return _encode(data, ACCESS_TOKEN_TYPE, expires_delta)


def create_refresh_token(data: dict[str, Any]) -> str:
    """Create a long-lived JWT refresh token."""
    return _encode(data, REFRESH_TOKEN_TYPE, timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS))


def create_token_pair(user_id: str, role: str) -> dict[str, str]:
    """Issue an access/refresh pair for a user."""
    payload = {"sub": user_id, "role": role}
    return {
        "access_token": create_access_token(payload),
        "refresh_token": create_refresh_token({"sub": user_id}),
    }


def decode_token(token: str, expected_type: str | None = None) -> dict[Any, Any] | None:
    """
    Decode and verify a JWT token.

    Args:
        token: JWT token string
        expected_type: When given, the `type` claim must match

    Returns:
        Token payload if valid, None otherwise
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None

    if expected_type is not None and payload.get("type") != expected_type:
        return None
    return payload
