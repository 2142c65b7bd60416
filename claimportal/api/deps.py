"""
FastAPI Dependencies
Dependency injection for authentication and database sessions
Source: https://fastapi.tiangolo.com/tutorial/dependencies/
"""

from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from claimportal.db.connection import get_session
from claimportal.models.user import User
from claimportal.services.policy import Principal
from claimportal.utils.auth import ACCESS_TOKEN_TYPE, decode_token
from claimportal.utils.errors import AuthenticationError
from claimportal.utils.logging import get_logger

logger = get_logger(__name__)

# Missing credentials are reported as 401 by get_current_user, not 403
security = HTTPBearer(auto_error=False)

UNAUTHORIZED = "Unauthorized"


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    session: AsyncSession = Depends(get_session),
) -> User:
    """
    Get current authenticated user from the bearer token.

    Every failure answers with the same message and never says which part
    of the token was wrong.

    Raises:
        AuthenticationError: Missing/invalid token, unknown or inactive user
    """
    if credentials is None:
        raise AuthenticationError(UNAUTHORIZED)

    payload = decode_token(credentials.credentials, expected_type=ACCESS_TOKEN_TYPE)
    if payload is None:
        raise AuthenticationError(UNAUTHORIZED)

    user_id_str: str | None = payload.get("sub")
    if user_id_str is None:
        raise AuthenticationError(UNAUTHORIZED)

    try:
        user_id = UUID(user_id_str)
    except ValueError as err:
        raise AuthenticationError(UNAUTHORIZED) from err

    result = await session.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None or not user.is_active:
        logger.warning(f"Rejected token for unknown or inactive user {user_id}")
        raise AuthenticationError(UNAUTHORIZED)

    return user


async def get_current_principal(
    current_user: User = Depends(get_current_user),
) -> Principal:
    """The acting principal handed to services and the policy."""
    return Principal.from_user(current_user)
