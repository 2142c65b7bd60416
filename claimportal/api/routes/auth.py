"""
Authentication Routes
JWT-based login and token refresh
Source: https://fastapi.tiangolo.com/tutorial/security/oauth2-jwt/
"""

from uuid import UUID

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from claimportal.api.config import settings
from claimportal.db.connection import get_session
from claimportal.models.user import User
from claimportal.schemas.auth import LoginRequest, LoginResponse, RefreshTokenRequest, Token
from claimportal.schemas.user import UserResponse
from claimportal.services.users_service import UsersService, get_users_service
from claimportal.utils.auth import REFRESH_TOKEN_TYPE, create_token_pair, decode_token
from claimportal.utils.errors import AuthenticationError
from claimportal.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _token_fields(user: User) -> dict[str, str | int]:
    return {
        **create_token_pair(str(user.id), user.role.value),
        "token_type": "bearer",  # nosec B105
        "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    }


async def _login(service: UsersService, email: str, password: str) -> LoginResponse:
    user = await service.authenticate(email, password)
    if user is None:
        raise AuthenticationError("Incorrect email or password")
    if not user.is_active:
        raise AuthenticationError("Account is inactive")

    await service.record_login(user)
    logger.info(f"User logged in: {user.email}")

    return LoginResponse(**_token_fields(user), user=UserResponse.model_validate(user))


@router.post("/login", response_model=LoginResponse)
async def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: AsyncSession = Depends(get_session),
) -> LoginResponse:
    """
    Login with email and password.

    The OAuth2 `username` field carries the email.
    Source: https://datatracker.ietf.org/doc/html/rfc6749#section-4.3
    """
    return await _login(get_users_service(session), form_data.username, form_data.password)


@router.post("/login/json", response_model=LoginResponse)
async def login_json(
    login_data: LoginRequest,
    session: AsyncSession = Depends(get_session),
) -> LoginResponse:
    """Login with a JSON body (alternative to form data)."""
    return await _login(get_users_service(session), login_data.email, login_data.password)


@router.post("/refresh", response_model=Token)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    session: AsyncSession = Depends(get_session),
) -> Token:
    """Exchange a refresh token for a new token pair."""
    payload = decode_token(refresh_data.refresh_token, expected_type=REFRESH_TOKEN_TYPE)
    if payload is None or not payload.get("sub"):
        raise AuthenticationError("Invalid refresh token")

    try:
        user_id = UUID(payload["sub"])
    except ValueError as err:
        raise AuthenticationError("Invalid refresh token") from err

    user = await session.get(User, user_id)
    if user is None or not user.is_active:
        raise AuthenticationError("User not found or inactive")

    logger.info(f"Tokens refreshed for user: {user.email}")
    return Token(**_token_fields(user))
