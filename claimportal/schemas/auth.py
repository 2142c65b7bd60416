"""
Authentication Schemas
Pydantic models for authentication endpoints
Source: https://fastapi.tiangolo.com/tutorial/security/oauth2-jwt/
"""

from pydantic import BaseModel, EmailStr

from claimportal.schemas.user import UserResponse


class Token(BaseModel):
    """
    JWT token response.

    Source: https://datatracker.ietf.org/doc/html/rfc6749#section-5.1
    """

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class LoginResponse(Token):
    """Token pair plus the authenticated profile"""

    user: UserResponse


class LoginRequest(BaseModel):
    """Login credentials"""

    email: EmailStr
    password: str


class RefreshTokenRequest(BaseModel):
    """Refresh token request"""

    refresh_token: str
