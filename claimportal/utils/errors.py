"""
Custom Exceptions
HTTP errors raised by services and dependencies
Source: https://fastapi.tiangolo.com/tutorial/handling-errors/
"""

from fastapi import HTTPException, status


class PortalError(HTTPException):
    """HTTPException with a per-class status code and default detail."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"

    def __init__(self, detail: str | None = None, headers: dict[str, str] | None = None):
        super().__init__(
            status_code=type(self).status_code,
            detail=detail or self.default_detail,
            headers=headers,
        )


class AuthenticationError(PortalError):
    """Missing, invalid or expired credentials; also inactive accounts"""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized"

    def __init__(self, detail: str | None = None):
        super().__init__(detail, headers={"WWW-Authenticate": "Bearer"})


class PermissionDeniedError(PortalError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Forbidden"


class NotFoundError(PortalError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Resource not found"


class ValidationError(PortalError):
    """Bad input, or a state change the current status does not allow"""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Validation error"
