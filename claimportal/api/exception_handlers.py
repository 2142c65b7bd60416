"""
Exception Handlers
Uniform JSON error bodies for request validation and unexpected failures
Source: https://fastapi.tiangolo.com/tutorial/handling-errors/
"""

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from claimportal.utils.logging import get_logger

logger = get_logger(__name__)


def describe_validation_errors(errors: list[dict[str, Any]]) -> str:
    """
    Flatten pydantic errors into one readable sentence.

    Example:
        [{"loc": ("body", "claim_amount"), "msg": "Input should be greater than 0"}]
        -> "claim_amount: Input should be greater than 0"
    """
    parts = []
    for error in errors:
        loc = [str(p) for p in error.get("loc", ()) if p not in ("body", "query", "path", "form")]
        field = ".".join(loc)
        msg = error.get("msg", "Invalid value")
        parts.append(f"{field}: {msg}" if field else msg)
    return "; ".join(parts) or "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": describe_validation_errors(list(exc.errors()))},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.opt(exception=exc).error(f"Unhandled error on {request.method} {request.url.path}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )
