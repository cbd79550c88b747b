"""
HTTP error mapping - domain exceptions to status codes.

Routes raise domain exceptions; the handlers registered here turn them
into ``{"detail": ...}`` responses. Messages are fixed strings so that
nothing about stored records leaks into a response.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from referly.domain.exceptions import (
    AccountError,
    ConflictError,
    InvalidCredentialError,
    InvalidStateError,
    NotFoundError,
    StoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# (status, message); ValidationError carries its own message
_ERROR_RESPONSES: dict[type[AccountError], tuple[int, str]] = {
    ConflictError: (status.HTTP_400_BAD_REQUEST, "User already exists"),
    InvalidCredentialError: (status.HTTP_401_UNAUTHORIZED, "Invalid credentials"),
    InvalidStateError: (status.HTTP_400_BAD_REQUEST, "User not verified"),
    NotFoundError: (status.HTTP_404_NOT_FOUND, "User not found"),
}


async def account_error_handler(request: Request, exc: AccountError) -> JSONResponse:
    if isinstance(exc, ValidationError):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})

    for error_type, (status_code, message) in _ERROR_RESPONSES.items():
        if isinstance(exc, error_type):
            return JSONResponse(status_code=status_code, content={"detail": message})

    return await store_error_handler(request, exc)


async def store_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Generic 500; the underlying error is shown outside production only."""
    logger.error("Request %s %s failed: %s", request.method, request.url.path, exc)
    detail = "Internal server error"
    if not request.app.state.settings.is_production:
        detail = f"{detail}: {exc}"
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": detail})


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed or incomplete request bodies are a 400, not FastAPI's 422."""
    missing = any(error.get("type") == "missing" for error in exc.errors())
    detail = "All fields are required" if missing else "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": detail})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(AccountError, account_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
