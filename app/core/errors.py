"""Global exception handlers.

Every error leaves the API as ``{"error": "<message>"}``. Validation failures
use 400 and add a ``details`` list; unexpected exceptions never leak internals.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi_users import exceptions as fau_exceptions
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.services.dialer import DialerError

logger = logging.getLogger(__name__)

def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.detail}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": _error_message(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Validation error on {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={
                "error": "Invalid request data",
                "details": [
                    {
                        "field": ".".join(str(loc) for loc in e["loc"]),
                        "message": e["msg"],
                        "type": e["type"],
                    }
                    for e in exc.errors()
                ],
            },
        )

    @app.exception_handler(DialerError)
    async def dialer_exception_handler(request: Request, exc: DialerError):
        logger.error(f"Dialer call from {request.url.path} failed ({exc.status_code}): {exc.message}")
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(fau_exceptions.UserInactive)
    async def user_inactive_exception_handler(request: Request, exc: fau_exceptions.UserInactive):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Your account has been blocked by the administrator. Please contact support for assistance."},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )

def _error_message(detail) -> str:
    # fastapi-users raises details such as "LOGIN_BAD_CREDENTIALS" or {"code": ..., "reason": ...}
    if isinstance(detail, dict):
        return str(detail.get("reason") or detail.get("code") or detail)
    return str(detail)
