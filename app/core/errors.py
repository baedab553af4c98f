"""Service errors and their conversion to JSON error responses."""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """
    Base class for errors converted at the HTTP boundary.

    Each subclass defines a status_code and a default code; the response body is
    {"error": message, "code": code} plus any extra fields.
    """

    status_code: int = 400
    code: str = "BAD_REQUEST"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status_code: int | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra or {}

    def to_body(self) -> dict[str, Any]:
        return {"error": self.message, "code": self.code, **self.extra}


class ValidationError(ServiceError):
    """Missing or malformed input (400)."""

    status_code = 400
    code = "VALIDATION_ERROR"


class AuthenticationError(ServiceError):
    """Missing or bad credentials (401)."""

    status_code = 401
    code = "NOT_AUTHENTICATED"


class TokenExpiredError(AuthenticationError):
    """Token signature is valid but the token has expired (401)."""

    code = "TOKEN_EXPIRED"

    def __init__(self, message: str = "Token expired", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class InvalidTokenError(AuthenticationError):
    """Token is malformed, has a bad signature, or is of the wrong kind (401)."""

    code = "INVALID_TOKEN"

    def __init__(self, message: str = "Invalid token", **kwargs: Any) -> None:
        super().__init__(message, **kwargs)


class ForbiddenError(ServiceError):
    """Authenticated but not allowed: role, permission, ownership, lock (403)."""

    status_code = 403
    code = "FORBIDDEN"


class NotFoundError(ServiceError):
    status_code = 404
    code = "NOT_FOUND"


class ConflictError(ServiceError):
    status_code = 409
    code = "CONFLICT"


class RateLimitedError(ServiceError):
    status_code = 429
    code = "RATE_LIMITED"


class ServerError(ServiceError):
    status_code = 500
    code = "SERVER_ERROR"


def _validation_code(exc: RequestValidationError) -> str:
    """MISSING_FIELDS when any required field is absent, else VALIDATION_ERROR."""
    if any(err.get("type") == "missing" for err in exc.errors()):
        return "MISSING_FIELDS"
    return "VALIDATION_ERROR"


def register_exception_handlers(app: FastAPI) -> None:
    """Install handlers that render every error as {"error", "code"} JSON."""

    @app.exception_handler(ServiceError)
    async def handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "Service error on %s %s: %s (%s)",
                request.method,
                request.url.path,
                exc.message,
                exc.code,
            )
        else:
            logger.warning(
                "Request rejected on %s %s: status=%s code=%s",
                request.method,
                request.url.path,
                exc.status_code,
                exc.code,
            )
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        code = _validation_code(exc)
        message = (
            "All required fields must be provided"
            if code == "MISSING_FIELDS"
            else "Request body is invalid"
        )
        logger.warning(
            "Validation failed on %s %s: %s",
            request.method,
            request.url.path,
            code,
        )
        return JSONResponse(status_code=400, content={"error": message, "code": code})

    @app.exception_handler(Exception)
    async def handle_uncaught(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc
        )
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "code": "SERVER_ERROR"},
        )
