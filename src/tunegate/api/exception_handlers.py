"""Exception handlers that turn domain exceptions into {"error": message} responses.

Status mapping:
- ValidationError      -> 400
- AuthError            -> 401
- StateError           -> 403
- ConfigurationError   -> 500
- NoRefreshTokenError  -> 500
- UpstreamError        -> provider status and body if one was received, else 500 and the message
- anything else        -> 500 "Internal server error"

Stack traces are logged, never returned.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from tunegate.domain.exceptions import (
    AuthError,
    ConfigurationError,
    NoRefreshTokenError,
    StateError,
    UpstreamError,
    ValidationError,
)

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


def error_response(status_code: int, message: Any) -> JSONResponse:
    """Build the gateway's error body."""
    return JSONResponse(status_code=status_code, content={"error": message})


def upstream_status(exc: UpstreamError) -> int:
    """Provider status when it is an error status, otherwise 500."""
    if exc.http_status is not None and exc.http_status >= 400:
        return exc.http_status
    return status.HTTP_500_INTERNAL_SERVER_ERROR


# Hey future me - register these BEFORE the app serves anything. Handlers are matched on the
# exception MRO, so UpstreamAuthError lands in the UpstreamError handler and any DomainException
# without its own handler falls through to the generic 500 one.
def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers for domain, validation and HTTP exceptions.

    Args:
        app: FastAPI application instance
    """

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        """Handle input validation errors with 400 Bad Request."""
        logger.info(
            "Validation error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return error_response(status.HTTP_400_BAD_REQUEST, exc.message)

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
        """Handle authentication failures with 401 Unauthorized."""
        logger.warning(
            "Authentication error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return error_response(status.HTTP_401_UNAUTHORIZED, exc.message)

    @app.exception_handler(StateError)
    async def state_error_handler(request: Request, exc: StateError) -> JSONResponse:
        """Handle setup-state violations with 403 Forbidden."""
        logger.info(
            "Setup state rejected request at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return error_response(status.HTTP_403_FORBIDDEN, exc.message)

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        """Handle missing configuration with 500."""
        logger.error(
            "Configuration error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.message)

    @app.exception_handler(NoRefreshTokenError)
    async def no_refresh_token_handler(
        request: Request, exc: NoRefreshTokenError
    ) -> JSONResponse:
        """Handle an unlinked provider account with 500."""
        logger.error(
            "Provider token unavailable at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc.message)

    @app.exception_handler(UpstreamError)
    async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
        """Handle provider failures with the provider's status (or 500)."""
        status_code = upstream_status(exc)
        logger.error(
            "Upstream error at %s: %s",
            request.url.path,
            exc.message,
            exc_info=exc,
            extra={
                "path": request.url.path,
                "error": exc.message,
                "provider_status": exc.http_status,
            },
        )
        # Provider payloads (e.g. invalid_grant) go back as-is under "error"
        detail = exc.body or exc.message
        return error_response(status_code, detail)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Report schema violations as 400, like any other missing parameter."""
        logger.info(
            "Request validation error at %s",
            request.url.path,
            extra={"path": request.url.path, "error_count": len(exc.errors())},
        )
        return error_response(status.HTTP_400_BAD_REQUEST, "Missing required parameters")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        """Handle routing and explicit HTTP errors."""
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            message = "Not found"
        else:
            message = str(exc.detail)
        logger.info(
            "HTTP error %d at %s: %s",
            exc.status_code,
            request.url.path,
            message,
            extra={"path": request.url.path, "status_code": exc.status_code},
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Last resort: log with traceback, answer with a generic 500."""
        logger.error(
            "Unhandled error at %s: %s",
            request.url.path,
            type(exc).__name__,
            exc_info=exc,
            extra={"path": request.url.path},
        )
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR_MESSAGE)
