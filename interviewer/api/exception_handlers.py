"""
Global exception handlers for FastAPI.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

import structlog

from interviewer.core.exceptions import (
    ConfigurationError,
    DuplicateProtocolError,
    ExportError,
    InstallationCancelledError,
    InterviewerError,
    ProtocolConflictError,
    ProtocolNotFoundError,
    ProtocolSchemaError,
    SessionNotFoundError,
    StoreDisposedError,
)

log = structlog.get_logger(__name__)

_STATUS_CODES = (
    (SessionNotFoundError, status.HTTP_404_NOT_FOUND),
    (ProtocolNotFoundError, status.HTTP_404_NOT_FOUND),
    (ProtocolSchemaError, status.HTTP_400_BAD_REQUEST),
    (ExportError, status.HTTP_400_BAD_REQUEST),
    (ProtocolConflictError, status.HTTP_409_CONFLICT),
    (DuplicateProtocolError, status.HTTP_409_CONFLICT),
    (InstallationCancelledError, status.HTTP_409_CONFLICT),
    (StoreDisposedError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_code_for(exc: InterviewerError) -> int:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def setup_exception_handlers(app: FastAPI):
    """Register custom exception handlers with the FastAPI application.

    InterviewerError subclasses map to HTTP status codes; cancellations are
    logged at info level since they are the user's choice, not a failure.
    """

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request,
        exc: ConfigurationError,
    ) -> JSONResponse:
        log.error(
            "configuration_error",
            path=request.url.path,
            message=exc.message,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "type": "ConfigurationError",
                    "message": "Server configuration error",
                }
            },
        )

    @app.exception_handler(InterviewerError)
    async def interviewer_error_handler(
        request: Request,
        exc: InterviewerError,
    ) -> JSONResponse:
        log_ctx = log.bind(
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
        )

        status_code = status_code_for(exc)

        if isinstance(exc, InstallationCancelledError):
            log_ctx.info("request_cancelled", message=exc.message)
        else:
            log_ctx.warning("request_error", message=exc.message, status_code=status_code)

        return JSONResponse(
            status_code=status_code,
            content={
                "error": {
                    "type": type(exc).__name__,
                    "message": exc.message,
                }
            },
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """Handle all unhandled exceptions with HTTP 500 status."""
        log.bind(
            path=request.url.path,
            method=request.method,
            error_type=type(exc).__name__,
        ).error(
            "unhandled_exception",
            message=str(exc),
            exc_info=exc,
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {
                    "type": "InternalServerError",
                    "message": "An unexpected error occurred",
                }
            },
        )
