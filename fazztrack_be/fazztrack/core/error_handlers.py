# fazztrack/core/error_handlers.py

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
import logging

from .exceptions import FazzTrackError, ErrorCode

logger = logging.getLogger(__name__)


def setup_error_handlers(app: FastAPI):
    """Set up global error handlers for the FastAPI application."""

    @app.exception_handler(FazzTrackError)
    async def fazztrack_error_handler(request: Request, exc: FazzTrackError):
        logger.debug(
            "%s %s -> %s (%s)", request.method, request.url.path, exc.status_code, exc.code.value
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Flatten pydantic errors into per-field details."""
        errors = []
        for error in exc.errors():
            # skip the leading "body"/"query"/"path" marker
            loc = [str(part) for part in error["loc"][1:]] or [str(part) for part in error["loc"]]
            errors.append({"field": ".".join(loc), "message": error["msg"]})

        logger.info("Validation error on %s %s: %s", request.method, request.url.path, errors)

        return JSONResponse(
            status_code=422,
            content={
                "success": False,
                "error": {
                    "code": ErrorCode.VALIDATION_FAILED.value,
                    "message": "Validation failed",
                    "details": errors,
                },
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception on %s %s: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=exc,
        )
        # Don't expose internal details to the caller
        return JSONResponse(
            status_code=500,
            content={
                "success": False,
                "error": {
                    "code": ErrorCode.INTERNAL_SERVER_ERROR.value,
                    "message": "An unexpected error occurred. Please try again later.",
                },
            },
        )
