# fazztrack/core/exceptions.py

from enum import Enum
from typing import Optional, Dict, Any, List
import logging

logger = logging.getLogger(__name__)


class ErrorCode(Enum):
    """Error codes surfaced to API callers."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    NOT_AUTHORIZED = "NOT_AUTHORIZED"
    PRECONDITION_FAILED = "PRECONDITION_FAILED"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


STATUS_CODES = {
    ErrorCode.VALIDATION_FAILED: 422,
    ErrorCode.NOT_AUTHORIZED: 403,
    ErrorCode.PRECONDITION_FAILED: 422,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.INTERNAL_SERVER_ERROR: 500,
}


class FazzTrackError(Exception):
    """Base exception for all FazzTrack domain errors."""

    code = ErrorCode.INTERNAL_SERVER_ERROR
    log_level = logging.ERROR

    def __init__(
        self,
        message: str,
        details: Optional[List[Dict[str, Any]]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.details = details or []
        self.context = context or {}

        logger.log(
            self.log_level,
            "%s: %s",
            self.code.value,
            message,
            extra={"error_code": self.code.value, "context": self.context},
        )

        super().__init__(message)

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.code]

    def to_response(self) -> Dict[str, Any]:
        """Convert to API response format."""
        error: Dict[str, Any] = {"code": self.code.value, "message": self.message}
        if self.details:
            error["details"] = self.details
        return {"success": False, "error": error}


class ValidationFailed(FazzTrackError):
    """Malformed, missing or out-of-range input."""

    code = ErrorCode.VALIDATION_FAILED
    log_level = logging.INFO

    def __init__(self, field: str, message: str, context: Optional[Dict[str, Any]] = None):
        self.field = field
        super().__init__(message, details=[{"field": field, "message": message}], context=context)


class AuthorizationError(FazzTrackError):
    code = ErrorCode.NOT_AUTHORIZED
    log_level = logging.WARNING


class PreconditionFailed(FazzTrackError):
    """The entity exists but is in the wrong state for the requested change."""

    code = ErrorCode.PRECONDITION_FAILED
    log_level = logging.INFO


class NotFound(FazzTrackError):
    code = ErrorCode.NOT_FOUND
    log_level = logging.INFO

    def __init__(self, entity: str, identifier: Any = None):
        self.entity = entity
        message = f"{entity} not found"
        super().__init__(message, context={"entity": entity, "id": identifier})
