"""
Standardized error handling for the MCP server.
Provides error codes, the exception taxonomy and response helpers.
"""
from enum import Enum
from typing import Any

from lib.common import ng


class ErrorCode(str, Enum):
    """Standardized error codes used across the MCP server."""
    BAD_REQUEST = "BAD_REQUEST"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    REMOTE_ERROR = "REMOTE_ERROR"
    CONFIG_ERROR = "CONFIG_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class QueryError(Exception):
    """Base class for failures that map onto an error response."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, extra: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.extra = dict(extra or {})

    def to_response(self, op: str) -> dict[str, Any]:
        """Convert to the standard error envelope."""
        return ng(op, self.code, self.message, self.extra)


class ValidationError(QueryError):
    """Bad operator, missing search value or unknown column. Raised before any I/O."""
    code = ErrorCode.VALIDATION_ERROR


class TransportError(QueryError):
    """Non-2xx status, network failure or timeout talking to the webhook."""
    code = ErrorCode.TRANSPORT_ERROR

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        status_text: str | None = None,
    ) -> None:
        extra: dict[str, Any] = {}
        if status_code is not None:
            extra["status_code"] = status_code
            extra["status_text"] = status_text or ""
        super().__init__(message, extra)
        self.status_code = status_code
        self.status_text = status_text


class ParseFailure(QueryError):
    """No JSON payload could be recovered from a webhook response."""
    code = ErrorCode.PARSE_ERROR


class RemoteLogicalError(QueryError):
    """The remote script ran but reported success: false."""
    code = ErrorCode.REMOTE_ERROR

    def __init__(self, error: str, message: str | None = None, extra: dict[str, Any] | None = None) -> None:
        merged = dict(extra or {})
        if message:
            merged["detail"] = message
        super().__init__(error, merged)
        self.remote_message = message


class ScanError(QueryError):
    """A page fetch failed; carries the scan context and the underlying code."""

    def __init__(self, cause: QueryError, context: dict[str, Any]) -> None:
        extra = dict(cause.extra)
        extra.update(context)
        super().__init__(cause.message, extra)
        self.code = cause.code
        self.cause = cause


class ConfigError(QueryError):
    """Missing or unknown webhook configuration."""
    code = ErrorCode.CONFIG_ERROR


def bad_request(op: str, message: str) -> dict[str, Any]:
    """Create a BAD_REQUEST error response."""
    return ng(op, ErrorCode.BAD_REQUEST, message)


def not_found(op: str, message: str, extra: dict[str, Any] | None = None) -> dict[str, Any]:
    """Create a NOT_FOUND error response."""
    return ng(op, ErrorCode.NOT_FOUND, message, extra)
