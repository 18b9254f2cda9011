"""
Response envelopes and the error types that are converted into them.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional


class ConsoleError(Exception):
    """An error that is reported to the caller as an error envelope."""
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, code: Optional[str] = None, details: Any = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.details = details


class ValidationError(ConsoleError, ValueError):
    code = "VALIDATION_ERROR"


class NotFoundError(ConsoleError, LookupError):
    code = "NOT_FOUND"


class AccessDeniedError(ConsoleError, PermissionError):
    code = "ACCESS_DENIED"


class ConflictError(ConsoleError):
    code = "CONFLICT"


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2024-05-01T08:00:00.000Z."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def success_response(data: Any, message: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True, "data": data}
    if message:
        body["message"] = message
    body["timestamp"] = utc_timestamp()
    return body


def error_response(code: str, message: str, details: Any = None) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return {"success": False, "error": error, "timestamp": utc_timestamp()}


def error_from_exception(exc: ConsoleError) -> Dict[str, Any]:
    return error_response(exc.code, exc.message, exc.details)
