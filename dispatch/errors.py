"""
Purpose: Error taxonomy for the dispatch core.
What it does:

Every failure the engine hands back to a caller is a DispatchError with:
- category: machine-readable tag (validation_failed, not_found, conflict, ...)
- message: human-readable text
- status_code: the HTTP status a thin API layer should answer with

to_dict() is the shape the API layer returns; the engine itself never builds
transport responses.

Families:
- ValidationError: malformed ID or request field. Never retried.
- NotFoundError: job/driver absent.
- ConflictError (+ subclasses): illegal transition, driver already set,
  lost a write race. Caller should re-fetch and decide.
- ServiceUnavailableError: repository unreachable. Opaque to end users.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class DispatchError(Exception):
    category = "internal_error"
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.category, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(DispatchError):
    category = "validation_failed"
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        details = dict(details or {})
        if field:
            details.setdefault("field", field)
        super().__init__(message, details)
        self.field = field


class NotFoundError(DispatchError):
    category = "not_found"
    status_code = 404


class ConflictError(DispatchError):
    category = "conflict"
    status_code = 409


class InvalidTransitionError(ConflictError):
    category = "invalid_job_status"


class DriverAlreadyAssignedError(ConflictError):
    category = "job_already_assigned"


class DriverNotAvailableError(ConflictError):
    category = "driver_not_available"


class ConcurrentModificationError(ConflictError):
    category = "concurrent_modification"


class ServiceUnavailableError(DispatchError):
    category = "service_unavailable"
    status_code = 503

    PUBLIC_MESSAGE = "Service temporarily unavailable, please try again later"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        # Internal detail stays on the exception chain, not in the public message
        super().__init__(self.PUBLIC_MESSAGE, details)
        self.internal_message = message
