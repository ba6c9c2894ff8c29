"""Centralized error taxonomy and standardized error payload helpers.

Every failure surfaced by the record store, ID generator or lookup path is a
``DomainError`` subclass carrying a stable ``code``. The HTTP layer maps codes
to status codes through ``HTTP_STATUS`` and renders ``error_payload``.
"""
from __future__ import annotations
from typing import Any, Dict
import time

ERROR_CODES = {
    "validation": "VALIDATION_ERROR",
    "duplicate": "DUPLICATE_IDENTIFIER",
    "not_found": "NOT_FOUND",
    "id_exhausted": "ID_SPACE_EXHAUSTED",
    "db": "DB_ERROR",
    "unavailable": "STORE_UNAVAILABLE",
    "internal": "INTERNAL_SERVER_ERROR",
}

HTTP_STATUS = {
    ERROR_CODES["validation"]: 422,
    ERROR_CODES["duplicate"]: 409,
    ERROR_CODES["not_found"]: 404,
    ERROR_CODES["id_exhausted"]: 500,
    ERROR_CODES["db"]: 500,
    ERROR_CODES["unavailable"]: 503,
    ERROR_CODES["internal"]: 500,
}


def error_payload(code: str, message: str, details: Any | None = None, path: str | None = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "status": "error",
        "error": {
            "code": code,
            "message": message,
        },
        "timestamp": time.time(),
    }
    if details is not None:
        payload["error"]["details"] = details
    if path:
        payload["path"] = path
    return payload


class DomainError(Exception):
    """Base domain error storing standardized fields."""

    code = ERROR_CODES["internal"]

    def __init__(self, message: str, details: Any | None = None):  # noqa: D401
        super().__init__(message)
        self.message = message
        self.details = details

    @property
    def status_code(self) -> int:
        return HTTP_STATUS.get(self.code, 500)


class ValidationError(DomainError):
    """Missing or invalid input; the caller must fix the request."""
    code = ERROR_CODES["validation"]


class DuplicateIdentifier(DomainError):
    """A unique ID document value already belongs to another customer."""
    code = ERROR_CODES["duplicate"]

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message, details={"field": field} if field else None)
        self.field = field


class NotFound(DomainError):
    code = ERROR_CODES["not_found"]


class IDSpaceExhausted(DomainError):
    """No free customer id was found within the bounded number of attempts."""
    code = ERROR_CODES["id_exhausted"]

    def __init__(self, attempts: int):
        super().__init__(
            f"Failed to generate unique customer ID after {attempts} attempts")
        self.attempts = attempts


class TransactionError(DomainError):
    """Commit, rollback or statement failure inside a store transaction."""
    code = ERROR_CODES["db"]


class StoreUnavailable(TransactionError):
    """The relational store could not be reached."""
    code = ERROR_CODES["unavailable"]


__all__ = [
    "ERROR_CODES",
    "HTTP_STATUS",
    "error_payload",
    "DomainError",
    "ValidationError",
    "DuplicateIdentifier",
    "NotFound",
    "IDSpaceExhausted",
    "TransactionError",
    "StoreUnavailable",
]
