"""Typed service errors surfaced to API callers.

Every error carries a stable machine-readable ``kind`` and the HTTP status the
API layer answers with. Services raise these directly; the FastAPI exception
handlers in :mod:`kindred.main` render them as ``{"detail": ..., "kind": ...}``.
"""

from __future__ import annotations

from typing import Optional


class ServiceError(Exception):
    """Base class for errors reported to the caller."""

    kind: str = "internal"
    status_code: int = 500
    default_message: str = "internal error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        return {"detail": self.message, "kind": self.kind}


class ValidationFailed(ServiceError):
    kind = "validation_failed"
    status_code = 400
    default_message = "invalid input"


class NotFound(ServiceError):
    kind = "not_found"
    status_code = 404
    default_message = "not found"


class Forbidden(ServiceError):
    kind = "forbidden"
    status_code = 403
    default_message = "not authorized"


class PreconditionFailed(ServiceError):
    kind = "precondition_failed"
    status_code = 400
    default_message = "precondition failed"


class AlreadyExists(ServiceError):
    kind = "already_exists"
    status_code = 409
    default_message = "already exists"


class InvalidOperation(ServiceError):
    kind = "invalid_operation"
    status_code = 400
    default_message = "invalid operation"


class Unavailable(ServiceError):
    kind = "unavailable"
    status_code = 400
    default_message = "user is not available"


class Internal(ServiceError):
    pass


__all__ = [
    "ServiceError",
    "ValidationFailed",
    "NotFound",
    "Forbidden",
    "PreconditionFailed",
    "AlreadyExists",
    "InvalidOperation",
    "Unavailable",
    "Internal",
]
