"""Exceptions raised by the repository layer.

Services translate these into the typed errors of :mod:`kindred.errors`.
"""

from __future__ import annotations


class RepositoryError(RuntimeError):
    """Base exception raised when a repository operation fails."""


class DuplicateKeyRepositoryError(RepositoryError):
    """Raised when a write violates a unique index (email, phone, active pair)."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class NotFoundRepositoryError(RepositoryError):
    """Raised when an expected document is missing."""


__all__ = [
    "DuplicateKeyRepositoryError",
    "NotFoundRepositoryError",
    "RepositoryError",
]
