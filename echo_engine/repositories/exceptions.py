"""Custom exceptions for the repository layer."""

from __future__ import annotations


class RepositoryError(RuntimeError):
    """Base exception raised when a repository operation fails."""


class CorruptDocumentError(RepositoryError):
    """Raised when a stored document no longer validates against its model."""


__all__ = [
    "CorruptDocumentError",
    "RepositoryError",
]
