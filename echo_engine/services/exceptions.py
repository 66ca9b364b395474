"""Exceptions raised when engine invariants are violated.

Policy outcomes (quota exhausted, rewind unavailable) are never raised; they
are reported through result values. These exceptions signal programmer
errors and are raised before any state is persisted.
"""

from __future__ import annotations


class EngineInvariantError(RuntimeError):
    """Base exception for a violated engine precondition."""


class QuotaInvariantError(EngineInvariantError):
    """Raised when a quota is consumed without having been checked first."""


class MatchNotFoundError(EngineInvariantError):
    """Raised when an operation targets a match the session does not own."""


class MatchExpiredError(EngineInvariantError):
    """Raised when a message targets a match whose countdown has run out."""


__all__ = [
    "EngineInvariantError",
    "MatchExpiredError",
    "MatchNotFoundError",
    "QuotaInvariantError",
]
