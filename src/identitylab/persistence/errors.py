"""
Persistence error hierarchy.
"""

from __future__ import annotations

from typing import Any


class PersistenceError(RuntimeError):
    """Base error for session and store failures."""


class NotFoundError(PersistenceError, LookupError):
    """
    Raised when no row exists for a primary key.

    Surfaces from a materialized lookup, from a store delete, or from the
    first field access on a reference whose row is missing.
    """

    def __init__(self, model: type, pk: Any) -> None:
        self.model = model
        self.pk = pk
        super().__init__(f"No {model.__name__} row with primary key {pk!r}")


class LazyLoadError(PersistenceError):
    """Raised when an unloaded reference is read after leaving its session."""


class SessionClosedError(PersistenceError):
    """Raised when a closed session is used."""


class TransactionError(PersistenceError):
    """Raised on unbalanced or unsupported transaction operations."""
