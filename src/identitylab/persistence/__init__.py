"""
Persistence layer components: sessions, unit of work, identity map.
"""

from .errors import (
    LazyLoadError,
    NotFoundError,
    PersistenceError,
    SessionClosedError,
    TransactionError,
)
from .factory import SessionFactory
from .identity_map import CacheEntry, IdentityMap
from .proxy import LoadState, Reference, RepresentativeKind, describe, kind_of
from .session import Session
from .store import EntityStore
from .transaction import TransactionManager
from .unit_of_work import UnitOfWork

__all__ = [
    "CacheEntry",
    "EntityStore",
    "IdentityMap",
    "LazyLoadError",
    "LoadState",
    "NotFoundError",
    "PersistenceError",
    "Reference",
    "RepresentativeKind",
    "Session",
    "SessionClosedError",
    "SessionFactory",
    "TransactionError",
    "TransactionManager",
    "UnitOfWork",
    "describe",
    "kind_of",
]
