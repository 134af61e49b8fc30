"""
identitylab public package initialization.

A small ORM layer built around a per-session identity map with deferred
(reference) and eager (materialized) lookups.
"""

from .adapters import ConnectionConfig, PostgresAdapter, SQLiteAdapter, create_adapter  # noqa: F401
from .core import AutoField, IntegerField, Model, ModelConfigurationError, StringField  # noqa: F401
from .persistence import (  # noqa: F401
    LazyLoadError,
    LoadState,
    NotFoundError,
    Reference,
    RepresentativeKind,
    Session,
    SessionFactory,
    describe,
    kind_of,
)
from .repository import Repository  # noqa: F401
from .utils import configure_logging  # noqa: F401

__all__ = [
    "AutoField",
    "ConnectionConfig",
    "IntegerField",
    "LazyLoadError",
    "LoadState",
    "Model",
    "ModelConfigurationError",
    "NotFoundError",
    "PostgresAdapter",
    "Reference",
    "Repository",
    "RepresentativeKind",
    "SQLiteAdapter",
    "Session",
    "SessionFactory",
    "StringField",
    "configure_logging",
    "create_adapter",
    "describe",
    "kind_of",
]
