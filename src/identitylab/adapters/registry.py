"""
Adapter selection by DSN scheme.
"""

from __future__ import annotations

from typing import Callable, Dict

from .base import AdapterConfigurationError, ConnectionConfig, DatabaseAdapter
from .postgres import PostgresAdapter
from .sqlite import SQLiteAdapter

_ADAPTERS: Dict[str, Callable[[], DatabaseAdapter]] = {
    "sqlite": SQLiteAdapter,
    "postgres": PostgresAdapter,
    "postgresql": PostgresAdapter,
}


def create_adapter(config: ConnectionConfig) -> DatabaseAdapter:
    try:
        factory = _ADAPTERS[config.scheme]
    except KeyError as exc:
        raise AdapterConfigurationError(
            f"Unsupported database scheme '{config.scheme}' in {config.redacted_dsn()}"
        ) from exc
    return factory()
