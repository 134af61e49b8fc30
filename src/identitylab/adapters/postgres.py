"""
PostgreSQL database adapter implementation.
"""

from __future__ import annotations

from typing import Any, Sequence

from ..dialects.postgres import PostgresDialect
from ..utils import get_logger, redact_params, resolve_slow_query_ms, time_call
from .base import (
    AdapterConfigurationError,
    AdapterConnectionError,
    AdapterExecutionError,
    ConnectionConfig,
    DatabaseAdapter,
)


def _load_driver():
    try:
        import psycopg

        return psycopg
    except ImportError:
        return None


class PostgresAdapter(DatabaseAdapter):
    """
    Adapter over psycopg. Each adapter owns one connection, kept in driver
    autocommit mode; transactions are opened with explicit statements.
    """

    def __init__(self, slow_query_ms: int | None = None) -> None:
        self.dialect = PostgresDialect()
        self._connection: Any = None
        self.logger = get_logger("adapters.postgres")
        self.slow_query_ms = resolve_slow_query_ms(default=100, override=slow_query_ms)

    @property
    def connected(self) -> bool:
        return self._connection is not None and not getattr(self._connection, "closed", False)

    def connect(self, config: ConnectionConfig) -> Any:
        driver = _load_driver()
        if driver is None:
            raise AdapterConfigurationError(
                "psycopg is required to use PostgresAdapter (pip install identitylab[postgres])."
            )

        options = dict(config.options)
        if config.timeout and "connect_timeout" not in options:
            options["connect_timeout"] = int(config.timeout)

        self.logger.info("Connecting to PostgreSQL %s", config.descriptive_label())
        try:
            connection = driver.connect(config.url, **options)
        except Exception as exc:
            raise AdapterConnectionError("Failed to connect to PostgreSQL.") from exc
        connection.autocommit = True
        if config.isolation_level:
            connection.isolation_level = config.isolation_level

        self._connection = connection
        return connection

    def close(self) -> None:
        if self._connection is not None:
            try:
                self._connection.close()
            finally:
                self._connection = None

    def execute(self, sql: str, params: Sequence[Any] | None = None):
        if not self.connected:
            raise AdapterConnectionError("PostgresAdapter is not connected.")
        cursor = self._connection.cursor()
        params = tuple(params or ())
        with time_call(
            "postgres.execute",
            self.logger,
            sql=sql,
            params=redact_params(params),
            threshold_ms=self.slow_query_ms,
        ):
            try:
                cursor.execute(sql, params or None)
            except Exception as exc:
                raise AdapterExecutionError(str(exc)) from exc
        return cursor

    def begin(self) -> None:
        self.execute("BEGIN")

    def commit(self) -> None:
        self.execute("COMMIT")

    def rollback(self) -> None:
        self.execute("ROLLBACK")

    def last_insert_id(self, cursor: Any, table: str, pk_column: str) -> Any:
        row = cursor.fetchone()
        if not row:
            raise AdapterExecutionError(f"No RETURNING data available for {table}.{pk_column}.")
        return row[0]
