"""
Session factory handing out one session per unit of work.
"""

from __future__ import annotations

import weakref
from contextlib import contextmanager
from typing import Iterable, Iterator, Optional, Type

from ..adapters import ConnectionConfig, DatabaseAdapter, create_adapter
from ..adapters.base import DATABASE_URL_ENV
from ..core.model import Model
from ..utils import get_logger
from .errors import SessionClosedError, TransactionError
from .session import Session
from .store import EntityStore


class SessionFactory:
    """
    Hands out one :class:`Session` per unit of work.

    Every session gets a connection of its own, so sessions can overlap and
    each one commits or rolls back only its own work. The factory keeps one
    more connection for schema management and :attr:`store`.

    An in-memory SQLite database only exists on the connection that created
    it, so for those URLs (and for an adapter passed in by the caller)
    sessions share the factory's connection instead. Only one of them may
    have a transaction open at a time; opening another raises
    :class:`TransactionError`.
    """

    def __init__(
        self,
        connection_config: ConnectionConfig,
        *,
        models: Iterable[Type[Model]] = (),
        adapter: Optional[DatabaseAdapter] = None,
    ) -> None:
        self.connection_config = connection_config
        self.shared_connection = adapter is not None or connection_config.in_memory
        self.adapter = adapter or create_adapter(connection_config)
        self.logger = get_logger("persistence.factory")
        self._disposed = False
        self._shared_sessions: "weakref.WeakSet[Session]" = weakref.WeakSet()
        if not self.adapter.connected:
            self.adapter.connect(connection_config)
        self.logger.info(
            "Session factory ready for %s (%s connection per session)",
            connection_config.descriptive_label(),
            "shared" if self.shared_connection else "one",
        )
        self.create_schema(models)

    @classmethod
    def from_dsn(cls, dsn: str, **kwargs) -> "SessionFactory":
        return cls(ConnectionConfig.from_dsn(dsn), **kwargs)

    @classmethod
    def from_env(cls, env_var: str = DATABASE_URL_ENV, **kwargs) -> "SessionFactory":
        return cls(ConnectionConfig.from_env(env_var), **kwargs)

    @property
    def store(self) -> EntityStore:
        """
        Store bound to the factory's connection, for work outside any session.
        """
        return EntityStore(self.adapter)

    def create_schema(self, models: Iterable[Type[Model]]) -> None:
        store = self.store
        for model in models:
            store.create_table(model)
            self.logger.debug("Ensured table %s", model._meta.table_name)

    def drop_schema(self, models: Iterable[Type[Model]]) -> None:
        store = self.store
        for model in models:
            store.drop_table(model)

    def create_session(self) -> Session:
        if self._disposed:
            raise SessionClosedError("Session factory has been disposed.")
        if not self.shared_connection:
            return Session(
                create_adapter(self.connection_config),
                connection_config=self.connection_config,
                close_adapter=True,
            )

        busy = [s for s in self._shared_sessions if not s.closed and s.transaction_manager.active]
        if busy:
            raise TransactionError(
                f"Session {busy[0].session_id} still has a transaction open on the shared "
                f"connection for {self.connection_config.descriptive_label()}; "
                "finish it before starting another session."
            )
        session = Session(self.adapter, connection_config=self.connection_config, close_adapter=False)
        self._shared_sessions.add(session)
        return session

    @contextmanager
    def session(self) -> Iterator[Session]:
        """
        Run one unit of work: begin, yield, commit (or roll back on error), close.
        """
        with self.create_session() as session:
            yield session

    def dispose(self) -> None:
        if self._disposed:
            return
        self.adapter.close()
        self._disposed = True

    def __enter__(self) -> "SessionFactory":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()
