"""
Session management coordinating the store, unit of work, and identity map.
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from typing import Any, Iterable, Optional, Type, TypeVar, Union

from ..adapters.base import ConnectionConfig, DatabaseAdapter
from ..core.model import Model
from ..dialects.base import Dialect
from ..utils import get_logger, redact_params, time_call
from .errors import LazyLoadError, NotFoundError, SessionClosedError
from .identity_map import CacheEntry, IdentityMap
from .proxy import Reference, Representative, describe, model_of, pk_of
from .store import EntityStore
from .transaction import TransactionManager
from .unit_of_work import UnitOfWork

TModel = TypeVar("TModel", bound=Model)


class Session:
    """
    One transactional unit of work with its own identity map.

    Lookups by key go through :meth:`get_reference` (deferred) or
    :meth:`get` (loaded now). Whichever runs first for a key decides the
    representative every later lookup returns, until :meth:`detach`,
    :meth:`clear`, or the end of the outermost transaction discards it.
    """

    def __init__(
        self,
        adapter: DatabaseAdapter,
        *,
        connection_config: Optional[ConnectionConfig] = None,
        close_adapter: bool = True,
    ) -> None:
        self.session_id = uuid.uuid4().hex
        self.adapter = adapter
        self.dialect: Dialect = adapter.dialect
        self.connection_config = connection_config or ConnectionConfig(url="sqlite:///:memory:")
        self.store = EntityStore(adapter, self.dialect)
        self.identity_map = IdentityMap(self.session_id)
        self.unit_of_work = UnitOfWork()
        self.transaction_manager = TransactionManager(adapter, self.dialect)
        self._uow_snapshots: list[tuple[list, list]] = []
        self._close_adapter = close_adapter
        self._closed = False
        self.logger = get_logger("persistence.session")
        if not adapter.connected:
            self.adapter.connect(self.connection_config)

    # ------------------------------------------------------------------ #
    # Context management
    # ------------------------------------------------------------------ #
    def __enter__(self) -> "Session":
        self.begin()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type:
                self.rollback()
            else:
                self.commit()
        finally:
            self.close()

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #
    def begin(self) -> None:
        self._ensure_open()
        self.transaction_manager.begin()
        self._uow_snapshots.append(self.unit_of_work.snapshot())

    def commit(self) -> None:
        self._ensure_open()
        if not self.transaction_manager.active:
            self.begin()
        self.flush()
        self.transaction_manager.commit()
        if self._uow_snapshots:
            self._uow_snapshots.pop()
        if not self.transaction_manager.active:
            self.unit_of_work.clear()
            self._discard_identity_map("commit")

    def rollback(self) -> None:
        self._ensure_open()
        self.transaction_manager.rollback()
        if self._uow_snapshots:
            self.unit_of_work.restore(self._uow_snapshots.pop())
        else:
            self.unit_of_work.clear()
        if not self.transaction_manager.active:
            self._discard_identity_map("rollback")

    @contextmanager
    def transaction(self):
        """
        Provide nested transaction context with savepoint support.
        """

        self.begin()
        try:
            yield self
        except Exception:
            self.rollback()
            raise
        else:
            self.commit()

    def close(self) -> None:
        if self._closed:
            return
        try:
            if self.transaction_manager.active:
                self.logger.warning(
                    "Closing session %s with an open transaction; rolling back", self.session_id
                )
                self.transaction_manager.abandon()
        finally:
            self._discard_identity_map("close")
            self.unit_of_work.clear()
            self._uow_snapshots.clear()
            self._closed = True
            if self._close_adapter:
                self.adapter.close()

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #
    def add(self, instance: Model) -> None:
        self._ensure_open()
        self.unit_of_work.register_new(instance)

    def delete(self, representative: Representative) -> None:
        self._ensure_open()
        self.unit_of_work.register_deleted(representative)

    def flush(self) -> None:
        self._ensure_open()
        for instance in list(self.unit_of_work.new):
            self.store.insert(instance)
            entry = self.identity_map.add(instance)
            if entry.representative is not instance:
                self.logger.debug(
                    "Inserted %s pk=%r but the key was already tracked as %s",
                    instance.__class__.__name__,
                    instance.pk,
                    describe(entry.representative),
                )
            self.unit_of_work.new.remove(instance)
        for representative in list(self.unit_of_work.deleted):
            model, pk = model_of(representative), pk_of(representative)
            self.store.delete(model, pk)
            self.detach(model, pk)
            self.unit_of_work.deleted.remove(representative)

    # ------------------------------------------------------------------ #
    # Lookups
    # ------------------------------------------------------------------ #
    def get_reference(self, model: Type[TModel], pk: Any) -> Union[TModel, Reference[TModel]]:
        """
        Return the tracked representative for ``pk``, or register a deferred one.

        Never touches the store. A missing row only surfaces as
        :class:`NotFoundError` on the first field access of a new reference.
        """
        self._ensure_open()
        pk = self._coerce_pk(model, pk)
        cached = self._lookup(model, pk)
        if cached is not None:
            return cached.representative
        reference: Reference[TModel] = Reference(model, pk, self._load_instance)
        entry = self.identity_map.add(reference)
        self.logger.debug("Registered %s pk=%r", describe(entry.representative), pk)
        return entry.representative

    def get(self, model: Type[TModel], pk: Any) -> Union[TModel, Reference[TModel]]:
        """
        Return the tracked representative for ``pk``, or load and register the row.

        A key already tracked as a reference comes back as that same,
        possibly unloaded, reference.
        """
        self._ensure_open()
        pk = self._coerce_pk(model, pk)
        cached = self._lookup(model, pk)
        if cached is not None:
            return cached.representative
        instance = model.from_row(self.store.load(model, pk))
        entry = self.identity_map.add(instance)
        self.logger.debug("Registered %s pk=%r", describe(entry.representative), pk)
        return entry.representative

    def find(self, model: Type[TModel], pk: Any) -> Optional[Union[TModel, Reference[TModel]]]:
        try:
            return self.get(model, pk)
        except NotFoundError:
            return None

    def contains(self, representative: Representative) -> bool:
        return representative in self.identity_map

    # ------------------------------------------------------------------ #
    # Cache control
    # ------------------------------------------------------------------ #
    def clear(self) -> None:
        self._ensure_open()
        self._discard_identity_map("clear")

    def detach(self, target: Union[Representative, Type[Model]], pk: Any = None) -> None:
        """
        Stop tracking one key. Accepts a representative or ``(model, pk)``.

        Unknown keys, and representatives that are not the tracked one for
        their key, are ignored.
        """
        self._ensure_open()
        if isinstance(target, type) and pk is not None:
            pk = self._coerce_pk(target, pk)
        key = self.identity_map.make_key(target, pk)
        entry = self.identity_map.get(*key)
        if entry is None:
            return
        if not isinstance(target, type) and entry.representative is not target:
            return
        self.identity_map.remove(key)
        self._release(entry)
        self.logger.debug("Detached %s pk=%r", describe(entry.representative), key[1])

    # ------------------------------------------------------------------ #
    def execute(self, sql: str, params: Iterable[Any] | None = None):
        param_list = list(params or [])
        with time_call("session.execute", self.logger, sql=sql, params=redact_params(param_list), threshold_ms=200):
            return self.adapter.execute(sql, param_list)

    # ------------------------------------------------------------------ #
    @staticmethod
    def _coerce_pk(model: Type[Model], pk: Any) -> Any:
        """
        Normalize a caller-supplied key to the form the primary key field stores.
        """
        if pk is None:
            return None
        return model._meta.require_primary_key().to_python(pk)

    def _lookup(self, model: Type[Model], pk: Any) -> Optional[CacheEntry]:
        entry = self.identity_map.get(model, pk)
        if entry is not None:
            self.logger.debug(
                "Identity map hit for %s pk=%r -> %s", model.__name__, pk, describe(entry.representative)
            )
        return entry

    def _load_instance(self, model: Type[Model], pk: Any) -> Model:
        if self._closed:
            raise LazyLoadError(
                f"Cannot initialize reference to {model.__name__} pk={pk!r}: session is closed"
            )
        return model.from_row(self.store.load(model, pk))

    def _discard_identity_map(self, reason: str) -> None:
        entries = self.identity_map.clear()
        for entry in entries:
            self._release(entry)
        if entries:
            self.logger.debug(
                "Discarded %d identity map entries (%s) for session %s",
                len(entries),
                reason,
                self.session_id,
            )

    @staticmethod
    def _release(entry: CacheEntry) -> None:
        if isinstance(entry.representative, Reference):
            entry.representative._release()

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError(f"Session {self.session_id} is closed.")
