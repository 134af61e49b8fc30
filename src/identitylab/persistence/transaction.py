"""
Transaction manager handling nested transactions through savepoints.
"""

from __future__ import annotations

import itertools
from typing import List

from ..adapters.base import DatabaseAdapter
from ..dialects.base import Dialect
from ..utils import get_logger
from .errors import TransactionError


class TransactionManager:
    """
    Keeps a stack of open scopes: ``None`` for the outer transaction, a
    savepoint name for every nested one.
    """

    def __init__(self, adapter: DatabaseAdapter, dialect: Dialect) -> None:
        self.adapter = adapter
        self.dialect = dialect
        self._stack: List[str | None] = []
        self._savepoint_counter = itertools.count(1)
        self.logger = get_logger("persistence.transaction")

    @property
    def depth(self) -> int:
        return len(self._stack)

    @property
    def active(self) -> bool:
        return bool(self._stack)

    def begin(self) -> None:
        if not self._stack:
            self.adapter.begin()
            self._stack.append(None)
            self.logger.debug("BEGIN")
            return

        if not self.dialect.capabilities.supports_savepoints:
            raise TransactionError("Nested transactions not supported by current dialect.")

        name = f"sp_{next(self._savepoint_counter)}"
        self.adapter.execute(f"SAVEPOINT {name}")
        self._stack.append(name)

    def commit(self) -> None:
        if not self._stack:
            raise TransactionError("No active transaction to commit.")

        savepoint_name = self._stack.pop()
        if savepoint_name is None:
            self.adapter.commit()
            self.logger.debug("COMMIT")
            return
        self.adapter.execute(f"RELEASE SAVEPOINT {savepoint_name}")

    def rollback(self) -> None:
        if not self._stack:
            raise TransactionError("No active transaction to roll back.")

        savepoint_name = self._stack.pop()
        if savepoint_name is None:
            self.adapter.rollback()
            self.logger.debug("ROLLBACK")
            return
        self.adapter.execute(f"ROLLBACK TO SAVEPOINT {savepoint_name}")
        self.adapter.execute(f"RELEASE SAVEPOINT {savepoint_name}")

    def abandon(self) -> None:
        """
        Roll back every open scope, innermost first.
        """
        while self._stack:
            self.rollback()
