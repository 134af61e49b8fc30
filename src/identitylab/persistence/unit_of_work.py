"""
Unit of work batching inserts and deletes until the session flushes.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

from ..core.model import Model

if TYPE_CHECKING:
    from .proxy import Representative


class UnitOfWork:
    """
    Tracks pending new and deleted objects in registration order.

    Deletions may name a reference; removing a row only needs its key.
    """

    def __init__(self) -> None:
        self.new: List[Model] = []
        self.deleted: List["Representative"] = []

    def register_new(self, instance: Model) -> None:
        if not self._holds(self.new, instance):
            self.new.append(instance)

    def register_deleted(self, representative: "Representative") -> None:
        if self._holds(self.new, representative):
            # never reached the store; just forget it
            self.new = [pending for pending in self.new if pending is not representative]
            return
        if not self._holds(self.deleted, representative):
            self.deleted.append(representative)

    def snapshot(self) -> tuple[list, list]:
        return list(self.new), list(self.deleted)

    def restore(self, snapshot: tuple[list, list]) -> None:
        self.new, self.deleted = list(snapshot[0]), list(snapshot[1])

    @property
    def pending(self) -> bool:
        return bool(self.new or self.deleted)

    def clear(self) -> None:
        self.new.clear()
        self.deleted.clear()

    @staticmethod
    def _holds(items: list, obj: object) -> bool:
        return any(item is obj for item in items)
