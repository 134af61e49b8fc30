"""
Identity map ensuring a single in-memory representative per row and session.
"""

from __future__ import annotations

from dataclasses import dataclass
from threading import RLock
from typing import Any, Dict, Iterator, List, Optional, Tuple, Type

from ..core.model import Model
from .proxy import Representative, RepresentativeKind, kind_of, model_of, pk_of

Key = Tuple[Type[Model], Any]


@dataclass(frozen=True)
class CacheEntry:
    key: Key
    representative: Representative
    session_id: str

    @property
    def kind(self) -> RepresentativeKind:
        return kind_of(self.representative)


class IdentityMap:
    """
    Stores representatives keyed by (model, primary key) for one session.

    Entries are never replaced: the first representative registered for a
    key stays until it is detached or the map is cleared.
    """

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        self._store: Dict[Key, CacheEntry] = {}
        self._lock = RLock()

    @staticmethod
    def make_key(representative_or_model, pk=None) -> Key:
        if isinstance(representative_or_model, type):
            if pk is None:
                raise ValueError("A primary key is required when looking up by model class.")
            return (representative_or_model, pk)
        return (model_of(representative_or_model), pk_of(representative_or_model))

    def get(self, model: Type[Model], pk: Any) -> Optional[CacheEntry]:
        with self._lock:
            return self._store.get((model, pk))

    def add(self, representative: Representative) -> CacheEntry:
        """
        Register ``representative`` unless its key is already tracked.

        Returns the entry now held for the key, which is the existing one on
        a collision.
        """
        key = self.make_key(representative)
        if key[1] is None:
            raise ValueError("Cannot track a representative without a primary key.")
        with self._lock:
            existing = self._store.get(key)
            if existing is not None:
                return existing
            entry = CacheEntry(key=key, representative=representative, session_id=self.session_id)
            self._store[key] = entry
            return entry

    def remove(self, key: Key) -> Optional[CacheEntry]:
        with self._lock:
            return self._store.pop(key, None)

    def clear(self) -> List[CacheEntry]:
        with self._lock:
            entries = list(self._store.values())
            self._store.clear()
            return entries

    def entries(self) -> List[CacheEntry]:
        with self._lock:
            return list(self._store.values())

    def values(self) -> List[Representative]:
        return [entry.representative for entry in self.entries()]

    def __contains__(self, representative: Representative) -> bool:
        entry = self.get(*self.make_key(representative))
        return entry is not None and entry.representative is representative

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def __iter__(self) -> Iterator[CacheEntry]:
        return iter(self.entries())
