"""
Per-model repository bound to a session.
"""

from __future__ import annotations

from typing import Any, Generic, Optional, Type, TypeVar, Union

from .core.model import Model
from .persistence.proxy import Reference
from .persistence.session import Session

TModel = TypeVar("TModel", bound=Model)


class Repository(Generic[TModel]):
    """
    Key-based CRUD for one model. Every lookup goes through the session's
    identity map, so ``get_one`` and ``find_by_id`` share representatives.
    """

    def __init__(self, session: Session, model: Type[TModel]) -> None:
        self.session = session
        self.model = model

    def save(self, instance: TModel) -> TModel:
        self.session.add(instance)
        self.session.flush()
        return instance

    def get_one(self, pk: Any) -> Union[TModel, Reference[TModel]]:
        return self.session.get_reference(self.model, pk)

    def get_by_id(self, pk: Any) -> Union[TModel, Reference[TModel]]:
        return self.session.get(self.model, pk)

    def find_by_id(self, pk: Any) -> Optional[Union[TModel, Reference[TModel]]]:
        return self.session.find(self.model, pk)

    def exists_by_id(self, pk: Any) -> bool:
        return self.session.store.exists(self.model, pk)

    def delete_by_id(self, pk: Any) -> None:
        self.session.store.delete(self.model, pk)
        self.session.detach(self.model, pk)
