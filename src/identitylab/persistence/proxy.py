"""
Representatives held by the identity map.

A materialized representative is a plain model instance. A reference is a
placeholder carrying only the key; the row is loaded on the first field
access and the outcome (instance or ``NotFoundError``) is memoized.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Callable, Generic, Optional, Tuple, Type, TypeVar, Union

from ..core.model import Model
from .errors import LazyLoadError, NotFoundError

TModel = TypeVar("TModel", bound=Model)

Loader = Callable[[Type[Model], Any], Model]


class RepresentativeKind(str, Enum):
    REFERENCE = "reference"
    MATERIALIZED = "materialized"


class LoadState(str, Enum):
    UNLOADED = "unloaded"
    LOADED = "loaded"
    FAILED = "failed"


class Reference(Generic[TModel]):
    """
    Deferred stand-in for a row of ``model``.

    Reading ``model``, ``pk``, ``key``, ``state`` or the repr never touches
    the store. Any other attribute, the primary key field name included,
    resolves the row first and is then read from the loaded instance.
    """

    __slots__ = ("_model", "_pk", "_loader", "_state", "_target", "_error", "__weakref__")

    kind = RepresentativeKind.REFERENCE

    def __init__(self, model: Type[TModel], pk: Any, loader: Optional[Loader]) -> None:
        self._model = model
        self._pk = pk
        self._loader = loader
        self._state = LoadState.UNLOADED
        self._target: Optional[TModel] = None
        self._error: Optional[NotFoundError] = None

    @property
    def model(self) -> Type[TModel]:
        return self._model

    @property
    def pk(self) -> Any:
        return self._pk

    @property
    def key(self) -> Tuple[Type[TModel], Any]:
        return (self._model, self._pk)

    @property
    def state(self) -> LoadState:
        return self._state

    @property
    def initialized(self) -> bool:
        return self._state is LoadState.LOADED

    @property
    def attached(self) -> bool:
        return self._loader is not None

    def resolve(self) -> TModel:
        """
        Load the underlying row once; later calls replay the memoized outcome.
        """
        if self._state is LoadState.LOADED:
            return self._target  # type: ignore[return-value]
        if self._state is LoadState.FAILED:
            raise self._error  # type: ignore[misc]
        if self._loader is None:
            raise LazyLoadError(
                f"Cannot initialize reference to {self._model.__name__} pk={self._pk!r}: "
                "it is no longer attached to a session"
            )
        try:
            target = self._loader(self._model, self._pk)
        except NotFoundError as exc:
            self._state = LoadState.FAILED
            self._error = exc
            raise
        self._target = target
        self._state = LoadState.LOADED
        return target

    def _release(self) -> None:
        self._loader = None

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return getattr(self.resolve(), name)

    def __repr__(self) -> str:
        return f"<Reference[{self._model.__name__}] pk={self._pk!r} {self._state.value}>"


Representative = Union[Model, Reference]


def kind_of(representative: Any) -> RepresentativeKind:
    if isinstance(representative, Reference):
        return RepresentativeKind.REFERENCE
    if isinstance(representative, Model):
        return RepresentativeKind.MATERIALIZED
    raise TypeError(f"{representative!r} is not a session representative")


def model_of(representative: Any) -> Type[Model]:
    if isinstance(representative, Reference):
        return representative.model
    if isinstance(representative, Model):
        return representative.__class__
    raise TypeError(f"{representative!r} is not a session representative")


def pk_of(representative: Any) -> Any:
    if isinstance(representative, (Reference, Model)):
        return representative.pk
    raise TypeError(f"{representative!r} is not a session representative")


def describe(representative: Any) -> str:
    """
    Display name used in logs: ``User`` or ``Reference[User]``.
    """
    model = model_of(representative)
    if kind_of(representative) is RepresentativeKind.REFERENCE:
        return f"Reference[{model.__name__}]"
    return model.__name__
