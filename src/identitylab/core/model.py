"""
Model base classes and metadata orchestration for identitylab.
"""

from __future__ import annotations

import re
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Type, TypeVar

from .fields import AutoField, Field

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")

# Attributes a session reference answers itself, without loading the row.
RESERVED_FIELD_NAMES = frozenset(
    {"model", "pk", "key", "state", "initialized", "attached", "resolve", "kind"}
)


class ModelConfigurationError(Exception):
    """Raised when a model class is misconfigured."""


def table_name_for(class_name: str) -> str:
    """
    ``AuditLogEntry`` -> ``audit_log_entry``.
    """
    return _CAMEL_BOUNDARY.sub("_", class_name).lower()


@dataclass
class ModelOptions:
    """
    Container for model metadata calculated by :class:`ModelMeta`.
    """

    model: Type["Model"]
    table_name: str = ""
    fields: "OrderedDict[str, Field]" = field(default_factory=OrderedDict)
    primary_key: Optional[Field] = None

    def add_field(self, field_obj: Field) -> None:
        if field_obj.name in self.fields:
            raise ModelConfigurationError(
                f"Duplicate field name '{field_obj.name}' on model '{self.model.__name__}'"
            )
        self.fields[field_obj.name] = field_obj
        if field_obj.primary_key:
            if self.primary_key and self.primary_key is not field_obj:
                raise ModelConfigurationError(
                    f"Multiple primary keys defined on model '{self.model.__name__}'"
                )
            self.primary_key = field_obj

    def get_field(self, name: str) -> Field:
        try:
            return self.fields[name]
        except KeyError as exc:
            raise KeyError(f"Unknown field '{name}' on model '{self.model.__name__}'") from exc

    def get_fields(self) -> Iterable[Field]:
        return self.fields.values()

    def require_primary_key(self) -> Field:
        if self.primary_key is None:
            raise ModelConfigurationError(
                f"Model '{self.model.__name__}' does not define a primary key."
            )
        return self.primary_key


TModel = TypeVar("TModel", bound="Model")


class ModelMeta(type):
    """
    Metaclass collecting declared fields and adding an ``id`` key when none is declared.
    """

    def __new__(mcls, name: str, bases: tuple[type, ...], attrs: Dict[str, Any]) -> "ModelMeta":
        if name == "Model" and bases == (object,):
            return super().__new__(mcls, name, bases, attrs)

        declared_fields: Dict[str, Field] = {}
        for attr_name, value in list(attrs.items()):
            if isinstance(value, Field):
                if attr_name in RESERVED_FIELD_NAMES:
                    raise ModelConfigurationError(
                        f"Field name '{attr_name}' on model '{name}' is reserved; "
                        "references to the model expose it without loading the row."
                    )
                declared_fields[attr_name] = attrs.pop(attr_name)

        cls = super().__new__(mcls, name, bases, attrs)

        meta = getattr(cls, "Meta", None)
        table_name = getattr(meta, "table", None) or table_name_for(name)
        cls._meta = ModelOptions(model=cls, table_name=table_name)

        for attr_name, field_obj in sorted(
            declared_fields.items(), key=lambda item: item[1].creation_counter
        ):
            field_obj.contribute_to_class(cls, attr_name)
            cls._meta.add_field(field_obj)

        if not cls._meta.primary_key:
            if "id" in cls._meta.fields:
                raise ModelConfigurationError(
                    f"Model '{cls.__name__}' defines a field named 'id' but no primary key. "
                    "Either set primary_key=True on that field or define a different name."
                )
            auto_field = AutoField()
            auto_field.contribute_to_class(cls, "id")
            cls._meta.add_field(auto_field)
            cls._meta.fields.move_to_end("id", last=False)

        return cls


class Model(metaclass=ModelMeta):
    """
    Plain data container; sessions handle loading and persisting rows.
    """

    _meta: ModelOptions

    def __init__(self, **kwargs: Any) -> None:
        self._field_values: Dict[str, Any] = {}

        unknown = set(kwargs) - set(self._meta.fields)
        if unknown:
            raise TypeError(
                f"{self.__class__.__name__} got unexpected field(s): {', '.join(sorted(unknown))}"
            )

        for field_obj in self._meta.get_fields():
            if field_obj.name in kwargs:
                setattr(self, field_obj.name, kwargs[field_obj.name])
            elif field_obj.has_default:
                setattr(self, field_obj.name, field_obj.get_default())

    def __repr__(self) -> str:
        field_parts = ", ".join(
            f"{name}={value!r}" for name, value in self._field_values.items()
        )
        return f"<{self.__class__.__name__} {field_parts}>"

    @classmethod
    def from_row(cls: Type[TModel], row: Mapping[str, Any]) -> TModel:
        """
        Build an instance from a column-keyed row as returned by the store.
        """
        values = {}
        for field_obj in cls._meta.get_fields():
            column = field_obj.column_name()
            if column in row:
                values[field_obj.name] = row[column]
        return cls(**values)

    @property
    def pk(self) -> Any:
        return getattr(self, self._meta.require_primary_key().name)

    def to_dict(self) -> Dict[str, Any]:
        return {field_obj.name: getattr(self, field_obj.name) for field_obj in self._meta.get_fields()}
