"""
Entity store: row-level insert/load/delete keyed by primary key.
"""

from __future__ import annotations

from typing import Any, Dict, Type

from ..adapters.base import DatabaseAdapter
from ..core.model import Model
from ..dialects.base import Dialect
from ..schema import SchemaBuilder
from ..utils import get_logger
from .errors import NotFoundError


class EntityStore:
    """
    Thin SQL layer over an adapter. Knows nothing about sessions or caching.
    """

    def __init__(self, adapter: DatabaseAdapter, dialect: Dialect | None = None) -> None:
        self.adapter = adapter
        self.dialect: Dialect = dialect or adapter.dialect
        self.schema = SchemaBuilder(self.dialect)
        self.logger = get_logger("persistence.store")

    # ------------------------------------------------------------------ #
    # DDL
    # ------------------------------------------------------------------ #
    def create_table(self, model: Type[Model]) -> None:
        self.adapter.execute(self.schema.create_table_sql(model))

    def drop_table(self, model: Type[Model]) -> None:
        self.adapter.execute(self.schema.drop_table_sql(model))

    # ------------------------------------------------------------------ #
    # Rows
    # ------------------------------------------------------------------ #
    def insert(self, instance: Model) -> Any:
        meta = instance._meta
        pk_field = meta.require_primary_key()
        table = self.dialect.format_table(meta.table_name)

        columns = []
        params = []
        for field in meta.get_fields():
            value = getattr(instance, field.name)
            if field.primary_key and value is None:
                continue
            columns.append(self.dialect.quote_identifier(field.column_name()))
            params.append(value)

        if columns:
            placeholders = ", ".join(self.dialect.parameter_placeholder() for _ in columns)
            sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"
        else:
            sql = f"INSERT INTO {table} DEFAULT VALUES"

        pk_column = pk_field.column_name()
        if self.dialect.capabilities.supports_returning:
            sql += f" RETURNING {self.dialect.quote_identifier(pk_column)}"
        cursor = self.adapter.execute(sql, params)

        pk_value = getattr(instance, pk_field.name)
        if pk_value is None:
            pk_value = self.adapter.last_insert_id(cursor, meta.table_name, pk_column)
            setattr(instance, pk_field.name, pk_value)
        self.logger.debug("Inserted %s pk=%r", instance.__class__.__name__, pk_value)
        return pk_value

    def load(self, model: Type[Model], pk: Any) -> Dict[str, Any]:
        meta = model._meta
        pk_field = meta.require_primary_key()
        select_list = ", ".join(
            self.dialect.quote_identifier(field.column_name()) for field in meta.get_fields()
        )
        sql = (
            f"SELECT {select_list} FROM {self.dialect.format_table(meta.table_name)} "
            f"WHERE {self.dialect.quote_identifier(pk_field.column_name())} = "
            f"{self.dialect.parameter_placeholder()}"
        )
        row = self.adapter.execute(sql, (pk,)).fetchone()
        if row is None:
            raise NotFoundError(model, pk)
        columns = [field.column_name() for field in meta.get_fields()]
        return dict(zip(columns, tuple(row)))

    def exists(self, model: Type[Model], pk: Any) -> bool:
        meta = model._meta
        pk_column = self.dialect.quote_identifier(meta.require_primary_key().column_name())
        sql = (
            f"SELECT 1 FROM {self.dialect.format_table(meta.table_name)} "
            f"WHERE {pk_column} = {self.dialect.parameter_placeholder()}"
        )
        return self.adapter.execute(sql, (pk,)).fetchone() is not None

    def delete(self, model: Type[Model], pk: Any) -> None:
        meta = model._meta
        pk_column = self.dialect.quote_identifier(meta.require_primary_key().column_name())
        sql = (
            f"DELETE FROM {self.dialect.format_table(meta.table_name)} "
            f"WHERE {pk_column} = {self.dialect.parameter_placeholder()}"
        )
        cursor = self.adapter.execute(sql, (pk,))
        if cursor.rowcount == 0:
            raise NotFoundError(model, pk)
        self.logger.debug("Deleted %s pk=%r", model.__name__, pk)
