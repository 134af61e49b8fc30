"""
Schema builder converting model metadata into DDL statements.
"""

from __future__ import annotations

from typing import List

from ..core.fields import AutoField, Field
from ..core.model import Model
from ..dialects.base import Dialect
from ..utils import get_logger


class SchemaBuilder:
    """
    Produces dialect-specific CREATE/DROP statements for models.
    """

    def __init__(self, dialect: Dialect) -> None:
        self.dialect = dialect
        self.logger = get_logger("schema.builder")

    def create_table_sql(self, model: type[Model]) -> str:
        table_name = self.dialect.format_table(model._meta.table_name)
        column_list = ", ".join(self._render_column(field) for field in model._meta.get_fields())
        return f"CREATE TABLE IF NOT EXISTS {table_name} ({column_list})"

    def drop_table_sql(self, model: type[Model]) -> str:
        table_name = self.dialect.format_table(model._meta.table_name)
        self.logger.warning("DROP TABLE generated for %s", table_name)
        return f"DROP TABLE IF EXISTS {table_name}"

    def _render_column(self, field: Field) -> str:
        column_name = field.column_name()
        if isinstance(field, AutoField):
            return f"{self.dialect.quote_identifier(column_name)} {self.dialect.auto_primary_key_type()}"

        if not field.db_type:
            raise ValueError(f"Field '{field.name}' missing db_type for schema generation.")
        column_def = self.dialect.render_column_definition(
            column_name,
            field.db_type,
            nullable=field.nullable and not field.primary_key,
        )
        extras: List[str] = []
        if field.primary_key:
            extras.append("PRIMARY KEY")
        elif field.unique:
            extras.append("UNIQUE")
        default_sql = self._default_clause(field)
        if default_sql:
            extras.append(default_sql)
        if extras:
            column_def = f"{column_def} {' '.join(extras)}"
        return column_def

    @staticmethod
    def _default_clause(field: Field) -> str | None:
        if field.default is None or callable(field.default):
            return None
        value = field.default
        if isinstance(value, str):
            escaped = value.replace("'", "''")
            return f"DEFAULT '{escaped}'"
        if isinstance(value, bool):
            return f"DEFAULT {1 if value else 0}"
        return f"DEFAULT {value}"
