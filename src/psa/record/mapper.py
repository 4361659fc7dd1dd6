"""
Translate entities into SQL and back.

Manifesto:
    The mapper owns every decision about what SQL an entity produces.
    Column lists come from the entity; overrides and modifiers come from
    the entity's ColumnSettings and ModifierTable; execution goes through
    an injected :class:`~psa.core.database.Database`. Nothing is global.

Architecture:
    ::

        restore(entity)                     save(entity)
            │                                   │
            ▼                                   ▼
        build_select ──► Database          build_save ──► QueryData
            │          fetch_row                │   (insert | update)
            ▼                                   ▼
        after_restore modifiers            Database.execute
            │                                   │
            ▼                                   ▼
        entity[col] = value                last_insert_id → entity pk

    Save field set:
        (only_fields or field_names) + and_fields
        minus fields flagged skip_on_<op>
        minus fields unset or None              (unless <op>_no_params)
        "NULL" → SQL NULL, no modifier

Examples:
    >>> mapper = RecordMapper(database)
    >>> user = User()
    >>> user["username"] = "alice"
    >>> mapper.build_save(user).sql
    'INSERT INTO psa_user (username) VALUES (?)'
    >>> new_id = mapper.save(user)
    >>> user.is_new_record
    False

Guardrails:
    ❌ DON'T: Format values into SQL text
    ✅ DO: Bind them; only developer-configured ``*_no_params`` expressions
       are inlined

Tags:
    record, mapper, active-record, sql, persistence, psa-core

Doc-Types:
    - API Reference
    - Architecture Documentation
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from psa.core.database import Database
from psa.core.errors import NoColumnsError, NotFoundError, RecordError
from psa.framework.logging import get_logger, log_db_operation
from psa.record.columns import ColumnSettings, Operation
from psa.record.entity import Entity
from psa.record.modifiers import ModifierType

logger = get_logger(__name__)

COLUMNS_TOKEN = "<COLUMNS>"
NULL_SENTINEL = "NULL"

# Placeholder for a column that is written by its inlined expression only
_NO_PARAM = object()


@dataclass(frozen=True)
class QueryData:
    """A composed save statement."""

    operation: Operation
    sql: str
    params: tuple[Any, ...]


class RecordMapper:
    """Builds and runs SELECT/INSERT/UPDATE statements for entities.

    Args:
        database: Where statements run.
        discover_columns: Fill an entity's empty ``field_names`` from the
            database before restore/save.
    """

    def __init__(self, database: Database, *, discover_columns: bool = False) -> None:
        self.database = database
        self.discover_columns = discover_columns

    # ── SELECT ───────────────────────────────────────────────────────────

    def select_columns(self, entity: Entity, only_fields: Sequence[str] | None = None) -> list[str]:
        """Column list for a SELECT, with ``select_sql`` overrides in place."""
        fields = list(only_fields) if only_fields else list(entity.field_names)
        if not fields:
            raise NoColumnsError(table=entity.table_name)
        settings = entity.column_settings
        return [settings.select_sql(name) or name for name in fields]

    def build_select(self, entity: Entity, only_fields: Sequence[str] | None = None) -> tuple[str, tuple[Any, ...]]:
        """``SELECT <cols> FROM <table> WHERE <pk> = ?`` and its params."""
        columns = self.select_columns(entity, only_fields)
        sql = (
            f"SELECT {', '.join(columns)} FROM {entity.table_name} "
            f"WHERE {entity.primary_key_field} = ?"
        )
        return sql, (entity.primary_key_value,)

    def restore(
        self,
        entity: Entity,
        only_fields: Sequence[str] | None = None,
        custom_query: str | None = None,
        custom_params: Sequence[Any] = (),
    ) -> dict[str, Any]:
        """Load one row into ``entity`` and return the raw row.

        ``custom_query`` replaces the default SELECT; the token ``<COLUMNS>``
        in it is substituted with the column list.

        Raises:
            NoColumnsError: The column list is empty.
            NotFoundError: The query returned no row.
            PersistenceError: The database failed.
        """
        self._ensure_field_names(entity)

        if custom_query:
            columns = self.select_columns(entity, only_fields)
            sql = custom_query.replace(COLUMNS_TOKEN, ", ".join(columns))
            params = tuple(custom_params)
        else:
            sql, params = self.build_select(entity, only_fields)

        with log_db_operation("select", entity.table_name):
            row = self.database.fetch_row(sql, params)

        if row is None:
            raise NotFoundError(
                f"No data for {entity.primary_key_field} with value "
                f"'{entity.primary_key_value}' in table {entity.table_name}",
                table=entity.table_name,
                key_value=entity.primary_key_value,
            )

        for column, value in row.items():
            entity[column] = entity.modifiers.apply(ModifierType.AFTER_RESTORE, column, value)

        if entity.primary_key_value is not None:
            entity.is_new_record = False
        return row

    # ── INSERT / UPDATE ──────────────────────────────────────────────────

    def save_fields(
        self,
        entity: Entity,
        operation: Operation,
        only_fields: Sequence[str] | None = None,
        and_fields: Iterable[str] | None = None,
    ) -> dict[str, Any]:
        """Resolve the ordered field → value set persisted by ``operation``.

        Values have before-save modifiers applied. Fields written by an
        inlined expression map to an internal no-param marker.
        """
        fields = list(only_fields) if only_fields else list(entity.field_names)
        if and_fields:
            fields.extend(and_fields)

        settings: ColumnSettings = entity.column_settings
        resolved: dict[str, Any] = {}
        for name in fields:
            if name in resolved or settings.skips(name, operation):
                continue
            if settings.no_params(name, operation):
                resolved[name] = _NO_PARAM
                continue
            if not entity.is_set(name):
                continue
            value = entity[name]
            if value == NULL_SENTINEL:
                resolved[name] = None
            else:
                resolved[name] = entity.modifiers.apply(ModifierType.BEFORE_SAVE, name, value)
        return resolved

    def build_save(
        self,
        entity: Entity,
        only_fields: Sequence[str] | None = None,
        and_fields: Iterable[str] | None = None,
    ) -> QueryData:
        """Compose the INSERT (new record) or UPDATE statement without running it.

        Raises:
            NoColumnsError: Nothing is left to write.
        """
        operation = Operation.INSERT if entity.is_new_record else Operation.UPDATE
        columns = self.save_fields(entity, operation, only_fields, and_fields)
        settings = entity.column_settings

        if operation is Operation.UPDATE:
            columns.pop(entity.primary_key_field, None)

        if not columns:
            raise NoColumnsError("No values set to save", table=entity.table_name)

        marks = [settings.write_sql(name, operation) or "?" for name in columns]
        params = [value for value in columns.values() if value is not _NO_PARAM]

        if operation is Operation.INSERT:
            sql = (
                f"INSERT INTO {entity.table_name} ({', '.join(columns)}) "
                f"VALUES ({','.join(marks)})"
            )
        else:
            assignments = [f"{name}={mark}" for name, mark in zip(columns, marks)]
            sql = (
                f"UPDATE {entity.table_name} SET {', '.join(assignments)} "
                f"WHERE {entity.primary_key_field}=?"
            )
            params.append(entity.primary_key_value)

        return QueryData(operation=operation, sql=sql, params=tuple(params))

    def save(
        self,
        entity: Entity,
        only_fields: Sequence[str] | None = None,
        and_fields: Iterable[str] | None = None,
    ) -> Any:
        """Insert or update ``entity`` and return its primary key.

        After an insert the entity holds the generated key and is no longer
        a new record. An update never changes the key.
        """
        self._ensure_field_names(entity)
        query = self.build_save(entity, only_fields, and_fields)

        with log_db_operation(query.operation.value, entity.table_name, param_count=len(query.params)):
            self.database.execute(query.sql, query.params)

            if query.operation is Operation.UPDATE:
                return entity.primary_key_value

            new_id = self.database.last_insert_id(entity.sequence_name)

        if new_id is None:
            raise RecordError(
                f"Database did not report a generated key for {entity.table_name}"
            ).with_context(table=entity.table_name, sql=query.sql)

        entity.primary_key_value = int(new_id)
        entity.is_new_record = False
        logger.debug("record.inserted", table=entity.table_name, key_value=entity.primary_key_value)
        return entity.primary_key_value

    # ── Column settings / discovery ──────────────────────────────────────

    @staticmethod
    def set_column_override(target: Entity | ColumnSettings, field_name: str, **options: Any) -> None:
        """Merge override options into an entity's (or a bare) ColumnSettings."""
        settings = target.column_settings if isinstance(target, Entity) else target
        settings.set(field_name, **options)

    def discover_field_names(self, entity: Entity) -> list[str]:
        """Fill ``entity.field_names`` from the table's columns and return them.

        Raises:
            NoColumnsError: The table has no columns (usually: it does not exist).
        """
        names = self.database.column_names(entity.table_name)
        if not names:
            raise NoColumnsError(
                f"Cannot discover columns of table {entity.table_name}",
                table=entity.table_name,
            )
        entity.field_names = tuple(names)
        return names

    def _ensure_field_names(self, entity: Entity) -> None:
        if self.discover_columns and not entity.field_names:
            self.discover_field_names(entity)


__all__ = ["COLUMNS_TOKEN", "NULL_SENTINEL", "QueryData", "RecordMapper"]
