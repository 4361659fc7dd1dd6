"""Database drivers satisfying the :class:`~psa.core.protocols.Driver` protocol.

``SqliteDriver`` wraps the stdlib :mod:`sqlite3` module. ``SQLAlchemyDriver``
wraps a SQLAlchemy :class:`~sqlalchemy.engine.Connection` for PostgreSQL and
MySQL and rewrites ``?`` placeholders into named binds for :func:`text`.

Drivers never catch their own exceptions; :class:`~psa.core.database.Database`
wraps them in :class:`~psa.core.errors.PersistenceError`.

Usage::

    from psa.core.drivers import SqliteDriver

    driver = SqliteDriver(":memory:")
    driver.connect()
    stmt = driver.prepare("SELECT 1 AS one")
    driver.execute(stmt)
    driver.fetch_one(stmt)   # {'one': 1}
"""

from __future__ import annotations

import sqlite3
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url

from psa.core.dialect import Dialect, SQLiteDialect, get_dialect


def quote_literal(value: Any) -> str:
    """Quote ``value`` as a SQL literal.

    ``None`` becomes ``NULL``, booleans ``1``/``0``, numbers are emitted
    bare and everything else is single-quoted with embedded quotes doubled.
    """
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, (date, datetime)):
        value = value.isoformat(sep=" ") if isinstance(value, datetime) else value.isoformat()
    return "'" + str(value).replace("'", "''") + "'"


def positional_to_named(sql: str, params: Sequence[Any]) -> tuple[str, dict[str, Any]]:
    """Rewrite ``?`` placeholders to ``:p0, :p1, ...`` for SQLAlchemy ``text()``.

    Question marks inside single-quoted literals are left alone.
    """
    rewritten: list[str] = []
    idx = 0
    in_literal = False
    for ch in sql:
        if ch == "'":
            in_literal = not in_literal
            rewritten.append(ch)
        elif ch == "?" and not in_literal:
            rewritten.append(f":p{idx}")
            idx += 1
        else:
            rewritten.append(ch)
    mapping = {f"p{i}": v for i, v in enumerate(params)}
    return "".join(rewritten), mapping


# ── SQLite ───────────────────────────────────────────────────────────────


@dataclass
class SqliteStatement:
    """Prepared statement handle for :class:`SqliteDriver`."""

    sql: str
    cursor: sqlite3.Cursor | None = None


class SqliteDriver:
    """Driver over ``sqlite3`` with ``sqlite3.Row`` rows returned as dicts."""

    dialect: Dialect = SQLiteDialect()
    # sqlite3 begins a transaction only before DML
    transactional_reads = False

    def __init__(self, path: str = ":memory:", **options: Any) -> None:
        self.path = path
        self.options = options
        self._conn: sqlite3.Connection | None = None
        self._last_cursor: sqlite3.Cursor | None = None

    def connect(self) -> None:
        self._conn = sqlite3.connect(self.path, check_same_thread=False, **self.options)
        self._conn.row_factory = sqlite3.Row

    @property
    def raw(self) -> sqlite3.Connection:
        """The underlying ``sqlite3.Connection`` (e.g. for pragmas)."""
        if self._conn is None:
            raise RuntimeError("SqliteDriver is not connected")
        return self._conn

    def prepare(self, sql: str) -> SqliteStatement:
        # sqlite3 compiles lazily; a cursor per statement keeps result sets apart
        return SqliteStatement(sql=sql, cursor=self.raw.cursor())

    def execute(self, statement: SqliteStatement, params: Sequence[Any] = ()) -> None:
        statement.cursor.execute(statement.sql, tuple(params))
        self._last_cursor = statement.cursor

    def fetch_one(self, statement: SqliteStatement) -> Mapping[str, Any] | None:
        row = statement.cursor.fetchone()
        return dict(row) if row is not None else None

    def fetch_all(self, statement: SqliteStatement) -> list[Mapping[str, Any]]:
        return [dict(row) for row in statement.cursor.fetchall()]

    def last_insert_id(self, sequence: str | None = None) -> Any:  # noqa: ARG002
        if self._last_cursor is None:
            return None
        return self._last_cursor.lastrowid

    def escape(self, value: Any) -> str:
        return quote_literal(value)

    def affected_rows(self, statement: SqliteStatement) -> int:
        return statement.cursor.rowcount

    def commit(self) -> None:
        self.raw.commit()

    def rollback(self) -> None:
        self.raw.rollback()

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __repr__(self) -> str:
        return f"SqliteDriver({self.path!r})"


# ── SQLAlchemy ───────────────────────────────────────────────────────────


@dataclass
class SAStatement:
    """Prepared statement handle for :class:`SQLAlchemyDriver`."""

    sql: str
    result: Any = None
    rows: list[Mapping[str, Any]] = field(default_factory=list)


class SQLAlchemyDriver:
    """Driver over a SQLAlchemy engine (PostgreSQL, MySQL).

    The engine is created on :meth:`connect`; one engine connection is held
    until :meth:`close`.

    Result rows are buffered on execute, so the transaction SQLAlchemy begins
    for a read can be ended before they are fetched.
    """

    transactional_reads = True

    def __init__(
        self,
        url: str,
        *,
        username: str | None = None,
        password: str | None = None,
        **engine_options: Any,
    ) -> None:
        sa_url = make_url(url)
        if username is not None:
            sa_url = sa_url.set(username=username)
        if password is not None:
            sa_url = sa_url.set(password=password)
        self.url = sa_url
        self.engine_options = engine_options
        self.dialect: Dialect = get_dialect(sa_url.get_backend_name())
        self._engine = None
        self._conn = None
        self._last_result: Any = None

    def connect(self) -> None:
        self._engine = create_engine(self.url, **self.engine_options)
        self._conn = self._engine.connect()

    def prepare(self, sql: str) -> SAStatement:
        return SAStatement(sql=sql)

    def execute(self, statement: SAStatement, params: Sequence[Any] = ()) -> None:
        sql, mapping = positional_to_named(statement.sql, params)
        result = self._conn.execute(text(sql), mapping)
        statement.result = result
        statement.rows = [dict(row) for row in result.mappings()] if result.returns_rows else []
        self._last_result = result

    def fetch_one(self, statement: SAStatement) -> Mapping[str, Any] | None:
        return statement.rows.pop(0) if statement.rows else None

    def fetch_all(self, statement: SAStatement) -> list[Mapping[str, Any]]:
        rows, statement.rows = statement.rows, []
        return rows

    def last_insert_id(self, sequence: str | None = None) -> Any:
        query = self.dialect.last_insert_id_query(sequence)
        if query is None:
            return self._last_result.lastrowid if self._last_result is not None else None
        sql, params = query
        named_sql, mapping = positional_to_named(sql, params)
        return self._conn.execute(text(named_sql), mapping).scalar()

    def escape(self, value: Any) -> str:
        return quote_literal(value)

    def affected_rows(self, statement: SAStatement) -> int:
        return statement.result.rowcount if statement.result is not None else 0

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    def __repr__(self) -> str:
        return f"SQLAlchemyDriver({self.url.render_as_string(hide_password=True)!r})"


__all__ = [
    "SAStatement",
    "SQLAlchemyDriver",
    "SqliteDriver",
    "SqliteStatement",
    "positional_to_named",
    "quote_literal",
]
