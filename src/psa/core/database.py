"""
Database facade over a driver.

Manifesto:
    The record mapper and the audit logger need five things from a database:
    run a statement, read rows back, get a generated key, quote a literal,
    and control a transaction. :class:`Database` offers exactly that over any
    :class:`~psa.core.protocols.Driver`, opens the connection lazily and turns
    every driver failure into a :class:`~psa.core.errors.PersistenceError`.

Architecture:
    ::

        RecordMapper / AuditLogger
                 │
                 ▼
        ┌──────────────────────────────────────────────┐
        │ Database                                     │
        │  execute / fetch_row / fetch_all /           │
        │  fetch_column / last_insert_id /             │
        │  transaction() / column_names()              │
        └──────────────────────────────────────────────┘
                 │  (errors wrapped here)
                 ▼
        SqliteDriver  |  SQLAlchemyDriver  |  test double

Examples:
    >>> from psa.core.drivers import SqliteDriver
    >>> db = Database(SqliteDriver(":memory:"))
    >>> _ = db.execute("CREATE TABLE t (id INTEGER PRIMARY KEY, name TEXT)")
    >>> with db.transaction():
    ...     _ = db.execute("INSERT INTO t (name) VALUES (?)", ("a",))
    >>> db.fetch_column("SELECT name FROM t")
    ['a']

Guardrails:
    ❌ DON'T: Call driver methods directly from domain code
    ✅ DO: Go through Database so errors are wrapped and logged

Tags:
    database, driver, transaction, persistence, psa-core

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

from psa.core.dialect import Dialect, SQLiteDialect
from psa.core.errors import DatabaseConnectionError, PersistenceError
from psa.core.protocols import Driver
from psa.framework.logging import get_logger

logger = get_logger(__name__)

_READ_PREFIXES = ("SELECT", "PRAGMA", "WITH", "SHOW", "EXPLAIN")


class Database:
    """Lazy-connecting database wrapper.

    Args:
        driver: Object satisfying the :class:`Driver` protocol.
        dialect: SQL dialect; defaults to ``driver.dialect`` or SQLite.
        autocommit: Commit after each write executed outside ``transaction()``.
            Reads are committed too when the driver sets ``transactional_reads``,
            so a long-lived connection never keeps an old snapshot open.
    """

    def __init__(
        self,
        driver: Driver,
        dialect: Dialect | None = None,
        *,
        autocommit: bool = True,
    ) -> None:
        self.driver = driver
        self.dialect: Dialect = dialect or getattr(driver, "dialect", None) or SQLiteDialect()
        self.autocommit = autocommit
        self._connected = False
        self._transaction_depth = 0

    # ── Connection lifecycle ─────────────────────────────────────────────

    @property
    def connected(self) -> bool:
        return self._connected

    def connect(self) -> None:
        """Open the driver connection if it is not open yet."""
        if self._connected:
            return
        try:
            self.driver.connect()
        except Exception as e:
            raise DatabaseConnectionError(f"Unable to connect to database: {e}", cause=e) from e
        self._connected = True
        logger.debug("db.connected", driver=repr(self.driver), dialect=self.dialect.name)

    def close(self) -> None:
        """Close the driver connection. Safe to call more than once."""
        if not self._connected:
            return
        try:
            self.driver.close()
        finally:
            self._connected = False
            self._transaction_depth = 0

    # ── Statements ───────────────────────────────────────────────────────

    def prepare(self, sql: str) -> Any:
        """Prepare ``sql`` and return the driver's statement handle."""
        self.connect()
        try:
            return self.driver.prepare(sql)
        except Exception as e:
            raise self._wrap(e, sql, 0) from e

    def execute(self, sql: str, params: Sequence[Any] = (), *, statement: Any = None) -> Any:
        """Execute ``sql`` with positional params and return the statement handle.

        Pass ``statement`` to re-run a handle from :meth:`prepare`.
        """
        if statement is None:
            statement = self.prepare(sql)
        else:
            self.connect()
        params = tuple(params)
        try:
            self.driver.execute(statement, params)
        except Exception as e:
            raise self._wrap(e, sql, len(params)) from e
        logger.debug("db.execute", sql=sql, param_count=len(params))
        if self.autocommit and self._transaction_depth == 0:
            if not _is_read(sql) or getattr(self.driver, "transactional_reads", False):
                self.commit()
        return statement

    def fetch_one(self, statement: Any, sql: str | None = None) -> dict[str, Any] | None:
        """Fetch the next row of an executed statement."""
        try:
            row = self.driver.fetch_one(statement)
        except Exception as e:
            raise self._wrap(e, sql, None) from e
        return dict(row) if row is not None else None

    def fetch_rows(self, statement: Any, sql: str | None = None) -> list[dict[str, Any]]:
        """Fetch all remaining rows of an executed statement."""
        try:
            rows = self.driver.fetch_all(statement)
        except Exception as e:
            raise self._wrap(e, sql, None) from e
        return [dict(row) for row in rows]

    # ── Convenience reads ────────────────────────────────────────────────

    def fetch_row(self, sql: str, params: Sequence[Any] = ()) -> dict[str, Any] | None:
        """Run a query and return its first row, or None."""
        statement = self.execute(sql, params)
        return self.fetch_one(statement, sql)

    def fetch_all(self, sql: str, params: Sequence[Any] = ()) -> list[dict[str, Any]]:
        """Run a query and return every row."""
        statement = self.execute(sql, params)
        return self.fetch_rows(statement, sql)

    def fetch_column(self, sql: str, params: Sequence[Any] = (), column: int | str = 0) -> list[Any]:
        """Run a query and return one column (by position or name) of every row."""
        rows = self.fetch_all(sql, params)
        if isinstance(column, int):
            return [list(row.values())[column] for row in rows]
        return [row[column] for row in rows]

    # ── Driver passthrough ───────────────────────────────────────────────

    def last_insert_id(self, sequence: str | None = None) -> Any:
        """Key generated by the last INSERT, optionally from a named sequence."""
        self.connect()
        try:
            return self.driver.last_insert_id(sequence)
        except Exception as e:
            raise self._wrap(e, f"last_insert_id({sequence})", None) from e

    def escape(self, value: Any) -> str:
        """Quote ``value`` as a SQL literal for this driver."""
        self.connect()
        return self.driver.escape(value)

    def affected_rows(self, statement: Any) -> int:
        return self.driver.affected_rows(statement)

    def column_names(self, table: str) -> list[str]:
        """Column names of ``table`` in declaration order."""
        sql, params = self.dialect.column_names_query(table)
        key = self.dialect.column_name_key()
        return [row[key] for row in self.fetch_all(sql, params)]

    # ── Transactions ─────────────────────────────────────────────────────

    def commit(self) -> None:
        try:
            self.driver.commit()
        except Exception as e:
            raise self._wrap(e, "COMMIT", None) from e

    def rollback(self) -> None:
        try:
            self.driver.rollback()
        except Exception as e:
            raise self._wrap(e, "ROLLBACK", None) from e

    @contextmanager
    def transaction(self) -> Iterator[Database]:
        """Commit on success, roll back on any exception.

        Nested blocks join the outermost transaction.
        """
        self.connect()
        self._transaction_depth += 1
        try:
            yield self
        except BaseException:
            self._transaction_depth -= 1
            if self._transaction_depth == 0:
                self.rollback()
                logger.debug("db.rollback")
            raise
        else:
            self._transaction_depth -= 1
            if self._transaction_depth == 0:
                self.commit()

    @property
    def in_transaction(self) -> bool:
        return self._transaction_depth > 0

    # ── Context manager ──────────────────────────────────────────────────

    def __enter__(self) -> Database:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # ── Internal ─────────────────────────────────────────────────────────

    @staticmethod
    def _wrap(error: Exception, sql: str | None, param_count: int | None) -> PersistenceError:
        if isinstance(error, PersistenceError):
            return error
        message = f"SQL error: {error}"
        if sql:
            message += f". In query: {sql}"
        return PersistenceError(message, sql=sql, param_count=param_count, cause=error)

    def __repr__(self) -> str:
        return f"Database(driver={self.driver!r}, dialect={self.dialect.name!r})"


def _is_read(sql: str) -> bool:
    return sql.lstrip().upper().startswith(_READ_PREFIXES)


__all__ = ["Database"]
