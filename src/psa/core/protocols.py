"""
Canonical protocol definitions for the PSA database layer.

Manifesto:
    The record mapper and the audit logger talk to a :class:`Database`, and
    the database talks to a driver. Drivers are defined by shape only so a
    test double, the stdlib ``sqlite3`` adapter and the SQLAlchemy adapter are
    interchangeable.

    - **Decoupling:** Database depends on the Driver shape, not a driver module
    - **Testability:** any object with these methods works

Architecture:
    ::

        Driver Protocol:
        ┌────────────────────────────────────────────────────────────┐
        │ connect()                   → open the underlying handle   │
        │ prepare(sql)                → statement handle             │
        │ execute(statement, params)  → run with positional params   │
        │ fetch_one(statement)        → mapping | None               │
        │ fetch_all(statement)        → list[mapping]                │
        │ last_insert_id(sequence)    → generated key                │
        │ escape(value)               → quoted SQL literal           │
        │ affected_rows(statement)    → int                          │
        │ commit() / rollback()       → transaction control          │
        │ close()                     → release the handle           │
        └────────────────────────────────────────────────────────────┘

        Implementations:
            SqliteDriver      (stdlib sqlite3)
            SQLAlchemyDriver  (PostgreSQL / MySQL through an Engine)

Guardrails:
    ❌ DON'T: Catch driver exceptions inside a driver
    ✅ DO: Let them propagate; :class:`~psa.core.database.Database` wraps them

    ❌ DON'T: Use ``%s`` or named placeholders in mapper SQL
    ✅ DO: Write ``?``; drivers translate when their backend needs it

Tags:
    protocol, driver, database, psa-core, contracts

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Driver(Protocol):
    """
    Minimal synchronous driver interface used by :class:`Database`.

    Rows are returned as mappings keyed by column name. Placeholders in SQL
    handed to ``prepare`` are always ``?``.
    """

    def connect(self) -> None:
        """Open the connection. Called once, lazily, by the Database."""
        ...

    def prepare(self, sql: str) -> Any:
        """Return a statement handle for ``sql``."""
        ...

    def execute(self, statement: Any, params: Sequence[Any] = ()) -> None:
        """Execute a prepared statement with positional parameters."""
        ...

    def fetch_one(self, statement: Any) -> Mapping[str, Any] | None:
        """Fetch the next row from an executed statement."""
        ...

    def fetch_all(self, statement: Any) -> list[Mapping[str, Any]]:
        """Fetch all remaining rows from an executed statement."""
        ...

    def last_insert_id(self, sequence: str | None = None) -> Any:
        """Return the id generated by the last INSERT."""
        ...

    def escape(self, value: Any) -> str:
        """Quote ``value`` as a SQL literal."""
        ...

    def affected_rows(self, statement: Any) -> int:
        """Row count reported for an executed statement."""
        ...

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...

    def close(self) -> None:
        ...


__all__ = ["Driver"]
