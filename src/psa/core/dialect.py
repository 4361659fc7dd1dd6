"""SQL dialect abstraction for backend-specific fragments.

The record mapper writes portable SQL with ``?`` placeholders. The few
things that genuinely differ between backends live here: column
introspection for auto-discovered field lists, the statement that reads
back a generated key, and the current-timestamp expression used by the
audit logger.

Examples:
    >>> from psa.core.dialect import get_dialect
    >>> get_dialect("sqlite").now()
    "datetime('now')"
    >>> get_dialect("postgresql").column_names_query("psa_user")[1]
    ('psa_user',)

Tags:
    dialect, sql, introspection, portability, psa-core
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Dialect(Protocol):
    """SQL dialect contract."""

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    def now(self) -> str:
        """SQL expression for the current timestamp."""
        ...

    def column_names_query(self, table: str) -> tuple[str, tuple]:
        """Statement and params listing the columns of ``table`` in order.

        The first column of every returned row, or its ``name`` key for
        SQLite's ``PRAGMA table_info``, is the column name.
        """
        ...

    def column_name_key(self) -> str:
        """Row key holding the column name in :meth:`column_names_query` rows."""
        ...

    def last_insert_id_query(self, sequence: str | None) -> tuple[str, tuple] | None:
        """Statement reading back a generated key.

        ``None`` means the driver reports the key itself (e.g. a cursor's
        ``lastrowid``).
        """
        ...


# =========================================================================
# Concrete Dialect Implementations
# =========================================================================


class SQLiteDialect:
    """SQLite dialect: ``datetime('now')``, ``PRAGMA table_info``."""

    @property
    def name(self) -> str:
        return "sqlite"

    def now(self) -> str:
        return "datetime('now')"

    # -- Introspection -----------------------------------------------------

    def column_names_query(self, table: str) -> tuple[str, tuple]:
        # PRAGMA does not accept bound parameters
        return f"PRAGMA table_info({table})", ()

    def column_name_key(self) -> str:
        return "name"

    def last_insert_id_query(self, sequence: str | None) -> tuple[str, tuple] | None:  # noqa: ARG002
        return None


class PostgreSQLDialect:
    """PostgreSQL dialect: ``NOW()``, INFORMATION_SCHEMA, sequence ``currval``."""

    @property
    def name(self) -> str:
        return "postgresql"

    def now(self) -> str:
        return "NOW()"

    def column_names_query(self, table: str) -> tuple[str, tuple]:
        return (
            "SELECT column_name FROM information_schema.columns "
            "WHERE table_name = ? ORDER BY ordinal_position",
            (table,),
        )

    def column_name_key(self) -> str:
        return "column_name"

    def last_insert_id_query(self, sequence: str | None) -> tuple[str, tuple] | None:
        if sequence:
            return "SELECT currval(?)", (sequence,)
        return "SELECT lastval()", ()


class MySQLDialect:
    """MySQL/MariaDB dialect: ``NOW()``, ``LAST_INSERT_ID()``."""

    @property
    def name(self) -> str:
        return "mysql"

    def now(self) -> str:
        return "NOW()"

    def column_names_query(self, table: str) -> tuple[str, tuple]:
        return (
            "SELECT COLUMN_NAME AS column_name FROM INFORMATION_SCHEMA.COLUMNS "
            "WHERE TABLE_SCHEMA = DATABASE() AND TABLE_NAME = ? "
            "ORDER BY ORDINAL_POSITION",
            (table,),
        )

    def column_name_key(self) -> str:
        return "column_name"

    def last_insert_id_query(self, sequence: str | None) -> tuple[str, tuple] | None:  # noqa: ARG002
        return "SELECT LAST_INSERT_ID()", ()


# =========================================================================
# Registry / Factory
# =========================================================================

# Pre-instantiated singletons (dialects are stateless)
_DIALECTS: dict[str, Dialect] = {
    "sqlite": SQLiteDialect(),
    "postgresql": PostgreSQLDialect(),
    "postgres": PostgreSQLDialect(),  # alias
    "mysql": MySQLDialect(),
    "mariadb": MySQLDialect(),  # alias
}


def get_dialect(db_type: str) -> Dialect:
    """Get a dialect by database type name.

    Raises:
        ValueError: If ``db_type`` is not recognised.
    """
    key = db_type.lower()
    if key not in _DIALECTS:
        raise ValueError(
            f"Unknown dialect '{db_type}'. "
            f"Supported: {sorted(set(_DIALECTS) - {'postgres', 'mariadb'})}"
        )
    return _DIALECTS[key]


def register_dialect(name: str, dialect: Dialect) -> None:
    """Register a custom dialect implementation (lower-cased key)."""
    _DIALECTS[name.lower()] = dialect


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "MySQLDialect",
    "get_dialect",
    "register_dialect",
]
