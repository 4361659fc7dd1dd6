"""
Per-field column overrides consulted while composing record SQL.

A column override replaces or suppresses the default ``?``-bound parameter
for one field and one operation: a SELECT expression, an INSERT/UPDATE
expression, a flag that drops the field from an operation, or a flag that
inlines the expression with no bound parameter (``NOW()``).

Examples:
    >>> settings = ColumnSettings()
    >>> settings.set("created", insert_sql="NOW()", insert_no_params=True, skip_on_update=True)
    >>> settings.write_sql("created", Operation.INSERT)
    'NOW()'
    >>> settings.skips("created", Operation.UPDATE)
    True
    >>> settings.set("created", skip_on_update=None)     # None removes the key
    >>> settings.skips("created", Operation.UPDATE)
    False

Tags:
    record, column-settings, sql, overrides, psa-core
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, fields
from enum import Enum
from typing import Any

from psa.core.errors import RecordError


class Operation(str, Enum):
    """Statement kind a column override applies to."""

    SELECT = "select"
    INSERT = "insert"
    UPDATE = "update"


@dataclass(frozen=True)
class ColumnOverride:
    """Read-only view of one field's overrides."""

    select_sql: str | None = None
    insert_sql: str | None = None
    update_sql: str | None = None
    skip_on_insert: bool = False
    skip_on_update: bool = False
    insert_no_params: bool = False
    update_no_params: bool = False


OVERRIDE_KEYS = frozenset(f.name for f in fields(ColumnOverride))


class ColumnSettings:
    """Mapping of field name to its override options.

    ``set()`` merges options into the field's entry. An option passed as
    ``None`` removes that key; any other value, ``False`` included, is
    stored. ``remove()`` drops keys or the whole entry explicitly.
    """

    def __init__(self, overrides: Mapping[str, Mapping[str, Any]] | None = None) -> None:
        self._overrides: dict[str, dict[str, Any]] = {}
        for field_name, options in (overrides or {}).items():
            self.set(field_name, **options)

    def set(self, field_name: str, **options: Any) -> None:
        """Merge override options for ``field_name``.

        ``insert_update_sql`` sets both ``insert_sql`` and ``update_sql``,
        replacing either one passed in the same call.

        Raises:
            RecordError: If an option name is not a known override key.
        """
        shared = options.pop("insert_update_sql", None)
        if shared is not None:
            options["insert_sql"] = options["update_sql"] = shared

        unknown = set(options) - OVERRIDE_KEYS
        if unknown:
            raise RecordError(
                f"Unknown column override option(s): {', '.join(sorted(unknown))}"
            ).with_context(field=field_name)

        entry = self._overrides.setdefault(field_name, {})
        for key, value in options.items():
            if value is None:
                entry.pop(key, None)
            else:
                entry[key] = value
        if not entry:
            del self._overrides[field_name]

    def remove(self, field_name: str, *keys: str) -> None:
        """Remove the given override keys, or every override of the field."""
        if field_name not in self._overrides:
            return
        if not keys:
            del self._overrides[field_name]
            return
        entry = self._overrides[field_name]
        for key in keys:
            entry.pop(key, None)
        if not entry:
            del self._overrides[field_name]

    def get(self, field_name: str) -> ColumnOverride:
        return ColumnOverride(**self._overrides.get(field_name, {}))

    # ── Query composition lookups ────────────────────────────────────────

    def select_sql(self, field_name: str) -> str | None:
        return self._overrides.get(field_name, {}).get("select_sql")

    def write_sql(self, field_name: str, operation: Operation) -> str | None:
        """INSERT/UPDATE expression for ``field_name``, if overridden."""
        return self._overrides.get(field_name, {}).get(f"{operation.value}_sql")

    def skips(self, field_name: str, operation: Operation) -> bool:
        return bool(self._overrides.get(field_name, {}).get(f"skip_on_{operation.value}"))

    def no_params(self, field_name: str, operation: Operation) -> bool:
        return bool(self._overrides.get(field_name, {}).get(f"{operation.value}_no_params"))

    # ── Mapping protocol ─────────────────────────────────────────────────

    def __contains__(self, field_name: object) -> bool:
        return field_name in self._overrides

    def __iter__(self) -> Iterator[str]:
        return iter(self._overrides)

    def __len__(self) -> int:
        return len(self._overrides)

    def to_dict(self) -> dict[str, dict[str, Any]]:
        return {name: dict(entry) for name, entry in self._overrides.items()}

    def copy(self) -> ColumnSettings:
        return ColumnSettings(self.to_dict())

    def __repr__(self) -> str:
        return f"ColumnSettings({self.to_dict()!r})"


__all__ = ["ColumnOverride", "ColumnSettings", "OVERRIDE_KEYS", "Operation"]
