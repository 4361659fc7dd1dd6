"""
In-memory record bound to one table row.

Manifesto:
    An entity is plain data plus the metadata needed to persist it: table,
    primary key, the ordered field list, column overrides and modifiers.
    It knows nothing about databases; :class:`~psa.record.mapper.RecordMapper`
    turns it into SQL.

    Field values live in an explicit ordered mapping. A field that was never
    set, or was set to ``None``, is left out of the next save. The string
    ``"NULL"`` is the way to write SQL NULL.

Examples:
    Declarative subtype::

        class User(Entity):
            table_name = "psa_user"
            primary_key_field = "id"
            field_names = ("id", "username", "email", "created", "prefs")

            def configure(self):
                self.set_column_override("created", insert_sql="NOW()", insert_no_params=True,
                                         skip_on_update=True)
                self.register_modifier("before_save", "prefs", json.dumps)
                self.register_modifier("after_restore", "prefs", json.loads)

        user = User()                 # new record
        user["username"] = "alice"
        existing = User(7)            # bound to row id=7

    Ad-hoc entity::

        row = Entity(table_name="psa_group", primary_key_field="id",
                     field_names=["id", "name"], primary_key_value=3)

Tags:
    record, entity, active-record, psa-core
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Any, ClassVar

from psa.core.errors import RecordError
from psa.record.columns import ColumnSettings
from psa.record.modifiers import Modifier, ModifierTable, ModifierType

_UNSET = object()


class Entity:
    """One table row held in memory.

    Subclasses declare ``table_name``, ``primary_key_field``, ``field_names``
    and ``sequence_name`` as class attributes and set up overrides and
    modifiers in :meth:`configure`. Any of these can also be passed to the
    constructor.
    """

    table_name: ClassVar[str | None] = None
    primary_key_field: ClassVar[str] = "id"
    field_names: ClassVar[tuple[str, ...]] = ()
    sequence_name: ClassVar[str | None] = None

    def __init__(
        self,
        primary_key_value: Any = None,
        values: Mapping[str, Any] | None = None,
        *,
        table_name: str | None = None,
        primary_key_field: str | None = None,
        field_names: Iterable[str] | None = None,
        sequence_name: str | None = None,
    ) -> None:
        # Instance attributes shadow the class-level declarations
        self.table_name = table_name or type(self).table_name
        self.primary_key_field = primary_key_field or type(self).primary_key_field
        self.field_names = tuple(field_names if field_names is not None else type(self).field_names)
        self.sequence_name = sequence_name or type(self).sequence_name

        if not self.table_name:
            raise RecordError(f"{type(self).__name__} has no table_name")

        self.column_settings = ColumnSettings()
        self.modifiers = ModifierTable()
        self._values: dict[str, Any] = {}

        if values:
            self.update(values)
        if primary_key_value is not None:
            self._values[self.primary_key_field] = primary_key_value

        self.is_new_record = self.primary_key_value is None
        self.configure()

    def configure(self) -> None:
        """Hook for subclasses: register column overrides and modifiers."""

    # ── Primary key ──────────────────────────────────────────────────────

    @property
    def primary_key_value(self) -> Any:
        return self._values.get(self.primary_key_field)

    @primary_key_value.setter
    def primary_key_value(self, value: Any) -> None:
        self._values[self.primary_key_field] = value

    # ── Field access ─────────────────────────────────────────────────────

    def __getitem__(self, field_name: str) -> Any:
        return self._values[field_name]

    def __setitem__(self, field_name: str, value: Any) -> None:
        self._values[field_name] = value

    def __delitem__(self, field_name: str) -> None:
        del self._values[field_name]

    def __contains__(self, field_name: object) -> bool:
        return field_name in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def get(self, field_name: str, default: Any = None) -> Any:
        return self._values.get(field_name, default)

    def set(self, field_name: str, value: Any) -> Entity:
        """Assign a field value; returns self for chaining."""
        self._values[field_name] = value
        return self

    def unset(self, field_name: str) -> None:
        """Forget a field value so the next save leaves the column alone."""
        self._values.pop(field_name, None)

    def update(self, values: Mapping[str, Any]) -> None:
        for field_name, value in values.items():
            self._values[field_name] = value

    def is_set(self, field_name: str) -> bool:
        """True when the field holds a non-None value."""
        return self._values.get(field_name, _UNSET) not in (_UNSET, None)

    @property
    def field_values(self) -> dict[str, Any]:
        """Copy of the sparse field → value mapping."""
        return dict(self._values)

    # ── Overrides and modifiers ──────────────────────────────────────────

    def set_column_override(self, field_name: str, **options: Any) -> None:
        """Merge column override options for one field (see ColumnSettings.set)."""
        self.column_settings.set(field_name, **options)

    def remove_column_override(self, field_name: str, *keys: str) -> None:
        self.column_settings.remove(field_name, *keys)

    def register_modifier(self, modifier_type: ModifierType | str, field_name: str, fn: Modifier) -> None:
        """Register a ``before_save`` or ``after_restore`` transform for a field."""
        self.modifiers.register(modifier_type, field_name, fn)

    def __repr__(self) -> str:
        state = "new" if self.is_new_record else f"{self.primary_key_field}={self.primary_key_value!r}"
        return f"<{type(self).__name__} {self.table_name} {state}>"


__all__ = ["Entity"]
