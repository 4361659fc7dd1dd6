"""Per-field value modifiers applied before saving and after restoring."""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Any

from psa.core.errors import InvalidModifierError

Modifier = Callable[[Any], Any]


class ModifierType(str, Enum):
    BEFORE_SAVE = "before_save"
    AFTER_RESTORE = "after_restore"


class ModifierTable:
    """Function table keyed by modifier type, then field name."""

    def __init__(self) -> None:
        self._table: dict[ModifierType, dict[str, Modifier]] = {t: {} for t in ModifierType}

    def register(self, modifier_type: ModifierType | str, field_name: str, fn: Modifier) -> None:
        """Register ``fn`` for ``field_name``; replaces an existing one.

        Raises:
            InvalidModifierError: If ``modifier_type`` is not a known type.
        """
        try:
            kind = ModifierType(modifier_type)
        except ValueError:
            raise InvalidModifierError(f"Invalid modifier type: {modifier_type}").with_context(
                field=field_name
            ) from None
        if not callable(fn):
            raise InvalidModifierError(f"Modifier for {field_name!r} is not callable").with_context(
                field=field_name
            )
        self._table[kind][field_name] = fn

    def get(self, modifier_type: ModifierType, field_name: str) -> Modifier | None:
        return self._table[modifier_type].get(field_name)

    def apply(self, modifier_type: ModifierType, field_name: str, value: Any) -> Any:
        """Return ``value`` transformed by the field's modifier, if any."""
        fn = self._table[modifier_type].get(field_name)
        return fn(value) if fn is not None else value

    def count(self, modifier_type: ModifierType) -> int:
        return len(self._table[modifier_type])


__all__ = ["Modifier", "ModifierTable", "ModifierType"]
