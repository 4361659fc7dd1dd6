"""
PSA Record - ActiveRecord-style mapping between entities and table rows.

Usage:
    from psa.record import Entity, RecordMapper

    mapper = RecordMapper(database)
    user = User(7)
    mapper.restore(user)
    user["email"] = "alice@example.com"
    mapper.save(user)
"""

from psa.record.columns import ColumnOverride, ColumnSettings, Operation
from psa.record.entity import Entity
from psa.record.mapper import COLUMNS_TOKEN, NULL_SENTINEL, QueryData, RecordMapper
from psa.record.modifiers import ModifierTable, ModifierType

__all__ = [
    "COLUMNS_TOKEN",
    "NULL_SENTINEL",
    "ColumnOverride",
    "ColumnSettings",
    "Entity",
    "ModifierTable",
    "ModifierType",
    "Operation",
    "QueryData",
    "RecordMapper",
]
