"""PSA Core -- errors, settings, the database layer and the application context.

Architecture::

    errors.py        Structured error hierarchy (PsaError and subclasses)
    settings.py      PsaSettings (pydantic-settings, PSA_ env prefix)
    protocols.py     Driver protocol
    dialect.py       Backend-specific SQL fragments (SQLite, PostgreSQL, MySQL)
    drivers.py       SqliteDriver, SQLAlchemyDriver
    database.py      Database facade (lazy connect, error wrapping, transactions)
    connection.py    create_database() URL factory
    context.py       AppContext (explicit dependency container)
"""

from psa.core.errors import (
    BadArgumentsError,
    ConfigError,
    DatabaseConnectionError,
    ErrorCategory,
    ErrorContext,
    InvalidModifierError,
    LoggerError,
    NoColumnsError,
    NotFoundError,
    PersistenceError,
    PsaError,
    RecordError,
    RouterError,
    UnknownClassError,
    UnknownMethodError,
    UnknownRequestError,
    ValidationError,
)
from psa.core.settings import PsaSettings, clear_settings_cache, get_settings

__all__ = [
    "BadArgumentsError",
    "ConfigError",
    "DatabaseConnectionError",
    "ErrorCategory",
    "ErrorContext",
    "InvalidModifierError",
    "LoggerError",
    "NoColumnsError",
    "NotFoundError",
    "PersistenceError",
    "PsaError",
    "PsaSettings",
    "RecordError",
    "RouterError",
    "UnknownClassError",
    "UnknownMethodError",
    "UnknownRequestError",
    "ValidationError",
    "clear_settings_cache",
    "get_settings",
]
