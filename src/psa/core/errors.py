"""
Structured error types for the PSA core.

Every failure raised by the record mapper, the database layer, the dispatcher,
the validator and the audit logger is a :class:`PsaError`. Errors carry a
category, structured context and the chained cause, so application code can
log them without knowing anything about the database driver underneath.

Manifesto:
    - **Typed hierarchy:** one subclass per failure the caller can act on
    - **No driver leakage:** driver exceptions are chained as ``cause``,
      never re-raised with their own type
    - **Rich context:** table, statement, controller and method travel with
      the error for logging

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────┐
        │                          PsaError                             │
        │             (category, context, cause, to_dict)               │
        ├──────────────────────────────────────────────────────────────┤
        │                                                               │
        │  RecordError          PersistenceError      RouterError       │
        │  (RECORD)             (DATABASE)            (ROUTING)         │
        │     │                     │                     │             │
        │  NoColumnsError       DatabaseConnection    UnknownClass      │
        │  NotFoundError          Error               UnknownMethod     │
        │  InvalidModifierError                       BadArguments      │
        │                                             UnknownRequest    │
        │                                                               │
        │  ValidationError      ConfigError           LoggerError       │
        │  (VALIDATION)         (CONFIG)              (LOGGING)         │
        └──────────────────────────────────────────────────────────────┘

Examples:
    >>> error = NotFoundError("No row", table="psa_user", key_value=7)
    >>> error.context.table
    'psa_user'

    >>> try:
    ...     raise RuntimeError("disk I/O error")
    ... except RuntimeError as e:
    ...     err = PersistenceError("SQL error", sql="SELECT 1", param_count=0, cause=e)
    >>> err.sql
    'SELECT 1'

Guardrails:
    ❌ DON'T: Let ``sqlite3.Error`` or SQLAlchemy errors escape the database layer
    ✅ DO: Wrap them in PersistenceError with the statement text

    ❌ DON'T: Raise bare ``Exception`` from a controller lookup
    ✅ DO: Use UnknownClassError / UnknownMethodError

Tags:
    error-handling, exception-hierarchy, error-context, psa-core
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories used for log routing."""

    DATABASE = "DATABASE"
    RECORD = "RECORD"
    ROUTING = "ROUTING"
    VALIDATION = "VALIDATION"
    CONFIG = "CONFIG"
    LOGGING = "LOGGING"
    INTERNAL = "INTERNAL"


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error.

    Only non-None fields are emitted by :meth:`to_dict`. Anything that does
    not fit a typed field goes into ``metadata``.
    """

    # Record context
    table: str | None = None
    field: str | None = None
    key_value: Any = None

    # Statement context
    sql: str | None = None
    param_count: int | None = None

    # Dispatch context
    controller: str | None = None
    method: str | None = None
    request_id: str | None = None

    metadata: dict[str, Any] = dataclasses.field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Set fields, then metadata, as one flat mapping."""
        data = {name: getattr(self, name) for name in _TYPED_FIELDS if getattr(self, name) is not None}
        data.update(self.metadata)
        return data


_TYPED_FIELDS = tuple(f.name for f in dataclasses.fields(ErrorContext) if f.name != "metadata")


class PsaError(Exception):
    """
    Base exception for all PSA errors.

    Subclasses set ``default_category``. ``cause`` is chained as
    ``__cause__`` so tracebacks still show the original failure.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category if category is not None else self.default_category
        self.context = context if context is not None else ErrorContext()
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **values: Any) -> PsaError:
        """
        Attach context and return ``self``, so it chains onto ``raise``::

            raise RecordError("Bad field").with_context(table="psa_group", hint="x")

        Keys that are not ``ErrorContext`` fields land in ``metadata``.
        """
        for name, value in values.items():
            if name in _TYPED_FIELDS:
                setattr(self.context, name, value)
            else:
                self.context.metadata[name] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Flat mapping for a structured log event."""
        data: dict[str, Any] = {
            "error_type": type(self).__name__,
            "category": self.category.value,
            "message": self.message,
        }
        ctx = self.context.to_dict()
        if ctx:
            data["context"] = ctx
        if self.cause is not None:
            data["cause"] = str(self.cause)
        return data

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# RECORD ERRORS
# =============================================================================


class RecordError(PsaError):
    """Error composing or applying an active-record operation."""

    default_category = ErrorCategory.RECORD


class NoColumnsError(RecordError):
    """A query was asked to operate over zero columns."""

    def __init__(self, message: str = "Table column names not set", *, table: str | None = None, **kwargs: Any):
        super().__init__(message, **kwargs)
        if table is not None:
            self.context.table = table


class NotFoundError(RecordError):
    """Restore found no row for the entity."""

    def __init__(
        self,
        message: str,
        *,
        table: str | None = None,
        key_value: Any = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.context.table = table
        self.context.key_value = key_value


class InvalidModifierError(RecordError):
    """Modifier registered under an unknown modifier type."""

    pass


# =============================================================================
# DATABASE ERRORS
# =============================================================================


class PersistenceError(PsaError):
    """
    Driver-level failure during connect, prepare or execute.

    Carries the attempted statement and its parameter count. The driver
    exception is available as ``cause`` only.
    """

    default_category = ErrorCategory.DATABASE

    def __init__(
        self,
        message: str,
        *,
        sql: str | None = None,
        param_count: int | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.sql = sql
        self.param_count = param_count
        self.context.sql = sql
        self.context.param_count = param_count


class DatabaseConnectionError(PersistenceError):
    """Unable to open the database connection."""

    pass


# =============================================================================
# ROUTING ERRORS
# =============================================================================


class RouterError(PsaError):
    """Dispatch target cannot be resolved or invoked."""

    default_category = ErrorCategory.ROUTING


class UnknownClassError(RouterError):
    """Controller class is not registered or cannot be instantiated."""

    def __init__(self, class_name: str, *, cause: Exception | None = None):
        self.class_name = class_name
        super().__init__(f"Trying to make a new instance of unexisting class: {class_name}", cause=cause)
        self.context.controller = class_name


class UnknownMethodError(RouterError):
    """Controller has no public method with the requested name."""

    def __init__(self, class_name: str, method_name: str):
        self.class_name = class_name
        self.method_name = method_name
        super().__init__(f"Trying to call unexisting method: {class_name}::{method_name}")
        self.context.controller = class_name
        self.context.method = method_name


class BadArgumentsError(RouterError):
    """Path arguments do not fit the action method signature."""

    def __init__(self, class_name: str, method_name: str, args: tuple[str, ...], reason: str):
        self.class_name = class_name
        self.method_name = method_name
        self.args_given = args
        super().__init__(f"Cannot call {class_name}::{method_name} with {len(args)} argument(s): {reason}")
        self.context.controller = class_name
        self.context.method = method_name


class UnknownRequestError(RouterError):
    """No request path was supplied to dispatch."""

    pass


# =============================================================================
# VALIDATION / CONFIG / LOGGING
# =============================================================================


class ValidationError(PsaError):
    """
    Field-level constraint violation.

    Never raised by the record mapper itself; application code raises it
    (usually through :class:`~psa.framework.validator.Validator`) before
    saving.
    """

    default_category = ErrorCategory.VALIDATION

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        constraint: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.field = field
        self.value = value
        self.constraint = constraint

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        extra = {"field": self.field, "constraint": self.constraint}
        data.update({k: v for k, v in extra.items() if v})
        if self.value is not None:
            data["value"] = repr(self.value)
        return data


class ConfigError(PsaError):
    """Configuration is missing or invalid."""

    default_category = ErrorCategory.CONFIG


class LoggerError(PsaError):
    """The primary audit log storage cannot be written."""

    default_category = ErrorCategory.LOGGING


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, PsaError):
        return error.category
    return ErrorCategory.INTERNAL


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "PsaError",
    # Record
    "RecordError",
    "NoColumnsError",
    "NotFoundError",
    "InvalidModifierError",
    # Database
    "PersistenceError",
    "DatabaseConnectionError",
    # Routing
    "RouterError",
    "UnknownClassError",
    "UnknownMethodError",
    "BadArgumentsError",
    "UnknownRequestError",
    # Other
    "ValidationError",
    "ConfigError",
    "LoggerError",
    "categorize_error",
]
