"""
Request-scoped log context.

Values bound here (request id, controller, action, user) are added to every
structlog event by :func:`add_context_processor`, so the mapper and the
controllers never pass them around. The dispatcher pushes the controller and
action for the duration of a call; :func:`psa.framework.request.request_scope`
pushes the request id.
"""

import uuid
from contextvars import ContextVar, Token
from dataclasses import dataclass, fields, replace
from typing import Any

import structlog


def generate_request_id() -> str:
    """New correlation id: 32 hex characters."""
    return uuid.uuid4().hex


@dataclass(frozen=True)
class LogContext:
    """
    Fields added to every log event while bound.

    ``request_id`` correlates everything one dispatched request logs and
    writes to ``psa_profile_log``. ``controller`` and ``action`` name the
    dispatch target. ``user_id`` and ``username`` are set by the application
    once it knows the user; the audit logger falls back to them.
    ``span_id``, ``parent_span_id`` and ``step`` belong to ``log_step``.
    """

    request_id: str | None = None
    controller: str | None = None
    action: str | None = None
    user_id: int | str | None = None
    username: str | None = None
    span_id: str | None = None
    parent_span_id: str | None = None
    step: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Bound (non-None) fields only."""
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        return {k: v for k, v in values.items() if v is not None}

    def merge(self, **values: Any) -> "LogContext":
        """Copy with ``values`` applied; a ``None`` value leaves the field as it is."""
        return replace(self, **{k: v for k, v in values.items() if v is not None})


_EMPTY = LogContext()
_current: ContextVar[LogContext] = ContextVar("psa_log_context", default=_EMPTY)  # noqa: B039


def get_context() -> LogContext:
    return _current.get()


def set_context(**values: Any) -> LogContext:
    """Replace the whole context (``bind_context`` merges instead)."""
    ctx = LogContext(**values)
    _current.set(ctx)
    return ctx


def bind_context(**values: Any) -> LogContext:
    """Merge ``values`` into the current context."""
    ctx = get_context().merge(**values)
    _current.set(ctx)
    return ctx


def clear_context() -> None:
    _current.set(_EMPTY)


class ContextToken:
    """Undo handle returned by :func:`push_context`."""

    __slots__ = ("_token",)

    def __init__(self, token: Token) -> None:
        self._token = token

    def restore(self) -> None:
        _current.reset(self._token)


def push_context(**values: Any) -> ContextToken:
    """
    Merge ``values`` for a scoped block; ``restore()`` brings the previous context back.

    Usage:
        token = push_context(controller="User_Controller", action="edit_action")
        try:
            result = action(*args)
        finally:
            token.restore()
    """
    return ContextToken(_current.set(get_context().merge(**values)))


def add_context_processor(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """structlog processor: add bound fields the event does not set itself."""
    for key, value in get_context().to_dict().items():
        event_dict.setdefault(key, value)
    return event_dict


def get_logger(name: str | None = None) -> Any:
    """structlog logger, usually ``get_logger(__name__)``."""
    return structlog.get_logger(name)
