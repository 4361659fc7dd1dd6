"""Request scope: the per-request id and client details.

The dispatcher opens a scope for each request. Audit and profile records
read client details from it, and the log context carries its request id.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field

from psa.framework.logging.context import generate_request_id, push_context


@dataclass(frozen=True)
class RequestInfo:
    """Client-side details of the request being served."""

    path: str | None = None
    client_ip: str | None = None
    user_agent: str | None = None
    referer: str | None = None
    request_id: str = field(default_factory=generate_request_id)


_current_request: ContextVar[RequestInfo | None] = ContextVar("psa_current_request", default=None)


def current_request() -> RequestInfo | None:
    """The request being served, or None outside a request scope."""
    return _current_request.get()


@contextmanager
def request_scope(
    path: str | None = None,
    *,
    client_ip: str | None = None,
    user_agent: str | None = None,
    referer: str | None = None,
    request_id: str | None = None,
) -> Iterator[RequestInfo]:
    """Open a request scope with a fresh (or given) request id."""
    info = RequestInfo(
        path=path,
        client_ip=client_ip,
        user_agent=user_agent,
        referer=referer,
        request_id=request_id or generate_request_id(),
    )
    token = _current_request.set(info)
    log_token = push_context(request_id=info.request_id)
    try:
        yield info
    finally:
        log_token.restore()
        _current_request.reset(token)


__all__ = ["RequestInfo", "current_request", "request_scope"]
