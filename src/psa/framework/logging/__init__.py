"""
Diagnostic logging for PSA: structlog with request context and timing.

This is the developer-facing stream. The audit trail written to ``psa_log``
lives in :mod:`psa.framework.audit`.

Usage:
    from psa.framework.logging import configure_logging, get_logger, log_step

    configure_logging(level="DEBUG", format="json")
    log = get_logger(__name__)

    with log_step("user.import", rows=len(rows)):
        import_users(rows)
"""

from psa.framework.logging.config import configure_logging
from psa.framework.logging.context import (
    LogContext,
    bind_context,
    clear_context,
    generate_request_id,
    get_context,
    get_logger,
    push_context,
    set_context,
)
from psa.framework.logging.timing import TimingResult, log_db_operation, log_step, timed_block

__all__ = [
    "configure_logging",
    # Context
    "LogContext",
    "bind_context",
    "clear_context",
    "generate_request_id",
    "get_context",
    "get_logger",
    "push_context",
    "set_context",
    # Timing
    "TimingResult",
    "log_db_operation",
    "log_step",
    "timed_block",
]
