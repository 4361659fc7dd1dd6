"""
Timing for dispatched actions and record statements.

``timed_block`` measures without logging; the dispatcher uses it for profile
entries. ``log_step`` measures and logs, and opens a span in the log context
so nested steps report their parent. ``log_db_operation`` is ``log_step`` at
DEBUG with the statement kind and table in the event name:

    db.insert.psa_user.start   span_id=1f0c9a2e
    db.insert.psa_user.end     span_id=1f0c9a2e duration_ms=0.41 param_count=3
"""

import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

from psa.framework.logging.context import get_context, get_logger, push_context


def _span_id() -> str:
    return uuid.uuid4().hex[:8]


@dataclass
class TimingResult:
    """Elapsed time of one step, with its span and attached metrics."""

    step: str
    span_id: str = field(default_factory=_span_id)
    parent_span_id: str | None = None
    started_at: float = field(default_factory=time.perf_counter)
    ended_at: float | None = None
    metrics: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    def stop(self) -> "TimingResult":
        """Freeze the end time; later calls keep the first one."""
        if self.ended_at is None:
            self.ended_at = time.perf_counter()
        return self

    @property
    def duration_seconds(self) -> float:
        end = self.ended_at if self.ended_at is not None else time.perf_counter()
        return end - self.started_at

    @property
    def duration_ms(self) -> float:
        return self.duration_seconds * 1000

    @property
    def failed(self) -> bool:
        return self.error is not None

    def add_metric(self, key: str, value: Any) -> "TimingResult":
        self.metrics[key] = value
        return self

    def fail(self, exc: BaseException) -> "TimingResult":
        self.error = f"{type(exc).__name__}: {exc}"
        return self

    def fields(self) -> dict[str, Any]:
        """Log fields: duration, span ids, error (if any), then metrics."""
        out: dict[str, Any] = {"duration_ms": round(self.duration_ms, 2), "span_id": self.span_id}
        if self.parent_span_id:
            out["parent_span_id"] = self.parent_span_id
        if self.error:
            out["error"] = self.error
        out.update(self.metrics)
        return out


@contextmanager
def timed_block(step: str = "block") -> Iterator[TimingResult]:
    """Measure the enclosed block without logging it.

    Usage:
        with timed_block("User_Controller->edit_action") as timer:
            result = action(*args)
        total_time = timer.duration_seconds
    """
    timer = TimingResult(step=step, parent_span_id=get_context().span_id)
    try:
        yield timer
    finally:
        timer.stop()


@contextmanager
def log_step(event: str, *, level: str = "info", **metrics: Any) -> Iterator[TimingResult]:
    """
    Log ``<event>.start`` at DEBUG and ``<event>.end`` at ``level`` with the duration.

    A failing block logs ``<event>.error`` instead and re-raises.

    Usage:
        with log_step("user.import", rows=len(rows)) as timer:
            imported = import_users(rows)
            timer.add_metric("imported", imported)
    """
    log = get_logger("psa.timing")
    parent = get_context().span_id
    timer = TimingResult(step=event, parent_span_id=parent, metrics=dict(metrics))
    token = push_context(span_id=timer.span_id, parent_span_id=parent, step=event)

    log.debug(f"{event}.start", **{"span_id": timer.span_id, **metrics})
    try:
        yield timer
    except Exception as e:
        timer.stop().fail(e)
        log.error(f"{event}.error", **timer.fields())
        raise
    else:
        timer.stop()
        getattr(log, level)(f"{event}.end", **timer.fields())
    finally:
        token.restore()


@contextmanager
def log_db_operation(operation: str, table: str, **metrics: Any) -> Iterator[TimingResult]:
    """``log_step`` at DEBUG for one statement against ``table``."""
    with log_step(f"db.{operation}.{table}", level="debug", **metrics) as timer:
        yield timer
