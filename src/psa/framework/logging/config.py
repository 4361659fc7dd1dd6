"""
structlog setup for the diagnostic stream.

``configure_logging()`` routes structlog through stdlib logging once per
process. Level and renderer default to ``PsaSettings.log_level`` and
``PsaSettings.log_format`` (``PSA_LOG_LEVEL``, ``PSA_LOG_FORMAT``)::

    configure_logging()                              # from settings
    configure_logging(level="DEBUG", format="json")  # explicit
"""

import logging
import sys
from typing import Literal

import structlog
from structlog.types import Processor

from psa.framework.logging.context import add_context_processor

_configured = False

_PROCESSORS: tuple[Processor, ...] = (
    structlog.stdlib.filter_by_level,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    add_context_processor,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
)


def _renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    # format_exc_info already rendered the traceback
    return structlog.dev.ConsoleRenderer(
        colors=sys.stderr.isatty(),
        exception_formatter=structlog.dev.plain_traceback,
    )


def configure_logging(
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] | None = None,
    format: Literal["json", "console"] | None = None,
    force: bool = False,
) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        level: Minimum level; defaults to ``settings.log_level``.
        format: ``"json"`` or ``"console"``; defaults to ``settings.log_format``.
        force: Configure again even if an earlier call already did.
    """
    global _configured
    if _configured and not force:
        return

    if level is None or format is None:
        from psa.core.settings import get_settings

        settings = get_settings()
        level = level or settings.log_level
        format = format or settings.log_format

    numeric_level = getattr(logging, level.upper())

    structlog.configure(
        processors=[*_PROCESSORS, _renderer(format.lower())],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=numeric_level, force=True)
    logging.getLogger("psa").setLevel(numeric_level)

    _configured = True


def is_configured() -> bool:
    return _configured


def is_debug_enabled() -> bool:
    """True when the root logger passes DEBUG records."""
    return logging.getLogger().isEnabledFor(logging.DEBUG)
