"""
Audit and profile logging to file or database storages.

Manifesto:
    The audit trail is application data, not diagnostics. It goes to the
    storages named in ``settings.logging.storages`` (a file or a table),
    while structlog carries the diagnostic stream. A broken primary storage
    means the audit trail is broken, so that failure is raised; any other
    storage failure is a warning.

Architecture:
    ::

        AuditLogger.log(record, storage="psa_default")
            │
            ├── disabled / level > max_log_level ──► -1
            │
            ├── storage.type == "file"      ──► append formatted line
            │
            └── storage.type == "database"  ──► prepared INSERT into target
                    │
                    ├── ok                         ──► 1
                    ├── failed, primary storage    ──► LoggerError
                    └── failed, other storage      ──► RuntimeWarning, 0

        ProfileLogger(AuditLogger)  storage "psa_profile",
            columns (method, total_time, method_arguments, client_ip,
                     log_time, request_id)

Examples:
    >>> audit = AuditLogger(settings, database=db)
    >>> audit.log("User created")
    1
    >>> audit.log({"message": "noisy", "level": 5})
    -1

Tags:
    audit, logging, storage, profile, psa-core
"""

from __future__ import annotations

import warnings
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from psa.core.database import Database
from psa.core.errors import ConfigError, LoggerError
from psa.core.settings import LogStorage, PsaSettings
from psa.framework.logging import get_context, get_logger
from psa.framework.request import current_request

logger = get_logger(__name__)

PRIMARY_STORAGE = "psa_default"

AuditRecord = Mapping[str, Any]


class AuditLogger:
    """Writes audit records to the configured storages.

    Args:
        settings: Application settings (``settings.logging``).
        database: Shared application database for database storages.
        database_factory: Builds a separate log database when
            ``logging.new_database_connection`` is on.
    """

    default_storage = PRIMARY_STORAGE

    def __init__(
        self,
        settings: PsaSettings,
        database: Database | None = None,
        database_factory: Callable[[], Database] | None = None,
    ) -> None:
        self.settings = settings
        self._database = database
        self._database_factory = database_factory
        self._log_database: Database | None = None
        self._statements: dict[str, Any] = {}

    # ── Public API ───────────────────────────────────────────────────────

    def log(self, record: AuditRecord | str, storage: str | None = None) -> int:
        """Write one record.

        Returns:
            ``1`` written, ``-1`` filtered out by level, ``0`` a non-primary
            storage failed.

        Raises:
            LoggerError: Writing to the primary storage failed.
            ConfigError: ``storage`` is not configured.
        """
        storage_name = storage or self.default_storage
        data = self._normalize(record)

        cfg = self.settings.logging
        if not cfg.enabled or data["level"] > cfg.max_log_level:
            return -1

        target = cfg.storages.get(storage_name)
        if target is None:
            raise ConfigError(f"Log storage {storage_name!r} is not configured")

        try:
            if target.type == "file":
                self._write_file(target, data)
            else:
                self._write_database(storage_name, target, data)
        except Exception as e:
            message = f"Unable to write log message to {target.type} storage {target.target}: {e}"
            if storage_name == PRIMARY_STORAGE:
                logger.error("audit.primary_storage_failed", storage=storage_name, error=str(e))
                raise LoggerError(message, cause=e).with_context(storage=storage_name) from e
            warnings.warn(message, RuntimeWarning, stacklevel=2)
            return 0
        return 1

    def close(self) -> None:
        """Close the separate log connection, if one was opened."""
        self._statements.clear()
        if self._log_database is not None:
            self._log_database.close()
            self._log_database = None

    # ── Record shaping ───────────────────────────────────────────────────

    def _normalize(self, record: AuditRecord | str) -> dict[str, Any]:
        data = {"message": str(record)} if isinstance(record, str) else dict(record)
        if not data.get("level"):
            data["level"] = 1
        data["type"] = data.get("type") or None

        ctx = get_context()
        if not data.get("user_id") and ctx.user_id is not None:
            data["user_id"] = ctx.user_id
        if not data.get("username") and ctx.username is not None:
            data["username"] = ctx.username
        return data

    def columns(self) -> tuple[str, ...]:
        return (
            "client_ip", "log_time", "request_uri", "user_agent", "referer", "type",
            "username", "user_id", "message", "function", "group_id", "groupname",
        )

    def insert_params(self, data: Mapping[str, Any]) -> tuple[Any, ...]:
        """Bound values for :meth:`columns`, ``log_time`` excluded."""
        request = current_request()
        return (
            request.client_ip if request else None,
            request.path if request else None,
            request.user_agent if request else None,
            request.referer if request else None,
            data.get("type"),
            data.get("username"),
            data.get("user_id"),
            data.get("message"),
            data.get("function"),
            data.get("group_id"),
            data.get("groupname"),
        )

    def format_line(self, data: Mapping[str, Any]) -> str:
        """Render a record for a file storage."""
        cfg = self.settings.logging
        request = current_request()
        sep = "\n" if cfg.more_lines else ""
        stamp = datetime.now().strftime(cfg.time_format)

        if cfg.more_lines:
            line = f"\n[{stamp}] {sep}====================={sep}"
        else:
            line = f"[{stamp}] "

        function = data.get("function")
        if function and not cfg.more_lines:
            function = str(function).replace("\r\n", " ").replace("\n", " ")

        parts = [
            (data.get("message"), "{}"),
            (request.client_ip if request else None, " IP={}"),
            (data.get("username"), " USER={}"),
            (data.get("user_id"), " UID={}"),
            (data.get("groupname"), " GROUP={}"),
            (data.get("group_id"), " GID={}"),
            (function, " FUNCTION={}"),
            (data.get("type"), " TYPE={}"),
            (request.path if request else None, " REQUEST_URI={}"),
            (request.user_agent if request else None, " USER_AGENT={}"),
            (request.referer if request else None, " REFERER={}"),
        ]
        for value, template in parts:
            if value:
                line += template.format(value) + sep
        return line + "\n"

    # ── Storages ─────────────────────────────────────────────────────────

    def _write_file(self, target: LogStorage, data: Mapping[str, Any]) -> None:
        with open(target.target, "a", encoding="utf-8") as handle:
            handle.write(self.format_line(data))

    def _write_database(self, storage_name: str, target: LogStorage, data: Mapping[str, Any]) -> None:
        db = self._get_database()
        columns = self.columns()
        marks = [db.dialect.now() if name == "log_time" else "?" for name in columns]
        sql = f"INSERT INTO {target.target} ({', '.join(columns)}) VALUES ({','.join(marks)})"

        statement = self._statements.get(storage_name)
        if statement is None:
            statement = db.prepare(sql)
            self._statements[storage_name] = statement
        db.execute(sql, self.insert_params(data), statement=statement)

    def _get_database(self) -> Database:
        if self.settings.logging.new_database_connection:
            if self._log_database is None:
                if self._database_factory is None:
                    raise ConfigError("new_database_connection is set but no database factory was given")
                self._log_database = self._database_factory()
            return self._log_database
        if self._database is None:
            raise ConfigError("Database log storage needs a database")
        return self._database


class ProfileLogger(AuditLogger):
    """Records dispatcher timings into the ``psa_profile`` storage."""

    default_storage = "psa_profile"

    def columns(self) -> tuple[str, ...]:
        return ("method", "total_time", "method_arguments", "client_ip", "log_time", "request_id")

    def insert_params(self, data: Mapping[str, Any]) -> tuple[Any, ...]:
        request = current_request()
        return (
            data.get("method"),
            data.get("total_time"),
            data.get("method_arguments"),
            request.client_ip if request else None,
            data.get("request_id"),
        )

    def format_line(self, data: Mapping[str, Any]) -> str:
        stamp = datetime.now().strftime(self.settings.logging.time_format)
        return (
            f"[{stamp}] {data.get('method')} total_time={data.get('total_time')} "
            f"request_id={data.get('request_id')} arguments={data.get('method_arguments')}\n"
        )


__all__ = ["AuditLogger", "PRIMARY_STORAGE", "ProfileLogger"]
