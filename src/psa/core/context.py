"""
Application context: settings and live collaborators passed explicitly.

:class:`AppContext` holds the settings, the application database, the
audit and profile loggers, the record mapper and the controller registry.
Components are created on first access and released by :meth:`close` (or
the context-manager protocol). Controllers receive the context on
construction instead of reaching for globals.

Usage::

    from psa.core.context import AppContext

    with AppContext() as ctx:
        user = User(7)
        ctx.mapper.restore(user)
        ctx.audit.log(f"Loaded user {user['username']}")

    # Tests inject their own collaborators
    ctx = AppContext(settings, database=Database(SqliteDriver(":memory:")))
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from psa.core.database import Database
from psa.core.settings import PsaSettings, get_settings

if TYPE_CHECKING:
    from psa.framework.audit import AuditLogger, ProfileLogger
    from psa.framework.registry import ControllerRegistry
    from psa.record.mapper import RecordMapper


class AppContext:
    """Lazy-initialised application context."""

    def __init__(
        self,
        settings: PsaSettings | None = None,
        database: Database | None = None,
        *,
        registry: ControllerRegistry | None = None,
    ) -> None:
        self._settings = settings
        self._database = database
        self._owns_database = database is None
        self._registry = registry
        self._audit: AuditLogger | None = None
        self._profile: ProfileLogger | None = None
        self._mapper: RecordMapper | None = None

    # ── Properties (lazy) ────────────────────────────────────────

    @property
    def settings(self) -> PsaSettings:
        if self._settings is None:
            self._settings = get_settings()
        return self._settings

    @property
    def database(self) -> Database:
        """Application :class:`Database` built from ``settings.db``."""
        if self._database is None:
            from psa.core.connection import database_from_settings

            self._database, _ = database_from_settings(self.settings)
        return self._database

    @property
    def mapper(self) -> RecordMapper:
        if self._mapper is None:
            from psa.record.mapper import RecordMapper

            self._mapper = RecordMapper(self.database)
        return self._mapper

    @property
    def audit(self) -> AuditLogger:
        """Audit logger writing to ``psa_default`` unless told otherwise."""
        if self._audit is None:
            from psa.framework.audit import AuditLogger

            self._audit = AuditLogger(self.settings, self.database, self._log_database)
        return self._audit

    @property
    def profile_logger(self) -> ProfileLogger:
        if self._profile is None:
            from psa.framework.audit import ProfileLogger

            self._profile = ProfileLogger(self.settings, self.database, self._log_database)
        return self._profile

    @property
    def registry(self) -> ControllerRegistry:
        """Controller table; the process-wide default unless one was injected."""
        if self._registry is None:
            from psa.framework.registry import default_registry

            self._registry = default_registry
        return self._registry

    def _log_database(self) -> Database:
        from psa.core.connection import database_from_settings

        db, _ = database_from_settings(self.settings)
        return db

    # ── Lifecycle ────────────────────────────────────────────────

    def close(self) -> None:
        """Close loggers' separate connections and the database this context opened."""
        for log in (self._audit, self._profile):
            if log is not None:
                log.close()
        if self._database is not None and self._owns_database:
            self._database.close()

    def __enter__(self) -> AppContext:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()


__all__ = ["AppContext"]
