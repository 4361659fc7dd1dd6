"""Database factory: build a :class:`~psa.core.database.Database` from a URL.

Supported URL schemes
---------------------
==================  ==========================================  ================
Scheme              Example                                     Driver
==================  ==========================================  ================
``memory``          ``memory`` or ``:memory:`` or ``None``       SqliteDriver
``sqlite``          ``sqlite:///path/to/file.db``                SqliteDriver
``(file path)``     ``./data/app.db``                            SqliteDriver
``postgresql``      ``postgresql://user:pw@host:port/db``        SQLAlchemyDriver
``postgres``        ``postgres://user:pw@host:port/db``          SQLAlchemyDriver
``mysql``           ``mysql+pymysql://user:pw@host/db``          SQLAlchemyDriver
==================  ==========================================  ================

Usage
-----
::

    from psa.core.connection import create_database

    db, info = create_database()                       # in-memory SQLite
    db, info = create_database("sqlite:///app.db")
    db, info = create_database(settings.db.url, username="psa", password="secret")

The connection itself is opened lazily by the first statement.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from psa.core.database import Database
from psa.core.drivers import SQLAlchemyDriver, SqliteDriver
from psa.core.errors import ConfigError
from psa.framework.logging import get_logger

logger = get_logger(__name__)


# ── ConnectionInfo ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class ConnectionInfo:
    """What :func:`create_database` built: backend, durability and location."""

    backend: str
    persistent: bool
    url: str | None
    resolved_path: str | None = None

    def __repr__(self) -> str:
        where = f"path={self.resolved_path!r}" if self.resolved_path else f"url={self.url!r}"
        return f"ConnectionInfo(backend={self.backend!r}, persistent={self.persistent}, {where})"

    @property
    def is_sqlite(self) -> bool:
        return self.backend == "sqlite"

    @property
    def is_postgres(self) -> bool:
        return self.backend == "postgresql"


# ── URL parsing ──────────────────────────────────────────────────────────

_MEMORY = ("memory", ":memory:")
_SERVER_PREFIXES = {
    "postgresql": ("postgresql://", "postgresql+", "postgres+"),
    "mysql": ("mysql://", "mysql+", "mariadb://", "mariadb+"),
}


def _parse_url(db: str | None) -> tuple[str, str]:
    """Split ``db`` into ``(kind, target)``.

    ``kind`` is ``"memory"``, ``"sqlite"``, ``"file"``, ``"postgresql"`` or
    ``"mysql"``. Server URLs come back whole, with ``postgres://`` spelled
    out in full because SQLAlchemy rejects the short form.
    """
    if not db or db in ("memory", ":memory:"):
        return _MEMORY

    if db.startswith("sqlite://"):
        target = db[len("sqlite://"):]
        if target.startswith("/"):
            target = target[1:]
        return ("sqlite", target) if target and target != ":memory:" else _MEMORY

    if db.startswith("postgres://"):
        db = "postgresql://" + db[len("postgres://"):]

    for kind, prefixes in _SERVER_PREFIXES.items():
        if db.startswith(prefixes):
            return kind, db

    if "://" in db:
        raise ConfigError(f"Unsupported database URL scheme: {db.partition('://')[0]!r}")
    return "file", db


# ── Factory ──────────────────────────────────────────────────────────────


def _sqlite_file(target: str, data_dir: str | None) -> str:
    path = Path(target)
    if data_dir and not path.is_absolute():
        path = Path(data_dir, target)
    path.parent.mkdir(parents=True, exist_ok=True)
    return str(path.resolve())


def create_database(
    url: str | None = None,
    *,
    username: str | None = None,
    password: str | None = None,
    data_dir: str | None = None,
    autocommit: bool = True,
    **options: Any,
) -> tuple[Database, ConnectionInfo]:
    """Create a :class:`Database` for ``url`` and describe what was built.

    Args:
        url: ``None``/``"memory"`` for in-memory SQLite, a file path, a
            ``sqlite:///`` URL, or a PostgreSQL/MySQL URL.
        username: Merged into server URLs.
        password: Merged into server URLs.
        data_dir: Base directory for relative SQLite paths.
        autocommit: Forwarded to :class:`Database`.
        options: Passed to ``sqlite3.connect`` or ``sqlalchemy.create_engine``.

    Raises:
        ConfigError: The URL scheme is not supported.
    """
    kind, target = _parse_url(url)

    if kind == "memory":
        driver = SqliteDriver(target, **options)
        info = ConnectionInfo("sqlite", persistent=False, url=target)
    elif kind in ("sqlite", "file"):
        resolved = _sqlite_file(target, data_dir)
        driver = SqliteDriver(resolved, **options)
        info = ConnectionInfo("sqlite", persistent=True, url=url, resolved_path=resolved)
    else:
        driver = SQLAlchemyDriver(target, username=username, password=password, **options)
        info = ConnectionInfo(kind, persistent=True, url=url)

    logger.debug("db.created", backend=info.backend, persistent=info.persistent)
    return Database(driver, autocommit=autocommit), info


def database_from_settings(settings: Any) -> tuple[Database, ConnectionInfo]:
    """Create the application database described by ``settings.db``."""
    db = settings.db
    return create_database(db.url, username=db.username, password=db.password, **db.options)


__all__ = ["ConnectionInfo", "create_database", "database_from_settings"]
