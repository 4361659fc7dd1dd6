"""
Shared pytest fixtures and configuration for psa tests.

This module provides:
- Registry, settings and log-context cleanup for test isolation
- An in-memory SQLite database with the framework tables
- A recording driver for asserting the exact SQL a component issues
- An application context wired to both
"""

import sys
from pathlib import Path
from typing import Any

import pytest

# Ensure psa package is importable
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from psa.core.context import AppContext
from psa.core.database import Database
from psa.core.drivers import SqliteDriver
from psa.core.settings import PsaSettings, clear_settings_cache
from psa.framework.logging import clear_context
from psa.framework.registry import ControllerRegistry, clear_registry

SCHEMA = [
    """CREATE TABLE psa_user (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT,
        email TEXT,
        created TEXT,
        prefs TEXT
    )""",
    """CREATE TABLE psa_log (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        client_ip TEXT, log_time TEXT, request_uri TEXT, user_agent TEXT,
        referer TEXT, type TEXT, username TEXT, user_id INTEGER,
        message TEXT, function TEXT, group_id INTEGER, groupname TEXT
    )""",
    """CREATE TABLE psa_profile_log (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        method TEXT, total_time REAL, method_arguments TEXT,
        client_ip TEXT, log_time TEXT, request_id TEXT
    )""",
]


# =============================================================================
# Cleanup Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_state():
    """Reset process-wide registries, cached settings and log context."""
    clear_registry()
    clear_settings_cache()
    clear_context()
    yield
    clear_registry()
    clear_settings_cache()
    clear_context()


# =============================================================================
# Settings / Database
# =============================================================================


@pytest.fixture
def settings(monkeypatch) -> PsaSettings:
    """Default settings, isolated from the developer's environment."""
    for key in list(__import__("os").environ):
        if key.startswith("PSA_"):
            monkeypatch.delenv(key)
    return PsaSettings(_env_file=None)


@pytest.fixture
def database():
    """In-memory SQLite database with the framework tables."""
    db = Database(SqliteDriver(":memory:"))
    for ddl in SCHEMA:
        db.execute(ddl)
    yield db
    db.close()


@pytest.fixture
def context(settings, database) -> AppContext:
    """Application context over the test database with a private registry."""
    return AppContext(settings, database=database, registry=ControllerRegistry())


# =============================================================================
# Recording driver
# =============================================================================


class RecordingDriver:
    """Driver double that records statements and replays canned rows."""

    dialect = SqliteDriver.dialect

    def __init__(self, rows: list[dict[str, Any]] | None = None, next_id: Any = 42) -> None:
        self.rows = list(rows or [])
        self.next_id = next_id
        self.executed: list[tuple[str, tuple]] = []
        self.connected = False
        self.commits = 0
        self.rollbacks = 0
        self.fail_with: Exception | None = None

    def connect(self) -> None:
        self.connected = True

    def prepare(self, sql: str) -> dict[str, Any]:
        return {"sql": sql, "rows": []}

    def execute(self, statement: dict[str, Any], params=()) -> None:
        if self.fail_with is not None:
            raise self.fail_with
        self.executed.append((statement["sql"], tuple(params)))
        statement["rows"] = list(self.rows)

    def fetch_one(self, statement):
        return statement["rows"].pop(0) if statement["rows"] else None

    def fetch_all(self, statement):
        rows, statement["rows"] = statement["rows"], []
        return rows

    def last_insert_id(self, sequence=None):
        self.last_sequence = sequence
        return self.next_id

    def escape(self, value) -> str:
        return repr(value)

    def affected_rows(self, statement) -> int:
        return 1

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1

    def close(self) -> None:
        self.connected = False

    @property
    def statements(self) -> list[str]:
        return [sql for sql, _ in self.executed]


@pytest.fixture
def recording_driver() -> RecordingDriver:
    return RecordingDriver()


@pytest.fixture
def recording_db(recording_driver) -> Database:
    return Database(recording_driver)
