"""Tests for psa.core.drivers."""

from datetime import date, datetime

import pytest

from psa.core.database import Database
from psa.core.dialect import MySQLDialect, PostgreSQLDialect
from psa.core.drivers import SQLAlchemyDriver, SqliteDriver, positional_to_named, quote_literal
from psa.core.protocols import Driver


class TestQuoteLiteral:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (None, "NULL"),
            (True, "1"),
            (False, "0"),
            (7, "7"),
            (1.5, "1.5"),
            ("alice", "'alice'"),
            ("O'Brien", "'O''Brien'"),
            (date(2024, 1, 31), "'2024-01-31'"),
            (datetime(2024, 1, 31, 12, 30), "'2024-01-31 12:30:00'"),
        ],
    )
    def test_values(self, value, expected):
        assert quote_literal(value) == expected


class TestPositionalToNamed:
    def test_rewrites_placeholders(self):
        sql, params = positional_to_named("SELECT * FROM t WHERE a = ? AND b = ?", (1, "x"))
        assert sql == "SELECT * FROM t WHERE a = :p0 AND b = :p1"
        assert params == {"p0": 1, "p1": "x"}

    def test_leaves_quoted_question_marks(self):
        sql, params = positional_to_named("SELECT '?' AS q, ? AS v", (5,))
        assert sql == "SELECT '?' AS q, :p0 AS v"
        assert params == {"p0": 5}


class TestSqliteDriver:
    @pytest.fixture
    def driver(self):
        d = SqliteDriver(":memory:")
        d.connect()
        yield d
        d.close()

    def test_satisfies_protocol(self, driver):
        assert isinstance(driver, Driver)

    def test_rows_are_dicts(self, driver):
        stmt = driver.prepare("SELECT 1 AS one, 'a' AS two")
        driver.execute(stmt)
        assert driver.fetch_one(stmt) == {"one": 1, "two": "a"}
        assert driver.fetch_one(stmt) is None

    def test_last_insert_id(self, driver):
        create = driver.prepare("CREATE TABLE t (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT)")
        driver.execute(create)
        for name in ("a", "b"):
            stmt = driver.prepare("INSERT INTO t (name) VALUES (?)")
            driver.execute(stmt, (name,))
        assert driver.last_insert_id() == 2

    def test_last_insert_id_before_execute(self, driver):
        assert driver.last_insert_id() is None

    def test_statements_keep_separate_results(self, driver):
        first = driver.prepare("SELECT 1 AS v")
        second = driver.prepare("SELECT 2 AS v")
        driver.execute(first)
        driver.execute(second)
        assert driver.fetch_all(first) == [{"v": 1}]
        assert driver.fetch_all(second) == [{"v": 2}]

    def test_raw_requires_connection(self):
        with pytest.raises(RuntimeError):
            SqliteDriver(":memory:").raw


class TestSQLAlchemyDriver:
    """Construction only; no server is contacted before connect()."""

    def test_dialect_from_url(self):
        assert isinstance(SQLAlchemyDriver("postgresql://h/db").dialect, PostgreSQLDialect)
        assert isinstance(SQLAlchemyDriver("mysql+pymysql://h/db").dialect, MySQLDialect)

    def test_credentials_merged_into_url(self):
        driver = SQLAlchemyDriver("postgresql://h/db", username="psa", password="secret")
        assert driver.url.username == "psa"
        assert driver.url.password == "secret"
        assert "secret" not in repr(driver)


class TestSQLAlchemyDriverOnSqlite:
    """Executes against SQLAlchemy's in-memory SQLite engine."""

    @pytest.fixture
    def db(self):
        db = Database(SQLAlchemyDriver("sqlite://"))
        db.execute("CREATE TABLE t (id INTEGER PRIMARY KEY, name TEXT)")
        yield db
        db.close()

    def test_rows_and_generated_key(self, db):
        db.execute("INSERT INTO t (name) VALUES (?)", ("alice",))
        assert db.last_insert_id() == 1
        assert db.fetch_row("SELECT id, name FROM t WHERE name = ?", ("alice",)) == {"id": 1, "name": "alice"}

    def test_read_leaves_no_open_transaction(self, db):
        db.execute("INSERT INTO t (name) VALUES (?)", ("alice",))
        assert db.fetch_column("SELECT name FROM t") == ["alice"]
        assert not db.driver._conn.in_transaction()

    def test_rows_fetched_one_at_a_time(self, db):
        db.execute("INSERT INTO t (name) VALUES (?)", ("a",))
        db.execute("INSERT INTO t (name) VALUES (?)", ("b",))
        statement = db.execute("SELECT name FROM t ORDER BY id")
        assert db.fetch_one(statement) == {"name": "a"}
        assert db.fetch_rows(statement) == [{"name": "b"}]
        assert db.fetch_one(statement) is None
