"""Tests for psa.core.dialect."""

import pytest

from psa.core.dialect import (
    Dialect,
    MySQLDialect,
    PostgreSQLDialect,
    SQLiteDialect,
    get_dialect,
    register_dialect,
)


class TestGetDialect:
    @pytest.mark.parametrize(
        "name, cls",
        [
            ("sqlite", SQLiteDialect),
            ("postgresql", PostgreSQLDialect),
            ("postgres", PostgreSQLDialect),
            ("MySQL", MySQLDialect),
            ("mariadb", MySQLDialect),
        ],
    )
    def test_known_names(self, name, cls):
        assert isinstance(get_dialect(name), cls)

    def test_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown dialect"):
            get_dialect("oracle")

    def test_register_custom(self):
        class Custom(SQLiteDialect):
            @property
            def name(self) -> str:
                return "custom"

        register_dialect("Custom", Custom())
        assert get_dialect("custom").name == "custom"

    def test_concrete_dialects_satisfy_protocol(self):
        for dialect in (SQLiteDialect(), PostgreSQLDialect(), MySQLDialect()):
            assert isinstance(dialect, Dialect)


class TestSQLiteDialect:
    def test_fragments(self):
        d = SQLiteDialect()
        assert d.now() == "datetime('now')"
        assert d.column_names_query("psa_user") == ("PRAGMA table_info(psa_user)", ())
        assert d.column_name_key() == "name"
        assert d.last_insert_id_query(None) is None


class TestPostgreSQLDialect:
    def test_last_insert_id_uses_sequence(self):
        d = PostgreSQLDialect()
        assert d.last_insert_id_query("psa_user_id_seq") == ("SELECT currval(?)", ("psa_user_id_seq",))
        assert d.last_insert_id_query(None) == ("SELECT lastval()", ())

    def test_column_names_bound_by_table(self):
        sql, params = PostgreSQLDialect().column_names_query("psa_user")
        assert "information_schema.columns" in sql
        assert params == ("psa_user",)


class TestMySQLDialect:
    def test_fragments(self):
        d = MySQLDialect()
        assert d.now() == "NOW()"
        assert d.last_insert_id_query("ignored") == ("SELECT LAST_INSERT_ID()", ())
        assert d.column_name_key() == "column_name"
