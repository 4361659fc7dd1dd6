"""Tests for psa.core.settings."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from psa.core.settings import (
    LogStorage,
    PsaSettings,
    clear_settings_cache,
    get_settings,
)


class TestDefaults:
    def test_default_values(self, settings):
        assert settings.db.url == "memory"
        assert settings.mvc.default_controller_name == "Default"
        assert settings.mvc.default_action_name == "default"
        assert settings.mvc.default_controller_suffix == "_Controller"
        assert settings.mvc.default_action_suffix == "_action"
        assert "tables" not in PsaSettings.model_fields
        assert settings.profile_log is False
        assert settings.basedir_web == ""

    def test_default_storages(self, settings):
        storages = settings.logging.storages
        assert storages["psa_default"] == LogStorage(type="database", target="psa_log")
        assert storages["psa_profile"] == LogStorage(type="database", target="psa_profile_log")
        assert settings.logging.max_log_level == 1
        assert settings.logging.time_format == "%d.%m.%Y %H:%M:%S"


class TestEnvironment:
    def test_nested_env_overrides(self, settings, monkeypatch):
        monkeypatch.setenv("PSA_DB__URL", "sqlite:///tmp/psa.db")
        monkeypatch.setenv("PSA_LOGGING__MAX_LOG_LEVEL", "3")
        monkeypatch.setenv("PSA_MVC__DEFAULT_CONTROLLER_NAME", "Home")
        monkeypatch.setenv("PSA_PROFILE_LOG", "true")

        s = PsaSettings(_env_file=None)
        assert s.db.url == "sqlite:///tmp/psa.db"
        assert s.logging.max_log_level == 3
        assert s.mvc.default_controller_name == "Home"
        assert s.profile_log is True

    def test_log_table_from_env(self, settings, monkeypatch):
        monkeypatch.setenv(
            "PSA_LOGGING__STORAGES",
            '{"psa_default": {"type": "database", "target": "app_log"}}',
        )
        s = PsaSettings(_env_file=None)
        assert s.logging.storages["psa_default"].target == "app_log"

    def test_invalid_value_rejected(self, settings, monkeypatch):
        monkeypatch.setenv("PSA_LOGGING__MAX_LOG_LEVEL", "lots")
        with pytest.raises(PydanticValidationError):
            PsaSettings(_env_file=None)

    def test_storage_type_is_checked(self):
        with pytest.raises(PydanticValidationError):
            LogStorage(type="syslog", target="x")


class TestCaching:
    def test_get_settings_is_cached(self, settings):
        assert get_settings() is get_settings()

    def test_force_reload(self, settings):
        first = get_settings()
        assert get_settings(_force_reload=True) is not first

    def test_clear_cache(self, settings):
        first = get_settings()
        clear_settings_cache()
        assert get_settings() is not first
