"""Tests for psa.framework.logging.config."""

import logging

import pytest
import structlog

from psa.framework.logging import config as log_config
from psa.framework.logging import configure_logging, get_logger
from psa.framework.logging.config import is_configured, is_debug_enabled


@pytest.fixture(autouse=True)
def reset_logging(monkeypatch):
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    psa_level = logging.getLogger("psa").level
    monkeypatch.setattr(log_config, "_configured", False)
    yield
    structlog.reset_defaults()
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)
    logging.getLogger("psa").setLevel(psa_level)


class TestConfigureLogging:
    def test_explicit_level(self):
        configure_logging(level="DEBUG", format="json")
        assert is_configured()
        assert is_debug_enabled()
        assert logging.getLogger("psa").level == logging.DEBUG

    def test_second_call_is_noop(self):
        configure_logging(level="WARNING", format="console")
        configure_logging(level="DEBUG", format="console")
        assert not is_debug_enabled()

    def test_force_reconfigures(self):
        configure_logging(level="WARNING", format="console")
        configure_logging(level="DEBUG", format="console", force=True)
        assert is_debug_enabled()

    def test_falls_back_to_settings(self, settings, monkeypatch):
        monkeypatch.setenv("PSA_LOG_LEVEL", "ERROR")
        configure_logging()
        assert logging.getLogger().level == logging.ERROR

    def test_json_output_carries_context(self, capsys):
        from psa.framework.logging import set_context

        configure_logging(level="INFO", format="json")
        set_context(request_id="r-json")
        get_logger("psa.test").info("hello", table="psa_user")
        err = capsys.readouterr().err
        assert '"event": "hello"' in err
        assert '"request_id": "r-json"' in err
        assert '"table": "psa_user"' in err
