"""Tests for engine settings and logging configuration."""

import json
import logging

import pytest
import structlog
from pydantic import ValidationError

from spccore.core.config import ALL_RULES, Settings, get_settings
from spccore.core.logging import configure_logging


@pytest.fixture
def restore_logging():
    """Put the root logger and structlog back the way the test found them."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


class TestSettings:
    def test_defaults(self, monkeypatch):
        for name in ("DEFAULT_SIGMA_LEVEL", "ENABLED_RULES", "LOG_FORMAT", "LOG_LEVEL"):
            monkeypatch.delenv(f"SPCCORE_{name}", raising=False)
        settings = Settings(_env_file=None)
        assert settings.default_sigma_level == 3.0
        assert settings.enabled_rules == ALL_RULES
        assert settings.enabled_rule_list == [f"rule{i}" for i in range(1, 9)]
        assert settings.log_format == "console"
        assert settings.log_level == "INFO"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("SPCCORE_DEFAULT_SIGMA_LEVEL", "2.5")
        monkeypatch.setenv("SPCCORE_ENABLED_RULES", " rule1, rule5 ,,")
        settings = Settings(_env_file=None)
        assert settings.default_sigma_level == 2.5
        assert settings.enabled_rule_list == ["rule1", "rule5"]

    @pytest.mark.parametrize("value", ["0", "-1"])
    def test_sigma_level_must_be_positive(self, monkeypatch, value):
        monkeypatch.setenv("SPCCORE_DEFAULT_SIGMA_LEVEL", value)
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()

    def test_cache_clear_picks_up_env(self, monkeypatch):
        get_settings()
        monkeypatch.setenv("SPCCORE_LOG_LEVEL", "DEBUG")
        get_settings.cache_clear()
        assert get_settings().log_level == "DEBUG"


class TestConfigureLogging:
    def test_sets_root_level_and_single_handler(self, restore_logging):
        configure_logging("console", "WARNING")
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, structlog.stdlib.ProcessorFormatter)

    def test_unknown_level_falls_back_to_info(self, restore_logging):
        configure_logging("console", "chatty")
        assert logging.getLogger().level == logging.INFO

    def test_json_output(self, restore_logging, capsys):
        configure_logging("json", "DEBUG")
        structlog.get_logger("spccore.test").info("limits_ready", points=5)

        line = capsys.readouterr().err.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "limits_ready"
        assert record["points"] == 5
        assert record["level"] == "info"
        assert record["logger"] == "spccore.test"

    def test_defaults_from_settings(self, restore_logging, monkeypatch):
        monkeypatch.setenv("SPCCORE_LOG_LEVEL", "ERROR")
        configure_logging()
        assert logging.getLogger().level == logging.ERROR
