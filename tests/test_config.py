"""Tests for fund_modeling.config and fund_modeling.logging_config."""
from __future__ import annotations

import pytest
import structlog
from pydantic import ValidationError as PydanticValidationError
from structlog.testing import capture_logs

from fund_modeling.config import Environment, LogLevel, Settings, get_settings
from fund_modeling.logging_config import (
    LogContext,
    configure_logging,
    get_console_processors,
    get_json_processors,
    get_logger,
)


class TestSettings:
    def test_defaults(self):
        s = Settings()
        assert s.environment == Environment.DEVELOPMENT
        assert s.log_level == LogLevel.INFO
        assert s.log_format == "console"
        assert s.variance_threshold_pct == 5.0
        assert s.placeholder == "—"
        assert s.default_scenario == "base"

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("FUND_MODELING_VARIANCE_THRESHOLD_PCT", "10")
        monkeypatch.setenv("FUND_MODELING_DEFAULT_SCENARIO", "bear")
        s = get_settings()
        assert s.variance_threshold_pct == 10.0
        assert s.default_scenario == "bear"

    def test_production_defaults_to_json_logs(self):
        assert Settings(environment="production").log_format == "json"
        assert Settings(environment="production").is_production

    def test_explicit_log_format_kept(self):
        assert Settings(environment="production", log_format="console").log_format == "console"

    def test_invalid_scenario_rejected(self):
        with pytest.raises(PydanticValidationError):
            Settings(default_scenario="sideways")

    def test_negative_threshold_rejected(self):
        with pytest.raises(PydanticValidationError):
            Settings(variance_threshold_pct=-1)

    def test_cached(self):
        assert get_settings() is get_settings()


class TestLogging:
    def test_processor_chains_end_in_renderers(self):
        assert isinstance(get_console_processors()[-1], structlog.dev.ConsoleRenderer)
        assert isinstance(get_json_processors()[-1], structlog.processors.JSONRenderer)

    def test_configure_logging(self):
        configure_logging(Settings(environment="production"))
        assert structlog.is_configured()
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_log_context_binds_and_unbinds(self):
        with LogContext(user_id="alice", fund_id="fund-1"):
            assert structlog.contextvars.get_contextvars() == {
                "user_id": "alice",
                "fund_id": "fund-1",
            }
        assert structlog.contextvars.get_contextvars() == {}

    def test_get_logger_emits_events(self):
        logger = get_logger("tests")
        with capture_logs() as logs:
            logger.info("fund_deployed", fund_id="fund-1")
        assert logs == [{"event": "fund_deployed", "fund_id": "fund-1", "log_level": "info"}]
