"""Tests for settings and applying them to logging and instrumentation."""

import json
import logging

import pytest
import structlog
from fastapi import FastAPI
from fastapi.testclient import TestClient

from logme.core.config import Settings, get_settings
from logme.core.setup import configure_from_settings, egress_from_settings, instrument_from_settings
from logme.observability.config import FetchLoggerConfig, ServerLoggerConfig
from logme.observability.logger import get_logger


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path):
    """Run without a stray .env file and with a fresh settings cache."""
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def restore_stdlib_logging():
    """Undo the root logger changes made by configure_logging."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self):
        settings = Settings()

        assert settings.service_name == "logme"
        assert settings.log_level == "INFO"
        assert settings.log_format == "json"
        assert settings.development_mode is False
        assert settings.egress == FetchLoggerConfig()
        assert settings.ingress == ServerLoggerConfig()

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("LOGME_SERVICE_NAME", "checkout")
        monkeypatch.setenv("LOGME_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("LOGME_EGRESS__LOG_PARAMETERS", "true")
        monkeypatch.setenv("LOGME_INGRESS__LOG_HEADERS", "true")
        monkeypatch.setenv("LOGME_INGRESS__EXCLUDE_PATHS", '["/internal"]')

        settings = Settings()

        assert settings.service_name == "checkout"
        assert settings.log_level == "DEBUG"
        assert settings.egress.log_parameters is True
        assert settings.egress.log_response_content is False
        assert settings.ingress.log_headers is True
        assert settings.ingress.exclude_paths == ["/internal"]

    def test_env_file(self, tmp_path):
        (tmp_path / ".env").write_text("LOGME_LOG_FORMAT=console\n", encoding="utf-8")

        assert Settings().log_format == "console"

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestServerLoggerConfig:
    """Tests for path matching."""

    def test_default_exclusions(self):
        config = ServerLoggerConfig()

        assert config.is_excluded("/health")
        assert config.is_excluded("/api/metrics")
        assert not config.is_excluded("/api/users")

    def test_body_capture_rules(self):
        config = ServerLoggerConfig(
            log_request_body=True,
            exclude_request_body=["/upload"],
            exclude_response_body=["/download"],
        )

        assert config.captures_request_body("/api/users")
        assert not config.captures_request_body("/api/upload")
        assert not config.captures_response_body("/api/users")


class TestSetup:
    """Tests for applying settings."""

    def test_configure_from_settings(self, capsys, restore_stdlib_logging):
        configure_from_settings(Settings(service_name="checkout"))

        get_logger("tests.config").info("logging.ready", attempt=1)

        record = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert record["event"] == "logging.ready"
        assert record["service"] == "checkout"
        assert record["attempt"] == 1
        assert record["level"] == "info"

    def test_configure_binds_correlation_id(self, capsys, restore_stdlib_logging):
        configure_from_settings(Settings())

        with structlog.contextvars.bound_contextvars(correlation_id="cid-7"):
            get_logger("tests.config").warning("something.odd")

        record = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert record["correlation_id"] == "cid-7"
        assert record["level"] == "warning"

    def test_instrument_from_settings(self, events):
        app = FastAPI()

        @app.get("/ping")
        async def ping() -> dict[str, str]:
            return {"pong": "ok"}

        settings = Settings(ingress=ServerLoggerConfig(log_headers=True))
        instrument_from_settings(app, settings, sink=events.append)

        TestClient(app).get("/ping", headers={"Authorization": "Bearer t"})

        assert events[0].data["headers"]["authorization"] == "[REDACTED]"

    def test_egress_from_settings(self, events):
        settings = Settings(egress=FetchLoggerConfig(log_response_content=True))

        instrumentation = egress_from_settings(settings, sink=events.append)

        assert instrumentation.transport.config.log_response_content is True
        assert instrumentation.installed is True
