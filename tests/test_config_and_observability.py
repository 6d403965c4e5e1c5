from __future__ import annotations

import logging

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from covid_analytics.analytics_metrics import global_summary
from covid_analytics.config import Settings, get_settings
from covid_analytics.database import engine
from covid_analytics.observability import configure_logging, timed_query


def test_settings_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("COVID_DEFAULT_LOCATION", "Chile")
    monkeypatch.setenv("COVID_LOG_LEVEL", "debug")
    get_settings.cache_clear()  # type: ignore[attr-defined]
    try:
        settings = get_settings()
        assert settings.default_location == "Chile"
        assert settings.log_level == "DEBUG"
        assert settings.database_url.startswith("sqlite")
    finally:
        get_settings.cache_clear()  # type: ignore[attr-defined]


def test_settings_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("COVID_DEFAULT_LOCATION", raising=False)
    settings = Settings(_env_file=None)  # type: ignore[call-arg]
    assert settings.default_location == "Brazil"
    assert settings.sql_echo is False


def test_configure_logging_single_handler() -> None:
    logger = configure_logging("warning")
    try:
        configure_logging("warning")
        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1
    finally:
        logger.setLevel(logging.NOTSET)


def test_queries_are_logged(db_session, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="covid_analytics")
    global_summary(db_session)
    assert any("query=deaths.global_summary rows=1" in rec.getMessage() for rec in caplog.records)


def test_engine_errors_propagate(db_session, caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="covid_analytics")
    with pytest.raises(OperationalError):
        timed_query(db_session, "broken", text("SELECT * FROM missing_table"))
    assert any("query=broken failed" in rec.getMessage() for rec in caplog.records)


def test_tests_never_use_a_configured_database() -> None:
    # The suite deletes from the source tables, so it must run against its own temporary file
    assert "covid_analytics_tests_" in (engine.url.database or "")


def test_settings_have_no_unused_fields() -> None:
    assert set(Settings.model_fields) == {"database_url", "default_location", "sql_echo", "log_level"}
