from __future__ import annotations

import logging

import pytest

from training_insights.alignment import Granularity
from training_insights.config import Config

_ENV_VARS = (
    "INSIGHTS_TIMEZONE",
    "INSIGHTS_WEEK_STARTS_ON_MONDAY",
    "INSIGHTS_DEFAULT_RANGE",
    "INSIGHTS_LOG_FORMAT",
    "INSIGHTS_LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_config_from_env_defaults() -> None:
    cfg = Config.from_env()
    assert cfg == Config()
    assert cfg.calendar.timezone == "UTC"
    assert cfg.calendar.week_starts_on_monday is False
    assert cfg.insight_range.granularity is Granularity.DAY
    assert cfg.level == logging.INFO


def test_config_from_env_honors_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INSIGHTS_TIMEZONE", "Europe/Berlin")
    monkeypatch.setenv("INSIGHTS_WEEK_STARTS_ON_MONDAY", "yes")
    monkeypatch.setenv("INSIGHTS_DEFAULT_RANGE", " Weeks ")
    monkeypatch.setenv("INSIGHTS_LOG_FORMAT", "text")
    monkeypatch.setenv("INSIGHTS_LOG_LEVEL", "debug")

    cfg = Config.from_env()
    assert cfg.calendar.timezone == "Europe/Berlin"
    assert cfg.calendar.week_starts_on_monday is True
    assert cfg.insight_range.granularity is Granularity.WEEK
    assert cfg.log_format == "text"
    assert cfg.level == logging.DEBUG


def test_config_from_env_rejects_bad_boolean(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INSIGHTS_WEEK_STARTS_ON_MONDAY", "sometimes")

    with pytest.raises(RuntimeError, match="INSIGHTS_WEEK_STARTS_ON_MONDAY must be a boolean"):
        Config.from_env()


def test_config_from_env_rejects_unknown_range(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INSIGHTS_DEFAULT_RANGE", "decades")

    with pytest.raises(RuntimeError, match="INSIGHTS_DEFAULT_RANGE must be one of"):
        Config.from_env()


def test_unknown_timezone_degrades_to_utc(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("INSIGHTS_TIMEZONE", "Atlantis/Capital")

    assert Config.from_env().calendar.timezone == "UTC"


def test_unknown_log_level_falls_back_to_info() -> None:
    assert Config(log_level="CHATTY").level == logging.INFO
