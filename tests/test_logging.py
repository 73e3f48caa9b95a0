from __future__ import annotations

import json
import logging
import sys

import pytest

from training_insights.config import Config
from training_insights.logging import (
    ContextTextFormatter,
    JSONFormatter,
    record_context,
    setup_logging,
)


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="training_insights.alignment",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="Calendar arithmetic failed for %s",
        args=("week",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_record_context_strips_prefix_and_ignores_other_extras() -> None:
    record = _record(insights_granularity="week", insights_step=-7, other_field="ignored")

    assert record_context(record) == {"granularity": "week", "step": -7}


def test_json_formatter_emits_single_json_object() -> None:
    line = JSONFormatter().format(_record())
    payload = json.loads(line)

    assert "\n" not in line
    assert payload["level"] == "WARNING"
    assert payload["logger"] == "training_insights.alignment"
    assert payload["message"] == "Calendar arithmetic failed for week"
    assert "timestamp" in payload
    assert "context" not in payload


def test_json_formatter_nests_insight_extras_under_context() -> None:
    payload = json.loads(
        JSONFormatter().format(
            _record(
                insights_granularity="week",
                insights_instant="0001-01-01T12:00:00+00:00",
                insights_dropped_events=3,
                other_field="ignored",
            )
        )
    )

    assert payload["context"] == {
        "dropped_events": 3,
        "granularity": "week",
        "instant": "0001-01-01T12:00:00+00:00",
    }
    assert "insights_granularity" not in payload
    assert "other_field" not in payload


def test_json_formatter_describes_exception() -> None:
    try:
        raise OverflowError("date value out of range")
    except OverflowError:
        record = _record()
        record.exc_info = sys.exc_info()

    error = json.loads(JSONFormatter().format(record))["error"]
    assert error["type"] == "OverflowError"
    assert error["message"] == "date value out of range"
    assert "Traceback" in error["traceback"]


def test_text_formatter_appends_context_pairs() -> None:
    line = ContextTextFormatter().format(_record(insights_timezone="Europe/Berlin", insights_range="day"))

    assert line.endswith("Calendar arithmetic failed for week [range=day timezone=Europe/Berlin]")


def test_text_formatter_without_context() -> None:
    line = ContextTextFormatter().format(_record())

    assert line.endswith("training_insights.alignment: Calendar arithmetic failed for week")


@pytest.fixture
def _restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.usefixtures("_restore_root_logger")
@pytest.mark.parametrize("log_format,formatter_type", [("json", JSONFormatter), ("text", ContextTextFormatter)])
def test_setup_logging_uses_config(log_format: str, formatter_type: type) -> None:
    config = Config(log_format=log_format, log_level="DEBUG")
    setup_logging(config)
    setup_logging(config)

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert root.level == logging.DEBUG
    assert type(root.handlers[0].formatter) is formatter_type


@pytest.mark.usefixtures("_restore_root_logger")
def test_setup_logging_unknown_level_is_info() -> None:
    setup_logging(Config(log_level="CHATTY"))

    assert logging.getLogger().level == logging.INFO
