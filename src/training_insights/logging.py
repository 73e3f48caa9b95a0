"""Structured logging for training insights.

Calendar fallbacks and dropped events attach ``insights_*`` extras to their
log records (granularity, instant, step, dropped_events, timezone, range).
Both formatters gather those extras into one context mapping with the prefix
stripped: the JSON formatter nests it under ``"context"``, the text formatter
appends it as ``key=value`` pairs.

The output format and level come from ``Config`` (INSIGHTS_LOG_FORMAT,
INSIGHTS_LOG_LEVEL).
"""

from __future__ import annotations

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .config import Config

CONTEXT_PREFIX = "insights_"


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Collect ``insights_*`` extras from a record, keyed without the prefix."""
    return {
        key[len(CONTEXT_PREFIX):]: value
        for key, value in sorted(record.__dict__.items())
        if key.startswith(CONTEXT_PREFIX)
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per record; insight extras nested under ``context``."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = record_context(record)
        if context:
            entry["context"] = context

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            entry["error"] = {
                "type": type(exc).__name__,
                "message": str(exc),
                "traceback": "".join(traceback.format_exception(*record.exc_info)),
            }

        return json.dumps(entry, default=str, ensure_ascii=False)


class ContextTextFormatter(logging.Formatter):
    """Plain text lines with the insight context appended as key=value pairs."""

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = record_context(record)
        if not context:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        # keep the traceback (if any) after the context on the first line
        head, sep, tail = line.partition("\n")
        return f"{head} [{pairs}]{sep}{tail}"


def setup_logging(config: Config) -> None:
    """Route the root logger to stderr using the configured format and level.

    Existing root handlers are replaced, so repeated calls do not duplicate
    output.
    """
    root = logging.getLogger()
    root.setLevel(config.level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(config.level)
    handler.setFormatter(JSONFormatter() if config.log_format == "json" else ContextTextFormatter())
    root.addHandler(handler)
