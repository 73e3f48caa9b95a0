"""CLI interface for computing insights from a workout session export."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

import click
from pydantic import ValidationError

from .alignment import CalendarConfig
from .config import Config
from .insights import build_consistency, build_weekly_insights, cumulative_distance_series
from .logging import setup_logging
from .models import UserPreferences, parse_sessions
from .temporal_aggregation import RANGES

logger = logging.getLogger(__name__)


def _load_export(path: Path) -> tuple[list[dict[str, Any]], dict[str, Any]]:
    """Read ``{"sessions": [...], "preferences": {...}}`` or a bare session list."""
    with path.open() as f:
        data = json.load(f)
    if isinstance(data, list):
        return data, {}
    if not isinstance(data, dict) or not isinstance(data.get("sessions"), list):
        raise ValueError("Export must be a list of sessions or an object with a 'sessions' list")
    preferences = data.get("preferences") or {}
    if not isinstance(preferences, dict):
        raise ValueError("'preferences' must be an object")
    return data["sessions"], preferences


def _parse_now(value: str | None) -> datetime | None:
    if value is None:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@click.group()
def main():
    """Training insights from workout session exports."""


@main.command()
@click.argument("export", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--range", "range_name",
    type=click.Choice(list(RANGES.keys())),
    help="Bucket range for the distance chart. Defaults to INSIGHTS_DEFAULT_RANGE.",
)
@click.option(
    "--week-starts-on-monday/--week-starts-on-sunday",
    default=None,
    help="Override the week-start preference stored in the export.",
)
@click.option("--timezone", "timezone_name", type=str, help="IANA timezone for local day boundaries.")
@click.option("--now", "now_raw", type=str, help="Reference instant (ISO 8601). Defaults to the current time.")
def summary(
    export: Path,
    range_name: str | None,
    week_starts_on_monday: bool | None,
    timezone_name: str | None,
    now_raw: str | None,
):
    """Print weekly load, consistency and cumulative distance as JSON."""
    try:
        config = Config.from_env()
    except (RuntimeError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    setup_logging(config)

    try:
        now = _parse_now(now_raw)
    except ValueError:
        click.echo(f"Error: --now must be an ISO 8601 timestamp, got {now_raw!r}", err=True)
        sys.exit(1)

    try:
        records, raw_preferences = _load_export(export)
        sessions = parse_sessions(records)
        preferences = UserPreferences.model_validate(raw_preferences)
    except ValidationError as e:
        click.echo(f"Error: invalid session export: {e}", err=True)
        sys.exit(1)
    except (ValueError, OSError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if week_starts_on_monday is None:
        week_starts_on_monday = (
            preferences.week_starts_on_monday
            if "weekStartsOnMonday" in raw_preferences or "week_starts_on_monday" in raw_preferences
            else config.week_starts_on_monday
        )
    preferences = UserPreferences(week_starts_on_monday=week_starts_on_monday)

    calendar = config.calendar
    if timezone_name:
        calendar = CalendarConfig(
            timezone=timezone_name,
            week_starts_on_monday=calendar.week_starts_on_monday,
        )
    insight_range = RANGES[range_name] if range_name else config.insight_range

    logger.info(
        "Computing insights for %d session(s)",
        len(sessions),
        extra={"insights_range": insight_range.granularity.value, "insights_timezone": calendar.timezone},
    )

    weekly = build_weekly_insights(sessions, preferences, calendar=calendar, now=now)
    consistency = build_consistency(sessions, preferences, calendar=calendar, now=now)
    distance = cumulative_distance_series(
        sessions,
        insight_range,
        preferences,
        calendar=calendar,
        now=now,
    )

    click.echo(json.dumps(
        {
            "weekly": weekly.as_dict(),
            "consistency": consistency.as_dict(),
            "distance": distance,
        },
        indent=2,
        ensure_ascii=False,
    ))


@main.command("list-ranges")
def list_ranges():
    """List available bucket ranges."""
    for name, insight_range in RANGES.items():
        click.echo(f"{name}: {insight_range.bucket_count} x {insight_range.granularity.value}")
