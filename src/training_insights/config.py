import logging
import os
from dataclasses import dataclass

from .alignment import CalendarConfig
from .temporal_aggregation import RANGES, InsightRange

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise RuntimeError(f"{name} must be a boolean (true/false), got {raw!r}")


@dataclass(frozen=True)
class Config:
    timezone: str = "UTC"
    week_starts_on_monday: bool = False
    default_range: str = "days"
    log_format: str = "json"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        default_range = os.environ.get("INSIGHTS_DEFAULT_RANGE", "days").strip().lower()
        if default_range not in RANGES:
            raise RuntimeError(
                f"INSIGHTS_DEFAULT_RANGE must be one of {', '.join(RANGES)}, got {default_range!r}"
            )

        return cls(
            timezone=os.environ.get("INSIGHTS_TIMEZONE", "UTC"),
            week_starts_on_monday=_parse_bool(
                "INSIGHTS_WEEK_STARTS_ON_MONDAY",
                os.environ.get("INSIGHTS_WEEK_STARTS_ON_MONDAY", "false"),
            ),
            default_range=default_range,
            log_format=os.environ.get("INSIGHTS_LOG_FORMAT", "json"),
            log_level=os.environ.get("INSIGHTS_LOG_LEVEL", "INFO").upper(),
        )

    @property
    def calendar(self) -> CalendarConfig:
        return CalendarConfig(
            timezone=self.timezone,
            week_starts_on_monday=self.week_starts_on_monday,
        )

    @property
    def insight_range(self) -> InsightRange:
        return RANGES[self.default_range]

    @property
    def level(self) -> int:
        """Numeric logging level; unknown names fall back to INFO."""
        level = logging.getLevelName(self.log_level)
        return level if isinstance(level, int) else logging.INFO
