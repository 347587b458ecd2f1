"""Preset resolution for duration and publish-date filters.

Pure functions. Date ranges are always computed relative to a caller-supplied
``now`` so results are reproducible.
"""

from datetime import datetime, timedelta
from typing import Optional

from models.filters import (
    DateFilter,
    DatePreset,
    DateRange,
    DurationFilter,
    DurationPreset,
    DurationRange,
)
from models.video import as_utc

SHORT_MAX_SECONDS = 240  # 4 minutes
MEDIUM_MAX_SECONDS = 1200  # 20 minutes

DURATION_RANGES = {
    DurationPreset.SHORT: DurationRange(0, SHORT_MAX_SECONDS, inclusive_max=False),
    DurationPreset.MEDIUM: DurationRange(SHORT_MAX_SECONDS, MEDIUM_MAX_SECONDS, inclusive_max=False),
    DurationPreset.LONG: DurationRange(MEDIUM_MAX_SECONDS, None),
}

_DATE_PRESET_DAYS = {
    DatePreset.WEEK: 7,
    DatePreset.MONTH: 30,
    DatePreset.YEAR: 365,
}


def duration_range_of(preset: DurationPreset) -> Optional[DurationRange]:
    """Return the fixed range for a duration preset, or None for any/custom."""
    return DURATION_RANGES.get(DurationPreset(preset))


def date_range_of(preset: DatePreset, now: datetime) -> Optional[DateRange]:
    """Return the range a date preset covers relative to ``now``, or None for any/custom."""
    preset = DatePreset(preset)
    now = as_utc(now)

    if preset is DatePreset.TODAY:
        return DateRange(start=start_of_day(now), end=now)

    days = _DATE_PRESET_DAYS.get(preset)
    if days is None:
        return None
    return DateRange(start=now - timedelta(days=days), end=now)


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def resolve_duration(duration: Optional[DurationFilter]) -> Optional[DurationRange]:
    """Effective duration range. The explicit range only wins for the CUSTOM preset."""
    if duration is None:
        return None
    if duration.preset is DurationPreset.CUSTOM:
        return duration.range
    return duration_range_of(duration.preset)


def resolve_published(published: Optional[DateFilter], now: datetime) -> Optional[DateRange]:
    """Effective publish-date range. The explicit range only wins for the CUSTOM preset."""
    if published is None:
        return None
    if published.preset is DatePreset.CUSTOM:
        return published.range
    return date_range_of(published.preset, now)


def duration_bucket(seconds: Optional[int]) -> str:
    """Histogram bucket name for a duration: short, medium, long or unknown."""
    if seconds is None:
        return "unknown"
    for preset in (DurationPreset.SHORT, DurationPreset.MEDIUM, DurationPreset.LONG):
        if DURATION_RANGES[preset].contains(seconds):
            return preset.value
    # Negative durations only come from broken adapters
    return "unknown"
