"""Distribution summaries over a candidate collection."""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from models.results import FilterStatistics
from models.video import Candidate, QualityTier, as_utc
from services.range_resolver import duration_bucket, start_of_day

DURATION_BUCKETS = ("short", "medium", "long", "unknown")
DATE_BUCKETS = ("today", "week", "month", "year", "older")


def aggregate(
    candidates: Iterable[Candidate],
    total_count: Optional[int] = None,
    now: Optional[datetime] = None,
) -> FilterStatistics:
    """
    Summarize a filtered candidate set in a single pass.

    Every candidate lands in exactly one duration bucket, one quality bucket and
    one date bucket. The relevance mean is taken over the given candidates and
    is 0 for an empty set.

    Args:
        candidates: Filtered candidates to summarize
        total_count: Size of the collection before filtering (defaults to the filtered size)
        now: Reference time for date buckets (defaults to UTC now)

    Returns:
        FilterStatistics
    """
    now = as_utc(now) if now is not None else datetime.now(timezone.utc)
    midnight = start_of_day(now)
    week_start = now - timedelta(days=7)
    month_start = now - timedelta(days=30)
    year_start = now - timedelta(days=365)

    durations = dict.fromkeys(DURATION_BUCKETS, 0)
    qualities = {tier.value: 0 for tier in QualityTier}
    dates = dict.fromkeys(DATE_BUCKETS, 0)
    score_sum = 0.0
    count = 0

    for candidate in candidates:
        count += 1
        score_sum += candidate.relevance_score
        durations[duration_bucket(candidate.duration)] += 1
        qualities[candidate.quality.value] += 1

        published = candidate.published_at
        if published >= midnight:
            dates["today"] += 1
        elif published >= week_start:
            dates["week"] += 1
        elif published >= month_start:
            dates["month"] += 1
        elif published >= year_start:
            dates["year"] += 1
        else:
            dates["older"] += 1

    return FilterStatistics(
        total_videos=count if total_count is None else total_count,
        filtered_videos=count,
        average_relevance_score=score_sum / count if count else 0.0,
        duration_distribution=durations,
        quality_distribution=qualities,
        date_distribution=dates,
    )
