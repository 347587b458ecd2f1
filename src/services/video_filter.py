"""Local candidate filtering.

Applies every FilterSpecification predicate directly to candidates that are
already in memory. Used for the local strategy, for the fallback after a failed
remote call, and for the post-filter on catalog results.

Rules, in order:
- Query substring in title, description or channel
- Duration range (presets resolved, custom ranges honoured)
- Publish-date range
- View count range
- Quality tier membership
- Channel membership
- Caption availability
- Minimum relevance score
- Minimum engagement rate
- Language membership
- Tag substring match
- Already-watched exclusion
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Collection, Iterable, Optional

from models.filters import FilterSpecification
from models.video import Candidate, as_utc
from services.range_resolver import resolve_duration, resolve_published

logger = logging.getLogger(__name__)

PASSED = "Passed all filters"


@dataclass
class FilterStats:
    """Statistics from filtering a batch of candidates."""

    total_input: int = 0
    total_passed: int = 0
    total_filtered: int = 0
    reasons: dict[str, int] = field(default_factory=dict)

    @property
    def filter_rate(self) -> float:
        """Return the percentage of candidates that were filtered out."""
        if self.total_input == 0:
            return 0.0
        return (self.total_filtered / self.total_input) * 100

    def to_dict(self) -> dict:
        """Convert stats to dictionary for reporting."""
        return {
            "total_input": self.total_input,
            "total_passed": self.total_passed,
            "total_filtered": self.total_filtered,
            "filter_rate_percent": round(self.filter_rate, 1),
            "reasons": dict(self.reasons),
        }

    def __str__(self) -> str:
        """Human-readable summary."""
        return (
            f"Filtered {self.total_filtered}/{self.total_input} videos "
            f"({self.filter_rate:.1f}%), {self.total_passed} passed"
        )


def matches(
    candidate: Candidate,
    spec: FilterSpecification,
    now: datetime,
    watched_ids: Collection[str] = frozenset(),
    check_query: bool = True,
) -> tuple[bool, str]:
    """
    Decide whether a candidate satisfies a filter specification.

    Args:
        candidate: Candidate to check
        spec: Filter specification
        now: Reference time for date presets and open-ended date ranges
        watched_ids: Video ids the user has already seen
        check_query: Set False when the query was already applied upstream

    Returns:
        Tuple of (matches, reason):
        - matches: True if the candidate passes every active predicate
        - reason: Human-readable explanation of the decision
    """
    if check_query and spec.query and spec.query.strip():
        needle = spec.query.strip().lower()
        haystacks = (candidate.title, candidate.description, candidate.channel_title)
        if not any(needle in (text or "").lower() for text in haystacks):
            return False, f"Query not found: '{spec.query.strip()}'"

    duration_range = resolve_duration(spec.duration)
    if duration_range is not None:
        if candidate.duration is None:
            return False, "Unknown duration"
        if not duration_range.contains(candidate.duration):
            return False, f"Duration out of range: {candidate.duration}s"

    date_range = resolve_published(spec.published, now)
    if date_range is not None:
        # Open-ended custom ranges stop at "now", so future-dated items are excluded
        end = date_range.end or now
        if date_range.start is not None and candidate.published_at < date_range.start:
            return False, "Published before range"
        if candidate.published_at > end:
            return False, "Published after range"

    if spec.view_count is not None:
        low, high = spec.view_count.min, spec.view_count.max
        if low is not None and candidate.view_count < low:
            return False, f"Low view count: {candidate.view_count:,} < {low:,}"
        if high is not None and candidate.view_count > high:
            return False, f"High view count: {candidate.view_count:,} > {high:,}"

    if spec.quality and candidate.quality not in spec.quality:
        return False, f"Quality not selected: {candidate.quality.value}"

    if spec.channel_ids and candidate.channel_id not in spec.channel_ids:
        return False, f"Channel not selected: {candidate.channel_title}"

    if spec.has_captions is not None and candidate.has_captions != spec.has_captions:
        return False, "Captions required" if spec.has_captions else "Captions excluded"

    if spec.min_relevance_score is not None and candidate.relevance_score < spec.min_relevance_score:
        return (
            False,
            f"Low relevance: {candidate.relevance_score:g} < {spec.min_relevance_score:g}",
        )

    if spec.min_engagement_rate is not None and candidate.engagement_rate < spec.min_engagement_rate:
        return (
            False,
            f"Low engagement: {candidate.engagement_rate:.2%} < {spec.min_engagement_rate:.2%}",
        )

    if spec.languages and candidate.language not in spec.languages:
        return False, f"Language not selected: {candidate.language or 'unknown'}"

    if spec.tags:
        wanted = [tag.lower() for tag in spec.tags if tag.strip()]
        video_tags = [tag.lower() for tag in candidate.tags]
        if wanted and not any(w in tag for w in wanted for tag in video_tags):
            return False, "No matching tags"

    if spec.category_ids and not set(candidate.category_ids) & set(spec.category_ids):
        return False, "Not in selected categories"

    if spec.exclude_watched and candidate.video_id in watched_ids:
        return False, "Already watched"

    return True, PASSED


def filter_candidates(
    candidates: Iterable[Candidate],
    spec: FilterSpecification,
    now: Optional[datetime] = None,
    watched_ids: Collection[str] = frozenset(),
    check_query: bool = True,
    log_callback: Optional[Callable[[str], None]] = None,
) -> tuple[list[Candidate], FilterStats]:
    """
    Filter candidates, preserving input order and recording why items were dropped.

    Args:
        candidates: Candidates to filter
        spec: Filter specification
        now: Reference time (defaults to UTC now)
        watched_ids: Video ids the user has already seen
        check_query: Whether to apply the query substring predicate
        log_callback: Optional callback for logging filtered candidates

    Returns:
        Tuple of (kept, stats)
    """
    now = as_utc(now) if now is not None else datetime.now(timezone.utc)
    watched = frozenset(watched_ids)

    kept = []
    stats = FilterStats()

    for candidate in candidates:
        stats.total_input += 1
        passed, reason = matches(candidate, spec, now, watched, check_query)

        if passed:
            kept.append(candidate)
            stats.total_passed += 1
        else:
            stats.total_filtered += 1
            stats.reasons[reason] = stats.reasons.get(reason, 0) + 1

            if log_callback:
                log_callback(f"Skipping '{candidate.title}': {reason}")
            else:
                logger.debug(f"Local filter: Skipping '{candidate.title}': {reason}")

    if stats.total_filtered > 0:
        logger.info(f"Local filter: {stats}")

    return kept, stats
