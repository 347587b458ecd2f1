"""Relevance scoring and result ordering.

The score rewards the catalog's own ordering with a position decay and adds a
flat boost for category matches. Scores are monotone in position and ignore
engagement; engagement only affects ordering through the sort comparator.
"""

import logging
import os
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Iterable, Optional, Sequence

from models.filters import SortField, SortSpecification
from models.video import Candidate
from utils.config import load_config

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RankingConfig:
    """Scoring constants.

    The defaults come from hand tuning and have not been validated against user
    behaviour.
    """

    base_score: float = 95.0
    position_decay: float = 2.0
    score_floor: float = 50.0
    category_boost: float = 10.0
    max_score: float = 100.0

    @classmethod
    def from_config(cls, config: Optional[dict] = None) -> "RankingConfig":
        """Create RankingConfig from application config or environment variables."""
        if config is None:
            config = load_config()

        return cls(
            base_score=float(
                config.get("ranking_base_score", os.getenv("RANKING_BASE_SCORE", "95"))
            ),
            position_decay=float(
                config.get("ranking_position_decay", os.getenv("RANKING_POSITION_DECAY", "2"))
            ),
            score_floor=float(
                config.get("ranking_score_floor", os.getenv("RANKING_SCORE_FLOOR", "50"))
            ),
            category_boost=float(
                config.get("ranking_category_boost", os.getenv("RANKING_CATEGORY_BOOST", "10"))
            ),
        )


def matched_categories(
    candidate: Candidate,
    selected_category_ids: Iterable[str],
) -> tuple[str, ...]:
    """Selected category ids the candidate is associated with, in selection order."""
    associated = set(candidate.category_ids)
    return tuple(cid for cid in selected_category_ids if cid in associated)


def score(
    candidate: Candidate,
    position: int,
    matched: Sequence[str] = (),
    config: Optional[RankingConfig] = None,
) -> float:
    """
    Relevance score in [0, 100] for a candidate at a source position.

    Args:
        candidate: The candidate being scored
        position: Zero-based position in the catalog's (or held list's) order
        matched: Selected categories the candidate matches
        config: Scoring constants (defaults to RankingConfig())

    Returns:
        min(max(base - decay * position, floor) + boost, max_score)
    """
    config = config or RankingConfig()
    baseline = max(config.base_score - config.position_decay * position, config.score_floor)
    # One match or many, the boost is the same
    boost = config.category_boost if matched else 0.0
    return max(0.0, min(baseline + boost, config.max_score))


def score_candidates(
    candidates: Sequence[Candidate],
    selected_category_ids: Sequence[str] = (),
    config: Optional[RankingConfig] = None,
) -> list[Candidate]:
    """Annotate candidates with scores by their position in the given order."""
    config = config or RankingConfig()
    return [
        candidate.with_score(
            score(candidate, position, matched_categories(candidate, selected_category_ids), config)
        )
        for position, candidate in enumerate(candidates)
    ]


def _sign(value: float) -> int:
    if value > 0:
        return 1
    if value < 0:
        return -1
    return 0


def compare(a: Candidate, b: Candidate, sort: SortSpecification) -> int:
    """Three-way comparison on the active sort field. Returns -1, 0 or 1."""
    field = sort.field

    if field is SortField.RELEVANCE:
        result = _sign(a.relevance_score - b.relevance_score)
    elif field is SortField.PUBLISHED_AT:
        result = _sign((a.published_at - b.published_at).total_seconds())
    elif field is SortField.VIEW_COUNT:
        result = _sign(a.view_count - b.view_count)
    elif field is SortField.DURATION:
        result = _sign((a.duration or 0) - (b.duration or 0))
    elif field is SortField.TITLE:
        left, right = a.title.casefold(), b.title.casefold()
        result = (left > right) - (left < right)
    elif field is SortField.QUALITY:
        result = _sign(a.quality.rank - b.quality.rank)
    elif field is SortField.ENGAGEMENT:
        result = _sign(a.engagement_rate - b.engagement_rate)
    else:
        result = 0

    return -result if sort.descending else result


def sort_candidates(candidates: Iterable[Candidate], sort: SortSpecification) -> list[Candidate]:
    """Stable sort: candidates that compare equal keep their input order."""
    return sorted(candidates, key=cmp_to_key(lambda a, b: compare(a, b, sort)))
