"""Filtering result models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from models.filters import FilterSpecification, SortSpecification
from models.video import Candidate


class Provenance(str, Enum):
    """Where a FilterResult came from."""

    API = "api"  # remote catalog with server-side filters
    LOCAL = "local"  # local re-filtering of held candidates
    FALLBACK = "fallback"  # local re-filtering after the remote path failed


@dataclass(frozen=True)
class FilterValidation:
    """Outcome of validating a FilterSpecification."""

    is_valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()


@dataclass(frozen=True)
class FilterStatistics:
    """Read-only distribution summary over a candidate collection."""

    total_videos: int = 0
    filtered_videos: int = 0
    average_relevance_score: float = 0.0
    duration_distribution: dict[str, int] = field(default_factory=dict)
    quality_distribution: dict[str, int] = field(default_factory=dict)
    date_distribution: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert statistics to a dictionary for reporting."""
        return {
            "total_videos": self.total_videos,
            "filtered_videos": self.filtered_videos,
            "average_relevance_score": round(self.average_relevance_score, 1),
            "duration_distribution": dict(self.duration_distribution),
            "quality_distribution": dict(self.quality_distribution),
            "date_distribution": dict(self.date_distribution),
        }


@dataclass(frozen=True)
class FilterResult:
    """Ranked outcome of one filtering invocation.

    Carries the exact FilterSpecification and SortSpecification objects that
    produced it so callers can discard results of superseded requests.
    """

    videos: tuple[Candidate, ...]
    total_count: int  # matching candidates before limit/offset truncation
    filters: FilterSpecification
    sort: SortSpecification
    provenance: Provenance
    processing_time_ms: float
    statistics: FilterStatistics = field(default_factory=FilterStatistics)
    enhanced_query: Optional[str] = None
    catalog_total_results: Optional[int] = None  # catalog's own estimate, remote path only
    fallback_reason: Optional[str] = None

    @property
    def is_degraded(self) -> bool:
        return self.provenance is Provenance.FALLBACK

    def produced_by(self, filters: FilterSpecification, sort: SortSpecification) -> bool:
        """True when this result was computed for exactly these specification objects."""
        return self.filters is filters and self.sort is sort
