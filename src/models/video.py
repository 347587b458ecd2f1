"""Video-related data models."""

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime. Naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class QualityTier(str, Enum):
    """Quality tier assigned to a video by the catalog adapter."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    EXCELLENT = "excellent"

    @property
    def rank(self) -> int:
        """Ordinal rank used for sorting (excellent=4 ... low=1)."""
        return _QUALITY_RANKS[self]


_QUALITY_RANKS = {
    QualityTier.LOW: 1,
    QualityTier.MEDIUM: 2,
    QualityTier.HIGH: 3,
    QualityTier.EXCELLENT: 4,
}


@dataclass(frozen=True)
class CategoryAssociation:
    """A link between a video and a user-defined learning category."""

    category_id: str
    confidence: float  # 0-1


@dataclass(frozen=True)
class Candidate:
    """A normalized video record eligible for ranking.

    Candidates are produced by a catalog adapter and never mutated. Scoring
    returns a copy carrying the relevance score for the current request.
    """

    video_id: str
    title: str
    channel_id: str
    channel_title: str
    published_at: datetime
    duration: Optional[int] = None  # in seconds, None when the catalog did not report it
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0
    quality: QualityTier = QualityTier.MEDIUM
    has_captions: bool = False
    language: Optional[str] = None
    tags: tuple[str, ...] = ()
    categories: tuple[CategoryAssociation, ...] = ()
    description: str = ""
    thumbnail_url: str = ""
    relevance_score: float = 0.0  # 0-100, set per request by the ranking engine

    def __post_init__(self):
        object.__setattr__(self, "published_at", as_utc(self.published_at))
        object.__setattr__(self, "quality", QualityTier(self.quality))
        object.__setattr__(self, "tags", tuple(self.tags))
        object.__setattr__(self, "categories", tuple(self.categories))

    @property
    def url(self) -> str:
        return f"https://www.youtube.com/watch?v={self.video_id}"

    @property
    def engagement_rate(self) -> float:
        """(likes + comments) / views as a fraction; 0 when there are no views."""
        if self.view_count <= 0:
            return 0.0
        return (self.like_count + self.comment_count) / self.view_count

    @property
    def category_ids(self) -> tuple[str, ...]:
        return tuple(assoc.category_id for assoc in self.categories)

    def with_score(self, score: float) -> "Candidate":
        """Return a copy annotated with a relevance score."""
        return replace(self, relevance_score=score)
