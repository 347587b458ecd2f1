"""Filter and sort specification models.

A FilterSpecification describes what the user wants from a result set. It is
pure data: validation lives in services.filter_spec and preset resolution in
services.range_resolver. Specifications are frozen; build a new one instead of
mutating an existing one.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from models.video import QualityTier, as_utc


class DurationPreset(str, Enum):
    ANY = "any"
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"
    CUSTOM = "custom"


class DatePreset(str, Enum):
    ANY = "any"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    CUSTOM = "custom"


class SortField(str, Enum):
    RELEVANCE = "relevance"
    PUBLISHED_AT = "publishedAt"
    VIEW_COUNT = "viewCount"
    DURATION = "duration"
    TITLE = "title"
    QUALITY = "quality"
    ENGAGEMENT = "engagement"


class SortDirection(str, Enum):
    ASCENDING = "asc"
    DESCENDING = "desc"


@dataclass(frozen=True)
class DurationRange:
    """Duration bounds in seconds. A missing bound is open."""

    min_seconds: Optional[int] = None
    max_seconds: Optional[int] = None
    inclusive_max: bool = True  # preset ranges are half-open

    def contains(self, seconds: int) -> bool:
        if self.min_seconds is not None and seconds < self.min_seconds:
            return False
        if self.max_seconds is None:
            return True
        if self.inclusive_max:
            return seconds <= self.max_seconds
        return seconds < self.max_seconds


@dataclass(frozen=True)
class DateRange:
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def __post_init__(self):
        if self.start is not None:
            object.__setattr__(self, "start", as_utc(self.start))
        if self.end is not None:
            object.__setattr__(self, "end", as_utc(self.end))


@dataclass(frozen=True)
class ViewCountRange:
    min: Optional[int] = None
    max: Optional[int] = None


@dataclass(frozen=True)
class DurationFilter:
    """Duration constraint. The explicit range is used only with the CUSTOM preset."""

    preset: DurationPreset = DurationPreset.ANY
    range: Optional[DurationRange] = None


@dataclass(frozen=True)
class DateFilter:
    """Publish-date constraint. The explicit range is used only with the CUSTOM preset."""

    preset: DatePreset = DatePreset.ANY
    range: Optional[DateRange] = None


@dataclass(frozen=True)
class FilterSpecification:
    """Everything the user asked for. All fields are optional."""

    query: Optional[str] = None
    category_ids: tuple[str, ...] = ()  # selection order matters for query enhancement
    duration: Optional[DurationFilter] = None
    published: Optional[DateFilter] = None
    view_count: Optional[ViewCountRange] = None
    quality: tuple[QualityTier, ...] = ()
    channel_ids: tuple[str, ...] = ()
    languages: tuple[str, ...] = ()
    has_captions: Optional[bool] = None
    min_relevance_score: Optional[float] = None  # 0-100
    min_engagement_rate: Optional[float] = None  # fraction, e.g. 0.02 for 2%
    tags: tuple[str, ...] = ()
    exclude_watched: bool = False

    def __post_init__(self):
        # Lists from callers are stored as tuples
        for name in ("category_ids", "channel_ids", "languages", "tags"):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        object.__setattr__(self, "quality", tuple(QualityTier(q) for q in self.quality))


@dataclass(frozen=True)
class SortSpecification:
    field: SortField = SortField.RELEVANCE
    direction: SortDirection = SortDirection.DESCENDING

    @property
    def descending(self) -> bool:
        return self.direction is SortDirection.DESCENDING


@dataclass(frozen=True)
class FilterPreset:
    """A named filter + sort combination offered to users."""

    preset_id: str
    name: str
    description: str
    filters: FilterSpecification
    sort: SortSpecification = field(default_factory=SortSpecification)
    is_default: bool = False


DEFAULT_FILTER_PRESETS: tuple[FilterPreset, ...] = (
    FilterPreset(
        preset_id="most-relevant",
        name="Most Relevant",
        description="Videos ranked by relevance to your selected categories",
        filters=FilterSpecification(min_relevance_score=50),
        sort=SortSpecification(SortField.RELEVANCE, SortDirection.DESCENDING),
        is_default=True,
    ),
    FilterPreset(
        preset_id="recent",
        name="Recently Published",
        description="Latest videos from the past month",
        filters=FilterSpecification(published=DateFilter(DatePreset.MONTH)),
        sort=SortSpecification(SortField.PUBLISHED_AT, SortDirection.DESCENDING),
    ),
    FilterPreset(
        preset_id="popular",
        name="Most Popular",
        description="Videos with highest view counts",
        filters=FilterSpecification(view_count=ViewCountRange(min=1000)),
        sort=SortSpecification(SortField.VIEW_COUNT, SortDirection.DESCENDING),
    ),
    FilterPreset(
        preset_id="quick-watch",
        name="Quick Watch",
        description="Short videos under 4 minutes",
        filters=FilterSpecification(duration=DurationFilter(DurationPreset.SHORT)),
        sort=SortSpecification(SortField.RELEVANCE, SortDirection.DESCENDING),
    ),
    FilterPreset(
        preset_id="high-quality",
        name="High Quality",
        description="Videos with excellent quality and captions",
        filters=FilterSpecification(
            quality=(QualityTier.HIGH, QualityTier.EXCELLENT),
            has_captions=True,
            min_engagement_rate=0.02,
        ),
        sort=SortSpecification(SortField.QUALITY, SortDirection.DESCENDING),
    ),
)


def get_preset(preset_id: str) -> Optional[FilterPreset]:
    for preset in DEFAULT_FILTER_PRESETS:
        if preset.preset_id == preset_id:
            return preset
    return None


def default_preset() -> FilterPreset:
    for preset in DEFAULT_FILTER_PRESETS:
        if preset.is_default:
            return preset
    return DEFAULT_FILTER_PRESETS[0]
