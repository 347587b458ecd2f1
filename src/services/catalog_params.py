"""Translation of filter specifications into catalog search parameters.

The catalog can apply some constraints server-side (duration presets, publish
dates, captions, a single channel). Everything else is left in a residual
specification that the pipeline applies locally to the returned candidates.
"""

from dataclasses import replace
from datetime import datetime
from typing import Sequence

from models.filters import DurationPreset, FilterSpecification, SortField, SortSpecification
from models.video import QualityTier
from services.category_store import CategoryRecord
from services.range_resolver import resolve_published
from services.video_catalog import CatalogSearchOptions

NATIVE_DURATIONS = {
    DurationPreset.SHORT: "short",
    DurationPreset.MEDIUM: "medium",
    DurationPreset.LONG: "long",
}

SORT_TO_ORDER = {
    SortField.PUBLISHED_AT: "date",
    SortField.VIEW_COUNT: "viewCount",
}

_TYPE_MARKERS = {
    "tutorial": ("tutorial", "how to", "guide"),
    "beginner": ("beginner", "basic", "intro"),
    "advanced": ("advanced", "expert", "deep"),
    "quick-tip": ("quick", "tip", "short"),
    "course": ("course", "series", "complete"),
    "demo": ("demo", "example", "showcase"),
    "trending": ("trending", "latest", "new"),
    "popular": ("popular", "best", "top"),
}


def analyze_category_types(categories: Sequence[CategoryRecord]) -> list[str]:
    """Coarse content types suggested by category names, descriptions and criteria."""
    found: list[str] = []
    for category in categories:
        text = f"{category.name} {category.description} {category.criteria}".lower()
        for content_type, markers in _TYPE_MARKERS.items():
            if content_type not in found and any(marker in text for marker in markers):
                found.append(content_type)
    return found


def _hinted_duration(types: Sequence[str]) -> str:
    if "tutorial" in types or "course" in types:
        return "medium"
    if "quick-tip" in types or "demo" in types:
        return "short"
    return "any"


def _hinted_order(types: Sequence[str]) -> str:
    if "trending" in types:
        return "date"
    if "popular" in types or "beginner" in types:
        return "viewCount"
    return "relevance"


def build_search_options(
    spec: FilterSpecification,
    sort: SortSpecification,
    categories: Sequence[CategoryRecord],
    now: datetime,
    max_results: int = 50,
    safe_search: str = "moderate",
    default_language: str = "en",
) -> CatalogSearchOptions:
    """
    Build catalog search options for a filter specification.

    Explicit filter and sort choices win over hints derived from category types.

    Args:
        spec: Filter specification
        sort: Requested ordering
        categories: Selected categories (for duration/order hints)
        now: Reference time for date presets
        max_results: Page size
        safe_search: Catalog safe-search level
        default_language: Relevance language when no language is selected

    Returns:
        CatalogSearchOptions
    """
    types = analyze_category_types(categories)

    if spec.duration is None:
        video_duration = _hinted_duration(types)
    else:
        video_duration = NATIVE_DURATIONS.get(spec.duration.preset, "any")

    if sort.field is SortField.RELEVANCE:
        order = _hinted_order(types)
    else:
        order = SORT_TO_ORDER.get(sort.field, "relevance")

    date_range = resolve_published(spec.published, now)

    if spec.quality and all(q in (QualityTier.HIGH, QualityTier.EXCELLENT) for q in spec.quality):
        definition = "high"
    else:
        definition = "any"

    if spec.has_captions is None:
        caption = "any"
    else:
        caption = "closedCaption" if spec.has_captions else "none"

    return CatalogSearchOptions(
        max_results=max_results,
        order=order,
        video_duration=video_duration,
        published_after=date_range.start if date_range else None,
        published_before=date_range.end if date_range else None,
        video_definition=definition,
        video_caption=caption,
        safe_search=safe_search,
        relevance_language=spec.languages[0] if spec.languages else default_language,
        channel_id=spec.channel_ids[0] if len(spec.channel_ids) == 1 else None,
        category_ids=spec.category_ids,
    )


def residual_spec(spec: FilterSpecification) -> FilterSpecification:
    """The part of a specification the catalog cannot apply server-side."""
    duration = spec.duration
    if duration is not None and duration.preset in NATIVE_DURATIONS:
        duration = None

    return replace(
        spec,
        query=None,
        category_ids=(),
        duration=duration,
        published=None,
        has_captions=None,
        channel_ids=() if len(spec.channel_ids) == 1 else spec.channel_ids,
    )
