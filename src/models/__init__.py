# Data models for learningtube-filter
from .video import Candidate, CategoryAssociation, QualityTier
from .filters import (
    DateFilter,
    DatePreset,
    DateRange,
    DurationFilter,
    DurationPreset,
    DurationRange,
    FilterPreset,
    FilterSpecification,
    SortDirection,
    SortField,
    SortSpecification,
    ViewCountRange,
    DEFAULT_FILTER_PRESETS,
)
from .results import FilterResult, FilterStatistics, FilterValidation, Provenance

__all__ = [
    "Candidate",
    "CategoryAssociation",
    "QualityTier",
    # Filter specification
    "DateFilter",
    "DatePreset",
    "DateRange",
    "DurationFilter",
    "DurationPreset",
    "DurationRange",
    "FilterSpecification",
    "SortDirection",
    "SortField",
    "SortSpecification",
    "ViewCountRange",
    # Presets
    "FilterPreset",
    "DEFAULT_FILTER_PRESETS",
    # Results
    "FilterResult",
    "FilterStatistics",
    "FilterValidation",
    "Provenance",
]
