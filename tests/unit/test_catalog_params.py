"""Unit tests for catalog search parameter translation."""

from datetime import timedelta

from models.filters import (
    DateFilter,
    DatePreset,
    DurationFilter,
    DurationPreset,
    DurationRange,
    FilterSpecification,
    SortDirection,
    SortField,
    SortSpecification,
    ViewCountRange,
)
from models.video import QualityTier
from services.catalog_params import analyze_category_types, build_search_options, residual_spec
from services.category_store import CategoryRecord
from services.video_catalog import CatalogSearchOptions


def _category(name, description="", criteria=""):
    return CategoryRecord(category_id=name.lower(), name=name, description=description, criteria=criteria)


class TestAnalyzeCategoryTypes:
    """Tests for analyze_category_types()."""

    def test_detects_types(self):
        """Test content types are read from names, descriptions and criteria."""
        types = analyze_category_types(
            [
                _category("Python Tutorials"),
                _category("Kitchen", description="quick tips for weeknights"),
            ]
        )
        assert types == ["tutorial", "quick-tip"]

    def test_no_duplicates(self):
        """Test each type is reported once."""
        types = analyze_category_types([_category("Guide one"), _category("Guide two")])
        assert types == ["tutorial"]

    def test_nothing_detected(self):
        """Test plain categories have no type."""
        assert analyze_category_types([_category("Chess")]) == []


class TestBuildSearchOptions:
    """Tests for build_search_options()."""

    def test_defaults(self, now):
        """Test an empty specification maps to permissive options."""
        options = build_search_options(FilterSpecification(), SortSpecification(), [], now)

        assert options.order == "relevance"
        assert options.video_duration == "any"
        assert options.published_after is None
        assert options.video_definition == "any"
        assert options.video_caption == "any"
        assert options.safe_search == "moderate"
        assert options.relevance_language == "en"
        assert options.channel_id is None

    def test_native_duration(self, now):
        """Test duration presets map to catalog durations."""
        spec = FilterSpecification(duration=DurationFilter(DurationPreset.LONG))
        options = build_search_options(spec, SortSpecification(), [], now)
        assert options.video_duration == "long"

    def test_custom_duration_not_native(self, now):
        """Test custom ranges are not sent to the catalog."""
        spec = FilterSpecification(
            duration=DurationFilter(DurationPreset.CUSTOM, DurationRange(60, 90))
        )
        options = build_search_options(spec, SortSpecification(), [], now)
        assert options.video_duration == "any"

    def test_category_duration_hint(self, now):
        """Test tutorial categories prefer medium duration when none is chosen."""
        options = build_search_options(
            FilterSpecification(), SortSpecification(), [_category("Course notes")], now
        )
        assert options.video_duration == "medium"

    def test_explicit_duration_wins_over_hint(self, now):
        """Test an explicit duration overrides the category hint."""
        spec = FilterSpecification(duration=DurationFilter(DurationPreset.SHORT))
        options = build_search_options(spec, SortSpecification(), [_category("Tutorials")], now)
        assert options.video_duration == "short"

    def test_order_from_sort(self, now):
        """Test date and view sorts map to catalog orders."""
        by_date = build_search_options(
            FilterSpecification(), SortSpecification(SortField.PUBLISHED_AT), [], now
        )
        by_views = build_search_options(
            FilterSpecification(),
            SortSpecification(SortField.VIEW_COUNT, SortDirection.ASCENDING),
            [],
            now,
        )
        by_title = build_search_options(
            FilterSpecification(), SortSpecification(SortField.TITLE), [], now
        )

        assert by_date.order == "date"
        assert by_views.order == "viewCount"
        assert by_title.order == "relevance"

    def test_order_hint(self, now):
        """Test trending categories prefer date order under relevance sort."""
        options = build_search_options(
            FilterSpecification(), SortSpecification(), [_category("Latest news")], now
        )
        assert options.order == "date"

    def test_date_preset(self, now):
        """Test date presets become publishedAfter/Before."""
        spec = FilterSpecification(published=DateFilter(DatePreset.MONTH))
        options = build_search_options(spec, SortSpecification(), [], now)

        assert options.published_after == now - timedelta(days=30)
        assert options.published_before == now

    def test_high_definition(self, now):
        """Test quality restricted to high tiers asks for HD."""
        hd = FilterSpecification(quality=[QualityTier.HIGH, QualityTier.EXCELLENT])
        mixed = FilterSpecification(quality=[QualityTier.HIGH, QualityTier.MEDIUM])

        assert build_search_options(hd, SortSpecification(), [], now).video_definition == "high"
        assert build_search_options(mixed, SortSpecification(), [], now).video_definition == "any"

    def test_captions_language_channel(self, now):
        """Test captions, language and a single channel are passed through."""
        spec = FilterSpecification(has_captions=True, languages=["de"], channel_ids=["UC1"])
        options = build_search_options(spec, SortSpecification(), [], now)

        assert options.video_caption == "closedCaption"
        assert options.relevance_language == "de"
        assert options.channel_id == "UC1"

    def test_page_size(self, now):
        """Test the requested page size is used."""
        options = build_search_options(
            FilterSpecification(), SortSpecification(), [], now, max_results=20
        )
        assert options.max_results == 20


class TestToParams:
    """Tests for CatalogSearchOptions.to_params()."""

    def test_unset_values_omitted(self):
        """Test optional parameters are left out when unset."""
        params = CatalogSearchOptions().to_params()

        assert params["maxResults"] == 50
        assert "pageToken" not in params
        assert "publishedAfter" not in params
        assert "channelId" not in params

    def test_max_results_clamped(self):
        """Test page size is clamped to the catalog limits."""
        assert CatalogSearchOptions(max_results=500).to_params()["maxResults"] == 50
        assert CatalogSearchOptions(max_results=0).to_params()["maxResults"] == 1

    def test_dates_rfc3339(self, now):
        """Test dates are formatted as RFC 3339 UTC."""
        params = CatalogSearchOptions(published_after=now).to_params()
        assert params["publishedAfter"] == "2024-06-15T12:00:00Z"


class TestResidualSpec:
    """Tests for residual_spec()."""

    def test_native_constraints_removed(self):
        """Test constraints the catalog applies are dropped."""
        spec = FilterSpecification(
            query="python",
            category_ids=["py"],
            duration=DurationFilter(DurationPreset.SHORT),
            published=DateFilter(DatePreset.WEEK),
            has_captions=True,
            channel_ids=["UC1"],
        )
        residual = residual_spec(spec)

        assert residual.query is None
        assert residual.category_ids == ()
        assert residual.duration is None
        assert residual.published is None
        assert residual.has_captions is None
        assert residual.channel_ids == ()

    def test_local_constraints_kept(self):
        """Test constraints the catalog cannot apply stay."""
        custom = DurationFilter(DurationPreset.CUSTOM, DurationRange(60, 90))
        spec = FilterSpecification(
            duration=custom,
            view_count=ViewCountRange(min=100),
            quality=[QualityTier.EXCELLENT],
            channel_ids=["UC1", "UC2"],
            min_relevance_score=60,
            min_engagement_rate=0.01,
            tags=["async"],
            exclude_watched=True,
        )
        residual = residual_spec(spec)

        assert residual.duration == custom
        assert residual.view_count == spec.view_count
        assert residual.quality == spec.quality
        assert residual.channel_ids == ("UC1", "UC2")
        assert residual.min_relevance_score == 60
        assert residual.min_engagement_rate == 0.01
        assert residual.tags == ("async",)
        assert residual.exclude_watched is True
