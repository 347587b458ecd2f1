"""Unit tests for category query enhancement and the category store."""

from services.category_store import (
    CategoryRecord,
    InMemoryCategoryStore,
    associate_categories,
    extract_keywords,
)
from services.query_enhancer import (
    MAX_QUERY_LENGTH,
    cleanup_query,
    enhance,
    search_suggestions,
)


class TestEnhance:
    """Tests for enhance()."""

    def test_low_confidence_category_skipped(self, category_store):
        """Test only categories at or above the threshold contribute keywords."""
        result = enhance("learn", ["py", "cook"], category_store, confidence_threshold=0.6)

        assert result.enhanced_query == "learn python programming tutorial"
        assert "recipe" not in result.enhanced_query
        assert "kitchen" not in result.enhanced_query
        assert result.applied_category_ids == ("py",)

    def test_confidence_reported_for_every_category(self, category_store):
        """Test confidence is reported as stored, including skipped categories."""
        result = enhance("learn", ["py", "cook"], category_store)
        assert result.per_category_confidence == {"py": 0.8, "cook": 0.5}

    def test_threshold_is_inclusive(self, category_store):
        """Test a category exactly at the threshold contributes."""
        result = enhance("", ["cook"], category_store, confidence_threshold=0.5)
        assert result.keywords == ("recipe", "kitchen")

    def test_deduplicates_against_query(self, category_store):
        """Test keywords already in the query are not appended again."""
        result = enhance("Python basics", ["py"], category_store)
        assert result.enhanced_query == "Python basics programming tutorial"

    def test_deduplicates_across_categories(self):
        """Test a keyword shared by two categories appears once, in selection order."""
        store = InMemoryCategoryStore(
            [
                CategoryRecord("a", "A", keywords=("web", "html")),
                CategoryRecord("b", "B", keywords=("HTML", "css")),
            ]
        )
        result = enhance("course", ["b", "a"], store)
        assert result.keywords == ("HTML", "css", "web")

    def test_no_categories(self, category_store):
        """Test the query is returned normalized when nothing is selected."""
        result = enhance("  rust   async ", [], category_store)

        assert result.enhanced_query == "rust async"
        assert result.keywords == ()
        assert result.per_category_confidence == {}

    def test_unknown_category_ignored(self, category_store):
        """Test unknown category ids are skipped."""
        result = enhance("x", ["missing", "py"], category_store)
        assert result.applied_category_ids == ("py",)

    def test_enhanced_query_capped(self):
        """Test the enhanced query respects the catalog length limit."""
        store = InMemoryCategoryStore(
            [CategoryRecord("big", "Big", keywords=tuple(f"keyword{i}" for i in range(40)))]
        )
        result = enhance("learn", ["big"], store)
        assert len(result.enhanced_query) <= MAX_QUERY_LENGTH
        assert result.enhanced_query.startswith("learn keyword0")


class TestCleanupQuery:
    """Tests for cleanup_query()."""

    def test_whitespace_normalized(self):
        """Test runs of whitespace collapse to single spaces."""
        assert cleanup_query("  a \n b\t c ") == "a b c"

    def test_cut_on_word_boundary(self):
        """Test long queries are cut between words."""
        assert cleanup_query("alpha beta gamma", max_length=11) == "alpha beta"

    def test_single_long_word_truncated(self):
        """Test a first word longer than the limit is hard-truncated."""
        assert cleanup_query("x" * 20, max_length=5) == "xxxxx"


class TestSearchSuggestions:
    """Tests for search_suggestions()."""

    def test_no_categories(self):
        """Test no categories means no suggestions."""
        assert search_suggestions([]) == []

    def test_suggestions_for_category(self, category_store):
        """Test suggestions are built from the category name and first keyword."""
        suggestions = search_suggestions(category_store.get_many(["py"]))
        assert suggestions == [
            "Python tutorial",
            "Python guide",
            "Python basics",
            "python Python",
        ]

    def test_partial_query_filters(self, category_store):
        """Test a partial query keeps only matching suggestions."""
        suggestions = search_suggestions(category_store.get_many(["py", "cook"]), "guide")
        assert suggestions == ["Python guide", "Cooking guide"]


class TestCategoryStore:
    """Tests for the in-memory category store."""

    def test_get_many_preserves_order(self, category_store):
        """Test categories come back in requested order."""
        records = category_store.get_many(["cook", "py"])
        assert [r.category_id for r in records] == ["cook", "py"]

    def test_from_rows_extracts_keywords(self):
        """Test rows without keywords get extracted ones."""
        store = InMemoryCategoryStore.from_rows(
            [{"id": 7, "name": "Machine Learning", "description": "Neural networks explained"}]
        )
        record = store.get("7")

        assert len(store) == 1
        assert record.keywords[:2] == ("learning", "machine")
        assert "networks" in record.keywords
        assert record.confidence == 1.0

    def test_from_rows_keeps_explicit_keywords(self):
        """Test explicit keywords are used as given."""
        store = InMemoryCategoryStore.from_rows(
            [{"id": "x", "name": "X", "keywords": ["alpha"], "confidence": 0.3}]
        )
        assert store.get("x").keywords == ("alpha",)
        assert store.get("x").confidence == 0.3


class TestExtractKeywords:
    """Tests for extract_keywords()."""

    def test_stop_words_and_numbers_removed(self):
        """Test stop words, digits and short words are dropped."""
        keywords = extract_keywords("The 2024 Guide to Go", "all about the basics")
        assert keywords == ["guide", "basics"]

    def test_longer_words_first(self):
        """Test name keywords are ordered longest first."""
        assert extract_keywords("web development") == ["development", "web"]

    def test_no_duplicates_across_sources(self):
        """Test description words already taken from the name are skipped."""
        keywords = extract_keywords("Python", "python scripting", "python automation")
        assert keywords == ["python", "scripting", "automation"]


class TestAssociateCategories:
    """Tests for associate_categories()."""

    def test_matches_title_description_and_tags(self, category_store):
        """Test keywords are searched in title, description and tags."""
        categories = category_store.get_many(["py", "cook"])

        by_title = associate_categories("Python for beginners", "", [], categories)
        by_tag = associate_categories("Dinner", "", ["Recipe"], categories)

        assert [a.category_id for a in by_title] == ["py"]
        assert [a.category_id for a in by_tag] == ["cook"]
        assert by_tag[0].confidence == 0.5

    def test_no_match(self, category_store):
        """Test unrelated videos get no associations."""
        assert associate_categories("Cats", "funny", [], category_store.get_many(["py"])) == ()
