"""Shared pytest fixtures for learningtube-filter tests."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Dict

import pytest

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))


@pytest.fixture
def now() -> datetime:
    """Fixed reference time for date presets."""
    return datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_candidate(now) -> Callable:
    """Factory for Candidate objects with sensible defaults."""
    from models.video import Candidate

    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        n = counter["n"]
        values = {
            "video_id": f"vid_{n:03d}",
            "title": f"Video {n}",
            "channel_id": "chan_1",
            "channel_title": "Learning Channel",
            "published_at": now - timedelta(days=2),
            "duration": 600,
            "view_count": 10_000,
            "like_count": 400,
            "comment_count": 100,
        }
        values.update(overrides)
        return Candidate(**values)

    return _make


@pytest.fixture
def category_store():
    """Category store with two categories of different confidence."""
    from services.category_store import CategoryRecord, InMemoryCategoryStore

    return InMemoryCategoryStore(
        [
            CategoryRecord(
                category_id="py",
                name="Python",
                keywords=("python", "programming", "tutorial"),
                confidence=0.8,
            ),
            CategoryRecord(
                category_id="cook",
                name="Cooking",
                keywords=("recipe", "kitchen"),
                confidence=0.5,
            ),
        ]
    )


@pytest.fixture
def sample_config(tmp_path) -> Dict:
    """Sample configuration for testing."""
    return {
        "youtube_api_key": "test_youtube_key",
        "ranking_base_score": 95.0,
        "ranking_position_decay": 2.0,
        "ranking_score_floor": 50.0,
        "ranking_category_boost": 10.0,
        "category_confidence_threshold": 0.6,
        "catalog_max_results": 50,
        "catalog_timeout_seconds": 5.0,
        "catalog_safe_search": "moderate",
        "catalog_default_language": "en",
        "cache_enabled": False,
        "cache_ttl_seconds": 900,
        "cache_dir": str(tmp_path / "cache"),
        "log_level": "INFO",
        "log_json": False,
    }
