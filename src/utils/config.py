"""Configuration loading and validation for the filtering engine."""

import os
from pathlib import Path

from dotenv import load_dotenv

# Get the project root directory (parent of src)
PROJECT_ROOT = Path(__file__).parent.parent.parent

# Load environment variables from .env file in project root
load_dotenv(PROJECT_ROOT / ".env")


def load_config() -> dict:
    """Load configuration from environment variables."""

    # Helper function to resolve paths relative to project root
    def resolve_path(path: str | None, default_relative: str) -> str:
        if not path:
            return str(PROJECT_ROOT / default_relative)
        if Path(path).is_absolute():
            return path
        return str(PROJECT_ROOT / path)

    config = {
        # Catalog credential; only its presence is used for strategy selection
        "youtube_api_key": os.getenv("YOUTUBE_API_KEY"),
        # Ranking constants (hand tuned, pending product validation)
        "ranking_base_score": float(os.getenv("RANKING_BASE_SCORE", "95")),
        "ranking_position_decay": float(os.getenv("RANKING_POSITION_DECAY", "2")),
        "ranking_score_floor": float(os.getenv("RANKING_SCORE_FLOOR", "50")),
        "ranking_category_boost": float(os.getenv("RANKING_CATEGORY_BOOST", "10")),
        # Category query enhancement
        "category_confidence_threshold": float(
            os.getenv("CATEGORY_CONFIDENCE_THRESHOLD", "0.6")
        ),
        # Remote catalog search
        "catalog_max_results": int(os.getenv("CATALOG_MAX_RESULTS", "50")),
        "catalog_timeout_seconds": float(os.getenv("CATALOG_TIMEOUT_SECONDS", "10")),
        "catalog_safe_search": os.getenv("CATALOG_SAFE_SEARCH", "moderate"),
        "catalog_default_language": os.getenv("CATALOG_DEFAULT_LANGUAGE", "en"),
        # Catalog response caching
        "cache_enabled": os.getenv("CACHE_ENABLED", "true").lower() == "true",
        "cache_ttl_seconds": int(os.getenv("CACHE_TTL_SECONDS", "900")),
        "cache_dir": resolve_path(os.getenv("CACHE_DIR"), ".cache/catalog"),
        "cache_max_size_mb": float(os.getenv("CACHE_MAX_SIZE_MB", "256")),
        # Logging
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "log_json": os.getenv("LOG_JSON", "false").lower() == "true",
    }

    return config


def validate_config(config: dict) -> list[str]:
    """Validate configuration and return list of errors."""
    errors = []

    if config.get("ranking_position_decay", 0) < 0:
        errors.append("RANKING_POSITION_DECAY cannot be negative")

    if config.get("ranking_score_floor", 0) > config.get("ranking_base_score", 100):
        errors.append("RANKING_SCORE_FLOOR cannot exceed RANKING_BASE_SCORE")

    if config.get("ranking_category_boost", 0) < 0:
        errors.append("RANKING_CATEGORY_BOOST cannot be negative")

    threshold = config.get("category_confidence_threshold", 0.6)
    if not 0 <= threshold <= 1:
        errors.append("CATEGORY_CONFIDENCE_THRESHOLD must be between 0 and 1")

    if config.get("catalog_timeout_seconds", 1) <= 0:
        errors.append("CATALOG_TIMEOUT_SECONDS must be positive")

    max_results = config.get("catalog_max_results", 50)
    if not 1 <= max_results <= 50:
        errors.append("CATALOG_MAX_RESULTS must be between 1 and 50")

    if config.get("cache_enabled") and config.get("cache_ttl_seconds", 1) <= 0:
        errors.append("CACHE_TTL_SECONDS must be positive when caching is enabled")

    return errors


def has_catalog_credential(config: dict) -> bool:
    """Whether a catalog API key is configured. The key itself is never returned."""
    return bool((config.get("youtube_api_key") or "").strip())
