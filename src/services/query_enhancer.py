"""Category-based search query enhancement.

Selected categories widen a search: their keywords are appended to the user's
query as optional terms. Enhancement never narrows results.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional, Sequence

from services.category_store import CategoryRecord, CategoryStore

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE_THRESHOLD = 0.6
MAX_QUERY_LENGTH = 100  # catalog search query limit


@dataclass(frozen=True)
class QueryEnhancement:
    """Result of enhancing a query with category keywords."""

    original_query: str
    enhanced_query: str
    keywords: tuple[str, ...] = ()
    applied_category_ids: tuple[str, ...] = ()
    per_category_confidence: dict[str, float] = field(default_factory=dict)


def enhance(
    query: Optional[str],
    selected_category_ids: Sequence[str],
    category_store: CategoryStore,
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
) -> QueryEnhancement:
    """
    Append keywords from confident categories to a search query.

    Keywords are taken in category selection order, then keyword declaration
    order, de-duplicated case-insensitively against each other and the query.
    Confidence values are reported exactly as the store holds them.

    Args:
        query: Raw user query (may be empty)
        selected_category_ids: Selected category ids, in selection order
        category_store: Store to read category keywords and confidence from
        confidence_threshold: Minimum category confidence for its keywords to be used

    Returns:
        QueryEnhancement with the enhanced query and per-category confidence
    """
    original = (query or "").strip()
    seen = {word.lower() for word in original.split()}
    keywords: list[str] = []
    applied: list[str] = []
    confidence: dict[str, float] = {}

    for category in category_store.get_many(selected_category_ids):
        confidence[category.category_id] = category.confidence
        if category.confidence < confidence_threshold:
            logger.debug(
                f"Skipping keywords of '{category.name}': confidence "
                f"{category.confidence:.2f} < {confidence_threshold:.2f}"
            )
            continue

        applied.append(category.category_id)
        for keyword in category.keywords:
            normalized = " ".join(keyword.split())
            if not normalized or normalized.lower() in seen:
                continue
            seen.add(normalized.lower())
            keywords.append(normalized)

    enhanced = cleanup_query(" ".join([original, *keywords]))
    if keywords:
        logger.info(f"Enhanced query '{original}' -> '{enhanced}'")

    return QueryEnhancement(
        original_query=original,
        enhanced_query=enhanced,
        keywords=tuple(keywords),
        applied_category_ids=tuple(applied),
        per_category_confidence=confidence,
    )


def cleanup_query(query: str, max_length: int = MAX_QUERY_LENGTH) -> str:
    """Normalize whitespace and cap the query length on a word boundary."""
    normalized = re.sub(r"\s+", " ", query).strip()
    if len(normalized) <= max_length:
        return normalized

    kept: list[str] = []
    length = 0
    for word in normalized.split(" "):
        extra = len(word) + (1 if kept else 0)
        if length + extra > max_length:
            break
        kept.append(word)
        length += extra

    # A single over-long first word still has to fit
    return " ".join(kept) if kept else normalized[:max_length]


def search_suggestions(categories: Sequence[CategoryRecord], partial_query: str = "") -> list[str]:
    """Query suggestions derived from the selected categories."""
    if not categories:
        return []

    suggestions: list[str] = []
    for category in categories:
        suggestions.append(f"{category.name} tutorial")
        suggestions.append(f"{category.name} guide")
        suggestions.append(f"{category.name} basics")
        if category.keywords:
            suggestions.append(f"{category.keywords[0]} {category.name}")

    partial = partial_query.strip().lower()
    if partial:
        return [s for s in suggestions if partial in s.lower()][:5]
    return suggestions[:8]
