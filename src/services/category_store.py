"""Category store abstraction and keyword helpers.

The engine only reads categories: ``{id, keywords, confidence}`` for the
categories the user selected. Persistence of categories is owned elsewhere.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from models.video import CategoryAssociation

logger = logging.getLogger(__name__)

STOP_WORDS = frozenset(
    [
        "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "by",
        "about", "into", "through", "during", "before", "after", "above", "below", "up", "down",
        "out", "off", "over", "under", "again", "further", "then", "once", "here", "there",
        "when", "where", "why", "how", "all", "any", "both", "each", "few", "more", "most",
        "other", "some", "such", "no", "nor", "not", "only", "own", "same", "so", "than",
        "too", "very", "s", "t", "can", "will", "just", "don", "should", "now",
    ]
)

MAX_NAME_KEYWORDS = 5
MAX_DESCRIPTION_KEYWORDS = 8
MAX_CRITERIA_KEYWORDS = 6


@dataclass(frozen=True)
class CategoryRecord:
    """A user-defined learning category as seen by the engine."""

    category_id: str
    name: str
    keywords: tuple[str, ...] = ()
    confidence: float = 1.0  # 0-1, owned by the store
    description: str = ""
    criteria: str = ""

    def __post_init__(self):
        object.__setattr__(self, "keywords", tuple(self.keywords))


class CategoryStore(ABC):
    """Read-only access to categories."""

    @abstractmethod
    def get(self, category_id: str) -> Optional[CategoryRecord]:
        """Return the category with this id, or None if unknown."""

    def get_many(self, category_ids: Iterable[str]) -> list[CategoryRecord]:
        """Return known categories in the order requested, skipping unknown ids."""
        records = []
        for category_id in category_ids:
            record = self.get(category_id)
            if record is None:
                logger.warning(f"Unknown category id: {category_id}")
                continue
            records.append(record)
        return records


class InMemoryCategoryStore(CategoryStore):
    """Category store over a snapshot of records."""

    def __init__(self, records: Iterable[CategoryRecord] = ()):
        self._records = {record.category_id: record for record in records}

    def get(self, category_id: str) -> Optional[CategoryRecord]:
        return self._records.get(category_id)

    def __len__(self) -> int:
        return len(self._records)

    @classmethod
    def from_rows(cls, rows: Iterable[dict]) -> "InMemoryCategoryStore":
        """Build a store from database-style rows.

        Rows without an explicit keyword list get keywords extracted from
        their name, description and criteria.
        """
        records = []
        for row in rows:
            name = row.get("name", "")
            description = row.get("description") or ""
            criteria = row.get("criteria") or ""
            keywords = row.get("keywords") or extract_keywords(name, description, criteria)
            records.append(
                CategoryRecord(
                    category_id=str(row["id"]),
                    name=name,
                    keywords=tuple(keywords),
                    confidence=float(row.get("confidence", 1.0)),
                    description=description,
                    criteria=criteria,
                )
            )
        return cls(records)


def _words(text: str) -> list[str]:
    """Lower-cased meaningful words, longest first."""
    cleaned = re.sub(r"[^\w\s]", " ", (text or "").lower())
    words = [
        word
        for word in cleaned.split()
        if len(word) > 1 and word not in STOP_WORDS and not word.isdigit()
    ]
    # sorted() is stable, so equal-length words keep their text order
    return sorted(words, key=len, reverse=True)


def _unique(words: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(words))


def extract_keywords(name: str, description: str = "", criteria: str = "") -> list[str]:
    """
    Derive search keywords from a category's free text.

    Name words rank first, then description words, then criteria words. Words
    already taken by an earlier source are skipped.

    Args:
        name: Category name
        description: Category description
        criteria: Learning criteria text

    Returns:
        Ordered, de-duplicated keyword list
    """
    primary = _unique(w for w in _words(name) if len(w) > 2)[:MAX_NAME_KEYWORDS]
    secondary = _unique(
        w for w in _words(description) if len(w) > 3 and w not in primary
    )[:MAX_DESCRIPTION_KEYWORDS]
    criteria_words = _unique(
        w for w in _words(criteria) if len(w) > 3 and w not in primary and w not in secondary
    )[:MAX_CRITERIA_KEYWORDS]
    return primary + secondary + criteria_words


def associate_categories(
    title: str,
    description: str,
    tags: Sequence[str],
    categories: Sequence[CategoryRecord],
) -> tuple[CategoryAssociation, ...]:
    """Link a video to every category with a keyword in its title, description or tags."""
    haystack = " ".join([title or "", description or "", *tags]).lower()
    associations = []
    for category in categories:
        if any(keyword.lower() in haystack for keyword in category.keywords if keyword.strip()):
            associations.append(CategoryAssociation(category.category_id, category.confidence))
    return tuple(associations)
