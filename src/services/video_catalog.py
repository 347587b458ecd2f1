"""Base abstraction for video catalogs."""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from models.video import Candidate


@dataclass(frozen=True)
class CatalogSearchOptions:
    """Paging, ordering and server-side filter parameters for one catalog search."""

    max_results: int = 50
    order: str = "relevance"  # relevance, date, viewCount, rating
    page_token: Optional[str] = None
    video_duration: str = "any"  # any, short, medium, long
    published_after: Optional[datetime] = None
    published_before: Optional[datetime] = None
    video_definition: str = "any"  # any, high, standard
    video_caption: str = "any"  # any, closedCaption, none
    safe_search: str = "moderate"
    relevance_language: Optional[str] = None
    channel_id: Optional[str] = None
    category_ids: tuple[str, ...] = ()  # learning categories to associate results with

    def to_params(self) -> dict:
        """Search request parameters, omitting unset values."""
        params = {
            "maxResults": max(1, min(self.max_results, 50)),
            "order": self.order,
            "videoDuration": self.video_duration,
            "videoDefinition": self.video_definition,
            "videoCaption": self.video_caption,
            "safeSearch": self.safe_search,
        }
        if self.page_token:
            params["pageToken"] = self.page_token
        if self.published_after is not None:
            params["publishedAfter"] = _rfc3339(self.published_after)
        if self.published_before is not None:
            params["publishedBefore"] = _rfc3339(self.published_before)
        if self.relevance_language:
            params["relevanceLanguage"] = self.relevance_language
        if self.channel_id:
            params["channelId"] = self.channel_id
        return params


def _rfc3339(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass(frozen=True)
class CatalogPage:
    """One page of catalog search results, in the catalog's relevance order."""

    items: tuple[Candidate, ...]
    total_results: int
    next_page_token: Optional[str] = None


class VideoCatalog(ABC):
    """Abstract base class for video catalogs (YouTube, test doubles, etc.)."""

    @abstractmethod
    async def search(
        self,
        query: str,
        options: CatalogSearchOptions,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> CatalogPage:
        """Search the catalog.

        Args:
            query: Search query string
            options: Paging, ordering and filter parameters
            cancel_event: Set by the caller to abort the call; implementations
                must then raise FilterCancelledError

        Returns:
            CatalogPage with candidates in catalog order

        Raises:
            UpstreamError: The catalog call failed
            FilterCancelledError: cancel_event was set before the call finished
        """

    @abstractmethod
    def get_catalog_name(self) -> str:
        """Get the name of this catalog.

        Returns:
            Catalog name (e.g., "youtube")
        """

    def is_configured(self) -> bool:
        """Check if this catalog has required configuration (API keys, etc.).

        Default implementation returns True (no config required).
        Override in subclasses that require API keys.

        Returns:
            True if catalog is properly configured and ready to use
        """
        return True
