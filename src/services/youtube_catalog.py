"""YouTube Data API catalog adapter.

Searches YouTube and converts results into Candidates. The Data API client is
blocking, so requests run in the default executor while the event loop stays
free for other filtering requests.

One filtering request costs a search.list call (100 quota units) plus one
videos.list call (1 unit) per 50 results, against a default 10,000 unit daily
allowance.

Failures are raised as UpstreamError subclasses so the filtering pipeline can
fall back to local results.
"""

import asyncio
import functools
import json
import logging
import re
import threading
from datetime import datetime
from typing import Optional, Sequence

import httplib2
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from models.video import Candidate, QualityTier
from services.category_store import CategoryRecord, CategoryStore, associate_categories
from services.errors import (
    CatalogNetworkError,
    CatalogQuotaExceededError,
    CatalogRateLimitError,
    CatalogResponseError,
    FilterCancelledError,
    UpstreamError,
)
from services.video_catalog import CatalogPage, CatalogSearchOptions, VideoCatalog

logger = logging.getLogger(__name__)

QUOTA_REASONS = {"quotaExceeded", "dailyLimitExceeded"}
RATE_LIMIT_REASONS = {"rateLimitExceeded", "userRateLimitExceeded"}

_DURATION_PATTERN = re.compile(
    r"^P(?:(?P<days>\d+)D)?(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+)S)?)?$"
)


def parse_duration(duration: str) -> Optional[int]:
    """Convert an ISO 8601 duration to whole seconds.

    Args:
        duration: Duration string like "PT5M30S" or "P1DT2H"

    Returns:
        Duration in seconds, or None if missing or unparseable
    """
    match = _DURATION_PATTERN.match(duration or "")
    if not match or duration in ("P", "PT"):
        return None
    parts = {key: int(value) for key, value in match.groupdict().items() if value}
    return (
        parts.get("days", 0) * 86400
        + parts.get("hours", 0) * 3600
        + parts.get("minutes", 0) * 60
        + parts.get("seconds", 0)
    )


def _error_reason(error: HttpError) -> str:
    """First ``reason`` from the API error payload, or empty string."""
    try:
        payload = json.loads(error.content.decode("utf-8"))
        errors = payload.get("error", {}).get("errors", [])
        if errors:
            return errors[0].get("reason", "")
    except (ValueError, AttributeError, TypeError):
        pass
    return ""


def classify_http_error(error: HttpError) -> UpstreamError:
    """Map an API HttpError onto the upstream error taxonomy."""
    status = getattr(error.resp, "status", None)
    reason = _error_reason(error)

    if reason in QUOTA_REASONS:
        return CatalogQuotaExceededError(f"YouTube quota exceeded ({reason})", status=status)
    if reason in RATE_LIMIT_REASONS or status == 429:
        return CatalogRateLimitError(f"YouTube rate limit hit ({reason or status})", status=status)
    if status is not None and 400 <= status < 500:
        return CatalogResponseError(f"YouTube rejected the request: {reason or status}", status=status)
    return CatalogNetworkError(f"YouTube API error: {reason or status}", status=status)


def quality_tier(definition: str, has_captions: bool) -> QualityTier:
    """HD with captions is excellent, HD high, SD medium, unknown low."""
    if definition == "hd":
        return QualityTier.EXCELLENT if has_captions else QualityTier.HIGH
    if definition == "sd":
        return QualityTier.MEDIUM
    return QualityTier.LOW


class YouTubeCatalog(VideoCatalog):
    """Video catalog backed by the YouTube Data API v3.

    Features:
    - Batched detail requests (50 items per request)
    - Quota tracking
    - Error classification into rate-limit / quota / network / malformed
    - Cancellation through an asyncio.Event
    """

    # videos.list accepts at most 50 ids
    MAX_BATCH_SIZE = 50

    # Quota units per call
    QUOTA_SEARCH = 100
    QUOTA_VIDEOS = 1

    def __init__(
        self,
        api_key: Optional[str] = None,
        category_store: Optional[CategoryStore] = None,
        service=None,
    ):
        """Initialize the YouTube catalog.

        Args:
            api_key: YouTube Data API v3 key
            category_store: Store used to associate results with selected categories
            service: Pre-built API client (tests inject a mock here)
        """
        self._configured = bool(api_key) or service is not None
        self.category_store = category_store
        if service is None and api_key:
            service = build("youtube", "v3", developerKey=api_key)
        self.youtube = service
        self._quota_used = 0
        self._lock = threading.RLock()  # the discovery client is not thread-safe

    @property
    def quota_used(self) -> int:
        """Quota units spent by this adapter so far."""
        return self._quota_used

    def get_catalog_name(self) -> str:
        return "youtube"

    def is_configured(self) -> bool:
        return self._configured

    def _execute_request(self, request, cost: int):
        """Execute an API request under the client lock and charge its quota cost."""
        with self._lock:
            response = request.execute()
            self._quota_used += cost
            return response

    async def search(
        self,
        query: str,
        options: CatalogSearchOptions,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> CatalogPage:
        if self.youtube is None:
            raise CatalogNetworkError("YouTube catalog is not configured")

        loop = asyncio.get_running_loop()
        call = loop.run_in_executor(None, functools.partial(self.search_blocking, query, options))
        if cancel_event is None:
            return await call

        waiter = asyncio.ensure_future(cancel_event.wait())
        try:
            done, _ = await asyncio.wait({call, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()

        if call in done:
            return call.result()

        # The worker thread cannot be interrupted; its result is discarded
        call.cancel()
        logger.info(f"YouTube search cancelled: '{query}'")
        raise FilterCancelledError(f"Catalog search cancelled: '{query}'")

    def search_blocking(self, query: str, options: CatalogSearchOptions) -> CatalogPage:
        """Run one search plus the detail lookup for its results.

        Args:
            query: Search query
            options: Search options

        Returns:
            CatalogPage with candidates in search order

        Raises:
            UpstreamError: On any API, transport or parsing failure
        """
        try:
            request = self.youtube.search().list(
                part="snippet",
                q=query,
                type="video",
                **options.to_params(),
            )
            response = self._execute_request(request, self.QUOTA_SEARCH)

            video_ids = []
            for item in response.get("items", []):
                video_id = item.get("id", {}).get("videoId")
                if video_id:
                    video_ids.append(video_id)

            total_results = int(response.get("pageInfo", {}).get("totalResults", len(video_ids)))
            details = self.get_video_details(video_ids)

            categories: Sequence[CategoryRecord] = ()
            if self.category_store is not None and options.category_ids:
                categories = self.category_store.get_many(options.category_ids)

            # Keep the search order; details come back in arbitrary order
            items = tuple(
                self._to_candidate(details[video_id], categories)
                for video_id in video_ids
                if video_id in details
            )
        except HttpError as e:
            error = classify_http_error(e)
            logger.error(f"YouTube API error searching videos: {error}")
            raise error from e
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed YouTube response: {e}")
            raise CatalogResponseError(f"Malformed YouTube response: {e}") from e
        except (OSError, httplib2.HttpLib2Error) as e:
            logger.error(f"Network error searching videos: {e}")
            raise CatalogNetworkError(f"Network error: {e}") from e

        logger.info(f"Found {len(items)} videos for query: {query}")
        return CatalogPage(
            items=items,
            total_results=total_results,
            next_page_token=response.get("nextPageToken"),
        )

    def get_video_details(self, video_ids: list[str]) -> dict[str, dict]:
        """Get raw video resources for multiple videos (batched).

        Args:
            video_ids: List of video IDs

        Returns:
            Dict mapping video_id to the API video resource
        """
        results = {}

        for i in range(0, len(video_ids), self.MAX_BATCH_SIZE):
            batch = video_ids[i:i + self.MAX_BATCH_SIZE]
            request = self.youtube.videos().list(
                part="snippet,statistics,contentDetails",
                id=",".join(batch),
            )
            response = self._execute_request(request, self.QUOTA_VIDEOS)

            for item in response.get("items", []):
                results[item["id"]] = item

        return results

    def _to_candidate(self, item: dict, categories: Sequence[CategoryRecord]) -> Candidate:
        snippet = item.get("snippet", {})
        stats = item.get("statistics", {})
        content = item.get("contentDetails", {})

        title = snippet.get("title", "")
        description = snippet.get("description", "")
        tags = tuple(snippet.get("tags", []))
        has_captions = str(content.get("caption", "false")).lower() == "true"

        return Candidate(
            video_id=item["id"],
            title=title,
            channel_id=snippet.get("channelId", ""),
            channel_title=snippet.get("channelTitle", ""),
            published_at=datetime.fromisoformat(snippet["publishedAt"].replace("Z", "+00:00")),
            duration=parse_duration(content.get("duration", "")),
            # Comments or likes may be disabled -> count missing
            view_count=int(stats.get("viewCount", 0)),
            like_count=int(stats.get("likeCount", 0)),
            comment_count=int(stats.get("commentCount", 0)),
            quality=quality_tier(content.get("definition", ""), has_captions),
            has_captions=has_captions,
            language=snippet.get("defaultAudioLanguage") or snippet.get("defaultLanguage"),
            tags=tags,
            categories=associate_categories(title, description, tags, categories),
            description=description,
            thumbnail_url=snippet.get("thumbnails", {}).get("high", {}).get("url", ""),
        )
