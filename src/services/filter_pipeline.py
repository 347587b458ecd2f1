"""Filter resolution pipeline.

One filtering request moves through a fixed sequence of states:

1. Validate the specification (ValidationError, before any I/O)
2. Choose a strategy: remote when there is a query and a catalog credential,
   otherwise local
3. Remote: enhance the query with category keywords, search the catalog, score
   by catalog position, post-filter what the catalog cannot apply, sort
4. Fallback: any remote failure except cancellation re-runs the request
   locally over the held candidates and tags the result ``fallback``
5. Local: score by held position, apply every predicate, sort
6. Complete: page the ordered list, summarize it, stamp elapsed time

The pipeline keeps no state between calls apart from the optional response
cache; every input arrives as an argument.
"""

import asyncio
import time
from datetime import datetime, timezone
from typing import Callable, Collection, Iterable, Optional

from models.filters import FilterSpecification, SortSpecification
from models.results import FilterResult, Provenance
from models.video import Candidate, as_utc
from services.catalog_params import build_search_options, residual_spec
from services.category_store import CategoryStore
from services.errors import (
    CatalogTimeoutError,
    FatalFilterError,
    FilterCancelledError,
    ValidationError,
)
from services.filter_spec import complexity, describe, validate
from services.filter_stats import aggregate
from services.query_enhancer import DEFAULT_CONFIDENCE_THRESHOLD, enhance, search_suggestions
from services.ranking import RankingConfig, score_candidates, sort_candidates
from services.video_catalog import CatalogPage, VideoCatalog
from services.video_filter import filter_candidates
from services.youtube_catalog import YouTubeCatalog
from utils.cache import CatalogResponseCache, load_cache_from_config
from utils.config import has_catalog_credential, load_config
from utils.logging import get_logger, request_context

log = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FilterPipeline:
    """Applies filter and sort specifications to videos, remotely or locally.

    Example usage:
        pipeline = FilterPipeline.from_config(category_store)
        result = await pipeline.apply(spec, sort, candidates=held_videos)
        if result.produced_by(current_spec, current_sort):
            show(result.videos)
    """

    def __init__(
        self,
        catalog: Optional[VideoCatalog],
        category_store: CategoryStore,
        config: Optional[dict] = None,
        ranking_config: Optional[RankingConfig] = None,
        cache: Optional[CatalogResponseCache] = None,
        credential_configured: Optional[bool] = None,
        clock: Callable[[], datetime] = _utc_now,
    ):
        """Initialize the pipeline.

        Args:
            catalog: Remote video catalog (None disables the remote strategy)
            category_store: Read-only category keywords and confidence
            config: Configuration dict (defaults to load_config())
            ranking_config: Scoring constants (defaults to values from config)
            cache: Optional catalog response cache
            credential_configured: Override for the credential gate (defaults to
                whether config holds a catalog API key)
            clock: Source of "now" for date presets
        """
        self.config = config if config is not None else load_config()
        self.catalog = catalog
        self.category_store = category_store
        self.ranking_config = ranking_config or RankingConfig.from_config(self.config)
        self.cache = cache
        self.clock = clock

        if credential_configured is None:
            credential_configured = has_catalog_credential(self.config)
        self.credential_configured = credential_configured

        self.confidence_threshold = float(
            self.config.get("category_confidence_threshold", DEFAULT_CONFIDENCE_THRESHOLD)
        )
        self.timeout_seconds = float(self.config.get("catalog_timeout_seconds", 10.0))
        self.max_results = int(self.config.get("catalog_max_results", 50))
        self.safe_search = self.config.get("catalog_safe_search", "moderate")
        self.default_language = self.config.get("catalog_default_language", "en")

    @classmethod
    def from_config(
        cls,
        category_store: CategoryStore,
        config: Optional[dict] = None,
    ) -> "FilterPipeline":
        """Build a pipeline with the YouTube catalog and disk cache from config."""
        config = config if config is not None else load_config()

        catalog = None
        if has_catalog_credential(config):
            catalog = YouTubeCatalog(
                api_key=config["youtube_api_key"],
                category_store=category_store,
            )

        return cls(
            catalog,
            category_store,
            config=config,
            ranking_config=RankingConfig.from_config(config),
            cache=load_cache_from_config(config),
        )

    def choose_strategy(self, spec: FilterSpecification) -> Provenance:
        """Remote when a non-empty query and a catalog credential are both present."""
        has_query = bool(spec.query and spec.query.strip())
        if has_query and self.credential_configured and self.catalog is not None:
            return Provenance.API
        return Provenance.LOCAL

    async def apply(
        self,
        spec: FilterSpecification,
        sort: Optional[SortSpecification] = None,
        candidates: Iterable[Candidate] = (),
        watched_ids: Collection[str] = (),
        cancel_event: Optional[asyncio.Event] = None,
        limit: Optional[int] = None,
        offset: int = 0,
        now: Optional[datetime] = None,
    ) -> FilterResult:
        """
        Filter, score and sort videos for one request.

        Args:
            spec: Filter specification
            sort: Requested ordering (defaults to relevance, descending)
            candidates: Videos already held in memory (local strategy and fallback)
            watched_ids: Video ids already seen, for ``exclude_watched``
            cancel_event: Set by the caller to abort an in-flight catalog call
            limit: Maximum number of videos to return (None for all)
            offset: Number of ordered videos to skip
            now: Reference time (defaults to the pipeline clock)

        Returns:
            FilterResult tagged with the given spec and sort objects

        Raises:
            ValidationError: The specification is invalid (no catalog call is made)
            FilterCancelledError: cancel_event was set during the catalog call
            FatalFilterError: The held candidates could not be read
        """
        if sort is None:
            sort = SortSpecification()
        if offset < 0:
            raise ValueError("offset cannot be negative")
        if limit is not None and limit < 0:
            raise ValueError("limit cannot be negative")

        now = as_utc(now) if now is not None else self.clock()

        validation = validate(spec, now)
        if not validation.is_valid:
            log.info("filter_rejected", errors=list(validation.errors))
            raise ValidationError(validation)

        started = time.perf_counter()
        watched = frozenset(watched_ids)

        with request_context():
            strategy = self.choose_strategy(spec)
            log.info(
                "filter_started",
                strategy=strategy.value,
                description=describe(spec),
                complexity=complexity(spec),
                sort=f"{sort.field.value} {sort.direction.value}",
            )

            enhanced_query = None
            catalog_total = None
            fallback_reason = None

            if strategy is Provenance.API:
                try:
                    ordered, input_count, enhanced_query, catalog_total = await self._run_remote(
                        spec, sort, now, watched, cancel_event
                    )
                    provenance = Provenance.API
                except FilterCancelledError:
                    log.info("filter_cancelled")
                    raise
                except Exception as e:
                    fallback_reason = f"{type(e).__name__}: {e}"
                    log.warning(
                        "remote_filter_failed",
                        error_type=type(e).__name__,
                        error=str(e),
                        retryable=getattr(e, "is_retryable", False),
                    )
                    ordered, input_count = self._run_local(spec, sort, candidates, now, watched)
                    provenance = Provenance.FALLBACK
            else:
                ordered, input_count = self._run_local(spec, sort, candidates, now, watched)
                provenance = Provenance.LOCAL

            total_count = len(ordered)
            end = offset + limit if limit is not None else None
            videos = tuple(ordered[offset:end])
            elapsed_ms = (time.perf_counter() - started) * 1000

            log.info(
                "filter_completed",
                provenance=provenance.value,
                total_count=total_count,
                returned=len(videos),
                elapsed_ms=round(elapsed_ms, 1),
            )

            return FilterResult(
                videos=videos,
                total_count=total_count,
                filters=spec,
                sort=sort,
                provenance=provenance,
                processing_time_ms=elapsed_ms,
                statistics=aggregate(ordered, total_count=input_count, now=now),
                enhanced_query=enhanced_query,
                catalog_total_results=catalog_total,
                fallback_reason=fallback_reason,
            )

    async def _run_remote(
        self,
        spec: FilterSpecification,
        sort: SortSpecification,
        now: datetime,
        watched: frozenset,
        cancel_event: Optional[asyncio.Event],
    ) -> tuple[list[Candidate], int, str, int]:
        """Remote strategy. Returns (ordered, page size, enhanced query, catalog total)."""
        enhancement = enhance(
            spec.query,
            spec.category_ids,
            self.category_store,
            self.confidence_threshold,
        )
        options = build_search_options(
            spec,
            sort,
            self.category_store.get_many(spec.category_ids),
            now,
            max_results=self.max_results,
            safe_search=self.safe_search,
            default_language=self.default_language,
        )

        page = self.cache.get(enhancement.enhanced_query, options) if self.cache else None
        if page is None:
            page = await self._search_catalog(enhancement.enhanced_query, options, cancel_event)
            if self.cache:
                self.cache.set(enhancement.enhanced_query, options, page)
        else:
            log.info("catalog_cache_hit", query=enhancement.enhanced_query)

        scored = score_candidates(page.items, spec.category_ids, self.ranking_config)
        kept, stats = filter_candidates(
            scored,
            residual_spec(spec),
            now=now,
            watched_ids=watched,
            check_query=False,
        )
        log.debug("remote_post_filter", **stats.to_dict())

        return (
            sort_candidates(kept, sort),
            len(page.items),
            enhancement.enhanced_query,
            page.total_results,
        )

    async def _search_catalog(self, query, options, cancel_event) -> CatalogPage:
        if cancel_event is not None and cancel_event.is_set():
            raise FilterCancelledError(f"Catalog search cancelled before start: '{query}'")

        log.info(
            "catalog_search",
            catalog=self.catalog.get_catalog_name(),
            query=query,
            order=options.order,
            duration=options.video_duration,
        )
        try:
            return await asyncio.wait_for(
                self.catalog.search(query, options, cancel_event=cancel_event),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as e:
            raise CatalogTimeoutError(
                f"Catalog search timed out after {self.timeout_seconds:g}s"
            ) from e

    def _run_local(
        self,
        spec: FilterSpecification,
        sort: SortSpecification,
        candidates: Iterable[Candidate],
        now: datetime,
        watched: frozenset,
    ) -> tuple[list[Candidate], int]:
        """Local strategy. Returns (ordered, number of held candidates)."""
        try:
            held = list(candidates)
        except Exception as e:
            log.error("held_candidates_unreadable", error=str(e))
            raise FatalFilterError(f"Could not read held candidates: {e}") from e

        # Held candidates are re-scored by their position in the held list
        scored = score_candidates(held, spec.category_ids, self.ranking_config)
        kept, stats = filter_candidates(scored, spec, now=now, watched_ids=watched)
        log.debug("local_filter", **stats.to_dict())

        return sort_candidates(kept, sort), len(held)

    def suggest(self, category_ids: Iterable[str], partial_query: str = "") -> list[str]:
        """Search suggestions for the selected categories."""
        return search_suggestions(self.category_store.get_many(category_ids), partial_query)

    def close(self) -> None:
        """Release the response cache."""
        if self.cache is not None:
            self.cache.close()
