"""Disk cache for catalog search pages.

Repeating a search with the same query and parameters inside the TTL window is
served from disk instead of spending catalog quota. Entries expire after a short
TTL and size is bounded by diskcache LRU eviction.

Cache errors never fail a filtering request: a broken read counts as a miss
and a broken write is dropped, both with a warning.
"""

import hashlib
import json
import logging
from pathlib import Path
from typing import Optional

from diskcache import Cache

from services.video_catalog import CatalogPage, CatalogSearchOptions

logger = logging.getLogger(__name__)

_MB = 1024 * 1024


class CatalogResponseCache:
    """Catalog pages keyed by normalized query and search parameters.

    Example usage:
        cache = CatalogResponseCache(ttl_seconds=300)
        page = cache.get(query, options)
        if page is None:
            page = await catalog.search(query, options)
            cache.set(query, options, page)
    """

    def __init__(
        self,
        cache_dir: str = ".cache/catalog",
        ttl_seconds: int = 900,
        max_size_mb: float = 256.0,
        enabled: bool = True,
    ):
        self.enabled = enabled
        self.cache_dir = Path(cache_dir)
        self.ttl_seconds = ttl_seconds
        self.max_size_mb = max_size_mb
        self.hits = 0
        self.misses = 0
        self.cache: Optional[Cache] = None

        if not enabled:
            logger.info("Catalog cache disabled")
            return

        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.cache = Cache(
            str(self.cache_dir),
            size_limit=int(max_size_mb * _MB),
            eviction_policy="least-recently-used",
        )
        logger.info(f"Catalog cache at {self.cache_dir}: ttl={ttl_seconds}s limit={max_size_mb}MB")

    @property
    def active(self) -> bool:
        return self.enabled and self.cache is not None

    @property
    def hit_rate(self) -> float:
        """Fraction of lookups served from the cache (0.0 before any lookup)."""
        lookups = self.hits + self.misses
        if not lookups:
            return 0.0
        return self.hits / lookups

    def get(self, query: str, options: CatalogSearchOptions) -> Optional[CatalogPage]:
        """Return the stored page for this search, or None."""
        if not self.active:
            return None

        try:
            page = self.cache.get(self.key_for(query, options))
        except Exception as e:
            logger.warning(f"Catalog cache read failed, treating as miss: {e}")
            page = None

        if page is None:
            self.misses += 1
        else:
            self.hits += 1
        logger.debug(
            f"Catalog cache {'hit' if page is not None else 'miss'} for '{query}' "
            f"({self.hits}/{self.hits + self.misses})"
        )
        return page

    def set(
        self,
        query: str,
        options: CatalogSearchOptions,
        page: CatalogPage,
        ttl: Optional[int] = None,
    ) -> None:
        """Store a page. ``ttl`` overrides the configured expiry for this entry."""
        if not self.active:
            return

        expire = self.ttl_seconds if ttl is None else ttl
        try:
            self.cache.set(self.key_for(query, options), page, expire=expire)
        except Exception as e:
            logger.warning(f"Catalog cache write failed, entry dropped: {e}")
            return
        logger.debug(f"Stored {len(page.items)} catalog results for '{query}' for {expire}s")

    def clear(self) -> int:
        """Drop every entry and reset the counters. Returns the number removed."""
        if not self.active:
            return 0

        removed = len(self.cache)
        self.cache.clear()
        self.hits = self.misses = 0
        logger.info(f"Catalog cache cleared, {removed} entries removed")
        return removed

    def get_stats(self) -> dict:
        stats = {
            "enabled": self.active,
            "total_requests": self.hits + self.misses,
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": self.hit_rate,
            "entry_count": 0,
            "ttl_seconds": self.ttl_seconds,
        }
        if self.active:
            stats.update(
                entry_count=len(self.cache),
                size_mb=round(self.cache.volume() / _MB, 2),
                cache_dir=str(self.cache_dir),
            )
        return stats

    @staticmethod
    def key_for(query: str, options: CatalogSearchOptions) -> str:
        """SHA-256 over the case/whitespace-normalized query and request parameters.

        Category ids are part of the key although the catalog never receives them.
        """
        params = options.to_params()
        params["categoryIds"] = list(options.category_ids)
        normalized = " ".join(query.lower().split())
        payload = normalized + ":" + json.dumps(params, sort_keys=True)
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()

    def close(self) -> None:
        if self.cache is not None:
            self.cache.close()


def load_cache_from_config(config: dict) -> CatalogResponseCache:
    """Build the cache from the ``cache_*`` config keys (it may come back disabled)."""
    return CatalogResponseCache(
        cache_dir=config.get("cache_dir", ".cache/catalog"),
        ttl_seconds=int(config.get("cache_ttl_seconds", 900)),
        max_size_mb=float(config.get("cache_max_size_mb", 256.0)),
        enabled=config.get("cache_enabled", True),
    )
