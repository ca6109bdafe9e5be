import logging
from datetime import datetime, time
from typing import Optional

from shorty.cache.strategies import CacheStrategy
from shorty.exceptions import GenerationExhaustedError
from shorty.models.url import utcnow
from shorty.schemas.url import LinkStats, Stats
from shorty.services.short_code_strategies import ShortCodeStrategy
from shorty.storage.mapping_store import MappingStore

logger = logging.getLogger(__name__)


class URLService:
    """
    URL Service with dependency injection for store, generator and cache.

    - The mapping store is the source of truth (storage errors propagate)
    - The cache is optional and only ever speeds up ``lookup``
    - The generator only produces candidates; uniqueness is checked here
    """

    def __init__(
        self,
        store: MappingStore,
        generator: ShortCodeStrategy,
        cache: Optional[CacheStrategy] = None,
        max_attempts: int = 10,
        cache_ttl: int = 3600,
        stats_limit: int = 10,
    ):
        """
        Args:
            store: Mapping store wrapping the database
            generator: Short code strategy producing candidates
            cache: Cache strategy (optional, for redirect lookups)
            max_attempts: Candidates to try before giving up on a new code
            cache_ttl: TTL in seconds for cached lookups
            stats_limit: Number of links in each stats list
        """
        self.store = store
        self.generator = generator
        self.cache = cache
        self.max_attempts = max_attempts
        self.cache_ttl = cache_ttl
        self.stats_limit = stats_limit

    def create_or_get(self, long_url: str) -> str:
        """Return the existing short code for ``long_url`` or mint a new one

        Process:
        1. Dedup: reuse the earliest code already mapped to this URL
        2. Generate a candidate and skip it if it exists
        3. Insert; a primary key conflict counts as another collision
        4. Give up with GenerationExhaustedError after ``max_attempts``

        Note: steps 1 and 3 are not atomic. Two concurrent first-time
        requests for the same URL can each insert a row, leaving two codes
        for one URL. This gap is known and not corrected.
        """
        existing = self.store.find_code_by_long_url(long_url)
        if existing is not None:
            logger.info("Found existing short code '%s' for %s", existing, long_url)
            return existing

        for attempt in range(1, self.max_attempts + 1):
            candidate = self.generator.generate()
            if self.store.exists(candidate):
                logger.debug("Collision on '%s' (attempt %d)", candidate, attempt)
                continue
            if self.store.insert(candidate, long_url):
                logger.info("Created short code '%s' -> %s", candidate, long_url)
                return candidate

        logger.error("Gave up generating a short code for %s after %d attempts",
                     long_url, self.max_attempts)
        raise GenerationExhaustedError(self.max_attempts)

    def exists(self, short_code: str) -> bool:
        return self.store.exists(short_code)

    async def lookup(self, short_code: str) -> str:
        """
        Get long URL for redirection using Cache-Aside pattern.

        Raises:
            NotFoundError: unknown short code (never cached)
            StorageError: database failure on a cache miss
        """
        cache_key = f"url:{short_code}"

        if self.cache:
            cached_url = await self.cache.get(cache_key)
            if cached_url:
                return cached_url

        long_url = self.store.get_long_url(short_code)

        if self.cache:
            await self.cache.set(cache_key, long_url, ttl=self.cache_ttl)

        return long_url

    def get_link_stats(self, short_code: str) -> LinkStats:
        return LinkStats.model_validate(self.store.get_mapping(short_code))

    def get_stats(self, now: Optional[datetime] = None) -> Stats:
        """Aggregate statistics over all persisted mappings.

        ``clicks_today`` sums visit counts of links created since midnight UTC.
        Pending visits not yet flushed are not included anywhere.
        """
        now = now or utcnow()
        start_of_day = datetime.combine(now.date(), time.min)

        return Stats(
            total_links=self.store.count_links(),
            total_clicks=self.store.total_visits(),
            clicks_today=self.store.total_visits(created_since=start_of_day),
            popular_links=[
                LinkStats.model_validate(m)
                for m in self.store.most_visited(self.stats_limit)
            ],
            recent_links=[
                LinkStats.model_validate(m)
                for m in self.store.most_recent(self.stats_limit)
            ],
        )
