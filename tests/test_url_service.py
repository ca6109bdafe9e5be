import asyncio
from datetime import timedelta

import pytest

from shorty.cache.strategies import InMemoryCache
from shorty.exceptions import GenerationExhaustedError, NotFoundError
from shorty.models.url import utcnow
from shorty.services.short_code_strategies import ShortCodeStrategy
from shorty.services.url_service import URLService


class SequenceStrategy(ShortCodeStrategy):
    """Hands out predetermined candidates, repeating the last one"""

    def __init__(self, *codes):
        self.codes = list(codes)
        self.calls = 0

    def generate(self) -> str:
        code = self.codes[min(self.calls, len(self.codes) - 1)]
        self.calls += 1
        return code


class TestCreateOrGet:
    """Test code minting and deduplication"""

    def test_new_url_gets_code_from_charset(self, url_service):
        code = url_service.create_or_get("https://example.com")

        assert len(code) == 4
        assert set(code) <= set("abc123")

    def test_same_url_returns_same_code(self, url_service, store):
        code1 = url_service.create_or_get("https://example.com")
        code2 = url_service.create_or_get("https://example.com")

        assert code1 == code2
        assert store.count_links() == 1

    def test_lookup_returns_original(self, url_service):
        code = url_service.create_or_get("https://example.com")

        assert asyncio.run(url_service.lookup(code)) == "https://example.com"

    def test_different_urls_get_different_codes(self, url_service, store):
        code1 = url_service.create_or_get("https://a.example.com")
        code2 = url_service.create_or_get("https://b.example.com")

        assert code1 != code2
        assert store.count_links() == 2

    def test_regenerates_on_collision(self, store):
        store.insert("aaaa", "https://taken.example.com")
        strategy = SequenceStrategy("aaaa", "aaaa", "bbbb")
        service = URLService(store=store, generator=strategy, max_attempts=5)

        assert service.create_or_get("https://example.com") == "bbbb"
        assert strategy.calls == 3

    def test_exhaustion_raises_distinct_error(self, store):
        store.insert("aaaa", "https://taken.example.com")
        strategy = SequenceStrategy("aaaa")
        service = URLService(store=store, generator=strategy, max_attempts=3)

        with pytest.raises(GenerationExhaustedError) as exc_info:
            service.create_or_get("https://example.com")

        assert exc_info.value.attempts == 3
        assert strategy.calls == 3
        assert store.find_code_by_long_url("https://example.com") is None

    def test_insert_conflict_counts_as_collision(self, store, monkeypatch):
        """A code taken between exists() and insert() triggers a retry"""
        store.insert("aaaa", "https://taken.example.com")
        monkeypatch.setattr(store, "exists", lambda code: False)
        service = URLService(
            store=store,
            generator=SequenceStrategy("aaaa", "bbbb"),
            max_attempts=5,
        )

        assert service.create_or_get("https://example.com") == "bbbb"

    def test_dedup_skips_generation(self, store):
        store.insert("abcd", "https://example.com")
        strategy = SequenceStrategy("zzzz")
        service = URLService(store=store, generator=strategy)

        assert service.create_or_get("https://example.com") == "abcd"
        assert strategy.calls == 0


class TestLookup:

    def test_unknown_code_raises_not_found(self, url_service):
        with pytest.raises(NotFoundError):
            asyncio.run(url_service.lookup("nope"))

    def test_lookup_populates_cache(self, store):
        cache = InMemoryCache()
        service = URLService(store=store, generator=SequenceStrategy("abcd"), cache=cache)
        code = service.create_or_get("https://example.com")

        asyncio.run(service.lookup(code))

        assert asyncio.run(cache.get(f"url:{code}")) == "https://example.com"

    def test_lookup_served_from_cache(self, store):
        cache = InMemoryCache()
        asyncio.run(cache.set("url:cach", "https://cached.example.com"))
        service = URLService(store=store, generator=SequenceStrategy("abcd"), cache=cache)

        # Not in the store at all; only the cache knows it
        assert asyncio.run(service.lookup("cach")) == "https://cached.example.com"

    def test_exists(self, url_service):
        code = url_service.create_or_get("https://example.com")

        assert url_service.exists(code) is True
        assert url_service.exists("nope") is False


class TestStats:

    def test_link_stats(self, url_service, store):
        code = url_service.create_or_get("https://example.com")
        store.increment_visits(code, 4)

        link = url_service.get_link_stats(code)

        assert link.short_code == code
        assert link.long_url == "https://example.com"
        assert link.visit_count == 4

    def test_link_stats_unknown(self, url_service):
        with pytest.raises(NotFoundError):
            url_service.get_link_stats("nope")

    def test_global_stats(self, url_service, store):
        popular = url_service.create_or_get("https://popular.example.com")
        quiet = url_service.create_or_get("https://quiet.example.com")
        store.increment_visits(popular, 10)
        store.increment_visits(quiet, 1)

        stats = url_service.get_stats()

        assert stats.total_links == 2
        assert stats.total_clicks == 11
        assert stats.clicks_today == 11
        assert stats.popular_links[0].short_code == popular
        assert stats.recent_links[0].short_code == quiet

    def test_clicks_today_only_counts_links_created_today(self, url_service, store):
        code = url_service.create_or_get("https://example.com")
        store.increment_visits(code, 3)

        tomorrow = utcnow() + timedelta(days=1)
        stats = url_service.get_stats(now=tomorrow)

        assert stats.total_clicks == 3
        assert stats.clicks_today == 0

    def test_stats_lists_are_limited(self, store):
        service = URLService(store=store, generator=SequenceStrategy("x"), stats_limit=2)
        for i in range(3):
            store.insert(f"code{i}", f"https://{i}.example.com")

        stats = service.get_stats()

        assert stats.total_links == 3
        assert len(stats.popular_links) == 2
        assert len(stats.recent_links) == 2

    def test_empty_stats(self, url_service):
        stats = url_service.get_stats()

        assert stats.total_links == 0
        assert stats.total_clicks == 0
        assert stats.popular_links == []
