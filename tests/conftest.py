"""
Test configuration and fixtures for Shorty.
Every test gets its own SQLite file, so tests never see each other's rows.
"""

import pytest
from fastapi.testclient import TestClient

from main import create_app
from shorty.cache.strategies import InMemoryCache
from shorty.config import Settings
from shorty.database.connection import build_engine, build_session_factory, init_db
from shorty.services.short_code_strategies import RandomShortCodeStrategy
from shorty.services.url_service import URLService
from shorty.storage.mapping_store import MappingStore


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        cache_backend="memory",
        visit_flush_interval=3600,
        short_code_length=6,
        log_level="WARNING",
    )


@pytest.fixture
def engine(test_settings):
    engine = build_engine(test_settings.database_url)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    return MappingStore(build_session_factory(engine))


@pytest.fixture
def url_service(store):
    return URLService(
        store=store,
        generator=RandomShortCodeStrategy(length=4, charset="abc123"),
        cache=InMemoryCache(),
        max_attempts=10,
    )


@pytest.fixture
def client(test_settings):
    """
    Test client running the full lifespan (store, cache, aggregator).
    The flush interval is an hour, so tests flush explicitly.
    """
    app = create_app(test_settings)

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
