"""Pytest configuration and fixtures."""

import sys
from collections.abc import Iterator
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest
from fakes import FlakyEngine
from fastapi.testclient import TestClient

from itemsync.app import create_app
from itemsync.config import Settings
from itemsync.search.mutator import IndexMutator
from itemsync.search.service import SearchService
from itemsync.store import SqliteItemStore
from itemsync.sync import Synchronizer


@pytest.fixture
def settings() -> Settings:
    """Create test settings backed by in-memory stores."""
    return Settings(
        _env_file=None,
        host="127.0.0.1",
        port=8000,
        debug=True,
        database_path=":memory:",
        index_backend="memory",
        index_timeout=1.0,
        reconcile_interval=0,
    )


@pytest.fixture
def engine() -> FlakyEngine:
    return FlakyEngine()


@pytest.fixture
def store() -> Iterator[SqliteItemStore]:
    item_store = SqliteItemStore(":memory:")
    item_store.initialize()
    yield item_store
    item_store.close()


@pytest.fixture
def mutator(engine: FlakyEngine) -> IndexMutator:
    return IndexMutator(engine, timeout=1.0)


@pytest.fixture
def synchronizer(store: SqliteItemStore, mutator: IndexMutator) -> Synchronizer:
    return Synchronizer(store, mutator, concurrency=4)


@pytest.fixture
def search_service(engine: FlakyEngine) -> SearchService:
    return SearchService(engine, timeout=1.0)


@pytest.fixture
def client(settings: Settings, engine: FlakyEngine) -> Iterator[TestClient]:
    """Create test client with the lifespan running."""
    app = create_app(settings, engine=engine)
    with TestClient(app) as test_client:
        yield test_client
