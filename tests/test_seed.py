"""Sample data seeding tests."""

import random
from datetime import datetime, timezone

import pytest
from fakes import FlakyEngine

from itemsync.schemas import Category, ItemCreate
from itemsync.seed import FIRST_SEED_YEAR, generate_items, main, seed_items
from itemsync.store import SqliteItemStore
from itemsync.sync import Synchronizer


@pytest.mark.asyncio
async def test_seed_populates_empty_store_and_index(
    synchronizer: Synchronizer, store: SqliteItemStore, engine: FlakyEngine
) -> None:
    result = await seed_items(synchronizer, store, count=25, rng=random.Random(7))

    assert result.skipped is False
    assert result.created == 25
    assert result.total == 25
    assert store.count() == 25
    assert await engine.document_ids() == {item.id for item in store.find_many()}


@pytest.mark.asyncio
async def test_seed_skips_populated_store(
    synchronizer: Synchronizer, store: SqliteItemStore, engine: FlakyEngine
) -> None:
    await synchronizer.create(
        ItemCreate(name="Ocean Explorer", category=Category.SAILBOAT, year=2020)
    )
    writes = engine.write_calls

    result = await seed_items(synchronizer, store, count=5)

    assert result.skipped is True
    assert result.created == 0
    assert result.total == 1
    assert store.count() == 1
    assert engine.write_calls == writes


@pytest.mark.asyncio
async def test_seed_force_adds_to_populated_store(
    synchronizer: Synchronizer, store: SqliteItemStore
) -> None:
    await synchronizer.create(
        ItemCreate(name="Ocean Explorer", category=Category.SAILBOAT, year=2020)
    )

    result = await seed_items(
        synchronizer, store, count=12, force=True, rng=random.Random(3)
    )

    assert result.skipped is False
    assert result.total == 1 + result.created
    assert store.count() == result.total


@pytest.mark.asyncio
async def test_seed_force_skips_names_already_stored(
    synchronizer: Synchronizer, store: SqliteItemStore
) -> None:
    first = await seed_items(synchronizer, store, count=10, rng=random.Random(11))

    again = await seed_items(
        synchronizer, store, count=10, force=True, rng=random.Random(11)
    )

    assert first.created == 10
    assert again.created == 0
    assert again.total == 10


@pytest.mark.asyncio
async def test_seed_survives_index_outage(
    synchronizer: Synchronizer, store: SqliteItemStore, engine: FlakyEngine
) -> None:
    engine.fail_writes = True

    result = await seed_items(synchronizer, store, count=5, rng=random.Random(1))

    assert result.created == 5
    assert await engine.document_ids() == set()


def test_generated_items_have_distinct_names_and_valid_years() -> None:
    items = generate_items(300, random.Random(42))
    this_year = datetime.now(timezone.utc).year

    assert len({item.name for item in items}) == 300
    assert all(FIRST_SEED_YEAR <= item.year <= this_year for item in items)
    assert {item.category for item in items} <= set(Category)


def test_cli_seeds_configured_database(tmp_path, monkeypatch) -> None:
    db_path = tmp_path / "items.db"
    monkeypatch.setenv("ITEMSYNC_DATABASE_PATH", str(db_path))
    monkeypatch.setenv("ITEMSYNC_INDEX_BACKEND", "memory")

    main(["3"])
    main(["3"])

    store = SqliteItemStore(str(db_path))
    store.initialize()
    try:
        assert store.count() == 3
    finally:
        store.close()


def test_cli_rejects_non_positive_count() -> None:
    with pytest.raises(SystemExit):
        main(["0"])
