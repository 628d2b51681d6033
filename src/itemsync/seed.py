"""Seed the item store with generated sample boats.

Usage:
    itemsync-seed            # 50 items, skipped if the store has any
    itemsync-seed 200        # 200 items
    itemsync-seed --force    # seed even when items already exist

Items are created through the Synchronizer so every seeded item is
indexed the same way an API write would be.
"""

import argparse
import asyncio
import random
from datetime import datetime, timezone

import structlog
from pydantic import BaseModel

from itemsync.app import build_engine, provision_index
from itemsync.config import Settings
from itemsync.errors import DuplicateError
from itemsync.logging import configure_logging
from itemsync.schemas import Category, ItemCreate
from itemsync.search.mutator import IndexMutator
from itemsync.store import SqliteItemStore
from itemsync.store.base import ItemStore
from itemsync.sync import Synchronizer

logger = structlog.get_logger()

SEED_BATCH_SIZE = 10
FIRST_SEED_YEAR = 1970

_ADJECTIVES = (
    "Swift", "Bold", "Serene", "Majestic", "Ocean",
    "Sea", "Wind", "Storm", "Calm", "Deep",
)
_NOUNS = (
    "Navigator", "Explorer", "Wanderer", "Cruiser", "Dream",
    "Spirit", "Breeze", "Wave", "Tide", "Star",
)
_WATERS = (
    "Atlantic", "Pacific", "Mediterranean", "Caribbean",
    "Arctic", "Baltic", "Aegean",
)


class SeedResult(BaseModel):
    """Outcome of a seeding run.

    Attributes:
        created: Items written by this run.
        total: Items in the store afterwards.
        skipped: True when the store already held items and force was off.
    """

    created: int
    total: int
    skipped: bool


def _boat_name(rng: random.Random) -> str:
    pattern = rng.randrange(3)
    if pattern == 0:
        return f"{rng.choice(_ADJECTIVES)} {rng.choice(_NOUNS)}"
    if pattern == 1:
        return f"{rng.choice(_NOUNS)} {rng.choice(_NOUNS)}"
    return f"{rng.choice(_ADJECTIVES)} {rng.choice(_WATERS)}"


def generate_items(count: int, rng: random.Random) -> list[ItemCreate]:
    """Build count items with distinct names and random categories.

    Args:
        count: Number of items to generate.
        rng: Random source; pass a seeded one for repeatable output.

    Returns:
        New items, built between FIRST_SEED_YEAR and the current year.
    """
    this_year = datetime.now(timezone.utc).year
    taken: set[str] = set()
    items: list[ItemCreate] = []
    while len(items) < count:
        base = name = _boat_name(rng)
        suffix = 2
        while name in taken:
            name = f"{base} {suffix}"
            suffix += 1
        taken.add(name)
        items.append(
            ItemCreate(
                name=name,
                category=rng.choice(list(Category)),
                year=rng.randint(FIRST_SEED_YEAR, this_year),
            )
        )
    return items


async def _create(synchronizer: Synchronizer, data: ItemCreate) -> bool:
    try:
        await synchronizer.create(data)
    except DuplicateError:
        logger.info("seed_item_skipped", name=data.name, reason="duplicate")
        return False
    return True


async def seed_items(
    synchronizer: Synchronizer,
    store: ItemStore,
    count: int = 50,
    force: bool = False,
    rng: random.Random | None = None,
) -> SeedResult:
    """Create sample items unless the store is already populated.

    Safe to run repeatedly: without force, a store holding any item is
    left untouched. Names already present are skipped, not counted.

    Args:
        synchronizer: Write path; seeded items are indexed as well.
        store: Primary store, consulted for the existing item count.
        count: Number of items to generate.
        force: Seed even when the store already holds items.
        rng: Random source for the generated items.

    Returns:
        How many items were created and the resulting store size.
    """
    existing = await asyncio.to_thread(store.count)
    if existing > 0 and not force:
        logger.info("seed_skipped", existing=existing)
        return SeedResult(created=0, total=existing, skipped=True)

    logger.info("seed_started", requested=count, existing=existing)
    items = generate_items(count, rng or random.Random())

    created = 0
    for start in range(0, len(items), SEED_BATCH_SIZE):
        batch = items[start : start + SEED_BATCH_SIZE]
        outcomes = await asyncio.gather(*(_create(synchronizer, data) for data in batch))
        created += sum(outcomes)
        logger.info("seed_batch_created", created=created, requested=count)

    total = await asyncio.to_thread(store.count)
    logger.info("seed_completed", created=created, total=total)
    return SeedResult(created=created, total=total, skipped=False)


async def run(settings: Settings, count: int, force: bool) -> SeedResult:
    """Open the configured stores, seed them and close them again."""
    store = SqliteItemStore(settings.database_path)
    store.initialize()
    engine = build_engine(settings)
    try:
        await provision_index(engine, settings.index_timeout)
        synchronizer = Synchronizer(
            store,
            IndexMutator(engine, timeout=settings.index_timeout),
            concurrency=settings.reconcile_concurrency,
        )
        return await seed_items(synchronizer, store, count=count, force=force)
    finally:
        await engine.close()
        store.close()


def main(argv: list[str] | None = None) -> None:
    """Entry point for itemsync-seed and python -m itemsync.seed."""
    parser = argparse.ArgumentParser(description="Seed the item store with sample boats.")
    parser.add_argument("count", nargs="?", type=int, default=50)
    parser.add_argument(
        "--force", action="store_true", help="seed even if items already exist"
    )
    args = parser.parse_args(argv)
    if args.count < 1:
        parser.error("count must be positive")

    settings = Settings()
    configure_logging(debug=settings.debug, json_logs=settings.log_json)
    asyncio.run(run(settings, args.count, args.force))


if __name__ == "__main__":
    main()
