"""Background reconciliation loop tests."""

import asyncio

import pytest
from fakes import FlakyEngine

from itemsync.lifecycle import GracefulShutdown
from itemsync.schemas import Category, ItemCreate
from itemsync.scheduler import run_reconcile_loop
from itemsync.sync import Synchronizer


@pytest.mark.asyncio
async def test_shutdown_sleep_wakes_early() -> None:
    shutdown = GracefulShutdown()
    assert await shutdown.sleep(0.01) is False

    shutdown.trigger()
    shutdown.trigger()
    assert shutdown.is_triggered
    assert await shutdown.sleep(10) is True


@pytest.mark.asyncio
async def test_loop_heals_index_until_shutdown(
    synchronizer: Synchronizer, engine: FlakyEngine
) -> None:
    engine.fail_writes = True
    item = await synchronizer.create(
        ItemCreate(name="Ocean Explorer", category=Category.SAILBOAT, year=2020)
    )
    engine.fail_writes = False

    shutdown = GracefulShutdown()
    task = asyncio.create_task(run_reconcile_loop(synchronizer, 0.01, shutdown))
    for _ in range(100):
        if await engine.get(item.id) is not None:
            break
        await asyncio.sleep(0.01)

    shutdown.trigger()
    await asyncio.wait_for(task, timeout=1.0)

    assert (await engine.get(item.id))["name"] == "Ocean Explorer"
    assert task.done()
