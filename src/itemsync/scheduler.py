"""Background reconciliation loop."""

import structlog

from itemsync.lifecycle import GracefulShutdown
from itemsync.sync import Synchronizer

logger = structlog.get_logger()


async def run_reconcile_loop(
    synchronizer: Synchronizer,
    interval: float,
    shutdown: GracefulShutdown,
) -> None:
    """Run a reconciliation pass every interval seconds until shutdown.

    Runs as a long-lived asyncio task started by the application
    lifespan. A failing pass is logged and the loop keeps going; the
    next pass retries from the primary store's then-current contents.

    Args:
        synchronizer: Synchronizer whose reconcile() heals the index.
        interval: Seconds between the end of one pass and the next.
        shutdown: Stops the loop when triggered.
    """
    logger.info("reconcile_loop_started", interval_seconds=interval)
    while not await shutdown.sleep(interval):
        try:
            report = await synchronizer.reconcile()
        except Exception as e:
            logger.error("reconcile_loop_error", error=str(e), exc_info=True)
            continue
        if report.status != "ok":
            logger.warning(
                "reconcile_partial_failure",
                failed=report.failed,
                item_ids=[failure.item_id for failure in report.failures],
                scan_error=report.scan_error,
            )
    logger.info("reconcile_loop_stopped")
