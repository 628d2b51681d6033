"""Primary-store-first synchronization of items into the search index.

Every write goes to the primary store first. Only after the store has
acknowledged it is the matching index write issued. Index failures are
logged and swallowed: the primary store is authoritative, so the write
still succeeds and the index is left divergent until the next
reconciliation pass rewrites it from the store's contents.

Per item id, as seen across both stores:

    Absent      -> create ok, index ok   -> Synced
    Absent      -> create ok, index fail -> PrimaryOnly
    Synced      -> update ok, index fail -> PrimaryOnly
    PrimaryOnly -> reconcile ok          -> Synced
    any         -> delete ok, index fail -> OrphanedIndexEntry
    OrphanedIndexEntry -> reconcile with purge -> Absent
"""

import asyncio
import time
from collections.abc import Awaitable
from datetime import datetime, timezone

import structlog

from itemsync.errors import NotFoundError, SearchIndexError
from itemsync.schemas import (
    Item,
    ItemCreate,
    ItemPatch,
    ReconciliationFailure,
    ReconciliationReport,
)
from itemsync.search.mutator import IndexMutator
from itemsync.store.base import ItemStore

logger = structlog.get_logger()


class Synchronizer:
    """Write path and reconciliation across the primary store and index.

    No per-item locking is done here; concurrent writes to the same id
    are ordered only by the primary store, and the index may briefly
    reflect either order. Likewise an item deleted while reconcile() is
    running can be re-upserted from the snapshot; it is still a known id
    for that pass, so the orphan is only purged by the next one.
    """

    def __init__(
        self,
        store: ItemStore,
        mutator: IndexMutator,
        concurrency: int = 8,
        purge_orphans: bool = True,
    ) -> None:
        """Initialize synchronizer.

        Args:
            store: Authoritative item store.
            mutator: Index writer for mirrored mutations.
            concurrency: Items re-indexed in parallel during reconcile().
            purge_orphans: Let reconcile() delete index documents whose
                item no longer exists in the store.
        """
        self._store = store
        self._mutator = mutator
        self._concurrency = max(1, concurrency)
        self._purge_orphans = purge_orphans

    async def create(self, data: ItemCreate) -> Item:
        """Create an item, then index it.

        Raises:
            DuplicateError: If the store rejects the item.
        """
        item = await asyncio.to_thread(self._store.create, data.model_dump(mode="json"))
        logger.info("item_created", item_id=item.id)
        await self._mirror("create", item.id, self._mutator.index_create(item))
        return item

    async def update(self, item_id: str, patch: ItemPatch) -> Item:
        """Apply a partial update, then mirror only the changed fields.

        Raises:
            NotFoundError: If the item does not exist; the index is not touched.
            DuplicateError: If the new name is taken.
        """
        changes = patch.changes()
        item = await asyncio.to_thread(self._store.update, item_id, changes)
        logger.info("item_updated", item_id=item_id, fields=sorted(changes))
        await self._mirror("update", item_id, self._mutator.index_update(item_id, changes))
        return item

    async def delete(self, item_id: str) -> None:
        """Delete an item, then drop its index document.

        Raises:
            NotFoundError: If the item does not exist; the index is not touched.
        """
        await asyncio.to_thread(self._store.delete, item_id)
        logger.info("item_deleted", item_id=item_id)
        await self._mirror("delete", item_id, self._mutator.index_delete(item_id))

    async def get(self, item_id: str) -> Item:
        return await asyncio.to_thread(self._store.get, item_id)

    async def list_items(self) -> list[Item]:
        return await asyncio.to_thread(self._store.find_many)

    async def reconcile(self) -> ReconciliationReport:
        """Rewrite the index from a point-in-time read of the primary store.

        Each item is upserted independently; one failure never aborts
        the pass. With orphan purging enabled, index documents without a
        primary-store item are deleted afterwards.

        Returns:
            Per-item tally of the pass.
        """
        started_at = datetime.now(timezone.utc)
        start = time.perf_counter()

        items = await asyncio.to_thread(self._store.find_many)
        report = ReconciliationReport(total=len(items), started_at=started_at)
        logger.info("reconcile_started", item_count=len(items))

        semaphore = asyncio.Semaphore(self._concurrency)

        async def resync(item: Item) -> ReconciliationFailure | None:
            async with semaphore:
                try:
                    await self._mutator.index_upsert(item)
                except SearchIndexError as e:
                    logger.warning("reconcile_item_failed", item_id=item.id, error=e.reason)
                    return ReconciliationFailure(item_id=item.id, error=e.reason)
            return None

        outcomes = await asyncio.gather(*(resync(item) for item in items))
        report.failures = [failure for failure in outcomes if failure is not None]
        report.succeeded = len(items) - len(report.failures)

        if self._purge_orphans:
            await self._purge(report, {item.id for item in items})

        report.failed = len(report.failures)
        report.status = (
            "partial_failure" if report.failures or report.scan_error else "ok"
        )
        report.duration_ms = round((time.perf_counter() - start) * 1000, 2)

        logger.info(
            "reconcile_completed",
            total=report.total,
            succeeded=report.succeeded,
            failed=report.failed,
            purged=len(report.purged),
            duration_ms=report.duration_ms,
        )
        return report

    async def _purge(self, report: ReconciliationReport, known_ids: set[str]) -> None:
        try:
            indexed = await self._mutator.indexed_ids()
        except SearchIndexError as e:
            logger.warning("reconcile_scan_failed", error=e.reason)
            report.scan_error = e.reason
            return

        for doc_id in sorted(indexed - known_ids):
            # Items created after the snapshot are not orphans
            try:
                await asyncio.to_thread(self._store.get, doc_id)
                continue
            except NotFoundError:
                pass

            try:
                await self._mutator.index_delete(doc_id)
            except SearchIndexError as e:
                logger.warning("reconcile_purge_failed", item_id=doc_id, error=e.reason)
                report.failures.append(ReconciliationFailure(item_id=doc_id, error=e.reason))
                continue
            report.purged.append(doc_id)
            logger.info("orphan_index_entry_purged", item_id=doc_id)

    async def _mirror(self, operation: str, item_id: str, write: Awaitable[None]) -> None:
        try:
            await write
        except SearchIndexError as e:
            logger.warning(
                "index_sync_failed",
                item_id=item_id,
                operation=operation,
                error=e.reason,
                needs_reconcile=True,
            )
