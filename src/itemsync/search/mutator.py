"""Per-item writes into the search index."""

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import Any, TypeVar

import structlog

from itemsync.errors import IndexEngineError, SearchIndexError
from itemsync.schemas import Item
from itemsync.search.engine import IndexEngine

logger = structlog.get_logger()

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IndexMutator:
    """Mirrors single primary-store mutations into the index.

    Each write stamps updated_at at the moment of the index call. Any
    engine failure or timeout surfaces as SearchIndexError; the mutator
    never reaches back into the primary store.
    """

    def __init__(
        self,
        engine: IndexEngine,
        timeout: float = 5.0,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        """Initialize mutator.

        Args:
            engine: Index engine receiving the writes.
            timeout: Seconds before an index call counts as failed.
            clock: Source of index-side timestamps.
        """
        self._engine = engine
        self._timeout = timeout
        self._clock = clock

    async def index_create(self, item: Item) -> None:
        """Write the full document for a newly created item."""
        stamp = self._clock().isoformat()
        document = {**item.document(), "created_at": stamp, "updated_at": stamp}
        await self._call("create", item.id, self._engine.put(item.id, document))
        logger.debug("item_indexed", item_id=item.id)

    async def index_update(self, item_id: str, fields: dict[str, Any]) -> None:
        """Merge only the supplied fields into an existing document.

        Args:
            item_id: Document to update.
            fields: Changed fields; everything else keeps its indexed value.
        """
        changes = {**fields, "updated_at": self._clock().isoformat()}
        await self._call("update", item_id, self._engine.update(item_id, changes))
        logger.debug("item_index_updated", item_id=item_id, fields=sorted(fields))

    async def index_delete(self, item_id: str) -> None:
        await self._call("delete", item_id, self._engine.delete(item_id))
        logger.debug("item_index_deleted", item_id=item_id)

    async def index_upsert(self, item: Item) -> None:
        """Rewrite every field of a document, creating it when missing.

        An existing document keeps its created_at.
        """
        stamp = self._clock().isoformat()
        fields = {**item.document(), "updated_at": stamp}
        upsert = {**fields, "created_at": stamp}
        await self._call(
            "upsert", item.id, self._engine.update(item.id, fields, upsert=upsert)
        )

    async def indexed_ids(self) -> set[str]:
        """Ids of every document in the index, for orphan detection."""
        return await self._call("scan", "*", self._engine.document_ids())

    async def _call(self, operation: str, item_id: str, call: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(call, timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise SearchIndexError(
                operation, item_id, f"timed out after {self._timeout}s"
            ) from e
        except IndexEngineError as e:
            raise SearchIndexError(operation, item_id, str(e)) from e
