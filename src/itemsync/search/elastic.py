"""Elasticsearch-backed index engine."""

import contextlib
from collections.abc import AsyncIterator
from typing import Any

import structlog
from elasticsearch import (
    ApiError,
    AsyncElasticsearch,
    BadRequestError,
    ConnectionTimeout,
    TransportError,
)
from elasticsearch import ConnectionError as TransportConnectionError
from elasticsearch import NotFoundError as DocumentNotFound
from elasticsearch.helpers import async_scan

from itemsync.errors import IndexEngineError
from itemsync.search.engine import IndexHealth, RawHit, RawQueryResult

logger = structlog.get_logger()


@contextlib.asynccontextmanager
async def _translate_errors(operation: str) -> AsyncIterator[None]:
    """Re-raise client exceptions as IndexEngineError."""
    try:
        yield
    except (TransportConnectionError, ConnectionTimeout) as e:
        raise IndexEngineError(f"{operation}: {e}", connectivity=True) from e
    except (ApiError, TransportError) as e:
        raise IndexEngineError(f"{operation}: {e}") from e


class ElasticsearchEngine:
    """Index engine talking to an Elasticsearch 8 cluster.

    Attributes:
        index: Name of the index every call targets.
    """

    def __init__(
        self,
        client: AsyncElasticsearch,
        index: str,
        refresh: str = "false",
    ) -> None:
        """Initialize engine around an existing client.

        Args:
            client: Async Elasticsearch client; the engine owns it and
                closes it in close().
            index: Target index name.
            refresh: Refresh policy for writes ("true", "false", "wait_for").
        """
        self._client = client
        self.index = index
        self._refresh = refresh

    @classmethod
    def from_url(
        cls,
        url: str,
        index: str,
        timeout: float = 5.0,
        refresh: str = "false",
    ) -> "ElasticsearchEngine":
        """Build an engine with a fresh client for a single node URL."""
        client = AsyncElasticsearch(hosts=[url], request_timeout=timeout)
        return cls(client, index, refresh=refresh)

    async def ensure_index(self, mapping: dict[str, Any]) -> bool:
        async with _translate_errors("ensure_index"):
            if await self._client.indices.exists(index=self.index):
                return False
            try:
                await self._client.indices.create(index=self.index, mappings=mapping)
            except BadRequestError as e:
                # Another process created it between exists() and create()
                if e.error == "resource_already_exists_exception":
                    return False
                raise
        return True

    async def put(self, doc_id: str, document: dict[str, Any]) -> None:
        async with _translate_errors("put"):
            await self._client.index(
                index=self.index,
                id=doc_id,
                document=document,
                refresh=self._refresh,
            )

    async def update(
        self,
        doc_id: str,
        fields: dict[str, Any],
        upsert: dict[str, Any] | None = None,
    ) -> None:
        async with _translate_errors("update"):
            await self._client.update(
                index=self.index,
                id=doc_id,
                doc=fields,
                upsert=upsert,
                refresh=self._refresh,
            )

    async def delete(self, doc_id: str) -> None:
        async with _translate_errors("delete"):
            try:
                await self._client.delete(
                    index=self.index,
                    id=doc_id,
                    refresh=self._refresh,
                )
            except DocumentNotFound:
                logger.debug("index_delete_missing", doc_id=doc_id)

    async def query(self, body: dict[str, Any]) -> RawQueryResult:
        async with _translate_errors("query"):
            response = await self._client.search(index=self.index, **body)

        hits = response["hits"]
        return RawQueryResult(
            total=hits["total"]["value"],
            hits=[
                RawHit(id=hit["_id"], score=hit.get("_score"), source=hit["_source"])
                for hit in hits["hits"]
            ],
        )

    async def document_ids(self) -> set[str]:
        ids: set[str] = set()
        async with _translate_errors("document_ids"):
            async for hit in async_scan(
                self._client,
                index=self.index,
                query={"query": {"match_all": {}}},
                _source=False,
            ):
                ids.add(hit["_id"])
        return ids

    async def health(self) -> IndexHealth:
        async with _translate_errors("health"):
            response = await self._client.cluster.health()
        return IndexHealth(
            status=response["status"],
            node_count=response["number_of_nodes"],
            active_primary_shards=response["active_primary_shards"],
            active_shards=response["active_shards"],
        )

    async def close(self) -> None:
        await self._client.close()
        logger.info("elasticsearch_client_closed")
