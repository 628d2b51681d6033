"""Search index engine contract consumed by the index layer."""

from typing import Any, Protocol

from pydantic import BaseModel


class RawHit(BaseModel):
    """Single document returned by the engine."""

    id: str
    score: float | None
    source: dict[str, Any]


class RawQueryResult(BaseModel):
    """Engine response to a query body."""

    total: int
    hits: list[RawHit]


class IndexHealth(BaseModel):
    """Cluster health as reported by the engine.

    Attributes:
        status: green, yellow or red.
        node_count: Number of nodes in the cluster.
        active_primary_shards: Primary shards currently allocated.
        active_shards: All shards (primaries and replicas) allocated.
    """

    status: str
    node_count: int
    active_primary_shards: int
    active_shards: int


class IndexEngine(Protocol):
    """Document index speaking the Elasticsearch query DSL.

    Every method raises IndexEngineError on failure.
    """

    async def ensure_index(self, mapping: dict[str, Any]) -> bool:
        """Create the index with the mapping unless it exists.

        Returns:
            True if the index was created, False if it already existed.
        """
        ...

    async def put(self, doc_id: str, document: dict[str, Any]) -> None:
        """Write a whole document, replacing any previous version."""
        ...

    async def update(
        self,
        doc_id: str,
        fields: dict[str, Any],
        upsert: dict[str, Any] | None = None,
    ) -> None:
        """Merge fields into an existing document.

        When upsert is given and the document is missing, upsert is
        written as the new document instead of failing.
        """
        ...

    async def delete(self, doc_id: str) -> None:
        """Remove a document; a missing document is not an error."""
        ...

    async def query(self, body: dict[str, Any]) -> RawQueryResult:
        """Run a search request body (query, sort, size)."""
        ...

    async def document_ids(self) -> set[str]:
        """Ids of every document currently in the index."""
        ...

    async def health(self) -> IndexHealth:
        ...

    async def close(self) -> None:
        ...
