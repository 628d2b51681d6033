"""Search execution and response shaping."""

import asyncio

import structlog

from itemsync.errors import IndexEngineError, SearchUnavailableError
from itemsync.schemas import SearchFilters, SearchHit, SearchResult
from itemsync.search.engine import IndexEngine, RawHit
from itemsync.search.query import build_query

logger = structlog.get_logger()


def _to_hit(raw: RawHit) -> SearchHit:
    source = raw.source
    return SearchHit(
        id=source.get("id", raw.id),
        name=source["name"],
        category=source["category"],
        year=source["year"],
        created_at=source.get("created_at"),
        updated_at=source.get("updated_at"),
        score=round(raw.score, 4) if raw.score is not None else None,
    )


class SearchService:
    """Runs item searches against the index.

    An empty match set is a normal result. Engine failures and timeouts
    raise SearchUnavailableError so that an outage is never reported as
    zero matches.
    """

    def __init__(self, engine: IndexEngine, timeout: float = 5.0) -> None:
        self._engine = engine
        self._timeout = timeout

    async def search(
        self,
        term: str | None = None,
        filters: SearchFilters | None = None,
    ) -> SearchResult:
        """Search items by free-text term and filters.

        Args:
            term: Optional free-text term.
            filters: Optional category/year restrictions.

        Returns:
            Total match count and the ranked first page of hits.

        Raises:
            SearchUnavailableError: If the index cannot answer.
        """
        query = build_query(term, filters)
        try:
            raw = await asyncio.wait_for(
                self._engine.query(query.body()), timeout=self._timeout
            )
        except asyncio.TimeoutError as e:
            logger.error("search_timeout", term=term, timeout_seconds=self._timeout)
            raise SearchUnavailableError(f"timed out after {self._timeout}s") from e
        except IndexEngineError as e:
            logger.error("search_failed", term=term, error=str(e))
            raise SearchUnavailableError(str(e)) from e

        return SearchResult(total=raw.total, items=[_to_hit(hit) for hit in raw.hits])
