"""Translation of a search term and filters into the index query DSL."""

from typing import Any

from pydantic import BaseModel, Field

from itemsync.schemas import SearchFilters

PAGE_SIZE = 50

# Relevance weight per searchable field
SEARCH_FIELDS: tuple[str, ...] = ("name^2", "category")

DEFAULT_SORT: list[dict[str, Any]] = [
    {"_score": {"order": "desc"}},
    {"name.keyword": {"order": "asc"}},
]


class IndexQuery(BaseModel):
    """Native search request for the index engine.

    Attributes:
        query: Bool query with scoring (must) and non-scoring (filter) clauses.
        sort: Score first, then name as a deterministic tie-break.
        size: Maximum number of hits returned.
    """

    query: dict[str, Any]
    sort: list[dict[str, Any]] = Field(default_factory=lambda: list(DEFAULT_SORT))
    size: int = PAGE_SIZE

    def body(self) -> dict[str, Any]:
        """Request body accepted by IndexEngine.query()."""
        return {
            "query": self.query,
            "sort": self.sort,
            "size": self.size,
            "track_total_hits": True,
        }


def _must_clause(term: str | None) -> dict[str, Any]:
    text = term.strip() if term else ""
    if not text:
        return {"match_all": {}}
    return {
        "multi_match": {
            "query": text,
            "fields": list(SEARCH_FIELDS),
            "type": "best_fields",
            "fuzziness": "AUTO",
        }
    }


def _filter_clauses(filters: SearchFilters) -> list[dict[str, Any]]:
    clauses: list[dict[str, Any]] = []
    if filters.category is not None:
        clauses.append({"term": {"category.keyword": filters.category.value}})
    if filters.year is not None:
        clauses.append({"term": {"year": filters.year}})

    year_range = filters.year_range
    if year_range is not None and not year_range.is_open:
        bounds: dict[str, int] = {}
        if year_range.min is not None:
            bounds["gte"] = year_range.min
        if year_range.max is not None:
            bounds["lte"] = year_range.max
        clauses.append({"range": {"year": bounds}})
    return clauses


def build_query(term: str | None, filters: SearchFilters | None = None) -> IndexQuery:
    """Build the index query for a free-text term plus structured filters.

    A blank or missing term matches every document so that filters alone
    can drive the result set. Filters never affect scoring.

    Args:
        term: Free-text search term, fuzzy-matched across name and category.
        filters: Exact and range restrictions.

    Returns:
        IndexQuery capped at PAGE_SIZE hits.
    """
    filters = filters or SearchFilters()
    return IndexQuery(
        query={
            "bool": {
                "must": [_must_clause(term)],
                "filter": _filter_clauses(filters),
            }
        }
    )
