"""Search index provisioning, writes and queries."""

from itemsync.search.engine import IndexEngine, IndexHealth
from itemsync.search.mutator import IndexMutator
from itemsync.search.query import PAGE_SIZE, IndexQuery, build_query
from itemsync.search.schema import ITEM_MAPPING, ensure_index
from itemsync.search.service import SearchService

__all__ = [
    "ITEM_MAPPING",
    "PAGE_SIZE",
    "IndexEngine",
    "IndexHealth",
    "IndexMutator",
    "IndexQuery",
    "SearchService",
    "build_query",
    "ensure_index",
]
