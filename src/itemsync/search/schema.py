"""Search index mapping and provisioning."""

from typing import Any

import structlog

from itemsync.search.engine import IndexEngine

logger = structlog.get_logger()


def _text_with_keyword() -> dict[str, Any]:
    return {
        "type": "text",
        "analyzer": "standard",
        "fields": {"keyword": {"type": "keyword"}},
    }


ITEM_MAPPING: dict[str, Any] = {
    "properties": {
        "id": {"type": "keyword"},
        "name": _text_with_keyword(),
        "category": _text_with_keyword(),
        "year": {"type": "integer"},
        "created_at": {"type": "date"},
        "updated_at": {"type": "date"},
    }
}


async def ensure_index(engine: IndexEngine) -> bool:
    """Create the item index with ITEM_MAPPING if it does not exist yet.

    Safe to call on every startup. Connectivity and permission failures
    propagate as IndexEngineError; nothing is retried here.

    Args:
        engine: Index engine to provision.

    Returns:
        True if the index was created by this call.
    """
    created = await engine.ensure_index(ITEM_MAPPING)
    if created:
        logger.info("search_index_created")
    else:
        logger.info("search_index_exists")
    return created
