"""Elasticsearch engine tests against a mocked async client."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from elasticsearch import BadRequestError
from elasticsearch import ConnectionError as TransportConnectionError
from elasticsearch import NotFoundError as DocumentNotFound

from itemsync.errors import IndexEngineError
from itemsync.search import elastic
from itemsync.search.elastic import ElasticsearchEngine
from itemsync.search.schema import ITEM_MAPPING


def _client() -> MagicMock:
    client = MagicMock()
    client.indices.exists = AsyncMock(return_value=False)
    client.indices.create = AsyncMock()
    client.index = AsyncMock()
    client.update = AsyncMock()
    client.delete = AsyncMock()
    client.search = AsyncMock()
    client.cluster.health = AsyncMock()
    client.close = AsyncMock()
    return client


def _meta(status: int) -> MagicMock:
    meta = MagicMock()
    meta.status = status
    return meta


def _api_error(cls: type, status: int, error_type: str) -> Exception:
    cause = {"type": error_type, "reason": f"{error_type} raised"}
    body = {"error": {"root_cause": [cause], **cause}, "status": status}
    return cls(error_type, _meta(status), body)


@pytest.mark.asyncio
async def test_ensure_index_creates_once() -> None:
    client = _client()
    engine = ElasticsearchEngine(client, "items")

    assert await engine.ensure_index(ITEM_MAPPING) is True
    client.indices.create.assert_awaited_once_with(index="items", mappings=ITEM_MAPPING)

    client.indices.exists.return_value = True
    assert await engine.ensure_index(ITEM_MAPPING) is False
    assert client.indices.create.await_count == 1


@pytest.mark.asyncio
async def test_writes_pass_refresh_policy() -> None:
    client = _client()
    engine = ElasticsearchEngine(client, "items", refresh="wait_for")

    await engine.put("1", {"name": "Ocean Explorer"})
    await engine.update("1", {"year": 2021})

    client.index.assert_awaited_once_with(
        index="items", id="1", document={"name": "Ocean Explorer"}, refresh="wait_for"
    )
    client.update.assert_awaited_once_with(
        index="items", id="1", doc={"year": 2021}, upsert=None, refresh="wait_for"
    )


@pytest.mark.asyncio
async def test_query_maps_hits() -> None:
    client = _client()
    client.search.return_value = {
        "hits": {
            "total": {"value": 3},
            "hits": [
                {"_id": "1", "_score": 2.5, "_source": {"name": "Ocean Explorer"}},
            ],
        }
    }
    engine = ElasticsearchEngine(client, "items")
    body = {"query": {"match_all": {}}, "size": 1}

    result = await engine.query(body)

    client.search.assert_awaited_once_with(index="items", **body)
    assert result.total == 3
    assert result.hits[0].id == "1"
    assert result.hits[0].score == 2.5
    assert result.hits[0].source == {"name": "Ocean Explorer"}


@pytest.mark.asyncio
async def test_connection_errors_are_translated() -> None:
    client = _client()
    client.search.side_effect = TransportConnectionError("connection refused")
    engine = ElasticsearchEngine(client, "items")

    with pytest.raises(IndexEngineError) as info:
        await engine.query({"query": {"match_all": {}}})
    assert info.value.connectivity is True


@pytest.mark.asyncio
async def test_health_fields() -> None:
    client = _client()
    client.cluster.health.return_value = {
        "status": "yellow",
        "cluster_name": "docker-cluster",
        "number_of_nodes": 1,
        "active_primary_shards": 5,
        "active_shards": 5,
    }
    engine = ElasticsearchEngine(client, "items")

    health = await engine.health()

    assert health.status == "yellow"
    assert health.node_count == 1
    assert health.active_primary_shards == 5


@pytest.mark.asyncio
async def test_ensure_index_tolerates_concurrent_create() -> None:
    client = _client()
    client.indices.create.side_effect = _api_error(
        BadRequestError, 400, "resource_already_exists_exception"
    )
    engine = ElasticsearchEngine(client, "items")

    assert await engine.ensure_index(ITEM_MAPPING) is False
    client.indices.create.assert_awaited_once()


@pytest.mark.asyncio
async def test_ensure_index_rejected_mapping_raises() -> None:
    client = _client()
    client.indices.create.side_effect = _api_error(
        BadRequestError, 400, "mapper_parsing_exception"
    )
    engine = ElasticsearchEngine(client, "items")

    with pytest.raises(IndexEngineError) as info:
        await engine.ensure_index(ITEM_MAPPING)
    assert info.value.connectivity is False


@pytest.mark.asyncio
async def test_delete_of_absent_document_succeeds() -> None:
    client = _client()
    client.delete.side_effect = _api_error(DocumentNotFound, 404, "not_found")
    engine = ElasticsearchEngine(client, "items", refresh="true")

    await engine.delete("gone")

    client.delete.assert_awaited_once_with(index="items", id="gone", refresh="true")


@pytest.mark.asyncio
async def test_document_ids_scans_without_source(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    client = _client()
    calls: list[dict] = []

    async def fake_scan(scan_client, **kwargs):
        calls.append({"client": scan_client, **kwargs})
        for doc_id in ("a", "b", "c"):
            yield {"_id": doc_id}

    monkeypatch.setattr(elastic, "async_scan", fake_scan)
    engine = ElasticsearchEngine(client, "items")

    assert await engine.document_ids() == {"a", "b", "c"}
    assert calls == [
        {
            "client": client,
            "index": "items",
            "query": {"query": {"match_all": {}}},
            "_source": False,
        }
    ]


@pytest.mark.asyncio
async def test_document_ids_scan_failure_is_translated(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    async def failing_scan(scan_client, **kwargs):
        raise TransportConnectionError("connection refused")
        yield  # pragma: no cover

    monkeypatch.setattr(elastic, "async_scan", failing_scan)
    engine = ElasticsearchEngine(_client(), "items")

    with pytest.raises(IndexEngineError) as info:
        await engine.document_ids()
    assert info.value.connectivity is True
