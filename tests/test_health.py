"""Health endpoint tests."""

from fastapi.testclient import TestClient

from fakes import FlakyEngine


def test_liveness_returns_200(client: TestClient) -> None:
    """Liveness endpoint returns 200 OK."""
    response = client.get("/api/v1/health/live")
    assert response.status_code == 200
    assert response.json()["status"] == "alive"


def test_readiness_ok_when_both_stores_answer(client: TestClient) -> None:
    response = client.get("/api/v1/health/ready")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ready"
    assert {c["name"] for c in data["checks"]} == {"primary_store", "search_index"}


def test_readiness_503_when_index_down(client: TestClient, engine: FlakyEngine) -> None:
    engine.fail_queries = True
    response = client.get("/api/v1/health/ready")
    assert response.status_code == 503
    checks = {c["name"]: c for c in response.json()["checks"]}
    assert checks["primary_store"]["status"] == "ok"
    assert checks["search_index"]["status"] == "failed"


def test_search_health_reports_cluster(client: TestClient) -> None:
    response = client.get("/api/v1/health/search")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "green"
    assert data["node_count"] == 1
    assert data["active_primary_shards"] == 1


def test_search_health_503_when_unreachable(
    client: TestClient, engine: FlakyEngine
) -> None:
    engine.fail_queries = True
    response = client.get("/api/v1/health/search")
    assert response.status_code == 503
