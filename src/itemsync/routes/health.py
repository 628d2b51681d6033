"""Health check endpoints for liveness and readiness probes."""

from __future__ import annotations

import asyncio
import sqlite3
from typing import TYPE_CHECKING, Literal

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from itemsync.errors import IndexEngineError, SearchUnavailableError
from itemsync.search.engine import IndexHealth

if TYPE_CHECKING:
    from itemsync.search.engine import IndexEngine
    from itemsync.store.base import ItemStore

router = APIRouter(prefix="/health", tags=["health"])


class LivenessResponse(BaseModel):
    """Response model for liveness probe.

    Attributes:
        status: Always 'alive' when process is running.
    """

    status: Literal["alive"]


class ReadinessCheck(BaseModel):
    """Individual dependency check result.

    Attributes:
        name: Identifier for the dependency being checked.
        status: Result of the check ('ok' or 'failed').
        message: Error details when status is 'failed'.
    """

    name: str
    status: Literal["ok", "failed"]
    message: str | None = None


class ReadinessResponse(BaseModel):
    """Response model for readiness probe.

    Attributes:
        status: Overall readiness ('ready' or 'not_ready').
        checks: List of individual dependency check results.
    """

    status: Literal["ready", "not_ready"]
    checks: list[ReadinessCheck]


async def _check_store(store: ItemStore) -> ReadinessCheck:
    """Verify the primary store answers a trivial query."""
    try:
        await asyncio.to_thread(store.ping)
        return ReadinessCheck(name="primary_store", status="ok")
    except sqlite3.Error as e:
        return ReadinessCheck(name="primary_store", status="failed", message=str(e))


async def _index_health(engine: IndexEngine, timeout: float) -> IndexHealth:
    try:
        return await asyncio.wait_for(engine.health(), timeout=timeout)
    except asyncio.TimeoutError as e:
        raise IndexEngineError(f"health: timed out after {timeout}s") from e


async def _check_index(engine: IndexEngine, timeout: float) -> ReadinessCheck:
    """Verify the search index is reachable and not red."""
    try:
        health = await _index_health(engine, timeout)
    except IndexEngineError as e:
        return ReadinessCheck(name="search_index", status="failed", message=str(e))
    if health.status == "red":
        return ReadinessCheck(
            name="search_index",
            status="failed",
            message="Cluster status is red",
        )
    return ReadinessCheck(name="search_index", status="ok")


@router.get("/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Liveness probe endpoint.

    Returns immediate success if the process is running.

    Returns:
        Liveness status response.
    """
    return LivenessResponse(status="alive")


@router.get("/ready", response_model=ReadinessResponse)
async def readiness(request: Request) -> JSONResponse:
    """Readiness probe endpoint.

    Checks the primary store and the search index. Returns 200 if both
    pass, 503 if either fails.

    Returns:
        Readiness status with individual check results.
    """
    state = request.app.state
    checks = [
        await _check_store(state.store),
        await _check_index(state.engine, state.settings.index_timeout),
    ]
    all_ok = all(c.status == "ok" for c in checks)
    response = ReadinessResponse(
        status="ready" if all_ok else "not_ready",
        checks=checks,
    )
    code = status.HTTP_200_OK if all_ok else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(content=response.model_dump(), status_code=code)


@router.get("/search", response_model=IndexHealth)
async def search_health(request: Request) -> IndexHealth:
    """Search cluster health: status, node count and shard counts.

    Raises:
        SearchUnavailableError: Mapped to 503 when the cluster is unreachable.
    """
    state = request.app.state
    try:
        return await _index_health(state.engine, state.settings.index_timeout)
    except IndexEngineError as e:
        raise SearchUnavailableError(str(e)) from e
