"""Administrative endpoints for index maintenance."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from fastapi import APIRouter, Request

from itemsync.schemas import ReconciliationReport

if TYPE_CHECKING:
    from itemsync.sync import Synchronizer

logger = structlog.get_logger()

router = APIRouter(prefix="/admin", tags=["admin"])


@router.post(
    "/reconcile",
    response_model=ReconciliationReport,
    summary="Rebuild the search index from the primary store",
)
async def reconcile(request: Request) -> ReconciliationReport:
    """Run one reconciliation pass and report per-item results.

    Partial failures are reported in the body with status
    "partial_failure"; the request itself still succeeds.

    Args:
        request: FastAPI request (provides access to app state).

    Returns:
        Reconciliation tally.
    """
    synchronizer: Synchronizer = request.app.state.synchronizer
    logger.info("reconcile_requested")
    return await synchronizer.reconcile()
