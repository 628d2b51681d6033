"""Mapping of domain errors to HTTP responses."""
import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from itemsync.errors import DuplicateError, NotFoundError, SearchUnavailableError

logger = structlog.get_logger()


async def _not_found(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": str(exc)})


async def _duplicate(request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"error": str(exc)})


async def _search_unavailable(request: Request, exc: Exception) -> JSONResponse:
    logger.warning("search_unavailable", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"error": "Search is temporarily unavailable"},
    )


def configure_error_handlers(app: FastAPI) -> None:
    """Register JSON error responses for the service's domain errors.

    Args:
        app: FastAPI application instance.
    """
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(DuplicateError, _duplicate)
    app.add_exception_handler(SearchUnavailableError, _search_unavailable)
