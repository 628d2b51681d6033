"""FastAPI application factory and lifespan management."""

import asyncio
import contextlib
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from itemsync import __version__
from itemsync.config import Settings
from itemsync.errors import IndexEngineError
from itemsync.lifecycle import GracefulShutdown
from itemsync.middleware.auth import APIKeyMiddleware
from itemsync.middleware.cors import configure_cors
from itemsync.middleware.errors import configure_error_handlers
from itemsync.middleware.logging import RequestLoggingMiddleware
from itemsync.routes import admin, health, items
from itemsync.scheduler import run_reconcile_loop
from itemsync.search import IndexEngine, IndexMutator, SearchService, ensure_index
from itemsync.search.elastic import ElasticsearchEngine
from itemsync.search.memory import MemoryIndexEngine
from itemsync.store import SqliteItemStore
from itemsync.sync import Synchronizer

logger = structlog.get_logger()


def build_engine(settings: Settings) -> IndexEngine:
    """Create the index engine selected by settings.index_backend.

    Args:
        settings: Service configuration.

    Returns:
        Unconnected engine; Elasticsearch connects lazily on first call.
    """
    if settings.index_backend == "memory":
        return MemoryIndexEngine(index=settings.index_name)
    return ElasticsearchEngine.from_url(
        settings.elasticsearch_url,
        index=settings.index_name,
        timeout=settings.index_timeout,
        refresh=settings.index_refresh,
    )


async def provision_index(engine: IndexEngine, timeout: float) -> None:
    """Ensure the index exists, logging instead of failing startup."""
    try:
        await asyncio.wait_for(ensure_index(engine), timeout=timeout)
    except (IndexEngineError, asyncio.TimeoutError) as e:
        # Writes still land in the primary store; reconcile heals the index later
        logger.error("search_index_unavailable", error=str(e) or type(e).__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifecycle events.

    Opens the primary store and index engine, provisions the index,
    wires the synchronizer and search service onto app.state, and starts
    the reconciliation loop when an interval is configured. Everything
    is closed again on shutdown.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    logger.info(
        "api_startup",
        host=settings.host,
        port=settings.port,
        index_backend=settings.index_backend,
    )

    store = SqliteItemStore(settings.database_path)
    store.initialize()

    engine: IndexEngine = app.state.engine or build_engine(settings)
    await provision_index(engine, settings.index_timeout)

    mutator = IndexMutator(engine, timeout=settings.index_timeout)
    synchronizer = Synchronizer(
        store,
        mutator,
        concurrency=settings.reconcile_concurrency,
        purge_orphans=settings.reconcile_purge_orphans,
    )

    app.state.store = store
    app.state.engine = engine
    app.state.synchronizer = synchronizer
    app.state.search_service = SearchService(engine, timeout=settings.index_timeout)

    shutdown = GracefulShutdown(name="reconcile_loop")
    reconcile_task: asyncio.Task[None] | None = None
    if settings.reconcile_interval > 0:
        reconcile_task = asyncio.create_task(
            run_reconcile_loop(synchronizer, settings.reconcile_interval, shutdown)
        )

    try:
        yield
    finally:
        shutdown.trigger()
        if reconcile_task is not None:
            try:
                await asyncio.wait_for(reconcile_task, timeout=settings.shutdown_timeout)
            except asyncio.TimeoutError:
                logger.warning("reconcile_loop_shutdown_timeout")
                reconcile_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await reconcile_task

        await engine.close()
        store.close()
        logger.info("api_shutdown")


def create_app(
    settings: Settings | None = None,
    engine: IndexEngine | None = None,
) -> FastAPI:
    """Factory function to create configured FastAPI application.

    Args:
        settings: Configuration instance. Creates default if None.
        engine: Index engine to use instead of the one built from settings.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="Item Sync API",
        version=__version__,
        lifespan=lifespan,
        docs_url="/api/v1/docs" if settings.debug else None,
        redoc_url=None,
        openapi_url="/api/v1/openapi.json" if settings.debug else None,
    )
    app.state.settings = settings
    app.state.engine = engine

    configure_cors(app, settings.cors_origins)
    configure_error_handlers(app)
    if settings.key:
        app.add_middleware(APIKeyMiddleware, api_key=settings.key)
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(health.router, prefix="/api/v1")
    app.include_router(items.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
