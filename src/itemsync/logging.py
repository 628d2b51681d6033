"""Structured logging configuration using structlog."""

import logging
import sys

import structlog
from structlog.typing import Processor

_NOISY_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access", "elastic_transport")


def configure_logging(debug: bool = False, json_logs: bool = True) -> None:
    """Configure structlog and route stdlib loggers through it.

    Args:
        debug: Enable debug-level logging when True.
        json_logs: Render JSON lines; False switches to the coloured
            console renderer for local development.
    """
    level = logging.DEBUG if debug else logging.INFO
    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=level,
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).handlers = []
        logging.getLogger(name).propagate = True
    # The transport logs one INFO line per HTTP call to the cluster
    logging.getLogger("elastic_transport").setLevel(logging.WARNING)
