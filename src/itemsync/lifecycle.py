"""Shutdown coordination for long-running async tasks."""
import asyncio

import structlog

logger = structlog.get_logger()


class GracefulShutdown:
    """One-shot shutdown signal shared by concurrent tasks.

    Attributes:
        is_triggered: Whether shutdown has been triggered.
    """

    def __init__(self, name: str = "service") -> None:
        """Initialize shutdown coordinator.

        Args:
            name: Label used in log events.
        """
        self._name = name
        self._event = asyncio.Event()

    @property
    def is_triggered(self) -> bool:
        return self._event.is_set()

    def trigger(self) -> None:
        """Signal all waiting tasks to stop.

        Idempotent - calling multiple times has no additional effect.
        """
        if self._event.is_set():
            return
        logger.info("shutdown_triggered", scope=self._name)
        self._event.set()

    async def wait_for_trigger(self) -> None:
        """Block until trigger() is called from another task or signal handler."""
        await self._event.wait()

    async def sleep(self, seconds: float) -> bool:
        """Sleep for up to seconds, waking early on shutdown.

        Args:
            seconds: Maximum time to sleep.

        Returns:
            True if shutdown was triggered, False if the full period elapsed.
        """
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
            return True
        except asyncio.TimeoutError:
            return False
