"""Blacklist reaper service - periodically removes expired blacklist entries."""

import asyncio
import threading
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from library_api.core.config import settings
from library_api.core.database import async_session_maker
from library_api.core.logging import get_logger
from library_api.services.token_blacklist import TokenBlacklistService

logger = get_logger("blacklist_reaper")


def _task_done_callback(task: asyncio.Task[None]) -> None:
    """Log unhandled exceptions from the reaper task."""
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(f"Background task {task.get_name()} failed: {exc}")


class BlacklistReaperService:
    """Background service that purges expired token blacklist entries."""

    _instance: Optional["BlacklistReaperService"] = None
    _instance_lock: threading.Lock = threading.Lock()
    _task: asyncio.Task | None = None

    def __init__(self, interval_seconds: int | None = None):
        self._running = False
        if interval_seconds is None:
            interval_seconds = settings.blacklist_cleanup_interval_seconds
        self._interval_seconds = interval_seconds

    @classmethod
    def get_instance(cls) -> "BlacklistReaperService":
        """Get singleton instance of the reaper (thread-safe)."""
        if cls._instance is None:
            with cls._instance_lock:
                # Double-check locking pattern
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @property
    def interval_seconds(self) -> int:
        return self._interval_seconds

    @property
    def running(self) -> bool:
        return self._running

    async def start(self):
        """Start the background reaper task."""
        if self._running:
            logger.warning("Blacklist reaper is already running")
            return

        self._running = True
        task = asyncio.create_task(self._cleanup_loop(), name="blacklist_reaper")
        task.add_done_callback(_task_done_callback)
        BlacklistReaperService._task = task
        logger.info(f"Blacklist reaper started (interval: {self._interval_seconds}s)")

    async def stop(self):
        """Stop the background reaper task."""
        self._running = False
        if BlacklistReaperService._task:
            BlacklistReaperService._task.cancel()
            try:
                await BlacklistReaperService._task
            except asyncio.CancelledError:
                pass
            BlacklistReaperService._task = None
        logger.info("Blacklist reaper stopped")

    async def _cleanup_loop(self):
        """Main loop: wait one interval, then reap; a failed run never stops the loop."""
        while self._running:
            await asyncio.sleep(self._interval_seconds)
            if not self._running:
                break
            try:
                await self._run_cleanup()
            except Exception as e:
                logger.error(f"Error in blacklist cleanup: {e}")

    async def _run_cleanup(self) -> int:
        """Execute a single cleanup run."""
        async with async_session_maker() as db:
            try:
                removed = await TokenBlacklistService(db).reap()
            except Exception as e:
                logger.exception(f"Error during blacklist cleanup: {e}")
                await db.rollback()
                raise  # Propagate to _cleanup_loop which handles logging

        if removed > 0:
            logger.info(f"Blacklist cleanup: removed {removed} expired entries")
        return removed

    async def run_cleanup_now(self, db: AsyncSession | None = None) -> int:
        """Manually trigger a cleanup run, optionally on an existing session.

        Returns:
            Number of blacklist entries removed
        """
        if db is not None:
            removed = await TokenBlacklistService(db).reap()
        else:
            async with async_session_maker() as session:
                removed = await TokenBlacklistService(session).reap()
        logger.info(f"Manual blacklist cleanup removed {removed} entries")
        return removed
