"""Background expiry sweeper for bans."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from contextlib import suppress
from datetime import datetime, timedelta

import structlog

from muzilla.core.interfaces import StoreFactory
from muzilla.core.moderation.ban_service import BanService
from muzilla.core.moderation.types import SweepReport
from muzilla.models import utcnow

logger = structlog.get_logger()

DEFAULT_SWEEP_INTERVAL = timedelta(minutes=10)


class BanSweeper:
    """Periodically lifts expired bans.

    Each pass opens its own unit of work and runs
    ``BanService.cleanup_expired``. A failed pass is logged and retried on
    the next tick; passes are idempotent, so an interrupted one is finished
    by the next.

    Usage:
        sweeper = BanSweeper(store_factory, interval=timedelta(minutes=10))
        sweeper.start()
        ...
        await sweeper.stop()
    """

    def __init__(
        self,
        store_factory: StoreFactory,
        interval: timedelta = DEFAULT_SWEEP_INTERVAL,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize the sweeper.

        Args:
            store_factory: Opens a fresh storage unit of work per pass.
            interval: Pause between the end of one pass and the next.
            clock: Source of the current UTC instant.

        Raises:
            ValueError: If interval is not positive.
        """
        if interval <= timedelta(0):
            raise ValueError(f"Sweep interval must be positive, got {interval}")
        self.store_factory = store_factory
        self.interval = interval
        self.clock = clock
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    @property
    def running(self) -> bool:
        """Whether the background loop is alive."""
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the background loop on the running event loop."""
        if self.running:
            logger.debug("ban_sweeper_already_running")
            return

        self._stopping.clear()
        self._task = asyncio.create_task(self._run(), name="ban_sweeper")
        self._task.add_done_callback(self._task_done_callback)

    async def stop(self) -> None:
        """Stop the loop, letting an in-flight pass finish first."""
        task = self._task
        if task is None:
            return

        self._stopping.set()
        with suppress(asyncio.CancelledError):
            await task
        self._task = None

    async def run_once(self) -> SweepReport:
        """Run a single sweep pass now."""
        async with self.store_factory() as store:
            report = await BanService(store, clock=self.clock).cleanup_expired()

        if report.expired:
            logger.info(
                "sweep_completed",
                expired=report.expired,
                cleared=len(report.cleared),
            )
        else:
            logger.debug("sweep_completed", expired=0, cleared=0)
        return report

    async def _run(self) -> None:
        logger.info("ban_sweeper_started", interval_seconds=self.interval.total_seconds())
        while not self._stopping.is_set():
            try:
                await self.run_once()
            except Exception:
                logger.exception("sweep_failed")

            with suppress(TimeoutError):
                await asyncio.wait_for(
                    self._stopping.wait(), timeout=self.interval.total_seconds()
                )
        logger.info("ban_sweeper_stopped")

    def _task_done_callback(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            logger.warning("ban_sweeper_cancelled")
            return

        exception = task.exception()
        if exception is not None:
            logger.error("ban_sweeper_crashed", exc_info=exception)
