"""Periodic trigger for full sync passes."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from .service import SyncService

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SyncScheduler:
    """
    Runs a sync pass on a fixed period.

    Passes run as background tasks of the service, so stopping the
    scheduler never waits on a pass. A period that lands while a pass is
    in flight is dropped by the service lock.
    """

    service: SyncService
    """Service whose passes are triggered."""

    interval: float
    """Seconds between passes."""

    run_immediately: bool = True
    """Whether to run a pass as soon as the scheduler starts."""

    _running: bool = field(default=False, repr=False)
    """Whether the scheduler is running."""

    _wake: asyncio.Event = field(default_factory=asyncio.Event, repr=False)
    """Set by stop() to cut the current sleep short."""

    async def run(self) -> None:
        """Trigger passes every `interval` seconds until stopped."""
        self._running = True
        self._wake.clear()
        logger.info(f"Sync scheduled every {self.interval:.0f}s")

        if not self.run_immediately:
            await self._sleep()

        while self._running:
            self.service.schedule_pass()
            await self._sleep()

    async def _sleep(self) -> None:
        try:
            await asyncio.wait_for(self._wake.wait(), timeout=self.interval)
        except TimeoutError:
            pass

    def stop(self) -> None:
        """Stop the scheduler."""
        self._running = False
        self._wake.set()

    @property
    def is_running(self) -> bool:
        """Check if the scheduler is currently running."""
        return self._running
