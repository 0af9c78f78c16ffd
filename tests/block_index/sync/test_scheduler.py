"""Tests for the periodic sync trigger."""

from __future__ import annotations

import asyncio

from block_index.sync import SyncScheduler, SyncService, SyncState


class _CountingService:
    """Stands in for SyncService, counting scheduled passes."""

    def __init__(self) -> None:
        self.scheduled = 0

    def schedule_pass(self, delay: float = 0.0) -> None:
        self.scheduled += 1


def _scheduler(service: _CountingService, **kwargs: object) -> SyncScheduler:
    return SyncScheduler(service=service, **kwargs)  # type: ignore[arg-type]


class TestSyncScheduler:
    """Tests for SyncScheduler."""

    async def test_runs_immediately_by_default(self) -> None:
        """The first pass is triggered as soon as the scheduler starts."""
        service = _CountingService()
        scheduler = _scheduler(service, interval=3600.0)

        task = asyncio.create_task(scheduler.run())
        await asyncio.sleep(0)

        assert scheduler.is_running
        assert service.scheduled == 1

        scheduler.stop()
        await task
        assert not scheduler.is_running
        assert service.scheduled == 1

    async def test_can_wait_a_full_interval_first(self) -> None:
        """With run_immediately off, nothing fires before the first interval."""
        service = _CountingService()
        scheduler = _scheduler(service, interval=3600.0, run_immediately=False)

        task = asyncio.create_task(scheduler.run())
        await asyncio.sleep(0)
        scheduler.stop()
        await task

        assert service.scheduled == 0

    async def test_triggers_every_interval(self) -> None:
        """Passes keep firing on the configured period."""
        service = _CountingService()
        scheduler = _scheduler(service, interval=0.01)

        task = asyncio.create_task(scheduler.run())
        await asyncio.sleep(0.1)
        scheduler.stop()
        await task

        assert service.scheduled >= 3

    async def test_stop_interrupts_sleep(self) -> None:
        """Stopping does not wait for the current interval to elapse."""
        scheduler = _scheduler(_CountingService(), interval=3600.0)

        task = asyncio.create_task(scheduler.run())
        await asyncio.sleep(0)
        scheduler.stop()

        await asyncio.wait_for(task, timeout=1.0)

    async def test_drives_a_real_service(self, service: SyncService) -> None:
        """The scheduler hands passes to the service as background tasks."""
        scheduler = SyncScheduler(service=service, interval=3600.0)

        task = asyncio.create_task(scheduler.run())
        await asyncio.sleep(0)
        scheduler.stop()
        await task
        await service.wait_idle()

        # No auth is stored, so the pass is skipped.
        assert service.state == SyncState.IDLE
        assert (await service.store.load_status()).running is False
