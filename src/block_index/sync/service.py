"""
Sync service orchestrator.

This is the only writer of the block cache.

The Core Problem
----------------
Answering "which of my follows block this profile" needs every followed
account's block list. Fetching hundreds of lists on every profile view is
far too slow, so a background pass fetches them all ahead of time and
compresses each non-empty list into a bloom filter.

How a Pass Works
----------------
1. Load auth; without it there is nothing to sync
2. Load the snapshot, or start fresh if absent or owned by someone else
3. Mark the status running; prune first if the cache is near its ceiling
4. Fetch the complete follow list
5. Fetch block lists in small concurrent batches
6. Checkpoint the snapshot every few batches and after the last one
7. Pause between batches to respect remote rate limits
8. Persist final counts and errors

A failing account never aborts the pass. Anything else that fails aborts
it with a single error in the status.

Locking
-------
Two layers keep passes from overlapping:

- **In-process**: an asyncio lock. A trigger while it is held is dropped.
- **Persisted**: `SyncStatus.running` with a heartbeat. Every status write
  refreshes the heartbeat. A held flag whose heartbeat is older than the
  stale timeout belongs to a dead process and is overridden.

A cache reset during a pass invalidates it. The pass stops writing and the
pass scheduled by the reset queues behind it instead of being dropped.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from block_index import metrics
from block_index.bloom import ProbabilisticSet
from block_index.containers import AccountBlockCacheEntry, CacheSnapshot, FollowedAccount
from block_index.protocol import ProtocolClient
from block_index.storage import BlockCacheStore, QuotaGuard, estimate_size

from .config import SyncConfig
from .states import SyncState

logger = logging.getLogger(__name__)


def _describe(exc: BaseException) -> str:
    """Short, traceback-free description of an error."""
    return str(exc) or type(exc).__name__


@dataclass(slots=True)
class SyncProgress:
    """
    Current synchronization progress.

    Provides an in-memory snapshot for monitoring and logging. The persisted
    SyncStatus is the authoritative cross-process view.
    """

    state: SyncState
    """Current sync state machine state."""

    total_count: int = 0
    """Follows in the current or last pass."""

    synced_count: int = 0
    """Follows whose block list was fetched."""

    failed_count: int = 0
    """Follows whose fetch failed."""

    batches_done: int = 0
    """Batches completed in the current or last pass."""

    batches_total: int = 0
    """Batches in the current or last pass."""


@dataclass(slots=True)
class SyncService:
    """
    Main synchronization orchestrator.

    Owns the pass lifecycle: locking, batched fetching, checkpointing and
    status reporting. The network and persistence layers are injected.
    """

    store: BlockCacheStore
    """Persistent cache, status and auth."""

    client: ProtocolClient
    """Remote graph queries."""

    config: SyncConfig = field(default_factory=SyncConfig)
    """Batching, pacing and quota tunables."""

    _quota: QuotaGuard = field(init=False)
    """Prune-and-retry wrapper around snapshot saves."""

    _state: SyncState = field(default=SyncState.IDLE)
    """Current sync state."""

    _sync_lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    """Lock to prevent concurrent passes in this process."""

    _tasks: set[asyncio.Task[bool]] = field(default_factory=set)
    """Scheduled passes not yet finished."""

    _progress: SyncProgress = field(init=False)
    """Counters for the current or last pass."""

    _generation: int = 0
    """Bumped by `invalidate`. A pass started under an older value is abandoned."""

    _pass_generation: int = 0
    """Generation the current or last pass started under."""

    def __post_init__(self) -> None:
        """Initialize the quota guard and progress counters."""
        self._quota = QuotaGuard(
            self.store,
            ceiling_bytes=self.config.cache_ceiling_bytes,
            proactive_ratio=self.config.proactive_prune_ratio,
        )
        self._progress = SyncProgress(state=self._state)

    @property
    def state(self) -> SyncState:
        """Current sync state."""
        return self._state

    @property
    def is_running(self) -> bool:
        """Check if a pass is in flight in this process."""
        return self._state.is_running

    def get_progress(self) -> SyncProgress:
        """
        Get current sync progress.

        Returns:
            Copy of the progress counters, safe to hold across awaits.
        """
        progress = self._progress
        return SyncProgress(
            state=self._state,
            total_count=progress.total_count,
            synced_count=progress.synced_count,
            failed_count=progress.failed_count,
            batches_done=progress.batches_done,
            batches_total=progress.batches_total,
        )

    # -------------------------------------------------------------------------
    # Scheduling
    # -------------------------------------------------------------------------

    def schedule_pass(self, delay: float = 0.0, wait: bool = False) -> asyncio.Task[bool]:
        """
        Start a pass in the background and return immediately.

        Args:
            delay: Seconds to wait before the pass starts.
            wait: Queue behind a pass in flight instead of being dropped.

        Returns:
            The task running the pass. Resolves to whether the pass ran.
        """
        task = asyncio.create_task(self._delayed_pass(delay, wait))
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    async def _delayed_pass(self, delay: float, wait: bool) -> bool:
        if delay > 0:
            await asyncio.sleep(delay)
        return await self.run_pass(wait=wait)

    def _on_task_done(self, task: asyncio.Task[bool]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(f"Background sync pass crashed: {_describe(exc)}")

    async def wait_idle(self) -> None:
        """Wait until every scheduled pass has finished."""
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def cancel_pending(self) -> None:
        """Cancel scheduled passes and wait for them to unwind."""
        for task in self._tasks:
            task.cancel()
        await self.wait_idle()

    def invalidate(self) -> None:
        """
        Abandon the pass in flight, if any.

        Called after the cache is wiped underneath the service. The running
        pass stops at its next step without saving its snapshot or status.
        """
        self._generation += 1

    @property
    def _superseded(self) -> bool:
        return self._pass_generation != self._generation

    # -------------------------------------------------------------------------
    # Pass
    # -------------------------------------------------------------------------

    async def run_pass(self, wait: bool = False) -> bool:
        """
        Run one full sync pass.

        Args:
            wait: Wait for a pass in flight in this process to finish first.
                By default such a trigger is dropped.

        Returns:
            True if the pass ran (completed, aborted or abandoned), False if
            it was skipped for lack of auth or because another pass holds
            the lock.
        """
        if not wait and self._sync_lock.locked():
            logger.info("Sync pass already in flight, skipping")
            return False

        async with self._sync_lock:
            self._pass_generation = self._generation
            status = await self.store.load_status()
            now = self.store.time_fn()

            if status.running:
                if not status.is_stale(now, self.config.stale_lock_timeout):
                    logger.info("Sync already in progress, skipping")
                    return False
                logger.warning(
                    f"Stale sync lock detected ({status.heartbeat_age(now):.0f}s old), clearing"
                )
                await self.store.update_status(running=False)

            auth = await self.store.load_auth()
            if auth is None:
                logger.info("No auth available, skipping sync")
                return False

            self._transition_to(SyncState.RUNNING)
            metrics.sync_passes.inc()
            try:
                with metrics.sync_pass_time.time():
                    await self._execute(auth.subject_id)
            except Exception as exc:
                # Pass-level failures are reported through the status.
                #
                # They are not retried; the next trigger starts over.
                logger.error(f"Sync pass failed: {_describe(exc)}")
                if not self._superseded:
                    await self.store.update_status(running=False, errors=[_describe(exc)])
            finally:
                self._transition_to(SyncState.IDLE)

            if self._superseded:
                # Undo any status writes that raced the reset.
                logger.info("Cache was reset during the pass, abandoned it")
                await self.store.reset_status()

            return True

    async def _execute(self, subject_id: str) -> None:
        logger.info("Starting full sync")

        snapshot = await self.store.load()
        if snapshot is None or snapshot.owner_id != subject_id:
            snapshot = self.store.create_empty(subject_id)

        await self.store.update_status(running=True, errors=[], synced_count=0)

        if self._quota.needs_proactive_prune(snapshot):
            logger.info(
                f"Cache size ({estimate_size(snapshot)} bytes) approaching limit, pruning"
            )
            self._quota.prune(snapshot)
            if not self._superseded:
                await self._quota.safe_save(snapshot)

        follows = await self.client.list_all_follows(subject_id)
        if self._superseded:
            return
        snapshot.followed_accounts = follows
        await self.store.update_status(total_count=len(follows))

        size = self.config.batch_size
        batches = [follows[i : i + size] for i in range(0, len(follows), size)]
        self._progress = SyncProgress(
            state=self._state,
            total_count=len(follows),
            batches_total=len(batches),
        )
        logger.info(f"Got {len(follows)} follows, fetching block lists")

        errors: list[str] = []
        for index, batch in enumerate(batches):
            await asyncio.gather(
                *(self._sync_account(account, snapshot, errors) for account in batch)
            )
            if self._superseded:
                return
            self._progress.batches_done = index + 1

            is_last = index == len(batches) - 1
            if (index + 1) % self.config.save_interval == 0 or is_last:
                await self._checkpoint(snapshot, errors, f"batch {index + 1}/{len(batches)}")

            if not is_last:
                await asyncio.sleep(self.config.inter_batch_delay)

        # With no follows the loop never checkpoints; persist the empty list.
        if not batches:
            await self._checkpoint(snapshot, errors, "no follows")

        if self._superseded:
            return

        await self.store.update_status(
            running=False,
            last_sync_completed_at=self.store.time_fn(),
            synced_count=self._progress.synced_count,
            total_count=len(follows),
            errors=errors,
        )
        logger.info(
            f"Full sync complete: {self._progress.synced_count}/{len(follows)} synced, "
            f"{self._progress.failed_count} failed, {len(snapshot.entries)} entries, "
            f"{len(errors)} errors"
        )

    async def _sync_account(
        self,
        account: FollowedAccount,
        snapshot: CacheSnapshot,
        errors: list[str],
    ) -> None:
        """
        Fetch one account's blocks and write its entry.

        Every failure is contained here so sibling fetches keep going. The
        account counts as synced either way, and the status write refreshes
        the heartbeat.
        """
        try:
            origin = await self.client.resolve_origin(account.id)

            # An unresolved origin has already cost a directory lookup.
            blocks = await self.client.list_blocks(
                account.id, origin_hint=origin or self.client.default_origin
            )

            # Most accounts block no one; they get no entry at all.
            if blocks:
                snapshot.entries[account.id] = AccountBlockCacheEntry(
                    id=account.id,
                    handle=account.handle,
                    display_name=account.display_name,
                    avatar_ref=account.avatar_ref,
                    origin=origin,
                    probabilistic_set=ProbabilisticSet.from_items(blocks),
                    block_count=len(blocks),
                    last_synced_at=self.store.time_fn(),
                )

            metrics.accounts_synced.inc()
            logger.debug(
                f"Synced blocks for {account.handle}"
                + (f" - {len(blocks)} blocks" if blocks else "")
            )
        except Exception as exc:
            self._progress.failed_count += 1
            metrics.account_sync_failures.inc()
            errors.append(f"Failed to sync {account.handle}: {_describe(exc)}")
            logger.warning(f"Error syncing {account.handle}: {_describe(exc)}")

        self._progress.synced_count += 1
        if self._superseded:
            return
        await self.store.update_status(
            synced_count=self._progress.synced_count,
            total_count=self._progress.total_count,
        )

    async def _checkpoint(self, snapshot: CacheSnapshot, errors: list[str], label: str) -> None:
        if self._superseded:
            return
        snapshot.last_full_sync_at = self.store.time_fn()
        if await self._quota.safe_save(snapshot):
            logger.info(f"Saved cache ({label})")
        else:
            logger.error("Failed to save cache after pruning")
            errors.append("Failed to save cache after pruning")

    def _transition_to(self, new_state: SyncState) -> None:
        """
        Transition to a new sync state.

        Raises:
            ValueError: If transition is not allowed.
        """
        if not self._state.can_transition_to(new_state):
            raise ValueError(f"Invalid state transition: {self._state.name} -> {new_state.name}")

        self._state = new_state
        self._progress.state = new_state
