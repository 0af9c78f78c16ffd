"""Sync service state machine."""

from __future__ import annotations

from enum import Enum, auto


class SyncState(Enum):
    """
    In-process state of the sync orchestrator.

    State Machine Diagram
    ---------------------
    ::

        IDLE <--> RUNNING

    Transitions
    -----------
    IDLE -> RUNNING
        - Triggered when: A pass acquires the lock
        - Action: Mark the persisted status running

    RUNNING -> IDLE
        - Triggered when: The pass completes or aborts
        - Action: Persist final counts and errors

    The persisted `SyncStatus.running` flag mirrors this state across
    process restarts. A process that dies in RUNNING leaves the flag set;
    the next pass treats it as stale once its heartbeat ages out.
    """

    IDLE = auto()
    """No pass in flight. Triggers start a new pass."""

    RUNNING = auto()
    """A pass holds the lock. Further triggers are dropped."""

    def can_transition_to(self, target: SyncState) -> bool:
        """
        Check if transition to target state is valid.

        Args:
            target: The proposed target state.

        Returns:
            True if the transition is allowed by the state machine rules.
        """
        return target in _VALID_TRANSITIONS.get(self, set())

    @property
    def is_running(self) -> bool:
        """Whether a pass is in flight."""
        return self == SyncState.RUNNING


_VALID_TRANSITIONS: dict[SyncState, set[SyncState]] = {
    SyncState.IDLE: {SyncState.RUNNING},
    SyncState.RUNNING: {SyncState.IDLE},
}
"""Valid state transitions for the sync state machine."""
