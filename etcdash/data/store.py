"""Dashboard state store.

Single authoritative holder of DashboardState. Written only by the polling
scheduler and the action coordinator, read by the presentation layer.
"""

from __future__ import annotations

import dataclasses
import time
from typing import Callable, List, Optional

from .models import ActionRequest, ClusterSnapshotSet, DashboardState

Subscriber = Callable[[DashboardState], None]


class StateStore:
    """Holds the current DashboardState and pushes changes to subscribers.

    Every change publishes a new immutable DashboardState, so a reader sees
    either the old or the new state and never a half-applied one.

    Busy tracking counts outstanding requests: is_busy is True while at
    least one poll or action has been dispatched and not yet resolved.
    Poll results are sequenced by dispatch order; a result older than the
    newest one already applied is dropped.
    """

    def __init__(self, initial: Optional[DashboardState] = None):
        self._state = initial or DashboardState()
        self._subscribers: List[Subscriber] = []
        self._outstanding = 0
        self._poll_seq = 0
        self._applied_poll_seq = 0
        self._alive = True

    @property
    def state(self) -> DashboardState:
        return self._state

    @property
    def alive(self) -> bool:
        return self._alive

    @property
    def outstanding(self) -> int:
        return self._outstanding

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback invoked with the new state on every change.

        Returns:
            A function that removes the subscription.
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def update(self, **changes) -> bool:
        """Replace the state with ``changes`` applied and notify subscribers.

        Returns:
            False if the store has been disposed and the write was ignored.
        """
        if not self._alive:
            return False
        self._state = dataclasses.replace(self._state, **changes)
        self._notify()
        return True

    def _notify(self) -> None:
        state = self._state
        for callback in list(self._subscribers):
            try:
                callback(state)
            except Exception as exc:
                print(f"[store] Subscriber {callback!r} failed: {exc}", flush=True)

    # --- Poll tracking ---

    def begin_poll(self) -> int:
        """Record a poll dispatch and return its sequence number."""
        self._poll_seq += 1
        self._outstanding += 1
        self.update(is_busy=True)
        return self._poll_seq

    def finish_poll(
        self,
        seq: int,
        snapshot: Optional[ClusterSnapshotSet] = None,
        error: Optional[str] = None,
    ) -> bool:
        """Resolve a poll started with begin_poll().

        Exactly one of ``snapshot`` or ``error`` is expected. A failure
        leaves the snapshot untouched.

        Returns:
            True if the result was applied, False if it was stale or the
            store is disposed.
        """
        self._outstanding = max(0, self._outstanding - 1)
        changes = {"is_busy": self._outstanding > 0}

        fresh = seq > self._applied_poll_seq
        if fresh:
            self._applied_poll_seq = seq
            if error is not None:
                changes["last_error"] = error
            else:
                changes["snapshot"] = snapshot if snapshot is not None else self._state.snapshot
                changes["last_error"] = None
                changes["last_refresh_ts"] = time.time()
        elif self._alive:
            print(
                f"[store] Dropping result of poll #{seq}; poll #{self._applied_poll_seq} is newer",
                flush=True,
            )

        return self.update(**changes) and fresh

    def abandon_poll(self, seq: int) -> None:
        """Release a poll that will never resolve, without applying anything."""
        self._outstanding = max(0, self._outstanding - 1)
        self.update(is_busy=self._outstanding > 0)

    # --- Action tracking ---

    def begin_action(self, request: ActionRequest) -> None:
        self._outstanding += 1
        self.update(is_busy=True, active_action=request)

    def finish_action(self, error: Optional[str] = None) -> bool:
        """Resolve the current action; ``error`` is written when given."""
        self._outstanding = max(0, self._outstanding - 1)
        changes = {"is_busy": self._outstanding > 0, "active_action": None}
        if error is not None:
            changes["last_error"] = error
        return self.update(**changes)

    # --- Lifecycle ---

    def dispose(self) -> None:
        """Tear the store down. Later writes are ignored."""
        self._alive = False
        self._subscribers.clear()
