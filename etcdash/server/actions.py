"""Maintenance action coordination.

Runs compaction and defragmentation one at a time. Each action moves through

    IDLE -> REQUESTING -> SUCCEEDED | FAILED -> IDLE

and every busy-flag and error write happens in ``_transition``. Background
polls are never blocked by an action.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

from ..collectors.base import ApiError, BaseClusterClient, ServerReported
from ..data.models import ActionKind, ActionOutcome, ActionPhase, ActionRequest
from ..data.store import StateStore
from .workers import PollingScheduler, _log

Acknowledge = Callable[[str], None]


def success_message(kind: ActionKind) -> str:
    return f"Database {kind.past_tense} successfully"


def failure_message(kind: ActionKind, exc: Exception) -> str:
    """Message written to last_error when an action fails.

    A message reported by the service is shown as-is.
    """
    if isinstance(exc, ServerReported):
        return exc.message
    reason = exc.reason if isinstance(exc, ApiError) else str(exc)
    return f"Failed to {kind.verb} database: {reason}"


class ActionCoordinator:
    """Serializes compact/defrag calls and refreshes after a success.

    Only one action of either kind may be REQUESTING at a time; a second
    request is rejected before any network call.
    """

    def __init__(
        self,
        client: BaseClusterClient,
        store: StateStore,
        scheduler: PollingScheduler,
        acknowledge: Optional[Acknowledge] = None,
    ):
        self.client = client
        self.store = store
        self.scheduler = scheduler
        self.acknowledge = acknowledge
        self._phases: Dict[ActionKind, ActionPhase] = {kind: ActionPhase.IDLE for kind in ActionKind}
        self._current: Optional[ActionRequest] = None

    @property
    def current(self) -> Optional[ActionRequest]:
        return self._current

    def phase(self, kind: ActionKind) -> ActionPhase:
        return self._phases[kind]

    async def run_compact(self) -> ActionOutcome:
        return await self.run(ActionKind.COMPACT)

    async def run_defrag(self) -> ActionOutcome:
        return await self.run(ActionKind.DEFRAG)

    async def run(self, kind: ActionKind) -> ActionOutcome:
        """Run one maintenance action to completion.

        Returns:
            ActionOutcome with phase SUCCEEDED, FAILED or REJECTED.
        """
        if self._current is not None:
            msg = (
                f"Cannot {kind.verb} database: "
                f"{self._current.kind.value.lower()} is still in progress"
            )
            _log(f"[actions] {msg}")
            return ActionOutcome(kind, ActionPhase.REJECTED, msg)

        request = ActionRequest(kind)
        self._transition(request, ActionPhase.REQUESTING)
        try:
            await self.client.run_action(kind)
        except Exception as exc:
            # Any failure, including unexpected ones, ends in FAILED so the
            # busy flag is always released.
            message = failure_message(kind, exc)
            _log(f"[actions] {kind.value.lower()} failed: {exc}")
            self._transition(request, ActionPhase.FAILED, message)
            return ActionOutcome(kind, ActionPhase.FAILED, message)
        except BaseException:
            self._transition(request, ActionPhase.FAILED, f"Failed to {kind.verb} database: cancelled")
            raise

        message = success_message(kind)
        self._transition(request, ActionPhase.SUCCEEDED, message)
        # No refresh once the dashboard has been torn down
        if self.store.alive:
            await self.scheduler.refresh_now()
        return ActionOutcome(kind, ActionPhase.SUCCEEDED, message)

    def _transition(self, request: ActionRequest, phase: ActionPhase, message: Optional[str] = None) -> None:
        """Apply one state machine step and its side effects on the store."""
        kind = request.kind
        if phase is ActionPhase.REQUESTING:
            self._current = request
            self._phases[kind] = phase
            self.store.begin_action(request)
            _log(f"[actions] {kind.value.lower()} requested")
            return

        self._phases[kind] = phase
        succeeded = phase is ActionPhase.SUCCEEDED
        self.store.finish_action(error=None if succeeded else message)

        # Terminal phases fall back to IDLE once the store has been updated
        self._phases[kind] = ActionPhase.IDLE
        self._current = None

        if succeeded:
            _log(f"[actions] {message}")
            if self.acknowledge is not None:
                self.acknowledge(message)
