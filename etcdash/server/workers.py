"""Background polling for cluster status.

Handles periodic status refresh on the asyncio event loop and writes the
results into the dashboard state store.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Set

from ..collectors.base import ApiError, BaseClusterClient
from ..data.store import StateStore

DEFAULT_POLL_INTERVAL = 10
POLL_FAILURE_PREFIX = "Failed to fetch endpoints status"


def _log(msg: str) -> None:
    """Print with flush for reliable output from background tasks."""
    print(msg, flush=True)


class PollingScheduler:
    """Drives periodic status refreshes.

    Ticks are anchored to the start time (start + n * interval), so manual
    refreshes never shift the timer phase. A refresh is dispatched on every
    tick even if an earlier one is still in flight; the store orders the
    results by dispatch sequence.

    Use as an async context manager to guarantee the timer is released:

        async with PollingScheduler(client, store) as poller:
            ...
    """

    def __init__(
        self,
        client: BaseClusterClient,
        store: StateStore,
        interval_seconds: float = DEFAULT_POLL_INTERVAL,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.client = client
        self.store = store
        self.interval = interval_seconds
        self._timer: Optional[asyncio.Task] = None
        self._inflight: Set[asyncio.Task] = set()
        self.refresh_count = 0

    @property
    def running(self) -> bool:
        return self._timer is not None

    async def __aenter__(self) -> "PollingScheduler":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.stop()

    def start(self) -> None:
        """Refresh once now, then every ``interval`` seconds.

        Must be called from a running event loop. No-op when already running.
        """
        if self._timer is not None:
            return
        loop = asyncio.get_running_loop()
        _log(f"[poller] Starting (interval={self.interval}s)")
        self._spawn_refresh()
        self._timer = loop.create_task(self._tick_forever(loop.time()), name="etcdash-poll-timer")

    def stop(self) -> None:
        """Cancel the timer. No timer-driven refresh starts after this returns.

        Refreshes already in flight are left to complete.
        """
        timer, self._timer = self._timer, None
        if timer is None:
            return
        timer.cancel()
        _log("[poller] Stopped")

    async def _tick_forever(self, started_at: float) -> None:
        loop = asyncio.get_running_loop()
        next_tick = started_at
        while True:
            next_tick += self.interval
            # After a stall, skip missed ticks but keep the original phase
            while next_tick <= loop.time():
                next_tick += self.interval
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            if self._timer is None:
                return
            self._spawn_refresh()

    def _spawn_refresh(self) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self.refresh_now())
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    async def refresh_now(self) -> bool:
        """Perform one refresh immediately.

        Failures are written to the store as last_error; the snapshot is
        left untouched.

        Returns:
            True if a fresh snapshot was applied.
        """
        self.refresh_count += 1
        seq = self.store.begin_poll()
        try:
            snapshot = await self.client.fetch_status()
        except ApiError as exc:
            _log(f"[poller] Refresh #{seq} failed: {exc}")
            return self.store.finish_poll(seq, error=f"{POLL_FAILURE_PREFIX}: {exc.user_message}")
        except asyncio.CancelledError:
            self.store.abandon_poll(seq)
            raise
        except Exception as exc:
            _log(f"[poller] Refresh #{seq} raised unexpectedly: {exc!r}")
            return self.store.finish_poll(seq, error=f"{POLL_FAILURE_PREFIX}: {exc}")
        return self.store.finish_poll(seq, snapshot=snapshot)

    async def wait_idle(self) -> None:
        """Wait until every dispatched refresh has resolved."""
        while self._inflight:
            await asyncio.gather(*list(self._inflight), return_exceptions=True)
