"""Dashboard engine facade.

Wires the API client, state store, polling scheduler and action coordinator
together and exposes the surface the presentation layer uses.
"""

from __future__ import annotations

from typing import Callable, Optional

from ..collectors.api_client import ClusterApiClient
from ..collectors.base import BaseClusterClient
from ..data.models import ActionOutcome, DashboardState
from ..data.store import StateStore, Subscriber
from .actions import Acknowledge, ActionCoordinator
from .config import Config
from .workers import PollingScheduler


class DashboardEngine:
    """Polling-and-action engine behind the dashboard.

    Surface: ``state``, ``subscribe()``, ``start()``, ``stop()``,
    ``refresh_now()``, ``run_compact()``, ``run_defrag()``, ``close()``.
    """

    def __init__(
        self,
        client: BaseClusterClient,
        *,
        interval_seconds: float = 10,
        acknowledge: Optional[Acknowledge] = None,
        store: Optional[StateStore] = None,
    ):
        self.client = client
        self.store = store or StateStore()
        self.scheduler = PollingScheduler(client, self.store, interval_seconds=interval_seconds)
        self.actions = ActionCoordinator(client, self.store, self.scheduler, acknowledge=acknowledge)

    @classmethod
    def from_config(cls, config: Config, acknowledge: Optional[Acknowledge] = None) -> "DashboardEngine":
        client = ClusterApiClient(
            base_url=config.api.base_url,
            timeout=config.api.timeout,
            verify=config.api.verify,
            ca_bundle=config.api.ca_bundle,
        )
        return cls(client, interval_seconds=config.polling.interval, acknowledge=acknowledge)

    @property
    def state(self) -> DashboardState:
        return self.store.state

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        return self.store.subscribe(callback)

    def start(self) -> None:
        self.scheduler.start()

    def stop(self) -> None:
        self.scheduler.stop()

    async def refresh_now(self) -> bool:
        return await self.scheduler.refresh_now()

    async def run_compact(self) -> ActionOutcome:
        return await self.actions.run_compact()

    async def run_defrag(self) -> ActionOutcome:
        return await self.actions.run_defrag()

    async def close(self) -> None:
        """Stop polling and tear down.

        The store is disposed first, so refreshes still in flight complete
        but their results are dropped.
        """
        self.scheduler.stop()
        self.store.dispose()
        await self.scheduler.wait_idle()
        self.client.close()

    async def __aenter__(self) -> "DashboardEngine":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
