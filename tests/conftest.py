"""Pytest configuration and shared fixtures."""

import asyncio

import pytest

from etcdash.collectors.base import BaseClusterClient
from etcdash.data.models import ActionKind, ClusterSnapshotSet, EndpointSnapshot
from etcdash.data.normalization import parse_status_payload


class FakeClusterClient(BaseClusterClient):
    """In-memory stand-in for the status service.

    status_results items may be a ClusterSnapshotSet, an exception to raise,
    or a (delay_seconds, result) tuple. Once the list is exhausted,
    default_status is returned.
    """

    def __init__(self, default_status=None):
        self.default_status = default_status or ClusterSnapshotSet()
        self.status_results = []
        self.action_results = {ActionKind.COMPACT: [], ActionKind.DEFRAG: []}
        self.action_gate = None  # asyncio.Event holding actions until set
        self.status_gate = None
        self.calls = []
        self.closed = False

    @property
    def name(self):
        return "fake"

    async def fetch_status(self):
        self.calls.append("status")
        result = self.status_results.pop(0) if self.status_results else self.default_status
        if self.status_gate is not None:
            await self.status_gate.wait()
        if isinstance(result, tuple):
            delay, result = result
            await asyncio.sleep(delay)
        if isinstance(result, BaseException):
            raise result
        return result

    async def compact(self):
        await self._action(ActionKind.COMPACT)

    async def defrag(self):
        await self._action(ActionKind.DEFRAG)

    async def _action(self, kind):
        self.calls.append(kind.value.lower())
        if self.action_gate is not None:
            await self.action_gate.wait()
        results = self.action_results[kind]
        result = results.pop(0) if results else None
        if isinstance(result, BaseException):
            raise result

    def close(self):
        self.closed = True


@pytest.fixture
def sample_status_payload():
    """Body of GET /api/status for a single-member cluster."""
    return [
        {
            "endpoint": "10.0.0.1:2379",
            "version": "3.5.9",
            "dbSize": 2097152,
            "dbSizeInUse": 1048576,
            "leader": True,
        }
    ]


@pytest.fixture
def three_node_payload():
    """Body of GET /api/status for a three-member cluster."""
    return [
        {
            "endpoint": "10.0.0.1:2379",
            "version": "3.5.9",
            "dbSize": 25 * 1024 * 1024,
            "dbSizeInUse": 5 * 1024 * 1024,
            "leader": False,
        },
        {
            "endpoint": "10.0.0.2:2379",
            "version": "3.5.9",
            "dbSize": 8 * 1024 * 1024,
            "dbSizeInUse": 7 * 1024 * 1024,
            "leader": True,
        },
        {
            "endpoint": "10.0.0.3:2379",
            "version": "3.5.9",
            "dbSize": 8 * 1024 * 1024,
            "dbSizeInUse": 6 * 1024 * 1024,
            "leader": False,
        },
    ]


@pytest.fixture
def sample_snapshot(sample_status_payload):
    return parse_status_payload(sample_status_payload)


@pytest.fixture
def other_snapshot():
    return ClusterSnapshotSet.of([
        EndpointSnapshot("10.0.0.9:2379", "3.5.10", 4096, 2048, True),
    ])


@pytest.fixture
def fake_client(sample_snapshot):
    return FakeClusterClient(default_status=sample_snapshot)
