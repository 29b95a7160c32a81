"""Data models for etcd cluster dashboard state.

This module defines the core data structures the dashboard engine works with,
following these semantic principles:

1. REPLACE, NEVER MUTATE
   - Snapshots are frozen dataclasses, swapped wholesale on each poll
   - DashboardState is immutable; the store publishes a new instance per change

2. EXPLICIT UNITS
   - Storage sizes are byte counts (integers)
   - MB conversions exist only as display helpers (1 MB = 1,048,576 bytes)

3. NORMALIZED ACTION STATES
   - Action kind: COMPACT, DEFRAG
   - Action phase: IDLE, REQUESTING, SUCCEEDED, FAILED (+ REJECTED as outcome)
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, List, Optional, Tuple

BYTES_PER_MB = 1024 * 1024


# =============================================================================
# Action Enumerations
# =============================================================================


class ActionKind(str, Enum):
    """Destructive maintenance operation exposed by the status service."""

    COMPACT = "COMPACT"  # Reclaim historical revisions
    DEFRAG = "DEFRAG"  # Reclaim free space inside the backend file

    @property
    def path(self) -> str:
        return "/api/compact" if self is ActionKind.COMPACT else "/api/defrag"

    @property
    def verb(self) -> str:
        return "compact" if self is ActionKind.COMPACT else "defragment"

    @property
    def past_tense(self) -> str:
        return "compacted" if self is ActionKind.COMPACT else "defragmented"


class ActionPhase(str, Enum):
    """Lifecycle phase of a maintenance action."""

    IDLE = "IDLE"
    REQUESTING = "REQUESTING"  # Call dispatched, response pending
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    REJECTED = "REJECTED"  # Outcome only: another action was outstanding


# =============================================================================
# Cluster Snapshot Model
# =============================================================================


@dataclass(frozen=True)
class EndpointSnapshot:
    """Status facts for one cluster member at the last successful poll.

    Units:
    - db_size_bytes, db_size_in_use_bytes: bytes (int)
    """

    endpoint_address: str  # host:port
    version: str
    db_size_bytes: int  # Unit: bytes (allocated)
    db_size_in_use_bytes: int  # Unit: bytes (live)
    is_leader: bool = False

    @property
    def db_size_mb(self) -> float:
        return self.db_size_bytes / BYTES_PER_MB

    @property
    def db_size_in_use_mb(self) -> float:
        return self.db_size_in_use_bytes / BYTES_PER_MB

    @property
    def fragmented_bytes(self) -> int:
        """Bytes a defragmentation could reclaim."""
        return self.db_size_bytes - self.db_size_in_use_bytes

    @property
    def fragmentation_percent(self) -> float:
        """Share of the allocated size that is not in use (0-100)."""
        if self.db_size_bytes == 0:
            return 0.0
        return (self.fragmented_bytes / self.db_size_bytes) * 100


@dataclass(frozen=True)
class ClusterSnapshotSet:
    """Ordered set of endpoint snapshots, in server response order."""

    endpoints: Tuple[EndpointSnapshot, ...] = ()

    @classmethod
    def of(cls, endpoints: Iterable[EndpointSnapshot]) -> "ClusterSnapshotSet":
        return cls(tuple(endpoints))

    def __iter__(self) -> Iterator[EndpointSnapshot]:
        return iter(self.endpoints)

    def __len__(self) -> int:
        return len(self.endpoints)

    def __bool__(self) -> bool:
        return bool(self.endpoints)

    def get(self, endpoint_address: str) -> Optional[EndpointSnapshot]:
        return next((e for e in self.endpoints if e.endpoint_address == endpoint_address), None)

    def leaders(self) -> List[EndpointSnapshot]:
        return [e for e in self.endpoints if e.is_leader]

    def versions(self) -> List[str]:
        """Distinct versions in first-seen order."""
        seen: List[str] = []
        for endpoint in self.endpoints:
            if endpoint.version not in seen:
                seen.append(endpoint.version)
        return seen

    @property
    def total_db_size_bytes(self) -> int:
        return sum(e.db_size_bytes for e in self.endpoints)


EMPTY_SNAPSHOT = ClusterSnapshotSet()


# =============================================================================
# Engine State
# =============================================================================


@dataclass(frozen=True)
class ActionRequest:
    """A maintenance call in progress. Exists only for one action."""

    kind: ActionKind
    started_at: float = field(default_factory=time.time)


@dataclass(frozen=True)
class ActionOutcome:
    """Result of run_compact()/run_defrag() as seen by the caller."""

    kind: ActionKind
    phase: ActionPhase  # SUCCEEDED, FAILED or REJECTED
    message: str

    @property
    def ok(self) -> bool:
        return self.phase is ActionPhase.SUCCEEDED


@dataclass(frozen=True)
class DashboardState:
    """Everything the presentation layer reads.

    is_busy stays True from request dispatch until its response or failure
    has been resolved, for every outstanding poll or action.
    """

    snapshot: ClusterSnapshotSet = EMPTY_SNAPSHOT
    is_busy: bool = False
    last_error: Optional[str] = None
    last_refresh_ts: Optional[float] = None  # Unit: epoch seconds
    active_action: Optional[ActionRequest] = None
