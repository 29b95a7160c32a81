"""Data layer - models, payload normalization, and the state store."""

from .store import StateStore
from .models import (
    ActionKind,
    ActionOutcome,
    ActionPhase,
    ActionRequest,
    ClusterSnapshotSet,
    DashboardState,
    EndpointSnapshot,
)

__all__ = [
    "StateStore",
    "ActionKind",
    "ActionOutcome",
    "ActionPhase",
    "ActionRequest",
    "ClusterSnapshotSet",
    "DashboardState",
    "EndpointSnapshot",
]
