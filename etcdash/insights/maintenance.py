"""Maintenance hints derived from the latest cluster snapshot.

Looks at one snapshot only (no history) and points out:
- Endpoints whose backend file is mostly free space (defrag candidates)
- Missing or conflicting leadership
- Version skew across members
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from ..data.models import BYTES_PER_MB, ActionKind, ClusterSnapshotSet, EndpointSnapshot
from ..data.normalization import format_mb

DEFAULT_FRAGMENTATION_THRESHOLD = 50.0  # percent
DEFAULT_MIN_RECLAIMABLE_BYTES = BYTES_PER_MB


@dataclass
class MaintenanceHint:
    """A suggestion or warning about the current cluster state."""

    severity: str  # 'WARNING', 'INFO', 'SUGGESTION'
    message: str
    endpoint: Optional[str] = None
    suggested_action: Optional[ActionKind] = None


class MaintenanceAdvisor:
    """Generates hints for the dashboard from a snapshot."""

    def __init__(
        self,
        fragmentation_threshold: float = DEFAULT_FRAGMENTATION_THRESHOLD,
        min_reclaimable_bytes: int = DEFAULT_MIN_RECLAIMABLE_BYTES,
    ):
        self.fragmentation_threshold = fragmentation_threshold
        self.min_reclaimable_bytes = min_reclaimable_bytes

    def hints(self, snapshot: ClusterSnapshotSet) -> List[MaintenanceHint]:
        if not snapshot:
            return []

        hints: List[MaintenanceHint] = []
        hints.extend(self._leadership_hints(snapshot))
        hints.extend(self._version_hints(snapshot))
        for endpoint in snapshot:
            hint = self._fragmentation_hint(endpoint)
            if hint:
                hints.append(hint)
        return hints

    def _leadership_hints(self, snapshot: ClusterSnapshotSet) -> List[MaintenanceHint]:
        leaders = snapshot.leaders()
        if not leaders:
            return [MaintenanceHint("WARNING", "No endpoint reports itself as leader")]
        if len(leaders) > 1:
            names = ", ".join(e.endpoint_address for e in leaders)
            return [MaintenanceHint("WARNING", f"Multiple endpoints report leadership: {names}")]
        return []

    def _version_hints(self, snapshot: ClusterSnapshotSet) -> List[MaintenanceHint]:
        versions = snapshot.versions()
        if len(versions) > 1:
            return [MaintenanceHint("INFO", f"Members run different versions: {', '.join(versions)}")]
        return []

    def _fragmentation_hint(self, endpoint: EndpointSnapshot) -> Optional[MaintenanceHint]:
        if endpoint.fragmented_bytes < self.min_reclaimable_bytes:
            return None
        if endpoint.fragmentation_percent < self.fragmentation_threshold:
            return None
        return MaintenanceHint(
            "SUGGESTION",
            (
                f"{endpoint.endpoint_address}: {endpoint.fragmentation_percent:.0f}% of the database "
                f"is free space ({format_mb(endpoint.fragmented_bytes)} reclaimable); consider a defrag"
            ),
            endpoint=endpoint.endpoint_address,
            suggested_action=ActionKind.DEFRAG,
        )
