"""Plain-text rendering of the dashboard state for the console."""

from __future__ import annotations

import datetime as dt
from typing import List, Optional

from ..data.models import DashboardState, EndpointSnapshot
from ..data.normalization import format_mb
from ..insights.maintenance import MaintenanceAdvisor


def render_card(endpoint: EndpointSnapshot) -> List[str]:
    return [
        endpoint.endpoint_address,
        f"  Version: {endpoint.version}",
        f"  DB Size: {format_mb(endpoint.db_size_bytes)}",
        f"  DB Size In Use: {format_mb(endpoint.db_size_in_use_bytes)}",
        f"  Leader: {'Yes' if endpoint.is_leader else 'No'}",
    ]


def render_state(
    state: DashboardState,
    title: str = "etcd Cluster Manager",
    advisor: Optional[MaintenanceAdvisor] = None,
) -> str:
    """Render the whole dashboard: header, error banner, cards, hints."""
    lines = [title, "=" * len(title)]

    status = []
    if state.is_busy:
        status.append("loading...")
    if state.active_action is not None:
        status.append(f"{state.active_action.kind.value.lower()} in progress")
    if state.last_refresh_ts is not None:
        updated = dt.datetime.fromtimestamp(state.last_refresh_ts).strftime("%H:%M:%S")
        status.append(f"updated {updated}")
    if status:
        lines.append(" | ".join(status))

    if state.last_error:
        lines.extend(["", f"ERROR: {state.last_error}"])

    if not state.snapshot:
        lines.extend(["", "No endpoints."])
    for endpoint in state.snapshot:
        lines.append("")
        lines.extend(render_card(endpoint))

    if advisor is not None:
        hints = advisor.hints(state.snapshot)
        if hints:
            lines.append("")
            lines.extend(f"[{hint.severity}] {hint.message}" for hint in hints)

    return "\n".join(lines)
