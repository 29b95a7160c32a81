"""Status payload normalization.

Converts the JSON returned by ``GET /api/status`` into the typed snapshot
model. The wire format uses camelCase keys:

    endpoint     -> endpoint_address
    version      -> version
    dbSize       -> db_size_bytes
    dbSizeInUse  -> db_size_in_use_bytes
    leader       -> is_leader

Anything that does not match the shape raises PayloadError; the API client
turns that into a Malformed error.
"""

from __future__ import annotations

from typing import Any, Dict, List

from .models import BYTES_PER_MB, ClusterSnapshotSet, EndpointSnapshot, EMPTY_SNAPSHOT

FIELD_MAP = {
    "endpoint": "endpoint_address",
    "version": "version",
    "dbSize": "db_size_bytes",
    "dbSizeInUse": "db_size_in_use_bytes",
    "leader": "is_leader",
}


class PayloadError(ValueError):
    """Raised when a status payload does not have the expected shape."""


def _require_str(item: Dict[str, Any], key: str, index: int) -> str:
    value = item.get(key)
    if not isinstance(value, str):
        raise PayloadError(f"endpoint #{index}: '{key}' must be a string, got {type(value).__name__}")
    return value


def _require_size(item: Dict[str, Any], key: str, index: int) -> int:
    value = item.get(key)
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise PayloadError(f"endpoint #{index}: '{key}' must be an integer, got {type(value).__name__}")
    if value < 0:
        raise PayloadError(f"endpoint #{index}: '{key}' must not be negative")
    return value


def parse_endpoint(item: Any, index: int = 0) -> EndpointSnapshot:
    """Parse a single endpoint status object."""
    if not isinstance(item, dict):
        raise PayloadError(f"endpoint #{index}: expected an object, got {type(item).__name__}")

    missing = [key for key in FIELD_MAP if key not in item]
    if missing:
        raise PayloadError(f"endpoint #{index}: missing field(s) {', '.join(missing)}")

    address = _require_str(item, "endpoint", index)
    if not address.strip():
        raise PayloadError(f"endpoint #{index}: 'endpoint' must not be empty")

    leader = item.get("leader")
    if not isinstance(leader, bool):
        raise PayloadError(f"endpoint #{index}: 'leader' must be a boolean, got {type(leader).__name__}")

    db_size = _require_size(item, "dbSize", index)
    db_size_in_use = _require_size(item, "dbSizeInUse", index)
    if db_size_in_use > db_size:
        raise PayloadError(
            f"endpoint {address}: dbSizeInUse ({db_size_in_use}) exceeds dbSize ({db_size})"
        )

    return EndpointSnapshot(
        endpoint_address=address,
        version=_require_str(item, "version", index),
        db_size_bytes=db_size,
        db_size_in_use_bytes=db_size_in_use,
        is_leader=leader,
    )


def parse_status_payload(payload: Any) -> ClusterSnapshotSet:
    """Parse the full ``/api/status`` body.

    A JSON ``null`` body means the service knows no endpoints and yields an
    empty set.
    """
    if payload is None:
        return EMPTY_SNAPSHOT
    if not isinstance(payload, list):
        raise PayloadError(f"expected a list of endpoints, got {type(payload).__name__}")

    endpoints: List[EndpointSnapshot] = []
    seen = set()
    for index, item in enumerate(payload):
        endpoint = parse_endpoint(item, index)
        if endpoint.endpoint_address in seen:
            raise PayloadError(f"duplicate endpoint {endpoint.endpoint_address}")
        seen.add(endpoint.endpoint_address)
        endpoints.append(endpoint)
    return ClusterSnapshotSet.of(endpoints)


def endpoint_to_dict(endpoint: EndpointSnapshot) -> Dict[str, Any]:
    """Inverse of parse_endpoint, in wire format."""
    return {wire: getattr(endpoint, attr) for wire, attr in FIELD_MAP.items()}


def bytes_to_mb(size_bytes: int) -> float:
    return size_bytes / BYTES_PER_MB


def format_mb(size_bytes: int) -> str:
    """Format a byte count as megabytes with two decimals, e.g. '2.00 MB'."""
    return f"{bytes_to_mb(size_bytes):.2f} MB"
