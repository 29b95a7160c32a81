"""Cluster status service client and its error taxonomy."""

from .base import (
    ApiError,
    BaseClusterClient,
    Malformed,
    NetworkUnreachable,
    NonSuccessStatus,
    ServerReported,
)
from .api_client import ClusterApiClient

__all__ = [
    "ApiError",
    "BaseClusterClient",
    "ClusterApiClient",
    "Malformed",
    "NetworkUnreachable",
    "NonSuccessStatus",
    "ServerReported",
]
