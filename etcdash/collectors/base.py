"""Base client interface and error taxonomy for the cluster status service."""

from abc import ABC, abstractmethod
from typing import Optional

from ..data.models import ActionKind, ClusterSnapshotSet


class BaseClusterClient(ABC):
    """Abstract base class for cluster API clients.

    The polling scheduler and the action coordinator only depend on this
    interface, so tests and alternative transports can plug in their own
    implementation.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier used in log prefixes."""
        pass

    @abstractmethod
    async def fetch_status(self) -> ClusterSnapshotSet:
        """Fetch the current status of every cluster endpoint.

        Returns:
            The parsed snapshot set, in server response order.

        Raises:
            ApiError: If the call or the payload fails.
        """
        pass

    @abstractmethod
    async def compact(self) -> None:
        """Compact the keyspace history up to the current revision.

        Raises:
            ApiError: If the service does not report success.
        """
        pass

    @abstractmethod
    async def defrag(self) -> None:
        """Defragment the backend database of every endpoint.

        Raises:
            ApiError: If the service does not report success.
        """
        pass

    async def run_action(self, kind: ActionKind) -> None:
        """Dispatch the maintenance call matching ``kind``."""
        if kind is ActionKind.COMPACT:
            await self.compact()
        else:
            await self.defrag()

    def close(self) -> None:
        """Release transport resources. No-op by default."""


class ApiError(Exception):
    """Exception raised when a call to the status service fails."""

    def __init__(self, operation: str, reason: str, cause: Optional[Exception] = None):
        self.operation = operation
        self.reason = reason
        self.cause = cause
        super().__init__(f"[{operation}] {reason}")

    @property
    def user_message(self) -> str:
        """Message suitable for the dashboard error banner."""
        return self.reason


class NetworkUnreachable(ApiError):
    """The request never produced an HTTP response (DNS, refused, timeout)."""


class NonSuccessStatus(ApiError):
    """The service answered with a non-2xx status and no usable error body."""

    def __init__(self, operation: str, status_code: int, cause: Optional[Exception] = None):
        self.status_code = status_code
        super().__init__(operation, f"HTTP {status_code}", cause)


class Malformed(ApiError):
    """The response body did not match the expected shape."""


class ServerReported(ApiError):
    """The service rejected the call and explained why in its error body."""

    def __init__(
        self,
        operation: str,
        message: str,
        status_code: int,
        endpoint: Optional[str] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(operation, message)
