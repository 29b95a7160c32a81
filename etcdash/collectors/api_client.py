"""HTTP client for the etcd cluster status service.

Issues the three calls the dashboard needs:

    GET  /api/status   -> list of endpoint status objects
    POST /api/compact  -> compaction up to the current revision
    POST /api/defrag   -> defragmentation of every endpoint

Blocking requests calls run on a worker thread via asyncio.to_thread, so
awaiting them suspends the caller without blocking the event loop.
"""

from __future__ import annotations

import asyncio
import threading
from typing import Any, Optional
from urllib.parse import urljoin

import requests
import urllib3
from requests.adapters import HTTPAdapter

from ..data.models import ActionKind, ClusterSnapshotSet
from ..data.normalization import PayloadError, parse_status_payload
from .base import (
    BaseClusterClient,
    Malformed,
    NetworkUnreachable,
    NonSuccessStatus,
    ServerReported,
)

try:
    import certifi
    DEFAULT_CA_BUNDLE = certifi.where()
except Exception:
    DEFAULT_CA_BUNDLE = True


DEFAULT_BASE_URL = "http://localhost:8080"
STATUS_PATH = "/api/status"


class ClusterApiClient(BaseClusterClient):
    """Client for the status service in front of an etcd cluster.

    No retries and no caching at this layer; the scheduler's next tick or the
    user re-triggering an action is the only recovery.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10,
        verify: bool = True,
        ca_bundle: Optional[str] = None,
    ):
        self.base_url = base_url.rstrip("/") + "/"
        self.timeout = timeout
        self._verify = self._determine_verify(not verify, ca_bundle)
        self._session: Optional[requests.Session] = None
        self._session_lock = threading.Lock()
        self._closed = False

        if self._verify is False:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)

    @property
    def name(self) -> str:
        return "api"

    def __enter__(self) -> "ClusterApiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _determine_verify(self, insecure: bool, ca_bundle: Optional[str]):
        """Determine SSL verification setting."""
        if insecure:
            return False
        if ca_bundle:
            return ca_bundle
        return DEFAULT_CA_BUNDLE

    def _get_session(self) -> Optional[requests.Session]:
        """Get or create the pooled session, or None once closed.

        The adapter is mounted with max_retries=0: every call is issued once.
        Polls and actions run on separate worker threads and share one session.
        """
        with self._session_lock:
            if self._closed:
                return None
            if self._session is None:
                session = requests.Session()
                adapter = HTTPAdapter(max_retries=0, pool_connections=2, pool_maxsize=4)
                session.mount("https://", adapter)
                session.mount("http://", adapter)
                session.verify = self._verify
                session.headers.update({"User-Agent": "etcdash/1.0", "Accept": "application/json"})
                self._session = session
            return self._session

    def close(self) -> None:
        """Close the session and release resources."""
        with self._session_lock:
            self._closed = True
            session, self._session = self._session, None
        if session is not None:
            session.close()

    @staticmethod
    def _is_success(resp: requests.Response) -> bool:
        # 1xx and 3xx are not success either.
        return 200 <= resp.status_code < 300

    def url_for(self, path: str) -> str:
        return urljoin(self.base_url, path.lstrip("/"))

    # --- Blocking transport (runs on a worker thread) ---

    def _send(self, operation: str, method: str, path: str) -> requests.Response:
        session = self._get_session()
        if session is None:
            raise NetworkUnreachable(operation, "Client is closed")
        try:
            return session.request(method, self.url_for(path), timeout=self.timeout)
        except requests.exceptions.SSLError as e:
            raise NetworkUnreachable(operation, f"TLS/SSL error: {e}", e)
        except requests.exceptions.Timeout as e:
            raise NetworkUnreachable(operation, f"Timed out after {self.timeout}s", e)
        except requests.exceptions.RequestException as e:
            raise NetworkUnreachable(operation, f"Unable to reach {self.base_url}: {e}", e)

    @staticmethod
    def _json_or_none(resp: requests.Response) -> Any:
        try:
            return resp.json()
        except ValueError:
            return None

    def _fetch_status_sync(self) -> ClusterSnapshotSet:
        resp = self._send("status", "GET", STATUS_PATH)
        if not self._is_success(resp):
            raise NonSuccessStatus("status", resp.status_code)
        try:
            payload = resp.json()
        except ValueError as e:
            raise Malformed("status", "Response body is not valid JSON", e)
        try:
            return parse_status_payload(payload)
        except PayloadError as e:
            raise Malformed("status", f"Unexpected status payload: {e}", e)

    def _run_action_sync(self, kind: ActionKind) -> None:
        operation = kind.value.lower()
        resp = self._send(operation, "POST", kind.path)
        if self._is_success(resp):
            return

        body = self._json_or_none(resp)
        message = body.get("error") if isinstance(body, dict) else None
        if isinstance(message, str) and message:
            endpoint = body.get("endpoint")
            raise ServerReported(
                operation,
                message,
                resp.status_code,
                endpoint if isinstance(endpoint, str) else None,
            )
        raise NonSuccessStatus(operation, resp.status_code)

    # --- Async surface ---

    async def fetch_status(self) -> ClusterSnapshotSet:
        return await asyncio.to_thread(self._fetch_status_sync)

    async def compact(self) -> None:
        await asyncio.to_thread(self._run_action_sync, ActionKind.COMPACT)

    async def defrag(self) -> None:
        await asyncio.to_thread(self._run_action_sync, ActionKind.DEFRAG)
