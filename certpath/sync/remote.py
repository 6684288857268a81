"""
Remote snapshot sync.

Fetches a content snapshot (the same document format as a file import) from
a configured URL and feeds it to the engine's reconciler:

- 404 means "nothing published yet": an idle outcome, not a failure
- network errors, other non-2xx responses and malformed bodies leave all
  state untouched and put the status into ERROR; ``sync_now()`` retries
- the fetch completes before any state is modified

Start-up sync runs once on a daemon thread so the CLI is never blocked by a
slow endpoint.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

import httpx
from loguru import logger

from certpath.config import Settings, get_settings
from certpath.core.errors import CertpathError, SyncError
from certpath.sync.reconciler import ReconcileReport

if TYPE_CHECKING:
    from certpath.engine import ContentEngine


class RemoteSnapshotClient:
    """HTTP client for the published snapshot document."""

    def __init__(
        self,
        url: str,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        self.url = url
        self.timeout = timeout
        self._transport = transport

    def fetch(self) -> dict[str, Any] | list | None:
        """
        Download and parse the snapshot.

        Returns:
            Parsed JSON, or None when the server answers 404

        Raises:
            SyncError: network failure, non-2xx status or invalid JSON
        """
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport, follow_redirects=True) as client:
                response = client.get(self.url, headers={"Accept": "application/json"})
        except httpx.RequestError as e:
            logger.error("Snapshot fetch failed: {}", e)
            raise SyncError(f"Could not reach {self.url}: {e}") from e

        if response.status_code == 404:
            logger.info("No remote snapshot published at {}", self.url)
            return None
        if not response.is_success:
            raise SyncError(f"Snapshot fetch failed with HTTP {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise SyncError(f"Snapshot is not valid JSON: {e}") from e


class SyncState(str, Enum):
    IDLE = "idle"
    SYNCING = "syncing"
    SYNCED = "synced"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass
class SyncStatus:
    """Current sync status."""

    state: SyncState = SyncState.IDLE
    last_sync_at: datetime | None = None
    last_report: ReconcileReport | None = None
    error_message: str | None = None
    total_syncs: int = 0


@dataclass
class RemoteSync:
    """
    Sync manager binding a snapshot client to an engine.

    Usage:
        remote = RemoteSync(engine, RemoteSnapshotClient(settings.sync_url))
        remote.start()          # start-up sync in the background
        ...
        remote.sync_now()       # manual retry, blocking
    """

    engine: ContentEngine
    client: RemoteSnapshotClient
    on_sync_complete: Callable[[SyncStatus], None] | None = None

    _status: SyncStatus = field(default_factory=SyncStatus)
    _thread: threading.Thread | None = field(default=None, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    @property
    def status(self) -> SyncStatus:
        return self._status

    def start(self) -> threading.Thread:
        """Run one sync on a daemon thread and return the thread."""
        if self._thread is not None and self._thread.is_alive():
            logger.warning("Remote sync already running")
            return self._thread
        self._thread = threading.Thread(target=self.sync_now, name="certpath-remote-sync", daemon=True)
        self._thread.start()
        return self._thread

    def wait(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def sync_now(self) -> SyncStatus:
        """
        Fetch and reconcile (blocking).

        Never raises for sync problems; the outcome is reported through the
        returned status.
        """
        if not self._lock.acquire(blocking=False):
            logger.debug("Sync already in progress - skipping")
            return self._status

        try:
            self._status.state = SyncState.SYNCING
            self._status.error_message = None

            try:
                document = self.client.fetch()
                if document is None:
                    self._status.state = SyncState.NOT_FOUND
                else:
                    self._status.last_report = self.engine.import_snapshot(document)
                    self._status.state = SyncState.SYNCED
                    logger.info("Remote sync complete: {}", self._status.last_report.summary())
            except CertpathError as exc:
                logger.error("Remote sync error: {}", exc)
                self._status.state = SyncState.ERROR
                self._status.error_message = str(exc)
            except Exception as exc:
                logger.exception("Unexpected remote sync failure")
                self._status.state = SyncState.ERROR
                self._status.error_message = f"Unexpected error: {exc}"

            self._status.last_sync_at = datetime.now()
            self._status.total_syncs += 1
        finally:
            self._lock.release()

        if self.on_sync_complete:
            self.on_sync_complete(self._status)
        return self._status

    def status_line(self) -> str:
        """Short status string, e.g. ``"Sync: synced 2m ago (3 topics)"``."""
        status = self._status
        if status.state is SyncState.SYNCING:
            return "Sync: syncing..."
        if status.last_sync_at is None:
            return "Sync: idle"

        age = (datetime.now() - status.last_sync_at).total_seconds()
        if age < 60:
            age_str = "just now"
        elif age < 3600:
            age_str = f"{int(age / 60)}m ago"
        else:
            age_str = f"{int(age / 3600)}h ago"

        if status.state is SyncState.SYNCED and status.last_report is not None:
            return f"Sync: synced {age_str} ({status.last_report.topics_merged} topics)"
        if status.state is SyncState.NOT_FOUND:
            return f"Sync: no remote snapshot ({age_str})"
        return f"Sync: failed {age_str} - {status.error_message}"


def create_remote_sync(engine: ContentEngine, settings: Settings | None = None) -> RemoteSync | None:
    """Sync manager for the configured URL, None when sync is not configured."""
    settings = settings or get_settings()
    if not settings.has_sync_configured():
        return None
    client = RemoteSnapshotClient(settings.sync_url, timeout=settings.sync_timeout_seconds)
    return RemoteSync(engine=engine, client=client)
