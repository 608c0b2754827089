"""
Single outbound channel for snapshot writes.

Both the debounced "save current snapshot" path and queue replays go through
``SnapshotWriter`` under one lock, so a direct save can never land at the
remote store in between (or ahead of) older queued saves for the same key.
"""
import logging
import threading
from typing import Any, Dict, Optional

from .persistence_service import PersistenceGateway
from .projection import match_player_rows, match_row
from .sync_queue import OfflineSyncQueue, SyncResult
from ..models import MatchAggregate, SyncQueueItem
from ..utils import STORAGE_KEY

logger = logging.getLogger(__name__)

OUTCOME_SAVED = "saved"
OUTCOME_QUEUED = "queued"


class SnapshotWriter:
    """
    Writes snapshots locally, then remotely when possible, queueing otherwise.

    Every payload is stamped with a monotonic ``revision`` before it leaves,
    continuing from the highest revision seen in local storage.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        queue: OfflineSyncQueue,
        key: str = STORAGE_KEY,
        team_id: Optional[str] = None,
    ):
        self.gateway = gateway
        self.queue = queue
        self.key = key
        self.team_id = team_id
        self._lock = threading.Lock()
        self._revision = 0
        self.queue.on_reconnect = self.drain

    @property
    def revision(self) -> int:
        return self._revision

    def load(self) -> Optional[Dict[str, Any]]:
        """
        Load the newest snapshot from either store.

        The local cache holds every save, including ones still queued for
        the remote store, so it wins whenever its revision is higher. On a
        tie the remote copy is used.
        """
        remote = self.gateway.load_remote(self.key)
        local = self.gateway.load_local(self.key)
        remote_revision = _revision_of(remote)
        local_revision = _revision_of(local)

        if local is not None and (remote is None or local_revision > remote_revision):
            if remote is not None:
                logger.info("Local snapshot (revision %d) is newer than remote (revision %d)",
                            local_revision, remote_revision)
            payload = local
        else:
            payload = remote
        self._revision = max(self._revision, remote_revision, local_revision)
        return payload

    def write(self, snapshot: Dict[str, Any]) -> str:
        """
        Persist a snapshot.

        Returns:
            ``"saved"`` if the write reached every configured store,
            ``"queued"`` if the remote write was deferred to the sync queue
        """
        with self._lock:
            self._revision += 1
            payload = dict(snapshot, revision=self._revision)

            if not self.gateway.save_local(self.key, payload):
                logger.error("Local save of revision %d failed", self._revision)

            if not self.gateway.has_remote:
                return OUTCOME_SAVED

            if not self.queue.is_online:
                self.queue.enqueue(self.key, payload)
                return OUTCOME_QUEUED

            if self.queue.pending_count:
                # Older saves are still waiting; keep them ahead of this one.
                # Stop at the first failure so a dead remote costs one call per save.
                self.queue.enqueue(self.key, payload)
                result = self.queue.drain(self._apply, stop_on_failure=True)
                if not result.success or result.failed:
                    return OUTCOME_QUEUED
                return OUTCOME_SAVED

            if self.gateway.save_remote(self.key, payload):
                return OUTCOME_SAVED

            logger.warning("Remote save of revision %d failed; queueing", self._revision)
            self.queue.enqueue(self.key, payload)
            return OUTCOME_QUEUED

    def drain(self) -> SyncResult:
        """Replay queued saves to the remote store."""
        with self._lock:
            return self._drain_locked()

    def _drain_locked(self) -> SyncResult:
        return self.queue.drain(self._apply)

    def _apply(self, item: SyncQueueItem) -> bool:
        return self.gateway.save_remote(item.key, item.payload)

    def publish_match(self, match: MatchAggregate) -> bool:
        """Push the tabular mirror of ``match`` to the remote store."""
        remote = self.gateway.remote
        if remote is None or not self.queue.is_online:
            return False
        with self._lock:
            return remote.save_match_rows(match_row(match, self.team_id), match_player_rows(match))


def _revision_of(payload: Any) -> int:
    if not isinstance(payload, dict):
        return 0
    try:
        return int(payload.get("revision") or 0)
    except (TypeError, ValueError):
        logger.warning("Ignoring malformed revision %r", payload.get("revision"))
        return 0
