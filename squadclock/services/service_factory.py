"""
Service Factory for wiring the Squad Clock services together.

This module builds the persistence gateway, sync queue, snapshot writer and
match session from a configuration object, so callers and tests get a fully
connected session from one place.
"""
from typing import Any, Optional

from .persistence_service import LocalSnapshotStore, PersistenceGateway, RemoteSnapshotStore
from .scheduler import Scheduler
from .session_service import MatchSession
from .snapshot_writer import SnapshotWriter
from .sync_queue import OfflineSyncQueue
from ..config import Config


class ServiceFactory:
    """
    Factory for creating service instances with their dependencies injected.

    Args:
        config: Object exposing the ``Config`` attributes (a Config subclass
            or any object with the same names)
        scheduler: Scheduler shared by the clock, debouncer and settle delay
    """

    def __init__(self, config: Any = Config, scheduler: Optional[Scheduler] = None):
        self.config = config
        self.scheduler = scheduler
        self._local_store: Optional[LocalSnapshotStore] = None
        self._gateway: Optional[PersistenceGateway] = None
        self._queue: Optional[OfflineSyncQueue] = None

    def create_remote_store(self) -> Optional[RemoteSnapshotStore]:
        if not self.config.REMOTE_URL:
            return None
        return RemoteSnapshotStore(
            self.config.REMOTE_URL,
            api_key=self.config.REMOTE_KEY,
            timeout=self.config.REMOTE_TIMEOUT_SEC,
        )

    def create_writer(self) -> SnapshotWriter:
        return SnapshotWriter(
            self._get_gateway(),
            self._get_queue(),
            key=self.config.STORAGE_KEY,
            team_id=self.config.TEAM_ID,
        )

    def create_session(self, load: bool = True) -> MatchSession:
        """
        Create a MatchSession with its writer, queue and stores.

        Args:
            load: Restore the last saved snapshot before returning
        """
        session = MatchSession(
            self.create_writer(),
            scheduler=self.scheduler,
            save_delay=self.config.SAVE_DEBOUNCE_MS / 1000.0,
            flush_on_close=self.config.FLUSH_ON_CLOSE,
        )
        if load:
            session.load()
        return session

    def _get_local_store(self) -> LocalSnapshotStore:
        """Get singleton local store."""
        if self._local_store is None:
            self._local_store = LocalSnapshotStore(self.config.DATA_DIR)
        return self._local_store

    def _get_gateway(self) -> PersistenceGateway:
        """Get singleton persistence gateway."""
        if self._gateway is None:
            self._gateway = PersistenceGateway(self._get_local_store(), self.create_remote_store())
        return self._gateway

    def _get_queue(self) -> OfflineSyncQueue:
        """Get singleton sync queue."""
        if self._queue is None:
            self._queue = OfflineSyncQueue(
                self._get_local_store(),
                scheduler=self.scheduler,
                settle_seconds=self.config.SYNC_SETTLE_SEC,
            )
        return self._queue
