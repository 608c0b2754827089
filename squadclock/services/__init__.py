"""
Services package for the Squad Clock application.

This package contains the match transitions, derived statistics, clock,
persistence and sync services, plus a factory that wires them together.
"""
from .match_transitions import apply_action, create_match, UnknownActionError
from .stint_service import derive_stints, match_summary, season_summary
from .scheduler import Scheduler, ThreadingScheduler
from .clock_service import MatchClock
from .debounce import Debouncer
from .persistence_service import LocalSnapshotStore, RemoteSnapshotStore, PersistenceGateway
from .sync_queue import OfflineSyncQueue, SyncResult
from .snapshot_writer import SnapshotWriter
from .session_service import MatchSession
from .service_factory import ServiceFactory

__all__ = [
    "apply_action", "create_match", "UnknownActionError", "derive_stints",
    "match_summary", "season_summary", "Scheduler", "ThreadingScheduler",
    "MatchClock", "Debouncer", "LocalSnapshotStore", "RemoteSnapshotStore",
    "PersistenceGateway", "OfflineSyncQueue", "SyncResult", "SnapshotWriter",
    "MatchSession", "ServiceFactory",
]
