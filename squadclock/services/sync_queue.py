"""
Offline sync queue for the Squad Clock application.

Snapshot saves made while the device is offline are buffered here, persisted
to local storage on every change, and replayed in enqueue order once the
connection is back. Delivery is at-least-once: an item leaves the queue only
after the remote write succeeded, and a failed item is simply retried on the
next drain (no backoff, no attempt cap, no expiry).

Replays are blind overwrites at the receiver. Each payload produced by
``SnapshotWriter`` carries a monotonic ``revision`` so a receiver that cares
can drop a replayed snapshot older than the one it already holds.
"""
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from .persistence_service import LocalSnapshotStore
from .scheduler import ScheduledCall, Scheduler, ThreadingScheduler
from ..models import SyncQueueItem
from ..utils import SYNC_SETTLE_SECONDS, now_iso
from ..utils.constants import LAST_SYNC_KEY, SYNC_QUEUE_KEY

logger = logging.getLogger(__name__)

REASON_OFFLINE = "offline"
REASON_ALREADY_SYNCING = "already_syncing"
REASON_QUEUE_EMPTY = "queue_empty"


@dataclass
class SyncResult:
    """Outcome of one drain attempt."""
    success: bool
    reason: Optional[str] = None
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)


class OfflineSyncQueue:
    """
    FIFO of pending snapshot saves with durable local backing.

    Attributes:
        is_online: Last connectivity signal received
        is_syncing: True while a drain is in progress
        last_sync_time: When the last drain finished (ISO string)
    """

    def __init__(
        self,
        store: LocalSnapshotStore,
        scheduler: Optional[Scheduler] = None,
        settle_seconds: float = SYNC_SETTLE_SECONDS,
        on_reconnect: Optional[Callable[[], Any]] = None,
        online: bool = True,
    ):
        self._store = store
        self._scheduler = scheduler or ThreadingScheduler()
        self._settle_seconds = settle_seconds
        self.on_reconnect = on_reconnect
        self._lock = threading.Lock()
        self._items: List[SyncQueueItem] = []
        self._settle_call: Optional[ScheduledCall] = None
        self.is_online = online
        self.is_syncing = False
        self.last_sync_time: Optional[str] = None
        self._load()

    # ------------------------------------------------------------------
    # Durable state
    # ------------------------------------------------------------------
    def _load(self) -> None:
        raw = self._store.load_snapshot(SYNC_QUEUE_KEY)
        if raw is not None:
            try:
                self._items = [SyncQueueItem.from_dict(entry) for entry in raw]
            except (TypeError, KeyError, ValueError, AttributeError) as e:
                logger.error("Discarding unreadable sync queue: %s", e)
                self._items = []
            else:
                logger.info("Loaded %d pending sync item(s)", len(self._items))

        last_sync = self._store.load_snapshot(LAST_SYNC_KEY)
        if isinstance(last_sync, str):
            try:
                datetime.fromisoformat(last_sync)
                self.last_sync_time = last_sync
            except ValueError:
                logger.warning("Ignoring malformed last sync time %r", last_sync)

    def _persist(self) -> None:
        if self._items:
            if not self._store.save_snapshot(SYNC_QUEUE_KEY, [i.to_dict() for i in self._items]):
                logger.error("Sync queue could not be persisted; %d item(s) only in memory",
                             len(self._items))
        else:
            self._store.delete(SYNC_QUEUE_KEY)

    # ------------------------------------------------------------------
    # Queue operations
    # ------------------------------------------------------------------
    @property
    def items(self) -> List[SyncQueueItem]:
        with self._lock:
            return list(self._items)

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._items)

    def enqueue(self, key: str, payload: Dict[str, Any]) -> SyncQueueItem:
        """Append a save to the queue and persist the queue immediately."""
        item = SyncQueueItem(key=key, payload=payload)
        with self._lock:
            self._items.append(item)
            self._persist()
        logger.info("Queued %s for sync (%d pending)", key, self.pending_count)
        return item

    def clear(self) -> None:
        """Drop every pending item. Anything not yet synced is lost."""
        with self._lock:
            dropped = len(self._items)
            self._items = []
            self._persist()
        logger.warning("Sync queue cleared; %d pending item(s) dropped", dropped)

    def drain(
        self, apply_fn: Callable[[SyncQueueItem], Any], stop_on_failure: bool = False
    ) -> SyncResult:
        """
        Replay queued items in order.

        ``apply_fn`` fails an item by raising or by returning ``False``.
        Succeeded items are removed by id; failed items stay queued in their
        original order. Items enqueued while the drain runs are kept. With
        ``stop_on_failure`` the items after the first failure are left queued
        without being attempted and counted as ``skipped``.

        Returns:
            A SyncResult; ``success`` is False with a ``reason`` when the
            drain was skipped
        """
        with self._lock:
            if not self.is_online:
                return SyncResult(False, REASON_OFFLINE)
            if self.is_syncing:
                return SyncResult(False, REASON_ALREADY_SYNCING)
            if not self._items:
                return SyncResult(False, REASON_QUEUE_EMPTY)
            self.is_syncing = True
            batch = list(self._items)

        result = SyncResult(True, total=len(batch))
        succeeded_ids = set()
        try:
            logger.info("Syncing %d item(s)", len(batch))
            for index, item in enumerate(batch):
                try:
                    if apply_fn(item) is False:
                        raise RuntimeError("remote store rejected the write")
                except Exception as e:
                    logger.warning("Sync failed for item %s: %s", item.id, e)
                    result.failed += 1
                    result.errors.append({"item": item.id, "error": str(e)})
                    if stop_on_failure:
                        result.skipped = len(batch) - index - 1
                        break
                else:
                    result.succeeded += 1
                    succeeded_ids.add(item.id)

            with self._lock:
                if succeeded_ids:
                    self._items = [i for i in self._items if i.id not in succeeded_ids]
                    self._persist()
                self.last_sync_time = now_iso()
                self._store.save_snapshot(LAST_SYNC_KEY, self.last_sync_time)
        finally:
            with self._lock:
                self.is_syncing = False

        logger.info("Sync complete: %d succeeded, %d failed, %d skipped",
                    result.succeeded, result.failed, result.skipped)
        return result

    # ------------------------------------------------------------------
    # Connectivity
    # ------------------------------------------------------------------
    def set_online(self, online: bool) -> None:
        """
        Record a connectivity signal. Coming back online schedules a drain
        after the settle delay; going offline cancels a pending one.
        """
        with self._lock:
            was_online = self.is_online
            self.is_online = online
            if self._settle_call is not None:
                self._settle_call.cancel()
                self._settle_call = None
            if online and not was_online:
                self._settle_call = self._scheduler.call_later(
                    self._settle_seconds, self._settled
                )

        if online and not was_online:
            logger.info("Connection restored; syncing in %.1fs", self._settle_seconds)
        elif was_online and not online:
            logger.info("Connection lost; saves will be queued")

    def _settled(self) -> None:
        with self._lock:
            self._settle_call = None
            if not self.is_online:
                return
        if self.on_reconnect is not None:
            self.on_reconnect()

    def status(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "is_online": self.is_online,
                "is_syncing": self.is_syncing,
                "pending_count": len(self._items),
                "last_sync_time": self.last_sync_time,
            }
