"""SyncQueueItem model: one snapshot save waiting to reach the remote store."""
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict

from ..utils import now_iso


@dataclass(frozen=True)
class SyncQueueItem:
    """
    A buffered save.

    Attributes:
        key: Destination key in the remote store
        payload: Snapshot payload to write
        id: Unique item id (uuid4 hex)
        enqueued_at: ISO timestamp of when the item was queued
    """
    key: str
    payload: Dict[str, Any]
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    enqueued_at: str = field(default_factory=now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.enqueued_at,
            "key": self.key,
            "payload": self.payload,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SyncQueueItem':
        return cls(
            key=str(data["key"]),
            payload=data["payload"],
            id=str(data["id"]),
            enqueued_at=str(data.get("timestamp") or ""),
        )
