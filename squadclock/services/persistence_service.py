"""
Persistence services for the Squad Clock application.

This module handles saving and loading snapshots to the local JSON store and
to the remote store. Both report failure through return values rather than
exceptions; retrying failed remote writes is the sync queue's job.
"""
import json
import logging
import os
import re
import tempfile
from typing import Any, Dict, List, Optional, Protocol

import requests

from ..utils import now_iso
from ..utils.constants import REMOTE_STATE_TABLE, REMOTE_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class SnapshotStore(Protocol):
    """Capability contract shared by the local and remote stores."""

    def save_snapshot(self, key: str, payload: Dict[str, Any]) -> bool:
        """Write ``payload`` under ``key``; True on a durable write."""
        ...

    def load_snapshot(self, key: str) -> Optional[Dict[str, Any]]:
        """Return the payload stored under ``key``, or None if absent/unreadable."""
        ...


class LocalSnapshotStore:
    """
    Durable local storage: one JSON file per key inside ``directory``.

    Writes go to a temporary file that is then renamed over the target, so
    a crash mid-write leaves the previous snapshot intact.
    """

    def __init__(self, directory: str):
        self.directory = directory

    def path_for(self, key: str) -> str:
        safe = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return os.path.join(self.directory, f"{safe}.json")

    def save_snapshot(self, key: str, payload: Any) -> bool:
        """
        Save a payload to its JSON file.

        Args:
            key: Storage key
            payload: JSON-serializable data

        Returns:
            True if the file was written
        """
        file_path = self.path_for(key)
        try:
            # Ensure directory exists
            if self.directory and not os.path.exists(self.directory):
                os.makedirs(self.directory)

            fd, tmp_path = tempfile.mkstemp(dir=self.directory or ".", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(payload, f, indent=2)
                os.replace(tmp_path, file_path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to save %s to %s: %s", key, file_path, e)
            return False
        return True

    def load_snapshot(self, key: str) -> Optional[Any]:
        """
        Load a payload from its JSON file.

        Returns:
            The decoded payload, or None if the file is missing or malformed
        """
        file_path = self.path_for(key)
        if not os.path.exists(file_path):
            return None
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to load %s from %s: %s", key, file_path, e)
            return None

    def delete(self, key: str) -> None:
        file_path = self.path_for(key)
        try:
            os.remove(file_path)
        except FileNotFoundError:
            pass


class RemoteSnapshotStore:
    """
    Remote store speaking the PostgREST dialect (e.g. a hosted Postgres REST
    endpoint). Snapshots live in one table with ``id``, ``data`` and
    ``updated_at`` columns; writes are upserts keyed on ``id``.
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        table: str = REMOTE_STATE_TABLE,
        timeout: float = REMOTE_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.table = table
        self.timeout = timeout
        self.session = session or requests.Session()
        if api_key:
            self.session.headers.update({
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
            })

    def _table_url(self, table: str) -> str:
        return f"{self.base_url}/rest/v1/{table}"

    def _upsert(self, table: str, rows: Any, on_conflict: str) -> bool:
        try:
            response = self.session.post(
                self._table_url(table),
                params={"on_conflict": on_conflict},
                json=rows,
                headers={"Prefer": "resolution=merge-duplicates,return=minimal"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.warning("Remote upsert into %s failed: %s", table, e)
            return False
        return True

    def save_snapshot(self, key: str, payload: Dict[str, Any]) -> bool:
        return self._upsert(
            self.table,
            {"id": key, "data": payload, "updated_at": now_iso()},
            on_conflict="id",
        )

    def load_snapshot(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            response = self.session.get(
                self._table_url(self.table),
                params={"id": f"eq.{key}", "select": "data"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            rows = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.warning("Remote load of %s failed: %s", key, e)
            return None
        if not isinstance(rows, list) or not rows:
            return None
        return rows[0].get("data")

    def save_match_rows(self, match_row: Dict[str, Any], player_rows: List[Dict[str, Any]]) -> bool:
        """Upsert the tabular mirror of one match (see ``projection``)."""
        if not self._upsert("matches", match_row, on_conflict="id"):
            return False
        if not player_rows:
            return True
        return self._upsert("match_players", player_rows, on_conflict="match_id,player_id")


class PersistenceGateway:
    """
    The save/load capabilities the core depends on.

    Saves always go to the local store first; when a remote store is
    configured its outcome decides success. Loads try the remote store and
    fall back to the local cache.
    """

    def __init__(self, local: LocalSnapshotStore, remote: Optional[RemoteSnapshotStore] = None):
        self.local = local
        self.remote = remote

    @property
    def has_remote(self) -> bool:
        return self.remote is not None

    def save_local(self, key: str, payload: Dict[str, Any]) -> bool:
        return self.local.save_snapshot(key, payload)

    def save_remote(self, key: str, payload: Dict[str, Any]) -> bool:
        if self.remote is None:
            return True
        return self.remote.save_snapshot(key, payload)

    def save_snapshot(self, key: str, payload: Dict[str, Any]) -> bool:
        local_ok = self.save_local(key, payload)
        if self.remote is None:
            return local_ok
        return self.save_remote(key, payload)

    def load_local(self, key: str) -> Optional[Dict[str, Any]]:
        return self.local.load_snapshot(key)

    def load_remote(self, key: str) -> Optional[Dict[str, Any]]:
        if self.remote is None:
            return None
        return self.remote.load_snapshot(key)
