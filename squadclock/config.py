import os

from .utils.constants import (
    REMOTE_TIMEOUT_SECONDS, SAVE_DEBOUNCE_SECONDS, SYNC_SETTLE_SECONDS,
    STORAGE_KEY as DEFAULT_STORAGE_KEY,
)


class Config:
    # Local durable storage (snapshots, sync queue)
    DATA_DIR = os.environ.get('SQUADCLOCK_DATA_DIR') or os.path.join(os.path.expanduser('~'), '.squadclock')
    STORAGE_KEY = os.environ.get('SQUADCLOCK_STORAGE_KEY') or DEFAULT_STORAGE_KEY
    # Remote store; leave the URL unset to run local-only
    REMOTE_URL = os.environ.get('SQUADCLOCK_REMOTE_URL') or None
    REMOTE_KEY = os.environ.get('SQUADCLOCK_REMOTE_KEY') or None
    REMOTE_TIMEOUT_SEC = float(os.environ.get('SQUADCLOCK_REMOTE_TIMEOUT_SEC', str(REMOTE_TIMEOUT_SECONDS)))
    TEAM_ID = os.environ.get('SQUADCLOCK_TEAM_ID') or None
    # Quiet period before a snapshot save (ms)
    SAVE_DEBOUNCE_MS = int(os.environ.get('SQUADCLOCK_SAVE_DEBOUNCE_MS', str(int(SAVE_DEBOUNCE_SECONDS * 1000))))
    # Delay after reconnecting before the sync queue drains (sec)
    SYNC_SETTLE_SEC = float(os.environ.get('SQUADCLOCK_SYNC_SETTLE_SEC', str(SYNC_SETTLE_SECONDS)))
    # Save or drop a pending snapshot when the session closes
    FLUSH_ON_CLOSE = os.environ.get('SQUADCLOCK_FLUSH_ON_CLOSE', '1') not in ('0', 'false', 'False')
    LOG_LEVEL = os.environ.get('SQUADCLOCK_LOG_LEVEL', 'INFO')
