"""
Utilities package for the Squad Clock application.

This package contains utility functions used throughout the application.
"""
from .time_utils import fmt_mmss, now_ts, now_ms, now_iso, round_minutes
from .log_utils import configure_logging
from .constants import (
    APP_TITLE, STARTING_LINEUP_SIZE, TICK_INTERVAL_SECONDS,
    SAVE_DEBOUNCE_SECONDS, SYNC_SETTLE_SECONDS, STORAGE_KEY,
    STATUS_SETUP, STATUS_LIVE, STATUS_COMPLETED,
)

__all__ = [
    "fmt_mmss", "now_ts", "now_ms", "now_iso", "round_minutes",
    "configure_logging", "APP_TITLE", "STARTING_LINEUP_SIZE",
    "TICK_INTERVAL_SECONDS", "SAVE_DEBOUNCE_SECONDS", "SYNC_SETTLE_SECONDS",
    "STORAGE_KEY", "STATUS_SETUP", "STATUS_LIVE", "STATUS_COMPLETED",
]
