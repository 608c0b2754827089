"""
Utility functions for the Squad Clock application.

This module contains common time helpers used throughout the application.
"""
import time
from datetime import datetime, timezone


def fmt_mmss(seconds: int) -> str:
    """
    Format seconds as MM:SS string.

    Args:
        seconds: Number of seconds to format

    Returns:
        Formatted time string in MM:SS format

    Example:
        >>> fmt_mmss(90)
        '01:30'
        >>> fmt_mmss(3661)
        '61:01'
    """
    m = seconds // 60
    s = seconds % 60
    return f"{m:02d}:{s:02d}"


def now_ts() -> float:
    """
    Get current timestamp in epoch seconds.

    Returns:
        Current time as floating point epoch seconds
    """
    return time.time()


def now_ms() -> int:
    """Current time in integer epoch milliseconds (used for match ids)."""
    return int(now_ts() * 1000)


def now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def round_minutes(seconds: int) -> int:
    """Round a number of seconds to whole minutes, halves rounding up."""
    return int(seconds / 60 + 0.5)
