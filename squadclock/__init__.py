"""
Squad Clock

Tracks who is on the field, for how long, and what they did across a
sequence of matches, and keeps that state in sync between the local device
and a remote store when the connection comes and goes.
"""
from .models import MatchAggregate, PlayerTimeline, AppSnapshot
from .services import MatchSession, OfflineSyncQueue, ServiceFactory, derive_stints
from .utils import fmt_mmss, now_ts, APP_TITLE

__version__ = "1.0.0"

__all__ = [
    "MatchAggregate", "PlayerTimeline", "AppSnapshot", "MatchSession",
    "OfflineSyncQueue", "ServiceFactory", "derive_stints",
    "fmt_mmss", "now_ts", "APP_TITLE",
]
