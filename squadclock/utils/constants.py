"""
Constants for the Squad Clock match tracker.

This module contains configuration constants used throughout the application.
"""

# Application metadata
APP_TITLE = "Squad Clock"

# Lineup
STARTING_LINEUP_SIZE = 11  # first N squad members start by default

# Clock and persistence timing
TICK_INTERVAL_SECONDS = 1.0
SAVE_DEBOUNCE_SECONDS = 0.5
SYNC_SETTLE_SECONDS = 2.0
REMOTE_TIMEOUT_SECONDS = 10.0

# Storage keys
STORAGE_KEY = "soccer-tracker-data"
SYNC_QUEUE_KEY = "offline_sync_queue"
LAST_SYNC_KEY = "last_sync_time"
REMOTE_STATE_TABLE = "app_state"

# Defaults for a fresh install
DEFAULT_TEAM_TITLE = "U10 Academy"
DEFAULT_VENUE = "home"
DEFAULT_SQUAD = [
    "Apaarwar", "Ethan", "Jaibir (JB)", "Jacob", "Jake", "Liam",
    "Nash", "Ronnie", "Ruben", "Tyler", "Viraaj", "Zully",
]

# Match status values as they appear on the wire
STATUS_SETUP = "setup"
STATUS_LIVE = "live"
STATUS_COMPLETED = "completed"

# Stats and score fields that transitions may adjust
PLAYER_STATS = ("goals", "assists")
SCORE_FIELDS = ("team_goals", "opponent_goals")
