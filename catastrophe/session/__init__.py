"""
Session Module - Manages game sessions and their persistence.

A session represents one play-through at a table:
- Created when the host starts a game
- Holds the current GameState
- Applies every table event through the reducer
- Optionally saved to disk after each change

The saved form is a SessionSnapshot (plain JSON, camelCase keys).
"""

from .manager import SessionManager, Session, SessionState
from .snapshot import (
    SessionSnapshot,
    SettingsModel,
    SnapshotError,
    SNAPSHOT_VERSION,
    to_snapshot,
    from_snapshot,
    dump_snapshot,
    parse_snapshot,
    load_snapshot,
)
from .storage import SnapshotStore, load_deck_directory, load_deck_file, deck_filename

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
    "SessionSnapshot",
    "SettingsModel",
    "SnapshotError",
    "SNAPSHOT_VERSION",
    "to_snapshot",
    "from_snapshot",
    "dump_snapshot",
    "parse_snapshot",
    "load_snapshot",
    "SnapshotStore",
    "load_deck_directory",
    "load_deck_file",
    "deck_filename",
]
