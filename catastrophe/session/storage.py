"""
Snapshot Store - File-based persistence for a session snapshot.

The store:
- Keeps one current save per directory
- Writes plain JSON (see session.snapshot)
- Exports timestamped copies for sharing
- Never touches engine state directly; it only reads and writes snapshots

Usage:
    store = SnapshotStore("~/.catastrophe/saves")
    store.save(state)

    state = store.load(definitions)
    if state is None:
        state = GameState.new_game(settings, definitions)
"""

from __future__ import annotations
import json
import logging
from pathlib import Path

from ..engine_core.cards import Card, DeckId, load_definitions
from ..engine_core.state import GameState
from .snapshot import (
    SessionSnapshot,
    SnapshotError,
    from_snapshot,
    parse_snapshot,
    to_snapshot,
)


logger = logging.getLogger(__name__)

SESSION_FILENAME = "catastrophe-cards-session.json"
EXPORT_PREFIX = "catastrophe-cards-save-"


class SnapshotStore:
    """Saves, loads and exports session snapshots under one directory."""

    def __init__(self, directory: str | Path | None = None):
        if directory is None:
            directory = Path.home() / ".catastrophe" / "saves"
        self.directory = Path(directory).expanduser()

        # Ensure save directory exists
        self.directory.mkdir(parents=True, exist_ok=True)

    @property
    def session_path(self) -> Path:
        return self.directory / SESSION_FILENAME

    def save(self, state: GameState) -> SessionSnapshot:
        """Write the current session, replacing any previous save."""
        snapshot = to_snapshot(state)
        self._write(self.session_path, snapshot)
        logger.debug("Saved session to %s", self.session_path)
        return snapshot

    def load(self, definitions: dict[DeckId, list[Card]]) -> GameState | None:
        """
        Load the current session.

        Returns None if there is no save. A corrupt save is logged and
        treated as missing.
        """
        snapshot = self.read_snapshot()
        if snapshot is None:
            return None
        return from_snapshot(snapshot, definitions)

    def read_snapshot(self) -> SessionSnapshot | None:
        if not self.session_path.exists():
            return None
        try:
            return parse_snapshot(self.session_path.read_text(encoding="utf-8"))
        except SnapshotError as e:
            logger.warning("Ignoring unreadable save %s: %s", self.session_path, e)
            return None

    def has_save(self) -> bool:
        return self.session_path.exists()

    def saved_timestamp(self) -> int | None:
        """Timestamp (ms) of the current save, if one can be read."""
        snapshot = self.read_snapshot()
        return snapshot.timestamp if snapshot else None

    def clear(self):
        """Remove the current save."""
        self.session_path.unlink(missing_ok=True)
        logger.info("Cleared saved session in %s", self.directory)

    def export(self, state: GameState) -> Path:
        """Write a timestamped copy of the session and return its path."""
        snapshot = to_snapshot(state)
        path = self.directory / f"{EXPORT_PREFIX}{snapshot.timestamp}.json"
        self._write(path, snapshot)
        logger.info("Exported session to %s", path)
        return path

    def import_file(
        self,
        path: str | Path,
        definitions: dict[DeckId, list[Card]],
    ) -> GameState:
        """
        Load an exported file and make it the current save.

        Raises SnapshotError if the file is not a valid snapshot.
        """
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise SnapshotError(f"Cannot read {path}: {e}") from e
        snapshot = parse_snapshot(text)
        state = from_snapshot(snapshot, definitions)
        self._write(self.session_path, snapshot)
        return state

    def list_exports(self) -> list[Path]:
        """Exported files, oldest first."""
        return sorted(self.directory.glob(f"{EXPORT_PREFIX}*.json"))

    def _write(self, path: Path, snapshot: SessionSnapshot):
        path.write_text(
            snapshot.model_dump_json(by_alias=True, exclude_none=True, indent=2),
            encoding="utf-8",
        )


def deck_filename(deck: DeckId) -> str:
    """File name of a deck's definitions, e.g. individual-traits.json."""
    return deck.title.lower().replace(" ", "-") + ".json"


def load_deck_file(path: str | Path) -> list[Card]:
    """Read one deck's JSON array of card definitions."""
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, list):
        raise ValueError(f"{path} must contain a JSON array of cards")
    return load_definitions(raw)


def load_deck_directory(directory: str | Path) -> dict[DeckId, list[Card]]:
    """
    Load every deck file found in a directory.

    Missing files give an empty deck and are logged.
    """
    directory = Path(directory).expanduser()
    definitions: dict[DeckId, list[Card]] = {}
    for deck in DeckId:
        path = directory / deck_filename(deck)
        if not path.exists():
            logger.warning("No definitions for %s at %s", deck.title, path)
            definitions[deck] = []
            continue
        definitions[deck] = load_deck_file(path)
    return definitions
