"""
Session Manager - Creates and manages game sessions.

LIFECYCLE:
1. Host loads settings and deck definitions
2. Host starts a session -> fresh GameState (in-memory)
3. During play every table event becomes an Action applied by the reducer
4. The session is saved through a SnapshotStore when one is attached
5. Session ends -> removed from memory (saved files are kept)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
import logging
import random
import time
import uuid

from ..engine_core.cards import Card, DeckId
from ..engine_core.action import Action, ActionResult
from ..engine_core.reducer import Reducer
from ..engine_core.state import GameState, GameSettings
from .storage import SnapshotStore


logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a game session."""
    ACTIVE = "active"  # Game in progress
    GAME_OVER = "game_over"  # Outcome decided
    ENDED = "ended"  # Host closed the session


@dataclass
class Session:
    """
    One table's game.

    Holds the canonical GameState; the reducer produces each next state.
    """
    session_id: str
    game_state: GameState
    created_at: float

    state: SessionState = SessionState.ACTIVE
    reducer: Reducer = field(default_factory=Reducer)
    store: SnapshotStore | None = None

    action_count: int = 0
    last_changes: list[str] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def is_active(self) -> bool:
        """Check if session is still accepting actions."""
        return self.state != SessionState.ENDED

    def apply(self, action: Action) -> ActionResult:
        """
        Apply an action and keep the resulting state.

        Failed actions leave the session untouched.
        """
        result = self.reducer.apply(self.game_state, action)
        if not result.success:
            return result

        self.game_state = result.new_state
        self.action_count += 1
        self.last_changes = list(result.state_changes)
        self.state = (
            SessionState.GAME_OVER if self.game_state.outcome else SessionState.ACTIVE
        )
        if self.store is not None:
            self.store.save(self.game_state)
        return result

    def replace_state(self, game_state: GameState):
        """Swap in a state loaded from elsewhere (an imported snapshot)."""
        self.game_state = game_state
        self.last_changes = ["Loaded saved game"]
        self.state = SessionState.GAME_OVER if game_state.outcome else SessionState.ACTIVE
        if self.store is not None:
            self.store.save(self.game_state)


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions from settings and definitions
    - Track active sessions
    - Clean up stale sessions
    """

    def __init__(self, save_dir: str | None = None):
        self._sessions: dict[str, Session] = {}
        self.save_dir = save_dir

    def create_session(
        self,
        settings: GameSettings,
        definitions: dict[DeckId, list[Card]],
        seed: int | None = None,
        game_state: GameState | None = None,
    ) -> Session:
        """
        Create a new game session.

        Args:
            settings: Table settings (players, costs, counter limits)
            definitions: Card definitions per deck
            seed: Optional seed for the session's random source
            game_state: Start from this state instead of a new game

        Returns:
            New active Session
        """
        session_id = str(uuid.uuid4())
        if game_state is None:
            game_state = GameState.new_game(settings, definitions)

        store = None
        if self.save_dir:
            store = SnapshotStore(f"{self.save_dir}/{session_id}")

        session = Session(
            session_id=session_id,
            game_state=game_state,
            created_at=time.time(),
            reducer=Reducer(rng=random.Random(seed)),
            store=store,
        )
        if store is not None:
            store.save(game_state)

        self._sessions[session_id] = session
        logger.info(
            "Created session %s with %d players", session_id, len(game_state.players)
        )
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str) -> bool:
        """
        End a session and drop it from memory.

        Returns False if no such session exists.
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.state = SessionState.ENDED
        logger.info("Ended session %s after %d actions", session_id, session.action_count)
        return True

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def cleanup_stale_sessions(self, max_age_seconds: int = 86400) -> int:
        """
        End sessions older than max_age.

        Returns the number of sessions removed.
        """
        current_time = time.time()
        to_remove = [
            session_id
            for session_id, session in self._sessions.items()
            if current_time - session.created_at > max_age_seconds
        ]
        for session_id in to_remove:
            self.end_session(session_id)
        return len(to_remove)
