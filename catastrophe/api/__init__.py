"""
API Module - Table UI interface.

Exposes the engine via REST API. The table UI:
1. Creates a game session from settings and deck definitions
2. Sends every table event (draw, reveal, pin, form community...)
3. Reads back the table state and trait-adjusted costs
4. Exports and imports snapshots

All state is session-scoped; saves go through the session store.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    ActionRequest,
    ValidateDeckRequest,
    RollRequest,
    # Responses
    SessionResponse,
    GameStateResponse,
    ActionResponse,
    CostsResponse,
    ErrorResponse,
    # Shared
    PlayerInfo,
    CommunityInfo,
    DeckInfo,
    CardInfo,
    PinnedCardInfo,
    # Enums
    ActionKind,
    ErrorCode,
    SessionStatus,
)
from .service import GameService, SessionNotFoundError, RequestError
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "ActionRequest",
    "ValidateDeckRequest",
    "RollRequest",
    # Responses
    "SessionResponse",
    "GameStateResponse",
    "ActionResponse",
    "CostsResponse",
    "ErrorResponse",
    # Shared
    "PlayerInfo",
    "CommunityInfo",
    "DeckInfo",
    "CardInfo",
    "PinnedCardInfo",
    # Enums
    "ActionKind",
    "ErrorCode",
    "SessionStatus",
    # Service
    "GameService",
    "SessionNotFoundError",
    "RequestError",
    "create_app",
]
