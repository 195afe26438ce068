"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between the table UI and the engine.
Card payloads inside requests use the deck-file field names (camelCase);
everything else is snake_case.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has ended
- INVALID_ACTION: The reducer rejected the action
- INVALID_SNAPSHOT: A snapshot could not be parsed or applied
- VALIDATION_ERROR: Deck definitions or request parameters are invalid
- INTERNAL_ERROR: Unexpected failure
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field

from ..engine_core.action import ActionType
from ..session.snapshot import CardModel, SettingsModel


# =============================================================================
# Enums
# =============================================================================

class SessionStatus(str, Enum):
    """Session status values."""
    ACTIVE = "active"
    GAME_OVER = "game_over"
    ENDED = "ended"


class ActionKind(str, Enum):
    """Action names accepted by the generic action endpoint."""
    DRAW = ActionType.DRAW.value
    REVEAL = ActionType.REVEAL.value
    SELECT = ActionType.SELECT.value
    PIN = ActionType.PIN.value
    UNPIN = ActionType.UNPIN.value
    SHUFFLE = ActionType.SHUFFLE.value
    ASSIGN_PLAYER = ActionType.ASSIGN_PLAYER.value
    ASSIGN_COMMUNITY = ActionType.ASSIGN_COMMUNITY.value
    FORM_COMMUNITY = ActionType.FORM_COMMUNITY.value
    ADD_MEMBERS = ActionType.ADD_MEMBERS.value
    REMOVE_MEMBERS = ActionType.REMOVE_MEMBERS.value
    RENAME_COMMUNITY = ActionType.RENAME_COMMUNITY.value
    DISBAND_COMMUNITY = ActionType.DISBAND_COMMUNITY.value
    SET_PLAYER_RESOURCES = ActionType.SET_PLAYER_RESOURCES.value
    SET_COMMUNITY_RESOURCES = ActionType.SET_COMMUNITY_RESOURCES.value
    PAY_UPKEEP = ActionType.PAY_UPKEEP.value
    TOGGLE_BADGE = ActionType.TOGGLE_BADGE.value
    UPDATE_SETTINGS = ActionType.UPDATE_SETTINGS.value
    ADJUST_COUNTER = ActionType.ADJUST_COUNTER.value
    RESET_COUNTER = ActionType.RESET_COUNTER.value
    BUY_CIVILIZATION = ActionType.BUY_CIVILIZATION.value
    BUY_EXTINCTION_DECREASE = ActionType.BUY_EXTINCTION_DECREASE.value
    COMPROMISE = ActionType.COMPROMISE.value
    NEXT_TURN = ActionType.NEXT_TURN.value
    PREVIOUS_TURN = ActionType.PREVIOUS_TURN.value
    RESET_TURN = ActionType.RESET_TURN.value
    NEXT_TURN_ACTION = ActionType.NEXT_TURN_ACTION.value
    PREVIOUS_TURN_ACTION = ActionType.PREVIOUS_TURN_ACTION.value
    NEW_GAME = ActionType.NEW_GAME.value


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    INVALID_ACTION = "INVALID_ACTION"
    INVALID_SNAPSHOT = "INVALID_SNAPSHOT"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class CardInfo(BaseModel):
    """Card information for display."""
    card_id: str
    name: str
    flavor: str = ""
    effect: str = ""
    card_type: Optional[str] = None
    trait: Optional[str] = Field(None, description="Resolved trait effect, if any")
    trait_cost: Optional[int] = None
    cost: Optional[str] = None
    effect1: Optional[str] = None
    effect2: Optional[str] = None


class PinnedCardInfo(BaseModel):
    """A pinned card and who holds it."""
    pinned_id: str
    deck: str
    card: CardInfo
    player_name: Optional[str] = None
    community_id: Optional[str] = None


class DeckInfo(BaseModel):
    """Pools of one deck."""
    title: str
    kind: str = Field(description="draw or reveal")
    available_count: int = 0
    discarded_count: int = 0
    revealed: list[CardInfo] = Field(default_factory=list)
    drawn: Optional[CardInfo] = None
    can_reveal: bool = False


class PlayerInfo(BaseModel):
    """Player information for display."""
    name: str
    resources: int = 0
    community_id: Optional[str] = None
    is_current_turn: bool = False
    traits: list[str] = Field(default_factory=list)
    badges: list[str] = Field(default_factory=list)
    is_wanderer: bool = False


class CommunityInfo(BaseModel):
    """Community information for display."""
    community_id: str
    name: str
    resources: int = 0
    members: list[str] = Field(default_factory=list)
    is_current_turn: bool = False
    traits: list[str] = Field(default_factory=list)
    upkeep_cost: int = 0


class CountersInfo(BaseModel):
    extinction: int = 0
    civilization: int = 0
    round: int = 0
    extinction_max: int = 20
    civilization_max: int = 20


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Request to create a new game session."""
    settings: SettingsModel = Field(default_factory=SettingsModel)
    decks: Optional[dict[str, list[CardModel]]] = Field(
        None,
        description="Card definitions keyed by deck title; omitted decks use the server's",
    )
    random_seed: Optional[int] = Field(None, description="Seed for reproducible shuffles")


class ActionRequest(BaseModel):
    """A single table event for the reducer."""
    action: ActionKind
    deck: Optional[str] = Field(None, description="Deck title")
    card_id: Optional[str] = None
    pinned_id: Optional[str] = None
    player_name: Optional[str] = None
    community_id: Optional[str] = None
    community_name: Optional[str] = None
    member_names: list[str] = Field(default_factory=list)
    opt_out_names: list[str] = Field(
        default_factory=list, description="Joining players who keep their balance"
    )
    waived_names: list[str] = Field(
        default_factory=list, description="Joining players who pay no join cost"
    )
    counter: Optional[str] = Field(None, description="extinction, civilization or round")
    amount: int = 0
    badge: Optional[str] = Field(
        None, description="missing_turn, missing_resources or extra_event_card"
    )
    settings: Optional[SettingsModel] = Field(None, description="Replacement settings")
    renames: dict[str, str] = Field(
        default_factory=dict, description="Current player name -> new name"
    )


class ValidateDeckRequest(BaseModel):
    """Deck definitions to check before starting a game."""
    deck: str = Field(..., description="Deck title")
    cards: list[CardModel] = Field(default_factory=list)


class RollRequest(BaseModel):
    player_name: Optional[str] = Field(None, description="Roller; Lucky players roll twice")


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class GameStateResponse(BaseModel):
    """Complete table state for display."""
    session_id: str
    status: SessionStatus
    counters: CountersInfo
    players: list[PlayerInfo] = Field(default_factory=list)
    communities: list[CommunityInfo] = Field(default_factory=list)
    pinned: list[PinnedCardInfo] = Field(default_factory=list)
    decks: list[DeckInfo] = Field(default_factory=list)
    turn_order: list[str] = Field(default_factory=list)
    current_turn: Optional[str] = None
    current_turn_action: Optional[str] = None
    turn_assist: bool = False
    outcome: Optional[str] = None
    api_version: str = "v1"


class SessionResponse(BaseModel):
    """Response containing session information."""
    session_id: str
    status: SessionStatus
    players: list[str] = Field(default_factory=list)
    current_turn: Optional[str] = None
    round: int = 0
    action_count: int = 0
    created_at: float = 0.0
    warnings: list[str] = Field(default_factory=list)
    api_version: str = "v1"


class ActionResponse(BaseModel):
    """Result of applying an action."""
    session_id: str
    success: bool
    changes: list[str] = Field(default_factory=list)
    noop: Optional[str] = Field(None, description="Why nothing changed, if nothing did")
    pinned_card: Optional[PinnedCardInfo] = None
    game_state: Optional[GameStateResponse] = None
    api_version: str = "v1"


class CostsResponse(BaseModel):
    """Trait-adjusted costs for the current turn."""
    session_id: str
    current_turn: Optional[str] = None
    trait_draw_cost: int
    revealed_trait_costs: dict[str, int] = Field(
        default_factory=dict, description="Individual trait card id -> cost"
    )
    community_trait_costs: dict[str, int] = Field(
        default_factory=dict, description="Community id -> community trait cost"
    )
    upkeep_costs: dict[str, int] = Field(
        default_factory=dict, description="Community id -> upkeep cost"
    )
    join_cost_waived: list[str] = Field(
        default_factory=list, description="Players whose join cost is waived"
    )


class RollResponse(BaseModel):
    session_id: str
    value: int = Field(..., ge=0, le=2)
    lucky: bool = False


class ValidationResponse(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class SessionListResponse(BaseModel):
    """Response listing active sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
