"""
Action System - Actions, payloads, and results.

Actions represent:
1. Deck operations (draw, reveal, select, pin, unpin, shuffle)
2. Ledger operations (assign traits, form and edit communities, balances)
3. Player operations (badges, settings and roster edits)
4. Table operations (counters, purchases, turn order, new game)

All state changes flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .cards import DeckId
from .state import BadgeKind, CounterName, GameSettings


class ActionType(Enum):
    """Types of actions in the system."""
    # Deck actions
    DRAW = "draw"
    REVEAL = "reveal"
    SELECT = "select"
    PIN = "pin"
    UNPIN = "unpin"
    SHUFFLE = "shuffle"

    # Assignment actions
    ASSIGN_PLAYER = "assign_player"
    ASSIGN_COMMUNITY = "assign_community"

    # Community and resource actions
    FORM_COMMUNITY = "form_community"
    ADD_MEMBERS = "add_members"
    REMOVE_MEMBERS = "remove_members"
    RENAME_COMMUNITY = "rename_community"
    DISBAND_COMMUNITY = "disband_community"
    SET_PLAYER_RESOURCES = "set_player_resources"
    SET_COMMUNITY_RESOURCES = "set_community_resources"
    PAY_UPKEEP = "pay_upkeep"

    # Player actions
    TOGGLE_BADGE = "toggle_badge"
    UPDATE_SETTINGS = "update_settings"

    # Table actions
    ADJUST_COUNTER = "adjust_counter"
    RESET_COUNTER = "reset_counter"
    BUY_CIVILIZATION = "buy_civilization"
    BUY_EXTINCTION_DECREASE = "buy_extinction_decrease"
    COMPROMISE = "compromise"
    NEXT_TURN = "next_turn"
    PREVIOUS_TURN = "previous_turn"
    RESET_TURN = "reset_turn"
    NEXT_TURN_ACTION = "next_turn_action"
    PREVIOUS_TURN_ACTION = "previous_turn_action"
    NEW_GAME = "new_game"


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types have different payload shapes.
    This is a generic container; validation happens in the reducer.
    """
    deck: DeckId | None = None
    card_id: str | None = None
    pinned_id: str | None = None

    player_name: str | None = None
    community_id: str | None = None
    community_name: str | None = None

    # Community membership
    member_names: list[str] = field(default_factory=list)
    opt_out_names: list[str] = field(default_factory=list)
    waived_names: list[str] = field(default_factory=list)

    counter: CounterName | None = None
    amount: int = 0

    badge: BadgeKind | None = None

    # Settings edit; renames map old player names to new ones
    settings: GameSettings | None = None
    renames: dict[str, str] = field(default_factory=dict)

    # Generic params
    params: dict[str, Any] = field(default_factory=dict)


@dataclass
class Action:
    """
    A complete action to be applied to the game state.

    Actions are validated before application and applied atomically
    by the reducer.
    """
    action_type: ActionType
    payload: ActionPayload = field(default_factory=ActionPayload)
    timestamp: float | None = None
    action_id: str | None = None

    @classmethod
    def draw(cls, deck: DeckId) -> Action:
        return cls(ActionType.DRAW, ActionPayload(deck=deck))

    @classmethod
    def reveal(cls, deck: DeckId) -> Action:
        return cls(ActionType.REVEAL, ActionPayload(deck=deck))

    @classmethod
    def select(cls, deck: DeckId, card_id: str) -> Action:
        return cls(ActionType.SELECT, ActionPayload(deck=deck, card_id=card_id))

    @classmethod
    def pin(cls, deck: DeckId, card_id: str) -> Action:
        return cls(ActionType.PIN, ActionPayload(deck=deck, card_id=card_id))

    @classmethod
    def unpin(cls, pinned_id: str) -> Action:
        return cls(ActionType.UNPIN, ActionPayload(pinned_id=pinned_id))

    @classmethod
    def shuffle(cls, deck: DeckId) -> Action:
        return cls(ActionType.SHUFFLE, ActionPayload(deck=deck))

    @classmethod
    def assign_player(cls, pinned_id: str, player_name: str | None) -> Action:
        """Assign a pinned card to a player; None clears the assignment."""
        return cls(
            ActionType.ASSIGN_PLAYER,
            ActionPayload(pinned_id=pinned_id, player_name=player_name),
        )

    @classmethod
    def assign_community(cls, pinned_id: str, community_id: str | None) -> Action:
        """Assign a pinned card to a community; None clears the assignment."""
        return cls(
            ActionType.ASSIGN_COMMUNITY,
            ActionPayload(pinned_id=pinned_id, community_id=community_id),
        )

    @classmethod
    def form_community(
        cls,
        name: str,
        member_names: list[str],
        opt_out_names: list[str] | None = None,
        waived_names: list[str] | None = None,
    ) -> Action:
        return cls(
            ActionType.FORM_COMMUNITY,
            ActionPayload(
                community_name=name,
                member_names=list(member_names),
                opt_out_names=list(opt_out_names or []),
                waived_names=list(waived_names or []),
            ),
        )

    @classmethod
    def add_members(
        cls,
        community_id: str,
        member_names: list[str],
        opt_out_names: list[str] | None = None,
        waived_names: list[str] | None = None,
    ) -> Action:
        return cls(
            ActionType.ADD_MEMBERS,
            ActionPayload(
                community_id=community_id,
                member_names=list(member_names),
                opt_out_names=list(opt_out_names or []),
                waived_names=list(waived_names or []),
            ),
        )

    @classmethod
    def remove_members(cls, community_id: str, member_names: list[str]) -> Action:
        return cls(
            ActionType.REMOVE_MEMBERS,
            ActionPayload(community_id=community_id, member_names=list(member_names)),
        )

    @classmethod
    def rename_community(cls, community_id: str, name: str) -> Action:
        return cls(
            ActionType.RENAME_COMMUNITY,
            ActionPayload(community_id=community_id, community_name=name),
        )

    @classmethod
    def disband_community(cls, community_id: str) -> Action:
        return cls(ActionType.DISBAND_COMMUNITY, ActionPayload(community_id=community_id))

    @classmethod
    def set_player_resources(cls, player_name: str, amount: int) -> Action:
        return cls(
            ActionType.SET_PLAYER_RESOURCES,
            ActionPayload(player_name=player_name, amount=amount),
        )

    @classmethod
    def set_community_resources(cls, community_id: str, amount: int) -> Action:
        return cls(
            ActionType.SET_COMMUNITY_RESOURCES,
            ActionPayload(community_id=community_id, amount=amount),
        )

    @classmethod
    def pay_upkeep(cls, community_id: str) -> Action:
        return cls(ActionType.PAY_UPKEEP, ActionPayload(community_id=community_id))

    @classmethod
    def toggle_badge(cls, player_name: str, badge: BadgeKind) -> Action:
        return cls(
            ActionType.TOGGLE_BADGE,
            ActionPayload(player_name=player_name, badge=badge),
        )

    @classmethod
    def update_settings(
        cls,
        settings: GameSettings,
        renames: dict[str, str] | None = None,
    ) -> Action:
        """
        Replace the table settings mid-game.

        `settings.players` is the new roster in order; `renames` maps a
        current name to its entry in that roster.
        """
        return cls(
            ActionType.UPDATE_SETTINGS,
            ActionPayload(settings=settings, renames=dict(renames or {})),
        )

    @classmethod
    def adjust_counter(cls, counter: CounterName, amount: int) -> Action:
        return cls(ActionType.ADJUST_COUNTER, ActionPayload(counter=counter, amount=amount))

    @classmethod
    def reset_counter(cls, counter: CounterName) -> Action:
        return cls(ActionType.RESET_COUNTER, ActionPayload(counter=counter))

    @classmethod
    def buy_civilization(cls) -> Action:
        return cls(ActionType.BUY_CIVILIZATION)

    @classmethod
    def buy_extinction_decrease(cls) -> Action:
        return cls(ActionType.BUY_EXTINCTION_DECREASE)

    @classmethod
    def compromise(cls) -> Action:
        return cls(ActionType.COMPROMISE)

    @classmethod
    def next_turn(cls) -> Action:
        return cls(ActionType.NEXT_TURN)

    @classmethod
    def previous_turn(cls) -> Action:
        return cls(ActionType.PREVIOUS_TURN)

    @classmethod
    def reset_turn(cls) -> Action:
        return cls(ActionType.RESET_TURN)

    @classmethod
    def next_turn_action(cls) -> Action:
        return cls(ActionType.NEXT_TURN_ACTION)

    @classmethod
    def previous_turn_action(cls) -> Action:
        return cls(ActionType.PREVIOUS_TURN_ACTION)

    @classmethod
    def new_game(cls) -> Action:
        return cls(ActionType.NEW_GAME)


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether action succeeded
    - New state (if succeeded)
    - Errors (if failed)
    - Human-readable changes (for UI updates)
    """
    success: bool
    new_state: Any | None = None  # GameState
    error: str | None = None
    error_code: str | None = None

    state_changes: list[str] = field(default_factory=list)

    # Out-values, e.g. the PinnedCard created by a pin
    outputs: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
        outputs: dict[str, Any] | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            state_changes=changes or [],
            outputs=outputs or {},
        )

    @classmethod
    def unchanged(cls, state: Any, reason: str | None = None) -> ActionResult:
        """A graceful no-op: success, state returned as given."""
        return cls(
            success=True,
            new_state=state,
            outputs={"noop": reason or "nothing to do"},
        )
