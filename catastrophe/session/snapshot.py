"""
Session Snapshot - The persisted plain-data form of a GameState.

The snapshot is a JSON object with camelCase keys. Deck definitions are not
part of it: they are loaded separately and supplied when a snapshot is
turned back into a GameState.
"""

from __future__ import annotations
import json
import logging
import time
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError

from ..engine_core.cards import Card, DeckId
from ..engine_core.decks import DeckState
from ..engine_core.pins import PinnedCard, PinRegistry
from ..engine_core.assignments import AssignmentLedger
from ..engine_core.resources import Player, Community
from ..engine_core.state import (
    GameState,
    GameSettings,
    Counters,
    GameOutcome,
    PlayerBadges,
    compute_turn_order,
)


logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = "1.0.0"


class SnapshotError(Exception):
    """Raised when a snapshot cannot be parsed or applied."""


_ALIASED = {"populate_by_name": True, "extra": "ignore"}


class CardModel(BaseModel):
    """Card fields as stored in a snapshot."""
    id: str
    display_name: str = Field(default="", alias="displayName")
    flavor: str = ""
    effect: str = ""
    quantity: int = 1
    type: Optional[str] = None
    is_trait_effect: Optional[str] = Field(default=None, alias="isTraitEffect")
    trait_cost: Optional[int] = Field(default=None, alias="traitCost")
    cost: Optional[str] = None
    effect1: Optional[str] = None
    effect2: Optional[str] = None

    model_config = _ALIASED


class PinnedCardModel(CardModel):
    deck_title: str = Field(alias="deckTitle")
    pinned_id: str = Field(alias="pinnedId")


class DeckStateModel(BaseModel):
    available_cards: list[CardModel] = Field(default_factory=list, alias="availableCards")
    revealed_cards: list[CardModel] = Field(default_factory=list, alias="revealedCards")
    discarded_cards: list[CardModel] = Field(default_factory=list, alias="discardedCards")
    drawn_card: Optional[CardModel] = Field(default=None, alias="drawnCard")

    model_config = _ALIASED


class PlayerModel(BaseModel):
    name: str
    resources: int = 0


class CommunityModel(BaseModel):
    id: str
    name: str = ""
    resources: int = 0
    member_player_names: list[str] = Field(default_factory=list, alias="memberPlayerNames")

    model_config = _ALIASED


class PlayerNameModel(BaseModel):
    name: str


class SettingsModel(BaseModel):
    """Table settings, also the shape of a settings JSON document."""
    extinction_counter_max: int = Field(default=20, alias="extinctionCounterMax")
    civilization_counter_max: int = Field(default=20, alias="civilizationCounterMax")
    community_cost_per_member: int = Field(default=1, alias="communityCostPerMember")
    solo_rounds: int = Field(default=0, alias="soloRounds")
    players: list[PlayerNameModel] = Field(default_factory=list)
    turn_assist: bool = Field(default=False, alias="turnAssist")
    civilization_point_cost: int = Field(default=5, alias="civilizationPointCost")
    extinction_point_cost: int = Field(default=5, alias="extinctionPointCost")
    extinction_compromise: int = Field(default=5, alias="extinctionCompromise")
    trait_draw_cost: int = Field(default=3, alias="traitDrawCost")
    community_trait_cost: int = Field(default=3, alias="communityTraitCost")
    turn_actions: list[str] = Field(default_factory=list, alias="turnActions")

    model_config = _ALIASED


class SessionSnapshot(BaseModel):
    """
    Complete persisted session.

    Assignments are stored as [key, value] pairs; each deck has its own key.
    """
    version: str = SNAPSHOT_VERSION
    timestamp: int = Field(default_factory=lambda: int(time.time() * 1000))
    settings: SettingsModel = Field(default_factory=SettingsModel)

    extinction_value: int = Field(default=0, alias="extinctionValue")
    civilization_value: int = Field(default=0, alias="civilizationValue")
    round_value: int = Field(default=0, alias="roundValue")

    player_resources: list[PlayerModel] = Field(default_factory=list, alias="playerResources")
    communities: list[CommunityModel] = Field(default_factory=list)
    next_community_id: int = Field(default=1, alias="nextCommunityId")

    next_pinned_id: int = Field(default=1, alias="nextPinnedId")
    pinned_cards: list[PinnedCardModel] = Field(default_factory=list, alias="pinnedCards")
    card_player_assignments: list[tuple[str, str]] = Field(
        default_factory=list, alias="cardPlayerAssignments"
    )
    community_trait_assignments: list[tuple[str, str]] = Field(
        default_factory=list, alias="communityTraitAssignments"
    )

    current_turn_index: int = Field(default=0, alias="currentTurnIndex")
    turn_order: list[str] = Field(default_factory=list, alias="turnOrder")
    current_turn_action_index: int = Field(default=0, alias="currentTurnActionIndex")

    missing_turn_players: list[str] = Field(default_factory=list, alias="missingTurnPlayers")
    missing_resources_players: list[str] = Field(default_factory=list, alias="missingResourcesPlayers")
    extra_event_card_players: list[str] = Field(default_factory=list, alias="extraEventCardPlayers")
    # Derived from the roster on load; written for readers of the file
    wanderer_players: list[str] = Field(default_factory=list, alias="wandererPlayers")
    badge_round: Optional[int] = Field(default=None, alias="badgeRound")

    individual_event_deck: DeckStateModel = Field(default_factory=DeckStateModel, alias="individualEventDeck")
    community_event_deck: DeckStateModel = Field(default_factory=DeckStateModel, alias="communityEventDeck")
    individual_traits_deck: DeckStateModel = Field(default_factory=DeckStateModel, alias="individualTraitsDeck")
    community_traits_deck: DeckStateModel = Field(default_factory=DeckStateModel, alias="communityTraitsDeck")
    desperate_measures_deck: DeckStateModel = Field(default_factory=DeckStateModel, alias="desperateMeasuresDeck")
    wanderer_deck: DeckStateModel = Field(default_factory=DeckStateModel, alias="wandererDeck")

    game_outcome: Optional[str] = Field(default=None, alias="gameOutcome")

    model_config = _ALIASED

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


def to_snapshot(state: GameState, timestamp: int | None = None) -> SessionSnapshot:
    """Capture a GameState as a snapshot."""
    player_pairs, community_pairs = state.assignments.to_pairs()
    data: dict[str, Any] = {
        "version": SNAPSHOT_VERSION,
        "settings": state.settings.to_dict(),
        "extinctionValue": state.counters.extinction,
        "civilizationValue": state.counters.civilization,
        "roundValue": state.counters.round,
        "playerResources": [p.to_dict() for p in state.players],
        "communities": [c.to_dict() for c in state.communities],
        "nextCommunityId": state.next_community_id,
        "nextPinnedId": state.pins.next_pinned_id,
        "pinnedCards": [p.to_dict() for p in state.pins.cards],
        "cardPlayerAssignments": player_pairs,
        "communityTraitAssignments": community_pairs,
        "currentTurnIndex": state.current_turn_index,
        "turnOrder": list(state.turn_order),
        "currentTurnActionIndex": state.current_turn_action_index,
        "missingTurnPlayers": list(state.badges.missing_turn),
        "missingResourcesPlayers": list(state.badges.missing_resources),
        "extraEventCardPlayers": list(state.badges.extra_event_card),
        "wandererPlayers": state.wanderer_players,
        "badgeRound": state.badges.badge_round,
        "gameOutcome": state.outcome.value if state.outcome else None,
    }
    if timestamp is not None:
        data["timestamp"] = timestamp
    for deck in DeckId:
        data[deck.snapshot_key] = state.deck(deck).to_dict()
    return SessionSnapshot.model_validate(data)


def from_snapshot(
    snapshot: SessionSnapshot,
    definitions: dict[DeckId, list[Card]],
) -> GameState:
    """
    Rebuild a GameState from a snapshot and the current deck definitions.

    Raises SnapshotError when the snapshot references an unknown deck,
    card type or outcome.
    """
    if snapshot.version != SNAPSHOT_VERSION:
        logger.warning(
            "Snapshot version %s differs from %s; loading anyway",
            snapshot.version,
            SNAPSHOT_VERSION,
        )

    data = snapshot.to_json_dict()
    try:
        pins = PinRegistry.restore(
            [PinnedCard.from_dict(p) for p in data.get("pinnedCards", [])],
            snapshot.next_pinned_id,
        )
        outcome = GameOutcome(snapshot.game_outcome) if snapshot.game_outcome else None
        decks = {deck: DeckState.from_dict(data.get(deck.snapshot_key, {})) for deck in DeckId}
    except ValueError as e:
        raise SnapshotError(f"Invalid snapshot: {e}") from e

    players = [Player.from_dict(p) for p in data.get("playerResources", [])]
    communities = [Community.from_dict(c) for c in data.get("communities", [])]
    turn_order = list(snapshot.turn_order)
    if not turn_order:
        turn_order = compute_turn_order(players, communities)

    return GameState(
        settings=GameSettings.from_dict(data["settings"]),
        counters=Counters(
            extinction=snapshot.extinction_value,
            civilization=snapshot.civilization_value,
            round=snapshot.round_value,
        ),
        players=players,
        communities=communities,
        next_community_id=snapshot.next_community_id,
        pins=pins,
        assignments=AssignmentLedger.from_pairs(
            snapshot.card_player_assignments,
            snapshot.community_trait_assignments,
        ),
        definitions={deck: list(cards) for deck, cards in definitions.items()},
        decks=decks,
        turn_order=turn_order,
        current_turn_index=max(0, min(snapshot.current_turn_index, len(turn_order) - 1)),
        current_turn_action_index=max(0, snapshot.current_turn_action_index),
        badges=PlayerBadges(
            missing_turn=tuple(snapshot.missing_turn_players),
            missing_resources=tuple(snapshot.missing_resources_players),
            extra_event_card=tuple(snapshot.extra_event_card_players),
            badge_round=snapshot.badge_round,
        ),
        outcome=outcome,
    )


def dump_snapshot(state: GameState, indent: int | None = 2) -> str:
    """Serialize a GameState to snapshot JSON."""
    return json.dumps(to_snapshot(state).to_json_dict(), indent=indent)


def parse_snapshot(text: str | bytes) -> SessionSnapshot:
    """Parse snapshot JSON. Raises SnapshotError on bad JSON or shape."""
    try:
        return SessionSnapshot.model_validate_json(text)
    except ValidationError as e:
        raise SnapshotError(f"Invalid snapshot: {e.error_count()} error(s)") from e


def load_snapshot(text: str | bytes, definitions: dict[DeckId, list[Card]]) -> GameState:
    """Parse snapshot JSON straight into a GameState."""
    return from_snapshot(parse_snapshot(text), definitions)
