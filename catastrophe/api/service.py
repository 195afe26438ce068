"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine actions
2. Manages sessions
3. Derives trait-adjusted costs and dice rolls
4. Formats responses for the table UI

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
import logging

from ..engine_core.cards import Card, DeckId, DeckKind, TraitEffect
from ..engine_core.action import Action, ActionPayload, ActionType, ActionResult
from ..engine_core.pins import PinnedCard
from ..engine_core.state import BadgeKind, GameState, GameSettings, CounterName
from ..engine_core.validation import DefinitionError, validate_definitions
from ..engine_core.resources import community_of
from ..engine_core import trait_effects
from ..session import SessionManager, Session, SessionState
from ..session.snapshot import (
    from_snapshot,
    parse_snapshot,
    to_snapshot,
)
from .schemas import (
    # Requests
    ActionRequest,
    CreateSessionRequest,
    # Responses
    ActionResponse,
    CostsResponse,
    GameStateResponse,
    RollResponse,
    SessionResponse,
    # Shared
    CardInfo,
    CommunityInfo,
    CountersInfo,
    DeckInfo,
    PinnedCardInfo,
    PlayerInfo,
    # Enums
    SessionStatus,
)


logger = logging.getLogger(__name__)


class SessionNotFoundError(LookupError):
    """Raised when a session id does not name a live session."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session {session_id} not found")


class RequestError(ValueError):
    """Raised when a request names an unknown deck, counter or badge."""


@dataclass
class GameService:
    """
    Main API service for the table UI.

    Usage:
        service = GameService(definitions=load_deck_directory("decks/"))

        # Create session
        session_response = service.create_session(request)

        # Apply a table event
        result = service.apply_action(session_id, ActionRequest(action="reveal", deck="Wanderer"))
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    # Definitions used when a create request omits a deck
    definitions: dict[DeckId, list[Card]] = field(default_factory=dict)

    def create_session(self, request: CreateSessionRequest) -> SessionResponse:
        """
        Create a new game session.

        Raises DefinitionError if any supplied deck fails validation.
        """
        settings = GameSettings.from_dict(request.settings.model_dump(by_alias=True))
        definitions, warnings = self._resolve_definitions(request.decks)
        session = self.session_manager.create_session(
            settings, definitions, seed=request.random_seed
        )
        response = self._session_response(session)
        response.warnings = warnings
        return response

    def get_session(self, session_id: str) -> SessionResponse:
        return self._session_response(self.require_session(session_id))

    def end_session(self, session_id: str) -> bool:
        return self.session_manager.end_session(session_id)

    def list_sessions(self) -> list[str]:
        return self.session_manager.list_active_sessions()

    def get_state(self, session_id: str) -> GameStateResponse:
        session = self.require_session(session_id)
        return self._state_response(session)

    def apply_action(self, session_id: str, request: ActionRequest) -> ActionResponse:
        """
        Apply one table event.

        A rejected action comes back with success=False and the reducer's
        message in `changes`; the session is not modified.
        """
        session = self.require_session(session_id)
        action = self.build_action(request)
        return self.apply(session, action)

    def apply(self, session: Session, action: Action) -> ActionResponse:
        result = session.apply(action)
        return self._action_response(session, result)

    def build_action(self, request: ActionRequest) -> Action:
        """Translate an ActionRequest into an engine Action."""
        payload = ActionPayload(
            deck=parse_deck(request.deck),
            card_id=request.card_id,
            pinned_id=request.pinned_id,
            player_name=request.player_name,
            community_id=request.community_id,
            community_name=request.community_name,
            member_names=list(request.member_names),
            opt_out_names=list(request.opt_out_names),
            waived_names=list(request.waived_names),
            counter=parse_counter(request.counter),
            amount=request.amount,
            badge=parse_badge(request.badge),
            settings=(
                GameSettings.from_dict(request.settings.model_dump(by_alias=True))
                if request.settings is not None
                else None
            ),
            renames=dict(request.renames),
        )
        return Action(ActionType(request.action.value), payload)

    def get_costs(self, session_id: str) -> CostsResponse:
        """Trait-adjusted costs as they stand on the current turn."""
        state = self.require_session(session_id).game_state
        community = state.current_community
        settings = state.settings

        revealed_costs = {}
        for card in state.deck(DeckId.INDIVIDUAL_TRAITS).revealed_cards:
            base = card.trait_cost if card.trait_cost is not None else settings.trait_draw_cost
            revealed_costs[card.id] = trait_effects.compute_trait_draw_cost(
                base, community, state.assignments, state.pins
            )

        solo_players = [
            p.name for p in state.players if community_of(state.communities, p.name) is None
        ]
        return CostsResponse(
            session_id=session_id,
            current_turn=state.current_turn,
            trait_draw_cost=trait_effects.compute_trait_draw_cost(
                settings.trait_draw_cost, community, state.assignments, state.pins
            ),
            revealed_trait_costs=revealed_costs,
            community_trait_costs={
                c.id: trait_effects.compute_community_trait_cost(
                    settings.community_trait_cost,
                    c,
                    community is not None and community.id == c.id,
                    state.assignments,
                    state.pins,
                )
                for c in state.communities
            },
            upkeep_costs={
                c.id: trait_effects.compute_upkeep_cost(
                    c, settings.community_cost_per_member, state.assignments, state.pins
                )
                for c in state.communities
            },
            join_cost_waived=trait_effects.join_cost_waivers(
                solo_players, state.assignments, state.pins
            ),
        )

    def roll_die(self, session_id: str, player_name: str | None = None) -> RollResponse:
        """Roll the 0/1/2 die, with advantage for a Lucky roller."""
        session = self.require_session(session_id)
        state = session.game_state
        lucky = player_name is not None and trait_effects.has_trait(
            player_name, TraitEffect.LUCKY, state.assignments, state.pins
        )
        value = trait_effects.roll_die(session.reducer.rng, lucky=lucky)
        return RollResponse(session_id=session_id, value=value, lucky=lucky)

    def export_snapshot(self, session_id: str) -> dict[str, Any]:
        state = self.require_session(session_id).game_state
        return to_snapshot(state).to_json_dict()

    def import_snapshot(self, session_id: str, raw: str | bytes) -> GameStateResponse:
        """
        Replace a session's state with a snapshot.

        Raises SnapshotError if the snapshot is malformed.
        """
        session = self.require_session(session_id)
        snapshot = parse_snapshot(raw)
        state = from_snapshot(snapshot, session.game_state.definitions)
        session.replace_state(state)
        logger.info("Imported snapshot into session %s", session_id)
        return self._state_response(session)

    # =========================================================================
    # Helpers
    # =========================================================================

    def require_session(self, session_id: str) -> Session:
        """Look up a live session. Raises SessionNotFoundError."""
        session = self.session_manager.get_session(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def _resolve_definitions(
        self,
        decks: dict[str, list[Any]] | None,
    ) -> tuple[dict[DeckId, list[Card]], list[str]]:
        definitions = dict(self.definitions)
        warnings: list[str] = []
        errors: list[str] = []
        for title, cards in (decks or {}).items():
            deck = parse_deck(title)
            loaded = cards_from_models(cards)
            result = validate_definitions(deck, loaded)
            errors.extend(result.errors)
            warnings.extend(result.warnings)
            definitions[deck] = loaded
        if errors:
            raise DefinitionError(errors)
        return definitions, warnings

    def _session_response(self, session: Session) -> SessionResponse:
        state = session.game_state
        return SessionResponse(
            session_id=session.session_id,
            status=_status(session),
            players=[p.name for p in state.players],
            current_turn=state.current_turn,
            round=state.counters.round,
            action_count=session.action_count,
            created_at=session.created_at,
        )

    def _state_response(self, session: Session) -> GameStateResponse:
        state = session.game_state
        current = state.current_turn
        settings = state.settings

        wanderers = state.wanderer_players
        players = []
        for player in state.players:
            community = community_of(state.communities, player.name)
            players.append(PlayerInfo(
                name=player.name,
                resources=player.resources,
                community_id=community.id if community else None,
                is_current_turn=current == player.name,
                traits=[
                    p.display_name
                    for p in trait_effects.player_traits(player.name, state.assignments, state.pins)
                ],
                badges=[b.value for b in state.badges.badges_for(player.name)],
                is_wanderer=player.name in wanderers,
            ))

        communities = [
            CommunityInfo(
                community_id=c.id,
                name=c.name,
                resources=c.resources,
                members=list(c.member_player_names),
                is_current_turn=current == c.id,
                traits=[
                    p.display_name
                    for p in trait_effects.community_traits(c.id, state.assignments, state.pins)
                ],
                upkeep_cost=trait_effects.compute_upkeep_cost(
                    c, settings.community_cost_per_member, state.assignments, state.pins
                ),
            )
            for c in state.communities
        ]

        return GameStateResponse(
            session_id=session.session_id,
            status=_status(session),
            counters=CountersInfo(
                extinction=state.counters.extinction,
                civilization=state.counters.civilization,
                round=state.counters.round,
                extinction_max=settings.extinction_counter_max,
                civilization_max=settings.civilization_counter_max,
            ),
            players=players,
            communities=communities,
            pinned=[_pinned_info(p, state) for p in state.pins.cards],
            decks=[_deck_info(deck, state) for deck in DeckId],
            turn_order=list(state.turn_order),
            current_turn=current,
            current_turn_action=state.current_turn_action,
            turn_assist=settings.turn_assist,
            outcome=state.outcome.value if state.outcome else None,
        )

    def _action_response(self, session: Session, result: ActionResult) -> ActionResponse:
        if not result.success:
            return ActionResponse(
                session_id=session.session_id,
                success=False,
                changes=[result.error or "Action failed"],
            )

        pinned = result.outputs.get("pinned_card")
        return ActionResponse(
            session_id=session.session_id,
            success=True,
            changes=list(result.state_changes),
            noop=result.outputs.get("noop"),
            pinned_card=_pinned_info(pinned, session.game_state) if pinned else None,
            game_state=self._state_response(session),
        )


def _status(session: Session) -> SessionStatus:
    if session.state == SessionState.ENDED:
        return SessionStatus.ENDED
    if session.game_state.outcome is not None:
        return SessionStatus.GAME_OVER
    return SessionStatus.ACTIVE


def parse_deck(title: str | None) -> DeckId | None:
    if title is None:
        return None
    try:
        return DeckId.from_title(title)
    except ValueError:
        raise RequestError(f"Unknown deck '{title}'") from None


def parse_counter(name: str | None) -> CounterName | None:
    if name is None:
        return None
    try:
        return CounterName(name.lower())
    except ValueError:
        raise RequestError(f"Unknown counter '{name}'") from None


def parse_badge(name: str | None) -> BadgeKind | None:
    if name is None:
        return None
    try:
        return BadgeKind(name.lower())
    except ValueError:
        raise RequestError(f"Unknown badge '{name}'") from None


def _card_info(card: Card) -> CardInfo:
    return CardInfo(
        card_id=card.id,
        name=card.display_name,
        flavor=card.flavor,
        effect=card.effect,
        card_type=card.type.value if card.type else None,
        trait=card.trait.value if card.trait else None,
        trait_cost=card.trait_cost,
        cost=card.cost,
        effect1=card.effect1,
        effect2=card.effect2,
    )


def _pinned_info(pinned: PinnedCard, state: GameState) -> PinnedCardInfo:
    return PinnedCardInfo(
        pinned_id=pinned.pinned_id,
        deck=pinned.deck.title,
        card=_card_info(pinned.card),
        player_name=state.assignments.player_for(pinned.pinned_id),
        community_id=state.assignments.community_for(pinned.pinned_id),
    )


def _deck_info(deck: DeckId, state: GameState) -> DeckInfo:
    deck_state = state.deck(deck)
    return DeckInfo(
        title=deck.title,
        kind=deck.kind.value,
        available_count=len(deck_state.available_cards),
        discarded_count=len(deck_state.discarded_cards),
        revealed=[_card_info(c) for c in deck_state.revealed_cards],
        drawn=_card_info(deck_state.drawn_card) if deck_state.drawn_card else None,
        can_reveal=deck.kind == DeckKind.REVEAL and deck_state.can_reveal,
    )


def cards_from_models(cards: list[Any]) -> list[Card]:
    """Card definitions from request CardModels. Raises RequestError."""
    try:
        return [Card.from_dict(c.model_dump(by_alias=True, exclude_none=True)) for c in cards]
    except ValueError as e:
        raise RequestError(f"Invalid card definition: {e}") from e
