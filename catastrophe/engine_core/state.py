"""
Game State - The session aggregate the reducer operates on.

Design principles:
- Immutable-friendly: all mutations return new state
- Serializable: plain data in and out (see session.snapshot)
- No hidden globals: decks, pins and ledgers all live here
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .cards import Card, DeckId, DeckKind
from .decks import DeckState
from .pins import PinRegistry
from .assignments import AssignmentLedger
from .resources import Player, Community, community_of, find_community


CREATION_TURN = "creation"


class GameOutcome(Enum):
    WIN = "win"
    LOSE = "lose"


class CounterName(Enum):
    EXTINCTION = "extinction"
    CIVILIZATION = "civilization"
    ROUND = "round"


class BadgeKind(Enum):
    """Per-player reminders the table toggles by hand."""
    MISSING_TURN = "missing_turn"
    MISSING_RESOURCES = "missing_resources"
    EXTRA_EVENT_CARD = "extra_event_card"


# Hand-set badges clear once the round counter has moved this far
BADGE_LIFETIME_ROUNDS = 2


@dataclass(frozen=True)
class GameSettings:
    """Table configuration, normally loaded from a settings JSON document."""
    extinction_counter_max: int = 20
    civilization_counter_max: int = 20
    community_cost_per_member: int = 1
    solo_rounds: int = 0
    players: tuple[str, ...] = ()
    turn_assist: bool = False
    civilization_point_cost: int = 5
    extinction_point_cost: int = 5
    extinction_compromise: int = 5
    trait_draw_cost: int = 3
    community_trait_cost: int = 3
    turn_actions: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "extinctionCounterMax": self.extinction_counter_max,
            "civilizationCounterMax": self.civilization_counter_max,
            "communityCostPerMember": self.community_cost_per_member,
            "soloRounds": self.solo_rounds,
            "players": [{"name": name} for name in self.players],
            "turnAssist": self.turn_assist,
            "civilizationPointCost": self.civilization_point_cost,
            "extinctionPointCost": self.extinction_point_cost,
            "extinctionCompromise": self.extinction_compromise,
            "traitDrawCost": self.trait_draw_cost,
            "communityTraitCost": self.community_trait_cost,
            "turnActions": list(self.turn_actions),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameSettings:
        defaults = cls()
        players = data.get("players", [])
        return cls(
            extinction_counter_max=data.get("extinctionCounterMax", defaults.extinction_counter_max),
            civilization_counter_max=data.get("civilizationCounterMax", defaults.civilization_counter_max),
            community_cost_per_member=data.get("communityCostPerMember", defaults.community_cost_per_member),
            solo_rounds=data.get("soloRounds", defaults.solo_rounds),
            players=tuple(p["name"] if isinstance(p, dict) else str(p) for p in players),
            turn_assist=data.get("turnAssist", defaults.turn_assist),
            civilization_point_cost=data.get("civilizationPointCost", defaults.civilization_point_cost),
            extinction_point_cost=data.get("extinctionPointCost", defaults.extinction_point_cost),
            extinction_compromise=data.get("extinctionCompromise", defaults.extinction_compromise),
            trait_draw_cost=data.get("traitDrawCost", defaults.trait_draw_cost),
            community_trait_cost=data.get("communityTraitCost", defaults.community_trait_cost),
            turn_actions=tuple(data.get("turnActions", defaults.turn_actions)),
        )


@dataclass(frozen=True)
class Counters:
    """Extinction, civilization and round counters."""
    extinction: int = 0
    civilization: int = 0
    round: int = 0

    def adjust(self, counter: CounterName, delta: int, settings: GameSettings) -> Counters:
        """Move a counter by `delta`, clamped to its range."""
        if counter == CounterName.EXTINCTION:
            value = _clamp(self.extinction + delta, settings.extinction_counter_max)
            return Counters(value, self.civilization, self.round)
        if counter == CounterName.CIVILIZATION:
            value = _clamp(self.civilization + delta, settings.civilization_counter_max)
            return Counters(self.extinction, value, self.round)
        return Counters(self.extinction, self.civilization, max(0, self.round + delta))

    def reset(self, counter: CounterName) -> Counters:
        if counter == CounterName.EXTINCTION:
            return Counters(0, self.civilization, self.round)
        if counter == CounterName.CIVILIZATION:
            return Counters(self.extinction, 0, self.round)
        return Counters(self.extinction, self.civilization, 0)

    def value(self, counter: CounterName) -> int:
        return {
            CounterName.EXTINCTION: self.extinction,
            CounterName.CIVILIZATION: self.civilization,
            CounterName.ROUND: self.round,
        }[counter]


def _clamp(value: int, maximum: int) -> int:
    return max(0, min(maximum, value))


@dataclass(frozen=True)
class PlayerBadges:
    """
    Hand-toggled player reminders.

    `badge_round` is the round the first live badge was set in; all badges
    clear together once the round counter is BADGE_LIFETIME_ROUNDS past it.
    """
    missing_turn: tuple[str, ...] = ()
    missing_resources: tuple[str, ...] = ()
    extra_event_card: tuple[str, ...] = ()
    badge_round: int | None = None

    def holders(self, kind: BadgeKind) -> tuple[str, ...]:
        return getattr(self, kind.value)

    def has(self, kind: BadgeKind, player_name: str) -> bool:
        return player_name in self.holders(kind)

    def badges_for(self, player_name: str) -> list[BadgeKind]:
        return [kind for kind in BadgeKind if self.has(kind, player_name)]

    @property
    def is_empty(self) -> bool:
        return not any(self.holders(kind) for kind in BadgeKind)

    def toggle(self, kind: BadgeKind, player_name: str, round_value: int) -> PlayerBadges:
        holders = self.holders(kind)
        if player_name in holders:
            holders = tuple(n for n in holders if n != player_name)
        else:
            holders = holders + (player_name,)
        return self._with_holders({kind: holders}, round_value)

    def expire(self, round_value: int) -> PlayerBadges:
        """Clear everything once the badges have lived long enough."""
        if self.badge_round is None:
            return self
        if round_value - self.badge_round >= BADGE_LIFETIME_ROUNDS:
            return PlayerBadges()
        return self

    def drop_player(self, player_name: str) -> PlayerBadges:
        return self._with_holders(
            {k: tuple(n for n in self.holders(k) if n != player_name) for k in BadgeKind},
            self.badge_round,
        )

    def rename_players(self, renames: dict[str, str]) -> PlayerBadges:
        return self._with_holders(
            {k: tuple(renames.get(n, n) for n in self.holders(k)) for k in BadgeKind},
            self.badge_round,
        )

    def _with_holders(
        self, changes: dict[BadgeKind, tuple[str, ...]], round_value: int | None
    ) -> PlayerBadges:
        fields = {kind.value: changes.get(kind, self.holders(kind)) for kind in BadgeKind}
        badges = PlayerBadges(badge_round=self.badge_round, **fields)
        if badges.is_empty:
            return PlayerBadges()
        if badges.badge_round is None:
            return PlayerBadges(badge_round=round_value, **fields)
        return badges


def compute_turn_order(players: list[Player], communities: list[Community]) -> list[str]:
    """
    Creation phase, then players outside any community in roster order,
    then communities in formation order.
    """
    solo = [p.name for p in players if community_of(communities, p.name) is None]
    return [CREATION_TURN] + solo + [c.id for c in communities]


def empty_decks() -> dict[DeckId, DeckState]:
    return {deck: DeckState() for deck in DeckId}


@dataclass
class GameState:
    """
    Complete game state at a point in time.

    This is the canonical state that the engine operates on.
    All state changes go through the reducer.
    """
    settings: GameSettings = field(default_factory=GameSettings)
    counters: Counters = field(default_factory=Counters)

    # Players and communities
    players: list[Player] = field(default_factory=list)
    communities: list[Community] = field(default_factory=list)
    next_community_id: int = 1

    # Pins and who holds them
    pins: PinRegistry = field(default_factory=PinRegistry)
    assignments: AssignmentLedger = field(default_factory=AssignmentLedger)

    # Decks
    definitions: dict[DeckId, list[Card]] = field(default_factory=dict)
    decks: dict[DeckId, DeckState] = field(default_factory=empty_decks)

    # Turn tracking
    turn_order: list[str] = field(default_factory=lambda: [CREATION_TURN])
    current_turn_index: int = 0
    current_turn_action_index: int = 0
    badges: PlayerBadges = field(default_factory=PlayerBadges)

    outcome: GameOutcome | None = None

    @classmethod
    def new_game(
        cls,
        settings: GameSettings,
        definitions: dict[DeckId, list[Card]],
    ) -> GameState:
        """Fresh game: zero balances, full decks, no communities or pins."""
        players = [Player(name=name) for name in settings.players]
        return cls(
            settings=settings,
            players=players,
            definitions={deck: list(cards) for deck, cards in definitions.items()},
            decks={
                deck: DeckState.from_definitions(definitions.get(deck, []))
                for deck in DeckId
            },
            turn_order=compute_turn_order(players, []),
        )

    @property
    def current_turn(self) -> str | None:
        """Player name, community id or the creation marker."""
        if not self.turn_order:
            return None
        return self.turn_order[self.current_turn_index % len(self.turn_order)]

    @property
    def is_creation_turn(self) -> bool:
        return self.current_turn == CREATION_TURN

    @property
    def current_community(self) -> Community | None:
        """The community whose turn it is, if any."""
        turn = self.current_turn
        if turn is None:
            return None
        return find_community(self.communities, turn)

    @property
    def current_turn_action(self) -> str | None:
        """The step of the turn being played, when turn actions are configured."""
        actions = self.settings.turn_actions
        if not actions:
            return None
        return actions[min(self.current_turn_action_index, len(actions) - 1)]

    @property
    def wanderer_players(self) -> list[str]:
        """The lone player left outside once everyone else is in a community."""
        if not self.communities:
            return []
        solo = [p.name for p in self.players if community_of(self.communities, p.name) is None]
        return solo if len(solo) == 1 else []

    def deck(self, deck_id: DeckId) -> DeckState:
        return self.decks.get(deck_id, DeckState())

    def definitions_for(self, deck_id: DeckId) -> list[Card]:
        return self.definitions.get(deck_id, [])

    def decks_of_kind(self, kind: DeckKind) -> list[DeckId]:
        return [deck for deck in DeckId if deck.kind == kind]

    def get_player(self, name: str) -> Player | None:
        for player in self.players:
            if player.name == name:
                return player
        return None

    def get_community(self, community_id: str) -> Community | None:
        return find_community(self.communities, community_id)

    def with_deck(self, deck_id: DeckId, deck: DeckState) -> GameState:
        """Return new state with updated deck."""
        new_decks = self.decks.copy()
        new_decks[deck_id] = deck
        return self._copy_with(decks=new_decks)

    def with_roster(
        self,
        players: list[Player] | None = None,
        communities: list[Community] | None = None,
        **kwargs,
    ) -> GameState:
        """
        Replace players and/or communities and recompute the turn order.

        The current turn keeps pointing at the same entry when it still
        exists; otherwise the index is clamped into range.
        """
        players = self.players if players is None else players
        communities = self.communities if communities is None else communities
        order = compute_turn_order(players, communities)
        current = self.current_turn
        if current in order:
            index = order.index(current)
        else:
            index = min(self.current_turn_index, len(order) - 1)
        return self._copy_with(
            players=players,
            communities=communities,
            turn_order=order,
            current_turn_index=index,
            **kwargs,
        )

    def _copy_with(self, **kwargs) -> GameState:
        """Create a copy with some fields replaced."""
        return GameState(
            settings=kwargs.get("settings", self.settings),
            counters=kwargs.get("counters", self.counters),
            players=kwargs.get("players", self.players),
            communities=kwargs.get("communities", self.communities),
            next_community_id=kwargs.get("next_community_id", self.next_community_id),
            pins=kwargs.get("pins", self.pins),
            assignments=kwargs.get("assignments", self.assignments),
            definitions=kwargs.get("definitions", self.definitions),
            decks=kwargs.get("decks", self.decks),
            turn_order=kwargs.get("turn_order", self.turn_order),
            current_turn_index=kwargs.get("current_turn_index", self.current_turn_index),
            current_turn_action_index=kwargs.get(
                "current_turn_action_index", self.current_turn_action_index
            ),
            badges=kwargs.get("badges", self.badges),
            outcome=kwargs.get("outcome", self.outcome),
        )
