"""
Decks - Draw deck and reveal deck state machines.

Both deck kinds share DeckState. Every transition is a pure function:
(state, args) -> new state. Operations on stale or missing cards return
the input state unchanged, and an exhausted pool shrinks what is drawn or
revealed instead of failing.

Conservation: for every definition, copies in available + revealed +
discarded + pinned (for this deck) + drawn always equal its quantity.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Iterable
import random

from .cards import Card, DeckId
from .card_pool import (
    initialize_pool,
    sample_without_replacement,
    rebuild_excluding,
    remove_first,
)
from .pins import PinnedCard


REVEAL_COUNT = 3


@dataclass
class DeckState:
    """Pools of one deck."""
    available_cards: list[Card] = field(default_factory=list)
    revealed_cards: list[Card] = field(default_factory=list)
    discarded_cards: list[Card] = field(default_factory=list)
    drawn_card: Card | None = None

    @property
    def is_active(self) -> bool:
        """Reveal deck has at least one revealed card."""
        return len(self.revealed_cards) > 0

    @property
    def can_reveal(self) -> bool:
        """Whether a full reveal of three cards is possible."""
        return len(self.available_cards) >= REVEAL_COUNT

    @classmethod
    def from_definitions(cls, definitions: Iterable[Card]) -> DeckState:
        return cls(available_cards=initialize_pool(definitions))

    def _copy_with(self, **kwargs) -> DeckState:
        return DeckState(
            available_cards=kwargs.get("available_cards", self.available_cards),
            revealed_cards=kwargs.get("revealed_cards", self.revealed_cards),
            discarded_cards=kwargs.get("discarded_cards", self.discarded_cards),
            drawn_card=kwargs.get("drawn_card", self.drawn_card),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "availableCards": [c.to_dict() for c in self.available_cards],
            "revealedCards": [c.to_dict() for c in self.revealed_cards],
            "discardedCards": [c.to_dict() for c in self.discarded_cards],
            "drawnCard": self.drawn_card.to_dict() if self.drawn_card else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DeckState:
        drawn = data.get("drawnCard")
        return cls(
            available_cards=[Card.from_dict(c) for c in data.get("availableCards", [])],
            revealed_cards=[Card.from_dict(c) for c in data.get("revealedCards", [])],
            discarded_cards=[Card.from_dict(c) for c in data.get("discardedCards", [])],
            drawn_card=Card.from_dict(drawn) if drawn else None,
        )


# ============================================================================
# Draw deck
# ============================================================================

def draw(state: DeckState, rng: random.Random | None = None) -> DeckState:
    """
    Draw one card into `drawn_card`.

    An empty pool is a no-op. A previously drawn card counts as played and
    moves to the discard pile, which a draw deck never recycles.
    """
    if not state.available_cards:
        return state

    selected, remaining = sample_without_replacement(state.available_cards, 1, rng)
    discarded = state.discarded_cards
    if state.drawn_card is not None:
        discarded = discarded + [state.drawn_card]

    return state._copy_with(
        available_cards=remaining,
        discarded_cards=discarded,
        drawn_card=selected[0],
    )


def shuffle_draw_deck(state: DeckState, definitions: Iterable[Card]) -> DeckState:
    """Hard reset: every copy back in the pool, everything else cleared."""
    return DeckState(available_cards=initialize_pool(definitions))


# ============================================================================
# Reveal deck
# ============================================================================

def reveal(state: DeckState, rng: random.Random | None = None) -> DeckState:
    """
    Reveal up to three cards.

    On an active deck the current revealed cards are discarded first.
    Revealed cards already left the pool when they were revealed, so the
    discard step does not touch `available_cards`.
    """
    discarded = state.discarded_cards
    if state.revealed_cards:
        discarded = discarded + state.revealed_cards

    selected, remaining = sample_without_replacement(
        state.available_cards, REVEAL_COUNT, rng
    )
    return state._copy_with(
        available_cards=remaining,
        revealed_cards=selected,
        discarded_cards=discarded,
    )


def _refill(state: DeckState, rng: random.Random | None) -> DeckState:
    """Top the revealed set back up by one card when there is room."""
    if len(state.revealed_cards) >= REVEAL_COUNT or not state.available_cards:
        return state
    selected, remaining = sample_without_replacement(state.available_cards, 1, rng)
    return state._copy_with(
        available_cards=remaining,
        revealed_cards=state.revealed_cards + selected,
    )


def select_card(
    state: DeckState,
    card: Card,
    rng: random.Random | None = None,
) -> DeckState:
    """Move a revealed card to the discard pile and refill one slot."""
    removed, revealed = remove_first(state.revealed_cards, card.id)
    if removed is None:
        return state

    state = state._copy_with(
        revealed_cards=revealed,
        discarded_cards=state.discarded_cards + [removed],
    )
    return _refill(state, rng)


def pin_card(
    state: DeckState,
    card: Card,
    deck: DeckId,
    pinned_id: str,
    rng: random.Random | None = None,
) -> tuple[DeckState, PinnedCard | None]:
    """
    Take a revealed card out of circulation.

    Returns (new state, pinned card). The caller registers the pinned card;
    it is not added to the discard pile. A card that is not revealed gives
    (state, None).
    """
    removed, revealed = remove_first(state.revealed_cards, card.id)
    if removed is None:
        return state, None

    state = _refill(state._copy_with(revealed_cards=revealed), rng)
    return state, PinnedCard(card=removed, deck=deck, pinned_id=pinned_id)


def unpin(state: DeckState, pinned: PinnedCard) -> DeckState:
    """Return an unpinned card to the discard pile (back in play on shuffle)."""
    return state._copy_with(discarded_cards=state.discarded_cards + [pinned.card])


def shuffle_reveal_deck(
    state: DeckState,
    definitions: Iterable[Card],
    pinned_for_deck: Iterable[Card],
) -> DeckState:
    """
    Rebuild the pool from definitions minus pinned copies plus the discards.

    Revealed and drawn cards are cleared.
    """
    pool = rebuild_excluding(definitions, pinned_for_deck, state.discarded_cards)
    return DeckState(available_cards=pool)
