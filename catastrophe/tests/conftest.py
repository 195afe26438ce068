"""
Pytest fixtures for Catastrophe tests.
"""

import random

import pytest

from ..engine_core.cards import Card, CardType, DeckId, TraitEffect
from ..engine_core.pins import PinnedCard
from ..engine_core.reducer import Reducer
from ..engine_core.state import GameState, GameSettings


def _trait_card(trait: TraitEffect, quantity: int = 1, trait_cost: int = 3) -> Card:
    slug = trait.value.lower().replace(" ", "-")
    return Card(
        id=f"trait-{slug}",
        display_name=trait.value,
        effect=f"{trait.value} effect",
        quantity=quantity,
        trait_cost=trait_cost,
    )


@pytest.fixture
def definitions() -> dict[DeckId, list[Card]]:
    """A small but complete set of decks."""
    return {
        DeckId.INDIVIDUAL_EVENT: [
            Card(id="ie-storm", display_name="Storm", quantity=2, type=CardType.BAD),
            Card(id="ie-harvest", display_name="Harvest", quantity=1, type=CardType.GOOD),
        ],
        DeckId.COMMUNITY_EVENT: [
            Card(
                id="ce-plague",
                display_name="Plague",
                quantity=2,
                type=CardType.BAD,
                is_trait_effect="Helpless",
            ),
            Card(id="ce-feast", display_name="Feast", quantity=1, type=CardType.MIXED),
        ],
        DeckId.INDIVIDUAL_TRAITS: [
            _trait_card(TraitEffect.SELF_SUFFICIENT, quantity=2),
            _trait_card(TraitEffect.HELPLESS),
            _trait_card(TraitEffect.EFFICIENT, quantity=2, trait_cost=4),
            _trait_card(TraitEffect.LUCKY),
            _trait_card(TraitEffect.CHARISMATIC),
            _trait_card(TraitEffect.SURVIVALIST),
            _trait_card(TraitEffect.PARANOID),
        ],
        DeckId.COMMUNITY_TRAITS: [
            _trait_card(TraitEffect.RESEARCH_LAB, quantity=2),
        ],
        DeckId.DESPERATE_MEASURES: [
            Card(id="dm-raid", display_name="Raid", quantity=3, cost="2 extinction"),
            Card(id="dm-burn", display_name="Burn the Fields", quantity=1, cost="1 round"),
        ],
        DeckId.WANDERER: [
            Card(
                id="w-stranger",
                display_name="Stranger",
                quantity=2,
                effect1="Join a community",
                effect2="Leave with supplies",
            ),
        ],
    }


@pytest.fixture
def settings() -> GameSettings:
    """Three players, default costs."""
    return GameSettings(players=("P1", "P2", "P3"))


@pytest.fixture
def game_state(settings, definitions) -> GameState:
    """A fresh game with full decks."""
    return GameState.new_game(settings, definitions)


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source for reproducible sampling."""
    return random.Random(1234)


@pytest.fixture
def reducer() -> Reducer:
    """Reducer with a seeded random source."""
    return Reducer(rng=random.Random(1234))


@pytest.fixture
def grant_traits(definitions):
    """
    Factory: pin trait cards straight into a state and assign them.

    Usage:
        state = grant_traits(state, players={"P1": [TraitEffect.LUCKY]})
    """
    def grant(state: GameState, players=None, communities=None) -> GameState:
        pins = state.pins
        ledger = state.assignments
        targets = [
            (DeckId.INDIVIDUAL_TRAITS, owner, trait, "player")
            for owner, traits in (players or {}).items()
            for trait in traits
        ] + [
            (DeckId.COMMUNITY_TRAITS, owner, trait, "community")
            for owner, traits in (communities or {}).items()
            for trait in traits
        ]
        for deck, owner, trait, kind in targets:
            card = next(c for c in definitions[deck] if c.trait == trait)
            pinned = PinnedCard(card=card, deck=deck, pinned_id=pins.next_token())
            pins = pins.add(pinned)
            if kind == "player":
                ledger = ledger.assign_player(pinned.pinned_id, owner)
            else:
                ledger = ledger.assign_community(pinned.pinned_id, owner)
        return state._copy_with(pins=pins, assignments=ledger)

    return grant
