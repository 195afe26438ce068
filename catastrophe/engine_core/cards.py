"""
Cards - Card definitions and the closed enumerations the engine dispatches on.

A Card is an immutable definition record. Pools hold several references to
the same definition, one per physical copy, so a pool is a multiset keyed
by card id rather than a set of distinct objects.

Deck identity and trait effects are enums resolved once when cards are
loaded, never compared as free-form strings inside the engine.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class DeckKind(Enum):
    """Interaction mode of a deck."""
    DRAW = "draw"  # one card at a time
    REVEAL = "reveal"  # reveal three, choose


class DeckId(Enum):
    """The fixed set of decks in the game, valued by their display title."""
    INDIVIDUAL_EVENT = "Individual Event"
    COMMUNITY_EVENT = "Community Event"
    INDIVIDUAL_TRAITS = "Individual Traits"
    COMMUNITY_TRAITS = "Community Traits"
    DESPERATE_MEASURES = "Desperate Measures"
    WANDERER = "Wanderer"

    @property
    def title(self) -> str:
        return self.value

    @property
    def kind(self) -> DeckKind:
        if self in _REVEAL_DECKS:
            return DeckKind.REVEAL
        return DeckKind.DRAW

    @property
    def snapshot_key(self) -> str:
        """Key of this deck's state in a persisted snapshot."""
        return _SNAPSHOT_KEYS[self]

    @classmethod
    def from_title(cls, title: str) -> DeckId:
        """Resolve a deck from its title. Raises ValueError if unknown."""
        return cls(title)


_REVEAL_DECKS = frozenset({
    DeckId.INDIVIDUAL_TRAITS,
    DeckId.COMMUNITY_TRAITS,
    DeckId.DESPERATE_MEASURES,
})

_SNAPSHOT_KEYS = {
    DeckId.INDIVIDUAL_EVENT: "individualEventDeck",
    DeckId.COMMUNITY_EVENT: "communityEventDeck",
    DeckId.INDIVIDUAL_TRAITS: "individualTraitsDeck",
    DeckId.COMMUNITY_TRAITS: "communityTraitsDeck",
    DeckId.DESPERATE_MEASURES: "desperateMeasuresDeck",
    DeckId.WANDERER: "wandererDeck",
}


class CardType(Enum):
    """Event polarity (event decks only)."""
    GOOD = "good"
    BAD = "bad"
    MIXED = "mixed"


class TraitEffect(Enum):
    """Named trait effects, valued by the trait card's display name."""
    # Individual traits
    SELF_SUFFICIENT = "Self-Sufficient"
    HELPLESS = "Helpless"
    EFFICIENT = "Efficient"
    LUCKY = "Lucky"
    SURVIVALIST = "Survivalist"
    PARANOID = "Paranoid"
    CHARISMATIC = "Charismatic"

    # Community traits
    RESEARCH_LAB = "Research Lab"

    @classmethod
    def from_name(cls, name: str | None) -> TraitEffect | None:
        """Look up a trait by display name. Unknown names give None."""
        if not name:
            return None
        return _TRAITS_BY_NAME.get(name.strip().lower())


_TRAITS_BY_NAME = {trait.value.lower(): trait for trait in TraitEffect}


@dataclass(frozen=True)
class Card:
    """
    A card definition.

    `quantity` is the number of physical copies in the deck; `id` is unique
    per definition, not per copy. `trait` is derived from the display name
    at construction and is not part of the serialized form.
    """
    id: str
    display_name: str
    flavor: str = ""
    effect: str = ""
    quantity: int = 1
    type: CardType | None = None
    is_trait_effect: str | None = None  # Community Events: trait this event interacts with
    trait_cost: int | None = None
    cost: str | None = None  # Desperate Measures
    effect1: str | None = None  # Wanderer
    effect2: str | None = None  # Wanderer
    trait: TraitEffect | None = field(default=None, compare=False)

    def __post_init__(self):
        if self.trait is None:
            object.__setattr__(self, "trait", TraitEffect.from_name(self.display_name))

    @property
    def interacting_trait(self) -> TraitEffect | None:
        """Trait referenced by `is_trait_effect`, if it names a known one."""
        return TraitEffect.from_name(self.is_trait_effect)

    def to_dict(self) -> dict[str, Any]:
        """Plain-data form using the card JSON field names."""
        data: dict[str, Any] = {
            "id": self.id,
            "displayName": self.display_name,
            "flavor": self.flavor,
            "effect": self.effect,
            "quantity": self.quantity,
        }
        if self.type is not None:
            data["type"] = self.type.value
        if self.is_trait_effect is not None:
            data["isTraitEffect"] = self.is_trait_effect
        if self.trait_cost is not None:
            data["traitCost"] = self.trait_cost
        if self.cost is not None:
            data["cost"] = self.cost
        if self.effect1 is not None:
            data["effect1"] = self.effect1
        if self.effect2 is not None:
            data["effect2"] = self.effect2
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Card:
        """Build a card from its JSON form. Extra keys are ignored."""
        card_type = data.get("type")
        trait_cost = data.get("traitCost")
        return cls(
            id=str(data["id"]),
            display_name=data.get("displayName", ""),
            flavor=data.get("flavor", ""),
            effect=data.get("effect", ""),
            quantity=int(data.get("quantity", 1)),
            type=CardType(card_type) if card_type else None,
            is_trait_effect=data.get("isTraitEffect"),
            trait_cost=int(trait_cost) if trait_cost is not None else None,
            cost=data.get("cost"),
            effect1=data.get("effect1"),
            effect2=data.get("effect2"),
        )


def load_definitions(raw: list[dict[str, Any]]) -> list[Card]:
    """Convert a deck's JSON array into card definitions."""
    return [Card.from_dict(item) for item in raw]
