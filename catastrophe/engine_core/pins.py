"""
Pins - Cards removed from circulation into a durable, assignable state.

Every pin event gets its own token, so several copies of one definition
can be pinned at the same time from the same deck without sharing an
identity.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any

from .cards import Card, DeckId, TraitEffect


@dataclass(frozen=True)
class PinnedCard:
    """A card copy pinned out of a deck."""
    card: Card
    deck: DeckId
    pinned_id: str

    @property
    def id(self) -> str:
        return self.card.id

    @property
    def display_name(self) -> str:
        return self.card.display_name

    @property
    def trait(self) -> TraitEffect | None:
        return self.card.trait

    def to_dict(self) -> dict[str, Any]:
        data = self.card.to_dict()
        data["deckTitle"] = self.deck.title
        data["pinnedId"] = self.pinned_id
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PinnedCard:
        return cls(
            card=Card.from_dict(data),
            deck=DeckId.from_title(data["deckTitle"]),
            pinned_id=str(data["pinnedId"]),
        )


@dataclass
class PinRegistry:
    """
    Ledger of every pinned card across all decks.

    Treated as a value: operations return a new registry.
    """
    cards: list[PinnedCard] = field(default_factory=list)
    next_pinned_id: int = 1

    @classmethod
    def restore(cls, cards: list[PinnedCard], next_pinned_id: int = 1) -> PinRegistry:
        """
        Rebuild a registry from saved cards.

        The counter is raised past every `pin-<n>` token already loaded,
        so saves that lack or understate it cannot reissue a live token.
        Raises ValueError if two cards share a token.
        """
        tokens = [p.pinned_id for p in cards]
        if len(set(tokens)) != len(tokens):
            raise ValueError("Duplicate pin tokens")
        highest = max((token_number(p.pinned_id) or 0 for p in cards), default=0)
        return cls(cards=list(cards), next_pinned_id=max(next_pinned_id, highest + 1))

    def next_token(self) -> str:
        """Token the next pin event will use, skipping any in use."""
        in_use = {p.pinned_id for p in self.cards}
        n = self.next_pinned_id
        while f"pin-{n}" in in_use:
            n += 1
        return f"pin-{n}"

    def get(self, pinned_id: str) -> PinnedCard | None:
        for pinned in self.cards:
            if pinned.pinned_id == pinned_id:
                return pinned
        return None

    def add(self, pinned: PinnedCard) -> PinRegistry:
        """
        Register a pinned card.

        Raises ValueError if its token is already in use.
        """
        if self.get(pinned.pinned_id) is not None:
            raise ValueError(f"Pin token {pinned.pinned_id} is already in use")
        number = token_number(pinned.pinned_id) or 0
        return PinRegistry(
            cards=self.cards + [pinned],
            next_pinned_id=max(self.next_pinned_id, number) + 1,
        )

    def remove(self, pinned_id: str) -> tuple[PinRegistry, PinnedCard | None]:
        """Return (new registry, removed card or None)."""
        removed = self.get(pinned_id)
        if removed is None:
            return self, None
        remaining = [p for p in self.cards if p.pinned_id != pinned_id]
        return PinRegistry(cards=remaining, next_pinned_id=self.next_pinned_id), removed

    def filter_by_deck(self, deck: DeckId) -> list[PinnedCard]:
        return [p for p in self.cards if p.deck == deck]

    def cards_for_deck(self, deck: DeckId) -> list[Card]:
        """The underlying card copies pinned from `deck`."""
        return [p.card for p in self.cards if p.deck == deck]

    def __len__(self) -> int:
        return len(self.cards)


def token_number(pinned_id: str) -> int | None:
    """The n of a `pin-<n>` token, or None for any other form."""
    prefix, _, number = pinned_id.partition("-")
    if prefix != "pin" or not number.isdigit():
        return None
    return int(number)
