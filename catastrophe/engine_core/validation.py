"""
Definition Validation - Sanity checks for deck definition files.

Validates that:
1. Every card has an id and a display name
2. Ids are unique within a deck
3. Quantities are non-negative
4. Reveal decks can fill a reveal, and trait names resolve
"""

from __future__ import annotations
from collections import Counter
from dataclasses import dataclass

from .cards import Card, DeckId, DeckKind, TraitEffect
from .decks import REVEAL_COUNT


_TRAIT_DECKS = (DeckId.INDIVIDUAL_TRAITS, DeckId.COMMUNITY_TRAITS)


class DefinitionError(Exception):
    """Raised when deck definitions fail validation."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Deck validation failed with {len(errors)} error(s)")


@dataclass
class ValidationResult:
    """Result of validation, with errors and warnings."""
    valid: bool
    errors: list[str]
    warnings: list[str]


def validate_definitions(
    deck: DeckId,
    cards: list[Card],
    raise_on_error: bool = False,
) -> ValidationResult:
    """
    Validate the definitions of one deck.

    Returns ValidationResult with errors and warnings.
    Raises DefinitionError if raise_on_error=True and errors exist.
    """
    errors: list[str] = []
    warnings: list[str] = []

    for card in cards:
        errors.extend(_validate_card(card))

    duplicates = [card_id for card_id, n in Counter(c.id for c in cards).items() if n > 1]
    for card_id in duplicates:
        errors.append(f"Duplicate card id '{card_id}' in {deck.title}")

    if not cards:
        warnings.append(f"{deck.title} has no cards")

    total = sum(max(0, c.quantity) for c in cards)
    if deck.kind == DeckKind.REVEAL and 0 < total < REVEAL_COUNT:
        warnings.append(
            f"{deck.title} has {total} cards; a full reveal needs {REVEAL_COUNT}"
        )

    if deck in _TRAIT_DECKS:
        for card in cards:
            if card.display_name and card.trait is None:
                warnings.append(
                    f"Card '{card.id}' ({card.display_name}) has no known trait effect"
                )

    for card in cards:
        if card.is_trait_effect and card.interacting_trait is None:
            warnings.append(
                f"Card '{card.id}' references unknown trait '{card.is_trait_effect}'"
            )

    if errors and raise_on_error:
        raise DefinitionError(errors)

    return ValidationResult(
        valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
    )


def _validate_card(card: Card) -> list[str]:
    """Validate a single card definition."""
    errors = []
    if not card.id:
        errors.append("Card has empty ID")
    if not card.display_name:
        errors.append(f"Card '{card.id}' has empty display name")
    if card.quantity < 0:
        errors.append(f"Card '{card.id}' has negative quantity {card.quantity}")
    return errors
