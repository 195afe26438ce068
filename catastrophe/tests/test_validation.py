"""
Tests for deck definition validation.
"""

import pytest

from ..engine_core.cards import Card, DeckId
from ..engine_core.validation import DefinitionError, validate_definitions


class TestValidDefinitions:
    """Fixture decks pass cleanly."""

    def test_all_fixture_decks_valid(self, definitions):
        for deck, cards in definitions.items():
            result = validate_definitions(deck, cards)
            assert result.valid, result.errors
            assert result.warnings == []


class TestErrors:

    def test_empty_id(self):
        result = validate_definitions(DeckId.WANDERER, [Card(id="", display_name="X")])
        assert not result.valid
        assert "Card has empty ID" in result.errors

    def test_empty_display_name(self):
        result = validate_definitions(DeckId.WANDERER, [Card(id="w-1", display_name="")])
        assert not result.valid

    def test_negative_quantity(self):
        result = validate_definitions(
            DeckId.WANDERER, [Card(id="w-1", display_name="X", quantity=-1)]
        )
        assert any("negative quantity" in e for e in result.errors)

    def test_duplicate_ids(self):
        cards = [
            Card(id="w-1", display_name="X"),
            Card(id="w-1", display_name="Y"),
        ]
        result = validate_definitions(DeckId.WANDERER, cards)
        assert result.errors == ["Duplicate card id 'w-1' in Wanderer"]

    def test_raise_on_error(self):
        with pytest.raises(DefinitionError) as exc_info:
            validate_definitions(
                DeckId.WANDERER, [Card(id="", display_name="")], raise_on_error=True
            )
        assert len(exc_info.value.errors) == 2


class TestWarnings:

    def test_empty_deck(self):
        result = validate_definitions(DeckId.WANDERER, [])
        assert result.valid
        assert result.warnings == ["Wanderer has no cards"]

    def test_reveal_deck_too_small(self):
        result = validate_definitions(
            DeckId.DESPERATE_MEASURES, [Card(id="dm-1", display_name="Raid", quantity=2)]
        )
        assert result.valid
        assert any("full reveal" in w for w in result.warnings)

    def test_small_draw_deck_is_fine(self):
        result = validate_definitions(
            DeckId.INDIVIDUAL_EVENT, [Card(id="ie-1", display_name="Storm", quantity=1)]
        )
        assert result.warnings == []

    def test_unknown_trait_name(self):
        result = validate_definitions(
            DeckId.INDIVIDUAL_TRAITS,
            [Card(id="t-1", display_name="Telepathic", quantity=3)],
        )
        assert result.valid
        assert any("no known trait" in w for w in result.warnings)

    def test_unknown_interacting_trait(self):
        card = Card(
            id="ce-1", display_name="Flood", quantity=1, is_trait_effect="Amphibious"
        )
        result = validate_definitions(DeckId.COMMUNITY_EVENT, [card])
        assert result.warnings == ["Card 'ce-1' references unknown trait 'Amphibious'"]
