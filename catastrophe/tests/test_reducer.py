"""
Tests for the reducer (state transitions).

Tests:
- Deck actions and pin bookkeeping
- Community formation and editing
- Counters, purchases and game outcome
- Turn order
- Validation and error handling
"""

import random
from dataclasses import replace

import pytest

from ..engine_core import decks as deck_ops
from ..engine_core.action import Action, ActionPayload, ActionType
from ..engine_core.cards import DeckId, TraitEffect
from ..engine_core.reducer import INVALID_ACTION, Reducer, apply_action
from ..engine_core.state import (
    CREATION_TURN,
    BadgeKind,
    CounterName,
    GameOutcome,
    PlayerBadges,
)


def run(reducer, state, *actions):
    """Apply actions in order, asserting each one succeeds."""
    for action in actions:
        result = reducer.apply(state, action)
        assert result.success, result.error
        state = result.new_state
    return state


def on_turn(reducer, state, turn):
    """Advance until `turn` holds the current turn."""
    for _ in range(len(state.turn_order)):
        if state.current_turn == turn:
            return state
        state = run(reducer, state, Action.next_turn())
    raise AssertionError(f"{turn} never came up")


def with_settings(state, **changes):
    return state._copy_with(settings=replace(state.settings, **changes))


class TestDeckActions:

    def test_draw(self, game_state, reducer):
        result = reducer.apply(game_state, Action.draw(DeckId.INDIVIDUAL_EVENT))

        assert result.success
        deck = result.new_state.deck(DeckId.INDIVIDUAL_EVENT)
        assert deck.drawn_card is not None
        assert len(deck.available_cards) == 2
        assert "Drew" in result.state_changes[0]

    def test_state_is_not_mutated(self, game_state, reducer):
        before = list(game_state.deck(DeckId.INDIVIDUAL_EVENT).available_cards)
        reducer.apply(game_state, Action.draw(DeckId.INDIVIDUAL_EVENT))
        assert game_state.deck(DeckId.INDIVIDUAL_EVENT).available_cards == before

    def test_draw_on_reveal_deck_fails(self, game_state, reducer):
        result = reducer.apply(game_state, Action.draw(DeckId.INDIVIDUAL_TRAITS))
        assert not result.success
        assert result.error_code == INVALID_ACTION

    def test_reveal_on_draw_deck_fails(self, game_state, reducer):
        result = reducer.apply(game_state, Action.reveal(DeckId.COMMUNITY_EVENT))
        assert not result.success

    def test_empty_deck_draw_is_noop(self, game_state, reducer):
        state = game_state
        for _ in range(3):
            state = run(reducer, state, Action.draw(DeckId.INDIVIDUAL_EVENT))

        result = reducer.apply(state, Action.draw(DeckId.INDIVIDUAL_EVENT))
        assert result.success
        assert result.new_state is state
        assert "empty" in result.outputs["noop"]

    def test_select_unrevealed_card_is_noop(self, game_state, reducer):
        result = reducer.apply(game_state, Action.select(DeckId.DESPERATE_MEASURES, "dm-raid"))
        assert result.success
        assert result.new_state is game_state
        assert "noop" in result.outputs

    def test_shuffle_draw_deck(self, game_state, reducer):
        state = run(
            reducer,
            game_state,
            Action.draw(DeckId.INDIVIDUAL_EVENT),
            Action.draw(DeckId.INDIVIDUAL_EVENT),
            Action.shuffle(DeckId.INDIVIDUAL_EVENT),
        )
        deck = state.deck(DeckId.INDIVIDUAL_EVENT)
        assert len(deck.available_cards) == 3
        assert deck.drawn_card is None
        assert deck.discarded_cards == []


class TestPinActions:

    def pin_first(self, reducer, state, deck=DeckId.INDIVIDUAL_TRAITS):
        state = run(reducer, state, Action.reveal(deck))
        card = state.deck(deck).revealed_cards[0]
        result = reducer.apply(state, Action.pin(deck, card.id))
        assert result.success
        return result.new_state, result.outputs["pinned_card"]

    def test_pin_registers_card(self, game_state, reducer):
        state, pinned = self.pin_first(reducer, game_state)

        assert pinned.pinned_id == "pin-1"
        assert pinned.deck == DeckId.INDIVIDUAL_TRAITS
        assert state.pins.get("pin-1") is pinned
        assert state.deck(DeckId.INDIVIDUAL_TRAITS).discarded_cards == []

    def test_assign_and_unpin(self, game_state, reducer):
        state, pinned = self.pin_first(reducer, game_state)
        state = run(reducer, state, Action.assign_player(pinned.pinned_id, "P1"))
        assert state.assignments.player_for(pinned.pinned_id) == "P1"

        state = run(reducer, state, Action.unpin(pinned.pinned_id))

        assert state.pins.get(pinned.pinned_id) is None
        assert state.assignments.player_for(pinned.pinned_id) is None
        assert pinned.card in state.deck(DeckId.INDIVIDUAL_TRAITS).discarded_cards

    def test_shuffle_keeps_pinned_out(self, game_state, reducer):
        state, pinned = self.pin_first(reducer, game_state)
        state = run(reducer, state, Action.shuffle(DeckId.INDIVIDUAL_TRAITS))

        deck = state.deck(DeckId.INDIVIDUAL_TRAITS)
        total = sum(c.quantity for c in state.definitions_for(DeckId.INDIVIDUAL_TRAITS))
        assert len(deck.available_cards) == total - 1
        assert deck.revealed_cards == []

    def test_assign_unknown_pin_is_noop(self, game_state, reducer):
        result = reducer.apply(game_state, Action.assign_player("pin-42", "P1"))
        assert result.success
        assert result.new_state is game_state

    def test_assign_unknown_player_fails(self, game_state, reducer):
        state, pinned = self.pin_first(reducer, game_state)
        result = reducer.apply(state, Action.assign_player(pinned.pinned_id, "Ghost"))
        assert not result.success
        assert result.error_code == INVALID_ACTION

    def test_assign_to_community(self, game_state, reducer):
        state = run(reducer, game_state, Action.form_community("Riverside", ["P1", "P2"]))
        state, pinned = self.pin_first(reducer, state, DeckId.COMMUNITY_TRAITS)
        state = run(reducer, state, Action.assign_community(pinned.pinned_id, "community-1"))

        assert state.assignments.community_for(pinned.pinned_id) == "community-1"

        state = run(reducer, state, Action.assign_community(pinned.pinned_id, None))
        assert state.assignments.community_for(pinned.pinned_id) is None

    def test_unpin_unknown_is_noop(self, game_state, reducer):
        result = reducer.apply(game_state, Action.unpin("pin-7"))
        assert result.success
        assert result.new_state is game_state


class TestCommunityActions:

    def test_form_community(self, game_state, reducer):
        state = run(
            reducer,
            game_state,
            Action.set_player_resources("P1", 5),
            Action.set_player_resources("P2", 3),
            Action.form_community("", ["P1", "P2"]),
        )
        community = state.get_community("community-1")

        assert community.name == "Community 1"
        assert community.resources == 6
        assert state.get_player("P1").resources == 0
        assert state.get_player("P2").resources == 0
        assert state.next_community_id == 2
        assert state.turn_order == [CREATION_TURN, "P3", "community-1"]

    def test_charismatic_joins_free(self, game_state, reducer, grant_traits):
        state = grant_traits(game_state, players={"P2": [TraitEffect.CHARISMATIC]})
        state = run(
            reducer,
            state,
            Action.set_player_resources("P1", 5),
            Action.set_player_resources("P2", 3),
            Action.form_community("Riverside", ["P1", "P2"]),
        )
        assert state.get_community("community-1").resources == 7

    def test_form_with_member_of_other_community_fails(self, game_state, reducer):
        state = run(reducer, game_state, Action.form_community("A", ["P1", "P2"]))
        result = reducer.apply(state, Action.form_community("B", ["P2", "P3"]))

        assert not result.success
        assert "already belongs" in result.error

    def test_form_single_member_fails(self, game_state, reducer):
        result = reducer.apply(game_state, Action.form_community("Solo", ["P1"]))
        assert not result.success

    def test_add_and_remove_members(self, game_state, reducer):
        state = run(
            reducer,
            game_state,
            Action.form_community("A", ["P1", "P2"]),
            Action.set_player_resources("P3", 4),
            Action.add_members("community-1", ["P3"]),
        )
        community = state.get_community("community-1")
        assert community.member_player_names == ("P1", "P2", "P3")
        assert community.resources == 3
        assert state.turn_order == [CREATION_TURN, "community-1"]

        state = run(reducer, state, Action.remove_members("community-1", ["P3"]))
        assert state.get_community("community-1").resources == 3
        assert state.turn_order == [CREATION_TURN, "P3", "community-1"]

    def test_remove_below_minimum_fails(self, game_state, reducer):
        state = run(reducer, game_state, Action.form_community("A", ["P1", "P2"]))
        result = reducer.apply(state, Action.remove_members("community-1", ["P2"]))
        assert not result.success
        assert "disband" in result.error

    def test_rename(self, game_state, reducer):
        state = run(
            reducer,
            game_state,
            Action.form_community("A", ["P1", "P2"]),
            Action.rename_community("community-1", "Hilltop"),
        )
        assert state.get_community("community-1").name == "Hilltop"

    def test_disband_releases_turn_and_traits(self, game_state, reducer, grant_traits):
        state = run(reducer, game_state, Action.form_community("A", ["P1", "P2"]))
        state = grant_traits(state, communities={"community-1": [TraitEffect.RESEARCH_LAB]})
        state = run(reducer, state, Action.disband_community("community-1"))

        assert state.communities == []
        assert state.assignments.community_assignments == {}
        assert state.turn_order == [CREATION_TURN, "P1", "P2", "P3"]
        # Pinned cards stay pinned
        assert len(state.pins) == 1

    def test_disband_unknown_is_noop(self, game_state, reducer):
        result = reducer.apply(game_state, Action.disband_community("community-9"))
        assert result.success
        assert result.new_state is game_state

    def test_pay_upkeep(self, game_state, reducer, grant_traits):
        state = run(
            reducer,
            game_state,
            Action.set_player_resources("P1", 5),
            Action.set_player_resources("P2", 3),
            Action.form_community("A", ["P1", "P2"]),
        )
        state = grant_traits(state, players={"P1": [TraitEffect.SELF_SUFFICIENT]})
        result = reducer.apply(state, Action.pay_upkeep("community-1"))

        assert result.success
        assert result.outputs["upkeep_cost"] == 1
        assert result.new_state.get_community("community-1").resources == 5

    def test_negative_balance_clamps(self, game_state, reducer):
        state = run(reducer, game_state, Action.set_player_resources("P1", -3))
        assert state.get_player("P1").resources == 0

    def test_unknown_player_balance_fails(self, game_state, reducer):
        result = reducer.apply(game_state, Action.set_player_resources("Ghost", 3))
        assert not result.success
        assert result.error_code == INVALID_ACTION


class TestCounters:

    def test_adjust_clamps(self, game_state, reducer):
        state = run(reducer, game_state, Action.adjust_counter(CounterName.EXTINCTION, -4))
        assert state.counters.extinction == 0

        state = run(reducer, state, Action.adjust_counter(CounterName.EXTINCTION, 99))
        assert state.counters.extinction == game_state.settings.extinction_counter_max

    def test_extinction_max_loses(self, game_state, reducer):
        state = run(reducer, game_state, Action.adjust_counter(CounterName.EXTINCTION, 20))
        assert state.outcome == GameOutcome.LOSE

    def test_civilization_max_wins(self, game_state, reducer):
        state = run(reducer, game_state, Action.adjust_counter(CounterName.CIVILIZATION, 20))
        assert state.outcome == GameOutcome.WIN

    def test_lose_takes_precedence(self, game_state, reducer):
        state = run(
            reducer,
            game_state,
            Action.adjust_counter(CounterName.CIVILIZATION, 20),
            Action.adjust_counter(CounterName.EXTINCTION, 20),
        )
        assert state.outcome == GameOutcome.LOSE

    def test_lowering_counter_clears_outcome(self, game_state, reducer):
        state = run(
            reducer,
            game_state,
            Action.adjust_counter(CounterName.EXTINCTION, 20),
            Action.adjust_counter(CounterName.EXTINCTION, -1),
        )
        assert state.outcome is None

    def test_reset_counter(self, game_state, reducer):
        state = run(
            reducer,
            game_state,
            Action.adjust_counter(CounterName.CIVILIZATION, 4),
            Action.reset_counter(CounterName.CIVILIZATION),
        )
        assert state.counters.civilization == 0


class TestPurchases:

    def test_buy_civilization(self, game_state, reducer):
        state = run(reducer, game_state, Action.set_player_resources("P1", 6))
        state = on_turn(reducer, state, "P1")
        state = run(reducer, state, Action.buy_civilization())

        assert state.counters.civilization == 1
        assert state.get_player("P1").resources == 1

    def test_buy_civilization_insufficient(self, game_state, reducer):
        state = on_turn(reducer, game_state, "P1")
        result = reducer.apply(state, Action.buy_civilization())
        assert not result.success
        assert result.error == "Insufficient resources"

    def test_buy_civilization_on_creation_turn_fails(self, game_state, reducer):
        result = reducer.apply(game_state, Action.buy_civilization())
        assert not result.success

    def test_buy_civilization_winning_purchase(self, game_state, reducer):
        state = run(
            reducer,
            game_state,
            Action.adjust_counter(CounterName.CIVILIZATION, 19),
            Action.set_player_resources("P1", 5),
        )
        state = on_turn(reducer, state, "P1")
        state = run(reducer, state, Action.buy_civilization())
        assert state.outcome == GameOutcome.WIN

    def test_purchases_blocked_after_outcome(self, game_state, reducer):
        state = run(
            reducer,
            game_state,
            Action.set_player_resources("P1", 50),
            Action.adjust_counter(CounterName.EXTINCTION, 20),
        )
        state = on_turn(reducer, state, "P1")

        for action in (Action.buy_civilization(), Action.compromise()):
            result = reducer.apply(state, action)
            assert not result.success
            assert "over" in result.error

    def test_extinction_decrease_with_research_lab(self, game_state, reducer, grant_traits):
        state = run(
            reducer,
            game_state,
            Action.set_player_resources("P1", 5),
            Action.set_player_resources("P2", 3),
            Action.form_community("A", ["P1", "P2"]),
            Action.adjust_counter(CounterName.EXTINCTION, 3),
        )
        state = grant_traits(state, communities={"community-1": [TraitEffect.RESEARCH_LAB]})
        state = on_turn(reducer, state, "community-1")
        state = run(reducer, state, Action.buy_extinction_decrease())

        assert state.counters.extinction == 2
        assert state.get_community("community-1").resources == 1

    def test_extinction_decrease_without_lab_fails(self, game_state, reducer):
        state = run(
            reducer,
            game_state,
            Action.form_community("A", ["P1", "P2"]),
            Action.set_community_resources("community-1", 10),
            Action.adjust_counter(CounterName.EXTINCTION, 3),
        )
        state = on_turn(reducer, state, "community-1")
        result = reducer.apply(state, Action.buy_extinction_decrease())

        assert not result.success
        assert "Research Lab" in result.error

    def test_extinction_decrease_at_zero_fails(self, game_state, reducer, grant_traits):
        state = run(
            reducer,
            game_state,
            Action.form_community("A", ["P1", "P2"]),
            Action.set_community_resources("community-1", 10),
        )
        state = grant_traits(state, communities={"community-1": [TraitEffect.RESEARCH_LAB]})
        state = on_turn(reducer, state, "community-1")
        result = reducer.apply(state, Action.buy_extinction_decrease())
        assert not result.success

    def test_compromise(self, game_state, reducer):
        state = on_turn(reducer, game_state, "P2")
        state = run(reducer, state, Action.compromise())

        assert state.counters.extinction == 1
        assert state.get_player("P2").resources == game_state.settings.extinction_compromise

    def test_compromise_on_creation_turn_fails(self, game_state, reducer):
        result = reducer.apply(game_state, Action.compromise())
        assert not result.success
        assert "creation" in result.error


class TestTurns:

    def test_initial_order(self, game_state):
        assert game_state.turn_order == [CREATION_TURN, "P1", "P2", "P3"]
        assert game_state.current_turn == CREATION_TURN

    def test_next_turn_wraps_and_counts_rounds(self, game_state, reducer):
        state = game_state
        for _ in range(4):
            state = run(reducer, state, Action.next_turn())

        assert state.current_turn == CREATION_TURN
        assert state.counters.round == 1

    def test_previous_turn_wraps(self, game_state, reducer):
        state = run(reducer, game_state, Action.previous_turn())
        assert state.current_turn == "P3"
        assert state.counters.round == 0

    def test_reset_turn(self, game_state, reducer):
        state = run(reducer, game_state, Action.next_turn(), Action.next_turn(), Action.reset_turn())
        assert state.current_turn == CREATION_TURN

    def test_turn_follows_holder_when_roster_changes(self, game_state, reducer):
        state = on_turn(reducer, game_state, "P3")
        state = run(reducer, state, Action.form_community("A", ["P1", "P2"]))
        assert state.current_turn == "P3"


class TestTurnActions:

    STEPS = ("Draw event", "Resolve event", "Spend resources")

    def test_turn_assist_blocks_manual_advance(self, game_state, reducer):
        state = with_settings(game_state, turn_assist=True)
        result = reducer.apply(state, Action.next_turn())

        assert not result.success
        assert result.error_code == INVALID_ACTION
        assert "turn actions" in result.error

    def test_turn_assist_leaves_other_turn_moves_alone(self, game_state, reducer):
        state = with_settings(game_state, turn_assist=True)
        state = run(reducer, state, Action.previous_turn(), Action.reset_turn())
        assert state.current_turn == CREATION_TURN

    def test_steps_then_advances(self, game_state, reducer):
        state = with_settings(game_state, turn_assist=True, turn_actions=self.STEPS)
        assert state.current_turn_action == "Draw event"

        state = run(reducer, state, Action.next_turn_action())
        assert state.current_turn_action == "Resolve event"
        assert state.current_turn == CREATION_TURN

        state = run(reducer, state, Action.next_turn_action(), Action.next_turn_action())
        assert state.current_turn == "P1"
        assert state.current_turn_action == "Draw event"

    def test_without_steps_each_call_ends_the_turn(self, game_state, reducer):
        state = with_settings(game_state, turn_assist=True)
        assert state.current_turn_action is None

        for _ in range(4):
            state = run(reducer, state, Action.next_turn_action())
        assert state.current_turn == CREATION_TURN
        assert state.counters.round == 1

    def test_previous_turn_action(self, game_state, reducer):
        state = with_settings(game_state, turn_actions=self.STEPS)
        result = reducer.apply(state, Action.previous_turn_action())
        assert result.outputs["noop"]

        state = run(
            reducer, state, Action.next_turn_action(), Action.next_turn_action(),
            Action.previous_turn_action(),
        )
        assert state.current_turn_action == "Resolve event"

    def test_changing_turn_restarts_the_steps(self, game_state, reducer):
        state = with_settings(game_state, turn_actions=self.STEPS)
        state = run(reducer, state, Action.next_turn_action(), Action.previous_turn())
        assert state.current_turn_action_index == 0

        state = run(reducer, state, Action.next_turn_action(), Action.next_turn())
        assert state.current_turn_action_index == 0


class TestBadges:

    def test_toggle_on_and_off(self, game_state, reducer):
        state = run(reducer, game_state, Action.toggle_badge("P1", BadgeKind.MISSING_TURN))
        assert state.badges.has(BadgeKind.MISSING_TURN, "P1")
        assert state.badges.badges_for("P1") == [BadgeKind.MISSING_TURN]
        assert state.badges.badge_round == 0

        state = run(reducer, state, Action.toggle_badge("P1", BadgeKind.MISSING_TURN))
        assert state.badges == PlayerBadges()

    def test_badges_are_independent(self, game_state, reducer):
        state = run(
            reducer,
            game_state,
            Action.toggle_badge("P1", BadgeKind.MISSING_RESOURCES),
            Action.toggle_badge("P2", BadgeKind.EXTRA_EVENT_CARD),
            Action.toggle_badge("P1", BadgeKind.EXTRA_EVENT_CARD),
        )
        assert state.badges.missing_resources == ("P1",)
        assert state.badges.extra_event_card == ("P2", "P1")

    def test_unknown_player(self, game_state, reducer):
        result = reducer.apply(game_state, Action.toggle_badge("P9", BadgeKind.MISSING_TURN))
        assert not result.success
        assert result.error_code == INVALID_ACTION

    def test_badge_required(self, game_state, reducer):
        action = Action(ActionType.TOGGLE_BADGE, ActionPayload(player_name="P1"))
        assert not reducer.apply(game_state, action).success

    def test_badges_clear_two_rounds_after_being_set(self, game_state, reducer):
        state = run(reducer, game_state, Action.toggle_badge("P2", BadgeKind.MISSING_TURN))
        turns_per_round = len(state.turn_order)

        for _ in range(turns_per_round):
            state = run(reducer, state, Action.next_turn())
        assert state.counters.round == 1
        assert state.badges.has(BadgeKind.MISSING_TURN, "P2")

        for _ in range(turns_per_round):
            state = run(reducer, state, Action.next_turn())
        assert state.counters.round == 2
        assert state.badges == PlayerBadges()

    def test_wanderer_is_the_last_player_outside(self, game_state, reducer):
        assert game_state.wanderer_players == []

        state = run(reducer, game_state, Action.form_community("A", ["P1", "P2"]))
        assert state.wanderer_players == ["P3"]

        state = run(reducer, state, Action.disband_community("community-1"))
        assert state.wanderer_players == []


class TestSoloRounds:

    def test_communities_wait_for_solo_rounds(self, game_state, reducer):
        state = with_settings(game_state, solo_rounds=2)
        result = reducer.apply(state, Action.form_community("A", ["P1", "P2"]))

        assert not result.success
        assert "round 2" in result.error

        state = run(reducer, state, Action.adjust_counter(CounterName.ROUND, 2))
        state = run(reducer, state, Action.form_community("A", ["P1", "P2"]))
        assert len(state.communities) == 1


class TestUpdateSettings:

    def update(self, reducer, state, players, renames=None, **changes):
        settings = replace(state.settings, players=tuple(players), **changes)
        return reducer.apply(state, Action.update_settings(settings, renames))

    def test_adds_players_with_empty_balances(self, game_state, reducer):
        state = run(reducer, game_state, Action.set_player_resources("P1", 4))
        result = self.update(reducer, state, ["P1", "P2", "P3", "P4"])

        assert result.success
        new_state = result.new_state
        assert new_state.get_player("P4").resources == 0
        assert new_state.get_player("P1").resources == 4
        assert new_state.turn_order == [CREATION_TURN, "P1", "P2", "P3", "P4"]
        assert "Added P4" in result.state_changes

    def test_removed_player_loses_assignments_and_badges(
        self, game_state, reducer, grant_traits
    ):
        state = grant_traits(game_state, players={"P3": [TraitEffect.LUCKY]})
        state = run(reducer, state, Action.toggle_badge("P3", BadgeKind.MISSING_TURN))

        new_state = self.update(reducer, state, ["P1", "P2"]).new_state

        assert new_state.get_player("P3") is None
        assert new_state.assignments.pins_for_player("P3") == []
        assert len(new_state.pins) == 1
        assert new_state.badges == PlayerBadges()
        assert new_state.turn_order == [CREATION_TURN, "P1", "P2"]

    def test_turn_moves_off_a_removed_player(self, game_state, reducer):
        state = on_turn(reducer, game_state, "P3")
        new_state = self.update(reducer, state, ["P1", "P2"]).new_state
        assert new_state.current_turn in new_state.turn_order

    def test_removed_member_leaves_community(self, game_state, reducer):
        state = run(reducer, game_state, Action.form_community("A", ["P1", "P2", "P3"]))
        new_state = self.update(reducer, state, ["P1", "P2"]).new_state

        assert new_state.get_community("community-1").member_player_names == ("P1", "P2")

    def test_community_below_minimum_is_disbanded(self, game_state, reducer, grant_traits):
        state = run(reducer, game_state, Action.form_community("A", ["P1", "P2"]))
        state = grant_traits(state, communities={"community-1": [TraitEffect.RESEARCH_LAB]})

        result = self.update(reducer, state, ["P1", "P3"])

        new_state = result.new_state
        assert new_state.communities == []
        assert new_state.assignments.community_assignments == {}
        assert new_state.turn_order == [CREATION_TURN, "P1", "P3"]
        assert any("Disbanded A" in change for change in result.state_changes)

    def test_rename_carries_everything(self, game_state, reducer, grant_traits):
        state = run(
            reducer,
            game_state,
            Action.form_community("A", ["P1", "P2"]),
            Action.set_player_resources("P1", 3),
            Action.toggle_badge("P1", BadgeKind.EXTRA_EVENT_CARD),
        )
        state = grant_traits(state, players={"P1": [TraitEffect.LUCKY]})

        result = self.update(reducer, state, ["Ana", "P2", "P3"], renames={"P1": "Ana"})

        assert result.success, result.error
        new_state = result.new_state
        assert new_state.get_player("P1") is None
        assert new_state.get_player("Ana").resources == 3
        assert new_state.get_community("community-1").member_player_names == ("Ana", "P2")
        assert new_state.assignments.pins_for_player("Ana") == ["pin-1"]
        assert new_state.badges.has(BadgeKind.EXTRA_EVENT_CARD, "Ana")
        assert "Renamed P1 to Ana" in result.state_changes

    def test_renamed_player_keeps_the_turn(self, game_state, reducer):
        state = on_turn(reducer, game_state, "P2")
        new_state = self.update(
            reducer, state, ["P1", "Bo", "P3"], renames={"P2": "Bo"}
        ).new_state
        assert new_state.current_turn == "Bo"

    def test_swapped_names(self, game_state, reducer):
        state = run(reducer, game_state, Action.set_player_resources("P1", 4))
        new_state = self.update(
            reducer, state, ["P2", "P1", "P3"], renames={"P1": "P2", "P2": "P1"}
        ).new_state

        assert new_state.get_player("P2").resources == 4
        assert new_state.get_player("P1").resources == 0

    @pytest.mark.parametrize("players, renames, message", [
        (["P1", "P1"], None, "unique"),
        (["P1", " "], None, "empty"),
        (["P1", "Ana"], {"P9": "Ana"}, "P9 not found"),
        (["P1", "P2", "P3"], {"P1": "Ana"}, "not in the new player list"),
        (["P2", "P3"], {"P1": "P2"}, "already exists"),
    ])
    def test_rejects_bad_rosters(self, game_state, reducer, players, renames, message):
        result = self.update(reducer, game_state, players, renames)

        assert not result.success
        assert result.error_code == INVALID_ACTION
        assert message in result.error

    def test_settings_required(self, game_state, reducer):
        assert not reducer.apply(game_state, Action(ActionType.UPDATE_SETTINGS)).success

    def test_lower_counter_max_clamps_and_settles(self, game_state, reducer):
        state = run(reducer, game_state, Action.adjust_counter(CounterName.EXTINCTION, 10))
        new_state = self.update(
            reducer, state, ["P1", "P2", "P3"], extinction_counter_max=8
        ).new_state

        assert new_state.counters.extinction == 8
        assert new_state.outcome == GameOutcome.LOSE

    def test_new_game_uses_updated_roster(self, game_state, reducer):
        state = self.update(reducer, game_state, ["P1", "P2"], trait_draw_cost=5).new_state
        state = run(reducer, state, Action.new_game())

        assert [p.name for p in state.players] == ["P1", "P2"]
        assert state.settings.trait_draw_cost == 5


class TestNewGame:

    def test_new_game_resets_everything(self, game_state, reducer):
        state = run(
            reducer,
            game_state,
            Action.set_player_resources("P1", 4),
            Action.form_community("A", ["P1", "P2"]),
            Action.adjust_counter(CounterName.EXTINCTION, 20),
            Action.draw(DeckId.INDIVIDUAL_EVENT),
            Action.new_game(),
        )

        assert state.communities == []
        assert state.outcome is None
        assert state.counters.extinction == 0
        assert state.deck(DeckId.INDIVIDUAL_EVENT).drawn_card is None
        assert all(p.resources == 0 for p in state.players)
        assert state.settings == game_state.settings


class TestErrorHandling:

    def test_deck_action_requires_deck(self, game_state, reducer):
        result = reducer.apply(game_state, Action(ActionType.SHUFFLE))
        assert not result.success
        assert "requires a deck" in result.error

    def test_adjust_requires_counter(self, game_state, reducer):
        result = reducer.apply(game_state, Action(ActionType.ADJUST_COUNTER))
        assert not result.success

    def test_handler_exception_becomes_failure(self, game_state, reducer, monkeypatch):
        def explode(state, rng=None):
            raise RuntimeError("deck jammed")

        monkeypatch.setattr(deck_ops, "draw", explode)
        result = reducer.apply(game_state, Action.draw(DeckId.INDIVIDUAL_EVENT))

        assert not result.success
        assert result.error_code == "HANDLER_ERROR"
        assert "deck jammed" in result.error

    def test_apply_action_helper(self, game_state):
        result = apply_action(
            game_state, Action.draw(DeckId.INDIVIDUAL_EVENT), rng=random.Random(3)
        )
        assert result.success


class TestSeededDeterminism:

    @pytest.mark.parametrize("deck", [DeckId.INDIVIDUAL_TRAITS, DeckId.DESPERATE_MEASURES])
    def test_same_seed_same_reveal(self, game_state, deck):
        first = Reducer(rng=random.Random(8)).apply(game_state, Action.reveal(deck))
        second = Reducer(rng=random.Random(8)).apply(game_state, Action.reveal(deck))

        assert first.new_state.deck(deck).revealed_cards == second.new_state.deck(deck).revealed_cards
