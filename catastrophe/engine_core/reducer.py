"""
Reducer - Applies actions to game state.

The reducer is the single point of state mutation.
All state changes must go through apply_action().

Design principles:
- Pure function: (state, action) -> new_state
- Validates before applying
- Returns ActionResult with success/failure
- Delegates deck and ledger rules to the engine modules
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import random

from .cards import DeckKind, TraitEffect
from .action import Action, ActionType, ActionResult
from .state import GameState, GameOutcome, CounterName, Counters
from .resources import Player
from . import decks as deck_ops
from . import resources as ledger_ops
from . import trait_effects


logger = logging.getLogger(__name__)

INVALID_ACTION = "INVALID_ACTION"

# Purchases settle the game; they are closed once it is decided.
_PURCHASE_ACTIONS = {
    ActionType.BUY_CIVILIZATION,
    ActionType.BUY_EXTINCTION_DECREASE,
    ActionType.COMPROMISE,
}


@dataclass
class Reducer:
    """
    Reducer applies actions to game state.

    Stateless apart from the random source; all game state is in GameState.
    """
    rng: random.Random = field(default_factory=random.Random)

    def apply(self, state: GameState, action: Action) -> ActionResult:
        """
        Apply an action to the game state.

        Returns ActionResult with new state or error.
        """
        validation_error = self._validate_action(state, action)
        if validation_error:
            return ActionResult.failure(validation_error, error_code=INVALID_ACTION)

        handler = self._get_handler(action.action_type)
        if not handler:
            return ActionResult.failure(
                f"No handler for action type: {action.action_type}",
                error_code="NO_HANDLER",
            )

        try:
            result = handler(state, action)
        except Exception as e:
            logger.exception("Handler for %s failed", action.action_type.value)
            return ActionResult.failure(str(e), error_code="HANDLER_ERROR")

        if result.success:
            logger.debug("Applied %s: %s", action.action_type.value, result.state_changes)
        else:
            logger.info("Rejected %s: %s", action.action_type.value, result.error)
        return result

    def _validate_action(self, state: GameState, action: Action) -> str | None:
        """
        Validate that an action is legal in the current state.

        Returns error message if invalid, None if valid.
        """
        if state.outcome is not None and action.action_type in _PURCHASE_ACTIONS:
            return f"Game is over ({state.outcome.value}) - no purchases allowed"

        if action.action_type == ActionType.NEXT_TURN and state.settings.turn_assist:
            return "Turn assist is on - complete all turn actions to advance"

        deck_kinds = {
            ActionType.DRAW: DeckKind.DRAW,
            ActionType.REVEAL: DeckKind.REVEAL,
            ActionType.SELECT: DeckKind.REVEAL,
            ActionType.PIN: DeckKind.REVEAL,
        }
        if action.action_type in deck_kinds or action.action_type == ActionType.SHUFFLE:
            deck = action.payload.deck
            if deck is None:
                return f"{action.action_type.value} requires a deck"
            expected = deck_kinds.get(action.action_type)
            if expected is not None and deck.kind != expected:
                return f"Cannot {action.action_type.value} on the {deck.title} deck"

        return None

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.DRAW: self._handle_draw,
            ActionType.REVEAL: self._handle_reveal,
            ActionType.SELECT: self._handle_select,
            ActionType.PIN: self._handle_pin,
            ActionType.UNPIN: self._handle_unpin,
            ActionType.SHUFFLE: self._handle_shuffle,
            ActionType.ASSIGN_PLAYER: self._handle_assign_player,
            ActionType.ASSIGN_COMMUNITY: self._handle_assign_community,
            ActionType.FORM_COMMUNITY: self._handle_form_community,
            ActionType.ADD_MEMBERS: self._handle_add_members,
            ActionType.REMOVE_MEMBERS: self._handle_remove_members,
            ActionType.RENAME_COMMUNITY: self._handle_rename_community,
            ActionType.DISBAND_COMMUNITY: self._handle_disband_community,
            ActionType.SET_PLAYER_RESOURCES: self._handle_set_player_resources,
            ActionType.SET_COMMUNITY_RESOURCES: self._handle_set_community_resources,
            ActionType.PAY_UPKEEP: self._handle_pay_upkeep,
            ActionType.TOGGLE_BADGE: self._handle_toggle_badge,
            ActionType.UPDATE_SETTINGS: self._handle_update_settings,
            ActionType.ADJUST_COUNTER: self._handle_adjust_counter,
            ActionType.RESET_COUNTER: self._handle_reset_counter,
            ActionType.BUY_CIVILIZATION: self._handle_buy_civilization,
            ActionType.BUY_EXTINCTION_DECREASE: self._handle_buy_extinction_decrease,
            ActionType.COMPROMISE: self._handle_compromise,
            ActionType.NEXT_TURN: self._handle_next_turn,
            ActionType.PREVIOUS_TURN: self._handle_previous_turn,
            ActionType.RESET_TURN: self._handle_reset_turn,
            ActionType.NEXT_TURN_ACTION: self._handle_next_turn_action,
            ActionType.PREVIOUS_TURN_ACTION: self._handle_previous_turn_action,
            ActionType.NEW_GAME: self._handle_new_game,
        }
        return handlers.get(action_type)

    # =========================================================================
    # Deck handlers
    # =========================================================================

    def _handle_draw(self, state: GameState, action: Action) -> ActionResult:
        deck_id = action.payload.deck
        deck = state.deck(deck_id)
        new_deck = deck_ops.draw(deck, self.rng)
        if new_deck is deck:
            return ActionResult.unchanged(state, f"{deck_id.title} deck is empty")

        return ActionResult.success_with_state(
            state.with_deck(deck_id, new_deck),
            changes=[f"Drew {new_deck.drawn_card.display_name} from {deck_id.title}"],
        )

    def _handle_reveal(self, state: GameState, action: Action) -> ActionResult:
        deck_id = action.payload.deck
        deck = state.deck(deck_id)
        new_deck = deck_ops.reveal(deck, self.rng)

        changes = []
        if deck.revealed_cards:
            changes.append(f"Discarded {len(deck.revealed_cards)} revealed {deck_id.title} cards")
        names = ", ".join(c.display_name for c in new_deck.revealed_cards) or "nothing"
        changes.append(f"Revealed {names} from {deck_id.title}")

        return ActionResult.success_with_state(state.with_deck(deck_id, new_deck), changes=changes)

    def _handle_select(self, state: GameState, action: Action) -> ActionResult:
        deck_id = action.payload.deck
        deck = state.deck(deck_id)
        card = _find_revealed(deck, action.payload.card_id)
        if card is None:
            return ActionResult.unchanged(state, f"{action.payload.card_id} is not revealed")

        new_deck = deck_ops.select_card(deck, card, self.rng)
        return ActionResult.success_with_state(
            state.with_deck(deck_id, new_deck),
            changes=[f"Selected {card.display_name} from {deck_id.title}"],
        )

    def _handle_pin(self, state: GameState, action: Action) -> ActionResult:
        deck_id = action.payload.deck
        deck = state.deck(deck_id)
        card = _find_revealed(deck, action.payload.card_id)
        if card is None:
            return ActionResult.unchanged(state, f"{action.payload.card_id} is not revealed")

        new_deck, pinned = deck_ops.pin_card(
            deck, card, deck_id, state.pins.next_token(), self.rng
        )
        # add() raises on a live token; the handler then fails with state untouched
        new_state = state.with_deck(deck_id, new_deck)._copy_with(
            pins=state.pins.add(pinned),
        )
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Pinned {card.display_name} from {deck_id.title}"],
            outputs={"pinned_card": pinned},
        )

    def _handle_unpin(self, state: GameState, action: Action) -> ActionResult:
        pins, removed = state.pins.remove(action.payload.pinned_id)
        if removed is None:
            return ActionResult.unchanged(state, f"{action.payload.pinned_id} is not pinned")

        new_deck = deck_ops.unpin(state.deck(removed.deck), removed)
        new_state = state.with_deck(removed.deck, new_deck)._copy_with(
            pins=pins,
            assignments=state.assignments.release(removed.pinned_id),
        )
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Unpinned {removed.display_name} to the {removed.deck.title} discard pile"],
        )

    def _handle_shuffle(self, state: GameState, action: Action) -> ActionResult:
        deck_id = action.payload.deck
        deck = state.deck(deck_id)
        definitions = state.definitions_for(deck_id)

        if deck_id.kind == DeckKind.DRAW:
            new_deck = deck_ops.shuffle_draw_deck(deck, definitions)
        else:
            new_deck = deck_ops.shuffle_reveal_deck(
                deck, definitions, state.pins.cards_for_deck(deck_id)
            )

        return ActionResult.success_with_state(
            state.with_deck(deck_id, new_deck),
            changes=[f"Shuffled {deck_id.title} ({len(new_deck.available_cards)} cards)"],
        )

    # =========================================================================
    # Assignment handlers
    # =========================================================================

    def _handle_assign_player(self, state: GameState, action: Action) -> ActionResult:
        pinned_id = action.payload.pinned_id
        player_name = action.payload.player_name
        pinned = state.pins.get(pinned_id)
        if pinned is None:
            return ActionResult.unchanged(state, f"{pinned_id} is not pinned")
        if player_name is not None and state.get_player(player_name) is None:
            return ActionResult.failure(f"Player {player_name} not found", INVALID_ACTION)

        new_state = state._copy_with(
            assignments=state.assignments.assign_player(pinned_id, player_name),
        )
        if player_name is None:
            change = f"Cleared holder of {pinned.display_name}"
        else:
            change = f"Assigned {pinned.display_name} to {player_name}"
        return ActionResult.success_with_state(new_state, changes=[change])

    def _handle_assign_community(self, state: GameState, action: Action) -> ActionResult:
        pinned_id = action.payload.pinned_id
        community_id = action.payload.community_id
        pinned = state.pins.get(pinned_id)
        if pinned is None:
            return ActionResult.unchanged(state, f"{pinned_id} is not pinned")

        community = None
        if community_id is not None:
            community = state.get_community(community_id)
            if community is None:
                return ActionResult.failure(f"Community {community_id} not found", INVALID_ACTION)

        new_state = state._copy_with(
            assignments=state.assignments.assign_community(pinned_id, community_id),
        )
        if community is None:
            change = f"Cleared community of {pinned.display_name}"
        else:
            change = f"Assigned {pinned.display_name} to {community.name}"
        return ActionResult.success_with_state(new_state, changes=[change])

    # =========================================================================
    # Community and resource handlers
    # =========================================================================

    def _join_waivers(self, state: GameState, names: list[str], requested: list[str]) -> list[str]:
        """Caller-supplied waivers plus every joining Charismatic player."""
        charismatic = trait_effects.join_cost_waivers(names, state.assignments, state.pins)
        return list(dict.fromkeys(list(requested) + charismatic))

    def _handle_form_community(self, state: GameState, action: Action) -> ActionResult:
        payload = action.payload
        if state.counters.round < state.settings.solo_rounds:
            return ActionResult.failure(
                f"Communities can form from round {state.settings.solo_rounds}",
                INVALID_ACTION,
            )

        names = list(payload.member_names)
        errors = ledger_ops.validate_membership(state.players, state.communities, names)
        if errors:
            return ActionResult.failure("; ".join(errors), INVALID_ACTION)

        sequence = state.next_community_id
        name = (payload.community_name or "").strip() or f"Community {sequence}"
        players, community = ledger_ops.form_community(
            state.players,
            names,
            payload.opt_out_names,
            self._join_waivers(state, names, payload.waived_names),
            state.settings.community_cost_per_member,
            ledger_ops.community_id_for(sequence),
            name,
        )
        new_state = state.with_roster(
            players=players,
            communities=state.communities + [community],
            next_community_id=sequence + 1,
        )
        return ActionResult.success_with_state(
            new_state,
            changes=[
                f"Formed {community.name} with {', '.join(names)} "
                f"({community.resources} resources pooled)"
            ],
            outputs={"community": community},
        )

    def _handle_add_members(self, state: GameState, action: Action) -> ActionResult:
        payload = action.payload
        community = state.get_community(payload.community_id)
        if community is None:
            return ActionResult.failure(f"Community {payload.community_id} not found", INVALID_ACTION)

        new_names = [n for n in payload.member_names if not community.has_member(n)]
        if not new_names:
            return ActionResult.unchanged(state, "no new members")

        errors = ledger_ops.validate_membership(
            state.players,
            state.communities,
            list(community.member_player_names) + new_names,
            exclude_community_id=community.id,
        )
        if errors:
            return ActionResult.failure("; ".join(errors), INVALID_ACTION)

        players, updated = ledger_ops.add_members(
            state.players,
            community,
            new_names,
            payload.opt_out_names,
            self._join_waivers(state, new_names, payload.waived_names),
            state.settings.community_cost_per_member,
        )
        new_state = state.with_roster(
            players=players,
            communities=ledger_ops.replace_community(state.communities, updated),
        )
        return ActionResult.success_with_state(
            new_state,
            changes=[f"{', '.join(new_names)} joined {community.name}"],
        )

    def _handle_remove_members(self, state: GameState, action: Action) -> ActionResult:
        payload = action.payload
        community = state.get_community(payload.community_id)
        if community is None:
            return ActionResult.failure(f"Community {payload.community_id} not found", INVALID_ACTION)

        updated = ledger_ops.remove_members(community, payload.member_names)
        if updated.member_count == community.member_count:
            return ActionResult.unchanged(state, "no members removed")
        if updated.member_count < ledger_ops.MIN_COMMUNITY_SIZE:
            return ActionResult.failure(
                f"A community must have at least {ledger_ops.MIN_COMMUNITY_SIZE} members; "
                "disband it instead",
                INVALID_ACTION,
            )

        new_state = state.with_roster(
            communities=ledger_ops.replace_community(state.communities, updated),
        )
        left = [n for n in community.member_player_names if not updated.has_member(n)]
        return ActionResult.success_with_state(
            new_state,
            changes=[f"{', '.join(left)} left {community.name}"],
        )

    def _handle_rename_community(self, state: GameState, action: Action) -> ActionResult:
        community = state.get_community(action.payload.community_id)
        name = (action.payload.community_name or "").strip()
        if community is None:
            return ActionResult.failure(f"Community {action.payload.community_id} not found", INVALID_ACTION)
        if not name:
            return ActionResult.failure("Community name is required", INVALID_ACTION)

        updated = community._copy_with(name=name)
        new_state = state._copy_with(
            communities=ledger_ops.replace_community(state.communities, updated),
        )
        return ActionResult.success_with_state(
            new_state, changes=[f"Renamed {community.name} to {name}"]
        )

    def _handle_disband_community(self, state: GameState, action: Action) -> ActionResult:
        community = state.get_community(action.payload.community_id)
        if community is None:
            return ActionResult.unchanged(state, f"{action.payload.community_id} does not exist")

        communities, assignments = ledger_ops.disband_community(
            state.communities, community.id, state.assignments
        )
        new_state = state.with_roster(communities=communities, assignments=assignments)
        return ActionResult.success_with_state(
            new_state, changes=[f"Disbanded {community.name}"]
        )

    def _handle_set_player_resources(self, state: GameState, action: Action) -> ActionResult:
        name = action.payload.player_name
        if state.get_player(name) is None:
            return ActionResult.failure(f"Player {name} not found", INVALID_ACTION)

        players = ledger_ops.set_player_resources(state.players, name, action.payload.amount)
        new_state = state._copy_with(players=players)
        return ActionResult.success_with_state(
            new_state,
            changes=[f"{name} now has {new_state.get_player(name).resources} resources"],
        )

    def _handle_set_community_resources(self, state: GameState, action: Action) -> ActionResult:
        community_id = action.payload.community_id
        if state.get_community(community_id) is None:
            return ActionResult.failure(f"Community {community_id} not found", INVALID_ACTION)

        communities = ledger_ops.set_community_resources(
            state.communities, community_id, action.payload.amount
        )
        new_state = state._copy_with(communities=communities)
        community = new_state.get_community(community_id)
        return ActionResult.success_with_state(
            new_state,
            changes=[f"{community.name} now has {community.resources} resources"],
        )

    def _handle_pay_upkeep(self, state: GameState, action: Action) -> ActionResult:
        community = state.get_community(action.payload.community_id)
        if community is None:
            return ActionResult.failure(f"Community {action.payload.community_id} not found", INVALID_ACTION)

        cost = trait_effects.compute_upkeep_cost(
            community,
            state.settings.community_cost_per_member,
            state.assignments,
            state.pins,
        )
        updated = community.with_resources(community.resources - cost)
        new_state = state._copy_with(
            communities=ledger_ops.replace_community(state.communities, updated),
        )
        return ActionResult.success_with_state(
            new_state,
            changes=[f"{community.name} paid {cost} upkeep"],
            outputs={"upkeep_cost": cost},
        )

    # =========================================================================
    # Player handlers
    # =========================================================================

    def _handle_toggle_badge(self, state: GameState, action: Action) -> ActionResult:
        name = action.payload.player_name
        badge = action.payload.badge
        if badge is None:
            return ActionResult.failure("toggle_badge requires a badge", INVALID_ACTION)
        if state.get_player(name) is None:
            return ActionResult.failure(f"Player {name} not found", INVALID_ACTION)

        badges = state.badges.toggle(badge, name, state.counters.round)
        verb = "Set" if badges.has(badge, name) else "Cleared"
        return ActionResult.success_with_state(
            state._copy_with(badges=badges),
            changes=[f"{verb} {badge.value.replace('_', ' ')} for {name}"],
        )

    def _handle_update_settings(self, state: GameState, action: Action) -> ActionResult:
        """
        Apply edited settings, reconciling the roster with the new player list.

        Renamed players keep everything under the new name. New players
        start at zero. Removed players leave their community, lose their
        assignments and badges, and a community left below the minimum
        size is disbanded.
        """
        settings = action.payload.settings
        if settings is None:
            return ActionResult.failure("update_settings requires settings", INVALID_ACTION)

        roster = list(settings.players)
        if any(not name.strip() for name in roster):
            return ActionResult.failure("Player names cannot be empty", INVALID_ACTION)
        if len(set(roster)) != len(roster):
            return ActionResult.failure("Player names must be unique", INVALID_ACTION)

        renames = {old: new for old, new in action.payload.renames.items() if old != new}
        for old, new in renames.items():
            if state.get_player(old) is None:
                return ActionResult.failure(f"Player {old} not found", INVALID_ACTION)
            if new not in roster:
                return ActionResult.failure(f"{new} is not in the new player list", INVALID_ACTION)
            if state.get_player(new) is not None and new not in renames:
                return ActionResult.failure(f"Player {new} already exists", INVALID_ACTION)

        changes = []
        state = _rename_players(state, renames)
        changes.extend(f"Renamed {old} to {new}" for old, new in renames.items())

        current = {p.name: p for p in state.players}
        players = [current.get(name) or Player(name=name) for name in roster]
        removed = [name for name in current if name not in roster]
        changes.extend(f"Added {name}" for name in roster if name not in current)
        changes.extend(f"Removed {name}" for name in removed)

        assignments = state.assignments
        badges = state.badges
        for name in removed:
            assignments = assignments.drop_player(name)
            badges = badges.drop_player(name)

        communities = []
        for community in state.communities:
            updated = ledger_ops.remove_members(community, removed)
            if updated.member_count < ledger_ops.MIN_COMMUNITY_SIZE:
                assignments = assignments.drop_community(community.id)
                changes.append(f"Disbanded {community.name} (too few members)")
                continue
            communities.append(updated)

        counters = state.counters
        for counter in (CounterName.EXTINCTION, CounterName.CIVILIZATION):
            counters = counters.adjust(counter, 0, settings)

        new_state = _with_counters(state._copy_with(settings=settings), counters)
        new_state = new_state.with_roster(
            players=players,
            communities=communities,
            assignments=assignments,
            badges=badges,
        )
        changes.append("Settings updated")
        return ActionResult.success_with_state(new_state, changes=changes)

    # =========================================================================
    # Table handlers
    # =========================================================================

    def _handle_adjust_counter(self, state: GameState, action: Action) -> ActionResult:
        counter = action.payload.counter
        if counter is None:
            return ActionResult.failure("adjust_counter requires a counter", INVALID_ACTION)

        counters = state.counters.adjust(counter, action.payload.amount, state.settings)
        new_state = _with_counters(state, counters)
        return ActionResult.success_with_state(
            new_state,
            changes=[f"{counter.value.title()} is now {counters.value(counter)}"],
        )

    def _handle_reset_counter(self, state: GameState, action: Action) -> ActionResult:
        counter = action.payload.counter
        if counter is None:
            return ActionResult.failure("reset_counter requires a counter", INVALID_ACTION)

        new_state = _with_counters(state, state.counters.reset(counter))
        return ActionResult.success_with_state(
            new_state, changes=[f"{counter.value.title()} reset"]
        )

    def _handle_buy_civilization(self, state: GameState, action: Action) -> ActionResult:
        cost = state.settings.civilization_point_cost
        if state.counters.civilization >= state.settings.civilization_counter_max:
            return ActionResult.failure("Civilization is already at its maximum", INVALID_ACTION)

        payer_error = _payer_error(state, cost)
        if payer_error:
            return ActionResult.failure(payer_error, INVALID_ACTION)

        new_state = _charge_current_turn(state, -cost)
        counters = new_state.counters.adjust(CounterName.CIVILIZATION, 1, state.settings)
        new_state = _with_counters(new_state, counters)
        return ActionResult.success_with_state(
            new_state,
            changes=[f"{_turn_label(state)} bought a civilization point for {cost}"],
        )

    def _handle_buy_extinction_decrease(self, state: GameState, action: Action) -> ActionResult:
        cost = state.settings.extinction_point_cost
        community = state.current_community
        if community is None:
            return ActionResult.failure("Only available on a community turn", INVALID_ACTION)
        if not trait_effects.community_has_trait(
            community.id, TraitEffect.RESEARCH_LAB, state.assignments, state.pins
        ):
            return ActionResult.failure(f"{community.name} has no Research Lab", INVALID_ACTION)
        if state.counters.extinction <= 0:
            return ActionResult.failure("Extinction is already at zero", INVALID_ACTION)

        payer_error = _payer_error(state, cost)
        if payer_error:
            return ActionResult.failure(payer_error, INVALID_ACTION)

        new_state = _charge_current_turn(state, -cost)
        counters = new_state.counters.adjust(CounterName.EXTINCTION, -1, state.settings)
        new_state = _with_counters(new_state, counters)
        return ActionResult.success_with_state(
            new_state,
            changes=[f"{community.name} lowered extinction for {cost}"],
        )

    def _handle_compromise(self, state: GameState, action: Action) -> ActionResult:
        if state.is_creation_turn:
            return ActionResult.failure("Not available during creation phase", INVALID_ACTION)
        gain = state.settings.extinction_compromise
        payer_error = _payer_error(state, 0)
        if payer_error:
            return ActionResult.failure(payer_error, INVALID_ACTION)

        new_state = _charge_current_turn(state, gain)
        counters = new_state.counters.adjust(CounterName.EXTINCTION, 1, state.settings)
        new_state = _with_counters(new_state, counters)
        return ActionResult.success_with_state(
            new_state,
            changes=[f"{_turn_label(state)} compromised: extinction +1, {gain} resources gained"],
        )

    def _handle_next_turn(self, state: GameState, action: Action) -> ActionResult:
        if not state.turn_order:
            return ActionResult.unchanged(state, "no turns")

        new_state = _advance_turn(state)
        return ActionResult.success_with_state(
            new_state, changes=[f"Turn: {_turn_label(new_state)}"]
        )

    def _handle_previous_turn(self, state: GameState, action: Action) -> ActionResult:
        if not state.turn_order:
            return ActionResult.unchanged(state, "no turns")

        index = (state.current_turn_index - 1) % len(state.turn_order)
        new_state = state._copy_with(current_turn_index=index, current_turn_action_index=0)
        return ActionResult.success_with_state(
            new_state, changes=[f"Turn: {_turn_label(new_state)}"]
        )

    def _handle_reset_turn(self, state: GameState, action: Action) -> ActionResult:
        new_state = state._copy_with(current_turn_index=0, current_turn_action_index=0)
        return ActionResult.success_with_state(
            new_state, changes=[f"Turn: {_turn_label(new_state)}"]
        )

    def _handle_next_turn_action(self, state: GameState, action: Action) -> ActionResult:
        """Step through the turn's actions; finishing the last one ends the turn."""
        if not state.turn_order:
            return ActionResult.unchanged(state, "no turns")

        index = state.current_turn_action_index + 1
        if index < len(state.settings.turn_actions):
            new_state = state._copy_with(current_turn_action_index=index)
            return ActionResult.success_with_state(
                new_state, changes=[f"Turn action: {new_state.current_turn_action}"]
            )

        new_state = _advance_turn(state)
        return ActionResult.success_with_state(
            new_state, changes=[f"Turn: {_turn_label(new_state)}"]
        )

    def _handle_previous_turn_action(self, state: GameState, action: Action) -> ActionResult:
        if state.current_turn_action_index == 0:
            return ActionResult.unchanged(state, "already at the first turn action")

        new_state = state._copy_with(
            current_turn_action_index=state.current_turn_action_index - 1
        )
        return ActionResult.success_with_state(
            new_state, changes=[f"Turn action: {new_state.current_turn_action}"]
        )

    def _handle_new_game(self, state: GameState, action: Action) -> ActionResult:
        new_state = GameState.new_game(state.settings, state.definitions)
        return ActionResult.success_with_state(new_state, changes=["Started a new game"])


# =============================================================================
# Helpers
# =============================================================================

def _find_revealed(deck: deck_ops.DeckState, card_id: str | None):
    for card in deck.revealed_cards:
        if card.id == card_id:
            return card
    return None


def _resolve_outcome(state: GameState, counters: Counters) -> GameOutcome | None:
    """Extinction at its maximum loses; civilization at its maximum wins."""
    if counters.extinction >= state.settings.extinction_counter_max:
        return GameOutcome.LOSE
    if counters.civilization >= state.settings.civilization_counter_max:
        return GameOutcome.WIN
    return None


def _with_counters(state: GameState, counters: Counters) -> GameState:
    return state._copy_with(counters=counters, outcome=_resolve_outcome(state, counters))


def _advance_turn(state: GameState) -> GameState:
    """Next entry in the turn order; wrapping starts a new round."""
    index = state.current_turn_index + 1
    counters = state.counters
    if index >= len(state.turn_order):
        index = 0
        counters = counters.adjust(CounterName.ROUND, 1, state.settings)
    return state._copy_with(
        current_turn_index=index,
        current_turn_action_index=0,
        counters=counters,
        badges=state.badges.expire(counters.round),
    )


def _rename_players(state: GameState, renames: dict[str, str]) -> GameState:
    """Carry balances, memberships, assignments, badges and turn position to new names."""
    if not renames:
        return state
    players = [
        Player(name=renames.get(p.name, p.name), resources=p.resources) for p in state.players
    ]
    return state._copy_with(
        players=players,
        communities=[ledger_ops.rename_members(c, renames) for c in state.communities],
        assignments=state.assignments.rename_players(renames),
        badges=state.badges.rename_players(renames),
        turn_order=[renames.get(entry, entry) for entry in state.turn_order],
    )


def _turn_label(state: GameState) -> str:
    community = state.current_community
    if community is not None:
        return community.name
    if state.is_creation_turn:
        return "Creation"
    return state.current_turn or "nobody"


def _payer_error(state: GameState, cost: int) -> str | None:
    """Why the current turn's owner cannot pay `cost`, or None."""
    community = state.current_community
    if community is not None:
        balance = community.resources
    else:
        player = state.get_player(state.current_turn or "")
        if player is None:
            return "No player or community holds the current turn"
        balance = player.resources
    if balance < cost:
        return "Insufficient resources"
    return None


def _charge_current_turn(state: GameState, delta: int) -> GameState:
    """Add `delta` (negative to charge) to the current turn owner's balance."""
    community = state.current_community
    if community is not None:
        updated = community.with_resources(community.resources + delta)
        return state._copy_with(
            communities=ledger_ops.replace_community(state.communities, updated)
        )
    player = state.get_player(state.current_turn or "")
    return state._copy_with(
        players=ledger_ops.set_player_resources(
            state.players, player.name, player.resources + delta
        )
    )


def apply_action(state: GameState, action: Action, rng: random.Random | None = None) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a Reducer and applies the action.
    """
    reducer = Reducer(rng=rng) if rng is not None else Reducer()
    return reducer.apply(state, action)
