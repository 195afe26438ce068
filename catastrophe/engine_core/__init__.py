"""
Engine Core - Deterministic deck, pin and ledger state management.

The engine is the runtime that:
1. Loads card definitions
2. Manages GameState
3. Applies actions via the reducer
4. Derives trait-based costs
"""

from .cards import Card, CardType, DeckId, DeckKind, TraitEffect, load_definitions
from .decks import DeckState
from .pins import PinnedCard, PinRegistry
from .assignments import AssignmentLedger
from .resources import Player, Community
from .state import GameState, GameSettings, GameOutcome, Counters, CounterName, BadgeKind, PlayerBadges
from .action import Action, ActionType, ActionPayload, ActionResult
from .reducer import Reducer, apply_action
from .validation import ValidationResult, DefinitionError, validate_definitions

__all__ = [
    "Card",
    "CardType",
    "DeckId",
    "DeckKind",
    "TraitEffect",
    "load_definitions",
    "DeckState",
    "PinnedCard",
    "PinRegistry",
    "AssignmentLedger",
    "Player",
    "Community",
    "GameState",
    "GameSettings",
    "GameOutcome",
    "Counters",
    "CounterName",
    "BadgeKind",
    "PlayerBadges",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "Reducer",
    "apply_action",
    "ValidationResult",
    "DefinitionError",
    "validate_definitions",
]
