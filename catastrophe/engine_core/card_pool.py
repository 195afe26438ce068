"""
Card Pool - Multiset operations over card copies.

A pool is a list of Card references where each entry is one physical copy.
Every function here returns new lists; inputs are never modified.
"""

from __future__ import annotations
from collections import Counter
from typing import Iterable
import random

from .cards import Card


def initialize_pool(definitions: Iterable[Card]) -> list[Card]:
    """Expand each definition into `quantity` copies."""
    pool: list[Card] = []
    for card in definitions:
        pool.extend([card] * max(0, card.quantity))
    return pool


def sample_without_replacement(
    pool: list[Card],
    count: int,
    rng: random.Random | None = None,
) -> tuple[list[Card], list[Card]]:
    """
    Draw min(count, len(pool)) copies uniformly at random.

    Returns (selected, remaining). Together they hold exactly the copies
    of `pool`; `remaining` keeps the original relative order.
    """
    rng = rng or random
    take = max(0, min(count, len(pool)))
    if take == 0:
        return [], list(pool)

    indices = rng.sample(range(len(pool)), take)
    chosen = set(indices)
    selected = [pool[i] for i in indices]
    remaining = [card for i, card in enumerate(pool) if i not in chosen]
    return selected, remaining


def rebuild_excluding(
    definitions: Iterable[Card],
    excluded: Iterable[Card],
    reincluded: Iterable[Card],
) -> list[Card]:
    """
    Rebuild a pool from definitions.

    Every reincluded copy is kept, and each definition is topped up with
    fresh copies to quantity minus its excluded copies (never below zero).
    Reincluded copies count toward that total, so pool plus excluded never
    exceeds a definition's quantity.
    """
    reincluded = list(reincluded)
    excluded_counts = Counter(card.id for card in excluded)
    reincluded_counts = Counter(card.id for card in reincluded)
    pool: list[Card] = []
    for card in definitions:
        allowed = card.quantity - excluded_counts.get(card.id, 0)
        fresh = max(0, allowed - reincluded_counts.get(card.id, 0))
        pool.extend([card] * fresh)
    pool.extend(reincluded)
    return pool


def count_copies(cards: Iterable[Card], card_id: str) -> int:
    """Number of copies of `card_id` in a pool."""
    return sum(1 for card in cards if card.id == card_id)


def copy_counts(cards: Iterable[Card]) -> Counter:
    """Copies per card id."""
    return Counter(card.id for card in cards)


def remove_first(cards: list[Card], card_id: str) -> tuple[Card | None, list[Card]]:
    """Return (removed copy, new list) for the first copy of `card_id`."""
    for index, card in enumerate(cards):
        if card.id == card_id:
            return card, cards[:index] + cards[index + 1:]
    return None, list(cards)
