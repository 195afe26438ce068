"""
Trait Effects - Costs and predicates derived from assigned trait cards.

Pure functions over the pin registry, the assignment ledger and the
community roster. Only Individual Traits pins count toward a player's
traits and only Community Traits pins toward a community's.

Cost floors:
- upkeep never drops below one member's worth (`cost_per_member`)
- trait draw costs never drop below 1
"""

from __future__ import annotations
from typing import Iterable
import random

from .cards import DeckId, TraitEffect
from .pins import PinRegistry, PinnedCard
from .assignments import AssignmentLedger
from .resources import Community


EFFICIENT_REDUCTION_PER_MEMBER = 2
MIN_TRAIT_COST = 1
DIE_FACES = (0, 1, 2)


def player_traits(
    player_name: str,
    ledger: AssignmentLedger,
    registry: PinRegistry,
) -> list[PinnedCard]:
    """Individual trait cards assigned to a player."""
    traits = []
    for pinned_id in ledger.pins_for_player(player_name):
        pinned = registry.get(pinned_id)
        if pinned is not None and pinned.deck == DeckId.INDIVIDUAL_TRAITS:
            traits.append(pinned)
    return traits


def community_traits(
    community_id: str,
    ledger: AssignmentLedger,
    registry: PinRegistry,
) -> list[PinnedCard]:
    """Community trait cards assigned to a community."""
    traits = []
    for pinned_id in ledger.pins_for_community(community_id):
        pinned = registry.get(pinned_id)
        if pinned is not None and pinned.deck == DeckId.COMMUNITY_TRAITS:
            traits.append(pinned)
    return traits


def member_traits(
    community: Community,
    ledger: AssignmentLedger,
    registry: PinRegistry,
) -> list[PinnedCard]:
    """Individual trait cards held by every member of a community."""
    traits: list[PinnedCard] = []
    for name in community.member_player_names:
        traits.extend(player_traits(name, ledger, registry))
    return traits


def has_trait(
    player_name: str,
    trait: TraitEffect,
    ledger: AssignmentLedger,
    registry: PinRegistry,
) -> bool:
    """Does the player currently carry `trait`?"""
    return any(p.trait == trait for p in player_traits(player_name, ledger, registry))


def community_has_trait(
    community_id: str,
    trait: TraitEffect,
    ledger: AssignmentLedger,
    registry: PinRegistry,
) -> bool:
    return any(p.trait == trait for p in community_traits(community_id, ledger, registry))


def count_member_trait(
    community: Community,
    trait: TraitEffect,
    ledger: AssignmentLedger,
    registry: PinRegistry,
) -> int:
    return sum(1 for p in member_traits(community, ledger, registry) if p.trait == trait)


def players_with_trait(
    player_names: Iterable[str],
    trait: TraitEffect,
    ledger: AssignmentLedger,
    registry: PinRegistry,
) -> list[str]:
    return [n for n in player_names if has_trait(n, trait, ledger, registry)]


def compute_upkeep_cost(
    community: Community,
    cost_per_member: int,
    ledger: AssignmentLedger,
    registry: PinRegistry,
) -> int:
    """
    Periodic cost of a community.

    One member-unit per member, minus one per Self-Sufficient member, plus
    one per Helpless member, never below a single member-unit.
    """
    self_sufficient = count_member_trait(
        community, TraitEffect.SELF_SUFFICIENT, ledger, registry
    )
    helpless = count_member_trait(community, TraitEffect.HELPLESS, ledger, registry)
    cost = (community.member_count - self_sufficient + helpless) * cost_per_member
    return max(cost_per_member, cost)


def compute_efficient_reduction(
    community: Community | None,
    ledger: AssignmentLedger,
    registry: PinRegistry,
) -> int:
    """Two off trait costs per Efficient member; zero outside a community turn."""
    if community is None:
        return 0
    efficient = count_member_trait(community, TraitEffect.EFFICIENT, ledger, registry)
    return efficient * EFFICIENT_REDUCTION_PER_MEMBER


def floor_trait_cost(cost: int) -> int:
    return max(MIN_TRAIT_COST, cost)


def compute_trait_draw_cost(
    base_cost: int,
    community: Community | None,
    ledger: AssignmentLedger,
    registry: PinRegistry,
) -> int:
    """Individual trait cost after the Efficient reduction."""
    reduction = compute_efficient_reduction(community, ledger, registry)
    return floor_trait_cost(base_cost - reduction)


def compute_community_trait_cost(
    base_cost: int,
    community: Community,
    is_community_turn: bool,
    ledger: AssignmentLedger,
    registry: PinRegistry,
) -> int:
    """
    Community trait cost.

    On the community's own turn each member adds one to the base cost.
    The Efficient reduction applies either way.
    """
    cost = base_cost
    if is_community_turn:
        cost += community.member_count
    cost -= compute_efficient_reduction(community, ledger, registry)
    return floor_trait_cost(cost)


def join_cost_waivers(
    joining_names: Iterable[str],
    ledger: AssignmentLedger,
    registry: PinRegistry,
) -> list[str]:
    """Joining players whose community join cost is waived (Charismatic)."""
    return players_with_trait(joining_names, TraitEffect.CHARISMATIC, ledger, registry)


def roll_die(rng: random.Random | None = None, lucky: bool = False) -> int:
    """
    Roll the 0/1/2 die.

    A Lucky roller rolls twice and keeps the higher face.
    """
    rng = rng or random
    result = rng.choice(DIE_FACES)
    if lucky:
        result = max(result, rng.choice(DIE_FACES))
    return result
