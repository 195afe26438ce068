"""
Resources - Player and community balances and community membership.

Balances never go negative: deductions clamp at zero. Membership rules
(at least two members, one community per player) are checked by
`validate_membership`, which returns error messages rather than raising.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Iterable

from .assignments import AssignmentLedger


MIN_COMMUNITY_SIZE = 2


@dataclass(frozen=True)
class Player:
    name: str
    resources: int = 0

    def with_resources(self, resources: int) -> Player:
        return Player(name=self.name, resources=max(0, resources))

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "resources": self.resources}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Player:
        return cls(name=data["name"], resources=max(0, int(data.get("resources", 0))))


@dataclass(frozen=True)
class Community:
    """A group of at least two players sharing a resource pool."""
    id: str
    name: str
    resources: int = 0
    member_player_names: tuple[str, ...] = field(default_factory=tuple)

    @property
    def member_count(self) -> int:
        return len(self.member_player_names)

    def has_member(self, player_name: str) -> bool:
        return player_name in self.member_player_names

    def _copy_with(self, **kwargs) -> Community:
        return Community(
            id=kwargs.get("id", self.id),
            name=kwargs.get("name", self.name),
            resources=kwargs.get("resources", self.resources),
            member_player_names=tuple(
                kwargs.get("member_player_names", self.member_player_names)
            ),
        )

    def with_resources(self, resources: int) -> Community:
        return self._copy_with(resources=max(0, resources))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "resources": self.resources,
            "memberPlayerNames": list(self.member_player_names),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Community:
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            resources=max(0, int(data.get("resources", 0))),
            member_player_names=tuple(data.get("memberPlayerNames", [])),
        )


def community_id_for(sequence: int) -> str:
    return f"community-{sequence}"


def find_player(players: Iterable[Player], name: str) -> Player | None:
    for player in players:
        if player.name == name:
            return player
    return None


def find_community(communities: Iterable[Community], community_id: str) -> Community | None:
    for community in communities:
        if community.id == community_id:
            return community
    return None


def community_of(communities: Iterable[Community], player_name: str) -> Community | None:
    """The community a player belongs to, if any."""
    for community in communities:
        if community.has_member(player_name):
            return community
    return None


def validate_membership(
    players: list[Player],
    communities: list[Community],
    member_names: list[str],
    exclude_community_id: str | None = None,
) -> list[str]:
    """
    Check a proposed member list against the roster.

    `exclude_community_id` is the community being edited; its own members
    do not count as belonging elsewhere.
    """
    errors: list[str] = []
    if len(set(member_names)) != len(member_names):
        errors.append("Member list contains duplicates")
    if len(set(member_names)) < MIN_COMMUNITY_SIZE:
        errors.append(f"A community must have at least {MIN_COMMUNITY_SIZE} members")

    known = {p.name for p in players}
    for name in member_names:
        if name not in known:
            errors.append(f"Unknown player '{name}'")
            continue
        other = community_of(
            [c for c in communities if c.id != exclude_community_id], name
        )
        if other is not None:
            errors.append(f"{name} already belongs to {other.name}")
    return errors


def _charge_joining(
    players: list[Player],
    joining_names: Iterable[str],
    opt_out_names: Iterable[str],
    waived_names: Iterable[str],
    cost_per_member: int,
) -> tuple[list[Player], int]:
    """
    Apply the join rule to each joining player.

    Charged players pay `cost_per_member` (clamped at zero). Players who
    did not opt out move their remaining balance into the community.
    Returns (updated players, total transferred).
    """
    joining = set(joining_names)
    opt_out = set(opt_out_names)
    waived = set(waived_names)

    updated: list[Player] = []
    transferred = 0
    for player in players:
        if player.name not in joining:
            updated.append(player)
            continue
        balance = player.resources
        if player.name not in waived:
            balance = max(0, balance - cost_per_member)
        if player.name in opt_out:
            updated.append(player.with_resources(balance))
        else:
            transferred += balance
            updated.append(player.with_resources(0))
    return updated, transferred


def form_community(
    players: list[Player],
    joining_names: list[str],
    opt_out_names: Iterable[str],
    waived_names: Iterable[str],
    cost_per_member: int,
    community_id: str,
    name: str,
) -> tuple[list[Player], Community]:
    """
    Create a community from joining players.

    Returns (updated players, new community). The community starts with
    the sum of the balances transferred in.
    """
    updated, transferred = _charge_joining(
        players, joining_names, opt_out_names, waived_names, cost_per_member
    )
    community = Community(
        id=community_id,
        name=name,
        resources=transferred,
        member_player_names=tuple(joining_names),
    )
    return updated, community


def add_members(
    players: list[Player],
    community: Community,
    new_names: list[str],
    opt_out_names: Iterable[str],
    waived_names: Iterable[str],
    cost_per_member: int,
) -> tuple[list[Player], Community]:
    """Apply the join rule to newly added names only; existing members are untouched."""
    fresh = [n for n in new_names if not community.has_member(n)]
    updated, transferred = _charge_joining(
        players, fresh, opt_out_names, waived_names, cost_per_member
    )
    community = community._copy_with(
        resources=community.resources + transferred,
        member_player_names=community.member_player_names + tuple(fresh),
    )
    return updated, community


def remove_members(community: Community, names: Iterable[str]) -> Community:
    """Drop members. Nothing is refunded to them."""
    leaving = set(names)
    return community._copy_with(
        member_player_names=tuple(
            n for n in community.member_player_names if n not in leaving
        )
    )


def rename_members(community: Community, renames: dict[str, str]) -> Community:
    return community._copy_with(
        member_player_names=tuple(
            renames.get(n, n) for n in community.member_player_names
        )
    )


def disband_community(
    communities: list[Community],
    community_id: str,
    ledger: AssignmentLedger,
) -> tuple[list[Community], AssignmentLedger]:
    """
    Remove a community without refunding its pool.

    Community trait assignments pointing at it are cleared.
    """
    remaining = [c for c in communities if c.id != community_id]
    if len(remaining) == len(communities):
        return communities, ledger
    return remaining, ledger.drop_community(community_id)


def set_player_resources(players: list[Player], name: str, value: int) -> list[Player]:
    return [p.with_resources(value) if p.name == name else p for p in players]


def set_community_resources(
    communities: list[Community], community_id: str, value: int
) -> list[Community]:
    return [c.with_resources(value) if c.id == community_id else c for c in communities]


def replace_community(communities: list[Community], community: Community) -> list[Community]:
    return [community if c.id == community.id else c for c in communities]
