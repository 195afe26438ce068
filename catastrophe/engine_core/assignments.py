"""
Assignment Ledger - Which player or community holds each pinned card.

Keyed by pinned_id. Entries disappear when the pinned card is unpinned or
when the player or community they point at no longer exists.
"""

from __future__ import annotations
from dataclasses import dataclass, field


@dataclass
class AssignmentLedger:
    """Pinned card -> player name, and pinned card -> community id."""
    player_assignments: dict[str, str] = field(default_factory=dict)
    community_assignments: dict[str, str] = field(default_factory=dict)

    def player_for(self, pinned_id: str) -> str | None:
        return self.player_assignments.get(pinned_id)

    def community_for(self, pinned_id: str) -> str | None:
        return self.community_assignments.get(pinned_id)

    def pins_for_player(self, player_name: str) -> list[str]:
        return [pid for pid, name in self.player_assignments.items() if name == player_name]

    def pins_for_community(self, community_id: str) -> list[str]:
        return [pid for pid, cid in self.community_assignments.items() if cid == community_id]

    def assign_player(self, pinned_id: str, player_name: str | None) -> AssignmentLedger:
        """Assign to a player, or clear the assignment with None."""
        players = dict(self.player_assignments)
        if player_name is None:
            players.pop(pinned_id, None)
        else:
            players[pinned_id] = player_name
        return AssignmentLedger(players, dict(self.community_assignments))

    def assign_community(self, pinned_id: str, community_id: str | None) -> AssignmentLedger:
        """Assign to a community, or clear the assignment with None."""
        communities = dict(self.community_assignments)
        if community_id is None:
            communities.pop(pinned_id, None)
        else:
            communities[pinned_id] = community_id
        return AssignmentLedger(dict(self.player_assignments), communities)

    def release(self, pinned_id: str) -> AssignmentLedger:
        """Drop both assignments of a pinned card."""
        return AssignmentLedger(
            {k: v for k, v in self.player_assignments.items() if k != pinned_id},
            {k: v for k, v in self.community_assignments.items() if k != pinned_id},
        )

    def drop_player(self, player_name: str) -> AssignmentLedger:
        return AssignmentLedger(
            {k: v for k, v in self.player_assignments.items() if v != player_name},
            dict(self.community_assignments),
        )

    def rename_players(self, renames: dict[str, str]) -> AssignmentLedger:
        return AssignmentLedger(
            {k: renames.get(v, v) for k, v in self.player_assignments.items()},
            dict(self.community_assignments),
        )

    def drop_community(self, community_id: str) -> AssignmentLedger:
        return AssignmentLedger(
            dict(self.player_assignments),
            {k: v for k, v in self.community_assignments.items() if v != community_id},
        )

    def to_pairs(self) -> tuple[list[list[str]], list[list[str]]]:
        """Entry arrays for JSON, which has no map type."""
        return (
            [[k, v] for k, v in self.player_assignments.items()],
            [[k, v] for k, v in self.community_assignments.items()],
        )

    @classmethod
    def from_pairs(
        cls,
        player_pairs: list[list[str]] | list[tuple[str, str]],
        community_pairs: list[list[str]] | list[tuple[str, str]],
    ) -> AssignmentLedger:
        return cls(
            {str(k): str(v) for k, v in player_pairs},
            {str(k): str(v) for k, v in community_pairs},
        )
