"""Search caps shared by the bracket search and the bounded fallback."""

# Bounty Pairing
# Copyright (C) 2025  Bounty Pairing developers
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <http://www.gnu.org/licenses/>.

from dataclasses import dataclass
from typing import Optional

from bountypairing.constants import (
    CONFIG_LIMIT_HUGE,
    CONFIG_LIMIT_LARGE,
    CONFIG_LIMIT_MEDIUM,
    CONFIG_LIMIT_SMALL,
    FALLBACK_NODE_LIMIT,
    MAX_TOTAL_CANDIDATES,
)


def config_limit_for(bracket_size: int) -> int:
    """
    Number of candidate configurations to try for a bracket of this size.
    Small brackets are searched thoroughly, large ones narrowly.
    """
    if bracket_size <= 6:
        return CONFIG_LIMIT_SMALL
    if bracket_size <= 12:
        return CONFIG_LIMIT_MEDIUM
    if bracket_size <= 20:
        return CONFIG_LIMIT_LARGE
    return CONFIG_LIMIT_HUGE


@dataclass
class SearchBudget:
    """Counts work done in one round and says when to stop.

    Candidates are counted across the whole round. Nodes are counted per
    bracket; ``start_bracket`` clears them and ``start_level`` hands the
    next pair-count level a share of what the bracket has left, so the
    levels of one bracket never visit more than ``max_nodes`` together.

    Attributes
    ----------
    max_candidates : int
        Candidates that may be evaluated across the whole round.
    max_nodes : int
        Search-tree nodes the depth-first walks of one bracket may visit.
    candidates : int
        Candidates evaluated so far.
    nodes : int
        Nodes visited so far in the current bracket.
    level_nodes : int, optional
        Node count at which the current level stops, None for no level cap.
    cap_reached : bool
        Set once any cap has been hit and never cleared.
    """

    max_candidates: int = MAX_TOTAL_CANDIDATES
    max_nodes: int = FALLBACK_NODE_LIMIT * 10
    candidates: int = 0
    nodes: int = 0
    level_nodes: Optional[int] = None
    cap_reached: bool = False

    @property
    def node_cap(self) -> int:
        if self.level_nodes is None:
            return self.max_nodes
        return min(self.max_nodes, self.level_nodes)

    @property
    def exhausted(self) -> bool:
        return self.candidates >= self.max_candidates or self.nodes >= self.node_cap

    def start_bracket(self) -> None:
        self.nodes = 0
        self.level_nodes = None

    def start_level(self, share: int = 2) -> None:
        """Allow the next level ``1/share`` of the nodes left in the bracket."""
        left = max(self.max_nodes - self.nodes, 0)
        self.level_nodes = self.nodes + max(left // share, 1)

    def spend_node(self) -> bool:
        """Count one node. False, and nothing counted, once the cap is used up."""
        allowed = self.nodes < self.node_cap
        if allowed:
            self.nodes += 1
        if self.nodes >= self.node_cap:
            self.cap_reached = True
        return allowed

    def spend_candidate(self) -> bool:
        self.candidates += 1
        if self.candidates >= self.max_candidates:
            self.cap_reached = True
        return self.candidates <= self.max_candidates


@dataclass
class BracketLimit:
    """Per-bracket cap on configurations, on top of the round budget."""

    max_configs: int
    configs: int = 0

    @classmethod
    def for_bracket(cls, size: int, override: Optional[int] = None) -> "BracketLimit":
        return cls(max_configs=override or config_limit_for(size))

    @property
    def reached(self) -> bool:
        return self.configs >= self.max_configs
