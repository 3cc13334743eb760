"""Tournament configuration model."""

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
from typing import Any, Dict, Optional

from bountypairing.constants import (
    BYE_SCORE,
    BYE_SCORES,
    DEFAULT_PAIRING_SYSTEM,
    DEFAULT_TIME_MINUTES,
    FALLBACK_NODE_LIMIT,
    FORFEIT_LOSS_SCORE,
    FORFEIT_WIN_SCORE,
    GRACE_PERIOD_MINUTES,
    MAX_TOTAL_CANDIDATES,
)
from bountypairing.exceptions import ConfigurationException
from bountypairing.type_hints import BLACK, WHITE


@dataclass
class TournamentConfig:
    """Tournament configuration settings.

    Attributes
    ----------
    name : str
        Tournament name.
    num_rounds : int
        Number of rounds in the tournament.
    pairing_system : str
        Strategy name used for generating pairings. Supported values are
        "dutch_swiss" and "manual".
    initial_color : str
        Color drawn for the top board of round 1.
    upper_half_white : bool
        When True the upper half gets white on every round-1 board; otherwise
        colors alternate from ``initial_color`` board by board.
    bye_score : float
        Points awarded for a pairing-allocated bye.
    forfeit_win_score : float
        Points for a win by forfeit.
    forfeit_loss_score : float
        Points for a loss by forfeit.
    default_time_minutes : int
        Minutes after the scheduled start before a no-show forfeits.
    grace_period_minutes : int
        Extra minutes added to the default time.
    allow_late_entries : bool
        Whether players may join after round 1.
    late_entry_deadline_round : int or None
        Last round a late entry may join in, None for no deadline.
    late_entry_missed_round_points : float
        Points credited per missed round to a late entry.
    max_configs_per_bracket : int or None
        Cap on S1/S2 configurations tried per bracket, None to size it
        from the bracket.
    max_total_candidates : int
        Cap on candidates evaluated across one round.
    fallback_node_limit : int
        Cap on search nodes for the bounded fallback.
    """

    name: str = "Untitled Tournament"
    num_rounds: int = 5
    pairing_system: str = DEFAULT_PAIRING_SYSTEM
    initial_color: str = WHITE
    upper_half_white: bool = True
    bye_score: float = BYE_SCORE
    forfeit_win_score: float = FORFEIT_WIN_SCORE
    forfeit_loss_score: float = FORFEIT_LOSS_SCORE
    default_time_minutes: int = DEFAULT_TIME_MINUTES
    grace_period_minutes: int = GRACE_PERIOD_MINUTES
    allow_late_entries: bool = True
    late_entry_deadline_round: Optional[int] = None
    late_entry_missed_round_points: float = 0.0
    max_configs_per_bracket: Optional[int] = None
    max_total_candidates: int = MAX_TOTAL_CANDIDATES
    fallback_node_limit: int = FALLBACK_NODE_LIMIT

    def __post_init__(self):
        if self.num_rounds < 1:
            raise ConfigurationException(
                f"num_rounds must be at least 1, got {self.num_rounds}"
            )
        if self.initial_color not in (WHITE, BLACK):
            raise ConfigurationException(
                f"initial_color must be '{WHITE}' or '{BLACK}', got {self.initial_color!r}"
            )
        if self.default_time_minutes < 0 or self.grace_period_minutes < 0:
            raise ConfigurationException("Default time and grace period must be >= 0")
        if self.bye_score not in BYE_SCORES:
            raise ConfigurationException(
                f"bye_score must be one of {BYE_SCORES}, got {self.bye_score}"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize configuration to dictionary."""
        return {
            "name": self.name,
            "num_rounds": self.num_rounds,
            "pairing_system": self.pairing_system,
            "initial_color": self.initial_color,
            "upper_half_white": self.upper_half_white,
            "bye_score": self.bye_score,
            "forfeit_win_score": self.forfeit_win_score,
            "forfeit_loss_score": self.forfeit_loss_score,
            "default_time_minutes": self.default_time_minutes,
            "grace_period_minutes": self.grace_period_minutes,
            "allow_late_entries": self.allow_late_entries,
            "late_entry_deadline_round": self.late_entry_deadline_round,
            "late_entry_missed_round_points": self.late_entry_missed_round_points,
            "max_configs_per_bracket": self.max_configs_per_bracket,
            "max_total_candidates": self.max_total_candidates,
            "fallback_node_limit": self.fallback_node_limit,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TournamentConfig":
        """Deserialize configuration from dictionary."""
        return cls(
            name=data.get("name", "Untitled Tournament"),
            num_rounds=data["num_rounds"],
            pairing_system=data.get("pairing_system", DEFAULT_PAIRING_SYSTEM),
            initial_color=data.get("initial_color", WHITE),
            upper_half_white=data.get("upper_half_white", True),
            bye_score=data.get("bye_score", BYE_SCORE),
            forfeit_win_score=data.get("forfeit_win_score", FORFEIT_WIN_SCORE),
            forfeit_loss_score=data.get("forfeit_loss_score", FORFEIT_LOSS_SCORE),
            default_time_minutes=data.get("default_time_minutes", DEFAULT_TIME_MINUTES),
            grace_period_minutes=data.get("grace_period_minutes", GRACE_PERIOD_MINUTES),
            allow_late_entries=data.get("allow_late_entries", True),
            late_entry_deadline_round=data.get("late_entry_deadline_round"),
            late_entry_missed_round_points=data.get(
                "late_entry_missed_round_points", 0.0
            ),
            max_configs_per_bracket=data.get("max_configs_per_bracket"),
            max_total_candidates=data.get("max_total_candidates", MAX_TOTAL_CANDIDATES),
            fallback_node_limit=data.get("fallback_node_limit", FALLBACK_NODE_LIMIT),
        )
