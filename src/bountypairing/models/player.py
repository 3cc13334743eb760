"""Immutable player snapshot consumed by the pairing engine."""

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

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from bountypairing.type_hints import BLACK, BYE, WHITE
from bountypairing.utils import setup_logger

logger = setup_logger(__name__)


class FloatDirection(Enum):
    """Float direction of a player in one round."""

    UP = "UP"
    DOWN = "DOWN"
    NONE = "NONE"


@dataclass(frozen=True)
class Player:
    """
    Snapshot of one competitor's tournament state.

    Snapshots are never mutated. Every state change (a game, a bye, a float,
    a withdrawal) returns a new snapshot, so a round's computation can never
    leak into the input of another.

    Attributes
    ----------
    id : str
        Unique identifier for the player.
    name : str
        Player's display name.
    score : float
        Cumulative score, in half-point increments.
    seed : int
        Initial seeding rank (pairing number). Lower is stronger.
    rating : int or None
        Optional external rating, used to order players inside a score group.
    opponent_ids : frozenset of str
        Players already met over the board.
    color_history : tuple of str
        Chronological ``"White"``, ``"Black"`` or ``"Bye"`` entries.
    float_history : dict of int to FloatDirection
        Round number to float direction. Rounds without a float are absent.
    games_played : int
        Games played, forfeits included.
    is_active : bool
        False once the player has withdrawn.
    bye_count : int
        Pairing-allocated byes received.
    forfeit_wins : int
        Wins received because an opponent did not show.
    forfeit_losses : int
        Games lost by not showing.
    entry_round : int
        First round the player could be paired in.
    missed_rounds : tuple of int
        Rounds missed before a late entry.
    withdrawn_in_round : int or None
        Round in which the player withdrew, if any.
    temporary_seed : bool
        True while ``seed`` is a provisional number given to a late entry.
    """

    id: str
    name: str = ""
    score: float = 0.0
    seed: int = 0
    rating: Optional[int] = None
    opponent_ids: FrozenSet[str] = frozenset()
    color_history: Tuple[str, ...] = ()
    float_history: Dict[int, FloatDirection] = field(default_factory=dict)
    games_played: int = 0
    is_active: bool = True
    bye_count: int = 0
    forfeit_wins: int = 0
    forfeit_losses: int = 0
    entry_round: int = 1
    missed_rounds: Tuple[int, ...] = ()
    withdrawn_in_round: Optional[int] = None
    temporary_seed: bool = False

    @property
    def played_colors(self) -> List[str]:
        """Colors of games actually played, byes skipped."""
        return [c for c in self.color_history if c != BYE]

    @property
    def color_difference(self) -> int:
        """Whites minus blacks over played games."""
        played = self.played_colors
        return played.count(WHITE) - played.count(BLACK)

    @property
    def has_received_bye(self) -> bool:
        return self.bye_count > 0

    @property
    def rank_key(self) -> Tuple[float, int, int]:
        """Sort key for pairing order: score, then rating, then seed."""
        return (-self.score, -(self.rating or 0), self.seed)

    def has_played(self, other_id: str) -> bool:
        return other_id in self.opponent_ids

    def float_in(self, round_number: int) -> FloatDirection:
        return self.float_history.get(round_number, FloatDirection.NONE)

    def with_float(self, round_number: int, direction: FloatDirection) -> "Player":
        """Return a snapshot with the float of ``round_number`` recorded."""
        history = dict(self.float_history)
        if direction is FloatDirection.NONE:
            history.pop(round_number, None)
        else:
            history[round_number] = direction
        return replace(self, float_history=history)

    def with_game(self, opponent_id: str, color: str, points: float) -> "Player":
        """Return a snapshot after a game played over the board."""
        return replace(
            self,
            score=self.score + points,
            opponent_ids=self.opponent_ids | {opponent_id},
            color_history=self.color_history + (color,),
            games_played=self.games_played + 1,
        )

    def with_bye(self, points: float) -> "Player":
        """Return a snapshot after a pairing-allocated bye."""
        return replace(
            self,
            score=self.score + points,
            color_history=self.color_history + (BYE,),
            bye_count=self.bye_count + 1,
        )

    def with_forfeit(self, won: bool, points: float) -> "Player":
        """Return a snapshot after a forfeited game.

        A forfeit counts as a game played but adds neither an opponent nor a
        color, so the two players may still meet over the board later.
        """
        return replace(
            self,
            score=self.score + points,
            games_played=self.games_played + 1,
            forfeit_wins=self.forfeit_wins + (1 if won else 0),
            forfeit_losses=self.forfeit_losses + (0 if won else 1),
        )

    def withdrawn(self, round_number: int) -> "Player":
        return replace(self, is_active=False, withdrawn_in_round=round_number)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize player data to dictionary format."""
        return {
            "id": self.id,
            "name": self.name,
            "score": self.score,
            "seed": self.seed,
            "rating": self.rating,
            "opponent_ids": sorted(self.opponent_ids),
            "color_history": list(self.color_history),
            "float_history": {
                str(rnd): direction.value
                for rnd, direction in sorted(self.float_history.items())
            },
            "games_played": self.games_played,
            "is_active": self.is_active,
            "bye_count": self.bye_count,
            "forfeit_wins": self.forfeit_wins,
            "forfeit_losses": self.forfeit_losses,
            "entry_round": self.entry_round,
            "missed_rounds": list(self.missed_rounds),
            "withdrawn_in_round": self.withdrawn_in_round,
            "temporary_seed": self.temporary_seed,
        }

    @classmethod
    def from_dict(cls, player_data: Dict[str, Any]) -> "Player":
        """Create a Player snapshot from serialized dictionary data.

        Missing history fields are treated as round-1 defaults rather than
        errors, and a warning is logged for each one.

        Args:
            player_data: Dictionary containing player data

        Returns:
            Player snapshot with restored state

        Raises:
            KeyError: If the player id is missing
        """
        player_id = str(player_data["id"])
        for key in HISTORY_FIELDS:
            if player_data.get(key) is None:
                logger.warning(
                    "Player %s has no '%s'; using round-1 default", player_id, key
                )

        color_history = tuple(
            BYE if c is None else c for c in player_data.get("color_history") or ()
        )
        float_history = {
            int(rnd): FloatDirection(direction)
            for rnd, direction in (player_data.get("float_history") or {}).items()
        }
        bye_count = player_data.get("bye_count")
        if bye_count is None:
            bye_count = color_history.count(BYE)
        games_played = player_data.get("games_played")
        if games_played is None:
            games_played = len([c for c in color_history if c != BYE])

        return cls(
            id=player_id,
            name=player_data.get("name", player_id),
            score=float(player_data.get("score") or 0.0),
            seed=int(player_data.get("seed") or 0),
            rating=player_data.get("rating"),
            opponent_ids=frozenset(
                str(o) for o in player_data.get("opponent_ids") or () if o is not None
            ),
            color_history=color_history,
            float_history=float_history,
            games_played=games_played,
            is_active=player_data.get("is_active", True),
            bye_count=bye_count,
            forfeit_wins=player_data.get("forfeit_wins") or 0,
            forfeit_losses=player_data.get("forfeit_losses") or 0,
            entry_round=player_data.get("entry_round") or 1,
            missed_rounds=tuple(player_data.get("missed_rounds") or ()),
            withdrawn_in_round=player_data.get("withdrawn_in_round"),
            temporary_seed=player_data.get("temporary_seed", False),
        )

    def __repr__(self) -> str:
        return f"Player(id='{self.id}', score={self.score}, seed={self.seed})"


# Fields whose absence falls back to a fresh entrant's state
HISTORY_FIELDS = ("score", "opponent_ids", "color_history", "float_history")
