"""Data models for tournament round."""

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

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from bountypairing.models.game import Game
from bountypairing.type_hints import IdPairings


@dataclass
class RoundData:
    """Container for all data related to a single tournament round.

    Attributes
    ----------
    round_number : int
        Round number (1-indexed).
    games : list of Game
        Boards of the round, results attached as they come in.
    bye_player_id : str or None
        ID of the player receiving the bye, or None if no bye was assigned.
    method : str or None
        Search tier that produced the pairing, None for manual pairings.
    is_completed : bool
        Indicates whether the round's results have been finalized.
    """

    round_number: int
    games: List[Game] = field(default_factory=list)
    bye_player_id: Optional[str] = None
    method: Optional[str] = None
    is_completed: bool = False

    @property
    def pairings(self) -> IdPairings:
        return [(g.white_id, g.black_id) for g in self.games if g.black_id is not None]

    @property
    def pending_games(self) -> List[Game]:
        return [g for g in self.games if not g.completed]

    def game_for(self, player_id: str) -> Optional[Game]:
        """Return the board a player sits at, if any."""
        for game in self.games:
            if game.involves(player_id):
                return game
        return None

    def replace_game(self, updated: Game) -> None:
        """Swap in an updated copy of the game on the same board."""
        self.games = [
            updated if g.board_number == updated.board_number else g
            for g in self.games
        ]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize round data to dictionary."""
        return {
            "round_number": self.round_number,
            "games": [g.to_dict() for g in self.games],
            "bye_player_id": self.bye_player_id,
            "method": self.method,
            "is_completed": self.is_completed,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RoundData":
        """Deserialize round data from dictionary."""
        return cls(
            round_number=data["round_number"],
            games=[Game.from_dict(g) for g in data.get("games", [])],
            bye_player_id=data.get("bye_player_id"),
            method=data.get("method"),
            is_completed=data.get("is_completed", False),
        )
