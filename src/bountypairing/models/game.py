"""Game record emitted for each board of a round."""

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
from typing import Any, Dict, Optional, Tuple

from bountypairing.constants import FORFEIT_RESULTS, RESULT_BYE


def _default_sheriff_usage() -> Dict[str, bool]:
    return {"white": False, "black": False}


@dataclass(frozen=True)
class Game:
    """One board of a round.

    Attributes
    ----------
    round_number : int
        Round the game belongs to (1-indexed).
    board_number : int
        Board number, 1 for the top board.
    white_id : str
        ID of the white player, or of the bye receiver.
    black_id : str or None
        ID of the black player, or None for a bye.
    result : str or None
        Result string from ``constants.VALID_RESULTS``. Empty until played,
        except for a bye, which is completed automatically.
    completed : bool
        True once a result has been attached.
    forfeit_reason : str or None
        Why the game was forfeited, if it was.
    sheriff_usage : dict of str to bool
        Side-economy flags per color, left at their defaults here.
    bounty_transfer : int
        Side-economy transfer, always 0 for byes and forfeits.
    """

    round_number: int
    board_number: int
    white_id: str
    black_id: Optional[str]
    result: Optional[str] = None
    completed: bool = False
    forfeit_reason: Optional[str] = None
    sheriff_usage: Dict[str, bool] = field(default_factory=_default_sheriff_usage)
    bounty_transfer: int = 0

    @property
    def is_bye(self) -> bool:
        return self.black_id is None

    @property
    def is_forfeit(self) -> bool:
        return self.result in FORFEIT_RESULTS

    @property
    def player_ids(self) -> Tuple[str, ...]:
        if self.black_id is None:
            return (self.white_id,)
        return (self.white_id, self.black_id)

    def involves(self, player_id: str) -> bool:
        return player_id in self.player_ids

    def opponent_of(self, player_id: str) -> Optional[str]:
        """Return the other player on the board, None for a bye."""
        if player_id == self.white_id:
            return self.black_id
        if player_id == self.black_id:
            return self.white_id
        raise ValueError(f"Player {player_id} is not on board {self.board_number}")

    def with_result(self, result: str, forfeit_reason: Optional[str] = None) -> "Game":
        return replace(
            self, result=result, completed=True, forfeit_reason=forfeit_reason
        )

    @classmethod
    def bye(cls, round_number: int, board_number: int, player_id: str) -> "Game":
        """Build an auto-completed bye board."""
        return cls(
            round_number=round_number,
            board_number=board_number,
            white_id=player_id,
            black_id=None,
            result=RESULT_BYE,
            completed=True,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize game to dictionary."""
        return {
            "round_number": self.round_number,
            "board_number": self.board_number,
            "white_id": self.white_id,
            "black_id": self.black_id,
            "result": self.result,
            "completed": self.completed,
            "forfeit_reason": self.forfeit_reason,
            "sheriff_usage": dict(self.sheriff_usage),
            "bounty_transfer": self.bounty_transfer,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Game":
        """Deserialize game from dictionary."""
        return cls(
            round_number=data["round_number"],
            board_number=data["board_number"],
            white_id=data["white_id"],
            black_id=data.get("black_id"),
            result=data.get("result"),
            completed=data.get("completed", False),
            forfeit_reason=data.get("forfeit_reason"),
            sheriff_usage=data.get("sheriff_usage") or _default_sheriff_usage(),
            bounty_transfer=data.get("bounty_transfer", 0),
        )
