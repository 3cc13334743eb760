"""Result of a pairing computation for a single round."""

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
from enum import Enum
from typing import Any, Dict, List, Optional

from bountypairing.models.game import Game
from bountypairing.models.player import Player
from bountypairing.type_hints import IdPairings


class SearchTier(Enum):
    """Search tier that produced a round's pairing, cheapest first."""

    STRAIGHTFORWARD = "straightforward"
    TRANSPOSITION = "transposition"
    EXCHANGE = "exchange"
    BOUNDED_FALLBACK = "bounded_fallback"

    @property
    def rank(self) -> int:
        return list(SearchTier).index(self)


@dataclass
class PairingDiagnostics:
    """Counters collected while pairing one round.

    Attributes
    ----------
    brackets : int
        Brackets processed.
    transpositions : int
        Transpositions evaluated across all brackets.
    exchanges : int
        Resident and MDP exchanges evaluated.
    candidates_evaluated : int
        Candidate pairings checked against the criteria chain.
    budget_exhausted : bool
        True if any bracket hit the search cap.
    """

    brackets: int = 0
    transpositions: int = 0
    exchanges: int = 0
    candidates_evaluated: int = 0
    budget_exhausted: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "brackets": self.brackets,
            "transpositions": self.transpositions,
            "exchanges": self.exchanges,
            "candidates_evaluated": self.candidates_evaluated,
            "budget_exhausted": self.budget_exhausted,
        }


@dataclass
class PairingResult:
    """Result of a pairing computation for a single round.

    Attributes
    ----------
    round_number : int
        Round that was paired.
    games : list of Game
        Boards in bracket order, the bye (if any) last.
    success : bool
        True when every eligible player is on a board.
    method : SearchTier
        Most expensive search tier any bracket needed.
    bye_player_id : str or None
        Receiver of the pairing-allocated bye.
    diagnostics : PairingDiagnostics
        Search counters.
    violations : list of str
        Quality compromises accepted to keep the round playable.
    updated_players : list of Player
        New snapshots carrying this round's float markers.
    """

    round_number: int
    games: List[Game] = field(default_factory=list)
    success: bool = True
    method: SearchTier = SearchTier.STRAIGHTFORWARD
    bye_player_id: Optional[str] = None
    diagnostics: PairingDiagnostics = field(default_factory=PairingDiagnostics)
    violations: List[str] = field(default_factory=list)
    updated_players: List[Player] = field(default_factory=list)

    @property
    def pairings(self) -> IdPairings:
        """(white_id, black_id) for every board except the bye."""
        return [(g.white_id, g.black_id) for g in self.games if g.black_id is not None]

    def to_dict(self) -> Dict[str, Any]:
        """Serialize pairing result to dictionary."""
        return {
            "round_number": self.round_number,
            "games": [g.to_dict() for g in self.games],
            "success": self.success,
            "method": self.method.value,
            "bye_player_id": self.bye_player_id,
            "diagnostics": self.diagnostics.to_dict(),
            "violations": list(self.violations),
        }


#  LocalWords:  PairingResult
