"""Type hints used in Bounty Pairing."""

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

from typing import Dict, FrozenSet, List, Literal, Optional, Tuple

# Color string constants (for runtime use)
WHITE = "White"
BLACK = "Black"
# Marks a pairing-allocated bye in a color history
BYE = "Bye"

# Color type aliases (for type hints)
W = Literal["White"]
B = Literal["Black"]
# Basically, white or black
Colour = Literal["White", "Black"]
# One entry of a color history
HistoryEntry = Literal["White", "Black", "Bye"]

# Outcome type literals (for type hints)
OutcomeType = Literal["normal", "forfeit_win", "forfeit_loss", "double_forfeit", "bye"]

PlayerId = str
# Unordered pair of player ids that already met
MatchKey = FrozenSet[str]
# (white_id, black_id) for one board
IdPairing = Tuple[str, str]
IdPairings = List[IdPairing]
MaybeId = Optional[str]
ScoreMap = Dict[str, float]


def opposite(colour: str) -> str:
    """Return the other color."""
    return BLACK if colour == WHITE else WHITE


#  LocalWords:  MatchKey IdPairing
