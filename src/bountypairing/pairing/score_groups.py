"""Score grouping and Pairing Score Difference (PSD) helpers."""

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
from typing import Iterable, List, Optional, Sequence, Tuple

from bountypairing.constants import PSD_EPSILON
from bountypairing.models.player import Player

PSD = Tuple[float, ...]


@dataclass
class ScoreGroup:
    """Players sharing one cumulative score, in pairing order."""

    score: float
    players: List[Player] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.players)


def sort_for_pairing(players: Iterable[Player]) -> List[Player]:
    """Sort players by score desc, then rating desc, then seed asc."""
    return sorted(players, key=lambda p: p.rank_key)


def group_by_score(players: Iterable[Player]) -> List[ScoreGroup]:
    """Partition active players into score-descending groups.

    Inactive (withdrawn) players are skipped. Ordering inside a group follows
    ``sort_for_pairing`` so the result is reproducible for equal input.
    """
    groups: List[ScoreGroup] = []
    for player in sort_for_pairing(p for p in players if p.is_active):
        if groups and abs(groups[-1].score - player.score) < PSD_EPSILON:
            groups[-1].players.append(player)
        else:
            groups.append(ScoreGroup(score=player.score, players=[player]))
    return groups


def calculate_psd(
    pairs: Sequence[Tuple[Player, Player]],
    downfloaters: Sequence[Player] = (),
    bracket_score: Optional[float] = None,
) -> PSD:
    """Compute the Pairing Score Difference list, highest first.

    Each pair contributes the absolute difference of its scores. Each
    downfloater contributes its score minus an artificial value one point
    below the lowest score of the bracket.
    """
    psd = [abs(a.score - b.score) for a, b in pairs]
    if downfloaters:
        if bracket_score is None:
            scores = [p.score for pair in pairs for p in pair]
            scores.extend(p.score for p in downfloaters)
            bracket_score = min(scores)
        artificial_score = bracket_score - 1.0
        psd.extend(p.score - artificial_score for p in downfloaters)
    return tuple(sorted(psd, reverse=True))


def compare_psd(psd1: Sequence[float], psd2: Sequence[float]) -> int:
    """Compare PSD lists lexicographically.

    Returns -1 if psd1 is smaller (better), 1 if larger, 0 if equal.
    """
    for a, b in zip(psd1, psd2):
        diff = a - b
        if diff < -PSD_EPSILON:
            return -1
        if diff > PSD_EPSILON:
            return 1

    # If all compared elements are equal, shorter list is smaller
    if len(psd1) < len(psd2):
        return -1
    if len(psd1) > len(psd2):
        return 1
    return 0


def score_difference_sum(pairs: Sequence[Tuple[Player, Player]]) -> float:
    return sum(abs(a.score - b.score) for a, b in pairs)
