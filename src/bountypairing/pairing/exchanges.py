"""Exchanges between subgroups, tried once transpositions run out.

Resident exchanges swap players between S1 and S2 of a bracket. MDP
exchanges change which moved-down players (MDPs) form S1 of a heterogeneous
bracket, the rest waiting in limbo. Both are produced lazily in the order
the Dutch system prescribes and can be iterated more than once.
"""

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
from itertools import combinations, islice
from typing import Any, Iterator, List, Sequence, Tuple

from bountypairing.constants import EXCHANGE_WINDOW, MAX_EXCHANGES, MAX_MDP_EXCHANGES


def _by_bsn(players) -> List[Any]:
    return sorted(players, key=lambda p: p.bsn)


@dataclass(frozen=True)
class Exchange:
    """One S1/S2 swap and its ordering key.

    Attributes
    ----------
    s1_out : tuple
        Players moved from S1 to S2.
    s2_out : tuple
        Players moved from S2 to S1.
    """

    s1_out: Tuple[Any, ...]
    s2_out: Tuple[Any, ...]

    @property
    def size(self) -> int:
        return len(self.s1_out)

    @property
    def sort_key(self) -> Tuple[int, int, int, int]:
        """
        Fewest players exchanged, then smallest difference of BSN sums,
        then the highest S1 BSN moved, then the lowest S2 BSN moved.
        """
        bsn_sum_diff = abs(
            sum(p.bsn for p in self.s2_out) - sum(p.bsn for p in self.s1_out)
        )
        highest_s1 = max(p.bsn for p in self.s1_out)
        lowest_s2 = min(p.bsn for p in self.s2_out)
        return (self.size, bsn_sum_diff, -highest_s1, lowest_s2)

    def apply(
        self, s1: Sequence[Any], s2: Sequence[Any]
    ) -> Tuple[List[Any], List[Any]]:
        """Return the new (S1, S2), each re-sorted by BSN."""
        moved_down = {id(p) for p in self.s1_out}
        moved_up = {id(p) for p in self.s2_out}
        new_s1 = [p for p in s1 if id(p) not in moved_down] + list(self.s2_out)
        new_s2 = [p for p in s2 if id(p) not in moved_up] + list(self.s1_out)
        return _by_bsn(new_s1), _by_bsn(new_s2)


class ResidentExchanges:
    """Lazy, restartable resident exchanges between S1 and S2.

    Exchanges are generated one size at a time, so a one-player exchange is
    always tried before any two-player exchange. Only the ``window`` S1
    players nearest the boundary (highest BSNs) and the ``window`` S2
    players nearest it (lowest BSNs) take part, which keeps the count bounded
    for large brackets.

    Each item is the new ``(s1, s2)`` pair.
    """

    def __init__(
        self,
        s1: Sequence[Any],
        s2: Sequence[Any],
        max_size: int = 2,
        window: int = EXCHANGE_WINDOW,
        limit: int = MAX_EXCHANGES,
    ):
        self.s1 = _by_bsn(s1)
        self.s2 = _by_bsn(s2)
        self.max_size = max_size
        self.window = window
        self.limit = limit

    def exchanges(self) -> Iterator[Exchange]:
        s1_pool = self.s1[-self.window:]
        s2_pool = self.s2[: self.window]
        max_size = min(self.max_size, len(s1_pool), len(s2_pool))
        for size in range(1, max_size + 1):
            batch = [
                Exchange(s1_out, s2_out)
                for s1_out in combinations(s1_pool, size)
                for s2_out in combinations(s2_pool, size)
            ]
            batch.sort(key=lambda e: e.sort_key)
            yield from batch

    def __iter__(self) -> Iterator[Tuple[List[Any], List[Any]]]:
        for exchange in islice(self.exchanges(), self.limit):
            yield exchange.apply(self.s1, self.s2)


class MDPExchanges:
    """Lazy, restartable choices of which MDPs are paired in S1.

    Yields ``(s1, limbo)`` pairs. The first choice takes the M1
    highest-ranked MDPs; later choices follow the lexicographic order of the
    chosen BSNs, so exchanging a lower MDP comes before a higher one.
    """

    def __init__(
        self, mdps: Sequence[Any], m1: int, limit: int = MAX_MDP_EXCHANGES
    ):
        self.mdps = _by_bsn(mdps)
        self.m1 = max(0, min(m1, len(self.mdps)))
        self.limit = limit

    def __iter__(self) -> Iterator[Tuple[List[Any], List[Any]]]:
        for chosen in islice(combinations(self.mdps, self.m1), self.limit):
            picked = {id(p) for p in chosen}
            limbo = [p for p in self.mdps if id(p) not in picked]
            yield list(chosen), limbo
