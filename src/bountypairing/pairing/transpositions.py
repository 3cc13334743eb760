"""Transpositions of the lower subgroup (S2), in lexicographic BSN order.

A transposition decides which S2 player meets each of the first N1 S1
players. Only the first N1 positions matter, so two orderings that agree
there are the same transposition. Orderings are produced in increasing
lexicographic order of those N1 BSNs, which is the order
``itertools.permutations`` gives for an S2 sorted by BSN.

When a pair predicate is given, any prefix that already contains a
forbidden pair is skipped whole, so rejected transpositions are never built.
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

from itertools import islice
from typing import Any, Callable, Iterator, List, Optional, Sequence

from bountypairing.pairing.budget import SearchBudget

PairPredicate = Callable[[Any, Any], bool]


def lexicographic_key(s2_order: Sequence[Any], n1: int) -> tuple:
    """BSNs of the first N1 players, the sort key of a transposition."""
    return tuple(p.bsn for p in s2_order[:n1])


class Transpositions:
    """Lazy, restartable sequence of S2 transpositions.

    Iterating twice starts over from the identity transposition. Each item
    is a full S2 ordering: the N1 chosen partners first, the players left
    over after them in BSN order.

    Parameters
    ----------
    s2 : sequence
        Lower subgroup; players need a ``bsn`` attribute.
    n1 : int
        Number of partners to choose (size of S1).
    s1 : sequence, optional
        Upper subgroup, required when ``can_pair`` is given.
    can_pair : callable, optional
        ``can_pair(s1_player, s2_player)``; prefixes with a forbidden pair
        are pruned.
    limit : int, optional
        Stop after this many transpositions.
    budget : SearchBudget, optional
        Shared node counter; the walk stops when it runs out.
    lookahead : bool
        With ``can_pair``, also prune a prefix once some later S1 player has
        no free S2 partner left.
    """

    def __init__(
        self,
        s2: Sequence[Any],
        n1: int,
        s1: Optional[Sequence[Any]] = None,
        can_pair: Optional[PairPredicate] = None,
        limit: Optional[int] = None,
        budget: Optional[SearchBudget] = None,
        lookahead: bool = True,
    ):
        if can_pair is not None and (s1 is None or len(s1) < n1):
            raise ValueError("can_pair needs an S1 with at least n1 players")
        self.s2 = sorted(s2, key=lambda p: p.bsn)
        self.n1 = min(n1, len(self.s2))
        self.s1 = list(s1) if s1 is not None else None
        self.can_pair = can_pair
        self.limit = limit
        self.budget = budget
        self.lookahead = lookahead and can_pair is not None

    def _dead_end(self, depth: int, used: List[bool]) -> bool:
        """True if an S1 player after ``depth`` has no free partner."""
        for s1_player in self.s1[depth + 1 : self.n1]:
            if not any(
                not used[i] and self.can_pair(s1_player, p)
                for i, p in enumerate(self.s2)
            ):
                return True
        return False

    def __iter__(self) -> Iterator[List[Any]]:
        walk = self._walk([], [False] * len(self.s2))
        if self.limit is not None:
            return islice(walk, self.limit)
        return walk

    def _walk(self, prefix: List[int], used: List[bool]) -> Iterator[List[Any]]:
        if self.budget is not None and not self.budget.spend_node():
            return
        depth = len(prefix)
        if depth == self.n1:
            rest = [p for i, p in enumerate(self.s2) if not used[i]]
            yield [self.s2[i] for i in prefix] + rest
            return
        for i, candidate in enumerate(self.s2):
            if used[i]:
                continue
            if self.can_pair is not None and not self.can_pair(
                self.s1[depth], candidate
            ):
                continue
            used[i] = True
            prefix.append(i)
            if not (self.lookahead and self._dead_end(depth, used)):
                yield from self._walk(prefix, used)
            prefix.pop()
            used[i] = False
            if self.budget is not None and self.budget.exhausted:
                return


def transpositions(
    s2: Sequence[Any], n1: int, limit: Optional[int] = None
) -> Iterator[List[Any]]:
    """Unpruned transpositions of ``s2``, lexicographic in the first N1 BSNs."""
    return iter(Transpositions(s2, n1, limit=limit))
