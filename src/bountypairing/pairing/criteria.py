"""Pairing criteria as ordered data.

Absolute criteria are pair predicates; a candidate holding one failing pair
is rejected outright. Quality criteria are key functions compared in list
order, lower is better, and only break ties left by the ones before them.
Reordering either list changes the engine's priorities and nothing else.
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
from typing import Any, Callable, Dict, FrozenSet, List, NamedTuple, Optional, Sequence, Tuple

from bountypairing.constants import FALLBACK_NODE_LIMIT
from bountypairing.models.player import Player
from bountypairing.pairing.colors import (
    ColorPreference,
    color_preference,
    colors_compatible,
    is_topscorer,
)
from bountypairing.type_hints import WHITE
from bountypairing.utils import setup_logger

logger = setup_logger(__name__)


@dataclass
class PairingContext:
    """Round-wide facts the criteria need.

    Attributes
    ----------
    round_number : int
        Round being paired.
    total_rounds : int
        Rounds in the tournament.
    initial_color : str
        Color drawn for round 1, used by the last color rule.
    is_last_bracket : bool
        True while pairing the lowest bracket, whose leftover gets the bye.
    bye_rank : callable, optional
        Maps a player to a bye priority, 0 being the best receiver.
    completion : callable, optional
        Returns False when the given downfloaters would leave the lower
        brackets unpairable.
    """

    round_number: int
    total_rounds: int
    initial_color: str = WHITE
    is_last_bracket: bool = False
    bye_rank: Optional[Callable[[Player], int]] = None
    completion: Optional[Callable[[Sequence[Player]], bool]] = None


@dataclass(frozen=True)
class Criterion:
    """A named pair predicate. True means the pair is allowed."""

    code: str
    description: str
    check: Callable[[Any, Any], bool]


@dataclass(frozen=True)
class QualityCriterion:
    """A named key over a candidate. Lower keys are better."""

    code: str
    description: str
    key: Callable[[Any], Any]


def no_rematch(a, b) -> bool:
    return not a.player.has_played(b.player.id)


def no_absolute_color_clash(a, b) -> bool:
    return colors_compatible(
        a.preference, b.preference, topscorer=a.topscorer or b.topscorer
    )


ABSOLUTE_CRITERIA: List[Criterion] = [
    Criterion("C1", "players have not met before", no_rematch),
    Criterion("C3", "no clash of absolute color preferences", no_absolute_color_clash),
]

# Last resort of the fallback: rematches stay forbidden, colors may give
RELAXED_CRITERIA: List[Criterion] = [ABSOLUTE_CRITERIA[0]]


QUALITY_CRITERIA: List[QualityCriterion] = [
    QualityCriterion("C5", "maximum number of pairs", lambda c: -c.pair_count),
    QualityCriterion("C6", "maximum number of MDPs paired", lambda c: -c.mdps_paired),
    QualityCriterion("C2", "bye goes to the best eligible player", lambda c: c.bye_penalty),
    QualityCriterion("C7", "minimal pairing score difference", lambda c: c.psd),
    QualityCriterion(
        "C8",
        "minimal color violations, then unmet strong and mild preferences",
        lambda c: c.color_key,
    ),
    QualityCriterion("C14", "minimal repeated floats", lambda c: c.float_penalty),
    QualityCriterion("ORD", "earliest discovered", lambda c: c.sequence),
]


def first_failed(a, b, criteria: Sequence[Criterion] = ABSOLUTE_CRITERIA) -> Optional[Criterion]:
    """Return the first criterion the pair breaks, checking in order."""
    for criterion in criteria:
        if not criterion.check(a, b):
            return criterion
    return None


def allowed(a, b, criteria: Sequence[Criterion] = ABSOLUTE_CRITERIA) -> bool:
    return first_failed(a, b, criteria) is None


def quality_key(candidate, criteria: Sequence[QualityCriterion] = QUALITY_CRITERIA) -> Tuple:
    return tuple(criterion.key(candidate) for criterion in criteria)


class Seat(NamedTuple):
    """A player with the facts pair criteria read, outside any bracket."""

    player: Player
    preference: ColorPreference
    topscorer: bool


def player_check(
    criteria: Sequence[Criterion] = ABSOLUTE_CRITERIA,
    round_number: int = 0,
    total_rounds: int = 0,
) -> Callable[[Player, Player], bool]:
    """Lift pair criteria to plain players for one round.

    Preferences, topscorer flags and verdicts are cached by player id.
    """
    seats: Dict[str, Seat] = {}

    def seat(player: Player) -> Seat:
        if player.id not in seats:
            seats[player.id] = Seat(
                player,
                color_preference(player),
                is_topscorer(player, round_number, total_rounds),
            )
        return seats[player.id]

    verdicts: Dict[Tuple[str, str], bool] = {}

    def check(p: Player, q: Player) -> bool:
        key = (p.id, q.id) if p.id < q.id else (q.id, p.id)
        if key not in verdicts:
            verdicts[key] = allowed(seat(p), seat(q), criteria)
        return verdicts[key]

    return check


def _not_met(p: Player, q: Player) -> bool:
    return not p.has_played(q.id)


def remainder_pairable(
    players: Sequence[Player],
    allow_leftover: bool = False,
    node_limit: int = FALLBACK_NODE_LIMIT,
    can_pair: Optional[Callable[[Player, Player], bool]] = None,
) -> bool:
    """Can ``players`` be paired with every pair passing ``can_pair``?

    ``can_pair`` defaults to forbidding rematches only; the engine passes
    ``player_check`` so absolute color clashes count as well. With
    ``allow_leftover`` one player may stay unpaired. The walk is bounded;
    when it runs out of nodes the answer is an optimistic True, the
    engine's fallback catches what slips through.
    """
    if len(players) % 2 == 1 and not allow_leftover:
        return False
    can_pair = can_pair or _not_met
    ids = [p.id for p in players]
    partners: Dict[str, List[str]] = {
        p.id: [q.id for q in players if q.id != p.id and can_pair(p, q)]
        for p in players
    }
    failed: set = set()
    nodes = 0

    def walk(remaining: FrozenSet[str], leftover_free: bool) -> bool:
        nonlocal nodes
        nodes += 1
        if nodes > node_limit:
            raise _NodeLimit()
        if len(remaining) <= (1 if leftover_free else 0):
            return True
        state = (remaining, leftover_free)
        if state in failed:
            return False
        # most constrained player first
        current = min(
            remaining,
            key=lambda pid: (sum(1 for q in partners[pid] if q in remaining), pid),
        )
        rest = remaining - {current}
        for partner in partners[current]:
            if partner in rest and walk(rest - {partner}, leftover_free):
                return True
        if leftover_free and walk(rest, False):
            return True
        failed.add(state)
        return False

    try:
        return walk(frozenset(ids), allow_leftover and len(ids) % 2 == 1)
    except _NodeLimit:
        logger.debug("Completion check gave up after %s nodes", node_limit)
        return True


class _NodeLimit(Exception):
    pass
