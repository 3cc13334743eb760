"""Pairing-allocated bye: eligibility, priority and validation."""

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
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from bountypairing.models.player import Player
from bountypairing.utils import setup_logger

logger = setup_logger(__name__)


@dataclass(frozen=True)
class ByeEligibility:
    """Whether a player may receive the bye, and why not.

    Attributes
    ----------
    player_id : str
        Player checked.
    eligible : bool
        True when the player has had no unplayed point yet.
    reason : str
        Why the player is not eligible, empty when eligible.
    """

    player_id: str
    eligible: bool
    reason: str = ""


@dataclass
class ByeStats:
    """Bye counts over a field of players."""

    total_byes: int = 0
    players_with_bye: int = 0
    by_player: Dict[str, int] = field(default_factory=dict)


def unplayed_points(player: Player) -> int:
    """Byes plus forfeit wins; both are points scored without playing."""
    return player.bye_count + player.forfeit_wins


def bye_eligibility(player: Player) -> ByeEligibility:
    """Check a single player against the bye rules."""
    if not player.is_active:
        return ByeEligibility(player.id, False, "Player withdrawn")
    if player.bye_count:
        return ByeEligibility(player.id, False, "Already received a bye")
    if player.forfeit_wins:
        return ByeEligibility(player.id, False, "Received a forfeit win")
    return ByeEligibility(player.id, True)


def bye_priority_key(player: Player) -> Tuple[int, float, int, int]:
    """Sort key, best bye receiver first.

    Fewest byes (forfeit wins included), then lowest score, then most games
    played, then the highest seeding number.
    """
    return (unplayed_points(player), player.score, -player.games_played, -player.seed)


def bye_order(players: Iterable[Player]) -> List[Player]:
    """Active players in the order they should receive the bye."""
    return sorted((p for p in players if p.is_active), key=bye_priority_key)


def select_bye_candidate(players: Iterable[Player]) -> Optional[Player]:
    """The player who should receive the bye, None for an empty field."""
    ordered = bye_order(players)
    if not ordered:
        return None
    chosen = ordered[0]
    if not bye_eligibility(chosen).eligible:
        logger.warning(
            "No never-byed player left; bye goes to %s with %s unplayed point(s)",
            chosen.id,
            unplayed_points(chosen),
        )
    return chosen


def bye_rank_map(players: Sequence[Player]) -> Dict[str, int]:
    """Player id to bye priority rank, 0 being the first choice.

    Players with the fewest unplayed points share the best tier; rank grows
    by a large step per extra unplayed point so that tier always dominates.
    """
    ordered = bye_order(players)
    if not ordered:
        return {}
    fewest = unplayed_points(ordered[0])
    step = len(ordered) + 1
    return {
        p.id: (unplayed_points(p) - fewest) * step + position
        for position, p in enumerate(ordered)
    }


def validate_bye_assignment(
    receiver: Player, players: Sequence[Player]
) -> ByeEligibility:
    """Check that nobody with fewer unplayed points was passed over.

    A player may not receive a second bye while any active player who never
    had one remains.
    """
    if not receiver.is_active:
        return ByeEligibility(receiver.id, False, "Player withdrawn")
    better = [
        p
        for p in players
        if p.is_active
        and p.id != receiver.id
        and unplayed_points(p) < unplayed_points(receiver)
    ]
    if better:
        return ByeEligibility(
            receiver.id,
            False,
            f"{len(better)} player(s) with fewer byes should receive the bye first",
        )
    return ByeEligibility(receiver.id, True)


def bye_stats(players: Iterable[Player]) -> ByeStats:
    stats = ByeStats()
    for player in players:
        if player.bye_count:
            stats.total_byes += player.bye_count
            stats.players_with_bye += 1
            stats.by_player[player.id] = player.bye_count
    return stats
