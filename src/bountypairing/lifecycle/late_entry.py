"""Players joining after round 1."""

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

from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from bountypairing.exceptions import LateEntryException
from bountypairing.models.player import Player
from bountypairing.models.tournament import TournamentConfig
from bountypairing.utils import generate_id, setup_logger

logger = setup_logger(__name__)


def temporary_seed_number(
    players: Sequence[Player],
    initial_rank: Optional[int] = None,
    rating: Optional[int] = None,
) -> int:
    """Seeding number for a late entry.

    An initial rank places the newcomer after every player seeded at or
    above that rank. Failing that, a rating places them after the lowest
    seeded player rated at least as high. Otherwise they go to the bottom.
    """
    if not players:
        return 1
    if initial_rank is not None:
        return 1 + sum(1 for p in players if p.seed <= initial_rank)
    if rating is not None:
        return 1 + max(
            (p.seed for p in players if p.rating is not None and p.rating >= rating),
            default=0,
        )
    return max(p.seed for p in players) + 1


def reseed_players(players: Sequence[Player], from_seed: int) -> List[Player]:
    """Shift everyone seeded at ``from_seed`` or below down by one place."""
    return [
        replace(p, seed=p.seed + 1) if p.seed >= from_seed else p for p in players
    ]


def validate_late_entry(
    entry_round: int,
    current_round: int,
    config: TournamentConfig,
) -> None:
    """Raise LateEntryException when the entry breaks the tournament rules."""
    if not config.allow_late_entries:
        raise LateEntryException("Late entries are not allowed in this tournament")
    if entry_round > current_round:
        raise LateEntryException(
            f"Cannot enter for future round {entry_round}; current round is {current_round}"
        )
    if entry_round <= 1:
        raise LateEntryException("Entry round must be greater than 1 for late entries")
    deadline = config.late_entry_deadline_round
    if deadline is not None and current_round > deadline:
        raise LateEntryException(f"Late entry deadline was round {deadline}")


def admit_late_entry(
    players: Sequence[Player],
    name: str,
    entry_round: int,
    current_round: int,
    config: Optional[TournamentConfig] = None,
    player_id: Optional[str] = None,
    rating: Optional[int] = None,
    initial_rank: Optional[int] = None,
) -> Tuple[Player, List[Player]]:
    """Register a player who joins in ``entry_round``.

    Args:
        players: Current field
        name: Display name of the newcomer
        entry_round: First round the newcomer can be paired in
        current_round: Round about to be paired
        config: Tournament settings, defaults if omitted
        player_id: Identifier to use, generated if omitted
        rating: Optional rating, places the newcomer when no rank is given
        initial_rank: Rank used to place the newcomer in the seeding list

    Returns:
        (newcomer, field) where the field has been reseeded around the
        newcomer's temporary seed

    Raises:
        LateEntryException: If the entry is not allowed or the id is taken
    """
    config = config or TournamentConfig()
    validate_late_entry(entry_round, current_round, config)
    player_id = player_id or generate_id("player_")
    if any(p.id == player_id for p in players):
        raise LateEntryException(f"Player id {player_id} is already registered")

    seed = temporary_seed_number(players, initial_rank, rating)
    missed = tuple(range(1, entry_round))
    newcomer = Player(
        id=player_id,
        name=name,
        score=len(missed) * config.late_entry_missed_round_points,
        seed=seed,
        rating=rating,
        entry_round=entry_round,
        missed_rounds=missed,
        temporary_seed=True,
    )
    logger.info(
        f"Late entry {name} ({player_id}) joins in round {entry_round} with seed {seed}"
    )
    return newcomer, reseed_players(players, seed)


def can_pair_in_round(player: Player, round_number: int) -> bool:
    """Active players can be paired from their entry round onwards."""
    return player.is_active and round_number >= player.entry_round
