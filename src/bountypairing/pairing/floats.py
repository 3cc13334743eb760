"""Float history helpers. Floats are a quality signal, never a constraint."""

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

from typing import Iterable

from bountypairing.constants import (
    FLOAT_PENALTY_LAST_ROUND,
    FLOAT_PENALTY_TWO_ROUNDS_AGO,
    PSD_EPSILON,
)
from bountypairing.models.player import FloatDirection, Player


def float_in_round(player: Player, round_number: int) -> FloatDirection:
    return player.float_in(round_number)


def record_float(
    player: Player, round_number: int, direction: FloatDirection
) -> Player:
    """Return a new snapshot with the float for ``round_number`` recorded."""
    return player.with_float(round_number, direction)


def float_direction(player_score: float, opponent_score: float) -> FloatDirection:
    """Direction a player floats when paired against ``opponent_score``."""
    if opponent_score - player_score > PSD_EPSILON:
        return FloatDirection.UP
    if player_score - opponent_score > PSD_EPSILON:
        return FloatDirection.DOWN
    return FloatDirection.NONE


def float_repeat_penalty(
    player: Player, direction: FloatDirection, current_round: int
) -> int:
    """Penalty for floating ``direction`` again in ``current_round``.

    Repeating last round's float costs more than repeating the float of two
    rounds ago.
    """
    if direction is FloatDirection.NONE:
        return 0
    penalty = 0
    if player.float_in(current_round - 1) is direction:
        penalty += FLOAT_PENALTY_LAST_ROUND
    if player.float_in(current_round - 2) is direction:
        penalty += FLOAT_PENALTY_TWO_ROUNDS_AGO
    return penalty


def count_floats(players: Iterable[Player], direction: FloatDirection) -> int:
    """Total floats of one direction over a group's histories."""
    return sum(
        1 for p in players for d in p.float_history.values() if d is direction
    )
