"""Players leaving the tournament mid-event."""

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

from typing import Iterable, List, Optional, Sequence, Tuple

from bountypairing.exceptions import PlayerNotFoundException, WithdrawalException
from bountypairing.lifecycle.forfeit import ForfeitReason, declare_forfeit
from bountypairing.models.game import Game
from bountypairing.models.player import Player
from bountypairing.models.tournament import RoundData
from bountypairing.type_hints import BLACK, WHITE
from bountypairing.utils import setup_logger

logger = setup_logger(__name__)


def validate_withdrawal(
    player: Player, current_round: int, withdrawal_round: int
) -> None:
    """Raise WithdrawalException if the player cannot withdraw in that round."""
    if not player.is_active:
        raise WithdrawalException(f"Player {player.id} is already withdrawn")
    if withdrawal_round > current_round:
        raise WithdrawalException(
            f"Cannot withdraw from future round {withdrawal_round}"
        )
    if withdrawal_round < 1:
        raise WithdrawalException(f"Invalid withdrawal round {withdrawal_round}")


def withdraw_player(
    players: Sequence[Player],
    player_id: str,
    round_number: int,
    round_data: Optional[RoundData] = None,
) -> Tuple[List[Player], List[Game]]:
    """Withdraw a player and forfeit their unfinished game.

    Args:
        players: Current field
        player_id: Player leaving the tournament
        round_number: Round in which the player withdraws
        round_data: That round's boards, if it has been paired; its pending
            game for the player is replaced in place

    Returns:
        (players, affected_games): the field with the player marked
        inactive, and the games turned into forfeit wins for the opponent

    Raises:
        PlayerNotFoundException: If no player has ``player_id``
        WithdrawalException: If the player cannot withdraw
    """
    player = next((p for p in players if p.id == player_id), None)
    if player is None:
        raise PlayerNotFoundException(f"Player {player_id} not found")
    current_round = round_data.round_number if round_data else round_number
    validate_withdrawal(player, current_round, round_number)

    affected: List[Game] = []
    if round_data is not None and round_data.round_number == round_number:
        game = round_data.game_for(player_id)
        if game is not None and not game.completed and not game.is_bye:
            winner = BLACK if game.white_id == player_id else WHITE
            forfeited = declare_forfeit(game, winner, ForfeitReason.WITHDRAWAL)
            round_data.replace_game(forfeited)
            affected.append(forfeited)

    logger.info(
        f"Player {player_id} withdrew in round {round_number}; "
        f"{len(affected)} game(s) forfeited"
    )
    updated = [p.withdrawn(round_number) if p.id == player_id else p for p in players]
    return updated, affected


def filter_withdrawn_players(players: Iterable[Player]) -> List[Player]:
    return [p for p in players if p.is_active]
