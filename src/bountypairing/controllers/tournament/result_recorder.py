"""Result recording for tournament rounds.

This module attaches results to the boards of a round and turns a finished
round into new player snapshots.
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

from typing import Dict, Optional

from bountypairing.constants import (
    DRAW_SCORE,
    FORFEIT_RESULTS,
    LOSS_SCORE,
    OUTCOME_BYE,
    OUTCOME_DOUBLE_FORFEIT,
    OUTCOME_FORFEIT_WIN,
    OUTCOME_NORMAL_GAME,
    RESULT_BLACK_WIN,
    RESULT_BYE,
    RESULT_DOUBLE_FORFEIT,
    RESULT_DRAW,
    RESULT_WHITE_WIN,
    VALID_RESULTS,
    WIN_SCORE,
)
from bountypairing.exceptions import ResultException
from bountypairing.lifecycle.forfeit import apply_forfeit
from bountypairing.models.game import Game
from bountypairing.models.player import Player
from bountypairing.models.tournament import RoundData, TournamentConfig
from bountypairing.type_hints import BLACK, WHITE, OutcomeType
from bountypairing.utils import setup_logger

logger = setup_logger(__name__)

# White's points for each over-the-board result
_WHITE_POINTS = {
    RESULT_WHITE_WIN: WIN_SCORE,
    RESULT_DRAW: DRAW_SCORE,
    RESULT_BLACK_WIN: LOSS_SCORE,
}


def classify_result(result: str) -> OutcomeType:
    """Outcome category of a result string."""
    if result == RESULT_BYE:
        return OUTCOME_BYE
    if result == RESULT_DOUBLE_FORFEIT:
        return OUTCOME_DOUBLE_FORFEIT
    if result in FORFEIT_RESULTS:
        return OUTCOME_FORFEIT_WIN
    return OUTCOME_NORMAL_GAME


class ResultRecorder:
    """Handles recording and validating match results.

    This class is responsible for:
    - Validating result strings against the board they are entered for
    - Attaching results to the games of a round
    - Producing updated player snapshots once a round is finished
    """

    def __init__(self, config: Optional[TournamentConfig] = None):
        self.config = config or TournamentConfig()

    def record_result(
        self,
        round_data: RoundData,
        board_number: int,
        result: str,
        forfeit_reason: Optional[str] = None,
    ) -> Game:
        """Attach a result to one board.

        Args:
            round_data: Round the board belongs to
            board_number: Board to record
            result: One of ``constants.VALID_RESULTS``
            forfeit_reason: Why the game was forfeited, for forfeit results

        Returns:
            The updated game, also swapped into ``round_data``

        Raises:
            ResultException: If the board does not exist or the result does
                not fit it
        """
        game = next(
            (g for g in round_data.games if g.board_number == board_number), None
        )
        if game is None:
            raise ResultException(
                f"Round {round_data.round_number} has no board {board_number}"
            )
        if result not in VALID_RESULTS:
            raise ResultException(f"Invalid result {result!r}")
        if game.is_bye != (result == RESULT_BYE):
            raise ResultException(
                f"Result {result!r} does not fit board {board_number}"
            )
        if game.completed and game.result != result:
            logger.warning(
                f"Board {board_number} of round {round_data.round_number} "
                f"already had result {game.result}, overwriting with {result}"
            )

        updated = game.with_result(result, forfeit_reason)
        round_data.replace_game(updated)
        logger.debug(f"Round {round_data.round_number} board {board_number}: {result}")
        return updated

    def record_round_results(
        self, round_data: RoundData, results: Dict[int, str]
    ) -> bool:
        """Record results for several boards of a round.

        Args:
            round_data: The round data to record results for
            results: Board number to result string

        Returns:
            True if all results recorded successfully, False if any errors occurred
        """
        success = True
        for board_number, result in sorted(results.items()):
            try:
                self.record_result(round_data, board_number, result)
            except ResultException as e:
                logger.error(str(e))
                success = False

        pending = [g.board_number for g in round_data.pending_games]
        if pending:
            logger.warning(
                f"Round {round_data.round_number}: boards {pending} still have no result"
            )
        return success

    def apply_round(
        self, round_data: RoundData, players: Dict[str, Player]
    ) -> Dict[str, Player]:
        """Return new snapshots with a finished round applied.

        Args:
            round_data: A round whose games all have results
            players: Dictionary of all players (id -> Player)

        Returns:
            New dictionary with updated snapshots; players not on a board are
            carried over unchanged

        Raises:
            ResultException: If a game has no result or names an unknown player
        """
        if round_data.pending_games:
            raise ResultException(
                f"Round {round_data.round_number} still has "
                f"{len(round_data.pending_games)} game(s) without a result"
            )

        updated = dict(players)
        for game in round_data.games:
            missing = [pid for pid in game.player_ids if pid not in updated]
            if missing:
                raise ResultException(f"Unknown player(s) {missing} on board {game.board_number}")

            if game.is_bye:
                receiver = updated[game.white_id]
                points = self.config.bye_score if receiver.is_active else 0.0
                updated[game.white_id] = receiver.with_bye(points)
                continue

            white, black = updated[game.white_id], updated[game.black_id]
            if game.is_forfeit:
                white, black = apply_forfeit(white, black, game.result, self.config)
            else:
                white_points = _WHITE_POINTS[game.result]
                white = white.with_game(black.id, WHITE, white_points)
                black = black.with_game(game.white_id, BLACK, WIN_SCORE - white_points)
            updated[game.white_id], updated[game.black_id] = white, black

        logger.info(
            f"Applied results of round {round_data.round_number} "
            f"({len(round_data.games)} boards)"
        )
        return updated
