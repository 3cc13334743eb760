"""Round management for tournaments.

This module handles all round-related operations including pairing generation,
round progression, and round history management.
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

from typing import Dict, List, Optional, Tuple

from bountypairing.exceptions import (
    InvalidRoundException,
    RepeatPairingException,
    RoundSequenceException,
)
from bountypairing.models.game import Game
from bountypairing.models.pairing_result import PairingResult
from bountypairing.models.player import Player
from bountypairing.models.tournament import PairingHistory, RoundData, TournamentConfig
from bountypairing.pairing.strategy import get_strategy
from bountypairing.type_hints import IdPairings
from bountypairing.utils import setup_logger

logger = setup_logger(__name__)


class RoundManager:
    """Manages round progression and pairing generation for tournaments.

    This class is responsible for:
    - Generating pairings based on the tournament's pairing system
    - Tracking round history
    - Managing round state transitions
    - Refusing to pair a round before the previous one is finished
    """

    def __init__(
        self,
        config: TournamentConfig,
        pairing_history: Optional[PairingHistory] = None,
    ):
        """Initialize the round manager.

        Args:
            config: Tournament settings, including the pairing system name
            pairing_history: History of pairings to prevent repeats
        """
        self.config = config
        self.num_rounds = config.num_rounds
        self.pairing_history = pairing_history or PairingHistory()
        self.strategy = get_strategy(config.pairing_system)
        self.rounds: List[RoundData] = []

    @property
    def current_round_number(self) -> int:
        """Get the current round number (1-indexed).

        Returns:
            The current round number, or 0 if no rounds have been created.
        """
        return len(self.rounds)

    @property
    def completed_rounds_count(self) -> int:
        return sum(1 for round_data in self.rounds if round_data.is_completed)

    def get_round(self, round_number: int) -> Optional[RoundData]:
        """Get data for a specific round.

        Args:
            round_number: The round number (1-indexed)

        Returns:
            RoundData for the specified round, or None if invalid round number
        """
        if 1 <= round_number <= len(self.rounds):
            return self.rounds[round_number - 1]
        return None

    def _check_can_start(self, round_number: int) -> None:
        if round_number > self.num_rounds:
            raise InvalidRoundException(
                f"Cannot create more rounds: already at {self.num_rounds} rounds"
            )
        previous = self.get_round(round_number - 1)
        if round_number > 1 and (previous is None or not previous.is_completed):
            raise RoundSequenceException(
                f"Round {round_number - 1} must be completed before round {round_number}"
            )

    def create_next_round(self, players: Dict[str, Player]) -> PairingResult:
        """Generate pairings for the next round.

        Args:
            players: Dictionary of all tournament players (id -> Player)

        Returns:
            PairingResult of the configured pairing system

        Raises:
            InvalidRoundException: If all rounds have already been created
            RoundSequenceException: If the previous round is not completed
        """
        round_number = len(self.rounds) + 1
        self._check_can_start(round_number)

        logger.info(
            f"Creating round {round_number} with "
            f"{sum(1 for p in players.values() if p.is_active)} active players"
        )
        result = self.strategy.pair(
            list(players.values()), round_number, self.num_rounds, self.config
        )

        round_data = RoundData(
            round_number=round_number,
            games=list(result.games),
            bye_player_id=result.bye_player_id,
            method=result.method.value if result.games else None,
        )
        self.rounds.append(round_data)
        self._record_history(round_data)
        return result

    def _record_history(self, round_data: RoundData) -> None:
        for white_id, black_id in round_data.pairings:
            self.pairing_history.add_pairing(white_id, black_id)
        if round_data.bye_player_id:
            self.pairing_history.bye_receivers[round_data.round_number] = (
                round_data.bye_player_id
            )

    def _forget_history(self, round_data: RoundData) -> None:
        for white_id, black_id in round_data.pairings:
            self.pairing_history.remove_pairing(white_id, black_id)
        self.pairing_history.bye_receivers.pop(round_data.round_number, None)

    def set_manual_pairings(
        self,
        round_number: int,
        pairings: List[Tuple[Player, Player]],
        bye_player: Optional[Player],
    ) -> bool:
        """Set manual pairings for a specific round.

        Pairings already stored for that round are replaced.

        Args:
            round_number: The round number (1-indexed)
            pairings: List of (white_player, black_player) tuples
            bye_player: Player receiving bye, or None

        Returns:
            True if successful, False otherwise

        Raises:
            RepeatPairingException: If two players have already met
            RoundSequenceException: If an earlier round is not completed
        """
        if round_number < 1 or round_number > len(self.rounds) + 1:
            logger.error(f"Invalid round number: {round_number}")
            return False
        round_data = self.get_round(round_number)
        if round_data is None:
            self._check_can_start(round_number)
            round_data = RoundData(round_number=round_number)
            self.rounds.append(round_data)
        elif round_data.is_completed:
            logger.error(f"Cannot change pairings of completed round {round_number}")
            return False

        self._forget_history(round_data)
        for white, black in pairings:
            if self.pairing_history.have_played(white.id, black.id):
                self._record_history(round_data)
                raise RepeatPairingException(
                    f"{white.name} and {black.name} have already played each other"
                )

        round_data.games = [
            Game(round_number, board, white.id, black.id)
            for board, (white, black) in enumerate(pairings, start=1)
        ]
        if bye_player is not None:
            round_data.games.append(
                Game.bye(round_number, len(pairings) + 1, bye_player.id)
            )
        round_data.bye_player_id = bye_player.id if bye_player else None
        round_data.method = None
        self._record_history(round_data)

        logger.info(
            f"Set manual pairings for round {round_number}: "
            f"{len(pairings)} pairings, bye: {bye_player.name if bye_player else 'None'}"
        )
        return True

    def mark_round_completed(self, round_number: int) -> bool:
        """Mark a round as completed.

        Args:
            round_number: The round number (1-indexed)

        Returns:
            True if successful, False if the round doesn't exist or has
            games without a result
        """
        round_data = self.get_round(round_number)
        if round_data is None:
            logger.error(f"Cannot mark non-existent round {round_number} as completed")
            return False
        if round_data.pending_games:
            logger.error(
                f"Cannot complete round {round_number}: "
                f"{len(round_data.pending_games)} game(s) without a result"
            )
            return False

        round_data.is_completed = True
        logger.info(f"Round {round_number} marked as completed")
        return True

    def undo_last_round(self) -> bool:
        """Remove the last round if it hasn't been completed.

        Returns:
            True if successful, False if no rounds or last round is completed
        """
        if not self.rounds:
            logger.warning("Cannot undo: no rounds exist")
            return False

        last_round = self.rounds[-1]
        if last_round.is_completed:
            logger.warning(f"Cannot undo completed round {last_round.round_number}")
            return False

        self._forget_history(last_round)
        self.rounds.pop()
        logger.info(f"Undid round {last_round.round_number}")
        return True

    def get_pairings(self, round_number: int) -> IdPairings:
        round_data = self.get_round(round_number)
        return round_data.pairings if round_data else []
