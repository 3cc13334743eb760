"""Random Tournament Generator (RTG).

Builds a seeded random field, pairs every round through the round manager,
simulates results (forfeits, withdrawals and late entries included) and
checks each emitted round with the pairing checker.
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

import json
import math
import random
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from bountypairing.constants import (
    PAIRING_SYSTEM_DUTCH,
    RESULT_BLACK_WIN,
    RESULT_DRAW,
    RESULT_WHITE_WIN,
)
from bountypairing.controllers.tournament import ResultRecorder, RoundManager
from bountypairing.lifecycle.forfeit import handle_double_no_show, handle_no_show
from bountypairing.lifecycle.late_entry import admit_late_entry
from bountypairing.lifecycle.withdrawal import withdraw_player
from bountypairing.models.game import Game
from bountypairing.models.player import Player
from bountypairing.models.tournament import TournamentConfig
from bountypairing.type_hints import BLACK, WHITE
from bountypairing.utils import setup_logger
from bountypairing.validation.checker import ValidationReport, create_checker

logger = setup_logger(__name__)


class RatingDistribution(Enum):
    """Rating distribution patterns for realistic tournaments."""

    UNIFORM = "uniform"
    NORMAL = "normal"
    SKEWED = "skewed"
    CLUB = "club"


class ResultPattern(Enum):
    """Result generation patterns for tournaments."""

    REALISTIC = "realistic"
    BALANCED = "balanced"
    RANDOM = "random"


@dataclass
class RTGConfig:
    """Configuration for Random Tournament Generator."""

    num_players: int
    num_rounds: int
    rating_distribution: RatingDistribution = RatingDistribution.NORMAL
    rating_range: Tuple[int, int] = (800, 2800)
    result_pattern: ResultPattern = ResultPattern.REALISTIC
    seed: Optional[int] = None
    initial_color: str = WHITE
    forfeit_rate: float = 0.0
    withdrawal_rate: float = 0.0
    late_entries: int = 0
    draw_percentage: int = 30
    pairing_system: str = PAIRING_SYSTEM_DUTCH
    validate: bool = True

    def tournament_config(self) -> TournamentConfig:
        return TournamentConfig(
            name=f"RTG {self.num_players}x{self.num_rounds}",
            num_rounds=self.num_rounds,
            pairing_system=self.pairing_system,
            initial_color=self.initial_color,
        )


class PlayerFactory:
    """Factory for creating realistic tournament players."""

    def __init__(self, config: RTGConfig):
        self.config = config
        self.random = (
            random.Random(config.seed) if config.seed is not None else random.Random()
        )

    def create_players(self) -> List[Player]:
        """Create players, seeded by rating."""
        ratings = sorted(
            (self._generate_rating() for _ in range(self.config.num_players)),
            reverse=True,
        )
        players = [
            Player(
                id=f"P{seed:03d}",
                name=self._generate_name(seed, rating),
                seed=seed,
                rating=rating,
            )
            for seed, rating in enumerate(ratings, start=1)
        ]
        logger.info(
            "Created %s players with %s distribution",
            len(players),
            self.config.rating_distribution.value,
        )
        return players

    def _generate_rating(self) -> int:
        min_rating, max_rating = self.config.rating_range
        if self.config.rating_distribution == RatingDistribution.UNIFORM:
            return self.random.randint(min_rating, max_rating)
        if self.config.rating_distribution == RatingDistribution.NORMAL:
            mean = (min_rating + max_rating) / 2
            std_dev = (max_rating - min_rating) / 6
            rating = int(self.random.gauss(mean, std_dev))
            return max(min_rating, min(max_rating, rating))
        if self.config.rating_distribution == RatingDistribution.SKEWED:
            if self.random.random() < 0.7:
                return self.random.randint(min_rating, (min_rating + max_rating) // 2)
            return self.random.randint((min_rating + max_rating) // 2, max_rating)
        base = self.random.choice([1000, 1200, 1400, 1600, 1800])
        return self.random.randint(base - 100, base + 100)

    @staticmethod
    def _generate_name(number: int, rating: int) -> str:
        if rating < 1200:
            prefix = "Novice"
        elif rating < 1600:
            prefix = "Club"
        elif rating < 2000:
            prefix = "Expert"
        else:
            prefix = "Master"
        return f"{prefix}-{number:03d}"


class ResultSimulator:
    """Simulates game results, forfeits included."""

    def __init__(self, config: RTGConfig):
        self.config = config
        self.random = (
            random.Random(config.seed) if config.seed is not None else random.Random()
        )

    def simulate(self, game: Game, white: Player, black: Player) -> Game:
        """Return the game with a simulated result attached."""
        white_absent = self._forfeit_occurs()
        black_absent = self._forfeit_occurs()
        if white_absent and black_absent:
            return handle_double_no_show(game)
        if white_absent:
            return handle_no_show(game, WHITE)
        if black_absent:
            return handle_no_show(game, BLACK)

        if self.config.result_pattern == ResultPattern.RANDOM:
            result = self.random.choice([RESULT_WHITE_WIN, RESULT_DRAW, RESULT_BLACK_WIN])
        elif self.config.result_pattern == ResultPattern.BALANCED:
            result = self._balanced_result(white, black)
        else:
            result = self._realistic_result(white, black)
        return game.with_result(result)

    def _forfeit_occurs(self) -> bool:
        if self.config.forfeit_rate <= 1:
            return False
        non_forfeit_probability = math.sqrt(1.0 - 1.0 / self.config.forfeit_rate)
        return self.random.random() >= non_forfeit_probability

    def _realistic_result(self, white: Player, black: Player) -> str:
        white_rating, black_rating = white.rating or 0, black.rating or 0
        stronger_color = WHITE if white_rating >= black_rating else BLACK
        rating_diff = abs(white_rating - black_rating)
        expected_value = math.erfc(rating_diff * (-7.0 / math.sqrt(2.0) / 2000.0)) / 2.0
        draw_probability = min(
            self.config.draw_percentage / 100.0, 2.0 - expected_value * 2.0
        )

        random_value = self.random.random()
        if random_value < draw_probability:
            return RESULT_DRAW
        white_wins = random_value < expected_value + draw_probability / 2.0
        if stronger_color == BLACK:
            white_wins = not white_wins
        return RESULT_WHITE_WIN if white_wins else RESULT_BLACK_WIN

    def _balanced_result(self, white: Player, black: Player) -> str:
        rating_diff = (white.rating or 0) - (black.rating or 0)
        win_prob = max(0.05, min(0.95, 0.5 + rating_diff / 1000))
        draw_prob = 0.1
        total_prob = win_prob + draw_prob
        win_prob /= total_prob
        draw_prob /= total_prob
        rand = self.random.random()
        if rand < win_prob:
            return RESULT_WHITE_WIN
        if rand < win_prob + draw_prob:
            return RESULT_DRAW
        return RESULT_BLACK_WIN


class RandomTournamentGenerator:
    """Main tournament generator orchestrating player creation and results."""

    def __init__(self, config: RTGConfig):
        self.config = config
        self.player_factory = PlayerFactory(config)
        self.result_simulator = ResultSimulator(config)
        self.random = (
            random.Random(config.seed) if config.seed is not None else random.Random()
        )
        self.tournament_config = config.tournament_config()
        self.round_manager = RoundManager(self.tournament_config)
        self.result_recorder = ResultRecorder(self.tournament_config)
        self.checker = create_checker()

    def generate_complete_tournament(self) -> Dict[str, Any]:
        """Play out a whole tournament.

        Returns:
            Dictionary with the final ``players``, per-round ``rounds``
            entries, the ``results`` of the pairing engine and, when
            validation is on, a ``report``
        """
        logger.info(
            "Generating tournament: %s players, %s rounds",
            self.config.num_players,
            self.config.num_rounds,
        )
        players = {p.id: p for p in self.player_factory.create_players()}
        checked_rounds: List[Tuple[List[Player], List[Game]]] = []
        pairing_results = []
        late_round = 2 if self.config.num_rounds >= 2 else None

        for round_number in range(1, self.config.num_rounds + 1):
            if round_number == late_round and self.config.late_entries:
                players = self._admit_late_entries(players, round_number)

            snapshot = list(players.values())
            result = self.round_manager.create_next_round(players)
            pairing_results.append(result)
            players = {p.id: p for p in result.updated_players}

            round_data = self.round_manager.get_round(round_number)
            for game in round_data.pending_games:
                played = self.result_simulator.simulate(
                    game, players[game.white_id], players[game.black_id]
                )
                self.result_recorder.record_result(
                    round_data, game.board_number, played.result, played.forfeit_reason
                )
            players = self.result_recorder.apply_round(round_data, players)
            self.round_manager.mark_round_completed(round_number)
            checked_rounds.append((snapshot, list(round_data.games)))

            if round_number < self.config.num_rounds:
                players = self._maybe_withdraw(players, round_number)

        tournament_data: Dict[str, Any] = {
            "config": self.config,
            "players": list(players.values()),
            "rounds": list(self.round_manager.rounds),
            "results": pairing_results,
        }
        if self.config.validate:
            tournament_data["report"] = self.checker.validate_tournament(
                checked_rounds, self.config.num_rounds
            )
        logger.info("Tournament generation complete")
        return tournament_data

    def _admit_late_entries(
        self, players: Dict[str, Player], round_number: int
    ) -> Dict[str, Player]:
        field = list(players.values())
        for index in range(self.config.late_entries):
            newcomer, field = admit_late_entry(
                field,
                name=f"Late-{index + 1:03d}",
                entry_round=round_number,
                current_round=round_number,
                config=self.tournament_config,
                player_id=f"L{index + 1:03d}",
                rating=self.player_factory._generate_rating(),
            )
            field.append(newcomer)
        return {p.id: p for p in field}

    def _maybe_withdraw(
        self, players: Dict[str, Player], round_number: int
    ) -> Dict[str, Player]:
        active = [p for p in players.values() if p.is_active]
        if len(active) <= 2 or self.random.random() >= self.config.withdrawal_rate:
            return players
        leaving = self.random.choice(sorted(active, key=lambda p: p.id))
        field, _ = withdraw_player(list(players.values()), leaving.id, round_number)
        return {p.id: p for p in field}

    def export_json_format(self, tournament_data: Dict[str, Any]) -> str:
        export_data = {
            "tournament_config": {
                "num_players": self.config.num_players,
                "num_rounds": self.config.num_rounds,
                "rating_distribution": self.config.rating_distribution.value,
                "result_pattern": self.config.result_pattern.value,
                "seed": self.config.seed,
            },
            "players": [p.to_dict() for p in tournament_data["players"]],
            "rounds": [r.to_dict() for r in tournament_data["rounds"]],
        }
        report = tournament_data.get("report")
        if report is not None:
            export_data["report"] = {
                "summary": report.summary,
                "compliance_percentage": report.compliance_percentage,
                "absolute_violations": [v.criterion for v in report.violations],
                "warnings": summarize_warnings(report),
            }
        return json.dumps(export_data, indent=2)


def summarize_warnings(report: ValidationReport) -> Dict[str, int]:
    """Count quality warnings by criterion."""
    return dict(Counter(warning.criterion for warning in report.quality_warnings))


def create_small_tournament(
    num_players: int = 8, seed: Optional[int] = None
) -> RandomTournamentGenerator:
    config = RTGConfig(
        num_players=num_players,
        num_rounds=max(3, min(num_players - 1, 5)),
        seed=seed,
    )
    return RandomTournamentGenerator(config)


def create_normal_tournament(
    num_players: int = 24, seed: Optional[int] = None
) -> RandomTournamentGenerator:
    """Create standard tournament for development testing."""
    config = RTGConfig(
        num_players=num_players,
        num_rounds=min(7, max(3, num_players // 4)),
        seed=seed,
    )
    return RandomTournamentGenerator(config)
