"""Pairing systems, selected by name."""

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

from abc import ABC, abstractmethod
from typing import Dict, Optional, Sequence, Type

from bountypairing.constants import PAIRING_SYSTEM_DUTCH, PAIRING_SYSTEM_MANUAL
from bountypairing.exceptions import UnknownPairingSystemException
from bountypairing.models.pairing_result import PairingResult
from bountypairing.models.player import Player
from bountypairing.models.tournament import TournamentConfig
from bountypairing.pairing.engine import pair_round


class PairingStrategy(ABC):
    """A way of producing the boards of one round."""

    name: str = ""

    @abstractmethod
    def pair(
        self,
        players: Sequence[Player],
        round_number: int,
        total_rounds: int,
        config: Optional[TournamentConfig] = None,
    ) -> PairingResult:
        """Pair one round.

        Args:
            players: Snapshots of every registered player
            round_number: Round to pair, 1-indexed
            total_rounds: Rounds in the tournament
            config: Tournament settings

        Returns:
            PairingResult for the round
        """


class DutchSwissStrategy(PairingStrategy):
    name = PAIRING_SYSTEM_DUTCH

    def pair(self, players, round_number, total_rounds, config=None) -> PairingResult:
        return pair_round(players, round_number, total_rounds, config)


class ManualStrategy(PairingStrategy):
    """Leaves the round empty; the arbiter enters the boards by hand."""

    name = PAIRING_SYSTEM_MANUAL

    def pair(self, players, round_number, total_rounds, config=None) -> PairingResult:
        return PairingResult(round_number=round_number, games=[], success=True)


_STRATEGIES: Dict[str, Type[PairingStrategy]] = {
    DutchSwissStrategy.name: DutchSwissStrategy,
    ManualStrategy.name: ManualStrategy,
}


def register_strategy(strategy: Type[PairingStrategy]) -> Type[PairingStrategy]:
    """Make a strategy available to ``get_strategy`` under its ``name``."""
    _STRATEGIES[strategy.name] = strategy
    return strategy


def available_strategies():
    return sorted(_STRATEGIES)


def get_strategy(name: str) -> PairingStrategy:
    """Return a fresh strategy for a pairing system name.

    Raises:
        UnknownPairingSystemException: If nothing is registered under ``name``
    """
    try:
        return _STRATEGIES[name]()
    except KeyError:
        raise UnknownPairingSystemException(
            f"Pairing system '{name}' is not implemented"
        ) from None
