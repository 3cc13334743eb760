import pytest

from bountypairing.constants import PAIRING_SYSTEM_DUTCH, PAIRING_SYSTEM_MANUAL
from bountypairing.exceptions import UnknownPairingSystemException
from bountypairing.models.pairing_result import PairingResult
from bountypairing.pairing import strategy
from bountypairing.pairing.strategy import (
    DutchSwissStrategy,
    ManualStrategy,
    PairingStrategy,
    available_strategies,
    get_strategy,
    register_strategy,
)


def test_builtin_strategies():
    assert isinstance(get_strategy(PAIRING_SYSTEM_DUTCH), DutchSwissStrategy)
    assert isinstance(get_strategy(PAIRING_SYSTEM_MANUAL), ManualStrategy)
    assert available_strategies() == [PAIRING_SYSTEM_DUTCH, PAIRING_SYSTEM_MANUAL]


def test_unknown_pairing_system():
    with pytest.raises(UnknownPairingSystemException):
        get_strategy("round_robin")


def test_dutch_strategy_pairs(field_of_eight):
    result = get_strategy(PAIRING_SYSTEM_DUTCH).pair(field_of_eight, 1, 5)
    assert len(result.pairings) == 4


def test_register_strategy(monkeypatch, field_of_eight):
    monkeypatch.setattr(strategy, "_STRATEGIES", dict(strategy._STRATEGIES))

    @register_strategy
    class Accelerated(PairingStrategy):
        name = "accelerated"

        def pair(self, players, round_number, total_rounds, config=None):
            return PairingResult(round_number=round_number, success=False)

    assert "accelerated" in available_strategies()
    result = get_strategy("accelerated").pair(field_of_eight, 1, 5)
    assert not result.success
