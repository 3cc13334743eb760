import logging

import pytest

from bountypairing.constants import RESULT_BYE
from bountypairing.exceptions import ConfigurationException
from bountypairing.models.game import Game
from bountypairing.models.pairing_result import SearchTier
from bountypairing.models.player import FloatDirection, Player
from bountypairing.models.tournament import PairingHistory, RoundData, TournamentConfig
from bountypairing.type_hints import BLACK, BYE, WHITE


def test_player_history_properties(player):
    p = player("A", 1.5, 3, {"B", "C"}, (WHITE, BYE, BLACK, WHITE), rating=2100)

    assert p.played_colors == [WHITE, BLACK, WHITE]
    assert p.color_difference == 1
    assert p.games_played == 3
    assert p.rank_key == (-1.5, -2100, 3)
    assert p.has_played("B") and not p.has_played("D")


def test_float_markers(player):
    p = player("A").with_float(2, FloatDirection.DOWN)
    assert p.float_in(2) is FloatDirection.DOWN
    assert p.float_in(1) is FloatDirection.NONE
    assert p.with_float(2, FloatDirection.NONE).float_history == {}


def test_player_from_minimal_data_warns(caplog):
    with caplog.at_level(logging.WARNING, logger="bountypairing.models.player"):
        p = Player.from_dict({"id": 7})

    assert p.id == "7" and p.name == "7"
    assert p.score == 0.0
    assert p.opponent_ids == frozenset() and p.color_history == ()
    assert p.is_active and p.entry_round == 1
    assert len([r for r in caplog.records if "round-1 default" in r.getMessage()]) == 4


def test_player_from_dict_maps_null_colors_to_byes():
    p = Player.from_dict(
        {
            "id": "A",
            "score": 2.0,
            "opponent_ids": ["B", None],
            "color_history": [WHITE, None, BLACK],
            "float_history": {"2": "DOWN"},
        }
    )

    assert p.color_history == (WHITE, BYE, BLACK)
    assert p.bye_count == 1
    assert p.games_played == 2
    assert p.opponent_ids == frozenset({"B"})
    assert p.float_in(2) is FloatDirection.DOWN


def test_player_serialization(player):
    p = player(
        "A", 2.0, 4, {"B"}, (WHITE, BYE), bye_count=1, missed_rounds=(1,)
    ).with_float(2, FloatDirection.DOWN)

    assert Player.from_dict(p.to_dict()) == p


def test_game_and_round_serialization():
    game = Game(3, 1, "A", "B").with_result("1-0 FF", "no_show")
    round_data = RoundData(
        round_number=3,
        games=[game, Game.bye(3, 2, "C")],
        bye_player_id="C",
        method=SearchTier.EXCHANGE.value,
    )

    restored = RoundData.from_dict(round_data.to_dict())

    assert restored == round_data
    assert restored.games[1].result == RESULT_BYE
    assert restored.pairings == [("A", "B")]
    assert restored.game_for("C").is_bye
    assert game.opponent_of("B") == "A"
    with pytest.raises(ValueError):
        game.opponent_of("C")


def test_pairing_history_serialization():
    history = PairingHistory()
    history.add_pairing("B", "A")
    history.bye_receivers[2] = "C"

    data = history.to_dict()
    assert data["previous_matches"] == [["A", "B"]]
    restored = PairingHistory.from_dict(data)
    assert restored.have_played("A", "B")
    assert restored.bye_receivers == {2: "C"}


def test_tournament_config_serialization():
    config = TournamentConfig(num_rounds=7, bye_score=0.5, late_entry_deadline_round=3)
    assert TournamentConfig.from_dict(config.to_dict()) == config


@pytest.mark.parametrize(
    "kwargs",
    [
        {"num_rounds": 0},
        {"initial_color": "Green"},
        {"default_time_minutes": -5},
        {"grace_period_minutes": -1},
        {"bye_score": 0.75},
    ],
)
def test_invalid_config(kwargs):
    with pytest.raises(ConfigurationException):
        TournamentConfig(**kwargs)
