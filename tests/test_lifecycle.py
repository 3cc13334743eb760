from datetime import datetime

import pytest

from bountypairing.constants import (
    RESULT_BLACK_FORFEIT_WIN,
    RESULT_DOUBLE_FORFEIT,
    RESULT_WHITE_FORFEIT_WIN,
    RESULT_WHITE_WIN,
)
from bountypairing.exceptions import (
    ForfeitException,
    LateEntryException,
    PlayerNotFoundException,
    WithdrawalException,
)
from bountypairing.lifecycle.bye_assignment import (
    bye_eligibility,
    bye_rank_map,
    bye_stats,
    select_bye_candidate,
    validate_bye_assignment,
)
from bountypairing.lifecycle.forfeit import (
    ForfeitReason,
    apply_forfeit,
    check_default_time,
    declare_forfeit,
    handle_double_no_show,
    handle_late_arrival,
    handle_no_show,
)
from bountypairing.lifecycle.late_entry import (
    admit_late_entry,
    can_pair_in_round,
    temporary_seed_number,
)
from bountypairing.lifecycle.withdrawal import (
    filter_withdrawn_players,
    withdraw_player,
)
from bountypairing.models.game import Game
from bountypairing.models.tournament import RoundData, TournamentConfig
from bountypairing.type_hints import BLACK, WHITE

START = datetime(2025, 3, 1, 10, 0)


# --- Bye ---


def test_bye_eligibility_reasons(player):
    assert bye_eligibility(player("A")).eligible
    assert bye_eligibility(player("B", is_active=False)).reason == "Player withdrawn"
    assert bye_eligibility(player("C", bye_count=1)).reason == "Already received a bye"
    assert bye_eligibility(player("D", forfeit_wins=1)).reason == "Received a forfeit win"


def test_bye_candidate_order(player):
    players = [
        player("A", score=1.0, seed=1),
        player("B", score=0.0, seed=2, games_played=2),
        player("C", score=0.0, seed=9, games_played=1),
        player("D", score=0.0, seed=4, bye_count=1),
        player("E", score=0.0, seed=5, forfeit_wins=1),
    ]
    assert select_bye_candidate(players).id == "B"
    assert select_bye_candidate(players[2:]).id == "C"
    assert select_bye_candidate([]) is None

    ranks = bye_rank_map(players)
    assert ranks["B"] == 0
    assert ranks["D"] > ranks["A"]


def test_seed_breaks_bye_ties(player):
    players = [player("A", seed=3), player("B", seed=7), player("C", seed=5)]
    assert select_bye_candidate(players).id == "B"


def test_second_bye_is_invalid_while_others_have_none(player):
    fresh, byed = player("A"), player("B", bye_count=1)

    assert not validate_bye_assignment(byed, [fresh, byed]).eligible
    assert validate_bye_assignment(fresh, [fresh, byed]).eligible
    # everyone has had one: a second bye is acceptable
    both = player("A", bye_count=1)
    assert validate_bye_assignment(byed, [both, byed]).eligible


def test_bye_stats(player):
    stats = bye_stats([player("A", bye_count=1), player("B"), player("C", bye_count=2)])
    assert stats.total_byes == 3
    assert stats.players_with_bye == 2
    assert stats.by_player == {"A": 1, "C": 2}


# --- Forfeit ---


def test_arrival_within_default_time():
    check = check_default_time(START, datetime(2025, 3, 1, 10, 20))
    assert not check.should_forfeit
    assert check.deadline == datetime(2025, 3, 1, 10, 30)


def test_late_arrival_forfeits():
    check = check_default_time(START, datetime(2025, 3, 1, 10, 45))
    assert check.should_forfeit
    assert check.reason is ForfeitReason.LATE_ARRIVAL
    assert check.minutes_late == 15


def test_grace_period_extends_the_deadline():
    check = check_default_time(
        START, datetime(2025, 3, 1, 10, 35), grace_period_minutes=10
    )
    assert not check.should_forfeit


def test_no_show_accepts_iso_strings():
    check = check_default_time(
        "2025-03-01T10:00:00", None, now="2025-03-01T11:30:00"
    )
    assert check.should_forfeit
    assert check.reason is ForfeitReason.NO_SHOW
    assert check.minutes_late == 60

    waiting = check_default_time(START, None, now=datetime(2025, 3, 1, 10, 10))
    assert not waiting.should_forfeit


def test_minutes_late_count_every_calendar_day():
    check = check_default_time(START, datetime(2025, 5, 2, 10, 30, 59))
    # 1 March to 2 May is 62 days
    assert check.minutes_late == 62 * 24 * 60


def test_timezone_aware_times_compare_with_each_other():
    check = check_default_time(
        "2025-03-01T10:00:00+01:00", "2025-03-01T09:45:00+00:00"
    )
    assert check.should_forfeit
    assert check.minutes_late == 15


def test_mixed_naive_and_aware_times_are_rejected():
    with pytest.raises(ForfeitException):
        check_default_time(START, "2025-03-01T10:45:00+00:00")
    with pytest.raises(ForfeitException):
        check_default_time("2025-03-01T10:00:00Z", None, now=START)


def test_no_show_gives_the_opponent_the_win():
    game = Game(2, 1, "W", "B")

    forfeited = handle_no_show(game, WHITE)

    assert forfeited.result == RESULT_BLACK_FORFEIT_WIN
    assert forfeited.completed
    assert forfeited.is_forfeit
    assert forfeited.forfeit_reason == ForfeitReason.NO_SHOW.value
    assert forfeited.bounty_transfer == 0
    assert not game.completed


def test_late_arrival_and_double_no_show():
    game = Game(2, 1, "W", "B")

    assert handle_late_arrival(game, BLACK, 12).result == RESULT_WHITE_FORFEIT_WIN
    assert handle_double_no_show(game).result == RESULT_DOUBLE_FORFEIT
    ruled = handle_double_no_show(game, arbiter_decision=WHITE)
    assert ruled.result == RESULT_WHITE_FORFEIT_WIN
    assert ruled.forfeit_reason == ForfeitReason.ARBITER_DECISION.value


def test_forfeit_rejects_byes_and_finished_games():
    with pytest.raises(ForfeitException):
        declare_forfeit(Game.bye(2, 3, "X"), WHITE, ForfeitReason.NO_SHOW)
    finished = Game(2, 1, "W", "B").with_result(RESULT_WHITE_WIN)
    with pytest.raises(ForfeitException):
        declare_forfeit(finished, BLACK, ForfeitReason.NO_SHOW)
    with pytest.raises(ForfeitException):
        declare_forfeit(Game(2, 1, "W", "B"), "Green", ForfeitReason.OTHER)


def test_forfeit_counts_as_played_without_history(player):
    white, black = player("W", score=1.0), player("B", score=1.0)

    white, black = apply_forfeit(white, black, RESULT_WHITE_FORFEIT_WIN)

    assert white.score == 2.0 and black.score == 1.0
    assert white.games_played == black.games_played == 1
    assert white.forfeit_wins == 1 and black.forfeit_losses == 1
    assert white.opponent_ids == frozenset() and black.color_history == ()
    assert not white.has_played("B")

    with pytest.raises(ForfeitException):
        apply_forfeit(white, black, RESULT_WHITE_WIN)


# --- Late entry ---


def test_temporary_seed_number(player):
    field = [player(f"P{i}", seed=i) for i in range(1, 9)]
    assert temporary_seed_number([]) == 1
    assert temporary_seed_number(field) == 9
    assert temporary_seed_number(field, initial_rank=3) == 4


def test_temporary_seed_number_by_rating(player):
    field = [
        player("P1", seed=1, rating=2400),
        player("P2", seed=2, rating=2200),
        player("P3", seed=3, rating=2000),
        player("P4", seed=4),
    ]
    assert temporary_seed_number(field, rating=2100) == 3
    assert temporary_seed_number(field, rating=2200) == 3
    assert temporary_seed_number(field, rating=2500) == 1
    assert temporary_seed_number(field, rating=1500) == 4
    assert temporary_seed_number(field, initial_rank=1, rating=1500) == 2


def test_admit_late_entry_seeds_by_rating(player):
    field = [
        player("P1", seed=1, rating=2400),
        player("P2", seed=2, rating=2200),
        player("P3", seed=3, rating=2000),
    ]
    newcomer, reseeded = admit_late_entry(
        field, "Late", 2, 2, player_id="L", rating=2300
    )

    assert newcomer.seed == 2
    assert [(p.id, p.seed) for p in reseeded] == [("P1", 1), ("P2", 3), ("P3", 4)]


def test_admit_late_entry(player):
    field = [player(f"P{i}", seed=i) for i in range(1, 5)]
    config = TournamentConfig(num_rounds=5, late_entry_missed_round_points=0.5)

    newcomer, reseeded = admit_late_entry(
        field, "Late", 3, 3, config, player_id="L", initial_rank=2
    )

    assert newcomer.seed == 3
    assert newcomer.score == 1.0
    assert newcomer.missed_rounds == (1, 2)
    assert newcomer.temporary_seed
    assert newcomer.color_history == () and newcomer.opponent_ids == frozenset()
    assert [p.seed for p in reseeded] == [1, 2, 4, 5]
    assert not can_pair_in_round(newcomer, 2)
    assert can_pair_in_round(newcomer, 3)


def test_late_entry_generates_an_id(player):
    newcomer, _ = admit_late_entry([player("P1")], "Late", 2, 2)
    assert newcomer.id.startswith("player_")


@pytest.mark.parametrize(
    "entry_round, current_round, config",
    [
        (2, 2, TournamentConfig(allow_late_entries=False)),
        (3, 2, TournamentConfig()),
        (1, 1, TournamentConfig()),
        (3, 3, TournamentConfig(late_entry_deadline_round=2)),
    ],
)
def test_late_entry_rules(player, entry_round, current_round, config):
    with pytest.raises(LateEntryException):
        admit_late_entry([player("P1")], "Late", entry_round, current_round, config)


def test_late_entry_rejects_duplicate_ids(player):
    with pytest.raises(LateEntryException):
        admit_late_entry([player("P1")], "Again", 2, 2, player_id="P1")


# --- Withdrawal ---


def test_withdrawal_forfeits_the_pending_game(player):
    players = [player(f"P{i}", seed=i) for i in range(1, 5)]
    round_data = RoundData(
        round_number=2, games=[Game(2, 1, "P1", "P2"), Game(2, 2, "P3", "P4")]
    )

    players, affected = withdraw_player(players, "P4", 2, round_data)

    assert [g.board_number for g in affected] == [2]
    board = round_data.games[1]
    assert board.result == RESULT_WHITE_FORFEIT_WIN
    assert board.forfeit_reason == ForfeitReason.WITHDRAWAL.value
    leaver = next(p for p in players if p.id == "P4")
    assert not leaver.is_active and leaver.withdrawn_in_round == 2
    assert [p.id for p in filter_withdrawn_players(players)] == ["P1", "P2", "P3"]
    assert not round_data.games[0].completed


def test_finished_games_are_left_alone(player):
    players = [player("P1"), player("P2")]
    finished = Game(1, 1, "P1", "P2").with_result(RESULT_WHITE_WIN)
    round_data = RoundData(round_number=1, games=[finished])

    _, affected = withdraw_player(players, "P1", 1, round_data)

    assert affected == []
    assert round_data.games[0].result == RESULT_WHITE_WIN


def test_withdrawal_errors(player):
    players = [player("P1"), player("P2", is_active=False)]
    with pytest.raises(PlayerNotFoundException):
        withdraw_player(players, "nobody", 1)
    with pytest.raises(WithdrawalException):
        withdraw_player(players, "P2", 1)
    with pytest.raises(WithdrawalException):
        withdraw_player(players, "P1", 3, RoundData(round_number=2))
