import random

import pytest

from bountypairing.exceptions import (
    InsufficientPlayersException,
    InvalidRoundException,
    PairingInfeasibleException,
    RoundSequenceException,
)
from bountypairing.lifecycle.withdrawal import withdraw_player
from bountypairing.models.pairing_result import SearchTier
from bountypairing.models.player import FloatDirection
from bountypairing.models.tournament import TournamentConfig
from bountypairing.pairing.colors import color_preference, colors_compatible
from bountypairing.pairing.criteria import ABSOLUTE_CRITERIA, player_check
from bountypairing.pairing.engine import _fallback_search, pair_round
from bountypairing.type_hints import BLACK, BYE, WHITE


def opponents_of(result, player_id):
    for white, black in result.pairings:
        if white == player_id:
            return black
        if black == player_id:
            return white
    return None


def all_matchings(ids):
    if not ids:
        yield []
        return
    first, rest = ids[0], ids[1:]
    for i, partner in enumerate(rest):
        for tail in all_matchings(rest[:i] + rest[i + 1 :]):
            yield [(first, partner)] + tail


def test_round_one_pairs_upper_half_against_lower_half(field_of_eight):
    result = pair_round(field_of_eight, 1, 5)

    assert result.success
    assert result.pairings == [("P1", "P5"), ("P2", "P6"), ("P3", "P7"), ("P4", "P8")]
    assert result.bye_player_id is None
    assert result.method is SearchTier.STRAIGHTFORWARD
    assert [g.board_number for g in result.games] == [1, 2, 3, 4]


def test_round_one_alternating_colors(field_of_eight):
    config = TournamentConfig(num_rounds=5, upper_half_white=False, initial_color=WHITE)
    result = pair_round(field_of_eight, 1, 5, config)

    assert result.pairings == [("P1", "P5"), ("P6", "P2"), ("P3", "P7"), ("P8", "P4")]


def test_round_one_bye_goes_to_the_lowest_seed(player):
    players = [player(f"P{i}", seed=i) for i in range(1, 8)]
    result = pair_round(players, 1, 5)

    assert result.bye_player_id == "P7"
    bye_game = result.games[-1]
    assert bye_game.is_bye and bye_game.completed
    assert result.pairings == [("P1", "P4"), ("P2", "P5"), ("P3", "P6")]


def test_invalid_input_is_rejected(field_of_eight, player):
    with pytest.raises(InvalidRoundException):
        pair_round(field_of_eight, 6, 5)
    with pytest.raises(InvalidRoundException):
        pair_round(field_of_eight, 0, 5)
    with pytest.raises(InsufficientPlayersException):
        pair_round([player("A")], 1, 5)

    ahead = player("A", seed=1, colors=(WHITE, BLACK), opponents={"X", "Y"})
    with pytest.raises(RoundSequenceException):
        pair_round([ahead, player("B", seed=2)], 2, 5)


def test_input_is_not_mutated(field_of_eight):
    before = [p.to_dict() for p in field_of_eight]
    result = pair_round(field_of_eight, 1, 5)

    assert [p.to_dict() for p in field_of_eight] == before
    assert len(result.updated_players) == len(field_of_eight)


def test_score_brackets_scenario(player):
    # five players on [3, 3, 2, 2, 1] in round 4
    players = [
        player("A", 3.0, 1, {"X1", "X2", "X3"}, (WHITE, BLACK, WHITE)),
        player("B", 3.0, 2, {"X4", "X5", "X6"}, (BLACK, WHITE, BLACK)),
        player("C", 2.0, 3, {"X1", "X4", "X7"}, (WHITE, BLACK, WHITE)),
        player("D", 2.0, 4, {"X2", "X5", "X8"}, (BLACK, WHITE, BLACK)),
        player("E", 1.0, 5, {"X3", "X6", "X9"}, (BLACK, WHITE, BLACK)),
    ]
    result = pair_round(players, 4, 9)

    assert result.success
    assert result.pairings == [("B", "A"), ("D", "C")]
    assert result.bye_player_id == "E"
    assert result.games[-1].is_bye


def test_score_brackets_scenario_with_downfloats(player):
    players = [
        player("A", 3.0, 1, {"B", "X2", "X3"}, (WHITE, BLACK, WHITE)),
        player("B", 3.0, 2, {"A", "X5", "X6"}, (BLACK, WHITE, BLACK)),
        player("C", 2.0, 3, {"X1", "X4", "X7"}, (WHITE, BLACK, WHITE)),
        player("D", 2.0, 4, {"X2", "X5", "X8"}, (BLACK, WHITE, BLACK)),
        player("E", 1.0, 5, {"X3", "X6", "X9"}, (BLACK, WHITE, BLACK)),
    ]
    result = pair_round(players, 4, 9)

    assert result.success
    assert opponents_of(result, "A") in {"C", "D"}
    assert opponents_of(result, "B") in {"C", "D"}
    assert result.bye_player_id == "E"
    updated = {p.id: p for p in result.updated_players}
    assert updated["A"].float_in(4) is FloatDirection.DOWN
    assert updated["C"].float_in(4) is FloatDirection.UP
    assert updated["E"].float_in(4) is FloatDirection.DOWN


def test_score_differences_are_minimal(player):
    # rounds 1 and 2 were P1-P5 P2-P6 P3-P7 P4-P8, then P3-P1 P4-P2 P5-P7 P6-P8,
    # every second-round game drawn
    players = [
        player("P1", 1.5, 1, {"P5", "P3"}, (WHITE, BLACK)),
        player("P2", 1.5, 2, {"P6", "P4"}, (WHITE, BLACK)),
        player("P3", 1.5, 3, {"P7", "P1"}, (WHITE, WHITE)),
        player("P4", 1.5, 4, {"P8", "P2"}, (WHITE, WHITE)),
        player("P5", 0.5, 5, {"P1", "P7"}, (BLACK, WHITE)),
        player("P6", 0.5, 6, {"P2", "P8"}, (BLACK, WHITE)),
        player("P7", 0.5, 7, {"P3", "P5"}, (BLACK, BLACK)),
        player("P8", 0.5, 8, {"P4", "P6"}, (BLACK, BLACK)),
    ]
    by_id = {p.id: p for p in players}

    result = pair_round(players, 3, 5)
    engine_sum = sum(abs(by_id[w].score - by_id[b].score) for w, b in result.pairings)
    best = min(
        sum(abs(by_id[a].score - by_id[b].score) for a, b in matching)
        for matching in all_matchings(sorted(by_id))
        if not any(by_id[a].has_played(b) for a, b in matching)
    )

    assert result.success
    assert engine_sum == best == 0.0
    assert set(result.pairings) == {
        ("P1", "P4"),
        ("P2", "P3"),
        ("P8", "P5"),
        ("P7", "P6"),
    }
    assert result.method is SearchTier.TRANSPOSITION
    assert result.violations == []


def played_field(make_player, seed, rounds_played, size=8):
    """Players after ``rounds_played`` random rematch-free rounds."""
    rng = random.Random(seed)
    ids = [f"P{i}" for i in range(1, size + 1)]
    score = dict.fromkeys(ids, 0.0)
    met = {pid: set() for pid in ids}
    colors = {pid: [] for pid in ids}
    for _ in range(rounds_played):
        for _ in range(1000):
            order = rng.sample(ids, len(ids))
            pairs = list(zip(order[::2], order[1::2]))
            if not any(b in met[a] for a, b in pairs):
                break
        for a, b in pairs:
            white, black = (a, b) if rng.random() < 0.5 else (b, a)
            colors[white].append(WHITE)
            colors[black].append(BLACK)
            met[a].add(b)
            met[b].add(a)
            points = rng.choice((1.0, 0.5, 0.0))
            score[white] += points
            score[black] += 1.0 - points
    return [
        make_player(pid, score[pid], seed_no, met[pid], colors[pid])
        for seed_no, pid in enumerate(ids, start=1)
    ]


def legal_matching_exists(players):
    by_id = {p.id: p for p in players}
    prefs = {p.id: color_preference(p) for p in players}
    return any(
        all(
            not by_id[a].has_played(b) and colors_compatible(prefs[a], prefs[b])
            for a, b in matching
        )
        for matching in all_matchings(sorted(by_id))
    )


@pytest.mark.parametrize("seed", range(60))
def test_absolute_colors_hold_whenever_a_legal_pairing_exists(player, seed):
    players = played_field(player, seed, rounds_played=2 + seed % 2)
    round_number = 3 + seed % 2
    if not legal_matching_exists(players):
        pytest.skip("every pairing of this field breaks a color rule")

    result = pair_round(players, round_number, 9)

    by_id = {p.id: p for p in players}
    assert result.success
    assert len(result.pairings) == 4
    for white, black in result.pairings:
        assert not by_id[white].has_played(black)
        assert colors_compatible(
            color_preference(by_id[white]), color_preference(by_id[black])
        )
    assert result.violations == []


def test_no_second_bye_while_others_have_none(player):
    players = [
        player("A", 2.0, 1, {"X1", "X2"}, (WHITE, BLACK)),
        player("B", 2.0, 2, {"X3", "X4"}, (BLACK, WHITE)),
        player("C", 1.0, 3, {"X5", "X6"}, (WHITE, BLACK)),
        player("D", 1.0, 4, {"X7", "X8"}, (BLACK, WHITE)),
        player("E", 1.0, 5, {"X9"}, (BYE, WHITE), bye_count=1),
    ]
    result = pair_round(players, 3, 5)

    assert result.success
    assert result.bye_player_id == "D"
    assert opponents_of(result, "E") is not None
    assert len([g for g in result.games if g.is_bye]) == 1


def test_withdrawn_player_is_not_paired(player):
    players = [player(f"P{i}", seed=i) for i in range(1, 6)]
    players, _ = withdraw_player(players, "P1", 1)

    result = pair_round(players, 1, 3)

    assert all("P1" not in g.player_ids for g in result.games)
    assert result.bye_player_id is None
    assert len(result.pairings) == 2


def test_late_entrant_waits_for_entry_round(player):
    players = [player(f"P{i}", seed=i) for i in range(1, 5)]
    players.append(player("L", seed=5, entry_round=2, missed_rounds=(1,)))

    result = pair_round(players, 1, 3)

    assert all("L" not in g.player_ids for g in result.games)
    assert result.bye_player_id is None


def test_top_bracket_rematches_float_down(player):
    # both top players have met, so they float into the lower bracket
    players = [
        player("A", 1.0, 1, {"B"}, (WHITE,)),
        player("B", 1.0, 2, {"A"}, (BLACK,)),
        player("C", 0.0, 3, {"D"}, (BLACK,)),
        player("D", 0.0, 4, {"C"}, (WHITE,)),
    ]
    result = pair_round(players, 2, 3)

    assert result.success
    assert result.pairings == [("C", "A"), ("B", "D")]
    pairs = {frozenset(p) for p in result.pairings}
    assert frozenset({"A", "B"}) not in pairs
    assert frozenset({"C", "D"}) not in pairs


def test_fallback_search_never_allows_rematches(player):
    players = [
        player("A", 2.0, 1, {"B", "C"}),
        player("B", 2.0, 2, {"A"}),
        player("C", 1.0, 3, {"A"}),
        player("D", 0.0, 4),
    ]
    pairs, bye = _fallback_search(players, with_bye=False, node_limit=1000)

    assert bye is None
    assert {frozenset((a.id, b.id)) for a, b in pairs} == {
        frozenset({"A", "D"}),
        frozenset({"B", "C"}),
    }


def test_fallback_search_reports_infeasible(player):
    players = [
        player("A", opponents={"B", "C"}),
        player("B", opponents={"A", "C"}),
        player("C", opponents={"A", "B"}),
        player("D"),
    ]
    with pytest.raises(PairingInfeasibleException):
        _fallback_search(players, with_bye=False, node_limit=1000)


def test_fallback_search_keeps_absolute_colors(player):
    players = [
        player("A", 2.0, 1, {"X1", "X2"}, (WHITE, WHITE)),
        player("B", 2.0, 2, {"X3", "X4"}, (WHITE, WHITE)),
        player("C", 1.0, 3, {"X5", "X6"}, (BLACK, BLACK)),
        player("D", 1.0, 4, {"X7", "X8"}, (BLACK, BLACK)),
    ]

    strict_check = player_check(ABSOLUTE_CRITERIA, 3, 5)
    strict, _ = _fallback_search(
        players, with_bye=False, node_limit=1000, can_pair=strict_check
    )
    relaxed, _ = _fallback_search(players, with_bye=False, node_limit=1000)

    assert {frozenset((a.id, b.id)) for a, b in strict} == {
        frozenset({"A", "C"}),
        frozenset({"B", "D"}),
    }
    assert {frozenset((a.id, b.id)) for a, b in relaxed} == {
        frozenset({"A", "B"}),
        frozenset({"C", "D"}),
    }


def test_fallback_search_strict_colors_can_be_infeasible(player):
    players = [
        player("A", 1.0, 1, {"X1"}, (WHITE, WHITE)),
        player("B", 1.0, 2, {"X2"}, (WHITE, WHITE)),
    ]
    with pytest.raises(PairingInfeasibleException):
        _fallback_search(
            players,
            with_bye=False,
            node_limit=1000,
            can_pair=player_check(ABSOLUTE_CRITERIA, 3, 5),
        )
    pairs, _ = _fallback_search(players, with_bye=False, node_limit=1000)
    assert len(pairs) == 1
