"""
Round pairing with the FIDE Dutch system.

``pair_round`` is the single entry point. Round 1 pairs the upper half of
the seeding list against the lower half. Later rounds walk the score
brackets top-down, each bracket handing its unpaired players to the next
one as moved-down players. One player may be left over for the bye; if
more are left the bounded fallback pairs them, never allowing a rematch.
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

from dataclasses import dataclass, field
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence, Tuple

from bountypairing.exceptions import (
    InsufficientPlayersException,
    InvalidRoundException,
    PairingInfeasibleException,
    RoundSequenceException,
)
from bountypairing.lifecycle.bye_assignment import (
    bye_order,
    bye_rank_map,
    unplayed_points,
    validate_bye_assignment,
)
from bountypairing.lifecycle.late_entry import can_pair_in_round
from bountypairing.models.game import Game
from bountypairing.models.pairing_result import (
    PairingDiagnostics,
    PairingResult,
    SearchTier,
)
from bountypairing.models.player import FloatDirection, Player
from bountypairing.models.tournament import TournamentConfig
from bountypairing.pairing.bracket import build_bracket, pair_bracket
from bountypairing.pairing.budget import SearchBudget
from bountypairing.pairing.colors import assign_colors, pair_color_violations
from bountypairing.pairing.criteria import (
    ABSOLUTE_CRITERIA,
    RELAXED_CRITERIA,
    PairingContext,
    player_check,
    remainder_pairable,
)
from bountypairing.pairing.floats import float_direction, record_float
from bountypairing.pairing.score_groups import group_by_score, sort_for_pairing
from bountypairing.type_hints import WHITE, opposite
from bountypairing.utils import setup_logger

logger = setup_logger(__name__)

# (white, black) snapshots of one board
PlayerPair = Tuple[Player, Player]


@dataclass
class _Attempt:
    """One pass over the brackets, with or without a forced bye."""

    pairs: List[PlayerPair] = field(default_factory=list)
    bye: Optional[Player] = None
    unpaired: List[Player] = field(default_factory=list)
    tier: SearchTier = SearchTier.STRAIGHTFORWARD

    @property
    def complete(self) -> bool:
        return not self.unpaired


def history_length(player: Player) -> int:
    """Rounds already accounted for in a player's record."""
    return (
        len(player.color_history)
        + player.forfeit_wins
        + player.forfeit_losses
        + len(player.missed_rounds)
    )


def _validate_input(
    players: Sequence[Player], round_number: int, total_rounds: int
) -> List[Player]:
    if round_number < 1 or round_number > total_rounds:
        raise InvalidRoundException(
            f"Round {round_number} is outside 1..{total_rounds}"
        )
    eligible = [p for p in players if can_pair_in_round(p, round_number)]
    if len(eligible) < 2:
        raise InsufficientPlayersException(
            f"Round {round_number} needs at least 2 eligible players, got {len(eligible)}"
        )
    ahead = [p.id for p in eligible if history_length(p) >= round_number]
    if ahead:
        raise RoundSequenceException(
            f"Players {', '.join(sorted(ahead))} already have a record for round {round_number}"
        )
    return eligible


def _board_key(pair: PlayerPair) -> Tuple:
    white, black = pair
    return (
        -max(white.score, black.score),
        -(white.score + black.score),
        min(white.rank_key, black.rank_key),
    )


def _build_result(
    round_number: int,
    players: Sequence[Player],
    attempt: _Attempt,
    diagnostics: PairingDiagnostics,
    violations: List[str],
) -> PairingResult:
    """Number the boards, attach the bye and record float markers."""
    pairs = sorted(attempt.pairs, key=_board_key)
    games = [
        Game(round_number, board, white.id, black.id)
        for board, (white, black) in enumerate(pairs, start=1)
    ]
    if attempt.bye is not None:
        games.append(Game.bye(round_number, len(games) + 1, attempt.bye.id))

    markers: Dict[str, FloatDirection] = {}
    for white, black in pairs:
        markers[white.id] = float_direction(white.score, black.score)
        markers[black.id] = float_direction(black.score, white.score)
    if attempt.bye is not None:
        markers[attempt.bye.id] = FloatDirection.DOWN
    updated = [
        record_float(p, round_number, markers[p.id]) if p.id in markers else p
        for p in players
    ]

    success = attempt.complete
    if not success:
        missing = ", ".join(p.id for p in attempt.unpaired)
        violations.append(f"players left unpaired: {missing}")
        logger.error(f"Round {round_number}: could not pair {missing}")

    return PairingResult(
        round_number=round_number,
        games=games,
        success=success,
        method=attempt.tier,
        bye_player_id=attempt.bye.id if attempt.bye else None,
        diagnostics=diagnostics,
        violations=violations,
        updated_players=updated,
    )


def _pair_round_one(
    eligible: List[Player], config: TournamentConfig
) -> _Attempt:
    """Seed order, upper half against lower half."""
    attempt = _Attempt()
    ordered = sorted(eligible, key=lambda p: p.seed)
    if len(ordered) % 2 == 1:
        attempt.bye = bye_order(ordered)[0]
        ordered.remove(attempt.bye)
    half = len(ordered) // 2
    for board, (upper, lower) in enumerate(zip(ordered[:half], ordered[half:])):
        if config.upper_half_white:
            upper_color = WHITE
        elif board % 2 == 0:
            upper_color = config.initial_color
        else:
            upper_color = opposite(config.initial_color)
        attempt.pairs.append((upper, lower) if upper_color == WHITE else (lower, upper))
    return attempt


def _pair_brackets(
    players: List[Player],
    round_number: int,
    total_rounds: int,
    config: TournamentConfig,
    rank_map: Dict[str, int],
    diagnostics: PairingDiagnostics,
) -> _Attempt:
    """Walk the score brackets top-down, carrying unpaired players down."""
    attempt = _Attempt()
    groups = group_by_score(players)
    allow_leftover = len(players) % 2 == 1
    budget = SearchBudget(
        max_candidates=config.max_total_candidates,
        max_nodes=config.fallback_node_limit,
    )
    can_pair = player_check(ABSOLUTE_CRITERIA, round_number, total_rounds)
    carry: List[Player] = []

    for index, group in enumerate(groups):
        is_last = index == len(groups) - 1
        lower = [p for g in groups[index + 1 :] for p in g.players]

        def completion(floaters, lower=lower) -> bool:
            return remainder_pairable(
                list(floaters) + lower,
                allow_leftover=allow_leftover,
                node_limit=config.fallback_node_limit,
                can_pair=can_pair,
            )

        context = PairingContext(
            round_number=round_number,
            total_rounds=total_rounds,
            initial_color=config.initial_color,
            is_last_bracket=is_last,
            bye_rank=lambda p: rank_map.get(p.id, 0),
            completion=None if is_last else completion,
        )
        bracket = build_bracket(group.score, group.players, carry, context)
        outcome = pair_bracket(
            bracket, context, budget, max_configs=config.max_configs_per_bracket
        )

        diagnostics.brackets += 1
        diagnostics.transpositions += outcome.transpositions
        diagnostics.exchanges += outcome.exchanges
        diagnostics.candidates_evaluated += outcome.candidates_evaluated
        diagnostics.budget_exhausted |= outcome.budget_exhausted
        if outcome.pairs and outcome.tier.rank > attempt.tier.rank:
            attempt.tier = outcome.tier

        logger.debug(
            "Bracket %.1f: %s pairs, %s floating down (%s)",
            group.score,
            len(outcome.pairs),
            len(outcome.downfloaters),
            outcome.tier.value,
        )
        attempt.pairs.extend((p.white.player, p.black.player) for p in outcome.pairs)
        carry = [bp.player for bp in outcome.downfloaters]

    if allow_leftover and len(carry) == 1:
        attempt.bye = carry[0]
    elif carry:
        attempt.unpaired = carry
    return attempt


class _NodeLimitReached(Exception):
    pass


def _fallback_search(
    players: Sequence[Player],
    with_bye: bool,
    node_limit: int,
    bye_candidates: Optional[Sequence[Player]] = None,
    can_pair: Optional[Callable[[Player, Player], bool]] = None,
) -> Tuple[List[Tuple[Player, Player]], Optional[Player]]:
    """Depth-first pairing of ``players`` where every pair passes ``can_pair``.

    ``can_pair`` defaults to forbidding rematches only. Partners are tried
    closest score first. With ``with_bye`` one player sits out, tried in
    ``bye_candidates`` order.

    Raises:
        PairingInfeasibleException: If no allowed pairing exists or the
            node limit is reached first
    """
    if can_pair is None:
        can_pair = player_check(RELAXED_CRITERIA)
    ordered = sort_for_pairing(players)
    nodes = 0
    failed: set = set()

    def walk(remaining: Tuple[Player, ...]) -> Optional[List[Tuple[Player, Player]]]:
        nonlocal nodes
        nodes += 1
        if nodes > node_limit:
            raise _NodeLimitReached()
        if not remaining:
            return []
        key: FrozenSet[str] = frozenset(p.id for p in remaining)
        if key in failed:
            return None
        first, rest = remaining[0], remaining[1:]
        partners = sorted(
            (p for p in rest if can_pair(first, p)),
            key=lambda p: (abs(first.score - p.score), p.rank_key),
        )
        for partner in partners:
            tail = walk(tuple(p for p in rest if p is not partner))
            if tail is not None:
                return [(first, partner)] + tail
        failed.add(key)
        return None

    sitting_out: List[Optional[Player]] = [None]
    if with_bye:
        sitting_out = list(bye_candidates or bye_order(ordered))
    try:
        for bye in sitting_out:
            pool = tuple(p for p in ordered if p is not bye)
            pairs = walk(pool)
            if pairs is not None:
                return pairs, bye
    except _NodeLimitReached:
        raise PairingInfeasibleException(
            f"Fallback search stopped after {node_limit} nodes"
        )
    raise PairingInfeasibleException(
        f"No allowed pairing exists for {len(ordered)} players"
    )


def _colored(pairs, initial_color: str) -> List[PlayerPair]:
    return [assign_colors(a, b, initial_color) for a, b in pairs]


def _repair(
    attempt: _Attempt,
    eligible: List[Player],
    forced_bye: Optional[Player],
    round_number: int,
    total_rounds: int,
    config: TournamentConfig,
) -> _Attempt:
    """Pair what the brackets left over.

    The leftover is paired on its own first, then the whole round from
    scratch, both under the absolute criteria. Only when neither works are
    absolute color preferences given up, in the same order.
    """
    leftover = attempt.unpaired
    pool = [p for p in eligible if p is not forced_bye]
    logger.info(
        f"Bracket search left {len(leftover)} players unpaired; using bounded fallback"
    )
    for criteria in (ABSOLUTE_CRITERIA, RELAXED_CRITERIA):
        can_pair = player_check(criteria, round_number, total_rounds)
        if criteria is RELAXED_CRITERIA:
            logger.warning(
                f"Round {round_number}: no pairing keeps every absolute color "
                f"preference; relaxing colors"
            )
        with_bye = forced_bye is None and len(leftover) % 2 == 1
        try:
            pairs, bye = _fallback_search(
                leftover, with_bye, config.fallback_node_limit, can_pair=can_pair
            )
            return _Attempt(
                pairs=attempt.pairs + _colored(pairs, config.initial_color),
                bye=bye if with_bye else attempt.bye,
                tier=SearchTier.BOUNDED_FALLBACK,
            )
        except PairingInfeasibleException as e:
            logger.info(f"Local fallback failed ({e}); re-pairing the whole round")

        with_bye = forced_bye is None and len(pool) % 2 == 1
        try:
            pairs, bye = _fallback_search(
                pool, with_bye, config.fallback_node_limit, can_pair=can_pair
            )
            return _Attempt(
                pairs=_colored(pairs, config.initial_color),
                bye=bye if with_bye else forced_bye,
                tier=SearchTier.BOUNDED_FALLBACK,
            )
        except PairingInfeasibleException as e:
            logger.info(f"Whole-round fallback failed: {e}")

    logger.error(f"Bounded fallback failed for round {round_number}")
    return attempt


def _pair_later_round(
    eligible: List[Player],
    round_number: int,
    total_rounds: int,
    config: TournamentConfig,
    diagnostics: PairingDiagnostics,
    violations: List[str],
) -> _Attempt:
    rank_map = bye_rank_map(eligible)

    def run(forced_bye: Optional[Player]) -> _Attempt:
        pool = [p for p in eligible if p is not forced_bye]
        attempt = _pair_brackets(
            pool, round_number, total_rounds, config, rank_map, diagnostics
        )
        if forced_bye is not None:
            attempt.bye = forced_bye
        if not attempt.complete:
            attempt = _repair(
                attempt, eligible, forced_bye, round_number, total_rounds, config
            )
        return attempt

    attempt = run(None)
    if attempt.bye is None or validate_bye_assignment(attempt.bye, eligible).eligible:
        return attempt

    # The natural leftover already had an unplayed point; hand the bye to
    # the best eligible receiver and pair everyone else around them.
    fewest = min(unplayed_points(p) for p in eligible)
    for candidate in bye_order(eligible):
        if unplayed_points(candidate) > fewest:
            break
        logger.info(f"Retrying round {round_number} with bye forced on {candidate.id}")
        forced = run(candidate)
        if forced.complete:
            return forced

    message = f"bye given to {attempt.bye.id}, who already had an unplayed point"
    logger.warning(f"Round {round_number}: {message}")
    violations.append(message)
    return attempt


def pair_round(
    players: Sequence[Player],
    round_number: int,
    total_rounds: int,
    config: Optional[TournamentConfig] = None,
) -> PairingResult:
    """Compute the pairings of one round.

    Inputs are never modified; float markers come back as new snapshots in
    ``updated_players``.

    Args:
        players: Snapshots of every registered player, withdrawn ones included
        round_number: Round to pair, 1-indexed
        total_rounds: Rounds in the tournament
        config: Tournament settings, defaults if omitted

    Returns:
        PairingResult with the boards, the bye and search diagnostics

    Raises:
        InvalidRoundException: If ``round_number`` is outside 1..total_rounds
        InsufficientPlayersException: If fewer than two players can be paired
        RoundSequenceException: If a player's record already covers this round
    """
    if config is None:
        config = TournamentConfig(num_rounds=max(total_rounds, 1))
    eligible = _validate_input(players, round_number, total_rounds)
    logger.info(
        f"Pairing round {round_number}/{total_rounds} for {len(eligible)} players"
    )

    diagnostics = PairingDiagnostics()
    violations: List[str] = []
    if round_number == 1:
        attempt = _pair_round_one(eligible, config)
    else:
        attempt = _pair_later_round(
            eligible, round_number, total_rounds, config, diagnostics, violations
        )

    for white, black in attempt.pairs:
        for violation in pair_color_violations(white, black):
            logger.warning(f"Round {round_number}: color violation, {violation}")
            violations.append(violation)

    result = _build_result(round_number, players, attempt, diagnostics, violations)
    logger.info(
        f"Round {round_number} paired: {len(result.pairings)} boards, "
        f"bye {result.bye_player_id}, method {result.method.value}"
    )
    return result
