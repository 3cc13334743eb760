"""Pairing checker: post-hoc validation of emitted rounds.

The checker never trusts the engine. It re-derives every absolute rule from
the player snapshots a round was paired from and the boards it produced.
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

from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from bountypairing.lifecycle.bye_assignment import validate_bye_assignment
from bountypairing.lifecycle.late_entry import can_pair_in_round
from bountypairing.models.game import Game
from bountypairing.models.player import FloatDirection, Player
from bountypairing.pairing.colors import (
    color_preference,
    color_violation,
    is_topscorer,
)
from bountypairing.pairing.floats import count_floats
from bountypairing.type_hints import BLACK, WHITE
from bountypairing.utils import setup_logger

logger = setup_logger(__name__)


class CriterionStatus(Enum):
    """Status of a criterion check."""

    COMPLIANT = "COMPLIANT"
    VIOLATION = "VIOLATION"
    NOT_APPLICABLE = "NOT_APPLICABLE"


class ViolationType(Enum):
    ABSOLUTE = "ABSOLUTE"  # must never happen
    QUALITY = "QUALITY"  # allowed when logged by the engine


@dataclass
class CriterionResult:
    """Result of validating a single criterion."""

    criterion: str
    status: CriterionStatus
    violation_type: Optional[ViolationType] = None
    description: str = ""
    details: Dict[str, object] = field(default_factory=dict)


@dataclass
class ValidationReport:
    """Complete validation report for one round or a whole tournament."""

    total_criteria: int
    compliant_count: int
    violations: List[CriterionResult]
    overall_status: CriterionStatus
    summary: str
    quality_warnings: List[CriterionResult] = field(default_factory=list)
    criteria_results: List[CriterionResult] = field(default_factory=list)

    @property
    def is_compliant(self) -> bool:
        return self.overall_status is not CriterionStatus.VIOLATION

    @property
    def compliance_percentage(self) -> float:
        if self.total_criteria == 0:
            return 100.0
        return (self.compliant_count / self.total_criteria) * 100.0


def _ok(criterion: str, description: str) -> CriterionResult:
    return CriterionResult(criterion, CriterionStatus.COMPLIANT, description=description)


class PairingChecker:
    """Checks emitted rounds against the absolute rules and color bounds."""

    def check_tournament_feasibility(
        self, num_players: int, num_rounds: int
    ) -> Optional[CriterionResult]:
        """Check whether the field is large enough to avoid rematches.

        With N players there are N*(N-1)/2 distinct pairings, and R rounds
        need R * floor(N/2) of them.

        Returns:
            CriterionResult if the configuration forces a rematch, None otherwise
        """
        if num_players < 2 or num_rounds < 1:
            return None
        max_unique = num_players * (num_players - 1) // 2
        needed = num_rounds * (num_players // 2)
        if needed <= max_unique:
            return None
        return CriterionResult(
            criterion="C1",
            status=CriterionStatus.VIOLATION,
            violation_type=ViolationType.ABSOLUTE,
            description=(
                f"{num_players} players over {num_rounds} rounds need {needed} "
                f"pairings, but only {max_unique} distinct pairings exist"
            ),
            details={"max_unique_pairings": max_unique, "pairings_needed": needed},
        )

    def check_no_rematch(
        self, pairs: Sequence[Tuple[Player, Player]]
    ) -> CriterionResult:
        """C1: players never meet twice."""
        repeats = [
            [white.id, black.id] for white, black in pairs if white.has_played(black.id)
        ]
        if repeats:
            return CriterionResult(
                "C1",
                CriterionStatus.VIOLATION,
                ViolationType.ABSOLUTE,
                f"Repeat pairing(s): {repeats}",
                {"pairs": repeats},
            )
        return _ok("C1", "No repeat pairings found")

    def check_bye(
        self, bye_player: Optional[Player], players: Sequence[Player]
    ) -> CriterionResult:
        """C2: no second bye while a player without one remains."""
        if bye_player is None:
            return CriterionResult(
                "C2", CriterionStatus.NOT_APPLICABLE, description="No bye this round"
            )
        verdict = validate_bye_assignment(bye_player, players)
        if not verdict.eligible:
            return CriterionResult(
                "C2",
                CriterionStatus.VIOLATION,
                ViolationType.ABSOLUTE,
                f"Bye for {bye_player.id}: {verdict.reason}",
                {"player_id": bye_player.id},
            )
        return _ok("C2", f"Bye assignment valid: {bye_player.id}")

    def check_everyone_paired(
        self, eligible: Sequence[Player], games: Sequence[Game]
    ) -> CriterionResult:
        """Every eligible player sits at exactly one board, nobody else does."""
        seats = Counter(pid for g in games for pid in g.player_ids)
        eligible_ids = {p.id for p in eligible}
        missing = sorted(eligible_ids - set(seats))
        doubled = sorted(pid for pid, n in seats.items() if n > 1)
        intruders = sorted(set(seats) - eligible_ids)
        byes = sum(1 for g in games if g.is_bye)
        expected_byes = len(eligible_ids) % 2
        if missing or doubled or intruders or byes != expected_byes:
            return CriterionResult(
                "PAIRED",
                CriterionStatus.VIOLATION,
                ViolationType.ABSOLUTE,
                "Round does not seat every eligible player exactly once",
                {
                    "missing": missing,
                    "doubled": doubled,
                    "not_eligible": intruders,
                    "byes": byes,
                },
            )
        return _ok("PAIRED", "Every eligible player is paired once")

    def check_absolute_color_conflicts(
        self,
        pairs: Sequence[Tuple[Player, Player]],
        current_round: int,
        total_rounds: int,
    ) -> CriterionResult:
        """C3: non-topscorers with the same absolute preference should not meet."""
        clashes = []
        for white, black in pairs:
            if is_topscorer(white, current_round, total_rounds) or is_topscorer(
                black, current_round, total_rounds
            ):
                continue
            wp, bp = color_preference(white), color_preference(black)
            if wp.is_absolute and bp.is_absolute and wp.color == bp.color:
                clashes.append([white.id, black.id])
        if clashes:
            return CriterionResult(
                "C3",
                CriterionStatus.VIOLATION,
                ViolationType.QUALITY,
                f"Absolute preference conflicts: {len(clashes)}",
                {"pairs": clashes},
            )
        return _ok("C3", "No absolute preference conflicts")

    def check_color_bounds(
        self, pairs: Sequence[Tuple[Player, Player]]
    ) -> CriterionResult:
        """Color difference within 2 and no three equal colors in a row."""
        breaches = [
            v
            for white, black in pairs
            for v in (color_violation(white, WHITE), color_violation(black, BLACK))
            if v is not None
        ]
        if breaches:
            return CriterionResult(
                "COLOR",
                CriterionStatus.VIOLATION,
                ViolationType.QUALITY,
                f"Color bounds broken: {len(breaches)}",
                {"violations": breaches},
            )
        return _ok("COLOR", "Color bounds respected")

    def validate_round(
        self,
        players: Sequence[Player],
        games: Sequence[Game],
        current_round: int,
        total_rounds: int,
    ) -> ValidationReport:
        """Validate one round.

        Args:
            players: Snapshots the round was paired from
            games: Boards of the round
            current_round: Round number
            total_rounds: Rounds in the tournament

        Returns:
            ValidationReport for the round
        """
        by_id = {p.id: p for p in players}
        eligible = [p for p in players if can_pair_in_round(p, current_round)]
        pairs = [
            (by_id[g.white_id], by_id[g.black_id])
            for g in games
            if not g.is_bye and g.white_id in by_id and g.black_id in by_id
        ]
        bye_game = next((g for g in games if g.is_bye), None)
        bye_player = by_id.get(bye_game.white_id) if bye_game else None

        results = [
            self.check_no_rematch(pairs),
            self.check_bye(bye_player, eligible),
            self.check_everyone_paired(eligible, games),
            self.check_absolute_color_conflicts(pairs, current_round, total_rounds),
            self.check_color_bounds(pairs),
        ]
        report = _report(results)
        logger.debug(f"Round {current_round} check: {report.summary}")
        return report

    def validate_tournament(
        self,
        rounds: Sequence[Tuple[Sequence[Player], Sequence[Game]]],
        total_rounds: Optional[int] = None,
    ) -> ValidationReport:
        """Validate a sequence of (players before the round, games) rounds."""
        total_rounds = total_rounds or len(rounds)
        results: List[CriterionResult] = []
        for round_number, (players, games) in enumerate(rounds, start=1):
            report = self.validate_round(players, games, round_number, total_rounds)
            for r in report.criteria_results:
                r.details["round"] = round_number
            results.extend(report.criteria_results)
        if rounds:
            last_players = rounds[-1][0]
            logger.debug(
                "Floats so far: %s down, %s up",
                count_floats(last_players, FloatDirection.DOWN),
                count_floats(last_players, FloatDirection.UP),
            )
        report = _report(results)
        logger.info(f"Tournament check: {report.summary}")
        return report


def _report(results: List[CriterionResult]) -> ValidationReport:
    violations = [
        r
        for r in results
        if r.status is CriterionStatus.VIOLATION
        and r.violation_type is ViolationType.ABSOLUTE
    ]
    warnings = [
        r
        for r in results
        if r.status is CriterionStatus.VIOLATION
        and r.violation_type is ViolationType.QUALITY
    ]
    compliant = sum(1 for r in results if r.status is CriterionStatus.COMPLIANT)
    status = CriterionStatus.VIOLATION if violations else CriterionStatus.COMPLIANT
    if violations:
        summary = (
            f"{len(violations)} absolute violation(s), "
            f"{len(warnings)} quality warning(s)"
        )
    else:
        summary = f"Absolute criteria satisfied; {len(warnings)} quality warning(s)"
    return ValidationReport(
        total_criteria=len(results),
        compliant_count=compliant,
        violations=violations,
        overall_status=status,
        summary=summary,
        quality_warnings=warnings,
        criteria_results=results,
    )


def create_checker() -> PairingChecker:
    return PairingChecker()
