"""
Pairing of a single score bracket.

A bracket holds the residents of one score group plus any moved-down
players (MDPs) floated from above. The search tries, in order, the
straightforward S1/S2 pairing, transpositions of S2, resident exchanges and
(for heterogeneous brackets) MDP exchanges. Candidates that break an
absolute criterion are never built; the rest are ranked by the quality
chain in ``criteria``. The walk is capped, and when no candidate pairs
everyone the bracket gives up pairs one at a time, leaving the unpaired
players to float into the next bracket.
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
from enum import Enum
from functools import partial
from typing import Dict, FrozenSet, Iterator, List, Optional, Sequence, Tuple

from bountypairing.models.pairing_result import SearchTier
from bountypairing.models.player import FloatDirection, Player
from bountypairing.pairing.budget import BracketLimit, SearchBudget
from bountypairing.pairing.colors import (
    NO_PREFERENCE,
    ColorPreference,
    assign_colors,
    color_preference,
    is_topscorer,
    pair_color_violations,
)
from bountypairing.pairing.criteria import (
    ABSOLUTE_CRITERIA,
    Criterion,
    PairingContext,
    allowed,
    no_absolute_color_clash,
    quality_key,
)
from bountypairing.pairing.exchanges import MDPExchanges, ResidentExchanges
from bountypairing.pairing.floats import float_repeat_penalty
from bountypairing.pairing.score_groups import PSD, calculate_psd, compare_psd
from bountypairing.pairing.transpositions import Transpositions
from bountypairing.type_hints import BLACK, WHITE
from bountypairing.utils import setup_logger

logger = setup_logger(__name__)

# Remainder pairings tried per MDP pairing in a heterogeneous bracket
REMAINDER_LIMIT = 3


class Subgroup(Enum):
    S1 = "S1"
    S2 = "S2"
    LIMBO = "LIMBO"


@dataclass(eq=False)
class BracketPlayer:
    """
    A player as seen inside one bracket of one round.

    Attributes
    ----------
    player : Player
        The underlying snapshot.
    bsn : int
        Bracket sequence number, 1 for the highest-ranked player.
    preference : ColorPreference
        Color preference for this round.
    is_mdp : bool
        True if the player was moved down from a higher bracket.
    topscorer : bool
        True if the player may ignore absolute color clashes this round.
    subgroup : Subgroup
        Where the player sits in the current configuration.
    float_marker : FloatDirection
        Direction the player floats if the chosen candidate stands.
    """

    player: Player
    bsn: int = 0
    preference: ColorPreference = NO_PREFERENCE
    is_mdp: bool = False
    topscorer: bool = False
    subgroup: Subgroup = Subgroup.S1
    float_marker: FloatDirection = FloatDirection.NONE

    @property
    def id(self) -> str:
        return self.player.id

    @property
    def score(self) -> float:
        return self.player.score

    def __repr__(self) -> str:
        return f"BracketPlayer({self.player.id!r}, bsn={self.bsn})"


@dataclass
class Pair:
    """Two bracket players with colors assigned."""

    white: BracketPlayer
    black: BracketPlayer

    @property
    def ids(self) -> Tuple[str, str]:
        return self.white.id, self.black.id

    @property
    def score_difference(self) -> float:
        return abs(self.white.score - self.black.score)

    def __iter__(self):
        return iter((self.white, self.black))


@dataclass
class Bracket:
    """A score level and the players paired in it.

    Attributes
    ----------
    score : float
        Score of the residents.
    residents : list of BracketPlayer
        Players whose own score is ``score``.
    mdps : list of BracketPlayer
        Players moved down from higher brackets.
    """

    score: float
    residents: List[BracketPlayer] = field(default_factory=list)
    mdps: List[BracketPlayer] = field(default_factory=list)

    @property
    def is_heterogeneous(self) -> bool:
        return bool(self.mdps)

    @property
    def players(self) -> List[BracketPlayer]:
        return sorted(self.mdps + self.residents, key=lambda bp: bp.bsn)

    def __len__(self) -> int:
        return len(self.mdps) + len(self.residents)


@dataclass(frozen=True)
class BracketParameters:
    """M0 (MDPs), MaxPairs and M1 (MDPs that can be paired)."""

    m0: int
    max_pairs: int
    m1: int


@dataclass(eq=False)
class Candidate:
    """One complete or partial pairing of a bracket, with its quality."""

    pairs: List[Pair]
    downfloaters: List[BracketPlayer]
    tier: SearchTier
    sequence: int
    psd: PSD = ()
    mdps_paired: int = 0
    bye_penalty: int = 0
    color_key: Tuple[int, int, int] = (0, 0, 0)
    float_penalty: int = 0

    @property
    def pair_count(self) -> int:
        return len(self.pairs)


@dataclass
class BracketOutcome:
    """What pairing a bracket produced and what it cost."""

    pairs: List[Pair] = field(default_factory=list)
    downfloaters: List[BracketPlayer] = field(default_factory=list)
    tier: SearchTier = SearchTier.STRAIGHTFORWARD
    candidates_evaluated: int = 0
    transpositions: int = 0
    exchanges: int = 0
    budget_exhausted: bool = False


def build_bracket(
    score: float,
    residents: Sequence[Player],
    mdps: Sequence[Player],
    context: PairingContext,
) -> Bracket:
    """Wrap players for one bracket and number them by rank (BSN)."""
    ordered = sorted(list(mdps) + list(residents), key=lambda p: p.rank_key)
    mdp_ids = {p.id for p in mdps}
    bracket = Bracket(score=score)
    for bsn, player in enumerate(ordered, start=1):
        bp = BracketPlayer(
            player=player,
            bsn=bsn,
            preference=color_preference(player),
            is_mdp=player.id in mdp_ids,
            topscorer=is_topscorer(
                player, context.round_number, context.total_rounds
            ),
        )
        (bracket.mdps if bp.is_mdp else bracket.residents).append(bp)
    return bracket


def bracket_parameters(bracket: Bracket) -> BracketParameters:
    """MaxPairs is half the bracket, M1 the MDPs that residents can absorb."""
    residents = len(bracket.residents)
    m0 = len(bracket.mdps)
    max_pairs = len(bracket) // 2
    m1 = m0
    if m0 > residents:
        max_pairs = min(max_pairs, residents)
        m1 = min(m1, residents)
    m1 = min(m1, max_pairs)
    return BracketParameters(m0=m0, max_pairs=max_pairs, m1=m1)


def split_subgroups(
    bracket: Bracket, params: BracketParameters
) -> Tuple[List[BracketPlayer], List[BracketPlayer], List[BracketPlayer]]:
    """Divide a bracket into S1, S2 and limbo.

    N1 is M1 for a heterogeneous bracket and MaxPairs otherwise.
    """
    players = bracket.players
    if bracket.is_heterogeneous:
        s1 = bracket.mdps[: params.m1]
        limbo = bracket.mdps[params.m1 :]
        s2 = list(bracket.residents)
    else:
        s1 = players[: params.max_pairs]
        s2 = players[params.max_pairs :]
        limbo = []
    for bp in s1:
        bp.subgroup = Subgroup.S1
    for bp in s2:
        bp.subgroup = Subgroup.S2
    for bp in limbo:
        bp.subgroup = Subgroup.LIMBO
    return s1, s2, limbo


class BracketSearch:
    """Bounded search for the best pairing of one bracket."""

    def __init__(
        self,
        bracket: Bracket,
        context: PairingContext,
        budget: Optional[SearchBudget] = None,
        criteria: Sequence[Criterion] = ABSOLUTE_CRITERIA,
        max_configs: Optional[int] = None,
    ):
        self.bracket = bracket
        self.context = context
        self.budget = budget or SearchBudget()
        self.criteria = criteria
        self.limit = BracketLimit.for_bracket(len(bracket), max_configs)
        self.params = bracket_parameters(bracket)
        self.can_pair = partial(allowed, criteria=criteria)
        self._sequence = 0
        self._completion_cache: Dict[FrozenSet[str], bool] = {}
        self._capped = False
        self.outcome = BracketOutcome()

    # ---- generation ----

    def _homogeneous(
        self, players: Sequence[BracketPlayer], n_pairs: int
    ) -> Iterator[Tuple[List[Tuple[BracketPlayer, BracketPlayer]], List[BracketPlayer], SearchTier]]:
        """S1/S2 transpositions, then resident exchanges, for ``n_pairs`` pairs."""
        players = sorted(players, key=lambda bp: bp.bsn)
        if n_pairs == 0:
            yield [], list(players), SearchTier.STRAIGHTFORWARD
            return
        if 2 * n_pairs > len(players):
            return
        s1, s2 = players[:n_pairs], players[n_pairs:]
        for order in Transpositions(
            s2, n_pairs, s1, self.can_pair, budget=self.budget
        ):
            straight = all(a is b for a, b in zip(order, s2[:n_pairs]))
            tier = SearchTier.STRAIGHTFORWARD if straight else SearchTier.TRANSPOSITION
            yield list(zip(s1, order[:n_pairs])), order[n_pairs:], tier
        for new_s1, new_s2 in ResidentExchanges(s1, s2):
            if self.budget.exhausted:
                return
            for order in Transpositions(
                new_s2, n_pairs, new_s1, self.can_pair, budget=self.budget
            ):
                yield list(zip(new_s1, order[:n_pairs])), order[n_pairs:], SearchTier.EXCHANGE

    def _heterogeneous(
        self, n_pairs: int
    ) -> Iterator[Tuple[List[Tuple[BracketPlayer, BracketPlayer]], List[BracketPlayer], SearchTier]]:
        """MDP pairings first, the residents left over paired among themselves."""
        residents = sorted(self.bracket.residents, key=lambda bp: bp.bsn)
        top_m = min(self.params.m1, n_pairs)
        for m in range(top_m, -1, -1):
            produced = False
            for index, (s1, limbo) in enumerate(MDPExchanges(self.bracket.mdps, m)):
                mdp_tier = SearchTier.EXCHANGE if index else SearchTier.STRAIGHTFORWARD
                for order in Transpositions(
                    residents, m, s1, self.can_pair, budget=self.budget
                ):
                    straight = all(a is b for a, b in zip(order, residents[:m]))
                    tier = max(
                        mdp_tier,
                        SearchTier.STRAIGHTFORWARD if straight else SearchTier.TRANSPOSITION,
                        key=lambda t: t.rank,
                    )
                    mdp_pairs = list(zip(s1, order[:m]))
                    remainder = order[m:]
                    for count, (rest_pairs, rest_left, rest_tier) in enumerate(
                        self._homogeneous(remainder, n_pairs - m)
                    ):
                        if count >= REMAINDER_LIMIT:
                            break
                        produced = True
                        yield (
                            mdp_pairs + rest_pairs,
                            list(limbo) + rest_left,
                            max(tier, rest_tier, key=lambda t: t.rank),
                        )
                    if self._stop():
                        return
            if produced:
                return

    # ---- evaluation ----

    def _candidate(
        self,
        raw_pairs: List[Tuple[BracketPlayer, BracketPlayer]],
        downfloaters: List[BracketPlayer],
        tier: SearchTier,
    ) -> Candidate:
        ctx = self.context
        pairs: List[Pair] = []
        violations = strong_misses = mild_misses = 0
        float_penalty = 0
        for a, b in raw_pairs:
            white_player, _ = assign_colors(
                a.player, b.player, ctx.initial_color, a.preference, b.preference
            )
            white, black = (a, b) if white_player is a.player else (b, a)
            pairs.append(Pair(white, black))
            violations += len(pair_color_violations(white.player, black.player))
            for bp, got in ((white, WHITE), (black, BLACK)):
                pref = bp.preference
                if pref.color is None or pref.color == got:
                    continue
                if pref.is_absolute:
                    violations += 1
                elif pref.is_strong:
                    strong_misses += 1
                else:
                    mild_misses += 1
            if a.score != b.score:
                high, low = (a, b) if a.score > b.score else (b, a)
                float_penalty += float_repeat_penalty(
                    high.player, FloatDirection.DOWN, ctx.round_number
                )
                float_penalty += float_repeat_penalty(
                    low.player, FloatDirection.UP, ctx.round_number
                )
        for bp in downfloaters:
            float_penalty += float_repeat_penalty(
                bp.player, FloatDirection.DOWN, ctx.round_number
            )

        bye_penalty = 0
        if ctx.is_last_bracket and len(downfloaters) == 1 and ctx.bye_rank:
            bye_penalty = ctx.bye_rank(downfloaters[0].player)

        candidate = Candidate(
            pairs=pairs,
            downfloaters=list(downfloaters),
            tier=tier,
            sequence=self._sequence,
            psd=calculate_psd(
                [(p.white, p.black) for p in pairs], downfloaters, self.bracket.score
            ),
            mdps_paired=sum(1 for p in pairs if p.white.is_mdp or p.black.is_mdp),
            bye_penalty=bye_penalty,
            color_key=(violations, strong_misses, mild_misses),
            float_penalty=float_penalty,
        )
        self._sequence += 1
        return candidate

    def _ideal_psd(self, n_pairs: int) -> PSD:
        """PSD of the canonical split, a lower bound for ``n_pairs`` pairs."""
        players = self.bracket.players
        m = min(self.params.m1, n_pairs)
        mdps = self.bracket.mdps[:m]
        residents = self.bracket.residents
        pairs = list(zip(mdps, residents[:m]))
        rest = residents[m:]
        rest_pairs = n_pairs - m
        pairs += list(zip(rest[:rest_pairs], rest[rest_pairs : 2 * rest_pairs]))
        paired = {id(bp) for pair in pairs for bp in pair}
        floaters = [bp for bp in players if id(bp) not in paired]
        return calculate_psd(pairs, floaters, self.bracket.score)

    def _is_perfect(self, candidate: Candidate, ideal: PSD) -> bool:
        return (
            candidate.bye_penalty == 0
            and candidate.color_key[0] == 0
            and candidate.color_key[1] == 0
            and candidate.color_key[2] == 0
            and candidate.float_penalty == 0
            and compare_psd(candidate.psd, ideal) <= 0
        )

    def _stop(self) -> bool:
        return self.limit.reached or self.budget.exhausted

    def _collect(self, n_pairs: int) -> List[Candidate]:
        source = (
            self._heterogeneous(n_pairs)
            if self.bracket.is_heterogeneous
            else self._homogeneous(self.bracket.players, n_pairs)
        )
        ideal = self._ideal_psd(n_pairs)
        found: List[Candidate] = []
        for raw_pairs, floaters, tier in source:
            candidate = self._candidate(raw_pairs, floaters, tier)
            self.limit.configs += 1
            self.budget.spend_candidate()
            self.outcome.candidates_evaluated += 1
            if tier is SearchTier.TRANSPOSITION:
                self.outcome.transpositions += 1
            elif tier is SearchTier.EXCHANGE:
                self.outcome.exchanges += 1
            found.append(candidate)
            if self._stop():
                break
            if self._is_perfect(candidate, ideal) and self._completes(candidate):
                break
        return found

    def _completes(self, candidate: Candidate) -> bool:
        if self.context.completion is None:
            return True
        key = frozenset(bp.id for bp in candidate.downfloaters)
        if key not in self._completion_cache:
            self._completion_cache[key] = self.context.completion(
                [bp.player for bp in candidate.downfloaters]
            )
        return self._completion_cache[key]

    def pair_bound(self) -> int:
        """Upper bound on the pairs any configuration of the bracket holds.

        Players with no allowed opponent in the bracket stay unpaired, and
        players sharing an absolute color preference can only meet players
        outside their group.
        """
        players = self.bracket.players
        size = len(players)
        lonely = sum(
            1
            for a in players
            if not any(b is not a and self.can_pair(a, b) for b in players)
        )
        bound = (size - lonely) // 2
        if not any(c.check is no_absolute_color_clash for c in self.criteria):
            return bound
        for color in (WHITE, BLACK):
            stuck = sum(
                1
                for bp in players
                if not bp.topscorer
                and bp.preference.is_absolute
                and bp.preference.color == color
            )
            unmatched = max(0, stuck - (size - stuck))
            bound = min(bound, (size - unmatched) // 2)
        return bound

    def run(self) -> BracketOutcome:
        """Search from MaxPairs downwards and keep the best candidate."""
        split_subgroups(self.bracket, self.params)
        self.budget.start_bracket()
        bound = self.pair_bound()
        if bound < self.params.max_pairs:
            logger.debug(
                "Bracket %.1f: at most %s of %s pairs possible",
                self.bracket.score,
                bound,
                self.params.max_pairs,
            )
        fallback: Optional[Candidate] = None
        for n_pairs in range(min(self.params.max_pairs, bound), -1, -1):
            self.limit.configs = 0
            self.budget.start_level()
            candidates = sorted(self._collect(n_pairs), key=quality_key)
            self._capped = self._capped or self.budget.exhausted
            if candidates and fallback is None:
                fallback = candidates[0]
            chosen = next((c for c in candidates if self._completes(c)), None)
            if chosen is not None:
                return self._finish(chosen)
            if candidates:
                logger.debug(
                    "Bracket %.1f: %s pairs leave lower brackets unpairable",
                    self.bracket.score,
                    n_pairs,
                )
        # Nothing completes; keep the best pairing and let the fallback repair
        return self._finish(fallback)

    def _finish(self, chosen: Optional[Candidate]) -> BracketOutcome:
        outcome = self.outcome
        outcome.budget_exhausted = self._capped
        if chosen is None:
            outcome.downfloaters = self.bracket.players
            return outcome
        outcome.pairs = chosen.pairs
        outcome.downfloaters = chosen.downfloaters
        outcome.tier = chosen.tier
        for pair in chosen.pairs:
            if pair.white.score > pair.black.score:
                pair.white.float_marker, pair.black.float_marker = (
                    FloatDirection.DOWN,
                    FloatDirection.UP,
                )
            elif pair.black.score > pair.white.score:
                pair.black.float_marker, pair.white.float_marker = (
                    FloatDirection.DOWN,
                    FloatDirection.UP,
                )
        for bp in chosen.downfloaters:
            bp.float_marker = FloatDirection.DOWN
        if outcome.budget_exhausted:
            logger.info(
                "Search cap reached in bracket %.1f; keeping best of %s candidates",
                self.bracket.score,
                outcome.candidates_evaluated,
            )
        return outcome


def pair_bracket(
    bracket: Bracket,
    context: PairingContext,
    budget: Optional[SearchBudget] = None,
    criteria: Sequence[Criterion] = ABSOLUTE_CRITERIA,
    max_configs: Optional[int] = None,
) -> BracketOutcome:
    """Find the best legal pairing of one bracket within the search cap.

    Args:
        bracket: Bracket built by ``build_bracket``
        context: Round-wide facts (round, bye ranking, completion check)
        budget: Shared search budget, a fresh one if omitted
        criteria: Absolute criteria pairs must satisfy
        max_configs: Override for the per-bracket configuration cap

    Returns:
        BracketOutcome with the chosen pairs and the players left to float
    """
    if len(bracket) <= 1:
        return BracketOutcome(downfloaters=bracket.players)
    return BracketSearch(bracket, context, budget, criteria, max_configs).run()
