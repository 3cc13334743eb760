"""Color preference and color allocation for the Dutch system."""

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

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from bountypairing.models.player import Player
from bountypairing.type_hints import BLACK, WHITE, opposite
from bountypairing.utils import setup_logger

logger = setup_logger(__name__)

MAX_COLOR_DIFFERENCE = 2
MAX_SAME_COLOR_STREAK = 2


class PreferenceStrength(Enum):
    """Strength of a color preference, strongest first."""

    ABSOLUTE = 3
    STRONG = 2
    MILD = 1
    NONE = 0


@dataclass(frozen=True)
class ColorPreference:
    """Color a player is due for next and how strongly.

    Attributes
    ----------
    color : str or None
        Preferred color for the next game, None without a preference.
    strength : PreferenceStrength
        Absolute, strong, mild or none.
    color_difference : int
        Whites minus blacks over played games.
    last_two : tuple
        Colors of the last two played games, most recent last.
    """

    color: Optional[str]
    strength: PreferenceStrength
    color_difference: int = 0
    last_two: Tuple[Optional[str], Optional[str]] = (None, None)

    @property
    def is_absolute(self) -> bool:
        return self.strength is PreferenceStrength.ABSOLUTE

    @property
    def is_strong(self) -> bool:
        return self.strength is PreferenceStrength.STRONG


NO_PREFERENCE = ColorPreference(color=None, strength=PreferenceStrength.NONE)


def color_preference(player: Player) -> ColorPreference:
    """Derive a player's color preference from the played games.

    Byes are skipped. Absolute when the color difference is beyond +/-1 or
    the last two games share a color; strong when the difference is +/-1;
    mild when colors are balanced but games exist; none for a fresh entrant.
    """
    played = player.played_colors
    if not played:
        return NO_PREFERENCE

    cd = played.count(WHITE) - played.count(BLACK)
    last = played[-1]
    second_last = played[-2] if len(played) >= 2 else None
    last_two = (second_last, last)

    if cd > 1:
        return ColorPreference(BLACK, PreferenceStrength.ABSOLUTE, cd, last_two)
    if cd < -1:
        return ColorPreference(WHITE, PreferenceStrength.ABSOLUTE, cd, last_two)
    if second_last is not None and last == second_last:
        return ColorPreference(
            opposite(last), PreferenceStrength.ABSOLUTE, cd, last_two
        )
    if cd == 1:
        return ColorPreference(BLACK, PreferenceStrength.STRONG, cd, last_two)
    if cd == -1:
        return ColorPreference(WHITE, PreferenceStrength.STRONG, cd, last_two)
    return ColorPreference(opposite(last), PreferenceStrength.MILD, cd, last_two)


def is_topscorer(player: Player, current_round: int, total_rounds: int) -> bool:
    """
    Topscorers are players above 50% of the maximum possible score when the
    final round is paired. Only they may meet despite clashing absolute
    preferences.
    """
    if current_round != total_rounds or total_rounds <= 1:
        return False
    return player.score > (current_round - 1) * 0.5


def colors_compatible(
    pref1: ColorPreference, pref2: ColorPreference, topscorer: bool = False
) -> bool:
    """False when two absolute preferences ask for the same color."""
    if topscorer:
        return True
    return not (
        pref1.is_absolute and pref2.is_absolute and pref1.color == pref2.color
    )


def color_violation(player: Player, color: str) -> Optional[str]:
    """Describe the color rule a player would break by getting ``color``.

    Returns None when the allocation keeps the color difference within
    bounds and avoids a third identical color in a row.
    """
    played = player.played_colors + [color]
    cd = played.count(WHITE) - played.count(BLACK)
    if abs(cd) > MAX_COLOR_DIFFERENCE:
        return f"player {player.id} color difference {cd:+d}"
    streak = played[-(MAX_SAME_COLOR_STREAK + 1):]
    if len(streak) > MAX_SAME_COLOR_STREAK and len(set(streak)) == 1:
        return f"player {player.id} {color} three times in a row"
    return None


def pair_color_violations(white: Player, black: Player) -> List[str]:
    return [
        v
        for v in (color_violation(white, WHITE), color_violation(black, BLACK))
        if v is not None
    ]


def _most_recent_different_colors(p1: Player, p2: Player) -> Optional[str]:
    """Color p1 had the last time the two had different colors."""
    for c1, c2 in zip(reversed(p1.played_colors), reversed(p2.played_colors)):
        if c1 != c2:
            return c1
    return None


def _grant(player: Player, other: Player, color: Optional[str]) -> Tuple[Player, Player]:
    return (player, other) if color == WHITE else (other, player)


def assign_colors(
    p1: Player,
    p2: Player,
    initial_color: str = WHITE,
    pref1: Optional[ColorPreference] = None,
    pref2: Optional[ColorPreference] = None,
) -> Tuple[Player, Player]:
    """
    Allocate colors to a pair. Returns (white_player, black_player).

    Priority order:
    1. Grant both color preferences.
    2. Grant the stronger preference. Two absolutes: the wider color
       difference wins, then the higher-ranked player (logged).
    3. Alternate from the most recent game the two had different colors.
    4. Grant the higher-ranked player's preference.
    5. Pairing-number parity of the higher-ranked player with the initial
       color.
    """
    pref1 = pref1 or color_preference(p1)
    pref2 = pref2 or color_preference(p2)
    higher, lower = (p1, p2) if p1.rank_key <= p2.rank_key else (p2, p1)
    higher_pref = pref1 if higher is p1 else pref2

    # 1: Grant both color preferences
    if pref1.color and pref2.color and pref1.color != pref2.color:
        return _grant(p1, p2, pref1.color)

    # 2: Grant the stronger color preference
    if pref1.strength.value > pref2.strength.value and pref1.color:
        return _grant(p1, p2, pref1.color)
    if pref2.strength.value > pref1.strength.value and pref2.color:
        return _grant(p2, p1, pref2.color)
    if pref1.is_absolute and pref2.is_absolute:
        if abs(pref1.color_difference) > abs(pref2.color_difference):
            return _grant(p1, p2, pref1.color)
        if abs(pref2.color_difference) > abs(pref1.color_difference):
            return _grant(p2, p1, pref2.color)
        logger.warning(
            "Absolute color clash between %s and %s; %s gets %s",
            p1.id,
            p2.id,
            higher.id,
            higher_pref.color,
        )
        return _grant(higher, lower, higher_pref.color)

    # 3: Alternate colors to the most recent time they differed
    p1_then = _most_recent_different_colors(p1, p2)
    if p1_then is not None:
        return _grant(p1, p2, opposite(p1_then))

    # 4: Grant the higher-ranked player's preference
    if higher_pref.color:
        return _grant(higher, lower, higher_pref.color)

    # 5: Pairing-number parity with the initial color
    if higher.seed % 2 == 1:
        return _grant(higher, lower, initial_color)
    return _grant(higher, lower, opposite(initial_color))
