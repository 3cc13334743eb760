"""No-shows, late arrivals and forfeited games."""

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

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional, Tuple, Union

from dateutil.parser import isoparse
from dateutil.relativedelta import relativedelta

from bountypairing.constants import (
    DEFAULT_TIME_MINUTES,
    GRACE_PERIOD_MINUTES,
    RESULT_BLACK_FORFEIT_WIN,
    RESULT_DOUBLE_FORFEIT,
    RESULT_WHITE_FORFEIT_WIN,
)
from bountypairing.exceptions import ForfeitException
from bountypairing.models.game import Game
from bountypairing.models.player import Player
from bountypairing.models.tournament import TournamentConfig
from bountypairing.type_hints import BLACK, WHITE, opposite
from bountypairing.utils import setup_logger

logger = setup_logger(__name__)

TimeLike = Union[datetime, str]


class ForfeitReason(Enum):
    NO_SHOW = "no_show"
    LATE_ARRIVAL = "late_arrival"
    WITHDRAWAL = "withdrawal"
    ARBITER_DECISION = "arbiter_decision"
    TIME_FORFEIT = "time_forfeit"
    OTHER = "other"


@dataclass(frozen=True)
class ForfeitCheckResult:
    """Outcome of a default-time check for one player.

    Attributes
    ----------
    should_forfeit : bool
        True once the player has missed the default time.
    reason : ForfeitReason or None
        ``NO_SHOW`` if the player never arrived, ``LATE_ARRIVAL`` if they
        arrived after the deadline.
    minutes_late : int
        Whole minutes past the deadline, 0 when not forfeited.
    deadline : datetime or None
        Scheduled start plus default time plus grace period.
    """

    should_forfeit: bool
    reason: Optional[ForfeitReason] = None
    minutes_late: int = 0
    deadline: Optional[datetime] = None


def _as_datetime(value: TimeLike) -> datetime:
    if isinstance(value, str):
        return isoparse(value)
    return value


def default_deadline(
    scheduled_start: TimeLike,
    default_time_minutes: int = DEFAULT_TIME_MINUTES,
    grace_period_minutes: int = GRACE_PERIOD_MINUTES,
) -> datetime:
    """Latest arrival time that does not forfeit the game."""
    return _as_datetime(scheduled_start) + relativedelta(
        minutes=default_time_minutes + grace_period_minutes
    )


def check_default_time(
    scheduled_start: TimeLike,
    arrival: Optional[TimeLike],
    default_time_minutes: int = DEFAULT_TIME_MINUTES,
    grace_period_minutes: int = GRACE_PERIOD_MINUTES,
    now: Optional[TimeLike] = None,
) -> ForfeitCheckResult:
    """Check one player's arrival against the default time.

    Args:
        scheduled_start: When the round was due to start
        arrival: When the player arrived, None if they have not
        default_time_minutes: Minutes allowed after the start
        grace_period_minutes: Extra minutes on top of the default time
        now: Current time, used when the player has not arrived

    Returns:
        ForfeitCheckResult saying whether the player forfeits and why

    Raises:
        ForfeitException: If one time carries a timezone and the other does not
    """
    deadline = default_deadline(
        scheduled_start, default_time_minutes, grace_period_minutes
    )
    if arrival is not None:
        arrived = _checked_against(_as_datetime(arrival), deadline)
        if arrived <= deadline:
            return ForfeitCheckResult(False, deadline=deadline)
        return ForfeitCheckResult(
            True, ForfeitReason.LATE_ARRIVAL, _whole_minutes(arrived, deadline), deadline
        )

    current = _as_datetime(now) if now is not None else datetime.now(deadline.tzinfo)
    current = _checked_against(current, deadline)
    if current < deadline:
        return ForfeitCheckResult(False, deadline=deadline)
    return ForfeitCheckResult(
        True, ForfeitReason.NO_SHOW, _whole_minutes(current, deadline), deadline
    )


def _checked_against(moment: datetime, deadline: datetime) -> datetime:
    if (moment.tzinfo is None) != (deadline.tzinfo is None):
        raise ForfeitException(
            f"Cannot compare {moment.isoformat()} with deadline {deadline.isoformat()}: "
            f"one carries a timezone and the other does not"
        )
    return moment


def _whole_minutes(later: datetime, earlier: datetime) -> int:
    return (later - earlier) // timedelta(minutes=1)


def declare_forfeit(
    game: Game, winner_color: Optional[str], reason: ForfeitReason
) -> Game:
    """Turn a pending game into a forfeit.

    Args:
        game: Pending game
        winner_color: Color of the player who showed up, None when neither did
        reason: Why the game is forfeited

    Returns:
        New completed game with a forfeit result and no bounty transfer

    Raises:
        ForfeitException: If the game is a bye, already completed or the
            winner color is unknown
    """
    if game.is_bye:
        raise ForfeitException(f"Board {game.board_number} is a bye")
    if game.completed:
        raise ForfeitException(f"Game on board {game.board_number} is already completed")
    if winner_color == WHITE:
        result = RESULT_WHITE_FORFEIT_WIN
    elif winner_color == BLACK:
        result = RESULT_BLACK_FORFEIT_WIN
    elif winner_color is None:
        result = RESULT_DOUBLE_FORFEIT
    else:
        raise ForfeitException(f"Invalid winner color {winner_color!r}")

    logger.info(
        f"Round {game.round_number} board {game.board_number}: forfeit {result} ({reason.value})"
    )
    forfeited = game.with_result(result, forfeit_reason=reason.value)
    return replace(
        forfeited,
        bounty_transfer=0,
        sheriff_usage={"white": False, "black": False},
    )


def handle_no_show(game: Game, absent_color: str) -> Game:
    """The player of ``absent_color`` did not show; the opponent wins."""
    return declare_forfeit(game, opposite(absent_color), ForfeitReason.NO_SHOW)


def handle_late_arrival(game: Game, late_color: str, minutes_late: int) -> Game:
    logger.debug(f"{late_color} arrived {minutes_late} minutes past the default time")
    return declare_forfeit(game, opposite(late_color), ForfeitReason.LATE_ARRIVAL)


def handle_double_no_show(game: Game, arbiter_decision: Optional[str] = None) -> Game:
    """Neither player showed. Both lose unless the arbiter names a winner."""
    if arbiter_decision is None:
        return declare_forfeit(game, None, ForfeitReason.NO_SHOW)
    return declare_forfeit(game, arbiter_decision, ForfeitReason.ARBITER_DECISION)


def apply_forfeit(
    white: Player,
    black: Player,
    result: str,
    config: Optional[TournamentConfig] = None,
) -> Tuple[Player, Player]:
    """Return (white, black) snapshots after a forfeited game.

    Both count the game as played; neither gains an opponent or a color.
    """
    config = config or TournamentConfig()
    win, loss = config.forfeit_win_score, config.forfeit_loss_score
    if result == RESULT_WHITE_FORFEIT_WIN:
        return white.with_forfeit(True, win), black.with_forfeit(False, loss)
    if result == RESULT_BLACK_FORFEIT_WIN:
        return white.with_forfeit(False, loss), black.with_forfeit(True, win)
    if result == RESULT_DOUBLE_FORFEIT:
        return white.with_forfeit(False, loss), black.with_forfeit(False, loss)
    raise ForfeitException(f"{result!r} is not a forfeit result")
