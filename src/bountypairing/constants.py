"""Constants used throughout Bounty Pairing."""

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

# Game outcome scores
WIN_SCORE = 1.0
DRAW_SCORE = 0.5
LOSS_SCORE = 0.0

# Bye scores (configurable per tournament)
FULL_POINT_BYE_SCORE = 1.0
HALF_POINT_BYE_SCORE = 0.5
ZERO_POINT_BYE_SCORE = 0.0
BYE_SCORE = FULL_POINT_BYE_SCORE
BYE_SCORES = (FULL_POINT_BYE_SCORE, HALF_POINT_BYE_SCORE, ZERO_POINT_BYE_SCORE)

# Forfeit scores
FORFEIT_WIN_SCORE = WIN_SCORE
FORFEIT_LOSS_SCORE = LOSS_SCORE

# Result strings (for display and serialization)
RESULT_WHITE_WIN = "1-0"
RESULT_DRAW = "0.5-0.5"
RESULT_BLACK_WIN = "0-1"
RESULT_WHITE_FORFEIT_WIN = "1-0 FF"  # black didn't show
RESULT_BLACK_FORFEIT_WIN = "0-1 FF"  # white didn't show
RESULT_DOUBLE_FORFEIT = "0-0 FF"
RESULT_BYE = "Bye"

VALID_RESULTS = (
    RESULT_WHITE_WIN,
    RESULT_DRAW,
    RESULT_BLACK_WIN,
    RESULT_WHITE_FORFEIT_WIN,
    RESULT_BLACK_FORFEIT_WIN,
    RESULT_DOUBLE_FORFEIT,
    RESULT_BYE,
)

FORFEIT_RESULTS = (
    RESULT_WHITE_FORFEIT_WIN,
    RESULT_BLACK_FORFEIT_WIN,
    RESULT_DOUBLE_FORFEIT,
)

# Outcome categories (for internal logic)
OUTCOME_NORMAL_GAME = "normal"
OUTCOME_FORFEIT_WIN = "forfeit_win"
OUTCOME_FORFEIT_LOSS = "forfeit_loss"
OUTCOME_DOUBLE_FORFEIT = "double_forfeit"
OUTCOME_BYE = "bye"

# Pairing systems known to the strategy registry
PAIRING_SYSTEM_DUTCH = "dutch_swiss"
PAIRING_SYSTEM_MANUAL = "manual"
DEFAULT_PAIRING_SYSTEM = PAIRING_SYSTEM_DUTCH

# Forfeit / default time window, in minutes
DEFAULT_TIME_MINUTES = 30
GRACE_PERIOD_MINUTES = 0

# Float penalties used as a quality signal only
FLOAT_PENALTY_LAST_ROUND = 100
FLOAT_PENALTY_TWO_ROUNDS_AGO = 50

# Search limits. Configurations tried per bracket scale down with size.
CONFIG_LIMIT_SMALL = 120  # up to 6 players
CONFIG_LIMIT_MEDIUM = 60  # up to 12 players
CONFIG_LIMIT_LARGE = 30  # up to 20 players
CONFIG_LIMIT_HUGE = 15
MAX_TOTAL_CANDIDATES = 5000
EXCHANGE_WINDOW = 8
MAX_EXCHANGES = 50
MAX_MDP_EXCHANGES = 30
FALLBACK_NODE_LIMIT = 20000

# Float tolerance when comparing score differences
PSD_EPSILON = 1e-9

# Environment variable naming a folder for rotating log files
LOG_DIR_ENV_VAR = "BOUNTYPAIRING_LOG_DIR"
