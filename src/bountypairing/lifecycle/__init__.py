"""Round lifecycle: byes, forfeits, late entries and withdrawals."""

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

from bountypairing.lifecycle.bye_assignment import (
    bye_eligibility,
    select_bye_candidate,
    validate_bye_assignment,
)
from bountypairing.lifecycle.forfeit import (
    ForfeitReason,
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
    validate_late_entry,
)
from bountypairing.lifecycle.withdrawal import (
    filter_withdrawn_players,
    validate_withdrawal,
    withdraw_player,
)

__all__ = [
    "ForfeitReason",
    "admit_late_entry",
    "bye_eligibility",
    "can_pair_in_round",
    "check_default_time",
    "declare_forfeit",
    "filter_withdrawn_players",
    "handle_double_no_show",
    "handle_late_arrival",
    "handle_no_show",
    "select_bye_candidate",
    "temporary_seed_number",
    "validate_bye_assignment",
    "validate_late_entry",
    "validate_withdrawal",
    "withdraw_player",
]
