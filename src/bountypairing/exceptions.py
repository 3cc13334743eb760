"""Exceptions for use in Bounty Pairing"""

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


# ========== Base Application Exception ==========


class BountyPairingException(Exception):
    """Base exception for all Bounty Pairing errors.

    All custom exceptions in the library inherit from this class, so callers
    can catch every library error with a single except clause.
    """

    pass


# ========== Validation Exceptions ==========


class ValidationException(BountyPairingException):
    """Raised when input to a pairing request fails validation."""

    pass


class InsufficientPlayersException(ValidationException):
    """Raised when fewer than two eligible active players are available."""

    pass


class InvalidRoundException(ValidationException):
    """Raised when a round number is outside the tournament's range."""

    pass


class RoundSequenceException(ValidationException):
    """Raised when a round is requested before the previous one is complete."""

    pass


# ========== Pairing Exceptions ==========


class PairingException(BountyPairingException):
    """Base exception for pairing-related errors."""

    pass


class PairingInfeasibleException(PairingException):
    """Raised inside the search when a bracket cannot be fully paired.

    The engine catches this and relaxes quality criteria; it never reaches
    the caller of ``pair_round``.
    """

    pass


class InvalidPairingException(PairingException):
    """Raised when a pairing configuration is invalid."""

    pass


class RepeatPairingException(PairingException):
    """Raised when attempting to pair players who have already played."""

    pass


class UnknownPairingSystemException(PairingException):
    """Raised when no strategy is registered for a pairing system name."""

    pass


# ========== Player Exceptions ==========


class PlayerException(BountyPairingException):
    """Base exception for player-related errors."""

    pass


class PlayerNotFoundException(PlayerException):
    """Raised when a requested player does not exist."""

    pass


class InvalidPlayerDataException(PlayerException):
    """Raised when player data is invalid or cannot be read."""

    pass


# ========== Round Exceptions ==========


class RoundException(BountyPairingException):
    """Base exception for round bookkeeping errors."""

    pass


class RoundNotFoundException(RoundException):
    """Raised when a requested round does not exist."""

    pass


class ResultException(RoundException):
    """Raised when a game result cannot be recorded."""

    pass


# ========== Lifecycle Exceptions ==========


class LifecycleException(BountyPairingException):
    """Base exception for forfeit, late entry and withdrawal errors."""

    pass


class ForfeitException(LifecycleException):
    """Raised when a forfeit cannot be declared for a game."""

    pass


class LateEntryException(LifecycleException):
    """Raised when a late entry is not admissible."""

    pass


class WithdrawalException(LifecycleException):
    """Raised when a withdrawal request is invalid."""

    pass


# ========== Configuration Exceptions ==========


class ConfigurationException(BountyPairingException):
    """Raised when tournament configuration is invalid."""

    pass
