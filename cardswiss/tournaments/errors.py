"""
Domain errors raised by the tournament engine.

Every subclass of TournamentError is an expected, user-correctable
condition: the session reports its message to the notification
collaborator and re-raises it to the caller.  Contract violations
(unknown player ids, bad indices) use KeyError / IndexError / ValueError
and are never caught here.
"""

from __future__ import annotations


class TournamentError(Exception):
    """Base class for every rejected tournament operation."""

    default_message = "Operation rejected."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


# ========== Pairing / scheduling ==========


class InsufficientPlayers(TournamentError):
    default_message = "Need at least 2 players."


class ScheduleComplete(TournamentError):
    """Terminal signal: no further rounds are scheduled."""

    default_message = "All rounds already generated."


class RoundNotComplete(TournamentError):
    default_message = "Finish entering results for the current round first."


# ========== Top cut ==========


class StageNotComplete(TournamentError):
    default_message = "Current stage is not complete."


class InsufficientPlayersForCut(TournamentError):
    default_message = "Not enough players for that top cut size."


# ========== Roster ==========


class RosterLockedAfterRoundsStarted(TournamentError):
    default_message = "Players cannot be added or removed once rounds have started."


class InvalidPlayerName(TournamentError):
    default_message = "Player name is invalid."


# ========== Results / drafts ==========


class IllegalResultForMatch(TournamentError):
    default_message = "That result is not allowed for this match."


class DraftConflict(TournamentError):
    default_message = "Another round has unsaved result edits. Discard them first."


class RoundLocked(TournamentError):
    default_message = "This round can no longer be changed."


class TournamentFinalized(TournamentError):
    default_message = "Tournament is finalized."


# ========== Settings ==========


class InvalidSetting(TournamentError):
    default_message = "That setting value is not allowed."
