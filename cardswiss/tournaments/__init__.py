"""
Tournament package.

create_tournament() is the single entry point for a fresh Tournament;
open_session() wraps one in the TournamentSession every operation goes
through.

Pairing modes:
  swiss        point-bracket pairing, one round at a time (swiss.py)
  round_robin  fixed circle-method schedule (round_robin.py)
Either may be followed by a single-elimination top cut (knockout.py).
"""

from __future__ import annotations

import random

from cardswiss.config import TournamentDefaults
from cardswiss.tournaments.base import (
    Bye,
    Decisive,
    Match,
    Outcome,
    PairingMode,
    Player,
    Round,
    Tie,
    TopCut,
    Tournament,
    Unset,
)
from cardswiss.tournaments.drafts import DraftController, RoundDraft
from cardswiss.tournaments.errors import (
    DraftConflict,
    IllegalResultForMatch,
    InsufficientPlayers,
    InsufficientPlayersForCut,
    InvalidPlayerName,
    InvalidSetting,
    RosterLockedAfterRoundsStarted,
    RoundLocked,
    RoundNotComplete,
    ScheduleComplete,
    StageNotComplete,
    TournamentError,
    TournamentFinalized,
)
from cardswiss.tournaments.session import CommitResult, Notifier, TournamentSession, TournamentWriter
from cardswiss.tournaments.standings import StandingEntry, compute_standings

__all__ = [
    # Model
    "Bye",
    "Decisive",
    "Match",
    "Outcome",
    "PairingMode",
    "Player",
    "Round",
    "Tie",
    "TopCut",
    "Tournament",
    "Unset",
    # Engine
    "CommitResult",
    "DraftController",
    "RoundDraft",
    "StandingEntry",
    "TournamentSession",
    "TournamentWriter",
    "compute_standings",
    # Errors
    "DraftConflict",
    "IllegalResultForMatch",
    "InsufficientPlayers",
    "InsufficientPlayersForCut",
    "InvalidPlayerName",
    "InvalidSetting",
    "RosterLockedAfterRoundsStarted",
    "RoundLocked",
    "RoundNotComplete",
    "ScheduleComplete",
    "StageNotComplete",
    "TournamentError",
    "TournamentFinalized",
    # Factory
    "create_tournament",
    "open_session",
]


def create_tournament(
    defaults: TournamentDefaults | None = None,
    *,
    name: str | None = None,
    pairing_mode: PairingMode | None = None,
) -> Tournament:
    """
    Instantiate an empty Tournament from configured defaults.

    Args:
        defaults:      config-file defaults; built-in defaults when None
        name:          overrides defaults.name
        pairing_mode:  "swiss" | "round_robin"; overrides defaults.pairing_mode
    """
    defaults = defaults or TournamentDefaults()
    mode = pairing_mode or defaults.pairing_mode
    match mode:
        case "swiss" | "round_robin":
            pass
        case _:
            raise ValueError(
                f"Unknown pairing mode: {mode!r}. Valid modes: swiss, round_robin"
            )
    return Tournament(
        name=name or defaults.name,
        format=defaults.format,
        kind=defaults.kind,
        pairing_mode=mode,
        rounds_planned=defaults.rounds_planned,
        top_cut=TopCut(size=defaults.top_cut_size),
    )


def open_session(
    tournament: Tournament,
    store: TournamentWriter | None = None,
    notify: Notifier | None = None,
    seed: int | None = None,
) -> TournamentSession:
    """Wrap `tournament` in a session; `seed` pins the swiss shuffle."""
    return TournamentSession(tournament, store=store, notify=notify, rng=random.Random(seed))
