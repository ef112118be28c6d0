"""
Top cut — single-elimination bracket seeded from the final standings.

Rules:
- Size is 2, 4, 8 or 16 and may not exceed the player count.
- Only starts once the swiss / round robin phase is fully complete.
- Stage 1 folds the seeds: seed 1 vs seed N, seed 2 vs seed N-1, ...
- Winners keep their bracket slot order (no re-seeding) and are folded the
  same way for the next stage, until a single player remains.
- Matches are always decisive; ties are rejected when results are committed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from cardswiss.config import TOP_CUT_SIZES
from cardswiss.tournaments.base import Match, Round, Tournament
from cardswiss.tournaments.errors import (
    InsufficientPlayersForCut,
    RoundLocked,
    ScheduleComplete,
    StageNotComplete,
)
from cardswiss.tournaments.standings import StandingEntry

logger = logging.getLogger(__name__)

BracketStatus = Literal["not_started", "in_progress", "finished"]

_STAGE_LABELS = {16: "Top 16", 8: "QF", 4: "SF", 2: "F"}


@dataclass(frozen=True)
class BracketState:
    status: BracketStatus
    players_remaining: int = 0     # entrants in the current stage; 1 once finished


@dataclass(frozen=True)
class StageAdvance:
    """Result of advancing: the next stage's round, or the champion."""

    round: Round | None
    champion: str | None = None


def stage_label(players_remaining: int) -> str:
    return _STAGE_LABELS.get(players_remaining, f"Top {players_remaining}")


def bracket_state(tournament: Tournament) -> BracketState:
    if not tournament.top_cut.started:
        return BracketState(status="not_started")
    if tournament.top_cut.champion is not None:
        return BracketState(status="finished", players_remaining=1)
    current = tournament.topcut_rounds()[-1]
    return BracketState(status="in_progress", players_remaining=len(current.matches) * 2)


def start_top_cut(
    tournament: Tournament,
    standings: list[StandingEntry],
    size: int,
) -> Round:
    """
    Seed the bracket from the top `size` players and build stage 1.

    Raises:
        ValueError:                 size is not a bracket size.
        RoundLocked:                the top cut already started.
        StageNotComplete:           the swiss / round robin phase is unfinished.
        InsufficientPlayersForCut:  fewer players than bracket slots.
    """
    if size not in TOP_CUT_SIZES:
        raise ValueError(f"Top cut size must be one of {TOP_CUT_SIZES}, got {size!r}")
    if tournament.top_cut.started:
        raise RoundLocked("Top cut has already started.")
    if not tournament.main_phase_complete():
        raise StageNotComplete("Finish every swiss round before starting the top cut.")
    if len(tournament.players) < size:
        raise InsufficientPlayersForCut(
            f"Top {size} needs at least {size} players; there are {len(tournament.players)}."
        )

    seeds = [entry.player.id for entry in standings[:size]]
    logger.info(
        "Top %d seeded: %s",
        size,
        ", ".join(tournament.player_name(pid) for pid in seeds),
    )
    return _stage_round(seeds, stage_number=1)


def advance_stage(tournament: Tournament) -> StageAdvance:
    """
    Collect the current stage's winners and pair the next stage.

    Raises:
        StageNotComplete:  the bracket has not started or the current stage
                           still has undecided matches.
        ScheduleComplete:  the bracket already has a champion.
    """
    state = bracket_state(tournament)
    if state.status == "not_started":
        raise StageNotComplete("Top cut has not started.")
    if state.status == "finished":
        raise ScheduleComplete("Top cut is already finished.")

    current = tournament.topcut_rounds()[-1]
    if not current.is_complete:
        raise StageNotComplete(f"Finish every {current.label} match before advancing.")

    winners = [m.winner for m in current.matches]
    if len(winners) < 2:
        logger.info("Top cut finished: champion %s", tournament.player_name(winners[0]))
        return StageAdvance(round=None, champion=winners[0])

    return StageAdvance(round=_stage_round(winners, stage_number=current.number + 1))


# ------------------------------------------------------------------ #
# Bracket helpers                                                     #
# ------------------------------------------------------------------ #

def fold_pairings(slots: list[str]) -> list[tuple[str, str]]:
    """Pair slot i with slot n-1-i: 1v8, 2v7, 3v6, 4v5."""
    n = len(slots)
    return [(slots[i], slots[n - 1 - i]) for i in range(n // 2)]


def _stage_round(slots: list[str], stage_number: int) -> Round:
    return Round(
        phase="topcut",
        number=stage_number,
        label=stage_label(len(slots)),
        matches=tuple(Match(p1=a, p2=b) for a, b in fold_pairings(slots)),
    )
