"""
Result drafts — a two-phase edit of one round's results.

Edits land in a RoundDraft buffer first; committed rounds (and therefore
standings and pairings) only change when the draft is committed, and then
all at once.  A draft that is discarded leaves the round untouched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace

from cardswiss.tournaments.base import Bye, Decisive, Match, Outcome, Round, Tie, Tournament
from cardswiss.tournaments.errors import (
    DraftConflict,
    IllegalResultForMatch,
    RoundLocked,
    TournamentFinalized,
)

logger = logging.getLogger(__name__)


def validate_outcome(m: Match, outcome: Outcome, phase: str) -> None:
    """
    Check that `outcome` may be recorded for `match`.

    Raises:
        IllegalResultForMatch: tie/decisive result on a bye, bye on a real
                               match, or a tie in the top cut.
        ValueError:            decisive winner who is not in the match.
    """
    if m.bye:
        if outcome != Bye(player=m.p1):
            raise IllegalResultForMatch("A bye's result cannot be changed.")
        return

    match outcome:
        case Bye():
            raise IllegalResultForMatch("Only an unopposed player can receive a bye.")
        case Tie() if phase == "topcut":
            raise IllegalResultForMatch("Ties are not allowed in the top cut.")
        case Decisive(winner=winner) if not m.involves(winner):
            raise ValueError(f"Winner {winner!r} is not playing in {m.p1} vs {m.p2}")


@dataclass(frozen=True)
class RoundDraft:
    """Buffered outcomes for the round at `round_index` in Tournament.rounds."""

    round_index: int
    original: tuple[Outcome, ...]
    outcomes: tuple[Outcome, ...]

    @classmethod
    def snapshot(cls, round_index: int, rnd: Round) -> RoundDraft:
        outcomes = tuple(m.outcome for m in rnd.matches)
        return cls(round_index=round_index, original=outcomes, outcomes=outcomes)

    @property
    def dirty(self) -> bool:
        return self.outcomes != self.original

    def with_result(self, match_index: int, outcome: Outcome) -> RoundDraft:
        outcomes = list(self.outcomes)
        outcomes[match_index] = outcome   # IndexError on a bad index is a caller bug
        return replace(self, outcomes=tuple(outcomes))

    def commit(self, rnd: Round) -> Round:
        """Validate every buffered outcome, then return the updated round."""
        if len(rnd.matches) != len(self.outcomes):
            raise ValueError("Draft does not belong to this round")
        for m, outcome in zip(rnd.matches, self.outcomes):
            validate_outcome(m, outcome, rnd.phase)
        return replace(
            rnd,
            matches=tuple(replace(m, outcome=o) for m, o in zip(rnd.matches, self.outcomes)),
        )

    def discard(self) -> RoundDraft:
        """Return a clean draft with every edit rolled back."""
        return replace(self, outcomes=self.original)


class DraftController:
    """Holds at most one open draft: Idle → Editing(round) → Idle."""

    def __init__(self) -> None:
        self._draft: RoundDraft | None = None

    @property
    def draft(self) -> RoundDraft | None:
        return self._draft

    @property
    def editing(self) -> int | None:
        return self._draft.round_index if self._draft else None

    def begin_edit(self, tournament: Tournament, round_index: int, discard: bool = False) -> RoundDraft:
        """
        Open a draft for tournament.rounds[round_index].

        Re-opening the round already being edited keeps its buffer.  Switching
        away from a dirty draft needs discard=True.

        Raises:
            DraftConflict:        another round's draft has unsaved edits.
            RoundLocked:          the round can no longer change.
            TournamentFinalized:  the tournament is finalized.
        """
        if round_index < 0:
            raise IndexError(f"Round index out of range: {round_index}")
        rnd = tournament.rounds[round_index]
        _check_editable(tournament, round_index)

        current = self._draft
        if current is not None and current.round_index == round_index:
            return current
        if current is not None and current.dirty and not discard:
            raise DraftConflict(
                f"{tournament.rounds[current.round_index].label} has unsaved result edits. "
                "Discard them before editing another round."
            )

        self._draft = RoundDraft.snapshot(round_index, rnd)
        logger.debug("Editing %s", rnd.label)
        return self._draft

    def set_result(self, match_index: int, outcome: Outcome) -> RoundDraft:
        self._draft = self._require_draft().with_result(match_index, outcome)
        return self._draft

    def commit(self, tournament: Tournament) -> Round:
        """Write the draft into the tournament atomically and close it."""
        draft = self._require_draft()
        _check_editable(tournament, draft.round_index)
        committed = draft.commit(tournament.rounds[draft.round_index])
        tournament.rounds[draft.round_index] = committed
        self._draft = None
        logger.info(
            "Committed %s (%s)",
            committed.label,
            "complete" if committed.is_complete else "partial",
        )
        return committed

    def cancel(self) -> None:
        if self._draft is not None:
            logger.debug("Draft for round index %d discarded", self._draft.round_index)
        self._draft = None

    def _require_draft(self) -> RoundDraft:
        if self._draft is None:
            raise RuntimeError("No round is being edited; call begin_edit() first")
        return self._draft


def _check_editable(tournament: Tournament, round_index: int) -> None:
    if tournament.finalized:
        raise TournamentFinalized("Tournament is finalized; results can no longer change.")
    rnd = tournament.rounds[round_index]
    if rnd.phase == "swiss" and tournament.top_cut.started:
        raise RoundLocked("Swiss results are locked once the top cut has started.")
    if rnd.phase == "topcut":
        if tournament.top_cut.champion is not None:
            raise RoundLocked("The top cut is finished.")
        if rnd.number != len(tournament.topcut_rounds()):
            raise RoundLocked(f"{rnd.label} is locked; a later stage has been paired.")
