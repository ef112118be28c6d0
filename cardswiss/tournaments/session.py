"""
TournamentSession — the editing context for one open tournament.

Every public operation goes through a session rather than any module-level
"current tournament", so tests and the web layer can hold as many
independent sessions as they like.  A session owns:

    tournament   the aggregate being edited
    store        persistence collaborator; one put() per structural change
    notify       notification collaborator; called once per rejected request
    rng          random source for swiss shuffling (seed it for repeatability)
    drafts       the single open result draft, if any

Rejected requests raise a TournamentError after notifying.  Validation
always happens before mutation, so a rejected request changes nothing.
"""

from __future__ import annotations

import logging
import random
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, Iterator

from cardswiss.config import TOP_CUT_SIZES
from cardswiss.tournaments.base import (
    MatchFormat,
    Outcome,
    PairingMode,
    Player,
    Round,
    Tournament,
    new_id,
)
from cardswiss.tournaments.drafts import DraftController, RoundDraft
from cardswiss.tournaments.errors import (
    DraftConflict,
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
from cardswiss.tournaments.knockout import BracketState, advance_stage, bracket_state, start_top_cut
from cardswiss.tournaments.round_robin import build_schedule, round_from_schedule
from cardswiss.tournaments.standings import StandingEntry, compute_standings
from cardswiss.tournaments.swiss import pair_swiss_round

logger = logging.getLogger(__name__)

Notifier = Callable[[str], None]


class TournamentWriter(ABC):
    """Persistence collaborator: receives the whole aggregate after each change."""

    @abstractmethod
    def put(self, tournament: Tournament) -> None:
        ...


@dataclass(frozen=True)
class CommitResult:
    round: Round
    # True when a finished top-cut stage is waiting for advance_top_cut()
    can_advance: bool = False


class TournamentSession:
    def __init__(
        self,
        tournament: Tournament,
        store: TournamentWriter | None = None,
        notify: Notifier | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.tournament = tournament
        self.store = store
        self.rng = rng or random.Random()
        self.drafts = DraftController()
        self._notify = notify

    # ------------------------------------------------------------------ #
    # Queries                                                              #
    # ------------------------------------------------------------------ #

    def standings(self) -> list[StandingEntry]:
        return compute_standings(self.tournament)

    def bracket(self) -> BracketState:
        return bracket_state(self.tournament)

    def champion(self) -> Player | None:
        champion_id = self.tournament.top_cut.champion
        return self.tournament.player(champion_id) if champion_id else None

    @property
    def draft(self) -> RoundDraft | None:
        return self.drafts.draft

    # ------------------------------------------------------------------ #
    # Roster                                                               #
    # ------------------------------------------------------------------ #

    def add_player(self, name: str) -> Player:
        with self._reported():
            self._require_open()
            if self.tournament.rounds:
                raise RosterLockedAfterRoundsStarted()
            player = Player(id=new_id(), name=self._clean_name(name))
            self.tournament.players.append(player)
            self.tournament.schedule = None
            logger.info("Added player %s", player.name)
            self._save()
            return player

    def rename_player(self, player_id: str, name: str) -> Player:
        with self._reported():
            player = self.tournament.player(player_id)
            player.name = self._clean_name(name, exclude=player_id)
            self._save()
            return player

    def remove_player(self, player_id: str) -> None:
        with self._reported():
            self._require_open()
            if self.tournament.rounds:
                raise RosterLockedAfterRoundsStarted()
            player = self.tournament.player(player_id)
            self.tournament.players.remove(player)
            self.tournament.schedule = None
            logger.info("Removed player %s", player.name)
            self._save()

    # ------------------------------------------------------------------ #
    # Settings                                                             #
    # ------------------------------------------------------------------ #

    def update_settings(
        self,
        *,
        name: str | None = None,
        format: MatchFormat | None = None,
        kind: str | None = None,
        pairing_mode: PairingMode | None = None,
        rounds_planned: int | None = None,
        top_cut_size: int | None = None,
    ) -> Tournament:
        t = self.tournament
        with self._reported():
            self._require_open()
            if format is not None and format not in ("Bo1", "Bo3"):
                raise InvalidSetting(f"Format must be Bo1 or Bo3, got {format!r}.")
            if pairing_mode is not None and pairing_mode not in ("swiss", "round_robin"):
                raise InvalidSetting(f"Pairing must be swiss or round_robin, got {pairing_mode!r}.")
            if pairing_mode is not None and pairing_mode != t.pairing_mode and t.rounds:
                raise RoundLocked("Pairing mode cannot change once rounds have started.")
            if rounds_planned is not None:
                if rounds_planned < 1:
                    raise InvalidSetting("Plan at least 1 round.")
                if rounds_planned < len(t.main_rounds()) or t.top_cut.started:
                    raise RoundLocked(
                        f"{len(t.main_rounds())} rounds already exist; cannot plan {rounds_planned}."
                    )
            if top_cut_size is not None:
                if top_cut_size not in (0, *TOP_CUT_SIZES):
                    raise InvalidSetting(f"Top cut size must be 0 or one of {TOP_CUT_SIZES}.")
                if t.top_cut.started:
                    raise RoundLocked("Top cut has already started.")

            if name is not None:
                t.name = name.strip() or "Untitled tournament"
            if format is not None:
                t.format = format
            if kind is not None:
                t.kind = kind.strip()
            if pairing_mode is not None:
                t.pairing_mode = pairing_mode
                t.schedule = None
            if rounds_planned is not None:
                t.rounds_planned = rounds_planned
            if top_cut_size is not None:
                t.top_cut.size = top_cut_size
            self._save()
            return t

    # ------------------------------------------------------------------ #
    # Rounds                                                               #
    # ------------------------------------------------------------------ #

    def next_round(self) -> Round:
        """Pair the next swiss / round robin round and open it as a draft."""
        t = self.tournament
        with self._reported():
            self._require_open()
            self._require_clean_draft()
            if t.top_cut.started:
                raise ScheduleComplete("The top cut has started; no more swiss rounds.")

            existing = t.main_rounds()
            if existing and not existing[-1].is_complete and len(existing) < t.planned_main_rounds():
                raise RoundNotComplete()

            schedule = t.schedule
            if t.pairing_mode == "round_robin":
                if schedule is None:
                    schedule = build_schedule([p.id for p in t.players])
                rnd = round_from_schedule(schedule, len(existing) + 1)
            else:
                rnd = pair_swiss_round(t, self.standings(), self.rng)

            t.schedule = schedule
            t.rounds.append(rnd)
            self.drafts.cancel()
            self.drafts.begin_edit(t, len(t.rounds) - 1)
            self._save()
            return rnd

    def begin_edit(self, round_index: int, discard: bool = False) -> RoundDraft:
        with self._reported():
            return self.drafts.begin_edit(self.tournament, round_index, discard=discard)

    def set_result(self, match_index: int, outcome: Outcome) -> RoundDraft:
        return self.drafts.set_result(match_index, outcome)

    def commit(self) -> CommitResult:
        with self._reported():
            committed = self.drafts.commit(self.tournament)
            self._save()
            return CommitResult(
                round=committed,
                can_advance=committed.phase == "topcut" and committed.is_complete,
            )

    def cancel(self) -> None:
        self.drafts.cancel()

    # ------------------------------------------------------------------ #
    # Top cut                                                              #
    # ------------------------------------------------------------------ #

    def start_top_cut(self, size: int | None = None) -> Round:
        t = self.tournament
        size = size if size is not None else t.top_cut.size
        with self._reported():
            self._require_open()
            self._require_clean_draft()
            if size == 0:
                raise InvalidSetting(
                    f"No top cut size is set. Choose one of {TOP_CUT_SIZES} first."
                )
            rnd = start_top_cut(t, self.standings(), size)

            t.top_cut.size = size
            t.top_cut.started = True
            t.rounds.append(rnd)
            self.drafts.cancel()
            self.drafts.begin_edit(t, len(t.rounds) - 1)
            self._save()
            return rnd

    def advance_top_cut(self) -> Round | None:
        """Pair the next stage; returns None once the bracket has a champion."""
        t = self.tournament
        with self._reported():
            self._require_open()
            self._require_clean_draft()
            advance = advance_stage(t)

            self.drafts.cancel()
            if advance.round is None:
                t.top_cut.champion = advance.champion
            else:
                t.rounds.append(advance.round)
                self.drafts.begin_edit(t, len(t.rounds) - 1)
            self._save()
            return advance.round

    def finalize(self) -> Tournament:
        t = self.tournament
        with self._reported():
            self._require_open()
            if t.top_cut.started and t.top_cut.champion is None:
                raise StageNotComplete("Finish the top cut before finalizing.")
            if not t.top_cut.started:
                if not t.main_phase_complete():
                    raise StageNotComplete("Finish every round before finalizing.")
                if t.top_cut.size:
                    raise StageNotComplete("Start the planned top cut, or set its size to 0.")

            t.finalized = True
            self.drafts.cancel()
            logger.info("Tournament %s finalized", t.name)
            self._save()
            return t

    # ------------------------------------------------------------------ #
    # Internal                                                             #
    # ------------------------------------------------------------------ #

    @contextmanager
    def _reported(self) -> Iterator[None]:
        try:
            yield
        except TournamentError as exc:
            logger.warning("Rejected on %s: %s", self.tournament.id, exc)
            if self._notify is not None:
                self._notify(exc.message)
            raise

    def _save(self) -> None:
        self.tournament.touch()
        if self.store is not None:
            self.store.put(self.tournament)

    def _require_open(self) -> None:
        if self.tournament.finalized:
            raise TournamentFinalized()

    def _require_clean_draft(self) -> None:
        draft = self.drafts.draft
        if draft is not None and draft.dirty:
            label = self.tournament.rounds[draft.round_index].label
            raise DraftConflict(f"{label} has unsaved result edits. Commit or discard them first.")

    def _clean_name(self, name: str, exclude: str | None = None) -> str:
        clean = (name or "").strip()
        if not clean:
            raise InvalidPlayerName("Player name cannot be empty.")
        folded = clean.casefold()
        for p in self.tournament.players:
            if p.id != exclude and p.name.casefold() == folded:
                raise InvalidPlayerName(f"A player named {p.name!r} already exists.")
        return clean
