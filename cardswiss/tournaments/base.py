"""
Tournament abstractions — the shared domain types.

Every engine (Swiss pairing, round-robin scheduling, top cut, drafts)
reads and produces these.  Rounds and matches are frozen values; the
Tournament aggregate is the single mutable object, owned by a session.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal

from cardswiss.config import MatchFormat, PairingMode

Phase = Literal["swiss", "topcut"]


def new_id() -> str:
    return uuid.uuid4().hex[:12]


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# --------------------------------------------------------------------------- #
# Match outcome                                                                #
# --------------------------------------------------------------------------- #

@dataclass(frozen=True)
class Unset:
    """No result entered yet."""


@dataclass(frozen=True)
class Decisive:
    winner: str   # player id


@dataclass(frozen=True)
class Tie:
    """Both players take a tie (swiss phase only)."""


@dataclass(frozen=True)
class Bye:
    player: str   # player id receiving the bye


Outcome = Unset | Decisive | Tie | Bye


# --------------------------------------------------------------------------- #
# Players, matches, rounds                                                     #
# --------------------------------------------------------------------------- #

@dataclass
class Player:
    id: str
    name: str


@dataclass(frozen=True)
class Match:
    p1: str
    p2: str | None          # None = bye for p1
    outcome: Outcome = field(default_factory=Unset)

    @property
    def bye(self) -> bool:
        return self.p2 is None

    @property
    def is_complete(self) -> bool:
        return not isinstance(self.outcome, Unset)

    @property
    def player_ids(self) -> tuple[str, ...]:
        return (self.p1,) if self.p2 is None else (self.p1, self.p2)

    @property
    def winner(self) -> str | None:
        match self.outcome:
            case Decisive(winner=winner):
                return winner
            case Bye(player=player):
                return player
            case _:
                return None

    def involves(self, player_id: str) -> bool:
        return player_id == self.p1 or player_id == self.p2

    def opponent_of(self, player_id: str) -> str | None:
        if player_id == self.p1:
            return self.p2
        if player_id == self.p2:
            return self.p1
        raise KeyError(f"Player {player_id!r} is not in match {self.p1} vs {self.p2}")

    @classmethod
    def bye_for(cls, player_id: str) -> Match:
        return cls(p1=player_id, p2=None, outcome=Bye(player=player_id))


@dataclass(frozen=True)
class Round:
    phase: Phase
    number: int           # 1-based within its phase
    label: str            # "Round 3", "QF", "SF", "F", ...
    matches: tuple[Match, ...]

    @property
    def is_complete(self) -> bool:
        return all(m.is_complete for m in self.matches)

    @property
    def bye_match(self) -> Match | None:
        return next((m for m in self.matches if m.bye), None)


@dataclass
class TopCut:
    size: int = 0          # 0 = no top cut planned
    started: bool = False
    champion: str | None = None   # player id, set once the bracket finishes


# --------------------------------------------------------------------------- #
# Tournament aggregate                                                         #
# --------------------------------------------------------------------------- #

@dataclass
class Tournament:
    """The unit of editing and storage: roster, settings and every round."""

    id: str = field(default_factory=new_id)
    name: str = "New tournament"
    format: MatchFormat = "Bo1"
    kind: str = "Cup"
    pairing_mode: PairingMode = "swiss"
    rounds_planned: int = 5
    top_cut: TopCut = field(default_factory=TopCut)
    players: list[Player] = field(default_factory=list)
    rounds: list[Round] = field(default_factory=list)
    # Round-robin only: per round, (p1, p2 | None) id pairs.  None until generated.
    schedule: list[list[tuple[str, str | None]]] | None = None
    finalized: bool = False
    created_at: str = field(default_factory=now_iso)
    updated_at: str = field(default_factory=now_iso)

    def player(self, player_id: str) -> Player:
        for p in self.players:
            if p.id == player_id:
                return p
        raise KeyError(f"Unknown player id: {player_id!r}")

    def player_name(self, player_id: str | None) -> str:
        return "BYE" if player_id is None else self.player(player_id).name

    def main_rounds(self) -> list[Round]:
        """Swiss / round-robin rounds, in order."""
        return [r for r in self.rounds if r.phase == "swiss"]

    def topcut_rounds(self) -> list[Round]:
        return [r for r in self.rounds if r.phase == "topcut"]

    def completed_main_rounds(self) -> list[Round]:
        return [r for r in self.main_rounds() if r.is_complete]

    def planned_main_rounds(self) -> int:
        """Rounds in the main phase: the schedule length for round robin."""
        if self.pairing_mode == "round_robin":
            if self.schedule is not None:
                return len(self.schedule)
            n = len(self.players)
            return n if n % 2 else max(n - 1, 0)
        return self.rounds_planned

    def main_phase_complete(self) -> bool:
        rounds = self.main_rounds()
        planned = self.planned_main_rounds()
        return planned > 0 and len(rounds) >= planned and all(r.is_complete for r in rounds)

    def touch(self) -> None:
        self.updated_at = now_iso()
