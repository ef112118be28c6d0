"""
Standings calculator — record, points and resistance tiebreakers.

Only complete main-phase rounds count; draft edits and top-cut rounds are
invisible here.  Everything is recomputed from the rounds on each call.

Tiebreakers:
    live win %   wins / max(1, games), clamped to [0.25, 1.0]
    OW%          mean live win % of every non-bye opponent faced
    OOW%         mean OW% of those same opponents
"""

from __future__ import annotations

from dataclasses import dataclass, field

from cardswiss.tournaments.base import Bye, Decisive, Match, Player, Tie, Tournament

WIN_POINTS = 3
TIE_POINTS = 1
WIN_PCT_FLOOR = 0.25
WIN_PCT_CAP = 1.0


@dataclass
class StandingEntry:
    """Running tally for one player across all completed main-phase rounds."""

    player: Player
    wins: int = 0
    losses: int = 0
    ties: int = 0
    opp_win_pct: float = 0.0
    opp_opp_win_pct: float = 0.0
    # Non-bye opponents in play order; a repeat opponent appears once per meeting.
    opponents: list[str] = field(default_factory=list)

    @property
    def points(self) -> int:
        return self.wins * WIN_POINTS + self.ties * TIE_POINTS

    @property
    def games_played(self) -> int:
        return self.wins + self.losses + self.ties

    @property
    def record(self) -> str:
        return f"{self.wins}-{self.losses}-{self.ties}"

    @property
    def live_win_pct(self) -> float:
        raw = self.wins / max(1, self.games_played)
        return max(WIN_PCT_FLOOR, min(WIN_PCT_CAP, raw))


def standing_sort_key(entry: StandingEntry) -> tuple:
    return (
        -entry.points,
        -entry.opp_win_pct,
        -entry.opp_opp_win_pct,
        entry.player.name.casefold(),
        entry.player.id,
    )


def compute_standings(tournament: Tournament) -> list[StandingEntry]:
    """Return every rostered player's standing, best first."""
    entries = {p.id: StandingEntry(player=p) for p in tournament.players}

    for rnd in tournament.completed_main_rounds():
        for match in rnd.matches:
            _tally(match, entries)

    opp_win = {
        pid: _mean([entries[o].live_win_pct for o in e.opponents])
        for pid, e in entries.items()
    }
    for pid, entry in entries.items():
        entry.opp_win_pct = opp_win[pid]
        entry.opp_opp_win_pct = _mean([opp_win[o] for o in entry.opponents])

    return sorted(entries.values(), key=standing_sort_key)


def points_by_player(standings: list[StandingEntry]) -> dict[str, int]:
    return {e.player.id: e.points for e in standings}


# --------------------------------------------------------------------------- #
# Internal helpers                                                             #
# --------------------------------------------------------------------------- #

def _tally(m: Match, entries: dict[str, StandingEntry]) -> None:
    match m.outcome:
        case Bye(player=player):
            entries[player].wins += 1
        case Decisive(winner=winner):
            loser = m.opponent_of(winner)
            entries[winner].wins += 1
            entries[loser].losses += 1
            _link(m, entries)
        case Tie():
            entries[m.p1].ties += 1
            entries[m.p2].ties += 1
            _link(m, entries)


def _link(m: Match, entries: dict[str, StandingEntry]) -> None:
    entries[m.p1].opponents.append(m.p2)
    entries[m.p2].opponents.append(m.p1)


def _mean(values: list[float]) -> float:
    if not values:
        return 0.0
    return sum(values) / len(values)
