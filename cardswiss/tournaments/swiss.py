"""
Swiss pairing — one round at a time, from the current standings.

Rules:
- Players are grouped into point brackets, highest first, and shuffled
  within each bracket using the session's random source.
- Odd player count: the lowest-ranked player without a previous bye gets
  the bye (falls back to the lowest-ranked player if everyone has had one).
- Each unpaired player takes the cheapest remaining opponent, where cost is
  the point gap plus a large rematch penalty.  Rematches and downpairs are
  discouraged, never forbidden: every player always gets paired.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from cardswiss.tournaments.base import Match, Round, Tournament
from cardswiss.tournaments.errors import InsufficientPlayers, ScheduleComplete
from cardswiss.tournaments.standings import StandingEntry, points_by_player

logger = logging.getLogger(__name__)

# Tunable weights: any penalty that dwarfs realistic point gaps will do.
POINT_GAP_WEIGHT = 10
REMATCH_PENALTY = 1000


@dataclass(frozen=True)
class PairingHistory:
    played: frozenset[frozenset[str]]   # unordered pairs that already met
    byes: frozenset[str]                # players who already received a bye

    def have_played(self, a: str, b: str) -> bool:
        return frozenset((a, b)) in self.played


def pairing_history(tournament: Tournament) -> PairingHistory:
    """Collect rematch and bye history from every main-phase round."""
    played: set[frozenset[str]] = set()
    byes: set[str] = set()
    for rnd in tournament.main_rounds():
        for m in rnd.matches:
            if m.bye:
                byes.add(m.p1)
            else:
                played.add(frozenset((m.p1, m.p2)))
    return PairingHistory(played=frozenset(played), byes=frozenset(byes))


def pair_swiss_round(
    tournament: Tournament,
    standings: list[StandingEntry],
    rng: random.Random,
) -> Round:
    """
    Build the next swiss round.

    Raises:
        InsufficientPlayers: fewer than 2 players.
        ScheduleComplete:    every planned round already exists.
    """
    if len(tournament.players) < 2:
        raise InsufficientPlayers()

    round_number = len(tournament.main_rounds()) + 1
    total_rounds = max(1, tournament.rounds_planned)
    if round_number > total_rounds:
        raise ScheduleComplete(f"All {total_rounds} rounds already generated.")

    history = pairing_history(tournament)
    points = points_by_player(standings)
    queue = _bracket_queue(standings, rng)

    bye_player: str | None = None
    if len(queue) % 2 == 1:
        bye_player = _pick_bye(standings, history)
        queue.remove(bye_player)

    matches = _pair_queue(queue, points, history)
    if bye_player is not None:
        matches.append(Match.bye_for(bye_player))

    logger.info(
        "Swiss round %d paired: %d matches%s",
        round_number,
        len(matches),
        f", bye to {tournament.player_name(bye_player)}" if bye_player else "",
    )
    return Round(
        phase="swiss",
        number=round_number,
        label=f"Round {round_number}",
        matches=tuple(matches),
    )


# --------------------------------------------------------------------------- #
# Internal helpers                                                             #
# --------------------------------------------------------------------------- #

def _bracket_queue(standings: list[StandingEntry], rng: random.Random) -> list[str]:
    brackets: dict[int, list[str]] = {}
    for entry in standings:
        brackets.setdefault(entry.points, []).append(entry.player.id)

    queue: list[str] = []
    for pts in sorted(brackets, reverse=True):
        bracket = brackets[pts]
        rng.shuffle(bracket)
        queue.extend(bracket)
    return queue


def _pick_bye(standings: list[StandingEntry], history: PairingHistory) -> str:
    ranked_low_first = [e.player.id for e in reversed(standings)]
    for pid in ranked_low_first:
        if pid not in history.byes:
            return pid
    return ranked_low_first[0]


def _pair_queue(
    queue: list[str],
    points: dict[str, int],
    history: PairingHistory,
) -> list[Match]:
    """
    Walk the queue pairing each player with their cheapest opponent.

    min() keeps the first of equally cheap candidates, so ties resolve in
    queue order (the shuffled bracket order).  Once two players remain they
    are paired whatever the cost, which is the final downpair.
    """
    unpaired = list(queue)
    matches: list[Match] = []
    while len(unpaired) >= 2:
        p1 = unpaired.pop(0)
        p2 = min(unpaired, key=lambda c: _pair_cost(p1, c, points, history))
        unpaired.remove(p2)
        if history.have_played(p1, p2):
            logger.debug("Forced rematch: %s vs %s", p1, p2)
        matches.append(Match(p1=p1, p2=p2))
    return matches


def _pair_cost(a: str, b: str, points: dict[str, int], history: PairingHistory) -> int:
    cost = abs(points[a] - points[b]) * POINT_GAP_WEIGHT
    if history.have_played(a, b):
        cost += REMATCH_PENALTY
    return cost
