"""
Round robin — every player meets every other player exactly once.

The whole schedule is fixed up front with the circle method and never
recomputed from results:
- Odd player count: a phantom seat is added; whoever sits opposite it
  gets the bye that round.
- Seat 0 stays put, the other seats rotate one place per round, and seat i
  plays seat n-1-i.  n seats give n-1 rounds.
"""

from __future__ import annotations

import logging

from cardswiss.tournaments.base import Match, Round
from cardswiss.tournaments.errors import InsufficientPlayers, ScheduleComplete

logger = logging.getLogger(__name__)

Schedule = list[list[tuple[str, str | None]]]


def build_schedule(player_ids: list[str]) -> Schedule:
    """Return every round as a list of (p1, p2) pairs; p2=None is a bye."""
    if len(player_ids) < 2:
        raise InsufficientPlayers()

    seats: list[str | None] = list(player_ids)
    if len(seats) % 2 == 1:
        seats.append(None)
    n = len(seats)

    schedule: Schedule = []
    for _ in range(n - 1):
        pairs: list[tuple[str, str | None]] = []
        bye: str | None = None
        for i in range(n // 2):
            a, b = seats[i], seats[n - 1 - i]
            if a is None:
                bye = b
            elif b is None:
                bye = a
            else:
                pairs.append((a, b))
        if bye is not None:
            pairs.append((bye, None))
        schedule.append(pairs)
        # Rotate every seat except the first
        seats.insert(1, seats.pop())

    logger.info("Round robin schedule built: %d players, %d rounds", len(player_ids), len(schedule))
    return schedule


def round_from_schedule(schedule: Schedule, round_number: int) -> Round:
    """Materialise scheduled round `round_number` (1-based) as a Round."""
    if round_number > len(schedule):
        raise ScheduleComplete(f"All {len(schedule)} round robin rounds already generated.")

    matches = tuple(
        Match.bye_for(p1) if p2 is None else Match(p1=p1, p2=p2)
        for p1, p2 in schedule[round_number - 1]
    )
    return Round(
        phase="swiss",
        number=round_number,
        label=f"Round {round_number}",
        matches=matches,
    )
