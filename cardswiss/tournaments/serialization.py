"""
Tournament <-> JSON-safe dict conversion.

Outcomes are tagged with a "type" key naming their variant, so a stored
document can be dispatched back to the right dataclass (and a frontend can
switch on it the same way).
"""

from __future__ import annotations

import dataclasses
from typing import Any

from cardswiss.tournaments.base import (
    Bye,
    Decisive,
    Match,
    Outcome,
    Player,
    Round,
    Tie,
    TopCut,
    Tournament,
    Unset,
)

_OUTCOME_TYPES: dict[str, type] = {cls.__name__: cls for cls in (Unset, Decisive, Tie, Bye)}


def outcome_to_dict(outcome: Outcome) -> dict[str, Any]:
    data = dataclasses.asdict(outcome)
    data["type"] = type(outcome).__name__
    return data


def outcome_from_dict(data: dict[str, Any]) -> Outcome:
    fields = dict(data)
    kind = fields.pop("type")
    try:
        cls = _OUTCOME_TYPES[kind]
    except KeyError:
        raise ValueError(f"Unknown outcome type: {kind!r}") from None
    return cls(**fields)


def round_to_dict(rnd: Round) -> dict[str, Any]:
    return {
        "phase": rnd.phase,
        "number": rnd.number,
        "label": rnd.label,
        "matches": [
            {"p1": m.p1, "p2": m.p2, "outcome": outcome_to_dict(m.outcome)}
            for m in rnd.matches
        ],
    }


def round_from_dict(data: dict[str, Any]) -> Round:
    return Round(
        phase=data["phase"],
        number=int(data["number"]),
        label=str(data["label"]),
        matches=tuple(
            Match(p1=m["p1"], p2=m.get("p2"), outcome=outcome_from_dict(m["outcome"]))
            for m in data["matches"]
        ),
    )


def tournament_to_dict(tournament: Tournament) -> dict[str, Any]:
    schedule = None
    if tournament.schedule is not None:
        schedule = [[[p1, p2] for p1, p2 in rnd] for rnd in tournament.schedule]
    return {
        "id": tournament.id,
        "name": tournament.name,
        "format": tournament.format,
        "kind": tournament.kind,
        "pairing_mode": tournament.pairing_mode,
        "rounds_planned": tournament.rounds_planned,
        "top_cut": dataclasses.asdict(tournament.top_cut),
        "players": [dataclasses.asdict(p) for p in tournament.players],
        "rounds": [round_to_dict(r) for r in tournament.rounds],
        "schedule": schedule,
        "finalized": tournament.finalized,
        "created_at": tournament.created_at,
        "updated_at": tournament.updated_at,
    }


def tournament_from_dict(data: dict[str, Any]) -> Tournament:
    """
    Rebuild a Tournament from a stored document.

    Raises:
        ValueError: the document is missing fields or malformed.
    """
    try:
        schedule = data.get("schedule")
        top_cut = data.get("top_cut") or {}
        return Tournament(
            id=str(data["id"]),
            name=str(data.get("name", "Untitled tournament")),
            format=data.get("format", "Bo1"),
            kind=str(data.get("kind", "")),
            pairing_mode=data.get("pairing_mode", "swiss"),
            rounds_planned=int(data.get("rounds_planned", 5)),
            top_cut=TopCut(
                size=int(top_cut.get("size", 0)),
                started=bool(top_cut.get("started", False)),
                champion=top_cut.get("champion"),
            ),
            players=[Player(id=str(p["id"]), name=str(p["name"])) for p in data.get("players", [])],
            rounds=[round_from_dict(r) for r in data.get("rounds", [])],
            schedule=(
                None
                if schedule is None
                else [[(p1, p2) for p1, p2 in rnd] for rnd in schedule]
            ),
            finalized=bool(data.get("finalized", False)),
            created_at=str(data.get("created_at", "")),
            updated_at=str(data.get("updated_at", "")),
        )
    except (KeyError, TypeError) as exc:
        raise ValueError(f"Invalid tournament document: {exc}") from exc
