"""
FastAPI application — JSON API over tournament sessions.

Exposes:
  GET    /api/tournaments                       List / search stored tournaments
  POST   /api/tournaments                       Create a tournament
  GET    /api/tournaments/{tid}                 Full view: tournament, standings, bracket, draft
  DELETE /api/tournaments/{tid}                 Delete a tournament
  PATCH  /api/tournaments/{tid}/settings        Update settings
  POST   /api/tournaments/{tid}/players         Add a player
  PATCH  /api/tournaments/{tid}/players/{pid}   Rename a player
  DELETE /api/tournaments/{tid}/players/{pid}   Remove a player
  POST   /api/tournaments/{tid}/rounds          Pair the next round
  POST   /api/tournaments/{tid}/rounds/{idx}/edit   Open a result draft
  PUT    /api/tournaments/{tid}/draft/matches/{mi}  Buffer one result
  POST   /api/tournaments/{tid}/draft/commit    Commit the open draft
  DELETE /api/tournaments/{tid}/draft           Discard the open draft
  GET    /api/tournaments/{tid}/standings       Standings only
  POST   /api/tournaments/{tid}/topcut          Start the top cut
  POST   /api/tournaments/{tid}/topcut/advance  Pair the next stage / crown the champion
  POST   /api/tournaments/{tid}/finalize        Finalize
  GET    /api/backup                            Export every tournament
  POST   /api/backup                            Import a backup payload

Rejected tournament operations come back as 409 with the user-facing
message as the detail.  One TournamentSession is kept in memory per open
tournament, so a draft survives between requests until it is committed or
discarded.
"""

from __future__ import annotations

import logging
import logging.handlers
from contextlib import contextmanager
from typing import Iterator

from fastapi import FastAPI, HTTPException

from cardswiss.config import Config, load_config_or_default
from cardswiss.store import TournamentStore, filter_tournaments
from cardswiss.tournaments import (
    RoundDraft,
    StandingEntry,
    Tournament,
    TournamentError,
    TournamentSession,
    create_tournament,
)
from cardswiss.tournaments.serialization import (
    outcome_from_dict,
    outcome_to_dict,
    round_to_dict,
    tournament_to_dict,
)

logger = logging.getLogger("cardswiss")


# --------------------------------------------------------------------------- #
# Logging                                                                      #
# --------------------------------------------------------------------------- #

def _setup_logging(config: Config) -> None:
    config.log_path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        handlers=[
            logging.StreamHandler(),                                   # server console
            logging.handlers.RotatingFileHandler(
                config.log_path, maxBytes=2 * 1024 * 1024, backupCount=3,  # 2 MB × 3 files
                encoding="utf-8",
            ),
        ],
    )


# --------------------------------------------------------------------------- #
# Response shapes                                                              #
# --------------------------------------------------------------------------- #

def _summary(t: Tournament) -> dict:
    return {
        "id": t.id,
        "name": t.name,
        "format": t.format,
        "kind": t.kind,
        "pairing_mode": t.pairing_mode,
        "rounds_planned": t.planned_main_rounds(),
        "rounds_played": len(t.main_rounds()),
        "players": len(t.players),
        "finalized": t.finalized,
        "updated_at": t.updated_at,
    }


def _standings(entries: list[StandingEntry]) -> list[dict]:
    return [
        {
            "rank": rank,
            "player_id": e.player.id,
            "name": e.player.name,
            "wins": e.wins,
            "losses": e.losses,
            "ties": e.ties,
            "points": e.points,
            "opp_win_pct": round(e.opp_win_pct, 4),
            "opp_opp_win_pct": round(e.opp_opp_win_pct, 4),
        }
        for rank, e in enumerate(entries, 1)
    ]


def _draft(draft: RoundDraft | None) -> dict | None:
    if draft is None:
        return None
    return {
        "round_index": draft.round_index,
        "dirty": draft.dirty,
        "outcomes": [outcome_to_dict(o) for o in draft.outcomes],
    }


def _view(session: TournamentSession) -> dict:
    bracket = session.bracket()
    return {
        "tournament": tournament_to_dict(session.tournament),
        "standings": _standings(session.standings()),
        "bracket": {"status": bracket.status, "players_remaining": bracket.players_remaining},
        "draft": _draft(session.draft),
    }


# --------------------------------------------------------------------------- #
# App factory                                                                  #
# --------------------------------------------------------------------------- #

def create_app(config: Config | None = None) -> FastAPI:
    config = config or load_config_or_default()
    _setup_logging(config)

    store = TournamentStore(config.data_path)
    sessions: dict[str, TournamentSession] = {}
    app = FastAPI(title="CardSwiss")

    def _session(tid: str) -> TournamentSession:
        session = sessions.get(tid)
        if session is None:
            tournament = store.get(tid)
            if tournament is None:
                raise HTTPException(status_code=404, detail=f"Unknown tournament: {tid}")
            session = TournamentSession(tournament, store=store, rng=config.make_rng())
            sessions[tid] = session
        return session

    @contextmanager
    def _http_errors() -> Iterator[None]:
        try:
            yield
        except TournamentError as exc:
            raise HTTPException(status_code=409, detail=exc.message) from exc
        except (KeyError, IndexError) as exc:
            raise HTTPException(status_code=404, detail=f"Not found: {exc}") from exc
        except (ValueError, TypeError) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

    # ------------------------------------------------------------------ #
    # Tournaments                                                          #
    # ------------------------------------------------------------------ #

    @app.get("/api/tournaments")
    def list_tournaments(
        query: str = "", format: str = "", kind: str = "", rounds: int | None = None
    ):
        found = filter_tournaments(store.get_all(), query, format, kind, rounds)
        return [_summary(t) for t in found]

    @app.post("/api/tournaments", status_code=201)
    def create(payload: dict):
        with _http_errors():
            tournament = create_tournament(
                config.tournament,
                name=str(payload.get("name", "")).strip() or None,
                pairing_mode=payload.get("pairing_mode"),
            )
        store.put(tournament)
        logger.info("Created tournament %s (%s)", tournament.name, tournament.id)
        return _view(_session(tournament.id))

    @app.get("/api/tournaments/{tid}")
    def get_tournament(tid: str):
        return _view(_session(tid))

    @app.delete("/api/tournaments/{tid}")
    def delete_tournament(tid: str):
        if store.get(tid) is None:
            raise HTTPException(status_code=404, detail=f"Unknown tournament: {tid}")
        sessions.pop(tid, None)
        store.delete(tid)
        return {"deleted": tid}

    @app.patch("/api/tournaments/{tid}/settings")
    def update_settings(tid: str, payload: dict):
        session = _session(tid)
        allowed = ("name", "format", "kind", "pairing_mode", "rounds_planned", "top_cut_size")
        unknown = set(payload) - set(allowed)
        if unknown:
            raise HTTPException(status_code=400, detail=f"Unknown settings: {sorted(unknown)}")
        with _http_errors():
            session.update_settings(**payload)
        return _view(session)

    # ------------------------------------------------------------------ #
    # Roster                                                               #
    # ------------------------------------------------------------------ #

    @app.post("/api/tournaments/{tid}/players", status_code=201)
    def add_player(tid: str, payload: dict):
        session = _session(tid)
        with _http_errors():
            player = session.add_player(str(payload.get("name", "")))
        return {"id": player.id, "name": player.name}

    @app.patch("/api/tournaments/{tid}/players/{pid}")
    def rename_player(tid: str, pid: str, payload: dict):
        session = _session(tid)
        with _http_errors():
            player = session.rename_player(pid, str(payload.get("name", "")))
        return {"id": player.id, "name": player.name}

    @app.delete("/api/tournaments/{tid}/players/{pid}")
    def remove_player(tid: str, pid: str):
        session = _session(tid)
        with _http_errors():
            session.remove_player(pid)
        return {"deleted": pid}

    # ------------------------------------------------------------------ #
    # Rounds and results                                                   #
    # ------------------------------------------------------------------ #

    @app.post("/api/tournaments/{tid}/rounds", status_code=201)
    def next_round(tid: str):
        session = _session(tid)
        with _http_errors():
            rnd = session.next_round()
        return {"round": round_to_dict(rnd), "draft": _draft(session.draft)}

    @app.post("/api/tournaments/{tid}/rounds/{idx}/edit")
    def begin_edit(tid: str, idx: int, payload: dict | None = None):
        session = _session(tid)
        discard = bool((payload or {}).get("discard", False))
        with _http_errors():
            draft = session.begin_edit(idx, discard=discard)
        return _draft(draft)

    @app.put("/api/tournaments/{tid}/draft/matches/{mi}")
    def set_result(tid: str, mi: int, payload: dict):
        session = _session(tid)
        if session.draft is None:
            raise HTTPException(status_code=409, detail="No round is being edited.")
        with _http_errors():
            outcome = outcome_from_dict(payload.get("outcome") or {"type": "Unset"})
            draft = session.set_result(mi, outcome)
        return _draft(draft)

    @app.post("/api/tournaments/{tid}/draft/commit")
    def commit(tid: str):
        session = _session(tid)
        if session.draft is None:
            raise HTTPException(status_code=409, detail="No round is being edited.")
        with _http_errors():
            result = session.commit()
        return {"round": round_to_dict(result.round), "can_advance": result.can_advance}

    @app.delete("/api/tournaments/{tid}/draft")
    def cancel(tid: str):
        session = _session(tid)
        session.cancel()
        return {"draft": None}

    @app.get("/api/tournaments/{tid}/standings")
    def standings(tid: str):
        return _standings(_session(tid).standings())

    # ------------------------------------------------------------------ #
    # Top cut                                                              #
    # ------------------------------------------------------------------ #

    @app.post("/api/tournaments/{tid}/topcut", status_code=201)
    def start_top_cut(tid: str, payload: dict | None = None):
        session = _session(tid)
        size = (payload or {}).get("size")
        with _http_errors():
            rnd = session.start_top_cut(None if size is None else int(size))
        return {"round": round_to_dict(rnd), "draft": _draft(session.draft)}

    @app.post("/api/tournaments/{tid}/topcut/advance")
    def advance_top_cut(tid: str):
        session = _session(tid)
        with _http_errors():
            rnd = session.advance_top_cut()
        champion = session.champion()
        return {
            "round": None if rnd is None else round_to_dict(rnd),
            "champion": None if champion is None else {"id": champion.id, "name": champion.name},
        }

    @app.post("/api/tournaments/{tid}/finalize")
    def finalize(tid: str):
        session = _session(tid)
        with _http_errors():
            session.finalize()
        return _view(session)

    # ------------------------------------------------------------------ #
    # Backups                                                              #
    # ------------------------------------------------------------------ #

    @app.get("/api/backup")
    def export_backup():
        return store.export_backup()

    @app.post("/api/backup")
    def import_backup(payload: dict):
        with _http_errors():
            count = store.import_backup(payload)
        return {"imported": count}

    return app


app = create_app()
