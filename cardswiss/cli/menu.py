"""
Interactive tournament menus.

Two levels: the tournament list (create / open / delete / search / backup)
and, inside an open tournament, the editing menu that drives one
TournamentSession.  Rejected operations are already reported through the
session's notifier, so handlers just catch TournamentError and carry on.
"""

from __future__ import annotations

import json
from pathlib import Path

from rich.prompt import Confirm, IntPrompt, Prompt

from cardswiss.cli.display import (
    console,
    show_bracket,
    show_header,
    show_roster,
    show_round,
    show_standings,
    show_tournament_list,
    toast,
)
from cardswiss.config import TOP_CUT_SIZES, Config
from cardswiss.store import TournamentStore, filter_tournaments
from cardswiss.tournaments import (
    Decisive,
    DraftConflict,
    Match,
    Outcome,
    Tie,
    Tournament,
    TournamentError,
    TournamentSession,
    Unset,
    create_tournament,
)

_LIST_HELP = (
    "[bold]n[/] new  [bold]o[/] open  [bold]d[/] delete  [bold]s[/] search  "
    "[bold]e[/] export  [bold]i[/] import  [bold]q[/] quit"
)
_EDIT_HELP = (
    "[bold]a[/] add player  [bold]r[/] rename  [bold]x[/] remove  [bold]g[/] settings\n"
    "[bold]n[/] next round  [bold]e[/] edit round  [bold]w[/] enter result  "
    "[bold]c[/] commit  [bold]k[/] discard edits\n"
    "[bold]v[/] view  [bold]t[/] start top cut  [bold]p[/] advance top cut  "
    "[bold]f[/] finalize  [bold]b[/] back"
)


def parse_result(choice: str, m: Match) -> Outcome:
    """Map a menu answer ("1", "2", "t", "u") to an outcome for `m`."""
    match choice:
        case "1":
            return Decisive(winner=m.p1)
        case "2" if m.p2 is not None:
            return Decisive(winner=m.p2)
        case "t":
            return Tie()
        case "u":
            return Unset()
        case _:
            raise ValueError(f"Unknown result choice: {choice!r}")


# --------------------------------------------------------------------------- #
# Tournament list                                                              #
# --------------------------------------------------------------------------- #

def run_menu(config: Config, store: TournamentStore) -> None:
    tournaments = store.get_all()
    while True:
        console.print()
        show_tournament_list(tournaments)
        console.print(_LIST_HELP)
        choice = Prompt.ask("Action", choices=["n", "o", "d", "s", "e", "i", "q"], default="o")

        match choice:
            case "n":
                name = Prompt.ask("Tournament name", default=config.tournament.name)
                tournament = create_tournament(config.tournament, name=name)
                store.put(tournament)
                toast("Tournament created")
                _edit_tournament(config, store, tournament)
            case "o" if tournaments:
                idx = IntPrompt.ask("Open #", choices=_numbers(tournaments), show_choices=False)
                _edit_tournament(config, store, tournaments[idx - 1])
            case "d" if tournaments:
                idx = IntPrompt.ask("Delete #", choices=_numbers(tournaments), show_choices=False)
                target = tournaments[idx - 1]
                if Confirm.ask(f'Delete "{target.name}"?', default=False):
                    store.delete(target.id)
                    toast("Deleted")
            case "s":
                query = Prompt.ask("Name contains", default="")
                fmt = Prompt.ask("Format", choices=["", "Bo1", "Bo3"], default="")
                kind = Prompt.ask("Kind", default="")
                # Keep the filtered list so "open #" indexes into it
                tournaments = filter_tournaments(store.get_all(), query, fmt, kind)
                continue
            case "e":
                path = Path(Prompt.ask("Export to", default="cardswiss-backup.json"))
                path.write_text(json.dumps(store.export_backup(), indent=2), encoding="utf-8")
                toast(f"Exported to {path}")
            case "i":
                _import_backup(store, Path(Prompt.ask("Import from")))
            case "q":
                return
        tournaments = store.get_all()


def _import_backup(store: TournamentStore, path: Path) -> None:
    try:
        count = store.import_backup(json.loads(path.read_text(encoding="utf-8")))
    except FileNotFoundError:
        toast(f"No such file: {path}")
    except (json.JSONDecodeError, ValueError) as exc:
        toast(f"Import failed: {exc}")
    else:
        toast(f"Imported {count} tournament(s)")


# --------------------------------------------------------------------------- #
# Tournament editing                                                           #
# --------------------------------------------------------------------------- #

def _edit_tournament(config: Config, store: TournamentStore, tournament: Tournament) -> None:
    session = TournamentSession(tournament, store=store, notify=toast, rng=config.make_rng())
    _view(session)

    while True:
        console.print()
        console.print(_EDIT_HELP)
        choice = Prompt.ask(
            "Action",
            choices=list("arxgnewckvtpfb"),
            default="v",
            show_choices=False,
        )
        if choice == "b":
            if session.draft and session.draft.dirty and not Confirm.ask(
                "Discard unsaved result edits?", default=False
            ):
                continue
            return
        try:
            _dispatch(choice, session, config)
        except TournamentError:
            pass   # already reported by the session's notifier


def _dispatch(choice: str, session: TournamentSession, config: Config) -> None:
    t = session.tournament
    match choice:
        case "a":
            player = session.add_player(Prompt.ask("Player name"))
            toast(f"Added {player.name}")
        case "r" if t.players:
            player = t.players[_pick_player(t) - 1]
            session.rename_player(player.id, Prompt.ask("New name", default=player.name))
        case "x" if t.players:
            player = t.players[_pick_player(t) - 1]
            if Confirm.ask(f'Remove "{player.name}"?', default=False):
                session.remove_player(player.id)
        case "g":
            _edit_settings(session)
        case "n":
            rnd = session.next_round()
            toast(f"{rnd.label} generated")
            show_round(t, rnd, session.draft)
        case "e" if t.rounds:
            _begin_edit(session)
        case "w":
            _enter_result(session)
        case "c" if session.draft:
            result = session.commit()
            toast(f"{result.round.label} saved")
            if result.can_advance:
                toast("Stage complete: choose [bold]p[/] to pair the next stage.")
        case "k":
            session.cancel()
            toast("Edits discarded")
        case "v":
            _view(session)
        case "t":
            default = t.top_cut.size or config.tournament.top_cut_size or 8
            size = IntPrompt.ask(
                "Top cut size", choices=[str(s) for s in TOP_CUT_SIZES], default=default
            )
            rnd = session.start_top_cut(size)
            show_round(t, rnd, session.draft)
        case "p":
            rnd = session.advance_top_cut()
            if rnd is None:
                show_bracket(t)
            else:
                show_round(t, rnd, session.draft)
        case "f":
            if Confirm.ask("Finalize? No further changes will be possible.", default=False):
                session.finalize()
                toast("Tournament finalized")


def _view(session: TournamentSession) -> None:
    t = session.tournament
    standings = session.standings()
    show_header(t)
    if not t.rounds:
        show_roster(t, standings)
        return
    draft = session.draft
    for index, rnd in enumerate(t.main_rounds()):
        show_round(t, rnd, draft if draft and draft.round_index == index else None)
    show_standings(standings)
    if t.top_cut.started:
        show_bracket(t)


def _edit_settings(session: TournamentSession) -> None:
    t = session.tournament
    session.update_settings(
        name=Prompt.ask("Name", default=t.name),
        format=Prompt.ask("Format", choices=["Bo1", "Bo3"], default=t.format),
        kind=Prompt.ask("Kind", default=t.kind),
        pairing_mode=Prompt.ask("Pairing", choices=["swiss", "round_robin"], default=t.pairing_mode),
        rounds_planned=IntPrompt.ask("Swiss rounds", default=t.rounds_planned),
        top_cut_size=IntPrompt.ask(
            "Top cut size (0 = none)",
            choices=["0", *(str(s) for s in TOP_CUT_SIZES)],
            default=t.top_cut.size,
        ),
    )
    toast("Saved")


def _begin_edit(session: TournamentSession) -> None:
    t = session.tournament
    for i, rnd in enumerate(t.rounds, 1):
        console.print(f"  {i}. {rnd.label}")
    idx = IntPrompt.ask("Edit round #", choices=_numbers(t.rounds), show_choices=False)
    try:
        session.begin_edit(idx - 1)
    except DraftConflict:
        if not Confirm.ask("Discard those edits and switch?", default=False):
            return
        session.begin_edit(idx - 1, discard=True)
    show_round(t, t.rounds[idx - 1], session.draft)


def _enter_result(session: TournamentSession) -> None:
    draft = session.draft
    if draft is None:
        toast("Open a round with [bold]e[/] first.")
        return
    t = session.tournament
    rnd = t.rounds[draft.round_index]
    show_round(t, rnd, draft)
    idx = IntPrompt.ask("Match #", choices=_numbers(rnd.matches), show_choices=False)
    m = rnd.matches[idx - 1]
    if m.bye:
        toast("Byes are recorded automatically.")
        return
    console.print(
        f"  1 = {t.player_name(m.p1)} wins   2 = {t.player_name(m.p2)} wins   "
        "t = tie   u = pending"
    )
    choice = Prompt.ask("Result", choices=["1", "2", "t", "u"])
    session.set_result(idx - 1, parse_result(choice, m))
    show_round(t, rnd, session.draft)


def _pick_player(tournament: Tournament) -> int:
    for i, p in enumerate(tournament.players, 1):
        console.print(f"  {i}. {p.name}")
    return IntPrompt.ask("Player #", choices=_numbers(tournament.players), show_choices=False)


def _numbers(items) -> list[str]:
    return [str(i) for i in range(1, len(items) + 1)]
