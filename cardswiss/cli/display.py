"""
Rich-based rendering of tournaments for the terminal.

This is the only place where terminal output happens.  Every function takes
plain model objects (Tournament, Round, StandingEntry, ...) so the engine
never depends on rich.
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from cardswiss.tournaments.base import Bye, Decisive, Outcome, Round, Tie, Tournament
from cardswiss.tournaments.drafts import RoundDraft
from cardswiss.tournaments.knockout import bracket_state
from cardswiss.tournaments.standings import StandingEntry

console = Console(legacy_windows=False)


def toast(message: str) -> None:
    """Notification collaborator for the CLI: one line per rejected request."""
    console.print(f"  [yellow]![/] {message}")


def pct(value: float) -> str:
    return f"{value * 100:.1f}%"


# --------------------------------------------------------------------------- #
# Tables                                                                       #
# --------------------------------------------------------------------------- #

def show_tournament_list(tournaments: list[Tournament]) -> None:
    if not tournaments:
        console.print("  [dim]No tournaments found.[/]")
        return

    table = Table(title="Tournaments", show_header=True, header_style="bold", border_style="dim")
    table.add_column("#", style="dim", width=3, justify="right")
    table.add_column("Name", min_width=20)
    table.add_column("Kind", style="dim")
    table.add_column("Format", style="dim", width=6)
    table.add_column("Pairing", style="dim")
    table.add_column("Rounds", justify="right", width=6)
    table.add_column("Updated", style="dim")

    for i, t in enumerate(tournaments, 1):
        table.add_row(
            str(i),
            t.name,
            t.kind,
            t.format,
            t.pairing_mode.replace("_", " "),
            f"{len(t.main_rounds())}/{t.planned_main_rounds()}",
            t.updated_at[:16].replace("T", " "),
        )
    console.print(table)


def show_header(tournament: Tournament) -> None:
    cut = f"Top {tournament.top_cut.size}" if tournament.top_cut.size else "no top cut"
    status = "[bold green]finalized[/]" if tournament.finalized else "[dim]in progress[/]"
    console.print()
    console.print(
        Panel(
            f"[bold]{tournament.name}[/]  [dim]{tournament.kind} • {tournament.format} • "
            f"{tournament.pairing_mode.replace('_', ' ')} • "
            f"{tournament.planned_main_rounds()} rounds • {cut}[/]\n"
            f"Players: {len(tournament.players)}  •  Rounds played: "
            f"{len(tournament.completed_main_rounds())}  •  {status}",
            border_style="green",
            expand=False,
        )
    )


def show_roster(tournament: Tournament, standings: list[StandingEntry]) -> None:
    records = {e.player.id: e for e in standings}
    table = Table(title="Players", show_header=True, header_style="bold", border_style="dim")
    table.add_column("#", style="dim", width=3, justify="right")
    table.add_column("Name", min_width=20)
    table.add_column("Record", justify="center")
    table.add_column("Pts", justify="right", width=4)

    for i, p in enumerate(tournament.players, 1):
        entry = records[p.id]
        table.add_row(str(i), p.name, entry.record, str(entry.points))
    console.print(table)


def show_round(tournament: Tournament, rnd: Round, draft: RoundDraft | None = None) -> None:
    """Pairings with results; buffered draft results are shown in yellow."""
    title = rnd.label + ("  [yellow](editing)[/]" if draft else "")
    table = Table(title=title, show_header=True, header_style="bold", border_style="dim")
    table.add_column("#", style="dim", width=3, justify="right")
    table.add_column("Player 1", min_width=18)
    table.add_column("", width=3, justify="center")
    table.add_column("Player 2", min_width=18)
    table.add_column("Result", min_width=14)

    for i, m in enumerate(rnd.matches, 1):
        outcome = draft.outcomes[i - 1] if draft else m.outcome
        result = outcome_text(tournament, outcome)
        if draft and outcome != m.outcome:
            result = f"[yellow]{result}[/]"
        if m.bye:
            table.add_row(str(i), f"[bold]{tournament.player_name(m.p1)}[/]", "→", "[dim]BYE[/]", result)
        else:
            table.add_row(
                str(i),
                f"[bold]{tournament.player_name(m.p1)}[/]",
                "vs",
                f"[bold]{tournament.player_name(m.p2)}[/]",
                result,
            )
    console.print(table)


def show_standings(standings: list[StandingEntry]) -> None:
    table = Table(title="Standings", show_header=True, header_style="bold", border_style="dim")
    table.add_column("#", style="dim", width=3, justify="right")
    table.add_column("Name", min_width=20)
    table.add_column("W", justify="center", width=4)
    table.add_column("L", justify="center", width=4)
    table.add_column("T", justify="center", width=4)
    table.add_column("Pts", justify="right", width=5)
    table.add_column("OW%", justify="right", width=7)
    table.add_column("OOW%", justify="right", width=7)

    for i, entry in enumerate(standings, 1):
        table.add_row(
            str(i),
            entry.player.name,
            str(entry.wins),
            str(entry.losses),
            str(entry.ties),
            f"[bold]{entry.points}[/]",
            pct(entry.opp_win_pct),
            pct(entry.opp_opp_win_pct),
        )
    console.print(table)


def show_bracket(tournament: Tournament) -> None:
    state = bracket_state(tournament)
    if state.status == "not_started":
        console.print("  [dim]Top cut has not started.[/]")
        return
    for rnd in tournament.topcut_rounds():
        show_round(tournament, rnd)
    if state.status == "finished":
        console.print()
        console.print(
            Panel(
                f"[bold yellow]★  {tournament.player_name(tournament.top_cut.champion)}[/]",
                title="[bold green] Tournament Champion [/]",
                border_style="yellow",
                expand=False,
            )
        )


def outcome_text(tournament: Tournament, outcome: Outcome) -> str:
    match outcome:
        case Bye():
            return "BYE"
        case Tie():
            return "Tie"
        case Decisive(winner=winner):
            return f"{tournament.player_name(winner)} wins"
        case _:
            return "[dim]Pending[/]"
