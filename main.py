"""
CardSwiss — terminal entry point.

Usage:
    uv run python main.py

Wires together:  config → logging → tournament store → interactive menu
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path

from cardswiss.cli.display import console
from cardswiss.cli.menu import run_menu
from cardswiss.config import Config, load_config_or_default
from cardswiss.store import TournamentStore


def _setup_logging(config: Config) -> None:
    # File only: the terminal belongs to the menu.
    config.log_path.parent.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
        handlers=[
            logging.handlers.RotatingFileHandler(
                config.log_path, maxBytes=2 * 1024 * 1024, backupCount=3,
                encoding="utf-8",
            ),
        ],
    )


def main() -> None:
    try:
        config = load_config_or_default(Path("config.yaml"))
    except ValueError as exc:
        console.print(f"[red]Config error:[/] {exc}")
        sys.exit(1)

    _setup_logging(config)
    console.print(f"[dim]Data: {config.data_path}   Logs: {config.log_path}[/]")

    try:
        run_menu(config, TournamentStore(config.data_path))
    except (KeyboardInterrupt, EOFError):
        console.print("\n[dim]Bye.[/]")


if __name__ == "__main__":
    main()
