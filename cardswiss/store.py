"""Local JSON document store for tournaments.

One file per tournament under the data directory, always written whole
(last write wins).  Also handles backup export/import and the list search
used by the CLI and web UI.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from cardswiss.tournaments.base import Tournament, new_id, now_iso
from cardswiss.tournaments.serialization import tournament_from_dict, tournament_to_dict
from cardswiss.tournaments.session import TournamentWriter

logger = logging.getLogger(__name__)

BACKUP_KIND = "cardswiss-backup"
BACKUP_VERSION = 1


class TournamentStore(TournamentWriter):
    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)

    def _path(self, tournament_id: str) -> Path:
        return self.data_dir / f"{tournament_id}.json"

    def get(self, tournament_id: str) -> Tournament | None:
        path = self._path(tournament_id)
        if not path.exists():
            return None
        return tournament_from_dict(json.loads(path.read_text(encoding="utf-8")))

    def get_all(self) -> list[Tournament]:
        """Every stored tournament, most recently updated first."""
        if not self.data_dir.exists():
            return []
        tournaments: list[Tournament] = []
        for path in sorted(self.data_dir.glob("*.json")):
            try:
                tournaments.append(tournament_from_dict(json.loads(path.read_text(encoding="utf-8"))))
            except (json.JSONDecodeError, ValueError) as exc:
                logger.warning("Skipping unreadable tournament file %s: %s", path.name, exc)
        return sorted(tournaments, key=lambda t: t.updated_at, reverse=True)

    def put(self, tournament: Tournament) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self._path(tournament.id).write_text(
            json.dumps(tournament_to_dict(tournament), indent=2), encoding="utf-8"
        )
        logger.debug("Saved tournament %s", tournament.id)

    def delete(self, tournament_id: str) -> None:
        self._path(tournament_id).unlink(missing_ok=True)
        logger.info("Deleted tournament %s", tournament_id)

    # ------------------------------------------------------------------ #
    # Backups                                                              #
    # ------------------------------------------------------------------ #

    def export_backup(self) -> dict[str, Any]:
        return {
            "kind": BACKUP_KIND,
            "version": BACKUP_VERSION,
            "exported_at": datetime.now(timezone.utc).isoformat(),
            "tournaments": [tournament_to_dict(t) for t in self.get_all()],
        }

    def import_backup(self, data: Any) -> int:
        """
        Store every tournament in a backup payload; returns how many.

        Tournaments whose id already exists are stored under a fresh id
        rather than overwriting.

        Raises:
            ValueError: not a backup payload, or a tournament inside is invalid.
        """
        if (
            not isinstance(data, dict)
            or data.get("kind") != BACKUP_KIND
            or not isinstance(data.get("tournaments"), list)
        ):
            raise ValueError("Not a valid tournament backup file.")

        incoming = [tournament_from_dict(raw) for raw in data["tournaments"]]
        existing = {t.id for t in self.get_all()}
        for tournament in incoming:
            if tournament.id in existing:
                tournament.id = new_id()
            tournament.updated_at = now_iso()
            existing.add(tournament.id)
            self.put(tournament)
        logger.info("Imported %d tournament(s)", len(incoming))
        return len(incoming)


def filter_tournaments(
    tournaments: list[Tournament],
    query: str = "",
    format: str = "",
    kind: str = "",
    rounds_planned: int | None = None,
) -> list[Tournament]:
    """Case-insensitive name search plus exact format / kind / rounds filters."""
    q = query.strip().casefold()
    return [
        t
        for t in tournaments
        if (not q or q in t.name.casefold())
        and (not format or t.format == format)
        and (not kind or t.kind == kind)
        and (rounds_planned is None or t.rounds_planned == rounds_planned)
    ]
