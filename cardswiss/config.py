"""
Configuration loading from config.yaml.

Uses typed dataclasses throughout so the rest of the app gets IDE
completion and type-checker support without touching raw dicts.
Every section is optional; missing keys fall back to the defaults below.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

import yaml

MatchFormat = Literal["Bo1", "Bo3"]
PairingMode = Literal["swiss", "round_robin"]

TOP_CUT_SIZES = (2, 4, 8, 16)

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@dataclass
class TournamentDefaults:
    """Settings applied to every newly created tournament."""

    name: str = "New tournament"
    format: MatchFormat = "Bo1"
    kind: str = "Cup"
    pairing_mode: PairingMode = "swiss"
    rounds_planned: int = 5
    top_cut_size: int = 0    # 0 = no top cut


@dataclass
class PairingConfig:
    seed: int | None = None   # fixed seed pins the swiss shuffle sequence


@dataclass
class StorageConfig:
    data_dir: str = "./data"


@dataclass
class LoggingConfig:
    level: str = "INFO"
    file: str = "./logs/cardswiss.log"


@dataclass
class Config:
    tournament: TournamentDefaults = field(default_factory=TournamentDefaults)
    pairing: PairingConfig = field(default_factory=PairingConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def data_path(self) -> Path:
        return Path(self.storage.data_dir)

    @property
    def log_path(self) -> Path:
        return Path(self.logging.file)

    @property
    def log_level(self) -> int:
        return getattr(logging, self.logging.level)

    def make_rng(self) -> random.Random:
        return random.Random(self.pairing.seed)


def load_config(path: str | Path = "config.yaml") -> Config:
    """
    Load and validate config.yaml.

    Raises:
        FileNotFoundError: config.yaml is missing.
        ValueError: fields are invalid.
    """
    cfg_path = Path(path)
    if not cfg_path.exists():
        raise FileNotFoundError(
            f"Config file not found: {cfg_path.resolve()}\n"
            "Copy config.example.yaml to config.yaml and adjust it."
        )

    with cfg_path.open("r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    try:
        t_raw = raw.get("tournament") or {}
        defaults = TournamentDefaults(
            name=str(t_raw.get("name", "New tournament")),
            format=t_raw.get("format", "Bo1"),
            kind=str(t_raw.get("kind", "Cup")),
            pairing_mode=t_raw.get("pairing_mode", "swiss"),
            rounds_planned=int(t_raw.get("rounds_planned", 5)),
            top_cut_size=int(t_raw.get("top_cut_size", 0)),
        )

        seed = (raw.get("pairing") or {}).get("seed")
        pairing = PairingConfig(seed=None if seed is None else int(seed))

        storage_raw = raw.get("storage") or {}
        storage = StorageConfig(data_dir=str(storage_raw.get("data_dir", "./data")))

        log_raw = raw.get("logging") or {}
        log_cfg = LoggingConfig(
            level=str(log_raw.get("level", "INFO")).upper(),
            file=str(log_raw.get("file", "./logs/cardswiss.log")),
        )

        config = Config(tournament=defaults, pairing=pairing, storage=storage, logging=log_cfg)
        _validate(config)
        return config

    except (AttributeError, TypeError) as exc:
        raise ValueError(f"Invalid config.yaml structure: {exc}") from exc


def load_config_or_default(path: str | Path = "config.yaml") -> Config:
    """Like load_config(), but a missing file just means all defaults."""
    if not Path(path).exists():
        return Config()
    return load_config(path)


def _validate(config: Config) -> None:
    t = config.tournament
    if t.format not in ("Bo1", "Bo3"):
        raise ValueError(f"tournament.format must be Bo1 or Bo3, got '{t.format}'")
    if t.pairing_mode not in ("swiss", "round_robin"):
        raise ValueError(
            f"tournament.pairing_mode must be swiss or round_robin, got '{t.pairing_mode}'"
        )
    if t.rounds_planned < 1:
        raise ValueError("tournament.rounds_planned must be >= 1")
    if t.top_cut_size not in (0, *TOP_CUT_SIZES):
        raise ValueError(
            f"tournament.top_cut_size must be 0 or one of {TOP_CUT_SIZES}, got {t.top_cut_size}"
        )
    if config.logging.level not in _LOG_LEVELS:
        raise ValueError(f"logging.level must be one of {_LOG_LEVELS}, got '{config.logging.level}'")
