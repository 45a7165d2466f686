"""
Runtime settings.

Every value has a sensible default, so nothing needs to be configured to play a game.
A TOML file can override any of them, ex.

    log_level = "DEBUG"

    [game]
    default_time_control = 5

    [ai]
    medium_blunder_rate = 0.0
"""

import logging
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

from src.core.exceptions import InvalidStateError

DEFAULT_CONFIG_PATH = Path("kalas.toml")


@dataclass
class GameSettings:
    default_time_control: int = 10  # minutes, 0 = untimed


@dataclass
class AISettings:
    default_difficulty: str = "medium"
    easy_random_move_rate: float = 0.3
    medium_blunder_rate: float = 0.15
    medium_blunder_pool: int = 3
    easy_eval_noise: int = 25
    min_delay_ms: int = 500
    search_time_limit_ms: Optional[int] = 5000  # checked between root moves, None = no limit


@dataclass
class MatchSettings:
    game_code_length: int = 6
    # No 0/O or 1/I to keep codes readable when shared verbally
    game_code_alphabet: str = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


@dataclass
class Settings:
    game: GameSettings = field(default_factory=GameSettings)
    ai: AISettings = field(default_factory=AISettings)
    match: MatchSettings = field(default_factory=MatchSettings)
    log_level: str = "INFO"


def _apply_section(target: Any, values: dict[str, Any]) -> None:
    """Copy known keys from a TOML table onto a settings dataclass."""
    known = {f.name for f in fields(target)}
    for key, value in values.items():
        if key not in known:
            raise InvalidStateError(
                f"Unknown setting {key!r} for {type(target).__name__}. Pick one from {', '.join(sorted(known))}"
            )
        setattr(target, key, value)


def load_settings(path: Optional[Path] = None) -> Settings:
    """Read settings from a TOML file. A missing file simply gives the defaults."""
    settings = Settings()
    config_path = path or DEFAULT_CONFIG_PATH
    if not config_path.exists():
        return settings

    with config_path.open("rb") as fh:
        raw = tomllib.load(fh)

    sections = {"game": settings.game, "ai": settings.ai, "match": settings.match}
    for key, value in raw.items():
        if key in sections:
            _apply_section(sections[key], value)
        elif key == "log_level":
            settings.log_level = str(value).upper()
        else:
            raise InvalidStateError(f"Unknown configuration section {key!r}")
    return settings


def configure_logging(settings: Settings) -> None:
    """Meant to be called once by whatever process hosts the engine."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
