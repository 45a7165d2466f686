"""Unit tests for /src/core/config.py"""

import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from src.core.config import (
    AISettings,
    Settings,
    configure_logging,
    load_settings,
)
from src.core.exceptions import InvalidStateError


def test_defaults() -> None:
    settings = Settings()
    assert settings.game.default_time_control == 10
    assert settings.ai.default_difficulty == "medium"
    assert settings.ai.easy_random_move_rate == 0.3
    assert settings.ai.medium_blunder_rate == 0.15
    assert settings.ai.search_time_limit_ms == 5000
    assert settings.match.game_code_length == 6
    assert "0" not in settings.match.game_code_alphabet
    assert "O" not in settings.match.game_code_alphabet
    assert settings.log_level == "INFO"


def test_missing_file_gives_defaults(tmp_path: Path) -> None:
    assert load_settings(tmp_path / "nope.toml") == Settings()


def test_file_overrides_defaults(tmp_path: Path) -> None:
    config = tmp_path / "kalas.toml"
    config.write_text(
        'log_level = "debug"\n'
        "\n"
        "[game]\n"
        "default_time_control = 5\n"
        "\n"
        "[ai]\n"
        "medium_blunder_rate = 0.0\n"
        "min_delay_ms = 0\n"
    )
    settings = load_settings(config)
    assert settings.log_level == "DEBUG"
    assert settings.game.default_time_control == 5
    assert settings.ai == AISettings(medium_blunder_rate=0.0, min_delay_ms=0)
    assert settings.match.game_code_length == 6


@pytest.mark.parametrize(
    "content",
    [
        "[ai]\nblunder = 1\n",
        "[network]\nport = 80\n",
    ],
)
def test_unknown_keys_are_rejected(tmp_path: Path, content: str) -> None:
    config = tmp_path / "kalas.toml"
    config.write_text(content)
    with pytest.raises(InvalidStateError):
        load_settings(config)


def test_configure_logging_uses_the_level() -> None:
    with patch("src.core.config.logging.basicConfig") as basic_config:
        configure_logging(Settings(log_level="DEBUG"))
    assert basic_config.call_args.kwargs["level"] == logging.DEBUG


def test_unknown_log_level_falls_back_to_info() -> None:
    with patch("src.core.config.logging.basicConfig") as basic_config:
        configure_logging(Settings(log_level="CHATTY"))
    assert basic_config.call_args.kwargs["level"] == logging.INFO
