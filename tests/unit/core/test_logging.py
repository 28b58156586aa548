"""Tests for structured logging configuration."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

import pytest
import structlog

from dnd_progression.core.logging import bound_context, configure_logging, get_logger


if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture(autouse=True)
def restore_logging(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Run without a stray .env file and undo global logging setup afterwards."""
    monkeypatch.chdir(tmp_path)
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level

    yield

    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_json_output_from_settings(self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
        """Test that settings select JSON rendering and the log level."""
        monkeypatch.setenv("DND_PROGRESSION_JSON_LOGS", "true")
        monkeypatch.setenv("DND_PROGRESSION_LOG_LEVEL", "DEBUG")

        configure_logging()
        logger = get_logger("tests.logging.json")
        with bound_context(character_name="Aria"):
            logger.debug("Level-up recorded", from_level=3, to_level=4)

        entry = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert entry["event"] == "Level-up recorded"
        assert entry["level"] == "debug"
        assert entry["app"] == "dnd_progression"
        assert entry["character_name"] == "Aria"
        assert entry["to_level"] == 4
        assert structlog.contextvars.get_contextvars() == {}

    def test_explicit_level_filters(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(level="WARNING", json_format=True)
        logger = get_logger("tests.logging.filter")

        logger.info("Progression session started")
        logger.warning("Character has incomplete choices")

        lines = capsys.readouterr().out.strip().splitlines()
        assert [json.loads(line)["event"] for line in lines] == ["Character has incomplete choices"]

    def test_log_file(self, tmp_path: Path) -> None:
        log_file = tmp_path / "engine.log"
        configure_logging(level="INFO", json_format=False, log_file=str(log_file))

        logging.getLogger("tests.logging.file").warning("Unknown class: Artificer")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "Unknown class: Artificer" in log_file.read_text()
