"""
Tests for the carevoice command line (non-audio subcommands).
"""

import pytest

from carevoice import cli
from carevoice.intents import AddMedication
from carevoice.interpreter import CommandInterpreter


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("CAREVOICE_LOG_FILE_ONLY", "1")
    path = tmp_path / "config.yaml"
    path.write_text(
        "storage:\n"
        f"  db_path: {tmp_path / 'care.db'}\n"
        "tts:\n"
        "  command: carevoice-test-missing-tts\n"
    )
    return str(path)


def test_text_command_applies_and_persists(config_file, monkeypatch, capsys):
    monkeypatch.setattr(
        CommandInterpreter, "interpret",
        lambda self, text, context_date=None: [AddMedication("Aspirin", "1 pill", "08:00")],
    )

    assert cli.main(["--config", config_file, "text", "add", "aspirin"]) == 0
    assert "Okay, I've added Aspirin to your schedule at 08:00." in capsys.readouterr().out

    assert cli.main(["--config", config_file, "summary"]) == 0
    assert "You have 1 medications left today." in capsys.readouterr().out


def test_remind_check_with_nothing_due(config_file, capsys):
    assert cli.main(["--config", config_file, "remind-check"]) == 0
    assert "nothing due this minute" in capsys.readouterr().out
