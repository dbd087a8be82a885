"""
Tests for package logging setup.
"""

import logging

import pytest

from carevoice.logger import FILE_ONLY_ENV, PACKAGE_LOGGER, configure_logging, get_logger

from conftest import MockConfig


@pytest.fixture(autouse=True)
def restore_logging(monkeypatch):
    monkeypatch.delenv(FILE_ONLY_ENV, raising=False)
    yield
    configure_logging(MockConfig({"logging.console": False}), force=True)


def test_module_loggers_share_package_handlers(tmp_path):
    log_file = tmp_path / "logs" / "carevoice.log"
    configure_logging(MockConfig({
        "logging.level": "DEBUG",
        "logging.file": str(log_file),
        "logging.console": False,
    }), force=True)

    logger = get_logger("carevoice.store")
    logger.debug("snapshot saved")
    for handler in logging.getLogger(PACKAGE_LOGGER).handlers:
        handler.flush()

    assert logger.handlers == []
    assert "carevoice.store - DEBUG - snapshot saved" in log_file.read_text()


def test_foreign_names_are_nested_under_package():
    assert get_logger("conftest").name == "carevoice.conftest"
    assert get_logger(PACKAGE_LOGGER).name == PACKAGE_LOGGER


def test_configure_is_once_unless_forced(tmp_path):
    configure_logging(MockConfig({"logging.level": "WARNING", "logging.console": False}), force=True)
    configure_logging(MockConfig({"logging.level": "DEBUG"}))
    assert logging.getLogger(PACKAGE_LOGGER).level == logging.WARNING


def test_file_only_env_moves_output_off_stdout(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv(FILE_ONLY_ENV, "1")
    configure_logging(MockConfig({"logging.console": True}), force=True)

    get_logger("carevoice.cli").warning("quiet please")
    for handler in logging.getLogger(PACKAGE_LOGGER).handlers:
        handler.flush()

    assert "quiet please" not in capsys.readouterr().out
    assert "quiet please" in (tmp_path / "logs" / "console.log").read_text()
