"""
Logging

Every CareVoice module logs through a child of the ``carevoice`` package
logger. Handlers live on the package logger only and are installed once,
from the ``logging.*`` config keys:

    logging.level    INFO, DEBUG, ...
    logging.file     optional path; parent directories are created
    logging.console  mirror log lines to stdout

Set CAREVOICE_LOG_FILE_ONLY to keep stdout free for announcements; log
lines then go to ./logs/console.log instead.
"""

import logging
import os
import sys
from pathlib import Path

PACKAGE_LOGGER = "carevoice"
FILE_ONLY_ENV = "CAREVOICE_LOG_FILE_ONLY"

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"

_configured = False


def _settings(config):
    if config is None:
        return "INFO", None, True
    return (
        config.get("logging.level", "INFO"),
        config.get("logging.file"),
        config.get("logging.console", True),
    )


def configure_logging(config=None, force: bool = False) -> logging.Logger:
    """Install handlers on the package logger. Later calls are no-ops unless force."""
    global _configured
    root = logging.getLogger(PACKAGE_LOGGER)
    if _configured and not force:
        return root

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    level_str, log_file, console_enabled = _settings(config)
    if os.environ.get(FILE_ONLY_ENV):
        console_enabled = False
        log_file = str(Path.cwd() / "logs" / "console.log")

    level = getattr(logging, str(level_str).upper(), logging.INFO)
    root.setLevel(level)
    formatter = logging.Formatter(_FORMAT, datefmt=_DATEFMT)

    if console_enabled:
        console = logging.StreamHandler(sys.stdout)
        console.setFormatter(formatter)
        root.addHandler(console)

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path)
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    # Keep CareVoice output out of the host application's root logger
    root.propagate = False
    _configured = True
    return root


def get_logger(name: str, config=None) -> logging.Logger:
    """Logger for a module (usually ``__name__``), configuring on first use."""
    configure_logging(config)
    if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)

