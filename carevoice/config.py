"""
Configuration

YAML-backed configuration with dot-notation lookups, e.g.
``config.get("reminders.tick_interval_seconds", 30)``.

Secrets never live in the YAML file. The file names an environment
variable (``llm.api_key_env: CAREVOICE_LLM_API_KEY``) and callers resolve
it with ``config.get_env()``.
"""

import copy
import os
from pathlib import Path
from typing import Any, Optional

import yaml


DEFAULTS = {
    "logging": {
        "level": "INFO",
        "file": None,
        "console": True,
    },
    "storage": {
        "db_path": "~/.local/share/carevoice/carevoice.db",
        "data_key": "careData",
    },
    "llm": {
        "base_url": "http://127.0.0.1:8080",
        "model": "local",
        "api_key_env": "CAREVOICE_LLM_API_KEY",
        "timeout_seconds": 30,
        "temperature": 0.2,
    },
    "reminders": {
        "enabled": True,
        "tick_interval_seconds": 30,
        "appointment_lead_minutes": 15,
    },
    "stt": {
        "model": "base",
        "device": "cpu",
        "compute_type": "int8",
        "language": "en",
        "sample_rate": 16000,
        "silence_threshold": 0.01,
        "silence_seconds": 1.2,
    },
    "audio": {
        "mic_device": None,
    },
    "tts": {
        "command": "espeak-ng",
        "voice": None,
    },
    "haptics": {
        "command": None,
    },
    "notifications": {
        "app_name": "CareVoice",
    },
}


def _merge(base: dict, override: dict) -> dict:
    """Recursively merge override into a copy of base."""
    result = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _merge(result[key], value)
        else:
            result[key] = value
    return result


class Config:
    """Dot-notation view over the merged YAML configuration."""

    def __init__(self, config_path: Optional[str] = None, values: Optional[dict] = None):
        self.config_path = Path(config_path).expanduser() if config_path else None
        loaded = {}
        if self.config_path and self.config_path.exists():
            with open(self.config_path, "r") as f:
                loaded = yaml.safe_load(f) or {}
            if not isinstance(loaded, dict):
                raise ValueError(f"Config file {self.config_path} must contain a mapping")
        self._data = _merge(DEFAULTS, loaded)
        if values:
            self._data = _merge(self._data, values)

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a dotted key. Missing keys and explicit nulls return default."""
        node: Any = self._data
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return default if node is None else node

    def get_env(self, name: Optional[str], default: Optional[str] = None) -> Optional[str]:
        """Read a secret from the environment by variable name."""
        if not name:
            return default
        return os.environ.get(name, default)

    def as_dict(self) -> dict:
        return copy.deepcopy(self._data)


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration.

    Resolution order: explicit path, ``CAREVOICE_CONFIG`` environment
    variable, ``./config.yaml``, then built-in defaults only.
    """
    path = config_path or os.environ.get("CAREVOICE_CONFIG")
    if not path and Path("config.yaml").exists():
        path = "config.yaml"
    return Config(path)
