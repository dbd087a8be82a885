"""
Tests for YAML configuration loading and dotted lookups.
"""

import pytest

from carevoice.config import Config, load_config


def test_defaults_without_file():
    config = Config()
    assert config.get("reminders.tick_interval_seconds") == 30
    assert config.get("reminders.appointment_lead_minutes") == 15
    assert config.get("storage.data_key") == "careData"


def test_missing_and_null_keys_return_default():
    config = Config()
    assert config.get("nope.nothing", "fallback") == "fallback"
    assert config.get("haptics.command", "none-set") == "none-set"
    assert config.get("reminders.tick_interval_seconds.deeper", 1) == 1


def test_yaml_overrides_merge_with_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "reminders:\n"
        "  tick_interval_seconds: 10\n"
        "llm:\n"
        "  base_url: http://example.test\n"
    )
    config = Config(str(path))

    assert config.get("reminders.tick_interval_seconds") == 10
    assert config.get("reminders.appointment_lead_minutes") == 15
    assert config.get("llm.base_url") == "http://example.test"
    assert config.get("llm.timeout_seconds") == 30


def test_non_mapping_yaml_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ValueError):
        Config(str(path))


def test_get_env_reads_named_variable(monkeypatch):
    monkeypatch.setenv("CAREVOICE_TEST_KEY", "abc123")
    config = Config()
    assert config.get_env("CAREVOICE_TEST_KEY") == "abc123"
    assert config.get_env(None, "default") == "default"


def test_load_config_uses_env_var(tmp_path, monkeypatch):
    path = tmp_path / "custom.yaml"
    path.write_text("reminders:\n  appointment_lead_minutes: 30\n")
    monkeypatch.setenv("CAREVOICE_CONFIG", str(path))

    assert load_config().get("reminders.appointment_lead_minutes") == 30


def test_explicit_values_override_file():
    config = Config(values={"reminders": {"enabled": False}})
    assert config.get("reminders.enabled") is False
    assert config.get("reminders.tick_interval_seconds") == 30
