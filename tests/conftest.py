"""Shared fixtures: dotted-key config mock, recording sinks, fake speech engine."""

import pytest

from carevoice.speech_engine import SpeechEngine
from carevoice.store import DomainStore


class MockConfig:
    """Minimal config mock that supports dot-notation get()."""

    def __init__(self, values=None, env=None):
        self._values = {
            "llm.base_url": "http://llm.test",
            "llm.model": "test-model",
            "llm.timeout_seconds": 5,
            "reminders.tick_interval_seconds": 30,
            "reminders.appointment_lead_minutes": 15,
            "storage.data_key": "careData",
        }
        self._values.update(values or {})
        self._env = env or {}

    def get(self, key, default=None):
        return self._values.get(key, default)

    def get_env(self, name, default=None):
        return self._env.get(name, default)


class RecordingSpeaker:
    def __init__(self, fail=False):
        self.spoken = []
        self.fail = fail

    def speak(self, text):
        if self.fail:
            raise RuntimeError("audio device busy")
        self.spoken.append(text)


class RecordingAnnouncer:
    def __init__(self):
        self.announced = []

    def announce(self, text):
        self.announced.append(text)


class RecordingNotifier:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    def notify(self, title, body, dedup_tag=""):
        if self.fail:
            raise OSError("notification daemon not running")
        self.sent.append((title, body, dedup_tag))
        return True


class FakeEngine(SpeechEngine):
    """Records start/stop calls; tests fire the engine signals by hand."""

    def __init__(self, fail_start=False, fail_stop=False):
        super().__init__()
        self.start_calls = 0
        self.stop_calls = 0
        self.fail_start = fail_start
        self.fail_stop = fail_stop
        self.running = False

    def start(self):
        self.start_calls += 1
        if self.fail_start:
            raise RuntimeError("microphone permission denied")
        if self.running:
            raise RuntimeError("recognition has already started")
        self.running = True

    def stop(self):
        self.stop_calls += 1
        if self.fail_stop:
            raise RuntimeError("recognizer did not stop")

    # Signals a real engine would fire from its own thread
    def finish(self):
        self.running = False
        self._emit_end()

    def fail(self, code, message=""):
        self.running = False
        self._emit_error(code, message)
        self._emit_end()

    def results(self, *fragments):
        self._emit_result(list(fragments))


@pytest.fixture
def config():
    return MockConfig()


@pytest.fixture
def store(config):
    return DomainStore(config=config)


@pytest.fixture
def speaker():
    return RecordingSpeaker()


@pytest.fixture
def announcer():
    return RecordingAnnouncer()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def engine():
    return FakeEngine()
