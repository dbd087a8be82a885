"""
CareAssistant

Wires the pieces together:

    SpeechCaptureSession --transcript--> event queue --> worker thread
        worker: CommandInterpreter.interpret() -> CommandDispatcher.dispatch()
    ReminderScheduler runs on its own thread and only reads the store.

The worker is the only place voice commands touch the store, so intents
from one batch, and consecutive batches, apply strictly in order.
"""

import queue
import threading
from typing import List, Optional

from carevoice.dispatcher import CommandDispatcher
from carevoice.events import Event, EventType, PipelineState
from carevoice.interpreter import CommandInterpreter
from carevoice.kv_store import KeyValueStore
from carevoice.logger import get_logger
from carevoice.reminder_scheduler import ReminderScheduler
from carevoice.sinks import ConsoleAnnouncer, DesktopNotifier, Haptics, Speaker
from carevoice.speech_session import SpeechCaptureSession
from carevoice.store import DomainStore


class CareAssistant:
    """Voice pipeline coordinator."""

    def __init__(self, config, store: DomainStore, interpreter: CommandInterpreter,
                 dispatcher: CommandDispatcher, scheduler: Optional[ReminderScheduler] = None,
                 session: Optional[SpeechCaptureSession] = None,
                 haptics: Optional[Haptics] = None, announcer=None):
        self.config = config
        self.logger = get_logger(__name__, config)
        self.store = store
        self.interpreter = interpreter
        self.dispatcher = dispatcher
        self.scheduler = scheduler
        self.haptics = haptics
        self.announcer = announcer

        self.state = PipelineState.IDLE
        self._events: "queue.Queue[Event]" = queue.Queue()
        self._worker: Optional[threading.Thread] = None

        self.session = session
        if session is not None:
            session.on_transcript = self._on_transcript
            session.on_error = self._on_speech_error

    @classmethod
    def from_config(cls, config, engine=None) -> "CareAssistant":
        """Build the desktop assistant: SQLite persistence, espeak, notify-send."""
        kv = KeyValueStore(config.get("storage.db_path"), config)
        store = DomainStore(kv, config)
        speaker = Speaker(config)
        announcer = ConsoleAnnouncer(config)
        notifier = DesktopNotifier(config)
        if notifier.permission != "granted":
            get_logger(__name__, config).warning(
                "notify-send not available; reminders will be spoken only"
            )
        return cls(
            config,
            store=store,
            interpreter=CommandInterpreter(config),
            dispatcher=CommandDispatcher(store, speaker, announcer, config),
            scheduler=ReminderScheduler(store, notifier, speaker, config),
            session=SpeechCaptureSession(engine, config) if engine is not None else None,
            haptics=Haptics(config),
            announcer=announcer,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self):
        if self._worker and self._worker.is_alive():
            return
        self._worker = threading.Thread(target=self._run, daemon=True, name="command-worker")
        self._worker.start()
        if self.scheduler:
            self.scheduler.start()
        self.logger.info("CareAssistant started")

    def shutdown(self):
        if self.session:
            self.session.close()
        if self.scheduler:
            self.scheduler.stop()
        if self._worker:
            self._events.put(Event(EventType.SHUTDOWN, source="assistant"))
            self._worker.join(timeout=10)
            self._worker = None
        self.logger.info("CareAssistant stopped")

    def wait_idle(self, timeout: Optional[float] = None):
        """Block until every queued event has been handled."""
        with self._events.all_tasks_done:
            if self._events.unfinished_tasks:
                self._events.all_tasks_done.wait(timeout)

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    @property
    def is_processing(self) -> bool:
        return self.state is PipelineState.PROCESSING_COMMAND or self.interpreter.is_processing

    def press_mic(self):
        """Mic button: haptic tick, then toggle listening. Ignored while busy."""
        if self.session is None or self.is_processing:
            return
        if self.haptics:
            self.haptics.pulse()
        self.session.toggle()

    def submit_transcript(self, text: str):
        """Queue a command for the worker thread."""
        self._events.put(Event(EventType.TRANSCRIPTION_READY, data=text, source="input"))

    def process_command(self, text: str) -> List[str]:
        """Interpret and dispatch one command synchronously."""
        self.state = PipelineState.PROCESSING_COMMAND
        try:
            intents = self.interpreter.interpret(text)
            return self.dispatcher.dispatch(intents)
        finally:
            self.state = PipelineState.IDLE

    # ------------------------------------------------------------------
    # Session callbacks (engine thread)
    # ------------------------------------------------------------------

    def _on_transcript(self, text: str):
        # One command per capture
        self.session.stop()
        self._events.put(Event(EventType.TRANSCRIPTION_READY, data=text, source="speech"))

    def _on_speech_error(self, message: str):
        self._events.put(Event(EventType.SPEECH_ERROR, data=message, source="speech"))

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _run(self):
        while True:
            event = self._events.get()
            try:
                if event.type is EventType.SHUTDOWN:
                    return
                if event.type is EventType.TRANSCRIPTION_READY:
                    self.process_command(event.data)
                elif event.type is EventType.SPEECH_ERROR and self.announcer:
                    self.announcer.announce(event.data)
            except Exception as e:
                self.logger.error(f"Command worker error on {event!r}: {e}")
            finally:
                self._events.task_done()
