"""
Speech Capture Session

Two-state machine (IDLE, LISTENING) around a continuous SpeechEngine.

Caller intent and engine signals are kept apart: start() moves to
LISTENING and asks the engine to begin; stop() only asks the engine to
halt. The move back to IDLE comes from the engine's end or error signal,
so a start() issued while the engine is still shutting down is a no-op
instead of a second capture request.
"""

import threading
from enum import Enum, auto
from typing import Callable, List, Optional, Tuple

from carevoice.logger import get_logger


START_FAILED_MESSAGE = "Could not start voice recognition. Please try again."
STOP_FAILED_MESSAGE = "Could not stop voice recognition."


class SessionState(Enum):
    IDLE = auto()
    LISTENING = auto()


class SpeechCaptureSession:
    """Owns at most one capture on the engine at a time."""

    def __init__(self, engine=None, config=None,
                 on_transcript: Optional[Callable[[str], None]] = None,
                 on_error: Optional[Callable[[str], None]] = None):
        self.logger = get_logger(__name__, config)
        self.engine = engine
        self.on_transcript = on_transcript
        self.on_error = on_error

        self._lock = threading.Lock()
        self._state = SessionState.IDLE
        self.transcript = ""
        self.error = ""

        if engine is None:
            self.logger.warning("Speech recognition is not supported on this system")
        else:
            engine.on_result = self._handle_result
            engine.on_error = self._handle_error
            engine.on_end = self._handle_end

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    @property
    def is_listening(self) -> bool:
        return self.state is SessionState.LISTENING

    @property
    def is_supported(self) -> bool:
        return self.engine is not None

    # ------------------------------------------------------------------
    # Caller intent
    # ------------------------------------------------------------------

    def start(self):
        """Begin capturing. No-op unless IDLE."""
        with self._lock:
            if self.engine is None or self._state is not SessionState.IDLE:
                return
            self.transcript = ""
            self.error = ""
            self._state = SessionState.LISTENING

        try:
            self.engine.start()
        except Exception as e:
            self.logger.error(f"Error starting recognition: {e}")
            with self._lock:
                self._state = SessionState.IDLE
                self.error = START_FAILED_MESSAGE
            self._notify_error(START_FAILED_MESSAGE)

    def stop(self):
        """Ask the engine to stop. No-op unless LISTENING; IDLE follows on engine end."""
        with self._lock:
            if self.engine is None or self._state is not SessionState.LISTENING:
                return

        try:
            self.engine.stop()
        except Exception as e:
            self.logger.error(f"Error stopping recognition: {e}")
            with self._lock:
                self._state = SessionState.IDLE
                self.error = STOP_FAILED_MESSAGE
            self._notify_error(STOP_FAILED_MESSAGE)

    def toggle(self):
        if self.is_listening:
            self.stop()
        else:
            self.start()

    def close(self):
        """Detach engine callbacks and halt it."""
        engine = self.engine
        if engine is None:
            return
        engine.on_result = None
        engine.on_error = None
        engine.on_end = None
        with self._lock:
            self._state = SessionState.IDLE
        try:
            engine.stop()
        except Exception as e:
            self.logger.debug(f"Engine stop during close failed: {e}")
        self.engine = None

    # ------------------------------------------------------------------
    # Engine signals
    # ------------------------------------------------------------------

    def _handle_result(self, fragments: List[Tuple[str, bool]]):
        final_text = "".join(text for text, is_final in fragments if is_final)
        if not final_text.strip():
            return
        transcript = final_text.strip().lower()
        with self._lock:
            self.transcript = transcript
        self.logger.info(f"Final transcript: {transcript}")
        if self.on_transcript:
            self.on_transcript(transcript)

    def _handle_error(self, code: str, message: str = ""):
        text = message or f"An error occurred: {code}"
        self.logger.error(f"Speech recognition error: {code} {message}")
        with self._lock:
            self.error = text
            self._state = SessionState.IDLE
        self._notify_error(text)

    def _handle_end(self):
        with self._lock:
            self._state = SessionState.IDLE
        self.logger.debug("Speech capture ended")

    def _notify_error(self, text: str):
        if self.on_error:
            try:
                self.on_error(text)
            except Exception as e:
                self.logger.error(f"Error callback failed: {e}")
