"""
Speech engines

SpeechEngine is the contract the SpeechCaptureSession drives: start(),
stop(), and three callbacks the engine fires on its own thread:

    on_result(fragments)   -- list of (text, is_final) tuples
    on_error(code, message)
    on_end()               -- capture finished, for any reason

WhisperSpeechEngine is the desktop implementation: continuous microphone
capture with sounddevice, energy-based end-of-utterance detection, and
faster-whisper transcription. Every completed utterance is delivered as a
single final fragment.
"""

import queue
import threading
from typing import Callable, List, Optional, Tuple

import numpy as np

from carevoice.logger import get_logger


Fragment = Tuple[str, bool]


class SpeechEngine:
    """Base class for continuous speech recognizers."""

    def __init__(self):
        self.on_result: Optional[Callable[[List[Fragment]], None]] = None
        self.on_error: Optional[Callable[[str, str], None]] = None
        self.on_end: Optional[Callable[[], None]] = None

    def start(self):
        raise NotImplementedError

    def stop(self):
        raise NotImplementedError

    # Helpers for subclasses: callbacks may be detached at any time
    def _emit_result(self, fragments: List[Fragment]):
        cb = self.on_result
        if cb:
            cb(fragments)

    def _emit_error(self, code: str, message: str = ""):
        cb = self.on_error
        if cb:
            cb(code, message)

    def _emit_end(self):
        cb = self.on_end
        if cb:
            cb()


class WhisperSpeechEngine(SpeechEngine):
    """Microphone capture + faster-whisper transcription."""

    def __init__(self, config):
        """
        Initialize the engine

        Args:
            config: Configuration object
        """
        super().__init__()
        self.config = config
        self.logger = get_logger(__name__, config)

        self.model_name = config.get("stt.model", "base")
        self.device = config.get("stt.device", "cpu")
        self.compute_type = config.get("stt.compute_type", "int8")
        self.language = config.get("stt.language", "en")
        self.sample_rate = config.get("stt.sample_rate", 16000)
        self.silence_threshold = config.get("stt.silence_threshold", 0.01)
        self.silence_seconds = config.get("stt.silence_seconds", 1.2)
        self.mic_device = config.get("audio.mic_device")

        self.model = None
        self._stream = None
        self._worker: Optional[threading.Thread] = None
        self._audio_q: "queue.Queue[Optional[np.ndarray]]" = queue.Queue()
        self._running = False

    def _load_model(self):
        """Load faster-whisper lazily so constructing the engine is cheap."""
        if self.model is not None:
            return
        from faster_whisper import WhisperModel

        self.logger.info(f"Loading Whisper model '{self.model_name}' on {self.device}")
        self.model = WhisperModel(self.model_name, device=self.device,
                                  compute_type=self.compute_type)

    def start(self):
        if self._running:
            raise RuntimeError("recognition has already started")

        import sounddevice as sd

        self._load_model()
        self._audio_q = queue.Queue()
        self._stream = sd.InputStream(
            samplerate=self.sample_rate,
            channels=1,
            dtype="float32",
            device=self.mic_device,
            callback=self._audio_callback,
        )
        self._stream.start()
        self._running = True
        self._worker = threading.Thread(target=self._run, daemon=True, name="stt-worker")
        self._worker.start()
        self.logger.info("Speech capture started")

    def stop(self):
        if not self._running:
            return
        self._running = False
        self._audio_q.put(None)

    def _audio_callback(self, indata, frames, time_info, status):
        if status:
            self.logger.warning(f"Audio callback status: {status}")
        self._audio_q.put(indata[:, 0].copy())

    def _run(self):
        """Collect blocks into utterances until stopped, then signal end."""
        utterance: List[np.ndarray] = []
        silent_samples = 0
        silence_limit = int(self.silence_seconds * self.sample_rate)

        try:
            while True:
                block = self._audio_q.get()
                if block is None:
                    break
                rms = float(np.sqrt(np.mean(block ** 2))) if len(block) else 0.0
                if rms >= self.silence_threshold:
                    utterance.append(block)
                    silent_samples = 0
                elif utterance:
                    utterance.append(block)
                    silent_samples += len(block)
                    if silent_samples >= silence_limit:
                        self._finish_utterance(utterance)
                        utterance, silent_samples = [], 0

            if utterance:
                self._finish_utterance(utterance)
        except Exception as e:
            self.logger.error(f"Speech capture failed: {e}")
            self._emit_error("audio-capture", str(e))
        finally:
            self._close_stream()
            self._running = False
            self._emit_end()

    def _finish_utterance(self, blocks: List[np.ndarray]):
        audio = np.concatenate(blocks).astype(np.float32)
        segments, _ = self.model.transcribe(
            audio,
            language=self.language,
            beam_size=3,
            vad_filter=True,
            condition_on_previous_text=False,
            temperature=0.0,
        )
        text = " ".join(segment.text for segment in segments).strip()
        if text:
            self._emit_result([(text, True)])

    def _close_stream(self):
        if self._stream is not None:
            try:
                self._stream.stop()
                self._stream.close()
            except Exception as e:
                self.logger.debug(f"Closing input stream failed: {e}")
            self._stream = None
