"""
Event types for the CareVoice pipeline.

Transcripts and speech errors arrive on engine threads; the assistant
funnels them through one queue.Queue of typed events so commands are
interpreted and dispatched by a single worker, one after another.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any
import time


class EventType(Enum):
    """All event types in the CareVoice pipeline."""

    TRANSCRIPTION_READY = auto()    # Final transcript from the capture session (data: str)
    SPEECH_ERROR = auto()           # Capture session error text (data: str)
    SHUTDOWN = auto()               # Graceful shutdown requested


class PipelineState(Enum):
    """What the command worker is doing right now."""

    IDLE = auto()                   # Waiting for a transcript
    PROCESSING_COMMAND = auto()     # Interpreting and dispatching


@dataclass
class Event:
    """A typed event flowing through the pipeline."""

    type: EventType
    data: Any = None
    timestamp: float = field(default_factory=time.monotonic)
    source: str = ""

    def __repr__(self):
        data_repr = repr(self.data)
        if len(data_repr) > 80:
            data_repr = data_repr[:77] + "..."
        return f"Event({self.type.name}, data={data_repr}, source={self.source!r})"
