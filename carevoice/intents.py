"""
Intent types for the voice-command pipeline.

The interpreter turns each LLM tool call into exactly one of these
variants. Argument maps from the model are loosely typed, so parse_intent()
coerces values to str and leaves missing ones as None; the dispatcher
decides whether a variant has everything it needs. Unknown tool names
become Unrecognized instead of raising.
"""

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union


@dataclass(frozen=True)
class Navigate:
    view: Optional[str] = None


@dataclass(frozen=True)
class AddMedication:
    name: Optional[str] = None
    dosage: Optional[str] = None
    time: Optional[str] = None


@dataclass(frozen=True)
class MarkMedicationTaken:
    name: Optional[str] = None


@dataclass(frozen=True)
class AddAppointment:
    title: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    location: Optional[str] = None


@dataclass(frozen=True)
class GetDailySummary:
    pass


@dataclass(frozen=True)
class Speak:
    message: str = ""


@dataclass(frozen=True)
class Unrecognized:
    name: str = ""
    args: Mapping[str, Any] = field(default_factory=dict)


Intent = Union[Navigate, AddMedication, MarkMedicationTaken, AddAppointment,
               GetDailySummary, Speak, Unrecognized]


# Tool-call name -> (intent class, accepted argument names)
INTENT_BY_TOOL = {
    "navigate_to_view": (Navigate, ("view",)),
    "add_medication": (AddMedication, ("name", "dosage", "time")),
    "mark_medication_taken": (MarkMedicationTaken, ("name",)),
    "add_appointment": (AddAppointment, ("title", "date", "time", "location")),
    "get_daily_summary": (GetDailySummary, ()),
    "speak": (Speak, ("message",)),
}


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


def parse_intent(name: str, args: Optional[Mapping[str, Any]] = None) -> Intent:
    """Map a tool-call name and its argument mapping to an Intent variant."""
    args = args if isinstance(args, Mapping) else {}
    entry = INTENT_BY_TOOL.get(name)
    if entry is None:
        return Unrecognized(name=name or "", args=dict(args))

    cls, fields = entry
    kwargs = {f: _as_text(args.get(f)) for f in fields}
    if cls is Speak:
        return Speak(message=kwargs["message"] or "")
    return cls(**kwargs)
