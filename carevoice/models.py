"""
Domain model for CareVoice.

Immutable snapshots of the user's care data. The DomainStore swaps whole
CareData snapshots in and out; nothing mutates an entity in place.
"""

import uuid
from dataclasses import asdict, dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import List, Optional, Tuple


class View(Enum):
    """Screens the assistant can navigate to."""

    DASHBOARD = "DASHBOARD"
    MEDICATIONS = "MEDICATIONS"
    APPOINTMENTS = "APPOINTMENTS"
    ACTIVITIES = "ACTIVITIES"
    EMERGENCY = "EMERGENCY"
    SETTINGS = "SETTINGS"

    @classmethod
    def parse(cls, name: Optional[str]) -> Optional["View"]:
        """Case-insensitive lookup; None when the name is not a known view."""
        if not name:
            return None
        try:
            return cls(str(name).strip().upper())
        except ValueError:
            return None


class ActivityType(Enum):
    PHYSICAL = "PHYSICAL"
    SOCIAL = "SOCIAL"
    MENTAL = "MENTAL"


THEMES = ("light", "dark", "high-contrast")
FONT_SIZES = ("text-xl", "text-2xl", "text-3xl", "text-4xl")


def new_id() -> str:
    return str(uuid.uuid4())


def normalize_time(text) -> Optional[str]:
    """24-hour time as zero-padded "HH:MM" ('8:05' -> '08:05'), or None."""
    try:
        return datetime.strptime(str(text).strip(), "%H:%M").strftime("%H:%M")
    except (TypeError, ValueError):
        return None


def normalize_date(text) -> Optional[str]:
    """Calendar date as "YYYY-MM-DD", or None."""
    try:
        return datetime.strptime(str(text).strip(), "%Y-%m-%d").date().isoformat()
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class Medication:
    id: str
    name: str
    dosage: str
    time: str  # "HH:MM"
    taken: bool = False


@dataclass(frozen=True)
class Appointment:
    id: str
    title: str
    date: str  # "YYYY-MM-DD"
    time: str  # "HH:MM"
    location: str = ""
    notes: str = ""

    def starts_at(self) -> Optional[datetime]:
        """Combined local start instant, or None if date/time don't parse."""
        try:
            return datetime.strptime(f"{self.date} {self.time}", "%Y-%m-%d %H:%M")
        except (TypeError, ValueError):
            return None

    def on_date(self) -> Optional[date]:
        try:
            return datetime.strptime(self.date, "%Y-%m-%d").date()
        except (TypeError, ValueError):
            return None


@dataclass(frozen=True)
class Activity:
    id: str
    type: ActivityType
    description: str
    duration_minutes: int
    date: str  # "YYYY-MM-DD"


@dataclass(frozen=True)
class EmergencyContact:
    id: str
    name: str
    phone: str
    relationship: str


@dataclass(frozen=True)
class PrimaryDoctor:
    name: str = ""
    phone: str = ""


@dataclass(frozen=True)
class EmergencyInfo:
    primary_doctor: PrimaryDoctor = field(default_factory=PrimaryDoctor)
    allergies: str = ""
    conditions: str = ""
    contacts: Tuple[EmergencyContact, ...] = ()


@dataclass(frozen=True)
class Settings:
    theme: str = "light"
    font_size: str = "text-2xl"


@dataclass(frozen=True)
class CareData:
    """One consistent snapshot of everything the store owns."""

    medications: Tuple[Medication, ...] = ()
    appointments: Tuple[Appointment, ...] = ()
    activities: Tuple[Activity, ...] = ()
    emergency_info: EmergencyInfo = field(default_factory=EmergencyInfo)
    settings: Settings = field(default_factory=Settings)

    # ------------------------------------------------------------------
    # Ordering invariants
    # ------------------------------------------------------------------

    def with_medications(self, medications) -> "CareData":
        """Replace medications, sorted by time-of-day (stable for ties)."""
        return replace(self, medications=tuple(sorted(medications, key=lambda m: m.time)))

    def with_appointments(self, appointments) -> "CareData":
        """Replace appointments, sorted by start instant.

        Records whose date/time does not parse sort last, in insertion order.
        """
        def key(appt: Appointment):
            start = appt.starts_at()
            return (start is None, start or datetime.min)

        return replace(self, appointments=tuple(sorted(appointments, key=key)))

    def with_activities(self, activities) -> "CareData":
        """Replace activities, newest date first."""
        return replace(self, activities=tuple(sorted(activities, key=lambda a: a.date, reverse=True)))

    # ------------------------------------------------------------------
    # Serialization (for the key-value store)
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        data = asdict(self)
        data["activities"] = [
            {**asdict(a), "type": a.type.value} for a in self.activities
        ]
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "CareData":
        """Build a snapshot from persisted JSON. Raises on malformed input."""
        meds = [Medication(**m) for m in data.get("medications", [])]
        appts = [Appointment(**a) for a in data.get("appointments", [])]
        acts = [
            Activity(**{**a, "type": ActivityType(a["type"])})
            for a in data.get("activities", [])
        ]
        info = data.get("emergency_info") or {}
        emergency = EmergencyInfo(
            primary_doctor=PrimaryDoctor(**(info.get("primary_doctor") or {})),
            allergies=info.get("allergies", ""),
            conditions=info.get("conditions", ""),
            contacts=tuple(EmergencyContact(**c) for c in info.get("contacts", [])),
        )
        settings = Settings(**(data.get("settings") or {}))
        snapshot = cls(emergency_info=emergency, settings=settings)
        return (snapshot.with_medications(meds)
                .with_appointments(appts)
                .with_activities(acts))


def untaken(medications) -> List[Medication]:
    return [m for m in medications if not m.taken]
