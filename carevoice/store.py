"""
Domain Store

Single source of truth for medications, appointments, activities,
emergency info and settings. Readers get an immutable CareData snapshot;
writers pass a snapshot -> snapshot function to update(), which applies it
under a lock and persists the result.

The voice dispatcher, the manual-edit operations below and the reminder
scheduler (read-only) all go through this class.
"""

import threading
from dataclasses import replace
from datetime import date
from typing import Callable, Optional

from carevoice.logger import get_logger
from carevoice.models import (
    FONT_SIZES, THEMES, Activity, ActivityType, Appointment, CareData,
    EmergencyContact, EmergencyInfo, Medication, PrimaryDoctor, new_id,
    normalize_date, normalize_time,
)


class PersistenceError(Exception):
    """The new snapshot could not be saved; the previous one is still current."""


class DomainStore:
    """Lock-guarded snapshot store with optional key-value persistence."""

    def __init__(self, kv=None, config=None, initial: Optional[CareData] = None):
        self.logger = get_logger(__name__, config)
        self._kv = kv
        self._key = config.get("storage.data_key", "careData") if config else "careData"
        self._lock = threading.RLock()
        self._data = initial if initial is not None else self._load()

    def _load(self) -> CareData:
        if self._kv is None:
            return CareData()
        raw = self._kv.get(self._key)
        if raw is None:
            return CareData()
        try:
            data = CareData.from_dict(raw)
        except (TypeError, ValueError, KeyError, AttributeError) as e:
            self.logger.error(f"Persisted care data is malformed, starting empty: {e}")
            return CareData()
        self.logger.info(
            f"Loaded {len(data.medications)} medications, "
            f"{len(data.appointments)} appointments"
        )
        return data

    # ------------------------------------------------------------------
    # Core interface
    # ------------------------------------------------------------------

    def get(self) -> CareData:
        with self._lock:
            return self._data

    def update(self, fn: Callable[[CareData], CareData]) -> CareData:
        """Apply fn to the current snapshot atomically and persist the result."""
        with self._lock:
            new_data = fn(self._data)
            if new_data is None:
                raise TypeError("update function must return a CareData snapshot")
            if self._kv is not None:
                try:
                    self._kv.set(self._key, new_data.to_dict())
                except Exception as e:
                    self.logger.error(f"Failed to persist care data: {e}")
                    raise PersistenceError(str(e)) from e
            self._data = new_data
            return new_data

    # ------------------------------------------------------------------
    # Medications
    # ------------------------------------------------------------------

    def add_medication(self, name: str, dosage: str, time: str) -> Medication:
        hhmm = normalize_time(time)
        if hhmm is None:
            raise ValueError(f"Medication time must be HH:MM, got {time!r}")
        time = hhmm
        med = Medication(id=new_id(), name=name, dosage=dosage, time=time, taken=False)
        self.update(lambda d: d.with_medications(d.medications + (med,)))
        self.logger.info(f"Medication added: '{name}' at {time}")
        return med

    def set_medication_taken(self, medication_id: str, taken: bool = True) -> bool:
        found = False

        def apply(d: CareData) -> CareData:
            nonlocal found
            meds = []
            for m in d.medications:
                if m.id == medication_id:
                    found = True
                    m = replace(m, taken=taken)
                meds.append(m)
            return replace(d, medications=tuple(meds))

        self.update(apply)
        return found

    def delete_medication(self, medication_id: str) -> bool:
        return self._delete("medications", medication_id)

    # ------------------------------------------------------------------
    # Appointments
    # ------------------------------------------------------------------

    def add_appointment(self, title: str, date: str, time: str,
                        location: str = "", notes: str = "") -> Appointment:
        # Unparseable values are kept as given; they sort last and never remind
        date = normalize_date(date) or date
        time = normalize_time(time) or time
        appt = Appointment(id=new_id(), title=title, date=date, time=time,
                           location=location or "", notes=notes or "")
        self.update(lambda d: d.with_appointments(d.appointments + (appt,)))
        self.logger.info(f"Appointment added: '{title}' on {date} at {time}")
        return appt

    def delete_appointment(self, appointment_id: str) -> bool:
        return self._delete("appointments", appointment_id)

    # ------------------------------------------------------------------
    # Activities
    # ------------------------------------------------------------------

    def add_activity(self, activity_type: ActivityType, description: str,
                     duration_minutes: int) -> Optional[Activity]:
        """Log an activity for today. Returns None if the input is incomplete."""
        if not description or duration_minutes <= 0:
            return None
        act = Activity(id=new_id(), type=ActivityType(activity_type),
                       description=description, duration_minutes=int(duration_minutes),
                       date=date.today().isoformat())
        self.update(lambda d: d.with_activities(d.activities + (act,)))
        return act

    def delete_activity(self, activity_id: str) -> bool:
        return self._delete("activities", activity_id)

    # ------------------------------------------------------------------
    # Emergency info & settings
    # ------------------------------------------------------------------

    def save_emergency_info(self, info: EmergencyInfo) -> None:
        """Replace emergency info wholesale."""
        self.update(lambda d: replace(d, emergency_info=info))
        self.logger.info("Emergency info saved")

    def update_settings(self, key: str, value: str) -> bool:
        allowed = {"theme": THEMES, "font_size": FONT_SIZES}
        if key not in allowed or value not in allowed[key]:
            self.logger.warning(f"Rejected settings change {key}={value!r}")
            return False
        self.update(lambda d: replace(d, settings=replace(d.settings, **{key: value})))
        return True

    # ------------------------------------------------------------------

    def _delete(self, field_name: str, entity_id: str) -> bool:
        found = False

        def apply(d: CareData) -> CareData:
            nonlocal found
            items = getattr(d, field_name)
            kept = tuple(x for x in items if x.id != entity_id)
            found = len(kept) != len(items)
            return replace(d, **{field_name: kept})

        self.update(apply)
        return found


class EmergencyInfoEditor:
    """Staged editing of EmergencyInfo.

    Field edits go to a working copy; the store only sees the result when
    save() runs, either directly or by toggling edit mode off.
    """

    def __init__(self, store: DomainStore):
        self.store = store
        self.is_editing = False
        self.working: EmergencyInfo = store.get().emergency_info

    def toggle_edit(self) -> bool:
        """Enter edit mode, or save and leave it. Returns the new mode."""
        if self.is_editing:
            self.save()
        else:
            self.working = self.store.get().emergency_info
            self.is_editing = True
        return self.is_editing

    def set_doctor(self, name: Optional[str] = None, phone: Optional[str] = None):
        doctor = self.working.primary_doctor
        self.working = replace(self.working, primary_doctor=PrimaryDoctor(
            name=doctor.name if name is None else name,
            phone=doctor.phone if phone is None else phone,
        ))

    def set_field(self, field_name: str, value: str):
        if field_name not in ("allergies", "conditions"):
            raise ValueError(f"Unknown emergency info field: {field_name}")
        self.working = replace(self.working, **{field_name: value})

    def add_contact(self, name: str, phone: str, relationship: str) -> EmergencyContact:
        contact = EmergencyContact(id=new_id(), name=name, phone=phone,
                                   relationship=relationship)
        self.working = replace(self.working, contacts=self.working.contacts + (contact,))
        return contact

    def remove_contact(self, contact_id: str):
        self.working = replace(self.working, contacts=tuple(
            c for c in self.working.contacts if c.id != contact_id
        ))

    def save(self):
        self.store.save_emergency_info(self.working)
        self.is_editing = False

    def cancel(self):
        self.working = self.store.get().emergency_info
        self.is_editing = False
