"""
Command Dispatcher

Applies Intents to the DomainStore one at a time, in the order the
interpreter produced them. Each intent yields one announcement which goes
to the speech sink and the visual announcer. Validation failures never
raise; they become apology announcements.
"""

from dataclasses import replace
from datetime import date
from typing import Callable, Iterable, List, Optional

from carevoice.intents import (
    AddAppointment, AddMedication, GetDailySummary, Intent,
    MarkMedicationTaken, Navigate, Speak, Unrecognized,
)
from carevoice.logger import get_logger
from carevoice.models import (
    Appointment, CareData, Medication, View, new_id, normalize_date,
    normalize_time, untaken,
)
from carevoice.store import PersistenceError


MEDICATION_DETAILS_MISSING = (
    "I'm sorry, I didn't get all the details for the medication. Please try again."
)
APPOINTMENT_DETAILS_MISSING = (
    "I'm sorry, I didn't get all the details for the appointment. Please try again."
)
UNRECOGNIZED_MESSAGE = "Sorry, I'm not sure how to do that."
SAVE_FAILED_MESSAGE = "I'm sorry, I couldn't save that. Please try again."


def _spoken_date(d: date) -> str:
    """'Tuesday, October 20': weekday, month name and day."""
    return f"{d.strftime('%A, %B')} {d.day}"


def daily_summary(data: CareData, today: Optional[date] = None) -> str:
    """Untaken medication count plus the next appointment on or after today."""
    today = today or date.today()

    remaining = len(untaken(data.medications))
    if remaining > 0:
        summary = f"You have {remaining} medications left today. "
    else:
        summary = "You have taken all your medications for today. "

    upcoming = []
    for appt in data.appointments:
        appt_date = appt.on_date()
        if appt_date is not None and appt_date >= today:
            upcoming.append((appt_date, appt.time, appt))
    upcoming.sort(key=lambda item: (item[0], item[1]))

    if upcoming:
        appt_date, _, appt = upcoming[0]
        summary += (f"Your next appointment is {appt.title} on "
                    f"{_spoken_date(appt_date)} at {appt.time}.")
    else:
        summary += "You have no upcoming appointments."
    return summary


class CommandDispatcher:
    """Applies intents sequentially and announces the outcome of each."""

    def __init__(self, store, speaker=None, announcer=None, config=None,
                 on_navigate: Optional[Callable[[View], None]] = None,
                 today: Optional[Callable[[], date]] = None):
        self.store = store
        self.speaker = speaker
        self.announcer = announcer
        self.on_navigate = on_navigate
        self._today = today or date.today
        self.logger = get_logger(__name__, config)

        self.current_view = View.DASHBOARD

        self._handlers = {
            Navigate: self._navigate,
            AddMedication: self._add_medication,
            MarkMedicationTaken: self._mark_medication_taken,
            AddAppointment: self._add_appointment,
            GetDailySummary: self._daily_summary,
            Speak: self._speak,
            Unrecognized: self._unrecognized,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def dispatch(self, intents: Iterable[Intent]) -> List[str]:
        """Apply intents in order. Returns the announcement for each."""
        announcements = []
        for intent in intents:
            announcements.append(self.dispatch_one(intent))
        return announcements

    def dispatch_one(self, intent: Intent) -> str:
        """Apply one intent, emit its announcement and return it."""
        self.logger.info(f"Executing intent: {intent!r}")
        handler = self._handlers.get(type(intent), self._unrecognized)
        try:
            announcement = handler(intent)
        except PersistenceError:
            announcement = SAVE_FAILED_MESSAGE
        if announcement:
            self._emit(announcement)
        return announcement

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _navigate(self, intent: Navigate) -> str:
        view = View.parse(intent.view)
        if view is None:
            return f"Sorry, I can't navigate to {intent.view}."
        self.current_view = view
        if self.on_navigate:
            self.on_navigate(view)
        return f"Navigating to {view.value.lower()}."

    def _add_medication(self, intent: AddMedication) -> str:
        hhmm = normalize_time(intent.time)
        if not (intent.name and intent.dosage and hhmm):
            return MEDICATION_DETAILS_MISSING
        med = Medication(id=new_id(), name=intent.name, dosage=intent.dosage,
                         time=hhmm, taken=False)
        self.store.update(lambda d: d.with_medications(d.medications + (med,)))
        return f"Okay, I've added {intent.name} to your schedule at {hhmm}."

    def _mark_medication_taken(self, intent: MarkMedicationTaken) -> str:
        wanted = (intent.name or "").strip().lower()
        found = False

        def apply(d: CareData) -> CareData:
            nonlocal found
            meds = list(d.medications)
            for i, med in enumerate(meds):
                if not med.taken and med.name.lower() == wanted:
                    meds[i] = replace(med, taken=True)
                    found = True
                    break
            return replace(d, medications=tuple(meds)) if found else d

        if wanted:
            self.store.update(apply)
        if found:
            return f"Okay, I've marked {intent.name} as taken."
        return f"I couldn't find an untaken medication named {intent.name or ''}."

    def _add_appointment(self, intent: AddAppointment) -> str:
        day = normalize_date(intent.date)
        hhmm = normalize_time(intent.time)
        if not (intent.title and day and hhmm):
            return APPOINTMENT_DETAILS_MISSING
        appt = Appointment(id=new_id(), title=intent.title, date=day,
                           time=hhmm, location=intent.location or "", notes="")
        self.store.update(lambda d: d.with_appointments(d.appointments + (appt,)))
        return f"Okay, I've scheduled {intent.title} for {day} at {hhmm}."

    def _daily_summary(self, intent: GetDailySummary) -> str:
        return daily_summary(self.store.get(), self._today())

    def _speak(self, intent: Speak) -> str:
        return intent.message

    def _unrecognized(self, intent) -> str:
        self.logger.warning(f"Unrecognized intent: {intent!r}")
        return UNRECOGNIZED_MESSAGE

    # ------------------------------------------------------------------

    def _emit(self, announcement: str):
        """Hand the announcement to both sinks; a failing sink doesn't stop the other."""
        for sink, method in ((self.speaker, "speak"), (self.announcer, "announce")):
            if sink is None:
                continue
            try:
                getattr(sink, method)(announcement)
            except Exception as e:
                self.logger.error(f"{type(sink).__name__}.{method} failed: {e}")
