"""
Reminder Scheduler

Background evaluator that reads the DomainStore on a fixed cadence and
fires medication and appointment reminders (desktop notification plus a
spoken utterance).

Each (kind, id) pair fires at most once per local calendar day. The
"already notified" set lives on the scheduler instance: created empty,
cleared when a tick sees a new date, gone when the scheduler is. It is
never persisted, so a restart can repeat a reminder shown earlier today.

A due minute is only caught if a tick lands inside it. A stall that
spans the whole minute skips that reminder; nothing fires retroactively.
"""

import threading
from datetime import date, datetime, timedelta
from typing import Callable, Dict, List, Optional, Set, Tuple

from carevoice.logger import get_logger


MEDICATION_TITLE = "Medication Reminder"
APPOINTMENT_TITLE = "Appointment Reminder"

DedupKey = Tuple[str, str]


class ReminderScheduler:
    """Polls the store and emits reminders exactly once per entity per day."""

    def __init__(self, store, notifier=None, speaker=None, config=None,
                 clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.notifier = notifier
        self.speaker = speaker
        self.config = config
        self.logger = get_logger(__name__, config)
        self.clock = clock or datetime.now

        self.enabled = config.get("reminders.enabled", True) if config else True
        self.tick_interval = config.get("reminders.tick_interval_seconds", 30) if config else 30
        lead = config.get("reminders.appointment_lead_minutes", 15) if config else 15
        self.lead = timedelta(minutes=lead)

        self._notified: Set[DedupKey] = set()
        self._last_checked_day: Optional[date] = None

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def tick(self, now: Optional[datetime] = None) -> List[Dict]:
        """Run one evaluation pass. Returns the reminders fired by it."""
        now = (now or self.clock()).replace(second=0, microsecond=0)
        today = now.date()
        current_time = now.strftime("%H:%M")

        if self._last_checked_day != today:
            if self._notified:
                self.logger.debug(f"Day rollover to {today}, clearing {len(self._notified)} keys")
            self._notified.clear()
            self._last_checked_day = today

        data = self.store.get()
        fired = []

        for med in data.medications:
            key = ("med", med.id)
            if med.time == current_time and not med.taken and key not in self._notified:
                body = f"It's time to take your {med.name} ({med.dosage})."
                fired.append(self._fire(key, MEDICATION_TITLE, body))

        lead_minutes = int(self.lead.total_seconds() // 60)
        for appt in data.appointments:
            start = appt.starts_at()
            if start is None:
                self.logger.warning(
                    f"Skipping appointment {appt.id!r} with unparseable "
                    f"date/time {appt.date!r} {appt.time!r}"
                )
                continue
            remind_at = start - self.lead
            key = ("appt", appt.id)
            if (remind_at.date() == today
                    and remind_at.strftime("%H:%M") == current_time
                    and key not in self._notified):
                body = (f"Your appointment \"{appt.title}\" is in "
                        f"{lead_minutes} minutes at {appt.time}.")
                fired.append(self._fire(key, APPOINTMENT_TITLE, body))

        return fired

    def _fire(self, key: DedupKey, title: str, body: str) -> Dict:
        """Emit one reminder. Sink failures are logged; the key is recorded regardless."""
        tag = f"{key[0]}-{key[1]}"
        self.logger.info(f"Firing reminder {tag}: {body}")
        self._notified.add(key)

        if self.notifier is not None:
            try:
                self.notifier.notify(title, body, tag)
            except Exception as e:
                self.logger.error(f"Notification failed for {tag}: {e}")
        if self.speaker is not None:
            try:
                self.speaker.speak(body)
            except Exception as e:
                self.logger.error(f"Speech failed for {tag}: {e}")

        return {"kind": key[0], "id": key[1], "title": title, "body": body, "tag": tag}

    def has_notified(self, kind: str, entity_id: str) -> bool:
        return (kind, entity_id) in self._notified

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self):
        """Start the polling thread."""
        if not self.enabled:
            self.logger.info("Reminder scheduler disabled in config")
            return
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._poll_loop, daemon=True,
                                        name="reminder-poll")
        self._thread.start()
        self.logger.info(f"Reminder polling started (every {self.tick_interval}s)")

    def stop(self):
        """Stop the polling thread and drop the dedup state."""
        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=10)
            self._thread = None
        self._notified.clear()
        self._last_checked_day = None
        self.logger.info("Reminder scheduler stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _poll_loop(self):
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception as e:
                self.logger.error(f"Reminder poll error: {e}")
            self._stop_event.wait(self.tick_interval)
