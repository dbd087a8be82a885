"""
Tests for CommandDispatcher: per-intent effects, announcements, ordering
and the daily summary.
"""

import sqlite3
from datetime import date

import pytest

from carevoice.dispatcher import (
    APPOINTMENT_DETAILS_MISSING, MEDICATION_DETAILS_MISSING, SAVE_FAILED_MESSAGE,
    UNRECOGNIZED_MESSAGE, CommandDispatcher, daily_summary,
)
from carevoice.intents import (
    AddAppointment, AddMedication, GetDailySummary, MarkMedicationTaken,
    Navigate, Speak, Unrecognized,
)
from carevoice.models import View
from carevoice.store import DomainStore

from conftest import RecordingAnnouncer, RecordingSpeaker

TODAY = date(2026, 10, 19)  # a Monday


@pytest.fixture
def dispatcher(store, speaker, announcer, config):
    return CommandDispatcher(store, speaker, announcer, config, today=lambda: TODAY)


def test_navigate_known_view(dispatcher):
    seen = []
    dispatcher.on_navigate = seen.append

    msg = dispatcher.dispatch_one(Navigate("medications"))

    assert msg == "Navigating to medications."
    assert dispatcher.current_view is View.MEDICATIONS
    assert seen == [View.MEDICATIONS]


def test_navigate_unknown_view_keeps_current(dispatcher):
    msg = dispatcher.dispatch_one(Navigate("GARDEN"))

    assert msg == "Sorry, I can't navigate to GARDEN."
    assert dispatcher.current_view is View.DASHBOARD


def test_add_medication_inserts_sorted_and_untaken(dispatcher, store):
    store.add_medication("Evening pill", "1 pill", "21:00")

    msg = dispatcher.dispatch_one(AddMedication("Aspirin", "1 pill", "08:00"))

    assert msg == "Okay, I've added Aspirin to your schedule at 08:00."
    meds = store.get().medications
    assert [m.name for m in meds] == ["Aspirin", "Evening pill"]
    assert meds[0].taken is False


@pytest.mark.parametrize("intent", [
    AddMedication(None, "1 pill", "08:00"),
    AddMedication("Aspirin", "", "08:00"),
    AddMedication("Aspirin", "1 pill", None),
])
def test_add_medication_missing_fields(dispatcher, store, intent):
    assert dispatcher.dispatch_one(intent) == MEDICATION_DETAILS_MISSING
    assert store.get().medications == ()


def test_mark_taken_flips_only_first_untaken_match(dispatcher, store):
    already = store.add_medication("Metformin", "500mg", "07:00")
    store.set_medication_taken(already.id, True)
    morning = store.add_medication("Metformin", "500mg", "08:00")
    evening = store.add_medication("Metformin", "500mg", "19:00")

    msg = dispatcher.dispatch_one(MarkMedicationTaken("METFORMIN"))

    assert msg == "Okay, I've marked METFORMIN as taken."
    taken = {m.id: m.taken for m in store.get().medications}
    assert taken == {already.id: True, morning.id: True, evening.id: False}


def test_mark_taken_requires_exact_name(dispatcher, store):
    store.add_medication("Vitamin D", "1 pill", "08:00")

    msg = dispatcher.dispatch_one(MarkMedicationTaken("Vitamin"))

    assert msg == "I couldn't find an untaken medication named Vitamin."
    assert store.get().medications[0].taken is False


def test_mark_taken_when_all_taken(dispatcher, store):
    med = store.add_medication("Aspirin", "1 pill", "08:00")
    store.set_medication_taken(med.id, True)

    msg = dispatcher.dispatch_one(MarkMedicationTaken("aspirin"))
    assert msg == "I couldn't find an untaken medication named aspirin."


def test_add_appointment_inserts_sorted_with_defaults(dispatcher, store):
    store.add_appointment("Checkup", "2026-11-02", "09:00")

    msg = dispatcher.dispatch_one(AddAppointment("Dentist", "2026-10-25", "15:00", None))

    assert msg == "Okay, I've scheduled Dentist for 2026-10-25 at 15:00."
    first = store.get().appointments[0]
    assert (first.title, first.location, first.notes) == ("Dentist", "", "")


def test_add_appointment_keeps_location(dispatcher, store):
    dispatcher.dispatch_one(AddAppointment("Dentist", "2026-10-25", "15:00", "Main St"))
    assert store.get().appointments[0].location == "Main St"


def test_add_appointment_missing_fields(dispatcher, store):
    msg = dispatcher.dispatch_one(AddAppointment("Dentist", None, "15:00"))
    assert msg == APPOINTMENT_DETAILS_MISSING
    assert store.get().appointments == ()


def test_speak_is_verbatim_and_unrecognized_apologizes(dispatcher):
    assert dispatcher.dispatch_one(Speak("Hello there!")) == "Hello there!"
    assert dispatcher.dispatch_one(Unrecognized("order_pizza", {})) == UNRECOGNIZED_MESSAGE


def test_announcements_go_to_both_sinks_in_order(dispatcher, speaker, announcer):
    announcements = dispatcher.dispatch([
        AddMedication("Aspirin", "1 pill", "08:00"),
        MarkMedicationTaken("Aspirin"),
        Speak("Done."),
    ])

    assert announcements == [
        "Okay, I've added Aspirin to your schedule at 08:00.",
        "Okay, I've marked Aspirin as taken.",
        "Done.",
    ]
    assert speaker.spoken == announcements
    assert announcer.announced == announcements


def test_empty_announcement_is_not_emitted(dispatcher, speaker, announcer):
    assert dispatcher.dispatch_one(Speak("")) == ""
    assert speaker.spoken == []
    assert announcer.announced == []


def test_failing_speaker_does_not_block_announcer_or_batch(store, config):
    announcer = RecordingAnnouncer()
    dispatcher = CommandDispatcher(store, RecordingSpeaker(fail=True), announcer, config)

    dispatcher.dispatch([AddMedication("Aspirin", "1 pill", "08:00"), Speak("Done.")])

    assert len(store.get().medications) == 1
    assert announcer.announced[-1] == "Done."


def test_daily_summary_counts_untaken_and_names_next_appointment(dispatcher, store):
    store.add_medication("Aspirin", "1 pill", "08:00")
    store.add_medication("Metformin", "500mg", "19:00")
    taken = store.add_medication("Vitamin D", "1 pill", "07:00")
    store.set_medication_taken(taken.id, True)
    store.add_appointment("Old visit", "2026-10-01", "10:00")
    store.add_appointment("Checkup", "2026-11-02", "09:00")
    store.add_appointment("Dentist", "2026-10-20", "15:00")

    msg = dispatcher.dispatch_one(GetDailySummary())

    assert "2" in msg and "Dentist" in msg
    assert msg == ("You have 2 medications left today. Your next appointment is "
                   "Dentist on Tuesday, October 20 at 15:00.")


def test_daily_summary_all_taken_and_nothing_upcoming(store):
    med = store.add_medication("Aspirin", "1 pill", "08:00")
    store.set_medication_taken(med.id, True)
    store.add_appointment("Old visit", "2026-10-01", "10:00")
    store.add_appointment("Broken", "", "10:00")

    assert daily_summary(store.get(), TODAY) == (
        "You have taken all your medications for today. "
        "You have no upcoming appointments."
    )


def test_daily_summary_includes_appointment_later_today(store):
    store.add_appointment("Physio", "2026-10-19", "16:00")
    assert "Physio on Monday, October 19 at 16:00" in daily_summary(store.get(), TODAY)


def test_add_medication_pads_hour_so_order_and_reminders_hold(dispatcher, store):
    dispatcher.dispatch_one(AddMedication("Aspirin", "1 pill", "10:00"))
    msg = dispatcher.dispatch_one(AddMedication("Zinc", "1 tablet", "8:00"))

    assert msg == "Okay, I've added Zinc to your schedule at 08:00."
    assert [m.time for m in store.get().medications] == ["08:00", "10:00"]


@pytest.mark.parametrize("bad_time", ["8am", "noon", "24:30"])
def test_add_medication_unparseable_time_apologizes(dispatcher, store, bad_time):
    msg = dispatcher.dispatch_one(AddMedication("Aspirin", "1 pill", bad_time))
    assert msg == MEDICATION_DETAILS_MISSING
    assert store.get().medications == ()


def test_add_appointment_normalizes_date_and_time(dispatcher, store):
    msg = dispatcher.dispatch_one(AddAppointment("Dentist", "2026-10-5", "9:15"))

    assert msg == "Okay, I've scheduled Dentist for 2026-10-05 at 09:15."
    appt = store.get().appointments[0]
    assert (appt.date, appt.time) == ("2026-10-05", "09:15")


@pytest.mark.parametrize("day, at", [("tomorrow", "15:00"), ("2026-10-25", "3pm")])
def test_add_appointment_unparseable_apologizes(dispatcher, store, day, at):
    msg = dispatcher.dispatch_one(AddAppointment("Dentist", day, at))
    assert msg == APPOINTMENT_DETAILS_MISSING
    assert store.get().appointments == ()


class LockedKV:
    def get(self, key, default=None):
        return default

    def set(self, key, value):
        raise sqlite3.OperationalError("database is locked")


def test_save_failure_is_announced_and_batch_continues(config, speaker, announcer):
    store = DomainStore(LockedKV(), config)
    dispatcher = CommandDispatcher(store, speaker, announcer, config, today=lambda: TODAY)

    announcements = dispatcher.dispatch([
        AddMedication("Aspirin", "1 pill", "08:00"),
        AddAppointment("Dentist", "2026-10-25", "15:00"),
        GetDailySummary(),
    ])

    assert announcements[:2] == [SAVE_FAILED_MESSAGE, SAVE_FAILED_MESSAGE]
    assert announcements[2] == (
        "You have taken all your medications for today. "
        "You have no upcoming appointments."
    )
    assert speaker.spoken == announcements
    assert store.get().medications == () and store.get().appointments == ()
