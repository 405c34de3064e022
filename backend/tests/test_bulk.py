import threading
from datetime import date, datetime, time, timedelta

import pytest

from helpers import MONDAY, NOW, USER, session_payload
from study_schedule.core.errors import InvalidArgument, NotFound, OperationCancelled
from study_schedule.models.study_reminder import StudyReminder
from study_schedule.models.study_session import StudySession
from study_schedule.schemas.schedule import BulkScheduleCreate
from study_schedule.services.bulk import BulkGenerator
from study_schedule.services.lifecycle import SessionLifecycle


def _bulk_request(**overrides) -> BulkScheduleCreate:
    data = {
        "combo_id": "combo-ielts",
        "weeks_count": 3,
        "start_date": MONDAY,
        "time_slots": [
            {"day": "monday", "start_time": "18:00", "end_time": "19:30"},
            {"day": "wednesday", "start_time": "18:00", "end_time": "19:30"},
        ],
    }
    data.update(overrides)
    return BulkScheduleCreate(**data)


def test_generate_skips_overlapping_candidates(store, settings, db_session):
    # week 2 wednesday is already taken
    SessionLifecycle(store, settings).create(
        USER,
        session_payload(
            scheduled_date=date(2024, 6, 12), start_time=time(18, 30), end_time=time(19)
        ),
        now=NOW,
    )

    result = BulkGenerator(store, settings).generate(USER, _bulk_request(), now=NOW)

    assert result.created_count == 5
    assert len(result.skipped) == 1
    skipped = result.skipped[0]
    assert skipped.reason == "overlap"
    assert skipped.week_offset == 1
    assert skipped.scheduled_date == date(2024, 6, 12)
    assert [s.scheduled_date for s in result.created] == [
        date(2024, 6, 3),
        date(2024, 6, 5),
        date(2024, 6, 10),
        date(2024, 6, 17),
        date(2024, 6, 19),
    ]
    assert all(s.duration == 90 for s in result.created)
    assert db_session.query(StudySession).count() == 6


def test_generate_is_idempotent_on_rerun(store, settings, db_session):
    generator = BulkGenerator(store, settings)
    first = generator.generate(USER, _bulk_request(), now=NOW)
    second = generator.generate(USER, _bulk_request(), now=NOW)

    assert first.created_count == 6
    assert second.created_count == 0
    assert {skipped.reason for skipped in second.skipped} == {"overlap"}
    assert len(second.skipped) == 6
    assert db_session.query(StudySession).count() == 6


def test_generate_rotates_combo_courses(store, settings):
    result = BulkGenerator(store, settings).generate(USER, _bulk_request(weeks_count=2), now=NOW)

    assert [s.course_id for s in result.created] == [
        "course-reading",
        "course-listening",
        "course-writing",
        "course-reading",
    ]
    assert all(s.combo_id == "combo-ielts" for s in result.created)


def test_generate_uses_explicit_course(store, settings):
    result = BulkGenerator(store, settings).generate(
        USER, _bulk_request(weeks_count=1, course_id="course-writing"), now=NOW
    )

    assert {s.course_id for s in result.created} == {"course-writing"}


def test_generate_skips_slots_already_in_the_past(store, settings):
    # Wednesday evening of the first week
    now = datetime(2024, 6, 5, 20, 0)

    result = BulkGenerator(store, settings).generate(USER, _bulk_request(weeks_count=2), now=now)

    assert result.created_count == 2
    assert [(s.reason, s.scheduled_date) for s in result.skipped] == [
        ("in_past", date(2024, 6, 3)),
        ("in_past", date(2024, 6, 5)),
    ]


def test_generate_registers_reminders(store, settings, db_session):
    result = BulkGenerator(store, settings).generate(
        USER,
        _bulk_request(weeks_count=1, reminder_enabled=True, reminder_minutes_before=45),
        now=NOW,
    )

    reminders = db_session.query(StudyReminder).order_by(StudyReminder.scheduled_time).all()
    assert len(reminders) == result.created_count == 2
    assert reminders[0].scheduled_time == datetime(2024, 6, 3, 17, 15)
    assert reminders[0].user_id == USER


def test_generate_keeps_session_when_reminder_would_fire_in_the_past(store, settings, db_session):
    now = datetime(2024, 6, 3, 17, 50)

    result = BulkGenerator(store, settings).generate(
        USER,
        _bulk_request(weeks_count=1, reminder_enabled=True, reminder_minutes_before=30),
        now=now,
    )

    assert result.created_count == 2
    # only the Wednesday reminder can still fire
    assert db_session.query(StudyReminder).count() == 1


@pytest.mark.parametrize("weeks_count", [0, 53])
def test_generate_rejects_out_of_range_weeks(store, settings, db_session, weeks_count):
    with pytest.raises(InvalidArgument):
        BulkGenerator(store, settings).generate(
            USER, _bulk_request(weeks_count=weeks_count), now=NOW
        )
    assert db_session.query(StudySession).count() == 0


def test_generate_rejects_empty_or_invalid_slots(store, settings, db_session):
    generator = BulkGenerator(store, settings)
    with pytest.raises(InvalidArgument):
        generator.generate(USER, _bulk_request(time_slots=[]), now=NOW)
    with pytest.raises(InvalidArgument):
        generator.generate(
            USER,
            _bulk_request(
                time_slots=[
                    {"day": "monday", "start_time": "18:00", "end_time": "19:00"},
                    {"day": "noday", "start_time": "18:00", "end_time": "19:00"},
                ]
            ),
            now=NOW,
        )
    # validation happens before any write
    assert db_session.query(StudySession).count() == 0


def test_generate_requires_known_combo_with_courses(store, settings):
    generator = BulkGenerator(store, settings)
    with pytest.raises(NotFound):
        generator.generate(USER, _bulk_request(combo_id="combo-missing"), now=NOW)
    with pytest.raises(InvalidArgument):
        generator.generate(USER, _bulk_request(combo_id="combo-empty"), now=NOW)


def test_generate_stops_when_cancelled(store, settings, db_session):
    cancel_event = threading.Event()
    cancel_event.set()

    with pytest.raises(OperationCancelled) as excinfo:
        BulkGenerator(store, settings).generate(
            USER, _bulk_request(), now=NOW, cancel_event=cancel_event
        )

    assert excinfo.value.context["created_count"] == 0
    assert db_session.query(StudySession).count() == 0


def test_generate_defaults_start_date_to_today(store, settings):
    result = BulkGenerator(store, settings).generate(
        USER, _bulk_request(start_date=None, weeks_count=1), now=NOW
    )

    # NOW is a Saturday; both slots land in the following week
    assert [s.scheduled_date for s in result.created] == [
        NOW.date() + timedelta(days=2),
        NOW.date() + timedelta(days=4),
    ]
