from datetime import date, time

import pytest

from study_schedule.core.errors import InvalidArgument, InvalidRange
from study_schedule.services.time_slots import TimeSlot, parse_time, parse_weekday


def test_parse_weekday_accepts_names_abbreviations_and_indexes():
    assert parse_weekday("Monday") == 0
    assert parse_weekday("wed") == 2
    assert parse_weekday(6) == 6
    assert parse_weekday("4") == 4


@pytest.mark.parametrize("value", [7, -1, "funday", True])
def test_parse_weekday_rejects_unknown_days(value):
    with pytest.raises(InvalidArgument):
        parse_weekday(value)


def test_parse_time_requires_hh_mm():
    assert parse_time("07:45") == time(7, 45)
    with pytest.raises(InvalidArgument):
        parse_time("7pm")


def test_time_slot_rejects_inverted_or_empty_range():
    with pytest.raises(InvalidRange):
        TimeSlot.build("monday", "19:00", "18:00")
    with pytest.raises(InvalidRange):
        TimeSlot.build("monday", "18:00", "18:00")


def test_occurrence_on_start_weekday_uses_start_date():
    # 2024-06-03 is a Monday
    slot = TimeSlot.build("monday", "18:00", "19:30")

    assert slot.occurrence(date(2024, 6, 3)).scheduled_date == date(2024, 6, 3)
    assert slot.occurrence(date(2024, 6, 3), week_offset=2).scheduled_date == date(2024, 6, 17)
    assert slot.duration_minutes == 90
    assert slot.day_name == "monday"


def test_occurrence_moves_to_next_matching_weekday():
    wednesday = TimeSlot.build(2, "09:00", "10:00")
    sunday = TimeSlot.build("sun", "09:00", "10:00")

    # starting on a Thursday, the next Wednesday is six days later
    assert wednesday.occurrence(date(2024, 6, 6)).scheduled_date == date(2024, 6, 12)
    assert sunday.occurrence(date(2024, 6, 3), week_offset=1).scheduled_date == date(2024, 6, 16)
