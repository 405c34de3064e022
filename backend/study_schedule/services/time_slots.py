"""Recurring weekly slots and the concrete dated occurrences derived from them."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from study_schedule.core.errors import InvalidArgument, InvalidRange

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def parse_weekday(value: str | int) -> int:
    """Return 0-6 (Monday=0) for an index, a full day name or a 3-letter abbreviation."""
    if isinstance(value, bool):
        raise InvalidArgument(f"Invalid day: {value!r}")
    if isinstance(value, int):
        if 0 <= value <= 6:
            return value
        raise InvalidArgument(f"Invalid day: {value}. Must be between 0 (Monday) and 6 (Sunday)")
    name = str(value).strip().lower()
    if name.isdigit():
        return parse_weekday(int(name))
    for index, day_name in enumerate(WEEKDAYS):
        if name == day_name or name == day_name[:3]:
            return index
    raise InvalidArgument(f"Invalid day: {value!r}")


def parse_time(value: str | time) -> time:
    """Parse time string in HH:MM format to time object."""
    if isinstance(value, time):
        return value
    try:
        parts = value.split(":")
        if len(parts) != 2:
            raise ValueError(value)
        return time(hour=int(parts[0]), minute=int(parts[1]))
    except (ValueError, AttributeError) as exc:
        raise InvalidArgument(f"Invalid time format: {value!r}. Must be HH:MM") from exc


def minutes_between(start: time, end: time) -> int:
    start_minutes = start.hour * 60 + start.minute
    end_minutes = end.hour * 60 + end.minute
    return end_minutes - start_minutes


def validate_range(start: time, end: time) -> None:
    if start >= end:
        raise InvalidRange(
            f"start_time ({start.strftime('%H:%M')}) must be before end_time ({end.strftime('%H:%M')})"
        )


@dataclass(frozen=True)
class SlotOccurrence:
    scheduled_date: date
    start_time: time
    end_time: time

    @property
    def start_datetime(self) -> datetime:
        return datetime.combine(self.scheduled_date, self.start_time)

    @property
    def end_datetime(self) -> datetime:
        return datetime.combine(self.scheduled_date, self.end_time)


@dataclass(frozen=True)
class TimeSlot:
    day: int
    start_time: time
    end_time: time

    def __post_init__(self) -> None:
        validate_range(self.start_time, self.end_time)

    @classmethod
    def build(cls, day: str | int, start_time: str | time, end_time: str | time) -> TimeSlot:
        return cls(parse_weekday(day), parse_time(start_time), parse_time(end_time))

    @property
    def day_name(self) -> str:
        return WEEKDAYS[self.day]

    @property
    def duration_minutes(self) -> int:
        return minutes_between(self.start_time, self.end_time)

    def occurrence(self, start_date: date, week_offset: int = 0) -> SlotOccurrence:
        """First ``day`` on or after ``start_date``, moved forward ``week_offset`` weeks."""
        days_ahead = (self.day - start_date.weekday()) % 7
        anchor = start_date + timedelta(days=days_ahead)
        return SlotOccurrence(
            scheduled_date=anchor + timedelta(weeks=week_offset),
            start_time=self.start_time,
            end_time=self.end_time,
        )
