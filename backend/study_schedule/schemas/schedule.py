from datetime import date, time
from typing import Literal

from pydantic import BaseModel, Field

from study_schedule.schemas.session import StudySessionPublic


class TimeSlotIn(BaseModel):
    day: str | int = Field(..., description="Weekday name, abbreviation or 0-6 (Monday=0)")
    start_time: time
    end_time: time


class BulkScheduleCreate(BaseModel):
    combo_id: str
    weeks_count: int
    time_slots: list[TimeSlotIn]
    # Defaults to the combo's courses in order when omitted.
    course_id: str | None = None
    start_date: date | None = None
    study_goal: str | None = None
    reminder_enabled: bool = False
    reminder_minutes_before: int | None = None


class SkippedSlotPublic(BaseModel):
    day: str
    start_time: time
    end_time: time
    week_offset: int
    scheduled_date: date
    reason: Literal["overlap", "in_past"]


class BulkSchedulePublic(BaseModel):
    created_count: int
    schedules: list[StudySessionPublic]
    skipped: list[SkippedSlotPublic]


class WeeklyScheduleSummary(BaseModel):
    week_start: date
    week_end: date
    total_sessions: int
    completed_sessions: int
    missed_sessions: int
    total_planned_hours: float
    total_actual_hours: float
    completion_rate: float
    schedules: list[StudySessionPublic]
