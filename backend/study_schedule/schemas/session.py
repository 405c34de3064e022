from datetime import date, datetime, time

from pydantic import BaseModel, Field

from study_schedule.models.study_session import SessionStatus
from study_schedule.schemas.catalog import ComboSummary, CourseSummary, LessonSummary
from study_schedule.schemas.reminder import StudyReminderBrief


class StudySessionCreate(BaseModel):
    course_id: str
    scheduled_date: date
    start_time: time
    end_time: time
    combo_id: str | None = None
    lesson_id: str | None = None
    study_goal: str | None = None
    notes: str | None = None
    reminder_enabled: bool = False
    # Falls back to the configured default lead time when reminders are on.
    reminder_minutes_before: int | None = None


class StudySessionUpdate(BaseModel):
    combo_id: str | None = None
    course_id: str | None = None
    lesson_id: str | None = None
    scheduled_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    study_goal: str | None = None
    notes: str | None = None
    reminder_enabled: bool | None = None
    reminder_minutes_before: int | None = None


class StudySessionComplete(BaseModel):
    completion_percentage: int = Field(..., description="0-100")


class StudySessionPublic(BaseModel):
    id: str
    user_id: str
    combo_id: str | None
    course_id: str
    lesson_id: str | None
    scheduled_date: date
    start_time: time
    end_time: time
    duration: int
    study_goal: str | None
    notes: str | None
    status: SessionStatus
    completion_percentage: int
    reminder_enabled: bool
    reminder_minutes_before: int | None
    reminder_sent: bool
    created_at: datetime
    updated_at: datetime
    combo: ComboSummary | None = None
    course: CourseSummary | None = None
    lesson: LessonSummary | None = None
    reminders: list[StudyReminderBrief] = []

    class Config:
        from_attributes = True
