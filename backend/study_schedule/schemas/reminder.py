from datetime import date, datetime, time

from pydantic import BaseModel

from study_schedule.models.study_reminder import ReminderStatus
from study_schedule.schemas.catalog import CourseSummary


class StudyReminderBrief(BaseModel):
    id: str
    title: str
    message: str
    scheduled_time: datetime
    status: ReminderStatus
    is_read: bool

    class Config:
        from_attributes = True


class ReminderSessionSummary(BaseModel):
    id: str
    course_id: str
    scheduled_date: date
    start_time: time
    study_goal: str | None = None
    course: CourseSummary | None = None


class StudyReminderPublic(StudyReminderBrief):
    user_id: str
    schedule_id: str
    created_at: datetime
    updated_at: datetime
    schedule: ReminderSessionSummary | None = None
