from study_schedule.models.catalog import Combo, ComboCourse, Course, Lesson
from study_schedule.models.schedule_lock import UserScheduleLock
from study_schedule.models.study_reminder import ReminderStatus, StudyReminder
from study_schedule.models.study_session import SessionStatus, StudySession

__all__ = [
    "Combo",
    "ComboCourse",
    "Course",
    "Lesson",
    "ReminderStatus",
    "StudyReminder",
    "SessionStatus",
    "StudySession",
    "UserScheduleLock",
]
