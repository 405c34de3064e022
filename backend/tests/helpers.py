from datetime import date, datetime, time

from sqlalchemy.orm import Session

from study_schedule.models.catalog import Combo, ComboCourse, Course, Lesson
from study_schedule.schemas.session import StudySessionCreate

# Saturday morning; the following Monday is 2024-06-03.
NOW = datetime(2024, 6, 1, 9, 0)
MONDAY = date(2024, 6, 3)
USER = "learner-1"
OTHER_USER = "learner-2"


def seed_catalog(db: Session) -> None:
    reading = Course(id="course-reading", title="Academic Reading", skill_focus="reading")
    listening = Course(id="course-listening", title="Listening Drills", skill_focus="listening")
    writing = Course(id="course-writing", title="Task 2 Essays", skill_focus="writing")
    combo = Combo(id="combo-ielts", name="IELTS 7.0 Pack", target_band_range="6.5-7.0")
    combo.course_links = [
        ComboCourse(course_id=reading.id, position=0),
        ComboCourse(course_id=listening.id, position=1),
        ComboCourse(course_id=writing.id, position=2),
    ]
    empty_combo = Combo(id="combo-empty", name="Coming soon")
    lesson = Lesson(id="lesson-skimming", course_id=reading.id, title="Skimming", lesson_type="video")
    db.add_all([reading, listening, writing, combo, empty_combo, lesson])
    db.commit()


def session_payload(**overrides) -> StudySessionCreate:
    data = {
        "course_id": "course-reading",
        "combo_id": "combo-ielts",
        "scheduled_date": MONDAY,
        "start_time": time(18, 0),
        "end_time": time(19, 30),
    }
    data.update(overrides)
    return StudySessionCreate(**data)
