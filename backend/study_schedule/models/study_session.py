import uuid
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship

from study_schedule.db.base import Base


def _new_id() -> str:
    return str(uuid.uuid4())


class SessionStatus(str, PyEnum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    MISSED = "missed"
    CANCELLED = "cancelled"


class StudySession(Base):
    __tablename__ = "study_sessions"
    __table_args__ = (
        Index("ix_study_sessions_user_date", "user_id", "scheduled_date"),
    )

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(64), nullable=False, index=True)
    # Weak references: lookups only, no cascades into the catalogue.
    combo_id = Column(String(64), ForeignKey("combos.id", ondelete="SET NULL"), nullable=True)
    course_id = Column(String(64), ForeignKey("courses.id"), nullable=False)
    lesson_id = Column(String(64), ForeignKey("lessons.id", ondelete="SET NULL"), nullable=True)
    scheduled_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    duration = Column(Integer, nullable=False)  # minutes
    study_goal = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(SQLEnum(SessionStatus), nullable=False, default=SessionStatus.SCHEDULED)
    completion_percentage = Column(Integer, nullable=False, default=0)
    reminder_enabled = Column(Boolean, nullable=False, default=False)
    reminder_minutes_before = Column(Integer, nullable=True)
    reminder_sent = Column(Boolean, nullable=False, default=False)
    deleted_at = Column(DateTime, nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    __mapper_args__ = {"version_id_col": version}

    combo = relationship("Combo")
    course = relationship("Course")
    lesson = relationship("Lesson")
    reminders = relationship(
        "StudyReminder",
        back_populates="session",
        order_by="StudyReminder.scheduled_time",
    )

    @property
    def start_datetime(self) -> datetime:
        return datetime.combine(self.scheduled_date, self.start_time)

    @property
    def end_datetime(self) -> datetime:
        return datetime.combine(self.scheduled_date, self.end_time)
