import uuid
from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from study_schedule.db.base import Base


class ReminderStatus(str, PyEnum):
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    CANCELLED = "cancelled"  # owning session cancelled before delivery


class StudyReminder(Base):
    __tablename__ = "study_reminders"
    __table_args__ = (
        Index("ix_study_reminders_status_time", "status", "scheduled_time"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(64), nullable=False, index=True)
    # Not cascade-owned: a reminder may outlive a cancelled session for audit.
    schedule_id = Column(String(36), ForeignKey("study_sessions.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    scheduled_time = Column(DateTime, nullable=False)
    status = Column(SQLEnum(ReminderStatus), nullable=False, default=ReminderStatus.PENDING)
    is_read = Column(Boolean, nullable=False, default=False)
    delivery_attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(String(512), nullable=True)
    sent_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    session = relationship("StudySession", back_populates="reminders")
