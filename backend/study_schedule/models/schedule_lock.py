from datetime import datetime

from sqlalchemy import Column, DateTime, String

from study_schedule.db.base import Base


class UserScheduleLock(Base):
    """One row per user; writers upsert it to serialize that user's schedule changes.

    The row lock is held until the writing transaction ends, so the
    check-then-insert for overlaps is atomic across processes.
    """

    __tablename__ = "user_schedule_locks"

    user_id = Column(String(64), primary_key=True)
    acquired_at = Column(DateTime, nullable=False, default=datetime.utcnow)
