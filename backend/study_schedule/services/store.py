"""Persistence for study sessions and reminders, always scoped by user."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from sqlalchemy import and_, or_
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.orm.exc import StaleDataError

from study_schedule.core.errors import ConcurrentModification, NotFound
from study_schedule.models.catalog import Combo, ComboCourse, Course, Lesson
from study_schedule.models.schedule_lock import UserScheduleLock
from study_schedule.models.study_reminder import ReminderStatus, StudyReminder
from study_schedule.models.study_session import SessionStatus, StudySession

logger = logging.getLogger(__name__)


@dataclass
class SessionFilter:
    """Optional filters for listing a user's sessions; ``None`` means unfiltered."""

    on_date: date | None = None
    week_of: date | None = None  # any date inside the target Monday-based week
    month: str | None = None  # "YYYY-MM"
    status: SessionStatus | None = None
    combo_id: str | None = None
    course_id: str | None = None


def week_bounds(day: date) -> tuple[date, date]:
    """Return (monday, sunday) of the week containing ``day``."""
    monday = day - timedelta(days=day.weekday())
    return monday, monday + timedelta(days=6)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    first = date(year, month, 1)
    next_first = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    return first, next_first - timedelta(days=1)


def _missed_clause(now: datetime):
    """SQL condition for a still-scheduled session whose end has passed."""
    today = now.date()
    return and_(
        StudySession.status == SessionStatus.SCHEDULED,
        or_(
            StudySession.scheduled_date < today,
            and_(
                StudySession.scheduled_date == today,
                StudySession.end_time <= now.time(),
            ),
        ),
    )


class ScheduleStore:
    def __init__(self, db: Session) -> None:
        self.db = db

    # Sessions

    def _sessions(self):
        return (
            self.db.query(StudySession)
            .options(
                joinedload(StudySession.course),
                joinedload(StudySession.combo),
                joinedload(StudySession.lesson),
            )
            .filter(StudySession.deleted_at.is_(None))
        )

    def get_session(self, user_id: str, session_id: str) -> StudySession | None:
        return (
            self._sessions()
            .filter(StudySession.id == session_id, StudySession.user_id == user_id)
            .first()
        )

    def require_session(self, user_id: str, session_id: str) -> StudySession:
        session = self.get_session(user_id, session_id)
        if not session:
            raise NotFound(f"Study session {session_id} not found", session_id=session_id)
        return session

    def sessions_on(self, user_id: str, scheduled_date: date) -> list[StudySession]:
        """Live sessions for one user on one date, served by the (user_id, scheduled_date) index."""
        return (
            self.db.query(StudySession)
            .filter(
                StudySession.user_id == user_id,
                StudySession.scheduled_date == scheduled_date,
                StudySession.deleted_at.is_(None),
            )
            .order_by(StudySession.start_time.asc())
            .all()
        )

    def sessions_between(self, user_id: str, start: date, end: date) -> list[StudySession]:
        return (
            self._sessions()
            .filter(
                StudySession.user_id == user_id,
                StudySession.scheduled_date >= start,
                StudySession.scheduled_date <= end,
            )
            .order_by(
                StudySession.scheduled_date.asc(),
                StudySession.start_time.asc(),
                StudySession.created_at.asc(),
            )
            .all()
        )

    def sessions_for_combo(self, user_id: str, combo_id: str) -> list[StudySession]:
        return (
            self._sessions()
            .filter(StudySession.user_id == user_id, StudySession.combo_id == combo_id)
            .order_by(StudySession.scheduled_date.asc(), StudySession.start_time.asc())
            .all()
        )

    def list_sessions(
        self, user_id: str, filters: SessionFilter, now: datetime
    ) -> list[StudySession]:
        query = self._sessions().filter(StudySession.user_id == user_id)
        if filters.on_date is not None:
            query = query.filter(StudySession.scheduled_date == filters.on_date)
        if filters.week_of is not None:
            monday, sunday = week_bounds(filters.week_of)
            query = query.filter(
                StudySession.scheduled_date >= monday,
                StudySession.scheduled_date <= sunday,
            )
        if filters.month is not None:
            year, month = (int(part) for part in filters.month.split("-"))
            first, last = month_bounds(year, month)
            query = query.filter(
                StudySession.scheduled_date >= first,
                StudySession.scheduled_date <= last,
            )
        if filters.combo_id is not None:
            query = query.filter(StudySession.combo_id == filters.combo_id)
        if filters.course_id is not None:
            query = query.filter(StudySession.course_id == filters.course_id)
        if filters.status is not None:
            missed = _missed_clause(now)
            if filters.status == SessionStatus.MISSED:
                query = query.filter(or_(StudySession.status == SessionStatus.MISSED, missed))
            elif filters.status == SessionStatus.SCHEDULED:
                query = query.filter(StudySession.status == SessionStatus.SCHEDULED, ~missed)
            else:
                query = query.filter(StudySession.status == filters.status)
        return query.order_by(
            StudySession.scheduled_date.asc(), StudySession.start_time.asc()
        ).all()

    def overdue_scheduled(self, now: datetime) -> list[StudySession]:
        return (
            self.db.query(StudySession)
            .filter(StudySession.deleted_at.is_(None), _missed_clause(now))
            .all()
        )

    def user_completed_sessions(self, user_id: str) -> list[StudySession]:
        return (
            self._sessions()
            .filter(
                StudySession.user_id == user_id,
                StudySession.status == SessionStatus.COMPLETED,
            )
            .order_by(StudySession.created_at.asc())
            .all()
        )

    def lock_user(self, user_id: str) -> None:
        """Serialize schedule writes for one user until the transaction ends.

        Upserting the user's lock row takes a row lock on PostgreSQL and the
        database write lock on SQLite; both are released on commit or rollback.
        """
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            insert = postgresql_insert
        elif dialect == "sqlite":
            insert = sqlite_insert
        else:
            raise RuntimeError(f"Schedule locking is not supported on {dialect}")
        stmt = insert(UserScheduleLock).values(user_id=user_id, acquired_at=datetime.utcnow())
        stmt = stmt.on_conflict_do_update(
            index_elements=[UserScheduleLock.user_id],
            set_={"acquired_at": stmt.excluded.acquired_at},
        )
        self.db.execute(stmt)

    def add(self, obj) -> None:
        self.db.add(obj)

    def delete(self, obj) -> None:
        self.db.delete(obj)

    def flush(self) -> None:
        self._write(self.db.flush)

    def commit(self) -> None:
        self._write(self.db.commit)

    def _write(self, operation) -> None:
        try:
            operation()
        except StaleDataError as exc:
            self.db.rollback()
            logger.warning(f"Optimistic version check failed: {exc}")
            raise ConcurrentModification(
                "The study session was modified by another request; reload and retry"
            ) from exc

    def rollback(self) -> None:
        self.db.rollback()

    def refresh(self, obj) -> None:
        self.db.refresh(obj)

    # Reminders

    def get_reminder(self, reminder_id: str, user_id: str | None = None) -> StudyReminder | None:
        query = self.db.query(StudyReminder).filter(StudyReminder.id == reminder_id)
        if user_id is not None:
            query = query.filter(StudyReminder.user_id == user_id)
        return query.first()

    def reminders_for_session(
        self, schedule_id: str, status: ReminderStatus | None = None
    ) -> list[StudyReminder]:
        query = self.db.query(StudyReminder).filter(StudyReminder.schedule_id == schedule_id)
        if status is not None:
            query = query.filter(StudyReminder.status == status)
        return query.all()

    def due_reminders(self, now: datetime, limit: int | None = None) -> list[StudyReminder]:
        query = (
            self.db.query(StudyReminder)
            .filter(
                StudyReminder.status == ReminderStatus.PENDING,
                StudyReminder.scheduled_time <= now,
            )
            .order_by(StudyReminder.scheduled_time.asc())
        )
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def flag_reminder_sent(self, schedule_id: str) -> None:
        # Plain UPDATE, does not bump the session version.
        self.db.query(StudySession).filter(StudySession.id == schedule_id).update(
            {StudySession.reminder_sent: True}, synchronize_session=False
        )

    def reminders_for_user(
        self,
        user_id: str,
        status: ReminderStatus | None = None,
        unread_only: bool = False,
    ) -> list[StudyReminder]:
        query = (
            self.db.query(StudyReminder)
            .options(joinedload(StudyReminder.session).joinedload(StudySession.course))
            .filter(StudyReminder.user_id == user_id)
        )
        if status is not None:
            query = query.filter(StudyReminder.status == status)
        if unread_only:
            query = query.filter(StudyReminder.is_read.is_(False))
        return query.order_by(StudyReminder.scheduled_time.desc()).all()

    # Catalogue lookups

    def get_course(self, course_id: str) -> Course | None:
        return self.db.get(Course, course_id)

    def get_combo(self, combo_id: str) -> Combo | None:
        return self.db.get(Combo, combo_id)

    def get_lesson(self, lesson_id: str) -> Lesson | None:
        return self.db.get(Lesson, lesson_id)

    def combo_course_ids(self, combo_id: str) -> list[str]:
        rows = (
            self.db.query(ComboCourse.course_id)
            .filter(ComboCourse.combo_id == combo_id)
            .order_by(ComboCourse.position.asc(), ComboCourse.course_id.asc())
            .all()
        )
        return [row[0] for row in rows]
