"""Create, update and transition individual study sessions.

State machine (stored status):

    scheduled --start--> in_progress --complete--> completed
    scheduled --complete--> completed
    scheduled | in_progress --cancel--> cancelled

``missed`` is not a transition. A session still stored as ``scheduled`` whose
end has passed is reported as missed at read time (see ``effective_status``);
``sweep_missed`` can persist that classification when configured.
Transitions check the stored status, so starting late is allowed.
"""
from __future__ import annotations

import logging
from datetime import datetime

from study_schedule.core.clock import local_now
from study_schedule.core.config import Settings
from study_schedule.core.errors import (
    InvalidArgument,
    InvalidTransition,
    NotFound,
    Overlap,
    ScheduleError,
)
from study_schedule.models.study_reminder import ReminderStatus
from study_schedule.models.study_session import SessionStatus, StudySession
from study_schedule.schemas.session import StudySessionCreate, StudySessionUpdate
from study_schedule.services.conflicts import ConflictChecker, describe_conflict
from study_schedule.services.reminders import ReminderScheduler, resolve_lead_minutes
from study_schedule.services.store import ScheduleStore
from study_schedule.services.time_slots import minutes_between, validate_range

logger = logging.getLogger(__name__)

STARTABLE = {SessionStatus.SCHEDULED}
COMPLETABLE = {SessionStatus.SCHEDULED, SessionStatus.IN_PROGRESS}
CANCELLABLE = {SessionStatus.SCHEDULED, SessionStatus.IN_PROGRESS}


def effective_status(session: StudySession, now: datetime) -> SessionStatus:
    if session.status == SessionStatus.SCHEDULED and session.end_datetime <= now:
        return SessionStatus.MISSED
    return session.status


def _pick(data: dict, key: str, current):
    # midnight is falsy, so test for None explicitly
    value = data.get(key)
    return current if value is None else value


def _status_label(status: SessionStatus) -> str:
    return status.value if isinstance(status, SessionStatus) else str(status)


class SessionLifecycle:
    def __init__(
        self,
        store: ScheduleStore,
        settings: Settings,
    ) -> None:
        self.store = store
        self.settings = settings
        self.conflicts = ConflictChecker(store, settings.allow_cross_combo_overlap)
        self.reminders = ReminderScheduler(store, settings)

    def _now(self, now: datetime | None) -> datetime:
        return now or local_now(self.settings)

    def _check_references(
        self,
        course_id: str | None,
        combo_id: str | None = None,
        lesson_id: str | None = None,
    ) -> None:
        if not course_id:
            raise InvalidArgument("course_id is required")
        if self.store.get_course(course_id) is None:
            raise NotFound(f"Course {course_id} not found")
        if combo_id is not None and self.store.get_combo(combo_id) is None:
            raise NotFound(f"Combo {combo_id} not found")
        if lesson_id is not None and self.store.get_lesson(lesson_id) is None:
            raise NotFound(f"Lesson {lesson_id} not found")

    def create(
        self, user_id: str, payload: StudySessionCreate, now: datetime | None = None
    ) -> StudySession:
        now = self._now(now)
        validate_range(payload.start_time, payload.end_time)
        self._check_references(payload.course_id, payload.combo_id, payload.lesson_id)
        lead = resolve_lead_minutes(
            payload.reminder_enabled, payload.reminder_minutes_before, self.settings
        )

        session = StudySession(
            user_id=user_id,
            combo_id=payload.combo_id,
            course_id=payload.course_id,
            lesson_id=payload.lesson_id,
            scheduled_date=payload.scheduled_date,
            start_time=payload.start_time,
            end_time=payload.end_time,
            duration=minutes_between(payload.start_time, payload.end_time),
            study_goal=payload.study_goal,
            notes=payload.notes,
            status=SessionStatus.SCHEDULED,
            completion_percentage=0,
            reminder_enabled=payload.reminder_enabled,
            reminder_minutes_before=lead,
            reminder_sent=False,
        )
        if lead is not None:
            # Validate before anything is written.
            self.reminders.fire_time(session.start_datetime, lead, now)

        # Held until the commit below, across processes as well.
        self.store.lock_user(user_id)
        try:
            conflict = self.conflicts.find_conflict(
                user_id,
                payload.scheduled_date,
                payload.start_time,
                payload.end_time,
                combo_id=payload.combo_id,
            )
            if conflict:
                raise Overlap(
                    f"This time conflicts with: {describe_conflict(conflict)}",
                    conflicting_id=conflict.id,
                )
            self.store.add(session)
            self.store.flush()
            if lead is not None:
                self.reminders.schedule(session, lead, now)
            self.store.commit()
        except ScheduleError:
            self.store.rollback()
            raise
        self.store.refresh(session)
        logger.info(f"StudySession added: {session.id} for user {user_id}")
        return session

    def update(
        self,
        user_id: str,
        session_id: str,
        payload: StudySessionUpdate,
        now: datetime | None = None,
    ) -> StudySession:
        now = self._now(now)
        data = payload.dict(exclude_unset=True)

        self.store.lock_user(user_id)
        try:
            session = self._apply_update(user_id, session_id, data, now)
            self.store.commit()
        except ScheduleError:
            self.store.rollback()
            raise
        self.store.refresh(session)
        logger.info(f"StudySession edited: {session.id}")
        return session

    def _apply_update(
        self, user_id: str, session_id: str, data: dict, now: datetime
    ) -> StudySession:
        session = self.store.require_session(user_id, session_id)
        if session.status != SessionStatus.SCHEDULED:
            raise InvalidTransition(
                f"Session {session_id} can only be updated while scheduled "
                f"(current status: {_status_label(session.status)})"
            )

        scheduled_date = _pick(data, "scheduled_date", session.scheduled_date)
        start_time = _pick(data, "start_time", session.start_time)
        end_time = _pick(data, "end_time", session.end_time)
        validate_range(start_time, end_time)

        course_id = data.get("course_id", session.course_id)
        combo_id = data.get("combo_id", session.combo_id)
        lesson_id = data.get("lesson_id", session.lesson_id)
        self._check_references(course_id, combo_id, lesson_id)

        time_changed = (
            scheduled_date != session.scheduled_date
            or start_time != session.start_time
            or end_time != session.end_time
        )
        if time_changed or combo_id != session.combo_id:
            conflict = self.conflicts.find_conflict(
                user_id,
                scheduled_date,
                start_time,
                end_time,
                exclude_id=session.id,
                combo_id=combo_id,
            )
            if conflict:
                raise Overlap(
                    f"This time conflicts with: {describe_conflict(conflict)}",
                    conflicting_id=conflict.id,
                )

        # An explicit null leaves the flag as it was; the column is NOT NULL.
        reminder_enabled = _pick(data, "reminder_enabled", session.reminder_enabled)
        minutes_before = data.get("reminder_minutes_before", session.reminder_minutes_before)
        lead = resolve_lead_minutes(reminder_enabled, minutes_before, self.settings)
        reminder_changed = (
            time_changed
            or "reminder_enabled" in data
            or "reminder_minutes_before" in data
        )
        if reminder_changed and lead is not None:
            self.reminders.fire_time(datetime.combine(scheduled_date, start_time), lead, now)

        session.scheduled_date = scheduled_date
        session.start_time = start_time
        session.end_time = end_time
        session.duration = minutes_between(start_time, end_time)
        session.course_id = course_id
        session.combo_id = combo_id
        session.lesson_id = lesson_id
        if "study_goal" in data:
            session.study_goal = data["study_goal"]
        if "notes" in data:
            session.notes = data["notes"]
        session.reminder_enabled = reminder_enabled
        session.reminder_minutes_before = lead if reminder_enabled else minutes_before

        if reminder_changed:
            self.reminders.cancel_for_session(session.id)
            if lead is not None:
                self.store.flush()
                self.store.refresh(session)
                self.reminders.schedule(session, lead, now)
        return session

    def start(self, user_id: str, session_id: str) -> StudySession:
        session = self.store.require_session(user_id, session_id)
        if session.status not in STARTABLE:
            raise InvalidTransition(
                f"Cannot start session {session_id}: status is {_status_label(session.status)}"
            )
        session.status = SessionStatus.IN_PROGRESS
        self.store.commit()
        self.store.refresh(session)
        logger.info(f"StudySession started: {session.id}")
        return session

    def complete(
        self, user_id: str, session_id: str, completion_percentage: int
    ) -> StudySession:
        if completion_percentage is None or not 0 <= completion_percentage <= 100:
            raise InvalidArgument(
                f"completion_percentage must be between 0 and 100, got {completion_percentage}"
            )
        session = self.store.require_session(user_id, session_id)
        if session.status not in COMPLETABLE:
            raise InvalidTransition(
                f"Cannot complete session {session_id}: status is {_status_label(session.status)}"
            )
        session.status = SessionStatus.COMPLETED
        session.completion_percentage = completion_percentage
        self.reminders.cancel_for_session(session.id)
        self.store.commit()
        self.store.refresh(session)
        logger.info(f"StudySession completed: {session.id} ({completion_percentage}%)")
        return session

    def cancel(self, user_id: str, session_id: str) -> StudySession:
        session = self.store.require_session(user_id, session_id)
        if session.status not in CANCELLABLE:
            raise InvalidTransition(
                f"Cannot cancel session {session_id}: status is {_status_label(session.status)}"
            )
        session.status = SessionStatus.CANCELLED
        cancelled = self.reminders.cancel_for_session(session.id)
        self.store.commit()
        self.store.refresh(session)
        logger.info(f"StudySession cancelled: {session.id} ({cancelled} reminder(s) cancelled)")
        return session

    def delete(self, user_id: str, session_id: str) -> None:
        """Remove a session and its undelivered reminders.

        A session with a delivered reminder is soft-deleted instead so the
        reminder keeps a valid back-reference.
        """
        session = self.store.require_session(user_id, session_id)
        delivered = self.store.reminders_for_session(session.id, ReminderStatus.SENT)
        if delivered:
            session.deleted_at = datetime.utcnow()
            session.status = SessionStatus.CANCELLED
            self.reminders.cancel_for_session(session.id)
            self.store.commit()
            logger.info(f"StudySession soft-deleted: {session_id}")
            return
        for reminder in self.store.reminders_for_session(session.id):
            self.store.delete(reminder)
        self.store.delete(session)
        self.store.commit()
        logger.info(f"StudySession deleted: {session_id}")

    def sweep_missed(self, now: datetime | None = None) -> int:
        """Persist the missed classification for overdue scheduled sessions."""
        now = self._now(now)
        overdue = self.store.overdue_scheduled(now)
        for session in overdue:
            session.status = SessionStatus.MISSED
            self.reminders.cancel_for_session(session.id)
        if overdue:
            self.store.commit()
            logger.info(f"Marked {len(overdue)} overdue session(s) as missed")
        return len(overdue)
