"""Reminder fire-time computation and delivery bookkeeping."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta

from study_schedule.core.clock import local_now
from study_schedule.core.config import Settings
from study_schedule.core.errors import InvalidArgument, NotFound
from study_schedule.models.study_reminder import ReminderStatus, StudyReminder
from study_schedule.models.study_session import StudySession
from study_schedule.services.store import ScheduleStore

logger = logging.getLogger(__name__)


def _course_title(session: StudySession) -> str:
    if session.course is not None and session.course.title:
        return session.course.title
    return "your course"


def build_reminder_text(session: StudySession) -> tuple[str, str]:
    title = f"Study reminder: {_course_title(session)}"
    message = (
        f"Your {_course_title(session)} session starts at "
        f"{session.start_time.strftime('%H:%M')} on {session.scheduled_date.isoformat()}."
    )
    if session.study_goal:
        message += f" Goal: {session.study_goal}"
    return title, message


def resolve_lead_minutes(
    enabled: bool, minutes_before: int | None, settings: Settings
) -> int | None:
    """Lead time to use, or None when reminders are off for the session.

    The sign is checked even when reminders are off, since the value is stored.
    """
    if minutes_before is not None and minutes_before < 0:
        raise InvalidArgument(
            f"reminder_minutes_before must be a non-negative integer, got {minutes_before}"
        )
    if not enabled:
        return None
    if minutes_before is None:
        return settings.default_reminder_minutes
    return minutes_before


class ReminderScheduler:
    def __init__(self, store: ScheduleStore, settings: Settings) -> None:
        self.store = store
        self.settings = settings

    def fire_time(
        self, starts_at: datetime, lead_minutes: int, now: datetime | None = None
    ) -> datetime:
        """Compute when a reminder should fire, applying the past-fire-time policy."""
        if lead_minutes is None or lead_minutes < 0:
            raise InvalidArgument(
                f"reminder_minutes_before must be a non-negative integer, got {lead_minutes}"
            )
        now = now or local_now(self.settings)
        scheduled_time = starts_at - timedelta(minutes=lead_minutes)
        if scheduled_time < now:
            if self.settings.reject_past_reminders:
                raise InvalidArgument(
                    f"Reminder time {scheduled_time.isoformat(timespec='minutes')} is already "
                    f"in the past; reduce reminder_minutes_before or disable the reminder"
                )
            scheduled_time = now
        return scheduled_time

    def schedule(
        self, session: StudySession, lead_minutes: int, now: datetime | None = None
    ) -> StudyReminder:
        scheduled_time = self.fire_time(session.start_datetime, lead_minutes, now)
        title, message = build_reminder_text(session)
        reminder = StudyReminder(
            user_id=session.user_id,
            session=session,
            title=title,
            message=message,
            scheduled_time=scheduled_time,
            status=ReminderStatus.PENDING,
            is_read=False,
        )
        self.store.add(reminder)
        logger.debug(f"Reminder scheduled for session {session.id} at {scheduled_time}")
        return reminder

    def due(self, now: datetime | None = None, limit: int | None = None) -> list[StudyReminder]:
        return self.store.due_reminders(now or local_now(self.settings), limit)

    def mark_sent(self, reminder_id: str) -> StudyReminder:
        reminder = self.store.get_reminder(reminder_id)
        if not reminder:
            raise NotFound(f"Reminder {reminder_id} not found")
        if reminder.status == ReminderStatus.SENT:
            return reminder
        reminder.status = ReminderStatus.SENT
        reminder.sent_at = datetime.utcnow()
        reminder.delivery_attempts += 1
        self.store.flag_reminder_sent(reminder.schedule_id)
        self.store.commit()
        logger.info(f"Reminder sent: {reminder.id} (session {reminder.schedule_id})")
        return reminder

    def record_failure(self, reminder_id: str, error: str) -> StudyReminder:
        reminder = self.store.get_reminder(reminder_id)
        if not reminder:
            raise NotFound(f"Reminder {reminder_id} not found")
        if reminder.status != ReminderStatus.PENDING:
            return reminder
        reminder.delivery_attempts += 1
        reminder.last_error = error[:512]
        if reminder.delivery_attempts >= self.settings.reminder_max_attempts:
            reminder.status = ReminderStatus.FAILED
            logger.error(
                f"Reminder {reminder.id} failed after {reminder.delivery_attempts} attempts: {error}"
            )
        self.store.commit()
        return reminder

    def mark_read(self, user_id: str, reminder_id: str) -> StudyReminder:
        reminder = self.store.get_reminder(reminder_id, user_id=user_id)
        if not reminder:
            raise NotFound(f"Reminder {reminder_id} not found")
        if not reminder.is_read:
            reminder.is_read = True
            self.store.commit()
        return reminder

    def cancel_for_session(self, schedule_id: str) -> int:
        """Cancel (never delete) pending reminders of a session. Caller commits."""
        pending = self.store.reminders_for_session(schedule_id, ReminderStatus.PENDING)
        for reminder in pending:
            reminder.status = ReminderStatus.CANCELLED
        return len(pending)

    def list_for_user(
        self,
        user_id: str,
        status: ReminderStatus | None = None,
        unread_only: bool = False,
    ) -> list[StudyReminder]:
        return self.store.reminders_for_user(user_id, status=status, unread_only=unread_only)
