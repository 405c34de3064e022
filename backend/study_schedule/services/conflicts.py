from __future__ import annotations

from datetime import date, time

from study_schedule.models.study_session import SessionStatus, StudySession
from study_schedule.services.store import ScheduleStore


def intervals_overlap(start1: time, end1: time, start2: time, end2: time) -> bool:
    """Half-open overlap test; back-to-back ranges do not overlap."""
    return start1 < end2 and start2 < end1


class ConflictChecker:
    """Read-only overlap detection between a candidate slot and a user's sessions."""

    def __init__(self, store: ScheduleStore, allow_cross_combo_overlap: bool = False) -> None:
        self.store = store
        self.allow_cross_combo_overlap = allow_cross_combo_overlap

    def find_conflict(
        self,
        user_id: str,
        scheduled_date: date,
        start_time: time,
        end_time: time,
        exclude_id: str | None = None,
        combo_id: str | None = None,
    ) -> StudySession | None:
        """Return the first session that overlaps the candidate, or None.

        Cancelled sessions never conflict. When cross-combo overlap is allowed,
        only sessions of the same combo are considered.
        """
        for existing in self.store.sessions_on(user_id, scheduled_date):
            if exclude_id is not None and existing.id == exclude_id:
                continue
            if existing.status == SessionStatus.CANCELLED:
                continue
            if self.allow_cross_combo_overlap and existing.combo_id != combo_id:
                continue
            if intervals_overlap(start_time, end_time, existing.start_time, existing.end_time):
                return existing
        return None

    def has_conflict(
        self,
        user_id: str,
        scheduled_date: date,
        start_time: time,
        end_time: time,
        exclude_id: str | None = None,
        combo_id: str | None = None,
    ) -> bool:
        return (
            self.find_conflict(
                user_id, scheduled_date, start_time, end_time, exclude_id, combo_id
            )
            is not None
        )


def describe_conflict(session: StudySession) -> str:
    if session.course is not None and session.course.title:
        name = session.course.title
    elif session.study_goal:
        name = session.study_goal
    else:
        name = "another session"
    return (
        f"{name} on {session.scheduled_date.isoformat()} "
        f"({session.start_time.strftime('%H:%M')} - {session.end_time.strftime('%H:%M')})"
    )
