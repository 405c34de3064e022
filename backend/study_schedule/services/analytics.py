"""Read-only weekly and periodic summaries over a user's sessions."""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Sequence

from study_schedule.core.clock import local_now
from study_schedule.core.config import Settings
from study_schedule.core.errors import InvalidArgument, NotFound
from study_schedule.models.study_session import SessionStatus, StudySession
from study_schedule.schemas.analytics import ComboProgress, StudyAnalytics
from study_schedule.services.lifecycle import effective_status
from study_schedule.services.store import ScheduleStore, month_bounds, week_bounds


def _round(value: float) -> float:
    return round(value, 2)


def planned_hours(sessions: Sequence[StudySession]) -> float:
    """Scheduled time in hours, whatever the status."""
    return _round(sum(session.duration for session in sessions) / 60)


def actual_hours(sessions: Sequence[StudySession]) -> float:
    """Completed time in hours, weighted by completion percentage."""
    minutes = sum(
        session.duration * (session.completion_percentage or 0) / 100
        for session in sessions
        if session.status == SessionStatus.COMPLETED
    )
    return _round(minutes / 60)


def completion_rate(completed: int, total: int) -> float:
    if total == 0:
        return 0.0
    return _round(completed / total)


def most_studied_skill(completed: Sequence[StudySession]) -> str | None:
    """Most frequent course skill among completed sessions.

    Ties go to the skill seen first when sessions are taken in creation order.
    """
    ordered = sorted(completed, key=lambda session: session.created_at or datetime.min)
    skills = Counter(
        session.course.skill_focus
        for session in ordered
        if session.course is not None and session.course.skill_focus
    )
    if not skills:
        return None
    return skills.most_common(1)[0][0]


@dataclass
class WeeklySummary:
    week_start: date
    week_end: date
    total_sessions: int = 0
    completed_sessions: int = 0
    missed_sessions: int = 0
    total_planned_hours: float = 0.0
    total_actual_hours: float = 0.0
    completion_rate: float = 0.0
    sessions: list[StudySession] = field(default_factory=list)


class AnalyticsAggregator:
    def __init__(self, store: ScheduleStore, settings: Settings) -> None:
        self.store = store
        self.settings = settings

    def weekly_summary(
        self, user_id: str, week_offset: int = 0, now: datetime | None = None
    ) -> WeeklySummary:
        now = now or local_now(self.settings)
        week_start, week_end = week_bounds(now.date() + timedelta(weeks=week_offset))
        sessions = self.store.sessions_between(user_id, week_start, week_end)
        statuses = [effective_status(session, now) for session in sessions]
        completed = statuses.count(SessionStatus.COMPLETED)
        return WeeklySummary(
            week_start=week_start,
            week_end=week_end,
            total_sessions=len(sessions),
            completed_sessions=completed,
            missed_sessions=statuses.count(SessionStatus.MISSED),
            total_planned_hours=planned_hours(sessions),
            total_actual_hours=actual_hours(sessions),
            completion_rate=completion_rate(completed, len(sessions)),
            sessions=sessions,
        )

    def analytics(
        self, user_id: str, period: str = "week", now: datetime | None = None
    ) -> StudyAnalytics:
        now = now or local_now(self.settings)
        today = now.date()
        if period == "week":
            period_start, period_end = week_bounds(today)
        elif period == "month":
            period_start, period_end = month_bounds(today.year, today.month)
        else:
            raise InvalidArgument(f"period must be 'week' or 'month', got {period!r}")

        sessions = self.store.sessions_between(user_id, period_start, period_end)
        statuses = Counter(effective_status(session, now) for session in sessions)
        completed = [s for s in sessions if s.status == SessionStatus.COMPLETED]
        avg_completion = (
            _round(sum(s.completion_percentage for s in completed) / len(completed))
            if completed
            else 0.0
        )

        combo_ids: list[str] = []
        for session in sessions:
            if session.combo_id and session.combo_id not in combo_ids:
                combo_ids.append(session.combo_id)

        return StudyAnalytics(
            period=period,
            period_start=period_start,
            period_end=period_end,
            total_sessions=len(sessions),
            completed_sessions=statuses[SessionStatus.COMPLETED],
            missed_sessions=statuses[SessionStatus.MISSED],
            cancelled_sessions=statuses[SessionStatus.CANCELLED],
            in_progress_sessions=statuses[SessionStatus.IN_PROGRESS],
            total_study_hours=actual_hours(completed),
            avg_completion_percentage=avg_completion,
            most_studied_skill=most_studied_skill(completed),
            combo_progress=[
                self.combo_progress(user_id, combo_id)
                for combo_id in combo_ids
                if self.store.get_combo(combo_id) is not None
            ],
        )

    def combo_progress(self, user_id: str, combo_id: str) -> ComboProgress:
        """A combo course counts as completed once one of its sessions reached 100%."""
        combo = self.store.get_combo(combo_id)
        if combo is None:
            raise NotFound(f"Combo {combo_id} not found")
        course_ids = self.store.combo_course_ids(combo_id)
        finished = {
            session.course_id
            for session in self.store.user_completed_sessions(user_id)
            if session.completion_percentage >= 100
        }
        completed_courses = len([course_id for course_id in course_ids if course_id in finished])
        total_courses = len(course_ids)
        progress = _round(completed_courses / total_courses * 100) if total_courses else 0.0
        return ComboProgress(
            combo_id=combo.id,
            combo_name=combo.name,
            completed_courses=completed_courses,
            total_courses=total_courses,
            progress_percentage=progress,
        )
