from datetime import date, datetime

from fastapi import APIRouter, Depends, Query, Response, status

from study_schedule.api import deps
from study_schedule.core.clock import local_now
from study_schedule.core.config import Settings, get_settings
from study_schedule.core.errors import InvalidArgument
from study_schedule.models.study_reminder import ReminderStatus, StudyReminder
from study_schedule.models.study_session import SessionStatus, StudySession
from study_schedule.schemas.analytics import ComboProgress, StudyAnalytics
from study_schedule.schemas.catalog import ComboSummary, CourseSummary, LessonSummary
from study_schedule.schemas.reminder import (
    ReminderSessionSummary,
    StudyReminderBrief,
    StudyReminderPublic,
)
from study_schedule.schemas.schedule import (
    BulkScheduleCreate,
    BulkSchedulePublic,
    SkippedSlotPublic,
    WeeklyScheduleSummary,
)
from study_schedule.schemas.session import (
    StudySessionComplete,
    StudySessionCreate,
    StudySessionPublic,
    StudySessionUpdate,
)
from study_schedule.services.analytics import AnalyticsAggregator
from study_schedule.services.bulk import BulkGenerator
from study_schedule.services.lifecycle import SessionLifecycle, effective_status
from study_schedule.services.reminders import ReminderScheduler
from study_schedule.services.store import ScheduleStore, SessionFilter

router = APIRouter()


def _course_summary(course) -> CourseSummary | None:
    if course is None:
        return None
    return CourseSummary(
        id=course.id,
        title=course.title,
        thumbnail=course.thumbnail,
        skill_focus=course.skill_focus,
    )


def _serialize_reminder_brief(reminder: StudyReminder) -> StudyReminderBrief:
    return StudyReminderBrief(
        id=reminder.id,
        title=reminder.title,
        message=reminder.message,
        scheduled_time=reminder.scheduled_time,
        status=reminder.status,
        is_read=reminder.is_read,
    )


def _serialize_reminder(reminder: StudyReminder) -> StudyReminderPublic:
    session = reminder.session
    schedule = None
    if session is not None and session.deleted_at is None:
        schedule = ReminderSessionSummary(
            id=session.id,
            course_id=session.course_id,
            scheduled_date=session.scheduled_date,
            start_time=session.start_time,
            study_goal=session.study_goal,
            course=_course_summary(session.course),
        )
    return StudyReminderPublic(
        id=reminder.id,
        user_id=reminder.user_id,
        schedule_id=reminder.schedule_id,
        title=reminder.title,
        message=reminder.message,
        scheduled_time=reminder.scheduled_time,
        status=reminder.status,
        is_read=reminder.is_read,
        created_at=reminder.created_at,
        updated_at=reminder.updated_at,
        schedule=schedule,
    )


def _serialize_session(session: StudySession, now: datetime) -> StudySessionPublic:
    course = session.course
    combo = session.combo
    lesson = session.lesson
    return StudySessionPublic(
        id=session.id,
        user_id=session.user_id,
        combo_id=session.combo_id,
        course_id=session.course_id,
        lesson_id=session.lesson_id,
        scheduled_date=session.scheduled_date,
        start_time=session.start_time,
        end_time=session.end_time,
        duration=session.duration,
        study_goal=session.study_goal,
        notes=session.notes,
        status=effective_status(session, now),
        completion_percentage=session.completion_percentage,
        reminder_enabled=session.reminder_enabled,
        reminder_minutes_before=session.reminder_minutes_before,
        reminder_sent=session.reminder_sent,
        created_at=session.created_at,
        updated_at=session.updated_at,
        combo=ComboSummary(
            id=combo.id, name=combo.name, target_band_range=combo.target_band_range
        ) if combo else None,
        course=_course_summary(course),
        lesson=LessonSummary(
            id=lesson.id, title=lesson.title, lesson_type=lesson.lesson_type
        ) if lesson else None,
        reminders=[_serialize_reminder_brief(reminder) for reminder in session.reminders],
    )


def _parse_month(month: str | None) -> str | None:
    if month is None:
        return None
    try:
        year, month_number = (int(part) for part in month.split("-"))
        date(year, month_number, 1)
    except ValueError as exc:
        raise InvalidArgument(f"Invalid month: {month!r}. Must be YYYY-MM") from exc
    return month


@router.post("", response_model=StudySessionPublic, status_code=status.HTTP_201_CREATED)
def create_schedule(
    payload: StudySessionCreate,
    lifecycle: SessionLifecycle = Depends(deps.get_lifecycle),
    settings: Settings = Depends(get_settings),
    user_id: str = Depends(deps.get_current_user_id),
) -> StudySessionPublic:
    now = local_now(settings)
    session = lifecycle.create(user_id, payload, now=now)
    return _serialize_session(session, now)


@router.post("/bulk", response_model=BulkSchedulePublic)
def bulk_create_schedules(
    payload: BulkScheduleCreate,
    generator: BulkGenerator = Depends(deps.get_bulk_generator),
    settings: Settings = Depends(get_settings),
    user_id: str = Depends(deps.get_current_user_id),
) -> BulkSchedulePublic:
    """Create sessions for every slot over ``weeks_count`` weeks.

    Conflicting slots are reported in ``skipped`` and never fail the request.
    """
    now = local_now(settings)
    result = generator.generate(user_id, payload, now=now)
    return BulkSchedulePublic(
        created_count=result.created_count,
        schedules=[_serialize_session(session, now) for session in result.created],
        skipped=[
            SkippedSlotPublic(
                day=skipped.slot.day_name,
                start_time=skipped.slot.start_time,
                end_time=skipped.slot.end_time,
                week_offset=skipped.week_offset,
                scheduled_date=skipped.scheduled_date,
                reason=skipped.reason,
            )
            for skipped in result.skipped
        ],
    )


@router.get("/my-schedules", response_model=list[StudySessionPublic])
def list_my_schedules(
    on_date: date | None = Query(default=None, alias="date"),
    week: date | None = Query(default=None, description="Any date inside the target week"),
    month: str | None = Query(default=None, description="YYYY-MM"),
    schedule_status: SessionStatus | None = Query(default=None, alias="status"),
    combo_id: str | None = None,
    course_id: str | None = None,
    store: ScheduleStore = Depends(deps.get_store),
    settings: Settings = Depends(get_settings),
    user_id: str = Depends(deps.get_current_user_id),
) -> list[StudySessionPublic]:
    now = local_now(settings)
    filters = SessionFilter(
        on_date=on_date,
        week_of=week,
        month=_parse_month(month),
        status=schedule_status,
        combo_id=combo_id,
        course_id=course_id,
    )
    sessions = store.list_sessions(user_id, filters, now)
    return [_serialize_session(session, now) for session in sessions]


@router.get("/weekly-schedule", response_model=WeeklyScheduleSummary)
def get_weekly_schedule(
    week_offset: int = 0,
    aggregator: AnalyticsAggregator = Depends(deps.get_analytics),
    settings: Settings = Depends(get_settings),
    user_id: str = Depends(deps.get_current_user_id),
) -> WeeklyScheduleSummary:
    now = local_now(settings)
    summary = aggregator.weekly_summary(user_id, week_offset, now=now)
    return WeeklyScheduleSummary(
        week_start=summary.week_start,
        week_end=summary.week_end,
        total_sessions=summary.total_sessions,
        completed_sessions=summary.completed_sessions,
        missed_sessions=summary.missed_sessions,
        total_planned_hours=summary.total_planned_hours,
        total_actual_hours=summary.total_actual_hours,
        completion_rate=summary.completion_rate,
        schedules=[_serialize_session(session, now) for session in summary.sessions],
    )


@router.get("/analytics", response_model=StudyAnalytics)
def get_study_analytics(
    period: str = "week",
    aggregator: AnalyticsAggregator = Depends(deps.get_analytics),
    user_id: str = Depends(deps.get_current_user_id),
) -> StudyAnalytics:
    return aggregator.analytics(user_id, period)


@router.get("/combo/{combo_id}/schedules", response_model=list[StudySessionPublic])
def get_combo_schedules(
    combo_id: str,
    store: ScheduleStore = Depends(deps.get_store),
    settings: Settings = Depends(get_settings),
    user_id: str = Depends(deps.get_current_user_id),
) -> list[StudySessionPublic]:
    now = local_now(settings)
    return [_serialize_session(s, now) for s in store.sessions_for_combo(user_id, combo_id)]


@router.get("/combo/{combo_id}/progress", response_model=ComboProgress)
def get_combo_progress(
    combo_id: str,
    aggregator: AnalyticsAggregator = Depends(deps.get_analytics),
    user_id: str = Depends(deps.get_current_user_id),
) -> ComboProgress:
    return aggregator.combo_progress(user_id, combo_id)


@router.get("/reminders/my-reminders", response_model=list[StudyReminderPublic])
def list_my_reminders(
    reminder_status: ReminderStatus | None = Query(default=None, alias="status"),
    unread_only: bool = False,
    scheduler: ReminderScheduler = Depends(deps.get_reminder_scheduler),
    user_id: str = Depends(deps.get_current_user_id),
) -> list[StudyReminderPublic]:
    reminders = scheduler.list_for_user(user_id, status=reminder_status, unread_only=unread_only)
    return [_serialize_reminder(reminder) for reminder in reminders]


@router.post("/reminders/{reminder_id}/read", response_model=StudyReminderPublic)
def mark_reminder_read(
    reminder_id: str,
    scheduler: ReminderScheduler = Depends(deps.get_reminder_scheduler),
    user_id: str = Depends(deps.get_current_user_id),
) -> StudyReminderPublic:
    return _serialize_reminder(scheduler.mark_read(user_id, reminder_id))


@router.get("/{schedule_id}", response_model=StudySessionPublic)
def get_schedule(
    schedule_id: str,
    store: ScheduleStore = Depends(deps.get_store),
    settings: Settings = Depends(get_settings),
    user_id: str = Depends(deps.get_current_user_id),
) -> StudySessionPublic:
    return _serialize_session(store.require_session(user_id, schedule_id), local_now(settings))


@router.put("/{schedule_id}", response_model=StudySessionPublic)
def update_schedule(
    schedule_id: str,
    payload: StudySessionUpdate,
    lifecycle: SessionLifecycle = Depends(deps.get_lifecycle),
    settings: Settings = Depends(get_settings),
    user_id: str = Depends(deps.get_current_user_id),
) -> StudySessionPublic:
    now = local_now(settings)
    session = lifecycle.update(user_id, schedule_id, payload, now=now)
    return _serialize_session(session, now)


@router.post("/{schedule_id}/start", response_model=StudySessionPublic)
def start_session(
    schedule_id: str,
    lifecycle: SessionLifecycle = Depends(deps.get_lifecycle),
    settings: Settings = Depends(get_settings),
    user_id: str = Depends(deps.get_current_user_id),
) -> StudySessionPublic:
    return _serialize_session(lifecycle.start(user_id, schedule_id), local_now(settings))


@router.post("/{schedule_id}/complete", response_model=StudySessionPublic)
def complete_session(
    schedule_id: str,
    payload: StudySessionComplete,
    lifecycle: SessionLifecycle = Depends(deps.get_lifecycle),
    settings: Settings = Depends(get_settings),
    user_id: str = Depends(deps.get_current_user_id),
) -> StudySessionPublic:
    session = lifecycle.complete(user_id, schedule_id, payload.completion_percentage)
    return _serialize_session(session, local_now(settings))


@router.post("/{schedule_id}/cancel", response_model=StudySessionPublic)
def cancel_schedule(
    schedule_id: str,
    lifecycle: SessionLifecycle = Depends(deps.get_lifecycle),
    settings: Settings = Depends(get_settings),
    user_id: str = Depends(deps.get_current_user_id),
) -> StudySessionPublic:
    return _serialize_session(lifecycle.cancel(user_id, schedule_id), local_now(settings))


@router.delete("/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_schedule(
    schedule_id: str,
    lifecycle: SessionLifecycle = Depends(deps.get_lifecycle),
    user_id: str = Depends(deps.get_current_user_id),
) -> Response:
    lifecycle.delete(user_id, schedule_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
