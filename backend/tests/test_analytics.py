from datetime import date, datetime, time

import pytest

from helpers import MONDAY, NOW, USER, session_payload
from study_schedule.core.errors import InvalidArgument, NotFound
from study_schedule.services.analytics import AnalyticsAggregator, most_studied_skill
from study_schedule.services.lifecycle import SessionLifecycle


@pytest.fixture
def lifecycle(store, settings):
    return SessionLifecycle(store, settings)


@pytest.fixture
def aggregator(store, settings):
    return AnalyticsAggregator(store, settings)


def test_empty_week_reports_zeros(aggregator):
    summary = aggregator.weekly_summary(USER, now=NOW)

    assert summary.total_sessions == 0
    assert summary.total_planned_hours == 0.0
    assert summary.total_actual_hours == 0.0
    assert summary.completion_rate == 0.0

    analytics = aggregator.analytics(USER, "week", now=NOW)
    assert analytics.total_sessions == 0
    assert analytics.total_study_hours == 0.0
    assert analytics.avg_completion_percentage == 0.0
    assert analytics.most_studied_skill is None
    assert analytics.combo_progress == []


def test_weekly_summary_weights_actual_hours_by_completion(lifecycle, aggregator):
    session = lifecycle.create(USER, session_payload(), now=NOW)
    lifecycle.complete(USER, session.id, 80)

    summary = aggregator.weekly_summary(USER, now=datetime(2024, 6, 4, 8, 0))

    assert summary.week_start == MONDAY
    assert summary.week_end == date(2024, 6, 9)
    assert summary.total_sessions == 1
    assert summary.completed_sessions == 1
    assert summary.total_planned_hours == 1.5
    assert summary.total_actual_hours == 1.2
    assert summary.completion_rate == 1.0


def test_weekly_summary_counts_missed_and_offsets_weeks(lifecycle, aggregator):
    lifecycle.create(USER, session_payload(), now=NOW)
    lifecycle.create(USER, session_payload(scheduled_date=date(2024, 6, 10)), now=NOW)

    current = aggregator.weekly_summary(USER, now=datetime(2024, 6, 4, 8, 0))
    following = aggregator.weekly_summary(USER, week_offset=1, now=datetime(2024, 6, 4, 8, 0))

    assert current.missed_sessions == 1
    assert current.completion_rate == 0.0
    assert following.week_start == date(2024, 6, 10)
    assert following.total_sessions == 1
    assert following.missed_sessions == 0


def test_analytics_counts_statuses_and_averages(lifecycle, aggregator):
    reading = lifecycle.create(USER, session_payload(), now=NOW)
    listening = lifecycle.create(
        USER,
        session_payload(
            course_id="course-listening",
            scheduled_date=date(2024, 6, 4),
            start_time=time(7),
            end_time=time(7, 30),
        ),
        now=NOW,
    )
    cancelled = lifecycle.create(USER, session_payload(scheduled_date=date(2024, 6, 5)), now=NOW)
    started = lifecycle.create(USER, session_payload(scheduled_date=date(2024, 6, 6)), now=NOW)
    lifecycle.complete(USER, reading.id, 100)
    lifecycle.complete(USER, listening.id, 50)
    lifecycle.cancel(USER, cancelled.id)
    lifecycle.start(USER, started.id)

    analytics = aggregator.analytics(USER, "week", now=datetime(2024, 6, 5, 12, 0))

    assert analytics.period_start == MONDAY
    assert analytics.total_sessions == 4
    assert analytics.completed_sessions == 2
    assert analytics.cancelled_sessions == 1
    assert analytics.in_progress_sessions == 1
    assert analytics.missed_sessions == 0
    # 90 min at 100% plus 30 min at 50%
    assert analytics.total_study_hours == 1.75
    assert analytics.avg_completion_percentage == 75.0
    assert analytics.most_studied_skill == "reading"
    assert len(analytics.combo_progress) == 1
    assert analytics.combo_progress[0].completed_courses == 1


def test_analytics_month_period(lifecycle, aggregator):
    lifecycle.create(USER, session_payload(scheduled_date=date(2024, 6, 28)), now=NOW)

    analytics = aggregator.analytics(USER, "month", now=NOW)

    assert analytics.period_start == date(2024, 6, 1)
    assert analytics.period_end == date(2024, 6, 30)
    assert analytics.total_sessions == 1


def test_analytics_rejects_unknown_period(aggregator):
    with pytest.raises(InvalidArgument):
        aggregator.analytics(USER, "year", now=NOW)


def test_most_studied_skill_tie_goes_to_earliest(lifecycle, store):
    first = lifecycle.create(USER, session_payload(course_id="course-writing"), now=NOW)
    second = lifecycle.create(
        USER,
        session_payload(course_id="course-listening", start_time=time(20), end_time=time(21)),
        now=NOW,
    )
    lifecycle.complete(USER, second.id, 100)
    lifecycle.complete(USER, first.id, 100)

    assert most_studied_skill(store.user_completed_sessions(USER)) == "writing"
    assert most_studied_skill([]) is None


def test_combo_progress_counts_fully_completed_courses(lifecycle, aggregator):
    done = lifecycle.create(USER, session_payload(), now=NOW)
    partial = lifecycle.create(
        USER,
        session_payload(course_id="course-listening", scheduled_date=date(2024, 6, 4)),
        now=NOW,
    )
    lifecycle.complete(USER, done.id, 100)
    lifecycle.complete(USER, partial.id, 60)

    progress = aggregator.combo_progress(USER, "combo-ielts")

    assert progress.combo_name == "IELTS 7.0 Pack"
    assert progress.total_courses == 3
    assert progress.completed_courses == 1
    assert progress.progress_percentage == 33.33


def test_combo_progress_unknown_combo(aggregator):
    with pytest.raises(NotFound):
        aggregator.combo_progress(USER, "combo-missing")
