from datetime import time

from helpers import MONDAY, NOW, OTHER_USER, USER, session_payload
from study_schedule.services.conflicts import ConflictChecker, intervals_overlap
from study_schedule.services.lifecycle import SessionLifecycle


def test_intervals_overlap_is_half_open():
    assert intervals_overlap(time(9), time(10), time(9, 30), time(11))
    assert intervals_overlap(time(9), time(12), time(10), time(11))
    assert not intervals_overlap(time(9), time(10), time(10), time(11))
    assert not intervals_overlap(time(10), time(11), time(9), time(10))


def test_back_to_back_sessions_do_not_conflict(store, settings):
    lifecycle = SessionLifecycle(store, settings)
    lifecycle.create(USER, session_payload(start_time=time(9), end_time=time(10)), now=NOW)
    checker = ConflictChecker(store)

    assert not checker.has_conflict(USER, MONDAY, time(10), time(11))
    assert checker.has_conflict(USER, MONDAY, time(9, 30), time(10, 30))


def test_conflicts_are_scoped_per_user(store, settings):
    SessionLifecycle(store, settings).create(USER, session_payload(), now=NOW)

    assert ConflictChecker(store).find_conflict(OTHER_USER, MONDAY, time(18), time(19)) is None


def test_cancelled_sessions_free_their_slot(store, settings):
    lifecycle = SessionLifecycle(store, settings)
    session = lifecycle.create(USER, session_payload(), now=NOW)
    lifecycle.cancel(USER, session.id)

    assert not ConflictChecker(store).has_conflict(USER, MONDAY, time(18), time(19))


def test_exclude_id_ignores_the_session_being_edited(store, settings):
    session = SessionLifecycle(store, settings).create(USER, session_payload(), now=NOW)
    checker = ConflictChecker(store)

    assert checker.has_conflict(USER, MONDAY, time(18, 15), time(19, 45))
    assert not checker.has_conflict(
        USER, MONDAY, time(18, 15), time(19, 45), exclude_id=session.id
    )


def test_cross_combo_overlap_policy(store, settings):
    SessionLifecycle(store, settings).create(USER, session_payload(combo_id=None), now=NOW)

    strict = ConflictChecker(store, allow_cross_combo_overlap=False)
    relaxed = ConflictChecker(store, allow_cross_combo_overlap=True)

    assert strict.has_conflict(USER, MONDAY, time(18), time(19), combo_id="combo-ielts")
    assert not relaxed.has_conflict(USER, MONDAY, time(18), time(19), combo_id="combo-ielts")
    assert relaxed.has_conflict(USER, MONDAY, time(18), time(19), combo_id=None)
