"""Expand a weekly pattern into dated sessions, skipping conflicting candidates."""
from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal

from study_schedule.core.clock import local_now
from study_schedule.core.config import Settings
from study_schedule.core.errors import InvalidArgument, NotFound, OperationCancelled
from study_schedule.models.study_session import SessionStatus, StudySession
from study_schedule.schemas.schedule import BulkScheduleCreate
from study_schedule.services.conflicts import ConflictChecker
from study_schedule.services.reminders import ReminderScheduler, resolve_lead_minutes
from study_schedule.services.store import ScheduleStore
from study_schedule.services.time_slots import SlotOccurrence, TimeSlot, minutes_between

logger = logging.getLogger(__name__)

SkipReason = Literal["overlap", "in_past"]


@dataclass
class SkippedSlot:
    slot: TimeSlot
    week_offset: int
    scheduled_date: date
    reason: SkipReason


@dataclass
class BulkResult:
    created: list[StudySession] = field(default_factory=list)
    skipped: list[SkippedSlot] = field(default_factory=list)

    @property
    def created_count(self) -> int:
        return len(self.created)


class BulkGenerator:
    def __init__(
        self,
        store: ScheduleStore,
        settings: Settings,
    ) -> None:
        self.store = store
        self.settings = settings
        self.conflicts = ConflictChecker(store, settings.allow_cross_combo_overlap)
        self.reminders = ReminderScheduler(store, settings)

    def _validate(self, request: BulkScheduleCreate) -> tuple[list[TimeSlot], list[str], int | None]:
        """Check every input before any write happens."""
        if not 1 <= request.weeks_count <= self.settings.max_bulk_weeks:
            raise InvalidArgument(
                f"weeks_count must be between 1 and {self.settings.max_bulk_weeks}, "
                f"got {request.weeks_count}"
            )
        if not request.time_slots:
            raise InvalidArgument("time_slots must contain at least one slot")
        slots = [
            TimeSlot.build(slot.day, slot.start_time, slot.end_time)
            for slot in request.time_slots
        ]

        if self.store.get_combo(request.combo_id) is None:
            raise NotFound(f"Combo {request.combo_id} not found")
        if request.course_id is not None:
            if self.store.get_course(request.course_id) is None:
                raise NotFound(f"Course {request.course_id} not found")
            course_ids = [request.course_id]
        else:
            course_ids = self.store.combo_course_ids(request.combo_id)
            if not course_ids:
                raise InvalidArgument(
                    f"Combo {request.combo_id} has no courses; pass course_id explicitly"
                )

        lead = resolve_lead_minutes(
            request.reminder_enabled, request.reminder_minutes_before, self.settings
        )
        return slots, course_ids, lead

    def _check_cancelled(
        self,
        cancel_event: threading.Event | None,
        deadline: float | None,
        result: BulkResult,
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            reason = "cancelled"
        elif deadline is not None and time.monotonic() > deadline:
            reason = "timed out"
        else:
            return
        logger.warning(f"Bulk generation {reason} after {result.created_count} session(s)")
        raise OperationCancelled(
            f"Bulk generation {reason}; {result.created_count} session(s) were already created",
            created_count=result.created_count,
        )

    def _persist(
        self,
        user_id: str,
        request: BulkScheduleCreate,
        occurrence: SlotOccurrence,
        course_id: str,
        lead: int | None,
        now: datetime,
    ) -> StudySession:
        session = StudySession(
            user_id=user_id,
            combo_id=request.combo_id,
            course_id=course_id,
            scheduled_date=occurrence.scheduled_date,
            start_time=occurrence.start_time,
            end_time=occurrence.end_time,
            duration=minutes_between(occurrence.start_time, occurrence.end_time),
            study_goal=request.study_goal,
            status=SessionStatus.SCHEDULED,
            completion_percentage=0,
            reminder_enabled=lead is not None,
            reminder_minutes_before=lead,
            reminder_sent=False,
        )
        self.store.add(session)
        self.store.flush()
        if lead is not None:
            try:
                self.reminders.schedule(session, lead, now)
            except InvalidArgument as exc:
                logger.warning(f"Reminder not registered for session {session.id}: {exc.message}")
        self.store.commit()
        return session

    def generate(
        self,
        user_id: str,
        request: BulkScheduleCreate,
        now: datetime | None = None,
        cancel_event: threading.Event | None = None,
    ) -> BulkResult:
        """Materialise ``weeks_count`` weeks of ``time_slots`` for ``user_id``.

        Each accepted candidate is committed on its own; a conflict or a
        past slot only skips that candidate. Re-running the same request
        creates nothing new because earlier output is seen as conflicting.
        Courses rotate through the combo in candidate order, so a re-run
        assigns the same course to the same slot.
        """
        slots, course_ids, lead = self._validate(request)
        now = now or local_now(self.settings)
        start_date = request.start_date or now.date()
        deadline = None
        if self.settings.bulk_timeout_seconds:
            deadline = time.monotonic() + self.settings.bulk_timeout_seconds

        result = BulkResult()
        candidate_index = 0
        for week_offset in range(request.weeks_count):
            for slot in slots:
                self._check_cancelled(cancel_event, deadline, result)
                occurrence = slot.occurrence(start_date, week_offset)
                course_id = course_ids[candidate_index % len(course_ids)]
                candidate_index += 1

                if occurrence.end_datetime <= now:
                    result.skipped.append(
                        SkippedSlot(slot, week_offset, occurrence.scheduled_date, "in_past")
                    )
                    continue
                # Held per candidate; released by the commit that ends each step.
                self.store.lock_user(user_id)
                if self.conflicts.has_conflict(
                    user_id,
                    occurrence.scheduled_date,
                    occurrence.start_time,
                    occurrence.end_time,
                    combo_id=request.combo_id,
                ):
                    self.store.commit()
                    result.skipped.append(
                        SkippedSlot(slot, week_offset, occurrence.scheduled_date, "overlap")
                    )
                    continue
                result.created.append(
                    self._persist(user_id, request, occurrence, course_id, lead, now)
                )

        logger.info(
            f"Bulk generation for user {user_id}: {result.created_count} created, "
            f"{len(result.skipped)} skipped"
        )
        return result
