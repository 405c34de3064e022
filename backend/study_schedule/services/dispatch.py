"""Poll-driven reminder delivery.

Delivery is at-least-once: a reminder is marked sent only after the channel
accepted it, so a crash between the two can repeat a reminder.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from study_schedule.core.clock import local_now
from study_schedule.core.config import Settings
from study_schedule.core.errors import ScheduleError
from study_schedule.models.study_reminder import StudyReminder
from study_schedule.services.lifecycle import SessionLifecycle
from study_schedule.services.reminders import ReminderScheduler
from study_schedule.services.store import ScheduleStore

logger = logging.getLogger(__name__)


class NotificationChannel(Protocol):
    def send(self, reminder: StudyReminder) -> None:
        """Deliver the reminder or raise."""


class LoggingChannel:
    """Channel that only writes reminders to the log."""

    def send(self, reminder: StudyReminder) -> None:
        logger.info(f"[reminder] user={reminder.user_id} {reminder.title}: {reminder.message}")


@dataclass
class DispatchReport:
    sent: int = 0
    failed: int = 0
    missed_marked: int = 0


class ReminderDispatcher:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        channel: NotificationChannel,
        settings: Settings,
    ) -> None:
        self.session_factory = session_factory
        self.channel = channel
        self.settings = settings

    def dispatch_once(self, now: datetime | None = None) -> DispatchReport:
        now = now or local_now(self.settings)
        report = DispatchReport()
        db = self.session_factory()
        try:
            store = ScheduleStore(db)
            scheduler = ReminderScheduler(store, self.settings)
            for reminder in scheduler.due(now):
                try:
                    self.channel.send(reminder)
                except Exception as exc:  # channel errors are external; keep the loop alive
                    logger.warning(f"Delivery failed for reminder {reminder.id}: {exc}")
                    scheduler.record_failure(reminder.id, str(exc))
                    report.failed += 1
                    continue
                scheduler.mark_sent(reminder.id)
                report.sent += 1
            if self.settings.persist_missed_sessions:
                report.missed_marked = SessionLifecycle(store, self.settings).sweep_missed(now)
        finally:
            db.close()
        if report.sent or report.failed:
            logger.info(f"Reminder dispatch: {report.sent} sent, {report.failed} failed")
        return report

    def run_forever(self, stop_event: threading.Event | None = None) -> None:
        stop_event = stop_event or threading.Event()
        interval = self.settings.reminder_dispatch_interval_seconds
        logger.info(f"Reminder dispatcher started (interval {interval}s)")
        while not stop_event.is_set():
            try:
                self.dispatch_once()
            except (SQLAlchemyError, ScheduleError):
                logger.exception("Reminder dispatch pass failed; retrying next interval")
            stop_event.wait(interval)
        logger.info("Reminder dispatcher stopped")
