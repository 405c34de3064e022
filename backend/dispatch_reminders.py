"""Reminder dispatch worker.

Polls for due reminders every ``REMINDER_DISPATCH_INTERVAL_SECONDS`` and hands
them to the notification channel. Run with ``--once`` from cron instead of as
a long-lived process.
"""

import logging
import signal
import sys
import threading

from study_schedule.core.config import get_settings
from study_schedule.db.session import SessionLocal
from study_schedule.services.dispatch import LoggingChannel, ReminderDispatcher


def main(argv: list[str]) -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    dispatcher = ReminderDispatcher(SessionLocal, LoggingChannel(), settings)

    if "--once" in argv:
        report = dispatcher.dispatch_once()
        print(f"Sent {report.sent}, failed {report.failed}, marked missed {report.missed_marked}")
        return

    stop_event = threading.Event()
    signal.signal(signal.SIGTERM, lambda *_: stop_event.set())
    signal.signal(signal.SIGINT, lambda *_: stop_event.set())
    dispatcher.run_forever(stop_event)


if __name__ == "__main__":
    main(sys.argv[1:])
