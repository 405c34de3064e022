from datetime import datetime
from zoneinfo import ZoneInfo

from study_schedule.core.config import Settings


def local_now(settings: Settings) -> datetime:
    """Current wall-clock time in the configured zone, as a naive datetime.

    Sessions store naive dates and times, so comparisons happen on naive values.
    """
    return datetime.now(ZoneInfo(settings.timezone)).replace(tzinfo=None, microsecond=0)
