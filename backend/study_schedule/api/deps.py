from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from study_schedule.core.config import Settings, get_settings
from study_schedule.core.security import decode_token
from study_schedule.db.session import get_db
from study_schedule.services.analytics import AnalyticsAggregator
from study_schedule.services.bulk import BulkGenerator
from study_schedule.services.lifecycle import SessionLifecycle
from study_schedule.services.reminders import ReminderScheduler
from study_schedule.services.store import ScheduleStore

bearer_scheme = HTTPBearer(auto_error=False)


def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> str:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception
    try:
        payload = decode_token(credentials.credentials)
    except ValueError:
        raise credentials_exception
    if payload.get("type") != "access" or not payload.get("sub"):
        raise credentials_exception
    return str(payload["sub"])


def get_store(db: Session = Depends(get_db)) -> ScheduleStore:
    return ScheduleStore(db)


def get_lifecycle(
    store: ScheduleStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> SessionLifecycle:
    return SessionLifecycle(store, settings)


def get_bulk_generator(
    store: ScheduleStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> BulkGenerator:
    return BulkGenerator(store, settings)


def get_analytics(
    store: ScheduleStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> AnalyticsAggregator:
    return AnalyticsAggregator(store, settings)


def get_reminder_scheduler(
    store: ScheduleStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> ReminderScheduler:
    return ReminderScheduler(store, settings)
