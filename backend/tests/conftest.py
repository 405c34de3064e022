import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from helpers import seed_catalog
from study_schedule import models  # noqa: F401  registers every table on Base.metadata
from study_schedule.core.config import Settings
from study_schedule.db.base import Base
from study_schedule.services.store import ScheduleStore


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory):
    db = session_factory()
    seed_catalog(db)
    yield db
    db.close()


@pytest.fixture
def settings():
    return Settings(database_url="sqlite://", timezone="UTC")


@pytest.fixture
def store(db_session):
    return ScheduleStore(db_session)
