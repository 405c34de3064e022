import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from study_schedule.core.config import Settings, get_settings

logger = logging.getLogger(__name__)


def build_engine(settings: Settings):
    # Always use the correct connect_args for SQLite
    is_sqlite = settings.database_url.startswith("sqlite")
    if is_sqlite:
        connect_args = {"check_same_thread": False}
    elif settings.statement_timeout_ms:
        connect_args = {"options": f"-c statement_timeout={settings.statement_timeout_ms}"}
    else:
        connect_args = {}
    logger.debug(f"Database connection: {'SQLite' if is_sqlite else 'PostgreSQL'}")
    engine_kwargs = {} if is_sqlite else {"pool_timeout": settings.pool_timeout}
    return create_engine(
        settings.database_url,
        connect_args=connect_args,
        **engine_kwargs,
    )


engine = build_engine(get_settings())

SessionLocal = sessionmaker(
    bind=engine,
    autocommit=False,
    autoflush=False,
)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
