from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    environment: Literal["development", "staging", "production"] = Field(
        default="development"
    )
    database_url: str = Field(default="sqlite:///./study_schedule.db")
    jwt_secret_key: str = Field(default="change-me")
    jwt_algorithm: str = Field(default="HS256")
    log_level: str = Field(default="INFO")

    # Wall-clock zone used for "now" when classifying missed sessions and
    # computing reminder fire times.
    timezone: str = Field(default="UTC")

    max_bulk_weeks: int = Field(default=52)
    bulk_timeout_seconds: float | None = Field(default=None)
    default_reminder_minutes: int = Field(default=30)
    reject_past_reminders: bool = Field(default=True)
    allow_cross_combo_overlap: bool = Field(default=False)
    persist_missed_sessions: bool = Field(default=False)

    reminder_dispatch_interval_seconds: int = Field(default=60)
    reminder_max_attempts: int = Field(default=3)

    statement_timeout_ms: int | None = Field(default=5000)
    pool_timeout: int = Field(default=30)

    cors_origins: list[str] = Field(
        default=[
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ]
    )

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache
def get_settings() -> Settings:
    return Settings()
