from datetime import date
from typing import Literal

from pydantic import BaseModel


class ComboProgress(BaseModel):
    combo_id: str
    combo_name: str
    completed_courses: int
    total_courses: int
    progress_percentage: float


class StudyAnalytics(BaseModel):
    period: Literal["week", "month"]
    period_start: date
    period_end: date
    total_sessions: int
    completed_sessions: int
    missed_sessions: int
    cancelled_sessions: int
    in_progress_sessions: int
    total_study_hours: float
    avg_completion_percentage: float
    most_studied_skill: str | None = None
    combo_progress: list[ComboProgress] = []
