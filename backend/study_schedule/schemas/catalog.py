from pydantic import BaseModel


class CourseSummary(BaseModel):
    id: str
    title: str
    thumbnail: str | None = None
    skill_focus: str | None = None

    class Config:
        from_attributes = True


class ComboSummary(BaseModel):
    id: str
    name: str
    target_band_range: str | None = None

    class Config:
        from_attributes = True


class LessonSummary(BaseModel):
    id: str
    title: str
    lesson_type: str | None = None

    class Config:
        from_attributes = True
