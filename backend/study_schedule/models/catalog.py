"""Read-only catalogue rows the scheduler references by id.

Courses, combos and lessons are owned by the content side of the platform.
The engine only reads titles, skill focus and combo membership from them.
"""
from sqlalchemy import Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from study_schedule.db.base import Base


class Course(Base):
    __tablename__ = "courses"

    id = Column(String(64), primary_key=True)
    title = Column(String(255), nullable=False)
    thumbnail = Column(String(512), nullable=True)
    skill_focus = Column(String(64), nullable=True)


class Lesson(Base):
    __tablename__ = "lessons"

    id = Column(String(64), primary_key=True)
    course_id = Column(String(64), ForeignKey("courses.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(255), nullable=False)
    lesson_type = Column(String(64), nullable=True)


class ComboCourse(Base):
    __tablename__ = "combo_courses"

    combo_id = Column(String(64), ForeignKey("combos.id", ondelete="CASCADE"), primary_key=True)
    course_id = Column(String(64), ForeignKey("courses.id", ondelete="CASCADE"), primary_key=True)
    position = Column(Integer, nullable=False, default=0)

    course = relationship("Course")


class Combo(Base):
    __tablename__ = "combos"

    id = Column(String(64), primary_key=True)
    name = Column(String(255), nullable=False)
    target_band_range = Column(String(32), nullable=True)

    course_links = relationship(
        "ComboCourse",
        order_by="ComboCourse.position",
        cascade="all, delete-orphan",
    )

    @property
    def courses(self) -> list[Course]:
        return [link.course for link in self.course_links]
