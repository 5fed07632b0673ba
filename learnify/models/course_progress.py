# learnify/models/course_progress.py
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from learnify.core.database import Base


class CourseProgress(Base):
    """
    Per (user, course) completion tracker.
    completion_percentage and is_completed are derived from the lecture entries
    and recomputed on every mutation.
    """

    __tablename__ = "course_progress"
    __table_args__ = (
        UniqueConstraint("user_id", "course_id", name="uq_progress_user_course"),
    )

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    course_id = Column(
        Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True
    )

    is_completed = Column(Boolean, default=False, nullable=False)
    completion_percentage = Column(Integer, default=0, nullable=False)
    last_accessed = Column(DateTime(timezone=True), nullable=True)

    # Optimistic lock: concurrent writers to the same tracker fail with StaleDataError
    version = Column(Integer, nullable=False)

    # Timestamps
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self):
        return f"<CourseProgress(user_id={self.user_id}, course_id={self.course_id}, completion={self.completion_percentage}%)>"


class LectureProgress(Base):
    __tablename__ = "lecture_progress"
    __table_args__ = (
        UniqueConstraint(
            "course_progress_id", "lecture_id", name="uq_lecture_progress_entry"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)

    course_progress_id = Column(
        Integer,
        ForeignKey("course_progress.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    lecture_id = Column(
        Integer, ForeignKey("lectures.id", ondelete="CASCADE"), nullable=False, index=True
    )

    is_completed = Column(Boolean, default=False, nullable=False)
    watch_time = Column(Float, default=0, nullable=False)
    last_watched = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<LectureProgress(lecture_id={self.lecture_id}, completed={self.is_completed})>"
