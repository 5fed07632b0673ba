# learnify/models/lecture.py
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from learnify.core.database import Base


class Lecture(Base):
    __tablename__ = "lectures"
    __table_args__ = (
        UniqueConstraint("course_id", "order", name="uq_lecture_course_order"),
    )

    id = Column(Integer, primary_key=True, index=True)

    # Basic Info
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)

    # Media
    video_url = Column(Text, nullable=False)
    public_id = Column(String(255), nullable=False)
    duration = Column(Float, default=0, nullable=False)

    # Visible to non-enrolled users
    is_preview = Column(Boolean, default=False, nullable=False)

    # Course relationship
    course_id = Column(
        Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Position in course, assigned once at creation
    order = Column(Integer, nullable=False)

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

    def __repr__(self):
        return (
            f"<Lecture(id={self.id}, title='{self.title}', course_id={self.course_id}, order={self.order})>"
        )
