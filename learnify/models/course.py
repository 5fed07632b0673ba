# learnify/models/course.py
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.sql import func

from learnify.core.database import Base
from learnify.core.enums import CourseLevel


class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)

    # Basic Info
    title = Column(String(100), nullable=False, index=True)
    subtitle = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=False, index=True)
    level = Column(String(20), default=CourseLevel.BEGINNER.value, nullable=False)
    thumbnail = Column(Text, nullable=True)
    thumbnail_public_id = Column(String(255), nullable=True)

    # Pricing
    price = Column(Numeric(10, 2), nullable=False, default=0)

    # Owner
    instructor_id = Column(
        Integer, ForeignKey("users.id"), nullable=False, index=True
    )

    # Settings
    is_published = Column(Boolean, default=False, nullable=False)
    total_duration = Column(Float, default=0, nullable=False)

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

    @property
    def total_lectures(self) -> int:
        return len(self.lectures)

    def __repr__(self):
        return f"<Course(id={self.id}, title='{self.title}', price={self.price})>"
