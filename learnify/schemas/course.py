# learnify/schemas/course.py
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from learnify.core.enums import CourseLevel
from learnify.schemas.common import CamelModel

# ==================== Course Schemas ====================


class CourseBase(CamelModel):
    title: str = Field(..., min_length=1, max_length=100)
    subtitle: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    category: str = Field(..., min_length=1, max_length=100)
    level: CourseLevel = CourseLevel.BEGINNER
    price: float = Field(..., ge=0)


class CourseCreate(CourseBase):
    pass


class CourseUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    subtitle: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    level: Optional[CourseLevel] = None
    price: Optional[float] = Field(None, ge=0)
    is_published: Optional[bool] = None


class InstructorSummary(CamelModel):
    id: int
    name: str
    avatar: Optional[str] = None
    bio: Optional[str] = None


class CourseResponse(CourseBase):
    id: int
    thumbnail: Optional[str] = None
    instructor_id: int
    is_published: bool
    total_duration: float = 0
    created_at: datetime
    updated_at: datetime


class CourseListItem(CourseResponse):
    instructor: InstructorSummary
    total_lectures: int = 0


class LectureSummary(CamelModel):
    id: int
    title: str
    duration: float = 0
    is_preview: bool
    order: int
    video_url: Optional[str] = None  # withheld from requesters without access


class CourseDetailResponse(CourseResponse):
    instructor: InstructorSummary
    lectures: List[LectureSummary] = []
    total_lectures: int = 0
    enrolled_count: int = 0


class CourseProjection(CamelModel):
    """Compact view used for purchased-course listings."""

    id: int
    title: str
    thumbnail: Optional[str] = None
    description: Optional[str] = None
    category: str
    instructor: InstructorSummary
