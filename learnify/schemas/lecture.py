# learnify/schemas/lecture.py
from datetime import datetime
from typing import List, Optional

from pydantic import Field

from learnify.schemas.common import CamelModel


class LectureCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    is_preview: bool = False


class LectureResponse(CamelModel):
    id: int
    course_id: int
    title: str
    description: Optional[str] = None
    video_url: str
    public_id: str
    duration: float = 0
    is_preview: bool
    order: int
    created_at: datetime


class LectureListData(CamelModel):
    lectures: List[LectureResponse]
    is_enrolled: bool
    is_instructor: bool
