# learnify/schemas/progress.py
from datetime import datetime
from typing import List, Optional

from learnify.schemas.common import CamelModel
from learnify.schemas.course import CourseDetailResponse


class LectureProgressResponse(CamelModel):
    lecture_id: int
    is_completed: bool
    watch_time: float = 0
    last_watched: Optional[datetime] = None


class CourseProgressResponse(CamelModel):
    id: int
    user_id: int
    course_id: int
    is_completed: bool
    completion_percentage: int
    last_accessed: Optional[datetime] = None
    lecture_progress: List[LectureProgressResponse] = []


class ProgressOverview(CamelModel):
    course_details: CourseDetailResponse
    progress: List[LectureProgressResponse]
    is_completed: bool
    completion_percentage: int


class LectureProgressUpdate(CamelModel):
    lecture_progress: List[LectureProgressResponse]
    is_completed: bool
    completion_percentage: int
