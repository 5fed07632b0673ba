# learnify/routers/progress.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from learnify.core.database import get_db
from learnify.core.dependencies import get_current_user
from learnify.models.user import User
from learnify.schemas.common import ApiResponse
from learnify.schemas.progress import (
    CourseProgressResponse,
    LectureProgressUpdate,
    ProgressOverview,
)
from learnify.services.progress import ProgressService

router = APIRouter(
    prefix="/progress",
    tags=["Progress"],
    responses={404: {"description": "Not found"}},
)


@router.get("/{course_id}", response_model=ApiResponse[ProgressOverview])
def get_course_progress(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Progress of the current user in a course; zero when nothing was tracked yet."""
    data = ProgressService(db).get_progress(course_id, current_user)
    return {"success": True, "data": data}


@router.patch(
    "/{course_id}/lectures/{lecture_id}",
    response_model=ApiResponse[LectureProgressUpdate],
)
def update_lecture_progress(
    course_id: int,
    lecture_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    tracker = ProgressService(db).mark_lecture_completed(course_id, lecture_id, current_user)
    return {
        "success": True,
        "message": "Lecture progress updated successfully",
        "data": {
            "lecture_progress": tracker.lecture_progress,
            "is_completed": tracker.is_completed,
            "completion_percentage": tracker.completion_percentage,
        },
    }


@router.patch("/{course_id}/complete", response_model=ApiResponse[CourseProgressResponse])
def mark_as_completed(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    tracker = ProgressService(db).mark_course_completed(course_id, current_user)
    return {"success": True, "message": "Course marked as completed", "data": tracker}


@router.patch("/{course_id}/reset", response_model=ApiResponse[CourseProgressResponse])
def reset_progress(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    tracker = ProgressService(db).reset_progress(course_id, current_user)
    return {"success": True, "message": "Course progress has been reset", "data": tracker}
