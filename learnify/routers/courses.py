# learnify/routers/courses.py
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from learnify.core.database import get_db
from learnify.core.dependencies import (
    get_current_user,
    get_media_store,
    get_optional_user,
    require_instructor,
)
from learnify.core.enums import CourseLevel, CourseSort
from learnify.models.user import User
from learnify.schemas.common import ApiResponse, PaginatedResponse
from learnify.schemas.course import (
    CourseCreate,
    CourseDetailResponse,
    CourseListItem,
    CourseResponse,
    CourseUpdate,
)
from learnify.schemas.lecture import LectureCreate, LectureListData, LectureResponse
from learnify.services.course import CourseService, total_pages
from learnify.services.lecture import LectureService
from learnify.utils.media_store import MediaStore

router = APIRouter(
    prefix="/courses",
    tags=["Courses"],
    responses={404: {"description": "Not found"}},
)


def _split_categories(categories: Optional[List[str]]) -> List[str]:
    result = []
    for item in categories or []:
        result.extend(c.strip() for c in item.split(",") if c.strip())
    return result


# ==================== Course Endpoints ====================


@router.post("", response_model=ApiResponse[CourseResponse], status_code=201)
def create_course(
    course_in: CourseCreate,
    db: Session = Depends(get_db),
    instructor: User = Depends(require_instructor),
):
    """
    Create a new (unpublished) course.
    Instructors only.
    """
    course = CourseService(db).create_course(course_in, instructor)
    return {"success": True, "message": "Course created successfully", "data": course}


@router.get("/search", response_model=PaginatedResponse[CourseListItem])
def search_courses(
    query: Optional[str] = Query(None, max_length=100),
    categories: Optional[List[str]] = Query(None),
    level: Optional[CourseLevel] = Query(None),
    price_range: Optional[str] = Query(None, alias="priceRange"),
    sort_by: CourseSort = Query(CourseSort.NEWEST, alias="sortBy"),
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """
    Search published courses.
    `categories` may be repeated or comma separated; `priceRange` is "min-max".
    """
    courses, total = CourseService(db).search_courses(
        query=query,
        categories=_split_categories(categories),
        level=level,
        price_range=price_range,
        sort_by=sort_by,
        page=page,
        size=size,
    )
    return {
        "success": True,
        "count": len(courses),
        "total": total,
        "page": page,
        "size": size,
        "total_pages": total_pages(total, size),
        "data": courses,
    }


@router.get("/published", response_model=PaginatedResponse[CourseListItem])
def get_published_courses(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    courses, total = CourseService(db).get_published_courses(page, size)
    return {
        "success": True,
        "count": len(courses),
        "total": total,
        "page": page,
        "size": size,
        "total_pages": total_pages(total, size),
        "data": courses,
    }


@router.get("/my-courses", response_model=ApiResponse[List[CourseListItem]])
def get_my_courses(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Courses created by the current user."""
    return {"success": True, "data": CourseService(db).get_instructor_courses(current_user)}


@router.patch("/{course_id}", response_model=ApiResponse[CourseResponse])
def update_course(
    course_id: int,
    course_in: CourseUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Update a course. Owner only."""
    course = CourseService(db).update_course(course_id, course_in, current_user)
    return {"success": True, "message": "Course updated successfully", "data": course}


@router.post("/{course_id}/thumbnail", response_model=ApiResponse[CourseResponse])
async def upload_thumbnail(
    course_id: int,
    thumbnail: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    media_store: MediaStore = Depends(get_media_store),
):
    course = await CourseService(db).update_thumbnail(
        course_id, thumbnail, current_user, media_store
    )
    return {"success": True, "message": "Thumbnail uploaded successfully", "data": course}


@router.get("/{course_id}", response_model=ApiResponse[CourseDetailResponse])
def get_course(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    service = CourseService(db)
    course = service.get_course(course_id)
    return {"success": True, "data": service.build_detail(course, current_user)}


# ==================== Lecture Endpoints ====================


@router.post(
    "/{course_id}/lectures",
    response_model=ApiResponse[LectureResponse],
    status_code=201,
)
async def add_lecture(
    course_id: int,
    title: str = Form(...),
    description: Optional[str] = Form(None),
    is_preview: bool = Form(False, alias="isPreview"),
    video: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    media_store: MediaStore = Depends(get_media_store),
):
    """
    Add a lecture with its video (multipart form).
    Owner only. The lecture is appended after the current last one.
    """
    lecture_in = LectureCreate(title=title, description=description, is_preview=is_preview)
    lecture = await LectureService(db).add_lecture(
        course_id, lecture_in, video, current_user, media_store
    )
    return {"success": True, "message": "Lecture added successfully", "data": lecture}


@router.get("/{course_id}/lectures", response_model=ApiResponse[LectureListData])
def list_lectures(
    course_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_optional_user),
):
    """
    Lectures of a course ordered by position.
    Without enrollment or ownership only preview lectures are returned.
    """
    data = LectureService(db).list_course_lectures(course_id, current_user)
    return {"success": True, "data": data}
