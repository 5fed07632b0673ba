# learnify/services/course.py
import logging
import math
from typing import List, Optional, Tuple

from fastapi import UploadFile
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from learnify.core.decorator import db_exception
from learnify.core.enums import CourseLevel, CourseSort, MediaFolder
from learnify.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from learnify.models.course import Course
from learnify.models.user import User
from learnify.schemas.course import CourseCreate, CourseDetailResponse, CourseUpdate
from learnify.services.lecture import LectureService
from learnify.utils.media_store import MediaStore

logger = logging.getLogger(__name__)

SORT_ORDERS = {
    CourseSort.NEWEST: Course.created_at.desc(),
    CourseSort.OLDEST: Course.created_at.asc(),
    CourseSort.PRICE_LOW: Course.price.asc(),
    CourseSort.PRICE_HIGH: Course.price.desc(),
}


def parse_price_range(value: Optional[str]) -> Tuple[Optional[float], Optional[float]]:
    """Parse ``"min-max"``; either side may be empty (``"10-"``, ``"-50"``)."""
    if not value:
        return None, None
    low, sep, high = value.partition("-")
    if not sep:
        raise ValidationError("priceRange must look like 'min-max'")
    try:
        minimum = float(low) if low.strip() else None
        maximum = float(high) if high.strip() else None
    except ValueError:
        raise ValidationError("priceRange must look like 'min-max'")
    if minimum is not None and maximum is not None and minimum > maximum:
        raise ValidationError("priceRange minimum is greater than maximum")
    return minimum, maximum


def total_pages(total: int, size: int) -> int:
    return math.ceil(total / size) if size > 0 else 0


def escape_like(value: str) -> str:
    """Make `%` and `_` match literally inside an ILIKE pattern."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class CourseService:
    def __init__(self, db: Session):
        self.db = db

    def get_course(self, course_id: int) -> Course:
        course = (
            self.db.query(Course)
            .options(selectinload(Course.instructor), selectinload(Course.lectures))
            .filter(Course.id == course_id)
            .first()
        )
        if not course:
            raise NotFoundError("Course not found")
        return course

    def _get_owned_course(self, course_id: int, user: User) -> Course:
        course = self.get_course(course_id)
        if course.instructor_id != user.id:
            raise AuthorizationError("You are not authorized to modify this course")
        return course

    def build_detail(self, course: Course, requester: Optional[User]) -> CourseDetailResponse:
        """Course with instructor and lectures; locked lectures lose their video URL."""
        detail = CourseDetailResponse.model_validate(course)
        detail.enrolled_count = len(course.enrollments)

        if not LectureService(self.db).has_full_access(course, requester):
            for lecture in detail.lectures:
                if not lecture.is_preview:
                    lecture.video_url = None
        return detail

    @db_exception
    def create_course(self, data: CourseCreate, instructor: User) -> Course:
        course = Course(
            **data.model_dump(mode="json"),
            instructor_id=instructor.id,
        )
        self.db.add(course)
        self.db.commit()
        self.db.refresh(course)

        logger.info(f"Course {course.id} created by instructor {instructor.id}")
        return course

    def search_courses(
        self,
        query: Optional[str] = None,
        categories: Optional[List[str]] = None,
        level: Optional[CourseLevel] = None,
        price_range: Optional[str] = None,
        sort_by: CourseSort = CourseSort.NEWEST,
        page: int = 1,
        size: int = 20,
    ) -> Tuple[List[Course], int]:
        """Published courses matching the filters, with the total match count."""
        q = (
            self.db.query(Course)
            .options(selectinload(Course.instructor), selectinload(Course.lectures))
            .filter(Course.is_published.is_(True))
        )

        if query:
            pattern = f"%{escape_like(query.strip())}%"
            q = q.filter(
                or_(
                    Course.title.ilike(pattern, escape="\\"),
                    Course.subtitle.ilike(pattern, escape="\\"),
                    Course.description.ilike(pattern, escape="\\"),
                )
            )

        if categories:
            q = q.filter(Course.category.in_(categories))

        if level:
            q = q.filter(Course.level == level.value)

        minimum, maximum = parse_price_range(price_range)
        if minimum is not None:
            q = q.filter(Course.price >= minimum)
        if maximum is not None:
            q = q.filter(Course.price <= maximum)

        total = q.count()
        courses = (
            q.order_by(SORT_ORDERS[sort_by], Course.id.asc())
            .offset((page - 1) * size)
            .limit(size)
            .all()
        )
        return courses, total

    def get_published_courses(self, page: int = 1, size: int = 20) -> Tuple[List[Course], int]:
        return self.search_courses(page=page, size=size)

    def get_instructor_courses(self, instructor: User) -> List[Course]:
        return (
            self.db.query(Course)
            .options(selectinload(Course.instructor), selectinload(Course.lectures))
            .filter(Course.instructor_id == instructor.id)
            .order_by(Course.created_at.desc(), Course.id.desc())
            .all()
        )

    @db_exception
    def update_course(self, course_id: int, data: CourseUpdate, user: User) -> Course:
        course = self._get_owned_course(course_id, user)
        updates = data.model_dump(mode="json", exclude_unset=True)

        for field in ("title", "category", "price", "level"):
            if field in updates and updates[field] is None:
                raise ValidationError(f"{field} cannot be empty")

        if updates.get("is_published") and not course.lectures:
            raise ValidationError("A course needs at least one lecture before it can be published")

        for field, value in updates.items():
            setattr(course, field, value)

        self.db.commit()
        self.db.refresh(course)

        logger.info(f"Course {course.id} updated: {sorted(updates)}")
        return course

    @db_exception
    async def update_thumbnail(
        self, course_id: int, file: UploadFile, user: User, media_store: MediaStore
    ) -> Course:
        course = self._get_owned_course(course_id, user)

        asset = await media_store.upload(file, MediaFolder.THUMBNAILS)
        old_public_id = course.thumbnail_public_id
        course.thumbnail = asset.url
        course.thumbnail_public_id = asset.public_id
        self.db.commit()
        self.db.refresh(course)

        media_store.delete(old_public_id)
        logger.info(f"Thumbnail replaced for course {course.id}")
        return course
