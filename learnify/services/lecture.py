# learnify/services/lecture.py
import logging
from typing import Any, Dict, Optional

from fastapi import UploadFile
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from learnify.core.decorator import db_exception
from learnify.core.enums import MediaFolder
from learnify.core.exceptions import AuthorizationError, NotFoundError
from learnify.models.course import Course
from learnify.models.enrollment import Enrollment
from learnify.models.lecture import Lecture
from learnify.models.user import User
from learnify.schemas.lecture import LectureCreate
from learnify.utils.media_store import MediaStore

logger = logging.getLogger(__name__)


def is_course_instructor(course: Course, user: Optional[User]) -> bool:
    return user is not None and course.instructor_id == user.id


class LectureService:
    def __init__(self, db: Session):
        self.db = db

    def get_course(self, course_id: int) -> Course:
        course = self.db.query(Course).filter(Course.id == course_id).first()
        if not course:
            raise NotFoundError("Course not found")
        return course

    def is_enrolled(self, course: Course, user: Optional[User]) -> bool:
        if user is None:
            return False
        return (
            self.db.query(Enrollment.id)
            .filter(Enrollment.course_id == course.id, Enrollment.user_id == user.id)
            .first()
            is not None
        )

    def has_full_access(self, course: Course, user: Optional[User]) -> bool:
        """Enrolled students and the owning instructor see every lecture."""
        return is_course_instructor(course, user) or self.is_enrolled(course, user)

    def list_course_lectures(self, course_id: int, requester: Optional[User]) -> Dict[str, Any]:
        """
        Lectures of a course as the requester may see them.

        Requesters without access (anonymous included) only get preview lectures.
        """
        course = self.get_course(course_id)
        is_instructor = is_course_instructor(course, requester)
        is_enrolled = self.is_enrolled(course, requester)

        query = self.db.query(Lecture).filter(Lecture.course_id == course.id)
        if not (is_instructor or is_enrolled):
            query = query.filter(Lecture.is_preview.is_(True))

        lectures = query.order_by(Lecture.order.asc()).all()
        return {
            "lectures": lectures,
            "is_enrolled": is_enrolled,
            "is_instructor": is_instructor,
        }

    def next_order(self, course_id: int) -> int:
        current = (
            self.db.query(func.max(Lecture.order))
            .filter(Lecture.course_id == course_id)
            .scalar()
        )
        return (current or 0) + 1

    @db_exception
    async def add_lecture(
        self,
        course_id: int,
        data: LectureCreate,
        video: UploadFile,
        user: User,
        media_store: MediaStore,
    ) -> Lecture:
        course = self.get_course(course_id)
        if not is_course_instructor(course, user):
            raise AuthorizationError("You are not authorized to add lectures to this course")

        asset = await media_store.upload(video, MediaFolder.LECTURES)

        lecture = Lecture(
            course_id=course.id,
            title=data.title,
            description=data.description,
            is_preview=data.is_preview,
            video_url=asset.url,
            public_id=asset.public_id,
            duration=asset.duration or 0,
            order=self.next_order(course.id),
        )
        self.db.add(lecture)
        course.total_duration = (course.total_duration or 0) + lecture.duration

        try:
            self.db.commit()
        except SQLAlchemyError:
            # Do not leave an orphaned upload behind; a concurrent insert
            # taking the same order lands here as an IntegrityError.
            media_store.delete(asset.public_id)
            raise

        self.db.refresh(lecture)
        logger.info(f"Lecture {lecture.id} added to course {course.id} at position {lecture.order}")
        return lecture
