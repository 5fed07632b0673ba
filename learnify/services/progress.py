# learnify/services/progress.py
"""
Per-user lecture completion tracking.

The percentage and completion flag stored on a tracker are always derived from
its lecture entries and the lectures the course has *now*; every mutation
recomputes them before saving.
"""

import logging
from typing import Any, Dict, Iterable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from learnify.core.decorator import db_exception
from learnify.core.exceptions import NotFoundError
from learnify.models.course import Course
from learnify.models.course_progress import CourseProgress, LectureProgress
from learnify.models.user import User
from learnify.services.course import CourseService
from learnify.utils.dates import utcnow

logger = logging.getLogger(__name__)


def completion_percentage(completed: int, total: int) -> int:
    """round(100 * completed / total) with halves rounded up; 0 for an empty course."""
    if total <= 0:
        return 0
    return (200 * completed + total) // (2 * total)


def is_course_completed(completed: int, total: int) -> bool:
    return total > 0 and completed == total


def count_completed(entries: Iterable[LectureProgress], lecture_ids: Iterable[int]) -> int:
    current = set(lecture_ids)
    return sum(1 for entry in entries if entry.is_completed and entry.lecture_id in current)


def derive(entries: Iterable[LectureProgress], lecture_ids: Iterable[int]):
    lecture_ids = list(lecture_ids)
    completed = count_completed(entries, lecture_ids)
    total = len(lecture_ids)
    return completion_percentage(completed, total), is_course_completed(completed, total)


class ProgressService:
    def __init__(self, db: Session):
        self.db = db

    def _get_course(self, course_id: int) -> Course:
        return CourseService(self.db).get_course(course_id)

    def _find_tracker(self, user_id: int, course_id: int) -> Optional[CourseProgress]:
        return (
            self.db.query(CourseProgress)
            .options(selectinload(CourseProgress.lecture_progress))
            .filter(
                CourseProgress.user_id == user_id,
                CourseProgress.course_id == course_id,
            )
            .first()
        )

    def _require_tracker(self, user_id: int, course_id: int) -> CourseProgress:
        tracker = self._find_tracker(user_id, course_id)
        if not tracker:
            raise NotFoundError("Course progress not found")
        return tracker

    def _get_or_create_tracker(self, user_id: int, course_id: int) -> CourseProgress:
        tracker = self._find_tracker(user_id, course_id)
        if tracker:
            return tracker

        tracker = CourseProgress(
            user_id=user_id,
            course_id=course_id,
            is_completed=False,
            completion_percentage=0,
        )
        self.db.add(tracker)
        try:
            self.db.flush()
        except IntegrityError:
            # Another request created it first
            self.db.rollback()
            tracker = self._find_tracker(user_id, course_id)
            if not tracker:
                raise
        return tracker

    def _recompute(self, tracker: CourseProgress, course: Course) -> None:
        percentage, completed = derive(
            tracker.lecture_progress, [lecture.id for lecture in course.lectures]
        )
        tracker.completion_percentage = percentage
        tracker.is_completed = completed

    def get_progress(self, course_id: int, user: User) -> Dict[str, Any]:
        """Read-only view; a missing tracker reads as zero progress."""
        course = self._get_course(course_id)
        course_details = CourseService(self.db).build_detail(course, user)
        tracker = self._find_tracker(user.id, course.id)

        if not tracker:
            return {
                "course_details": course_details,
                "progress": [],
                "is_completed": False,
                "completion_percentage": 0,
            }

        percentage, completed = derive(
            tracker.lecture_progress, [lecture.id for lecture in course.lectures]
        )
        return {
            "course_details": course_details,
            "progress": tracker.lecture_progress,
            "is_completed": completed,
            "completion_percentage": percentage,
        }

    @db_exception
    def mark_lecture_completed(self, course_id: int, lecture_id: int, user: User) -> CourseProgress:
        course = self._get_course(course_id)
        if not any(lecture.id == lecture_id for lecture in course.lectures):
            raise NotFoundError("Lecture not found in this course")

        tracker = self._get_or_create_tracker(user.id, course.id)
        now = utcnow()

        entry = next(
            (e for e in tracker.lecture_progress if e.lecture_id == lecture_id), None
        )
        if entry is None:
            entry = LectureProgress(lecture_id=lecture_id)
            tracker.lecture_progress.append(entry)
        entry.is_completed = True
        entry.last_watched = now

        tracker.last_accessed = now
        self._recompute(tracker, course)
        self.db.commit()
        self.db.refresh(tracker)

        logger.info(
            f"User {user.id} completed lecture {lecture_id} of course {course.id} "
            f"({tracker.completion_percentage}%)"
        )
        return tracker

    @db_exception
    def mark_course_completed(self, course_id: int, user: User) -> CourseProgress:
        """Mark every lecture of the course completed, creating missing entries."""
        course = self._get_course(course_id)
        tracker = self._require_tracker(user.id, course.id)
        now = utcnow()

        entries = {e.lecture_id: e for e in tracker.lecture_progress}
        for lecture in course.lectures:
            entry = entries.get(lecture.id)
            if entry is None:
                entry = LectureProgress(lecture_id=lecture.id)
                tracker.lecture_progress.append(entry)
            entry.is_completed = True
            entry.last_watched = entry.last_watched or now

        tracker.last_accessed = now
        self._recompute(tracker, course)
        self.db.commit()
        self.db.refresh(tracker)

        logger.info(f"User {user.id} marked course {course.id} as completed")
        return tracker

    @db_exception
    def reset_progress(self, course_id: int, user: User) -> CourseProgress:
        course = self._get_course(course_id)
        tracker = self._require_tracker(user.id, course.id)

        for entry in tracker.lecture_progress:
            entry.is_completed = False

        tracker.last_accessed = utcnow()
        self._recompute(tracker, course)
        self.db.commit()
        self.db.refresh(tracker)

        logger.info(f"User {user.id} reset progress for course {course.id}")
        return tracker
