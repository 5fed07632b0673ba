# learnify/models/relations.py

from sqlalchemy.orm import relationship

from .course import Course
from .course_progress import CourseProgress, LectureProgress
from .course_purchase import CoursePurchase
from .enrollment import Enrollment
from .lecture import Lecture
from .user import User


def setup_relationships():
    """
    Configure all SQLAlchemy relationships between models.
    """

    # 1. Instructor to created Courses (One-to-Many)
    User.created_courses = relationship(
        "Course",
        back_populates="instructor",
        order_by="Course.created_at.desc()",
    )
    Course.instructor = relationship("User", back_populates="created_courses")

    # 2. Course to Lectures (One-to-Many), ordered by position
    Course.lectures = relationship(
        "Lecture",
        back_populates="course",
        cascade="all, delete-orphan",
        order_by="Lecture.order",
    )
    Lecture.course = relationship("Course", back_populates="lectures")

    # 3. User to Enrollments (One-to-Many)
    User.enrollments = relationship(
        "Enrollment",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="Enrollment.enrolled_at.desc()",
    )
    Enrollment.user = relationship("User", back_populates="enrollments")

    # 4. Course to Enrollments (One-to-Many)
    Course.enrollments = relationship(
        "Enrollment",
        back_populates="course",
        cascade="all, delete-orphan",
    )
    Enrollment.course = relationship("Course", back_populates="enrollments")

    # 5. Direct Many-to-Many: User <-> Course through enrollments (read only)
    User.enrolled_courses = relationship(
        "Course",
        secondary="enrollments",
        back_populates="enrolled_students",
        viewonly=True,
    )
    Course.enrolled_students = relationship(
        "User",
        secondary="enrollments",
        back_populates="enrolled_courses",
        viewonly=True,
    )

    # 6. Purchases (Many-to-One on both sides)
    User.purchases = relationship(
        "CoursePurchase",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    CoursePurchase.user = relationship("User", back_populates="purchases")
    Course.purchases = relationship("CoursePurchase", back_populates="course")
    CoursePurchase.course = relationship("Course", back_populates="purchases")

    # 7. Progress trackers
    User.course_progress = relationship(
        "CourseProgress",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    CourseProgress.user = relationship("User", back_populates="course_progress")
    CourseProgress.course = relationship("Course")

    # 8. Tracker to lecture entries (One-to-Many)
    CourseProgress.lecture_progress = relationship(
        "LectureProgress",
        back_populates="course_progress",
        cascade="all, delete-orphan",
        order_by="LectureProgress.id",
    )
    LectureProgress.course_progress = relationship(
        "CourseProgress", back_populates="lecture_progress"
    )
    LectureProgress.lecture = relationship("Lecture")
