"""
Models package initialization
Import all models and setup relationships
"""

from .course import Course
from .course_progress import CourseProgress, LectureProgress
from .course_purchase import CoursePurchase
from .enrollment import Enrollment
from .lecture import Lecture

# Import and setup relationships
from .relations import setup_relationships
from .user import User

# Setup all relationships after models are imported
setup_relationships()

# Make models available at package level
__all__ = [
    "Course",
    "CourseProgress",
    "CoursePurchase",
    "Enrollment",
    "Lecture",
    "LectureProgress",
    "User",
]
