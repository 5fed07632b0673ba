from enum import Enum


class UserRole(str, Enum):
    STUDENT = "student"
    INSTRUCTOR = "instructor"


class CourseLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class PurchaseStatus(str, Enum):
    """Only COMPLETED grants access to paid content."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class CourseSort(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    PRICE_LOW = "price-low"
    PRICE_HIGH = "price-high"


class MediaFolder(str, Enum):
    AVATARS = "avatars"
    THUMBNAILS = "thumbnails"
    LECTURES = "lectures"
