# learnify/models/user.py
from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func

from learnify.core.database import Base
from learnify.core.enums import UserRole


class User(Base):
    __tablename__ = "users"

    # Primary key
    id = Column(Integer, primary_key=True, index=True)

    # Authentication fields
    email = Column(String(255), unique=True, index=True, nullable=False)  # lowercased
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(20), default=UserRole.STUDENT.value, nullable=False)

    # Profile information
    name = Column(String(100), nullable=False)
    avatar = Column(Text, nullable=True)
    avatar_public_id = Column(String(255), nullable=True)
    bio = Column(String(200), nullable=True)

    # Password reset (6-digit code sent by email)
    reset_password_token = Column(String(6), nullable=True)
    reset_password_expires_at = Column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
    last_active = Column(DateTime(timezone=True), nullable=True)
    password_changed_at = Column(DateTime(timezone=True), nullable=True)

    @property
    def is_instructor(self) -> bool:
        return self.role == UserRole.INSTRUCTOR.value

    @property
    def total_enrolled_courses(self) -> int:
        return len(self.enrollments)

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
