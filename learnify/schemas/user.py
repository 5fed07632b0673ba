# learnify/schemas/user.py
from datetime import datetime
from typing import List, Optional

from pydantic import EmailStr, Field, field_validator

from learnify.core.enums import UserRole
from learnify.schemas.common import CamelModel

# ==================== Requests ====================


class SignupRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    role: UserRole = UserRole.STUDENT

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name cannot be blank")
        return v

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class SigninRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class ProfileUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    bio: Optional[str] = Field(None, max_length=200)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=128)


class ForgotPasswordRequest(CamelModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


class ResetPasswordRequest(CamelModel):
    email: EmailStr
    otp: str = Field(..., pattern=r"^\d{6}$")
    new_password: str = Field(..., min_length=8, max_length=128)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.lower()


# ==================== Responses ====================


class UserResponse(CamelModel):
    id: int
    name: str
    email: str
    role: UserRole
    avatar: Optional[str] = None
    bio: Optional[str] = None
    last_active: Optional[datetime] = None
    created_at: datetime


class EnrolledCourseSummary(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    category: str
    price: float
    thumbnail: Optional[str] = None
    total_duration: float = 0


class ProfileResponse(UserResponse):
    enrolled_courses: List[EnrolledCourseSummary] = []
    total_enrolled_courses: int = 0


class AuthData(CamelModel):
    user: UserResponse
    access_token: str
