# learnify/schemas/common.py
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """camelCase on the wire, snake_case in Python; accepts either on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class ApiResponse(CamelModel, Generic[T]):
    success: bool = True
    message: Optional[str] = None
    data: Optional[T] = None


class PaginatedResponse(CamelModel, Generic[T]):
    success: bool = True
    count: int
    total: int
    page: int
    size: int
    total_pages: int
    data: List[T]


class MessageResponse(CamelModel):
    success: bool = True
    message: str
