from datetime import datetime
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Serialises as camelCase; accepts camelCase or snake_case input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# --- Envelope ---

class DataResponse(BaseModel, Generic[T]):
    data: T


class ErrorResponse(BaseModel):
    error: str
    message: str


# --- Diary ---

class DiaryCreate(CamelModel):
    title: str = Field(min_length=1, max_length=100)
    content: str = Field(min_length=1)
    image_url: str | None = Field(None, max_length=500)


class DiaryUpdate(CamelModel):
    # The owner is not part of the payload; it never changes.
    title: str | None = Field(None, min_length=1, max_length=100)
    content: str | None = Field(None, min_length=1)
    image_url: str | None = Field(None, max_length=500)


class DiaryResponse(CamelModel):
    diary_id: int
    user_id: int
    title: str
    content: str
    image_url: str | None = None
    likes: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


class DiaryDetail(CamelModel):
    """Single-diary read: the owner id is replaced by the writer's profile."""

    diary_id: int
    title: str
    content: str
    image_url: str | None = None
    likes: int
    created_at: datetime | None = None
    updated_at: datetime | None = None
    writer: Any = None


# --- Metrics ---

class MetricsResponse(CamelModel):
    total_diaries: int
    total_likes: int
    avg_likes_per_diary: float
