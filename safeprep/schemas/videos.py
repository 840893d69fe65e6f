import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator


class VideoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str
    video_id: str
    duration: str
    category: str
    thumbnail_url: str | None = None
    hover_content: str | None = None
    views: int
    is_active: bool
    order_index: int
    created_at: datetime
    updated_at: datetime


class VideoCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = ""
    video_id: str = Field(min_length=1, max_length=64)
    duration: str = Field(default="", max_length=16)
    category: str = Field(default="general", max_length=64)
    thumbnail_url: str | None = None
    hover_content: str | None = None
    order_index: int = 0


NON_NULL_VIDEO_FIELDS = ("title", "description", "video_id", "duration", "category", "order_index")


class VideoUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    video_id: str | None = Field(default=None, min_length=1, max_length=64)
    duration: str | None = Field(default=None, max_length=16)
    category: str | None = Field(default=None, max_length=64)
    thumbnail_url: str | None = None
    hover_content: str | None = None
    order_index: int | None = None

    @model_validator(mode="after")
    def reject_explicit_null(self) -> "VideoUpdateRequest":
        # Omitted fields are left alone; these columns are NOT NULL.
        for field in NON_NULL_VIDEO_FIELDS:
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self


class VideoActiveRequest(BaseModel):
    is_active: bool


class VideoListResponse(BaseModel):
    videos: list[VideoOut]
    total: int


class VideoDeleteResponse(BaseModel):
    deleted: bool
