"""
Domain models shared by the upload path and the worker.

JobMessage travels over the queue as JSON with camelCase keys; the
remaining models mirror rows of the media table.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class MediaStatus(str, Enum):
    """Processing status of a media record"""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    READY = "READY"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (MediaStatus.READY, MediaStatus.FAILED)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ThumbnailSize(_CamelModel):
    width: int = Field(gt=0)
    height: int = Field(gt=0)

    def __str__(self) -> str:
        return f"{self.width}x{self.height}"


class ThumbnailDescriptor(_CamelModel):
    """A generated thumbnail; url holds the object key until presigned for output"""

    url: str
    width: int
    height: int
    mime_type: str


class JobMessage(_CamelModel):
    """Unit of work published by the producer and consumed by the poller"""

    correlation_id: str
    media_id: int
    object_key: str
    mime_type: str
    requested_thumbnail_sizes: List[ThumbnailSize] = Field(default_factory=list)
    retry_count: int = 0

    def to_body(self) -> str:
        """Serialize to the JSON wire format."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_body(cls, body: str) -> "JobMessage":
        """Decode a queue message body; raises pydantic.ValidationError."""
        return cls.model_validate_json(body)


class MediaMetadata(BaseModel):
    """Declared metadata of an upload"""

    uploader_id: int
    name: str = Field(min_length=1)
    mime_type: str
    size: int = Field(ge=0)
    description: Optional[str] = None
    width: Optional[int] = Field(default=None, ge=1)
    height: Optional[int] = Field(default=None, ge=1)
    duration: Optional[int] = Field(default=None, ge=0)


class MediaSort(str, Enum):
    """Listing order by upload time"""

    CREATED_AT_DESC = "createdAt_desc"
    CREATED_AT_ASC = "createdAt_asc"


class MediaFilter(BaseModel):
    """Paging, ordering and filters for media listings"""

    page: int = Field(default=1, ge=1)
    size: int = Field(default=10, ge=1, le=100)
    sort: MediaSort = MediaSort.CREATED_AT_DESC
    mime_type: Optional[str] = None
    uploaded_after: Optional[datetime] = None
    uploaded_before: Optional[datetime] = None
    search: Optional[str] = None

    @field_validator("uploaded_after", "uploaded_before")
    @classmethod
    def assume_utc(cls, v):
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size


class MediaRecord(BaseModel):
    """A row of the media table"""

    id: int
    uploader_id: int
    name: str
    description: Optional[str] = None
    mime_type: str
    size: int
    width: Optional[int] = None
    height: Optional[int] = None
    duration: Optional[int] = None
    original_key: str
    thumbnails: List[ThumbnailDescriptor] = Field(default_factory=list)
    status: MediaStatus = MediaStatus.PENDING
    created_at: datetime
    updated_at: datetime
    processed_at: Optional[datetime] = None
