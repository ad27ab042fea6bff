from pydantic import Field
from typing import List, Optional
from datetime import datetime

from .base import CamelModel


class MediaCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    content_type: str = Field(..., min_length=1, max_length=50)
    category: Optional[str] = None
    tags: List[str] = []
    file_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    duration: float = Field(0, ge=0)


class MediaUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    thumbnail_url: Optional[str] = None
    duration: Optional[float] = Field(None, ge=0)


class MediaOut(CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    content_type: str
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    file_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    duration: Optional[float] = None
    uploaded_by: Optional[int] = None
    view_count: int = 0
    listen_count: int = 0
    like_count: int = 0
    bookmark_count: int = 0
    share_count: int = 0
    moderation_status: str
    created_at: Optional[datetime] = None
