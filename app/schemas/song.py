from pydantic import Field
from typing import Optional
from datetime import datetime

from .base import CamelModel


class SongCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=255)
    singer: str = Field(..., min_length=1, max_length=255)
    file_url: str = Field(..., min_length=1)
    thumbnail_url: Optional[str] = None
    duration: Optional[float] = Field(None, ge=0)


class SongUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    singer: Optional[str] = Field(None, min_length=1, max_length=255)
    thumbnail_url: Optional[str] = None
    duration: Optional[float] = Field(None, ge=0)


class SongOut(CamelModel):
    id: int
    title: str
    singer: str
    uploaded_by: Optional[int] = None
    file_url: str
    thumbnail_url: Optional[str] = None
    duration: Optional[float] = None
    like_count: int = 0
    share_count: int = 0
    view_count: int = 0
    created_at: datetime
