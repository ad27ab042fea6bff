from pydantic import Field, model_validator
from typing import List, Optional
from datetime import datetime

from .base import CamelModel


class HymnOut(CamelModel):
    id: int
    title: str
    author: Optional[str] = None
    composer: Optional[str] = None
    year: Optional[int] = None
    category: str
    lyrics: Optional[List[str]] = None
    scripture: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    audio_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    duration: Optional[float] = None
    hymn_number: Optional[str] = None
    meter: Optional[str] = None
    key: Optional[str] = None
    source: str
    external_id: Optional[str] = None
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0
    share_count: int = 0
    bookmark_count: int = 0
    created_at: Optional[datetime] = None


class HymnInteractionUpdate(CamelModel):
    """New counter values; at least one must be present"""
    view_count: Optional[int] = Field(None, ge=0)
    like_count: Optional[int] = Field(None, ge=0)
    comment_count: Optional[int] = Field(None, ge=0)
    share_count: Optional[int] = Field(None, ge=0)
    bookmark_count: Optional[int] = Field(None, ge=0)

    @model_validator(mode="after")
    def require_one(self):
        if all(value is None for value in self.model_dump().values()):
            raise ValueError("At least one interaction count is required")
        return self
