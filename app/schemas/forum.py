from pydantic import Field, field_validator
from typing import List, Literal, Optional
from datetime import datetime
from urllib.parse import urlparse

from .base import CamelModel


class ForumCreate(CamelModel):
    title: str = Field(..., min_length=3, max_length=100)
    description: str = Field(..., min_length=10, max_length=500)

    @field_validator("title", "description")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()


class ForumOut(CamelModel):
    id: int
    title: str
    description: str
    created_by: Optional[int] = None
    is_active: bool
    posts_count: int
    participants_count: int
    created_at: datetime


class EmbeddedLink(CamelModel):
    url: str
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    thumbnail: Optional[str] = None
    type: Literal["video", "article", "resource", "other"]

    @field_validator("url")
    @classmethod
    def valid_url(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("Invalid URL")
        return v


class ForumPostCreate(CamelModel):
    content: str = Field(..., min_length=1, max_length=5000)
    embedded_links: List[EmbeddedLink] = Field(default_factory=list, max_length=5)
    tags: List[str] = Field(default_factory=list)

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Content is required")
        return v.strip()


class ForumPostUpdate(CamelModel):
    content: Optional[str] = Field(None, min_length=1, max_length=5000)
    embedded_links: Optional[List[EmbeddedLink]] = Field(None, max_length=5)
    tags: Optional[List[str]] = None


class ForumPostOut(CamelModel):
    id: int
    forum_id: int
    user_id: int
    content: str
    embedded_links: Optional[List[dict]] = None
    tags: Optional[List[str]] = None
    likes_count: int
    comments_count: int
    created_at: datetime
    updated_at: Optional[datetime] = None
