from pydantic import Field
from typing import List, Optional
from datetime import datetime

from .base import CamelModel


class PrayerPostCreate(CamelModel):
    content: str = Field(..., min_length=1, max_length=5000)
    prayer_text: Optional[str] = Field(None, max_length=5000)
    verse_text: Optional[str] = Field(None, max_length=2000)
    verse_reference: Optional[str] = Field(None, max_length=100)
    anonymous: bool = False
    media: List[str] = Field(default_factory=list)


class PrayerPostUpdate(CamelModel):
    content: Optional[str] = Field(None, min_length=1, max_length=5000)
    prayer_text: Optional[str] = Field(None, max_length=5000)
    verse_text: Optional[str] = Field(None, max_length=2000)
    verse_reference: Optional[str] = Field(None, max_length=100)
    anonymous: Optional[bool] = None


class PrayerPostOut(CamelModel):
    id: int
    author_id: Optional[int] = None
    content: str
    prayer_text: Optional[str] = None
    verse_text: Optional[str] = None
    verse_reference: Optional[str] = None
    anonymous: bool = False
    media: Optional[List[str]] = None
    created_at: datetime
