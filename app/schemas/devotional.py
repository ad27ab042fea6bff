from pydantic import Field
from typing import Optional
from datetime import datetime

from .base import CamelModel


class DevotionalCreate(CamelModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    scripture_reference: Optional[str] = Field(None, max_length=100)
    published_at: Optional[datetime] = None


class DevotionalOut(CamelModel):
    id: int
    title: str
    content: str
    scripture_reference: Optional[str] = None
    author_id: Optional[int] = None
    published_at: datetime
