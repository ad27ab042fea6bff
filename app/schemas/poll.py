from pydantic import Field, field_validator, model_validator
from typing import List, Optional
from datetime import datetime

from .base import CamelModel


def _clean_options(options: List[str]) -> List[str]:
    cleaned = [o.strip() for o in options]
    if any(not o for o in cleaned):
        raise ValueError("Poll options cannot be empty")
    return cleaned


class PollCreate(CamelModel):
    question: Optional[str] = Field(None, min_length=5, max_length=200)
    title: Optional[str] = Field(None, min_length=5, max_length=200)  # alias of question
    description: Optional[str] = Field(None, max_length=500)
    options: List[str] = Field(..., min_length=2, max_length=10)
    multi_select: bool = False
    closes_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None  # alias of closes_at

    @field_validator("options")
    @classmethod
    def options_not_blank(cls, v: List[str]) -> List[str]:
        return _clean_options(v)

    @model_validator(mode="after")
    def resolve_aliases(self):
        self.question = self.question or self.title
        if not self.question:
            raise ValueError("Question is required")
        self.closes_at = self.closes_at or self.expires_at
        return self


class PollUpdate(CamelModel):
    question: Optional[str] = Field(None, min_length=5, max_length=200)
    description: Optional[str] = Field(None, max_length=500)
    options: Optional[List[str]] = Field(None, min_length=2, max_length=10)
    multi_select: Optional[bool] = None
    closes_at: Optional[datetime] = None
    is_active: Optional[bool] = None

    @field_validator("options")
    @classmethod
    def options_not_blank(cls, v):
        return _clean_options(v) if v is not None else v


class PollVoteRequest(CamelModel):
    option_indexes: List[int] = Field(..., min_length=1)
