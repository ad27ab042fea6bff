from pydantic import Field
from typing import Optional
from datetime import datetime
from enum import Enum

from .base import CamelModel
from ..models.report import ReportReason


class ReviewStatus(str, Enum):
    REVIEWED = "reviewed"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


class ReportCreate(CamelModel):
    reason: ReportReason
    description: Optional[str] = Field(None, max_length=1000)


class ReportReview(CamelModel):
    status: ReviewStatus
    admin_notes: Optional[str] = Field(None, max_length=1000)


class ReportSummary(CamelModel):
    id: int
    media_id: int
    reason: str
    status: str
    created_at: datetime


class ReportOut(ReportSummary):
    reporter_id: int
    description: Optional[str] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    admin_notes: Optional[str] = None
