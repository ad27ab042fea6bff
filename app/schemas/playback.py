from pydantic import Field
from typing import Optional
from datetime import datetime
from enum import Enum

from .base import CamelModel


class EndReason(str, Enum):
    COMPLETED = "completed"
    STOPPED = "stopped"
    ERROR = "error"


class StartPlaybackRequest(CamelModel):
    duration: float = Field(..., ge=1)
    position: Optional[float] = Field(None, ge=0)
    device_info: Optional[str] = Field(None, max_length=500)


class ProgressRequest(CamelModel):
    session_id: int
    position: float = Field(..., ge=0)
    duration: float = Field(..., ge=1)
    progress_percentage: float = Field(..., ge=0, le=100)


class SessionActionRequest(CamelModel):
    session_id: int


class EndPlaybackRequest(CamelModel):
    session_id: int
    reason: EndReason = EndReason.STOPPED
    final_position: Optional[float] = Field(None, ge=0)


class PlaybackSessionOut(CamelModel):
    id: int
    user_id: int
    media_id: int
    duration: float
    current_position: float
    progress_percentage: float
    total_watch_time: float
    is_active: bool
    is_paused: bool
    end_reason: Optional[str] = None
    started_at: datetime
    last_progress_at: Optional[datetime] = None
    paused_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    device_info: Optional[str] = None
