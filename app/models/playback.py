from sqlalchemy import Column, Integer, String, Boolean, DateTime, Float, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum
from ..database import Base


class PlaybackEndReason(str, Enum):
    COMPLETED = "completed"
    STOPPED = "stopped"
    ERROR = "error"
    SUPERSEDED = "superseded"  # paused because the user started another session
    STALE = "stale"


class PlaybackSession(Base):
    """
    One play of a media item by a user.

    is_active=False means the session is over; ended_at is set at the same
    time. A paused session keeps is_active=True until it is ended or
    superseded by a new session.
    """
    __tablename__ = "playback_sessions"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    media_id = Column(Integer, ForeignKey("media.id", ondelete="CASCADE"), nullable=False, index=True)

    duration = Column(Float, nullable=False, default=0.0)
    current_position = Column(Float, nullable=False, default=0.0)
    progress_percentage = Column(Float, nullable=False, default=0.0)
    total_watch_time = Column(Float, nullable=False, default=0.0)

    is_active = Column(Boolean, default=True, nullable=False)
    is_paused = Column(Boolean, default=False, nullable=False)
    end_reason = Column(String(20), nullable=True)

    started_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    last_progress_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    paused_at = Column(DateTime, nullable=True)
    ended_at = Column(DateTime, nullable=True)

    device_info = Column(String(500), nullable=True)
    user_agent = Column(String(500), nullable=True)

    user = relationship("User", back_populates="playback_sessions")
    media = relationship("Media")

    __table_args__ = (
        Index("ix_playback_user_active", "user_id", "is_active"),
    )

    @property
    def is_ended(self) -> bool:
        return self.ended_at is not None

    def __repr__(self):
        return f"<PlaybackSession {self.id} user={self.user_id} media={self.media_id}>"
