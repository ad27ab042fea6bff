from sqlalchemy import Column, Integer, Float, DateTime, ForeignKey, Boolean, UniqueConstraint
from datetime import datetime
from ..database import Base


class WatchProgress(Base):
    """Library resume point, one row per user and media"""
    __tablename__ = "watch_progress"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    media_id = Column(Integer, ForeignKey("media.id", ondelete="CASCADE"), nullable=False, index=True)

    position = Column(Float, default=0.0)
    completion_percentage = Column(Float, default=0.0)
    is_completed = Column(Boolean, default=False)

    last_watched = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("user_id", "media_id", name="uq_watch_progress_user_media"),
    )
