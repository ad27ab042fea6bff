from sqlalchemy import Column, Integer, String, Boolean, DateTime, Float, Text, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum
from ..database import Base


class ModerationStatus(str, Enum):
    APPROVED = "approved"
    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    REJECTED = "rejected"


# Content types whose plays count as listens instead of views
AUDIO_CONTENT_TYPES = ("music", "audio", "podcast", "sermon")


class Media(Base):
    __tablename__ = "media"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    content_type = Column(String(50), nullable=False, index=True)  # videos, music, audio, ebook...
    category = Column(String(100), nullable=True, index=True)
    tags = Column(JSON, default=list)

    file_url = Column(String(1000), nullable=True)
    thumbnail_url = Column(String(1000), nullable=True)
    duration = Column(Float, default=0.0)

    uploaded_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    # Counters, always updated with atomic UPDATE col = col + n
    view_count = Column(Integer, default=0, nullable=False)
    listen_count = Column(Integer, default=0, nullable=False)
    like_count = Column(Integer, default=0, nullable=False)
    bookmark_count = Column(Integer, default=0, nullable=False)
    share_count = Column(Integer, default=0, nullable=False)
    report_count = Column(Integer, default=0, nullable=False)

    moderation_status = Column(String(20), default=ModerationStatus.APPROVED.value, nullable=False, index=True)
    is_hidden = Column(Boolean, default=False, nullable=False)

    is_deleted = Column(Boolean, default=False, nullable=False, index=True)
    deleted_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    uploader = relationship("User", foreign_keys=[uploaded_by])

    __table_args__ = (
        Index("ix_media_visible", "is_deleted", "is_hidden"),
    )

    @property
    def is_audio(self) -> bool:
        return self.content_type in AUDIO_CONTENT_TYPES

    def __repr__(self):
        return f"<Media {self.id}: {self.title}>"
