from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey, JSON, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from ..database import Base


class PrayerPost(Base):
    __tablename__ = "prayer_posts"

    id = Column(Integer, primary_key=True, index=True)
    author_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    content = Column(Text, nullable=False)
    prayer_text = Column(Text, nullable=True)
    verse_text = Column(Text, nullable=True)
    verse_reference = Column(String(100), nullable=True)
    anonymous = Column(Boolean, default=False)
    media = Column(JSON, default=list)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    author = relationship("User")

    __table_args__ = (
        Index("ix_prayer_posts_author_created", "author_id", "created_at"),
    )
