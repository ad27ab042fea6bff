from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum
from ..database import Base


class ReportReason(str, Enum):
    INAPPROPRIATE_CONTENT = "inappropriate_content"
    NON_GOSPEL_CONTENT = "non_gospel_content"
    EXPLICIT_LANGUAGE = "explicit_language"
    VIOLENCE = "violence"
    SEXUAL_CONTENT = "sexual_content"
    BLASPHEMY = "blasphemy"
    SPAM = "spam"
    COPYRIGHT = "copyright"
    OTHER = "other"


class ReportStatus(str, Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


class MediaReport(Base):
    __tablename__ = "media_reports"

    id = Column(Integer, primary_key=True, index=True)
    media_id = Column(Integer, ForeignKey("media.id", ondelete="CASCADE"), nullable=False, index=True)
    reporter_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    reason = Column(String(50), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(String(20), default=ReportStatus.PENDING.value, nullable=False, index=True)

    reviewed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    admin_notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    media = relationship("Media")
    reporter = relationship("User", foreign_keys=[reporter_id])

    __table_args__ = (
        UniqueConstraint("reporter_id", "media_id", name="uq_media_report_reporter_media"),
    )
