from datetime import datetime
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from ..database import Base
from enum import Enum

class NotificationType(str, Enum):
    LIKE = "like"
    COMMENT = "comment"
    SHARE = "share"
    BOOKMARK = "bookmark"
    MENTION = "mention"
    MILESTONE = "milestone"
    REPORT = "report"
    MODERATION = "moderation"
    SYSTEM = "system"
    SECURITY = "security"

class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Content
    title = Column(String(200), nullable=False)
    message = Column(String(1000), nullable=False)
    type = Column(String(50), nullable=False, index=True)
    priority = Column(String(20), nullable=False, default=NotificationPriority.MEDIUM.value)
    data = Column(JSON, nullable=True)
    related_id = Column(Integer, nullable=True)

    # Tracking
    is_read = Column(Boolean, default=False, index=True)
    read_at = Column(DateTime, nullable=True)
    expires_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="notifications")


class NotificationPreference(Base):
    __tablename__ = "notification_preferences"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)

    # Channel preferences
    in_app_enabled = Column(Boolean, default=True)
    email_enabled = Column(Boolean, default=True)

    # Category preferences
    like_notifications = Column(Boolean, default=True)
    comment_notifications = Column(Boolean, default=True)
    bookmark_notifications = Column(Boolean, default=True)
    system_notifications = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="notification_preferences")

    def allows(self, notification_type: str) -> bool:
        """In-app delivery check for one notification type"""
        if not self.in_app_enabled:
            return False
        flag = getattr(self, f"{notification_type}_notifications", None)
        return True if flag is None else bool(flag)
