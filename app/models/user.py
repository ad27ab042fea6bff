"""
User model
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime
from enum import Enum
from ..database import Base


class UserRole(str, Enum):
    """User role enumeration"""
    ADMIN = "admin"
    CREATOR = "creator"
    USER = "user"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    # Authentication
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(500), nullable=False)

    # Basic Info
    full_name = Column(String(255), nullable=True)
    avatar_url = Column(String(500), nullable=True)

    # Role & Status
    role = Column(String(20), default=UserRole.USER.value, index=True, nullable=False)
    is_active = Column(Boolean, default=True, index=True)
    is_superuser = Column(Boolean, default=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_login = Column(DateTime, nullable=True)

    notifications = relationship("Notification", back_populates="user", cascade="all, delete-orphan")
    playback_sessions = relationship("PlaybackSession", back_populates="user", cascade="all, delete-orphan")
    notification_preferences = relationship("NotificationPreference", back_populates="user", uselist=False, cascade="all, delete-orphan")

    @property
    def is_admin(self) -> bool:
        return self.is_superuser or self.role == UserRole.ADMIN.value

    def __repr__(self):
        return f"<User {self.id}: {self.email}>"
