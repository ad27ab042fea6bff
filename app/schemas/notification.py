from typing import Any, Dict, Optional
from datetime import datetime

from .base import CamelModel


class NotificationOut(CamelModel):
    id: int
    title: str
    message: str
    type: str
    priority: str
    data: Optional[Dict[str, Any]] = None
    related_id: Optional[int] = None
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: datetime


class PreferencesOut(CamelModel):
    in_app_enabled: bool = True
    email_enabled: bool = True
    like_notifications: bool = True
    comment_notifications: bool = True
    bookmark_notifications: bool = True
    system_notifications: bool = True


class PreferencesUpdate(CamelModel):
    in_app_enabled: Optional[bool] = None
    email_enabled: Optional[bool] = None
    like_notifications: Optional[bool] = None
    comment_notifications: Optional[bool] = None
    bookmark_notifications: Optional[bool] = None
    system_notifications: Optional[bool] = None
