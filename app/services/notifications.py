"""
In-app notification inbox and per-user delivery preferences.
Rows are written by the event dispatcher's in-app channel.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..models.notification import Notification, NotificationPreference
from ..utils.errors import NotFoundError
from ..utils.query import PaginatedResult, build_pagination, execute_paginated_query


def _inbox(db: Session, user_id: int):
    now = datetime.utcnow()
    return db.query(Notification).filter(
        Notification.user_id == user_id,
        or_(Notification.expires_at.is_(None), Notification.expires_at > now),
    )


def list_notifications(
    db: Session,
    user_id: int,
    page: int = 1,
    limit: int = 20,
    notification_type: Optional[str] = None,
    unread_only: bool = False,
) -> PaginatedResult:
    query = _inbox(db, user_id)
    if notification_type:
        query = query.filter(Notification.type == notification_type)
    if unread_only:
        query = query.filter(Notification.is_read.is_(False))
    skip, limit = build_pagination(page, limit)
    return execute_paginated_query(query, skip=skip, limit=limit)


def unread_count(db: Session, user_id: int) -> int:
    return _inbox(db, user_id).filter(Notification.is_read.is_(False)).with_entities(
        func.count(Notification.id)
    ).scalar() or 0


def mark_read(db: Session, user_id: int, notification_id: int) -> Notification:
    """Another user's notification is reported as missing"""
    notification = (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.user_id == user_id)
        .first()
    )
    if notification is None:
        raise NotFoundError("Notification not found")
    if not notification.is_read:
        notification.is_read = True
        notification.read_at = datetime.utcnow()
        db.commit()
        db.refresh(notification)
    return notification


def mark_all_read(db: Session, user_id: int) -> int:
    count = (
        db.query(Notification)
        .filter(Notification.user_id == user_id, Notification.is_read.is_(False))
        .update({"is_read": True, "read_at": datetime.utcnow()}, synchronize_session=False)
    )
    db.commit()
    return count


def get_preferences(db: Session, user_id: int) -> NotificationPreference:
    prefs = db.query(NotificationPreference).filter(NotificationPreference.user_id == user_id).first()
    if prefs is None:
        prefs = NotificationPreference(user_id=user_id)
        db.add(prefs)
        db.commit()
        db.refresh(prefs)
    return prefs


def update_preferences(db: Session, user_id: int, changes: Dict[str, Any]) -> NotificationPreference:
    prefs = get_preferences(db, user_id)
    for field, value in changes.items():
        if value is not None and hasattr(prefs, field):
            setattr(prefs, field, value)
    db.commit()
    db.refresh(prefs)
    return prefs
