"""
🔔 In-app notification inbox

Rows are written by the event dispatcher; these endpoints read them, mark
them read and manage per-user delivery preferences.
"""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
import logging

from ...database import get_db
from ...models.user import User
from ...schemas.notification import NotificationOut, PreferencesOut, PreferencesUpdate
from ...services import notifications as notification_service
from ...utils import response
from ...utils.controller import get_pagination, handle_service_error, parse_id
from ..deps import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
def get_my_notifications(
    page: int = 1,
    limit: int = 20,
    notification_type: Optional[str] = Query(None, alias="type"),
    unread_only: bool = Query(False, alias="unreadOnly"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        page, limit = get_pagination(page, limit)
        result = notification_service.list_notifications(
            db, current_user.id, page, limit, notification_type, unread_only
        )
        return response.paginated(
            [NotificationOut.model_validate(n) for n in result.data],
            result.page,
            result.limit,
            result.total,
            "Notifications retrieved successfully",
        )
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to fetch notifications", user_id=current_user.id)


@router.get("/unread-count")
def get_unread_count(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        count = notification_service.unread_count(db, current_user.id)
        return response.success({"unreadCount": count}, "Unread count retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to get unread count")


@router.patch("/read-all")
def mark_all_as_read(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        count = notification_service.mark_all_read(db, current_user.id)
        logger.info(f"✅ Marked {count} notifications read for user {current_user.id}")
        return response.success({"count": count}, f"Marked {count} notifications as read")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to mark notifications as read")


@router.get("/preferences")
def get_my_preferences(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        prefs = notification_service.get_preferences(db, current_user.id)
        return response.success(PreferencesOut.model_validate(prefs), "Preferences retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to get preferences")


@router.put("/preferences")
def update_my_preferences(
    payload: PreferencesUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        prefs = notification_service.update_preferences(
            db, current_user.id, payload.model_dump(exclude_unset=True)
        )
        return response.success(PreferencesOut.model_validate(prefs), "Preferences updated successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to update preferences")


@router.patch("/{notification_id}/read")
def mark_as_read(
    notification_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        nid = parse_id(notification_id, "notification ID")
        notification = notification_service.mark_read(db, current_user.id, nid)
        return response.success(NotificationOut.model_validate(notification), "Notification marked as read")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to mark notification as read", notification_id=notification_id)
