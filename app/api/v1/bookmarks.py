# app/api/v1/bookmarks.py
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from ...database import get_db
from ...models.user import User
from ...schemas.media import MediaOut
from ...services import bookmarks as bookmark_service
from ...services.events import EventDispatcher, get_event_dispatcher
from ...utils import response
from ...utils.controller import get_pagination, handle_service_error, parse_id
from ..deps import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


def _bookmark_response(result: dict, message: str, background_tasks: BackgroundTasks, dispatcher: EventDispatcher):
    for event in result.get("events", []):
        background_tasks.add_task(dispatcher.dispatch, event)
    return response.success(
        {"bookmarked": result["bookmarked"], "bookmarkCount": result["bookmark_count"]},
        message,
    )


@router.get("")
def get_my_bookmarks(
    page: int = 1,
    limit: int = 20,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        page, limit = get_pagination(page, limit)
        result = bookmark_service.list_bookmarks(db, current_user, page, limit)
        items = [
            {"bookmarkedAt": b.created_at, "media": MediaOut.model_validate(b.media)}
            for b in result.data
        ]
        return response.paginated(items, result.page, result.limit, result.total, "Bookmarks retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to retrieve bookmarks")


@router.get("/{media_id}/status")
def get_bookmark_status(
    media_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        mid = parse_id(media_id, "media ID")
        status = bookmark_service.bookmark_status(db, current_user, mid)
        return response.success(response.camelize(status), "Bookmark status retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to get bookmark status", media_id=media_id)


@router.post("/{media_id}/toggle")
def toggle_bookmark(
    media_id: str,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    dispatcher: EventDispatcher = Depends(get_event_dispatcher),
    db: Session = Depends(get_db),
):
    try:
        mid = parse_id(media_id, "media ID")
        result = bookmark_service.toggle_bookmark(db, current_user, mid)
        message = "Media bookmarked successfully" if result["bookmarked"] else "Bookmark removed successfully"
        return _bookmark_response(result, message, background_tasks, dispatcher)
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to toggle bookmark", media_id=media_id)


@router.post("/{media_id}")
def add_bookmark(
    media_id: str,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    dispatcher: EventDispatcher = Depends(get_event_dispatcher),
    db: Session = Depends(get_db),
):
    try:
        mid = parse_id(media_id, "media ID")
        result = bookmark_service.add_bookmark(db, current_user, mid)
        return _bookmark_response(result, "Media bookmarked successfully", background_tasks, dispatcher)
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to add bookmark", media_id=media_id)


@router.delete("/{media_id}")
def remove_bookmark(
    media_id: str,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    dispatcher: EventDispatcher = Depends(get_event_dispatcher),
    db: Session = Depends(get_db),
):
    try:
        mid = parse_id(media_id, "media ID")
        result = bookmark_service.remove_bookmark(db, current_user, mid)
        return _bookmark_response(result, "Bookmark removed successfully", background_tasks, dispatcher)
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to remove bookmark", media_id=media_id)
