"""
Bookmark add/remove/toggle. bookmark_count moves only when a row is
actually inserted or deleted, so repeated adds and removes are no-ops.
"""

import logging
from typing import Any, Dict, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from ..crud.media import media as media_crud
from ..models.bookmark import Bookmark
from ..models.media import Media
from ..models.user import User
from ..utils.errors import NotFoundError
from ..utils.query import PaginatedResult, build_pagination, execute_paginated_query
from .events import OutboundEvent, in_app_event, realtime_event

logger = logging.getLogger(__name__)


def _get_media(db: Session, media_id: int) -> Media:
    media = media_crud.get_visible(db, media_id)
    if media is None:
        raise NotFoundError("Media not found")
    return media


def _find(db: Session, user_id: int, media_id: int):
    return (
        db.query(Bookmark)
        .filter(Bookmark.user_id == user_id, Bookmark.media_id == media_id)
        .first()
    )


def _state(db: Session, media: Media, bookmarked: bool, events: List[OutboundEvent]) -> Dict[str, Any]:
    db.refresh(media)
    return {"bookmarked": bookmarked, "bookmark_count": media.bookmark_count, "events": events}


def _broadcast(state: Dict[str, Any], media_id: int, user_id: int) -> Dict[str, Any]:
    """Adds the live count update for everyone viewing the media item"""
    state["events"].append(realtime_event(
        "content-bookmark-update",
        f"content:media:{media_id}",
        {
            "mediaId": media_id,
            "bookmarkCount": state["bookmark_count"],
            "userBookmarked": state["bookmarked"],
            "userId": user_id,
        },
    ))
    return state


def add_bookmark(db: Session, user: User, media_id: int) -> Dict[str, Any]:
    media = _get_media(db, media_id)
    if _find(db, user.id, media_id) is not None:
        return _state(db, media, True, [])

    db.add(Bookmark(user_id=user.id, media_id=media_id))
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        return _state(db, media, True, [])

    media_crud.increment(db, media_id, "bookmark_count")
    db.commit()
    logger.info(f"🔖 User {user.id} bookmarked media {media_id}")

    events = []
    if media.uploaded_by and media.uploaded_by != user.id:
        events.append(in_app_event(
            "media.bookmarked",
            [media.uploaded_by],
            title="New bookmark",
            message=f'{user.full_name or "Someone"} saved "{media.title}"',
            notification_type="bookmark",
            priority="low",
            data={"mediaId": media.id, "userId": user.id},
            related_id=media.id,
        ))
    return _broadcast(_state(db, media, True, events), media_id, user.id)


def remove_bookmark(db: Session, user: User, media_id: int) -> Dict[str, Any]:
    media = _get_media(db, media_id)
    deleted = (
        db.query(Bookmark)
        .filter(Bookmark.user_id == user.id, Bookmark.media_id == media_id)
        .delete(synchronize_session=False)
    )
    if deleted:
        media_crud.increment(db, media_id, "bookmark_count", -1)
        logger.info(f"🗑️ User {user.id} removed bookmark on media {media_id}")
    db.commit()
    state = _state(db, media, False, [])
    return _broadcast(state, media_id, user.id) if deleted else state


def toggle_bookmark(db: Session, user: User, media_id: int) -> Dict[str, Any]:
    if _find(db, user.id, media_id) is not None:
        return remove_bookmark(db, user, media_id)
    return add_bookmark(db, user, media_id)


def bookmark_status(db: Session, user: User, media_id: int) -> Dict[str, Any]:
    media = _get_media(db, media_id)
    return {
        "bookmarked": _find(db, user.id, media_id) is not None,
        "bookmark_count": media.bookmark_count,
    }


def list_bookmarks(db: Session, user: User, page: int = 1, limit: int = 20) -> PaginatedResult:
    query = (
        db.query(Bookmark)
        .join(Media, Media.id == Bookmark.media_id)
        .filter(Bookmark.user_id == user.id, Media.is_deleted.is_(False))
    )
    skip, limit = build_pagination(page, limit)
    return execute_paginated_query(
        query,
        skip=skip,
        limit=limit,
        order_by=Bookmark.created_at.desc(),
        options=(joinedload(Bookmark.media),),
    )
