"""
Unified search across media and copyright-free songs.

Each source is paged independently (same skip/limit) and the two pages are
merged; relevance ordering puts title matches first, then popularity.
"""

import logging
import time
from typing import Any, Dict, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from ..models.bookmark import Bookmark
from ..models.media import Media
from ..models.song import CopyrightFreeSong, SongInteraction
from ..utils.query import LIKE_ESCAPE, build_not_deleted_filter, build_pagination, build_text_search, escape_like

logger = logging.getLogger(__name__)

SORT_OPTIONS = ("relevance", "popular", "newest", "oldest", "title")
CONTENT_TYPES = ("all", "media", "copyright-free")
MAX_SEARCH_LIMIT = 100


def _media_order(sort: str) -> list:
    if sort in ("relevance", "popular"):
        order = [Media.view_count.desc(), Media.listen_count.desc(), Media.like_count.desc()]
        return order + [Media.created_at.desc()] if sort == "relevance" else order
    if sort == "oldest":
        return [Media.created_at.asc()]
    if sort == "title":
        return [Media.title.asc()]
    return [Media.created_at.desc()]


def _song_order(sort: str) -> list:
    if sort in ("relevance", "popular"):
        order = [CopyrightFreeSong.view_count.desc(), CopyrightFreeSong.like_count.desc()]
        return order + [CopyrightFreeSong.created_at.desc()] if sort == "relevance" else order
    if sort == "oldest":
        return [CopyrightFreeSong.created_at.asc()]
    if sort == "title":
        return [CopyrightFreeSong.title.asc()]
    return [CopyrightFreeSong.created_at.desc()]


def _media_item(item: Media) -> Dict[str, Any]:
    return {
        "id": item.id,
        "type": "media",
        "content_type": item.content_type,
        "title": item.title,
        "description": item.description,
        "category": item.category,
        "thumbnail_url": item.thumbnail_url,
        "file_url": item.file_url,
        "duration": item.duration,
        "view_count": item.view_count or 0,
        "like_count": item.like_count or 0,
        "listen_count": item.listen_count or 0,
        "created_at": item.created_at,
        "uploaded_by": item.uploaded_by,
        "is_public_domain": False,
    }


def _song_item(item: CopyrightFreeSong) -> Dict[str, Any]:
    return {
        "id": item.id,
        "type": "copyright-free",
        "content_type": "copyright-free-music",
        "title": item.title,
        "artist": item.singer,
        "thumbnail_url": item.thumbnail_url,
        "file_url": item.file_url,
        "duration": item.duration,
        "view_count": item.view_count or 0,
        "like_count": item.like_count or 0,
        "created_at": item.created_at,
        "uploaded_by": item.uploaded_by,
        "is_public_domain": True,
    }


def _enrich(db: Session, results: List[dict], user_id: Optional[int]) -> None:
    """isLiked for songs, isInLibrary for bookmarked media"""
    for item in results:
        item["is_liked"] = False
        item["is_in_library"] = False
    if user_id is None or not results:
        return

    media_ids = [r["id"] for r in results if r["type"] == "media"]
    song_ids = [r["id"] for r in results if r["type"] == "copyright-free"]

    saved = set()
    if media_ids:
        saved = {
            media_id for (media_id,) in db.query(Bookmark.media_id)
            .filter(Bookmark.user_id == user_id, Bookmark.media_id.in_(media_ids))
        }
    liked = set()
    if song_ids:
        liked = {
            song_id for (song_id,) in db.query(SongInteraction.song_id)
            .filter(
                SongInteraction.user_id == user_id,
                SongInteraction.song_id.in_(song_ids),
                SongInteraction.has_liked.is_(True),
            )
        }

    for item in results:
        if item["type"] == "media":
            item["is_in_library"] = item["id"] in saved
        else:
            item["is_liked"] = item["id"] in liked


def unified_search(
    db: Session,
    query: str,
    page: int = 1,
    limit: int = 20,
    content_type: str = "all",
    media_type: Optional[str] = None,
    category: Optional[str] = None,
    sort: str = "relevance",
    user_id: Optional[int] = None,
) -> Dict[str, Any]:
    started = time.monotonic()
    term = query.strip().lower()
    skip, limit = build_pagination(page, limit)

    media_rows, media_total = [], 0
    if content_type in ("all", "media"):
        media_query = db.query(Media).filter(
            build_text_search(Media, term, ("title", "description")),
            build_not_deleted_filter(Media),
            or_(Media.is_hidden.is_(False), Media.is_hidden.is_(None)),
        )
        if media_type:
            media_query = media_query.filter(Media.content_type == media_type)
        if category:
            media_query = media_query.filter(Media.category.ilike(f"%{escape_like(category)}%", escape=LIKE_ESCAPE))
        media_total = media_query.count()
        media_rows = media_query.order_by(*_media_order(sort)).offset(skip).limit(limit).all()

    song_rows, song_total = [], 0
    if content_type in ("all", "copyright-free"):
        song_query = db.query(CopyrightFreeSong).filter(
            build_text_search(CopyrightFreeSong, term, ("title", "singer"))
        )
        song_total = song_query.count()
        song_rows = song_query.order_by(*_song_order(sort)).offset(skip).limit(limit).all()

    results = [_media_item(m) for m in media_rows] + [_song_item(s) for s in song_rows]
    if sort == "relevance":
        results.sort(key=lambda r: (
            0 if term in (r["title"] or "").lower() else 1,
            -(r["view_count"] + r["like_count"]),
        ))
    results = results[:limit]
    _enrich(db, results, user_id)

    total = media_total + song_total
    search_time = int((time.monotonic() - started) * 1000)
    logger.debug(f"🔎 Search '{term}': {total} matches ({media_total} media, {song_total} songs) in {search_time}ms")

    return {
        "results": results,
        "total": total,
        "page": page,
        "limit": limit,
        "has_more": skip + len(results) < total,
        "breakdown": {"media": media_total, "copyright_free": song_total},
        "search_time": search_time,
    }


def get_suggestions(db: Session, query: str, limit: int = 10) -> List[str]:
    """Distinct titles starting with the query"""
    prefix = f"{escape_like(query.strip())}%"
    titles = [t for (t,) in db.query(Media.title).filter(
        Media.title.ilike(prefix, escape=LIKE_ESCAPE), build_not_deleted_filter(Media)
    ).limit(limit)]
    titles += [t for (t,) in db.query(CopyrightFreeSong.title).filter(
        CopyrightFreeSong.title.ilike(prefix, escape=LIKE_ESCAPE)
    ).limit(limit)]
    return list(dict.fromkeys(titles))[:limit]
