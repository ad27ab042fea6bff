# app/api/v1/songs.py
"""
Copyright-free songs: public listing, admin management and per-user
like/share/view interactions.
"""
from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
import logging
import math

from ...database import get_db
from ...models.song import CopyrightFreeSong
from ...models.user import User
from ...schemas.song import SongCreate, SongOut, SongUpdate
from ...services import songs as song_service
from ...services.cache import CacheService, CacheTTL, get_cache, make_key
from ...services.events import EventDispatcher, get_event_dispatcher
from ...utils import response
from ...utils.controller import get_pagination, handle_service_error, parse_id
from ...utils.query import build_pagination, build_text_search, execute_paginated_query
from ..base_controller import BaseController
from ..deps import get_current_admin, get_current_user, get_current_user_optional

logger = logging.getLogger(__name__)

router = APIRouter()

controller = BaseController(
    CopyrightFreeSong,
    SongOut,
    owner_field="uploaded_by",
    search_fields=("title", "singer"),
    resource_name="Song",
)


def _song_page(db: Session, page: int, limit: int, search: Optional[str]) -> dict:
    query = db.query(CopyrightFreeSong)
    clause = build_text_search(CopyrightFreeSong, search, ("title", "singer"))
    if clause is not None:
        query = query.filter(clause)
    skip, limit = build_pagination(page, limit)
    result = execute_paginated_query(query, skip=skip, limit=limit)
    return jsonable_encoder({
        "songs": [SongOut.model_validate(s) for s in result.data],
        "pagination": {
            "total": result.total,
            "page": result.page,
            "totalPages": math.ceil(result.total / result.limit) if result.limit else 0,
            "limit": result.limit,
        },
    })


def _interaction_response(result: dict, message: str) -> dict:
    return response.success(response.camelize(result), message)


@router.get("")
async def list_songs(
    page: int = 1,
    limit: int = 20,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    try:
        page, limit = get_pagination(page, limit)
        data = await cache.get_or_set(
            make_key("songs", page=page, limit=limit, search=search),
            lambda: run_in_threadpool(_song_page, db, page, limit, search),
            CacheTTL.SONGS,
        )
        return response.success(data, "Songs retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to retrieve songs")


@router.get("/{song_id}")
def get_song(
    song_id: str,
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
):
    try:
        sid = parse_id(song_id, "song ID")
        song = song_service.songs.get_or_404(db, sid)
        data = SongOut.model_validate(song).model_dump(by_alias=True)
        data["isLiked"] = song_service.is_liked(db, current_user.id, sid) if current_user else False
        return response.success(data, "Song retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to retrieve song", song_id=song_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_song(
    payload: SongCreate,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    result = await run_in_threadpool(controller.create, db, payload, admin)
    await cache.invalidate_namespace("songs")
    return result


@router.put("/{song_id}")
async def update_song(
    song_id: str,
    payload: SongUpdate,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    result = await run_in_threadpool(controller.update, db, song_id, payload, admin)
    await cache.invalidate_namespace("songs")
    return result


@router.delete("/{song_id}")
async def delete_song(
    song_id: str,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    result = await run_in_threadpool(controller.delete, db, song_id, admin)
    await cache.invalidate_namespace("songs")
    return result


# ==================== Interactions ====================

@router.post("/{song_id}/like")
def toggle_like(
    song_id: str,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    dispatcher: EventDispatcher = Depends(get_event_dispatcher),
    db: Session = Depends(get_db),
):
    try:
        sid = parse_id(song_id, "song ID")
        result = song_service.toggle_like(db, current_user.id, sid)
        background_tasks.add_task(dispatcher.dispatch, song_service.like_update_event(sid, current_user.id, result))
        return _interaction_response(result, "Song liked" if result["liked"] else "Song unliked")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to toggle like", song_id=song_id)


@router.post("/{song_id}/share")
def share_song(
    song_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        result = song_service.record_share(db, current_user.id, parse_id(song_id, "song ID"))
        return _interaction_response(result, "Song shared successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to record share", song_id=song_id)


@router.post("/{song_id}/view")
def view_song(
    song_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        result = song_service.record_view(db, current_user.id, parse_id(song_id, "song ID"))
        return _interaction_response(result, "View recorded successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to record view", song_id=song_id)
