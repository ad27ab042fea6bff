# app/api/v1/forums.py
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
import logging

from ...database import get_db
from ...models.user import User
from ...schemas.forum import ForumCreate, ForumOut, ForumPostCreate, ForumPostOut, ForumPostUpdate
from ...services import forums as forum_service
from ...services.cache import CacheService, CacheTTL, get_cache, make_key
from ...utils import response
from ...utils.controller import get_pagination, handle_service_error, parse_id
from ..deps import get_current_admin, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_forum(
    payload: ForumCreate,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    try:
        forum = await run_in_threadpool(
            forum_service.create_forum, db, admin, payload.title, payload.description
        )
        await cache.invalidate_namespace("forums")
        return response.created(ForumOut.model_validate(forum), "Forum created successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to create forum")


@router.get("")
async def list_forums(
    page: int = 1,
    limit: int = 20,
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    try:
        page, limit = get_pagination(page, limit)

        def produce():
            result = forum_service.list_forums(db, page, limit)
            return jsonable_encoder({
                "forums": [ForumOut.model_validate(f) for f in result.data],
                "pagination": response.page_info(result.page, result.limit, result.total),
            })

        data = await cache.get_or_set(
            make_key("forums", page=page, limit=limit), lambda: run_in_threadpool(produce), CacheTTL.FORUMS
        )
        return response.success(data, "Forums retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to retrieve forums")


@router.get("/{forum_id}")
def get_forum(forum_id: str, db: Session = Depends(get_db)):
    try:
        forum = forum_service.get_forum(db, parse_id(forum_id, "forum ID"))
        return response.success(ForumOut.model_validate(forum), "Forum retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to retrieve forum", forum_id=forum_id)


# ==================== Posts ====================

@router.post("/{forum_id}/posts", status_code=status.HTTP_201_CREATED)
def create_post(
    forum_id: str,
    payload: ForumPostCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        fid = parse_id(forum_id, "forum ID")
        post = forum_service.create_post(db, current_user, fid, payload.model_dump())
        return response.created(ForumPostOut.model_validate(post), "Post created successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to create post", forum_id=forum_id)


@router.get("/{forum_id}/posts")
def list_posts(
    forum_id: str,
    page: int = 1,
    limit: int = 20,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    db: Session = Depends(get_db),
):
    try:
        fid = parse_id(forum_id, "forum ID")
        page, limit = get_pagination(page, limit)
        if sort_by and sort_by not in forum_service.POST_SORT_FIELDS:
            response.bad_request(f"sortBy must be one of: {', '.join(forum_service.POST_SORT_FIELDS)}")

        result = forum_service.list_posts(db, fid, page, limit, sort_by, sort_order)
        return response.success(
            {
                "posts": [ForumPostOut.model_validate(p) for p in result.data],
                "pagination": response.page_info(result.page, result.limit, result.total),
            },
            "Posts retrieved successfully",
        )
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to retrieve posts", forum_id=forum_id)


@router.put("/posts/{post_id}")
def update_post(
    post_id: str,
    payload: ForumPostUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        pid = parse_id(post_id, "post ID")
        changes = payload.model_dump(exclude_unset=True)
        if not changes:
            response.bad_request("Nothing to update")
        post = forum_service.update_post(db, current_user, pid, changes)
        return response.success(ForumPostOut.model_validate(post), "Post updated successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to update post", post_id=post_id)


@router.delete("/posts/{post_id}")
def delete_post(
    post_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        forum_service.delete_post(db, current_user, parse_id(post_id, "post ID"))
        return response.success(message="Post deleted successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to delete post", post_id=post_id)
