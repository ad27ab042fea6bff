# app/api/v1/search.py
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
import logging

from ...database import get_db
from ...models.user import User
from ...services import search as search_service
from ...services.cache import CacheService, CacheTTL, get_cache, make_key
from ...utils import response
from ...utils.controller import handle_service_error
from ..deps import get_current_user_optional

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def unified_search(
    q: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    content_type: str = Query("all", alias="contentType"),
    media_type: Optional[str] = Query(None, alias="mediaType"),
    category: Optional[str] = None,
    sort: str = "relevance",
    current_user: Optional[User] = Depends(get_current_user_optional),
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    try:
        if not q or not q.strip():
            response.bad_request("Search query is required")
        if limit > search_service.MAX_SEARCH_LIMIT:
            response.bad_request(f"Invalid limit. Maximum is {search_service.MAX_SEARCH_LIMIT}")
        if sort not in search_service.SORT_OPTIONS:
            response.bad_request(f"Invalid sort. Must be one of: {', '.join(search_service.SORT_OPTIONS)}")
        if content_type not in search_service.CONTENT_TYPES:
            response.bad_request(f"Invalid contentType. Must be one of: {', '.join(search_service.CONTENT_TYPES)}")
        page = max(1, page)
        limit = max(1, limit)
        user_id = current_user.id if current_user else None

        def produce():
            return jsonable_encoder(response.camelize(search_service.unified_search(
                db, q, page, limit, content_type, media_type, category, sort, user_id
            )))

        # Per-user flags are part of the payload, so the user is part of the key
        key = make_key(
            "search", q=q.strip().lower(), page=page, limit=limit, content_type=content_type,
            media_type=media_type, category=category, sort=sort, user=user_id,
        )
        data = await cache.get_or_set(key, lambda: run_in_threadpool(produce), CacheTTL.SEARCH)
        return response.success(data, "Search completed successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Search failed", q=q)


@router.get("/suggestions")
def get_search_suggestions(
    q: Optional[str] = None,
    limit: int = Query(10, ge=1, le=20),
    db: Session = Depends(get_db),
):
    try:
        if not q or len(q.strip()) < 2:
            return response.success([], "Suggestions retrieved successfully")
        return response.success(search_service.get_suggestions(db, q, limit), "Suggestions retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to get suggestions", q=q)
