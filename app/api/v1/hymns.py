# app/api/v1/hymns.py
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
import logging

from ...database import get_db
from ...models.hymn import Hymn
from ...schemas.hymn import HymnInteractionUpdate, HymnOut
from ...services import hymns as hymn_service
from ...services.cache import CacheService, CacheTTL, get_cache, make_key
from ...utils import response
from ...utils.controller import get_pagination, handle_service_error, parse_id

logger = logging.getLogger(__name__)

router = APIRouter()


def _hymn_list(db: Session, page: int, limit: int, **filters) -> dict:
    result = hymn_service.list_hymns(db, page, limit, **filters)
    return jsonable_encoder({
        "hymns": [HymnOut.model_validate(h) for h in result.data],
        "pagination": response.page_info(result.page, result.limit, result.total),
    })


def _split_tags(tags: Optional[str]):
    if not tags:
        return None
    return [t.strip() for t in tags.split(",") if t.strip()] or None


@router.get("")
async def get_hymns(
    page: int = 1,
    limit: int = 20,
    category: Optional[str] = None,
    search: Optional[str] = None,
    source: Optional[str] = None,
    tags: Optional[str] = None,
    sort_by: str = Query("title", alias="sortBy"),
    sort_order: str = Query("asc", alias="sortOrder"),
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    try:
        page, limit = get_pagination(page, limit)
        if sort_by not in hymn_service.HYMN_SORT_FIELDS:
            sort_by = "title"
        sort_order = "desc" if (sort_order or "").lower() == "desc" else "asc"

        filters = dict(
            category=category,
            search=search,
            source=source,
            tags=_split_tags(tags),
            sort_by=sort_by,
            sort_order=sort_order,
        )
        key = make_key(
            "hymns:list", page=page, limit=limit, category=category, search=search,
            source=source, tags=tags, sort_by=sort_by, sort_order=sort_order,
        )
        data = await cache.get_or_set(
            key, lambda: run_in_threadpool(_hymn_list, db, page, limit, **filters), CacheTTL.HYMN_LIST
        )
        return response.success(data, "Hymns retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to get hymns")


@router.get("/tags")
def get_hymn_tags(db: Session = Depends(get_db)):
    try:
        return response.success(hymn_service.get_tags(db), "Tags retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to get hymn tags")


@router.get("/stats")
async def get_hymn_stats(
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    try:
        stats = await cache.get_or_set(
            make_key("hymns:stats"),
            lambda: run_in_threadpool(lambda: response.camelize(hymn_service.get_stats(db))),
            CacheTTL.HYMN_STATS,
        )
        return response.success(stats, "Hymn statistics retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to get hymn stats")


@router.get("/scripture")
async def search_hymns_by_scripture(
    reference: Optional[str] = None,
    db: Session = Depends(get_db),
):
    try:
        if not reference or not reference.strip():
            response.bad_request("Scripture reference is required")

        result = await hymn_service.search_by_scripture(db, reference.strip())
        hymns = [
            HymnOut.model_validate(h) if isinstance(h, Hymn) else response.camelize(h)
            for h in result["hymns"]
        ]
        return response.success(
            {"hymns": hymns, "source": result["source"], "reference": reference.strip()},
            "Hymns retrieved successfully",
        )
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to search hymns by scripture", reference=reference)


@router.get("/category/{category}")
async def get_hymns_by_category(
    category: str,
    page: int = 1,
    limit: int = 20,
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    try:
        if category not in hymn_service.HYMN_CATEGORIES:
            response.bad_request(f"Invalid category. Must be one of: {', '.join(hymn_service.HYMN_CATEGORIES)}")
        page, limit = get_pagination(page, limit)

        data = await cache.get_or_set(
            make_key("hymns:list", category=category, page=page, limit=limit),
            lambda: run_in_threadpool(_hymn_list, db, page, limit, category=category),
            CacheTTL.HYMN_LIST,
        )
        return response.success(data, "Hymns retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to get hymns by category", category=category)


@router.get("/{hymn_id}")
def get_hymn(hymn_id: str, db: Session = Depends(get_db)):
    try:
        hid = parse_id(hymn_id, "hymn ID")
        hymn = hymn_service.get_hymn(db, hid)
        return response.success(HymnOut.model_validate(hymn), "Hymn retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to get hymn", hymn_id=hymn_id)


@router.post("/{hymn_id}/interactions")
def update_hymn_interactions(
    hymn_id: str,
    payload: HymnInteractionUpdate,
    db: Session = Depends(get_db),
):
    try:
        hid = parse_id(hymn_id, "hymn ID")
        hymn = hymn_service.update_interactions(db, hid, payload.model_dump(exclude_unset=True))
        return response.success(HymnOut.model_validate(hymn), "Hymn interactions updated successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to update hymn interactions", hymn_id=hymn_id)
