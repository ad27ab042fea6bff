"""
Hymn listing, stats and scripture lookup.

Scripture lookups go to the Hymnary.org API first and fall back to the
locally stored scripture references when it is slow or unavailable.
"""

import asyncio
import logging
import re
from typing import Any, Dict, List, Optional

import aiohttp
from sqlalchemy import String, cast, func, or_
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from ..config import settings
from ..crud.base import CRUDBase
from ..models.hymn import Hymn, HymnCategory, HymnSource
from ..utils.errors import ExternalServiceError, NotFoundError
from ..utils.query import (
    LIKE_ESCAPE,
    PaginatedResult,
    build_pagination,
    build_sort,
    build_text_search,
    combine_filters,
    escape_like,
    execute_paginated_query,
)

logger = logging.getLogger(__name__)

HYMN_SORT_FIELDS = {
    "title": "title",
    "author": "author",
    "year": "year",
    "viewCount": "view_count",
    "likeCount": "like_count",
    "createdAt": "created_at",
}
HYMN_CATEGORIES = [c.value for c in HymnCategory]
INTERACTION_FIELDS = ("view_count", "like_count", "comment_count", "share_count", "bookmark_count")


class CRUDHymn(CRUDBase[Hymn, Any, Any]):
    def get_active(self, db: Session, hymn_id: int) -> Hymn:
        hymn = db.query(Hymn).filter(Hymn.id == hymn_id, Hymn.is_active.is_(True)).first()
        if hymn is None:
            raise NotFoundError("Hymn not found")
        return hymn


hymns = CRUDHymn(Hymn)


def _json_contains_any(column, values: List[str]):
    # JSON list columns are matched on their serialized form so the filter works on SQLite and PostgreSQL
    return or_(*[cast(column, String).ilike(f'%"{escape_like(value)}"%', escape=LIKE_ESCAPE) for value in values])


def list_hymns(
    db: Session,
    page: int = 1,
    limit: int = 20,
    category: Optional[str] = None,
    search: Optional[str] = None,
    source: Optional[str] = None,
    tags: Optional[List[str]] = None,
    sort_by: str = "title",
    sort_order: str = "asc",
) -> PaginatedResult:
    filters = combine_filters(
        Hymn.is_active.is_(True),
        Hymn.category == category if category else None,
        Hymn.source == source if source else None,
        _json_contains_any(Hymn.tags, tags) if tags else None,
        build_text_search(Hymn, search, ("title", "author", "composer")),
    )
    query = db.query(Hymn).filter(filters)
    skip, limit = build_pagination(page, limit)
    order = build_sort(Hymn, sort_by, sort_order, allowed=HYMN_SORT_FIELDS, default="title")
    return execute_paginated_query(query, skip=skip, limit=limit, order_by=[order, Hymn.id.asc()])


def get_hymn(db: Session, hymn_id: int, count_view: bool = True) -> Hymn:
    hymn = hymns.get_active(db, hymn_id)
    if count_view:
        hymns.increment(db, hymn_id, "view_count")
        db.commit()
        db.refresh(hymn)
    return hymn


def get_tags(db: Session) -> List[str]:
    found = set()
    for (tags,) in db.query(Hymn.tags).filter(Hymn.is_active.is_(True)).all():
        found.update(tags or [])
    return sorted(found)


def update_interactions(db: Session, hymn_id: int, counts: Dict[str, Optional[int]]) -> Hymn:
    """Overwrite the given interaction counters"""
    hymn = hymns.get_active(db, hymn_id)
    for field in INTERACTION_FIELDS:
        if counts.get(field) is not None:
            setattr(hymn, field, counts[field])
    db.commit()
    db.refresh(hymn)
    return hymn


def get_stats(db: Session) -> Dict[str, Any]:
    active = Hymn.is_active.is_(True)
    by_category = dict(
        db.query(Hymn.category, func.count(Hymn.id)).filter(active).group_by(Hymn.category).all()
    )
    by_source = dict(
        db.query(Hymn.source, func.count(Hymn.id)).filter(active).group_by(Hymn.source).all()
    )
    top = (
        db.query(Hymn)
        .filter(active)
        .order_by(Hymn.view_count.desc(), Hymn.like_count.desc())
        .limit(10)
        .all()
    )
    return {
        "total_hymns": db.query(func.count(Hymn.id)).filter(active).scalar() or 0,
        "hymns_by_category": by_category,
        "hymns_by_source": by_source,
        "top_hymns": [
            {"id": h.id, "title": h.title, "view_count": h.view_count, "like_count": h.like_count}
            for h in top
        ],
    }


# ==================== Hymnary.org ====================

def _year(value: Optional[str]) -> Optional[int]:
    match = re.search(r"\d{4}", value or "")
    return int(match.group(0)) if match else None


def _role(data: dict, role: str) -> Optional[str]:
    for entry in data.get("roles") or []:
        if role in (entry.get("role") or "").lower():
            return entry.get("name")
    return None


def _category_for(data: dict) -> str:
    title = (data.get("title") or "").lower()
    if "praise" in title or "glory" in title:
        return HymnCategory.PRAISE.value
    if "worship" in title or "adore" in title:
        return HymnCategory.WORSHIP.value
    if "christmas" in title or "nativity" in title:
        return HymnCategory.CHRISTMAS.value
    if "easter" in title or "resurrection" in title:
        return HymnCategory.EASTER.value
    return HymnCategory.TRADITIONAL.value


def transform_hymnary(data: dict) -> Dict[str, Any]:
    """Map one Hymnary.org record onto our hymn fields"""
    title = data.get("title") or "Untitled Hymn"
    year = _year(data.get("date"))
    scripture = data.get("scripture references") or []
    if isinstance(scripture, str):
        scripture = [scripture]

    tags = []
    if data.get("meter"):
        tags.append("metered")
    if data.get("place of origin"):
        tags.append(data["place of origin"].lower())
    if scripture:
        tags.append("scripture-based")

    return {
        "title": title,
        "author": _role(data, "author") or "Unknown Author",
        "composer": _role(data, "composer"),
        "year": year,
        "category": _category_for(data),
        "lyrics": [],
        "scripture": scripture,
        "tags": tags,
        "meter": data.get("meter"),
        "source": HymnSource.HYMNARY.value,
        "external_id": f"{re.sub(r'[^a-z0-9]', '-', title.lower())}-{year or 'unknown'}",
        "text_link": data.get("text link"),
    }


async def fetch_from_hymnary(reference: str) -> List[Dict[str, Any]]:
    timeout = aiohttp.ClientTimeout(total=settings.HYMNARY_TIMEOUT)
    headers = {"User-Agent": "JevahApp/1.0 (Gospel Media Platform)", "Accept": "application/json"}
    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.get(settings.HYMNARY_API_URL, params={"reference": reference}, headers=headers) as response:
                response.raise_for_status()
                records = await response.json(content_type=None)
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        raise ExternalServiceError(f"Hymnary request failed: {e!r}") from e

    if records is None:
        return []
    if not isinstance(records, list) or not all(isinstance(r, dict) for r in records):
        raise ExternalServiceError("Hymnary returned an unexpected body")
    return [transform_hymnary(record) for record in records]


def local_scripture_hymns(db: Session, reference: str, limit: int = 20) -> List[Hymn]:
    return (
        db.query(Hymn)
        .filter(
            Hymn.is_active.is_(True),
            cast(Hymn.scripture, String).ilike(f"%{escape_like(reference.strip())}%", escape=LIKE_ESCAPE),
        )
        .order_by(Hymn.title)
        .limit(limit)
        .all()
    )


async def search_by_scripture(db: Session, reference: str) -> Dict[str, Any]:
    try:
        found = await fetch_from_hymnary(reference)
        if found:
            logger.info(f"🎵 Hymnary returned {len(found)} hymns for {reference}")
            return {"hymns": found, "source": HymnSource.HYMNARY.value}
    except ExternalServiceError as e:
        logger.warning(f"⚠️ Hymnary API unavailable for '{reference}': {e}")

    local = await run_in_threadpool(local_scripture_hymns, db, reference)
    return {"hymns": local, "source": "local"}
