# app/api/v1/analytics.py

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
import logging

from ...database import get_db
from ...crud.media import media as media_crud
from ...models.user import User
from ...services.analytics import analytics_service
from ...services.cache import CacheService, CacheTTL, get_cache, make_key
from ...utils import response
from ...utils.controller import check_ownership, handle_service_error, is_admin, parse_id
from ..deps import get_current_user

logger = logging.getLogger(__name__)
router = APIRouter()


# ==================== DASHBOARD ====================

@router.get("/dashboard")
async def get_dashboard(
    time_range: int = Query(default=30, alias="timeRange", ge=1, le=365),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    """
    Admins see the whole platform, everyone else only their own uploads.

    Query params:
    - timeRange: Number of days to look back (1-365)
    """
    try:
        owner_id = None if is_admin(current_user) else current_user.id
        key = make_key("analytics:dashboard", owner=owner_id or "platform", days=time_range)

        dashboard = await cache.get_or_set(
            key,
            lambda: run_in_threadpool(
                lambda: jsonable_encoder(response.camelize(analytics_service.get_dashboard(db, owner_id, time_range)))
            ),
            CacheTTL.ANALYTICS,
        )
        return response.success(dashboard, "Analytics dashboard retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to fetch analytics dashboard", user_id=current_user.id)


# ==================== PER MEDIA ====================

@router.get("/media/{media_id}")
def get_media_analytics(
    media_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        mid = parse_id(media_id, "media ID")
        media = media_crud.get_active(db, mid)
        if media is None:
            response.not_found("Media not found")
        check_ownership(media.uploaded_by, current_user, "media analytics", allow_admin=True)

        stats = analytics_service.get_media_analytics(db, mid)
        return response.success(response.camelize(stats), "Media analytics retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to fetch media analytics", media_id=media_id)


# ==================== USER ENGAGEMENT ====================

@router.get("/user-engagement")
def get_user_engagement(
    time_range: int = Query(default=30, alias="timeRange", ge=1, le=365),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        stats = analytics_service.get_user_engagement(db, current_user.id, time_range)
        return response.success(response.camelize(stats), "User engagement retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to fetch user engagement", user_id=current_user.id)
