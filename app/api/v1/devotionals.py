# app/api/v1/devotionals.py
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
from datetime import datetime, timezone
import logging

from ...database import get_db
from ...models.devotional import Devotional
from ...models.user import User, UserRole
from ...schemas.devotional import DevotionalCreate, DevotionalOut
from ...services.cache import CacheService, CacheTTL, get_cache, make_key
from ...utils import response
from ...utils.controller import get_pagination, handle_service_error, is_admin
from ...utils.query import build_pagination, execute_paginated_query
from ..base_controller import BaseController, ResourceHooks
from ..deps import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


class DevotionalHooks(ResourceHooks):
    def before_save(self, db, data, user):
        if not (is_admin(user) or user.role == UserRole.CREATOR.value):
            response.forbidden("Only admins and creators can publish devotionals")
        if data.get("published_at") is None:
            data["published_at"] = datetime.utcnow()
        elif data["published_at"].tzinfo is not None:
            data["published_at"] = data["published_at"].astimezone(timezone.utc).replace(tzinfo=None)
        return data


controller = BaseController(
    Devotional,
    DevotionalOut,
    hooks=DevotionalHooks(),
    owner_field="author_id",
    resource_name="Devotional",
)


def _devotional_page(db: Session, page: int, limit: int) -> dict:
    query = db.query(Devotional).filter(Devotional.published_at <= datetime.utcnow())
    skip, limit = build_pagination(page, limit)
    result = execute_paginated_query(query, skip=skip, limit=limit, order_by=Devotional.published_at.desc())
    return jsonable_encoder({
        "devotionals": [DevotionalOut.model_validate(d) for d in result.data],
        "pagination": response.page_info(result.page, result.limit, result.total),
    })


@router.get("")
async def list_devotionals(
    page: int = 1,
    limit: int = 20,
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    try:
        page, limit = get_pagination(page, limit)
        data = await cache.get_or_set(
            make_key("devotionals", page=page, limit=limit),
            lambda: run_in_threadpool(_devotional_page, db, page, limit),
            CacheTTL.DEVOTIONALS,
        )
        return response.success(data, "Devotionals retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to retrieve devotionals")


@router.get("/{devotional_id}")
def get_devotional(devotional_id: str, db: Session = Depends(get_db)):
    return controller.get_by_id(db, devotional_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_devotional(
    payload: DevotionalCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    result = await run_in_threadpool(controller.create, db, payload, current_user)
    await cache.invalidate_namespace("devotionals")
    return result
