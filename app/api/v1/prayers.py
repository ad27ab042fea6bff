# app/api/v1/prayers.py
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import logging

from ...database import get_db
from ...models.prayer import PrayerPost
from ...models.user import User
from ...schemas.prayer import PrayerPostCreate, PrayerPostOut, PrayerPostUpdate
from ...services.prayer_search import search_prayers
from ...utils import response
from ...utils.controller import get_pagination, handle_service_error
from ..base_controller import BaseController, ResourceHooks
from ..deps import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


class PrayerHooks(ResourceHooks):
    def before_save(self, db, data, user):
        # prayer_text defaults to the post body so search scoring has something to weigh
        if not data.get("prayer_text"):
            data["prayer_text"] = data["content"]
        return data


controller = BaseController(
    PrayerPost,
    PrayerPostOut,
    hooks=PrayerHooks(),
    owner_field="author_id",
    search_fields=("content", "prayer_text", "verse_reference"),
    sort_fields={"createdAt": "created_at"},
    resource_name="Prayer",
)


@router.get("/search")
def search(
    q: Optional[str] = None,
    page: int = 1,
    limit: int = 20,
    db: Session = Depends(get_db),
):
    try:
        if not q or not q.strip():
            response.bad_request("Search query is required")
        page, limit = get_pagination(page, limit)

        items, total = search_prayers(db, q.strip(), page, limit)
        prayers = [
            {
                **PrayerPostOut.model_validate(item["prayer"]).model_dump(by_alias=True),
                "relevanceScore": item["relevance_score"],
            }
            for item in items
        ]
        return response.success(
            {"prayers": prayers, "pagination": response.page_info(page, limit, total)},
            "Prayers retrieved successfully",
        )
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to search prayers", q=q)


@router.get("")
def list_prayers(
    page: int = 1,
    limit: int = 20,
    search: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return controller.get_list(db, page, limit, search, message="Prayers retrieved successfully")


@router.get("/{prayer_id}")
def get_prayer(prayer_id: str, db: Session = Depends(get_db)):
    return controller.get_by_id(db, prayer_id)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_prayer(
    payload: PrayerPostCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return controller.create(db, payload, current_user)


@router.put("/{prayer_id}")
def update_prayer(
    prayer_id: str,
    payload: PrayerPostUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return controller.update(db, prayer_id, payload, current_user)


@router.delete("/{prayer_id}")
def delete_prayer(
    prayer_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return controller.delete(db, prayer_id, current_user)
