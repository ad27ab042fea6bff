"""
Media CRUD plus content reports and the admin moderation queue.
"""
from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
import logging

from ...database import get_db
from ...models.media import Media, ModerationStatus
from ...models.user import User
from ...schemas.media import MediaCreate, MediaOut, MediaUpdate
from ...schemas.report import ReportCreate, ReportOut, ReportReview, ReportSummary
from ...services import reports as report_service
from ...services.events import EventDispatcher, get_event_dispatcher
from ...utils import response
from ...utils.controller import get_pagination, handle_service_error, parse_id
from ..base_controller import BaseController, ResourceHooks
from ..deps import get_current_admin, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


class MediaHooks(ResourceHooks):
    def before_save(self, db, data, user):
        data["moderation_status"] = ModerationStatus.APPROVED.value
        data["title"] = data["title"].strip()
        return data

    def after_save(self, db, obj, user):
        logger.info(f"✅ Media {obj.id} '{obj.title}' uploaded by user {user.id}")


controller = BaseController(
    Media,
    MediaOut,
    hooks=MediaHooks(),
    owner_field="uploaded_by",
    soft_delete=True,
    search_fields=("title", "description"),
    sort_fields={
        "createdAt": "created_at",
        "title": "title",
        "viewCount": "view_count",
        "listenCount": "listen_count",
        "likeCount": "like_count",
    },
    base_filters=(Media.is_hidden.is_(False),),
    resource_name="Media",
)


@router.get("")
def list_media(
    page: int = 1,
    limit: int = 20,
    search: Optional[str] = None,
    content_type: Optional[str] = Query(None, alias="contentType"),
    category: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: str = Query("desc", alias="sortOrder"),
    db: Session = Depends(get_db),
):
    filters = []
    if content_type:
        filters.append(Media.content_type == content_type)
    if category:
        filters.append(Media.category == category)
    return controller.get_list(db, page, limit, search, sort_by, sort_order, filters)


@router.get("/{media_id}")
def get_media(media_id: str, db: Session = Depends(get_db)):
    return controller.get_by_id(db, media_id)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_media(
    payload: MediaCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return controller.create(db, payload, current_user)


@router.put("/{media_id}")
def update_media(
    media_id: str,
    payload: MediaUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return controller.update(db, media_id, payload, current_user)


@router.delete("/{media_id}")
def delete_media(
    media_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return controller.delete(db, media_id, current_user)


# ==================== Reports ====================

@router.post("/{media_id}/report", status_code=status.HTTP_201_CREATED)
def report_media(
    media_id: str,
    payload: ReportCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    dispatcher: EventDispatcher = Depends(get_event_dispatcher),
    db: Session = Depends(get_db),
):
    try:
        mid = parse_id(media_id, "media ID")
        result = report_service.report_media(
            db, current_user, mid, payload.reason.value, payload.description
        )
        for event in result["events"]:
            background_tasks.add_task(dispatcher.dispatch, event)

        return {
            "success": True,
            "message": "Media reported successfully",
            "report": ReportSummary.model_validate(result["report"]),
        }
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to report media", user_id=current_user.id, media_id=media_id)


@router.get("/{media_id}/reports")
def get_media_reports(
    media_id: str,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    try:
        mid = parse_id(media_id, "media ID")
        reports = report_service.list_media_reports(db, mid)
        return response.success(
            {"reports": [ReportOut.model_validate(r) for r in reports], "count": len(reports)},
            "Reports retrieved successfully",
        )
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to retrieve reports", media_id=media_id)


# Admin moderation queue, mounted at /media-reports
reports_router = APIRouter()


@reports_router.get("/pending")
def get_pending_reports(
    page: int = 1,
    limit: int = 20,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    try:
        page, limit = get_pagination(page, limit)
        result = report_service.list_pending_reports(db, page, limit)
        return response.paginated(
            [ReportOut.model_validate(r) for r in result.data],
            result.page,
            result.limit,
            result.total,
            "Pending reports retrieved successfully",
        )
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to retrieve pending reports")


@reports_router.post("/{report_id}/review")
def review_report(
    report_id: str,
    payload: ReportReview,
    background_tasks: BackgroundTasks,
    admin: User = Depends(get_current_admin),
    dispatcher: EventDispatcher = Depends(get_event_dispatcher),
    db: Session = Depends(get_db),
):
    try:
        rid = parse_id(report_id, "report ID")
        result = report_service.review_report(db, admin, rid, payload.status.value, payload.admin_notes)
        for event in result["events"]:
            background_tasks.add_task(dispatcher.dispatch, event)

        logger.info(f"✅ Report {rid} marked {payload.status.value} by admin {admin.id}")
        return response.success(ReportOut.model_validate(result["report"]), "Report reviewed successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to review report", report_id=report_id)
