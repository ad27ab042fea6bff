"""
Media reporting and moderation review.

Reports are one per (reporter, media). Every report bumps the media's
report_count atomically; reaching REPORT_REVIEW_THRESHOLD moves the media to
under_review. Admin alerts are returned as OutboundEvents for the caller to
schedule after the response.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..config import settings
from ..crud.media import media as media_crud
from ..models.media import Media, ModerationStatus
from ..models.report import MediaReport, ReportStatus
from ..models.user import User, UserRole
from ..utils.errors import ConflictError, NotFoundError, ValidationError
from ..utils.notifications import render_media_report_email
from ..utils.query import PaginatedResult, build_pagination, execute_paginated_query
from .events import OutboundEvent, email_event, in_app_event

logger = logging.getLogger(__name__)

REVIEWABLE_STATUSES = (
    ReportStatus.REVIEWED.value,
    ReportStatus.RESOLVED.value,
    ReportStatus.DISMISSED.value,
)


def _admins(db: Session) -> List[User]:
    return (
        db.query(User)
        .filter(User.is_active.is_(True))
        .filter((User.role == UserRole.ADMIN.value) | (User.is_superuser.is_(True)))
        .all()
    )


def report_media(
    db: Session,
    reporter: User,
    media_id: int,
    reason: str,
    description: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Returns:
        report: the new pending report
        report_count: media report count after this report
        under_review: True when this report moved the media to under_review
        events: admin alerts to dispatch
    """
    media = media_crud.get_visible(db, media_id)
    if media is None:
        raise NotFoundError("Media not found")
    if media.uploaded_by == reporter.id:
        raise ValidationError("You cannot report your own content")

    existing = (
        db.query(MediaReport.id)
        .filter(MediaReport.reporter_id == reporter.id, MediaReport.media_id == media_id)
        .first()
    )
    if existing:
        raise ConflictError("You have already reported this media")

    report = MediaReport(
        media_id=media_id,
        reporter_id=reporter.id,
        reason=reason,
        description=description.strip() if description else None,
        status=ReportStatus.PENDING.value,
    )
    db.add(report)
    try:
        db.flush()
    except IntegrityError:
        # Lost a race with a concurrent report from the same user
        db.rollback()
        raise ConflictError("You have already reported this media")

    media_crud.increment(db, media_id, "report_count")
    db.refresh(media)

    under_review = False
    if (
        media.report_count >= settings.REPORT_REVIEW_THRESHOLD
        and media.moderation_status != ModerationStatus.UNDER_REVIEW.value
        and media.moderation_status != ModerationStatus.REJECTED.value
    ):
        media.moderation_status = ModerationStatus.UNDER_REVIEW.value
        under_review = True

    db.commit()
    db.refresh(report)

    logger.info(f"🚩 Media {media_id} reported by user {reporter.id} ({reason}), total {media.report_count}")
    if under_review:
        logger.warning(f"⚠️ Media {media_id} moved to under_review after {media.report_count} reports")

    return {
        "report": report,
        "report_count": media.report_count,
        "under_review": under_review,
        "events": _report_events(db, media, reporter, report),
    }


def _report_events(db: Session, media: Media, reporter: User, report: MediaReport) -> List[OutboundEvent]:
    admins = _admins(db)
    if not admins:
        return []

    subject, body = render_media_report_email(
        media_title=media.title,
        media_id=media.id,
        reporter_email=reporter.email,
        reason=report.reason,
        description=report.description,
        report_count=media.report_count,
    )
    return [
        email_event("media.reported", [a.email for a in admins], subject, body),
        in_app_event(
            "media.reported",
            [a.id for a in admins],
            title="Media reported",
            message=f'"{media.title}" was reported for {report.reason}',
            notification_type="report",
            priority="high" if media.report_count >= settings.REPORT_REVIEW_THRESHOLD else "medium",
            data={"mediaId": media.id, "reportId": report.id, "reportCount": media.report_count},
            related_id=media.id,
        ),
    ]


def list_media_reports(db: Session, media_id: int) -> List[MediaReport]:
    if db.get(Media, media_id) is None:
        raise NotFoundError("Media not found")
    return (
        db.query(MediaReport)
        .filter(MediaReport.media_id == media_id)
        .order_by(MediaReport.created_at.desc())
        .all()
    )


def list_pending_reports(db: Session, page: int = 1, limit: int = 20) -> PaginatedResult:
    query = db.query(MediaReport).filter(MediaReport.status == ReportStatus.PENDING.value)
    skip, limit = build_pagination(page, limit)
    return execute_paginated_query(query, skip=skip, limit=limit)


def review_report(
    db: Session,
    admin: User,
    report_id: int,
    status: str,
    admin_notes: Optional[str] = None,
) -> Dict[str, Any]:
    """Resolving a report rejects and hides the media"""
    if status not in REVIEWABLE_STATUSES:
        raise ValidationError(f"Status must be one of: {', '.join(REVIEWABLE_STATUSES)}")

    report = db.get(MediaReport, report_id)
    if report is None:
        raise NotFoundError("Report not found")

    report.status = status
    report.reviewed_by = admin.id
    report.reviewed_at = datetime.utcnow()
    if admin_notes is not None:
        report.admin_notes = admin_notes

    if status == ReportStatus.RESOLVED.value:
        media = db.get(Media, report.media_id)
        if media is not None:
            media.moderation_status = ModerationStatus.REJECTED.value
            media.is_hidden = True
            logger.info(f"🚫 Media {media.id} rejected and hidden after report {report.id}")

    db.commit()
    db.refresh(report)

    events = [
        in_app_event(
            "report.reviewed",
            [report.reporter_id],
            title="Report reviewed",
            message=f"Your report has been marked as {status}",
            notification_type="moderation",
            data={"reportId": report.id, "status": status},
            related_id=report.media_id,
        )
    ]
    return {"report": report, "events": events}
