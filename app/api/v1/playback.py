"""
Playback session endpoints.

/media/{id}/playback/start opens a session; the /playback/* routes drive it
through progress, pause, resume and end.
"""
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
import logging

from ...database import get_db
from ...models.user import User
from ...schemas.media import MediaOut
from ...schemas.playback import (
    EndPlaybackRequest,
    PlaybackSessionOut,
    ProgressRequest,
    SessionActionRequest,
    StartPlaybackRequest,
)
from ...services.playback import playback_service
from ...utils import response
from ...utils.controller import get_pagination, handle_service_error, parse_id
from ..deps import get_current_admin, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter()


def _session_out(session) -> PlaybackSessionOut:
    return PlaybackSessionOut.model_validate(session)


@router.post("/media/{media_id}/playback/start")
def start_playback(
    media_id: str,
    payload: StartPlaybackRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        mid = parse_id(media_id, "media ID")
        result = playback_service.start_playback(
            db,
            current_user.id,
            mid,
            payload.duration,
            position=payload.position,
            device_info=payload.device_info,
            user_agent=request.headers.get("user-agent"),
        )

        previous = result["previous"]
        return response.success(
            {
                "session": _session_out(result["session"]),
                "previousSessionPaused": {
                    "sessionId": previous.id,
                    "mediaId": previous.media_id,
                    "position": previous.current_position,
                } if previous else None,
                "resumeFrom": result["resume_from"],
            },
            "Playback started successfully",
        )
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to start playback", user_id=current_user.id, media_id=media_id)


@router.post("/playback/progress")
def update_progress(
    payload: ProgressRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        session = playback_service.update_progress(
            db,
            current_user.id,
            payload.session_id,
            payload.position,
            payload.duration,
            payload.progress_percentage,
        )
        return response.success(_session_out(session), "Progress updated successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to update progress", session_id=payload.session_id)


@router.post("/playback/pause")
def pause_playback(
    payload: SessionActionRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        session = playback_service.pause(db, current_user.id, payload.session_id)
        return response.success(_session_out(session), "Playback paused successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to pause playback", session_id=payload.session_id)


@router.post("/playback/resume")
def resume_playback(
    payload: SessionActionRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        session = playback_service.resume(db, current_user.id, payload.session_id)
        return response.success(_session_out(session), "Playback resumed successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to resume playback", session_id=payload.session_id)


@router.post("/playback/end")
def end_playback(
    payload: EndPlaybackRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        result = playback_service.end_playback(
            db,
            current_user.id,
            payload.session_id,
            reason=payload.reason.value,
            final_position=payload.final_position,
        )
        return response.success(
            {"session": _session_out(result["session"]), "viewRecorded": result["view_recorded"]},
            "Playback ended successfully",
        )
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to end playback", session_id=payload.session_id)


@router.get("/playback/active")
def get_active_playback(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        session = playback_service.get_active_session(db, current_user.id)
        if session is None:
            return response.success({"session": None}, "No active playback session")

        return response.success(
            {
                "session": _session_out(session),
                "media": MediaOut.model_validate(session.media) if session.media else None,
            },
            "Active playback session retrieved successfully",
        )
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to retrieve active playback session")


@router.get("/playback/history")
def get_playback_history(
    page: int = 1,
    limit: int = 20,
    include_inactive: bool = True,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        page, limit = get_pagination(page, limit)
        result = playback_service.get_history(db, current_user.id, page, limit, include_inactive)
        items = [
            {
                "session": _session_out(s),
                "media": MediaOut.model_validate(s.media) if s.media else None,
            }
            for s in result.data
        ]
        return response.paginated(items, result.page, result.limit, result.total, "Playback history retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to retrieve playback history")


@router.post("/playback/cleanup")
def cleanup_stale_sessions(
    max_idle_minutes: int = 30,
    admin: User = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """Admin only; there is no background sweep"""
    try:
        if max_idle_minutes < 1:
            response.bad_request("max_idle_minutes must be at least 1")
        ended = playback_service.cleanup_stale_sessions(db, max_idle_minutes)
        return response.success({"endedSessions": ended}, f"Ended {ended} stale sessions")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to clean up stale sessions")
