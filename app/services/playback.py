"""
Jevah Playback Session Service
Tracks one play of a media item from start to end and decides when it counts
as a view (or a listen, for audio content).

States: idle -> active -> (paused <-> active) -> ended
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session, joinedload

from ..config import settings
from ..crud.media import media as media_crud
from ..models.media import Media
from ..models.playback import PlaybackEndReason, PlaybackSession
from ..models.watch_progress import WatchProgress
from ..utils.errors import ConflictError, NotFoundError, PermissionDeniedError
from ..utils.query import PaginatedResult, build_pagination, execute_paginated_query

logger = logging.getLogger(__name__)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


class PlaybackService:
    """
    A user has at most one active session; starting another pauses the
    previous one. Positions are clamped to [0, duration].
    """

    COMPLETION_THRESHOLD = 0.90  # library entry is marked completed

    def __init__(self, view_threshold: Optional[float] = None):
        self.view_threshold = settings.PLAYBACK_VIEW_THRESHOLD if view_threshold is None else view_threshold

    # ==================== Lifecycle ====================

    def start_playback(
        self,
        db: Session,
        user_id: int,
        media_id: int,
        duration: float,
        position: Optional[float] = None,
        device_info: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Returns:
            session: the new active session
            previous: the session that was paused to make room, or None
            resume_from: starting position
        """
        media = media_crud.get_visible(db, media_id)
        if media is None:
            raise NotFoundError("Media not found")

        now = datetime.utcnow()
        previous = (
            db.query(PlaybackSession)
            .filter(PlaybackSession.user_id == user_id, PlaybackSession.is_active.is_(True))
            .order_by(PlaybackSession.started_at.desc())
            .all()
        )
        for old in previous:
            old.is_active = False
            old.is_paused = True
            old.paused_at = now
            old.ended_at = now
            old.end_reason = PlaybackEndReason.SUPERSEDED.value

        if position is None:
            library = self._get_library_entry(db, user_id, media_id)
            position = library.position if library and library.position else 0.0
        resume_from = _clamp(float(position), 0.0, float(duration))

        session = PlaybackSession(
            user_id=user_id,
            media_id=media_id,
            duration=duration,
            current_position=resume_from,
            progress_percentage=round(resume_from / duration * 100, 2),
            is_active=True,
            is_paused=False,
            started_at=now,
            last_progress_at=now,
            device_info=device_info,
            user_agent=user_agent,
        )
        db.add(session)
        db.commit()
        db.refresh(session)

        paused = previous[0] if previous else None
        if paused is not None:
            logger.info(f"⏸️ Session {paused.id} superseded by {session.id} (user {user_id})")
        logger.info(f"▶️ Playback started: user {user_id} → media {media_id} at {resume_from}s")

        return {"session": session, "previous": paused, "resume_from": resume_from}

    def update_progress(
        self,
        db: Session,
        user_id: int,
        session_id: int,
        position: float,
        duration: float,
        progress_percentage: float,
    ) -> PlaybackSession:
        session = self._get_open_session(db, user_id, session_id)

        session.duration = duration
        new_position = _clamp(position, 0.0, duration)
        # Seeking backward adds nothing
        session.total_watch_time += max(0.0, new_position - session.current_position)
        session.current_position = new_position
        session.progress_percentage = _clamp(progress_percentage, 0.0, 100.0)
        session.last_progress_at = datetime.utcnow()

        self._touch_library(db, session)
        db.commit()
        db.refresh(session)
        return session

    def pause(self, db: Session, user_id: int, session_id: int) -> PlaybackSession:
        session = self._get_open_session(db, user_id, session_id)
        if not session.is_paused:
            session.is_paused = True
            session.paused_at = datetime.utcnow()
            self._touch_library(db, session)
            db.commit()
            db.refresh(session)
        return session

    def resume(self, db: Session, user_id: int, session_id: int) -> PlaybackSession:
        session = self._get_open_session(db, user_id, session_id)
        if session.is_paused:
            session.is_paused = False
            session.paused_at = None
            session.last_progress_at = datetime.utcnow()
            db.commit()
            db.refresh(session)
        return session

    def end_playback(
        self,
        db: Session,
        user_id: int,
        session_id: int,
        reason: str = PlaybackEndReason.STOPPED.value,
        final_position: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        Close the session and count a view/listen when enough of the media
        was played (final_position / duration >= view_threshold).
        """
        session = self._get_open_session(db, user_id, session_id)
        now = datetime.utcnow()

        final = session.current_position if final_position is None else final_position
        final = _clamp(final, 0.0, session.duration)
        session.total_watch_time += max(0.0, final - session.current_position)
        session.current_position = final
        ratio = final / session.duration if session.duration else 0.0
        session.progress_percentage = round(_clamp(ratio * 100, 0.0, 100.0), 2)

        session.is_active = False
        session.is_paused = False
        session.ended_at = now
        session.end_reason = reason

        view_recorded = ratio >= self.view_threshold
        if view_recorded:
            media = db.get(Media, session.media_id)
            column = "listen_count" if media is not None and media.is_audio else "view_count"
            media_crud.increment(db, session.media_id, column)

        self._touch_library(db, session, completed=reason == PlaybackEndReason.COMPLETED.value)
        db.commit()
        db.refresh(session)

        logger.info(
            f"⏹️ Playback ended: session {session.id} ({reason}) at {final}s, "
            f"view recorded: {view_recorded}"
        )
        return {"session": session, "view_recorded": view_recorded}

    # ==================== Queries ====================

    def get_active_session(self, db: Session, user_id: int) -> Optional[PlaybackSession]:
        return (
            db.query(PlaybackSession)
            .options(joinedload(PlaybackSession.media))
            .filter(PlaybackSession.user_id == user_id, PlaybackSession.is_active.is_(True))
            .order_by(PlaybackSession.started_at.desc())
            .first()
        )

    def get_history(
        self,
        db: Session,
        user_id: int,
        page: int = 1,
        limit: int = 20,
        include_inactive: bool = True,
    ) -> PaginatedResult:
        query = db.query(PlaybackSession).filter(PlaybackSession.user_id == user_id)
        if not include_inactive:
            query = query.filter(PlaybackSession.is_active.is_(True))

        skip, limit = build_pagination(page, limit)
        return execute_paginated_query(
            query,
            skip=skip,
            limit=limit,
            order_by=PlaybackSession.started_at.desc(),
            options=(joinedload(PlaybackSession.media),),
        )

    def cleanup_stale_sessions(self, db: Session, max_idle_minutes: Optional[int] = None) -> int:
        """End active sessions with no progress since the cutoff"""
        minutes = max_idle_minutes or settings.PLAYBACK_STALE_MINUTES
        now = datetime.utcnow()
        cutoff = now - timedelta(minutes=minutes)

        stale = (
            db.query(PlaybackSession)
            .filter(PlaybackSession.is_active.is_(True), PlaybackSession.last_progress_at < cutoff)
            .all()
        )
        for session in stale:
            session.is_active = False
            session.is_paused = False
            session.ended_at = now
            session.end_reason = PlaybackEndReason.STALE.value
        db.commit()

        if stale:
            logger.info(f"🗑️ Ended {len(stale)} stale playback sessions (idle > {minutes} min)")
        return len(stale)

    # ==================== Helpers ====================

    def _get_open_session(self, db: Session, user_id: int, session_id: int) -> PlaybackSession:
        session = db.get(PlaybackSession, session_id)
        if session is None:
            raise NotFoundError("Playback session not found")
        if session.user_id != user_id:
            raise PermissionDeniedError("You can only modify your own playback session")
        if session.is_ended:
            raise ConflictError("Playback session has already ended")
        return session

    def _get_library_entry(self, db: Session, user_id: int, media_id: int) -> Optional[WatchProgress]:
        return (
            db.query(WatchProgress)
            .filter(WatchProgress.user_id == user_id, WatchProgress.media_id == media_id)
            .first()
        )

    def _touch_library(self, db: Session, session: PlaybackSession, completed: bool = False) -> WatchProgress:
        """Upsert the resume point for this user and media"""
        entry = self._get_library_entry(db, session.user_id, session.media_id)
        if entry is None:
            entry = WatchProgress(user_id=session.user_id, media_id=session.media_id)
            db.add(entry)

        entry.position = session.current_position
        entry.completion_percentage = session.progress_percentage
        entry.is_completed = bool(
            entry.is_completed
            or completed
            or session.progress_percentage >= self.COMPLETION_THRESHOLD * 100
        )
        entry.last_watched = datetime.utcnow()
        return entry


playback_service = PlaybackService()
