"""
Copyright-free song interactions.

Likes toggle; shares and views are counted once per user. The per-user flags
live in SongInteraction and the totals on the song row.
"""

import logging
from typing import Any, Dict

from sqlalchemy.orm import Session

from ..crud.base import CRUDBase
from ..models.song import CopyrightFreeSong, SongInteraction
from ..schemas.song import SongCreate, SongUpdate
from ..utils.errors import NotFoundError
from .events import OutboundEvent, realtime_event

logger = logging.getLogger(__name__)


class CRUDSong(CRUDBase[CopyrightFreeSong, SongCreate, SongUpdate]):
    def get_or_404(self, db: Session, song_id: int) -> CopyrightFreeSong:
        song = self.get(db, song_id)
        if song is None:
            raise NotFoundError("Song not found")
        return song


songs = CRUDSong(CopyrightFreeSong)


def _interaction(db: Session, user_id: int, song_id: int) -> SongInteraction:
    row = (
        db.query(SongInteraction)
        .filter(SongInteraction.user_id == user_id, SongInteraction.song_id == song_id)
        .first()
    )
    if row is None:
        row = SongInteraction(user_id=user_id, song_id=song_id)
        db.add(row)
        db.flush()
    return row


def _counts(db: Session, song: CopyrightFreeSong, liked: bool) -> Dict[str, Any]:
    db.refresh(song)
    return {
        "liked": liked,
        "like_count": song.like_count,
        "share_count": song.share_count,
        "view_count": song.view_count,
    }


def is_liked(db: Session, user_id: int, song_id: int) -> bool:
    return (
        db.query(SongInteraction.id)
        .filter(
            SongInteraction.user_id == user_id,
            SongInteraction.song_id == song_id,
            SongInteraction.has_liked.is_(True),
        )
        .first()
        is not None
    )


def toggle_like(db: Session, user_id: int, song_id: int) -> Dict[str, Any]:
    song = songs.get_or_404(db, song_id)
    row = _interaction(db, user_id, song_id)

    row.has_liked = not row.has_liked
    songs.increment(db, song_id, "like_count", 1 if row.has_liked else -1)
    db.commit()

    logger.info(f"{'❤️' if row.has_liked else '💔'} User {user_id} {'liked' if row.has_liked else 'unliked'} song {song_id}")
    return _counts(db, song, row.has_liked)


def like_update_event(song_id: int, user_id: int, counts: Dict[str, Any]) -> OutboundEvent:
    return realtime_event(
        "like-updated",
        f"audio:copyright-free:{song_id}",
        {"songId": song_id, "userId": user_id, "liked": counts["liked"], "likeCount": counts["like_count"]},
    )


def record_share(db: Session, user_id: int, song_id: int) -> Dict[str, Any]:
    song = songs.get_or_404(db, song_id)
    row = _interaction(db, user_id, song_id)
    if not row.has_shared:
        row.has_shared = True
        songs.increment(db, song_id, "share_count")
    db.commit()
    return _counts(db, song, row.has_liked)


def record_view(db: Session, user_id: int, song_id: int) -> Dict[str, Any]:
    song = songs.get_or_404(db, song_id)
    row = _interaction(db, user_id, song_id)
    if not row.has_viewed:
        row.has_viewed = True
        songs.increment(db, song_id, "view_count")
    db.commit()
    return _counts(db, song, row.has_liked)
