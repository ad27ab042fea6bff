from typing import Optional
from sqlalchemy.orm import Session
from ..crud.base import CRUDBase
from ..models.media import Media
from ..schemas.media import MediaCreate, MediaUpdate


class CRUDMedia(CRUDBase[Media, MediaCreate, MediaUpdate]):
    def get_active(self, db: Session, id: int) -> Optional[Media]:
        """Media that is not soft-deleted, hidden or not"""
        return (
            db.query(Media)
            .filter(Media.id == id)
            .filter(Media.is_deleted.is_(False))
            .first()
        )

    def get_visible(self, db: Session, id: int) -> Optional[Media]:
        """Media that is neither soft-deleted nor hidden by moderation"""
        return (
            db.query(Media)
            .filter(Media.id == id)
            .filter(Media.is_deleted.is_(False))
            .filter(Media.is_hidden.is_(False))
            .first()
        )

    def counters(self, db: Session, id: int) -> Optional[Media]:
        """Fresh read after an atomic counter update"""
        obj = db.get(Media, id)
        if obj is not None:
            db.refresh(obj)
        return obj


media = CRUDMedia(Media)
