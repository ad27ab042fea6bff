from fastapi import APIRouter
from . import (
    analytics,
    bible,
    bookmarks,
    devotionals,
    forums,
    hymns,
    media,
    notifications,
    places,
    playback,
    polls,
    prayers,
    search,
    songs,
)
from .auth import router as auth_router

api_router = APIRouter()

api_router.include_router(auth_router, prefix="/auth", tags=["authentication"])

# Media, moderation and playback
api_router.include_router(media.router, prefix="/media", tags=["media"])
api_router.include_router(media.reports_router, prefix="/media-reports", tags=["moderation"])
api_router.include_router(playback.router, tags=["playback"])
api_router.include_router(bookmarks.router, prefix="/bookmarks", tags=["bookmarks"])

# Scripture and worship content
api_router.include_router(bible.router, prefix="/bible", tags=["bible"])
api_router.include_router(hymns.router, prefix="/hymns", tags=["hymns"])
api_router.include_router(songs.router, prefix="/songs", tags=["songs"])
api_router.include_router(devotionals.router, prefix="/devotionals", tags=["devotionals"])

# Community
api_router.include_router(forums.router, prefix="/forums", tags=["forums"])
api_router.include_router(polls.router, prefix="/polls", tags=["polls"])
api_router.include_router(prayers.router, prefix="/prayers", tags=["prayers"])

# Discovery
api_router.include_router(search.router, prefix="/search", tags=["search"])
api_router.include_router(places.router, prefix="/places", tags=["places"])
api_router.include_router(places.churches_router, prefix="/churches", tags=["places"])

api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(analytics.router, prefix="/analytics", tags=["analytics"])

__all__ = ["api_router"]
