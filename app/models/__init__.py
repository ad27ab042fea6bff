from app.database import Base
from app.models.user import User, UserRole
from app.models.media import Media, ModerationStatus, AUDIO_CONTENT_TYPES
from app.models.watch_progress import WatchProgress
from app.models.playback import PlaybackSession, PlaybackEndReason
from app.models.bookmark import Bookmark
from app.models.report import MediaReport, ReportReason, ReportStatus
from app.models.notification import Notification, NotificationPreference, NotificationType, NotificationPriority
from app.models.bible import BibleBook, BibleChapter, BibleVerse, Testament
from app.models.hymn import Hymn, HymnCategory, HymnSource
from app.models.forum import Forum, ForumPost
from app.models.poll import Poll, PollVote
from app.models.prayer import PrayerPost
from app.models.song import CopyrightFreeSong, SongInteraction
from app.models.church import Church, ChurchBranch
from app.models.devotional import Devotional

# This ensures all models are registered with Base.metadata
__all__ = [
    "Base", "User", "UserRole", "Media", "ModerationStatus", "AUDIO_CONTENT_TYPES",
    "WatchProgress", "PlaybackSession", "PlaybackEndReason", "Bookmark",
    "MediaReport", "ReportReason", "ReportStatus", "Notification",
    "NotificationPreference", "NotificationType", "NotificationPriority",
    "BibleBook", "BibleChapter", "BibleVerse", "Testament", "Hymn",
    "HymnCategory", "HymnSource", "Forum", "ForumPost", "Poll", "PollVote",
    "PrayerPost", "CopyrightFreeSong", "SongInteraction", "Church",
    "ChurchBranch", "Devotional",
]
