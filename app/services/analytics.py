from typing import Dict, List, Optional
from datetime import datetime, timedelta
from sqlalchemy.orm import Session
from sqlalchemy import func, desc
from ..models.bookmark import Bookmark
from ..models.forum import ForumPost
from ..models.media import Media
from ..models.playback import PlaybackSession, PlaybackEndReason
from ..models.poll import PollVote
from ..models.prayer import PrayerPost
from ..models.report import MediaReport, ReportStatus
from ..models.user import User
from ..utils.errors import NotFoundError


class AnalyticsService:
    """
    Aggregates over media counters and playback sessions.
    owner_id=None means platform-wide (admin dashboards).
    """

    def _media_query(self, db: Session, owner_id: Optional[int]):
        query = db.query(Media).filter(Media.is_deleted.is_(False))
        if owner_id is not None:
            query = query.filter(Media.uploaded_by == owner_id)
        return query

    def _sessions_query(self, db: Session, owner_id: Optional[int], start_date: datetime):
        query = db.query(PlaybackSession).filter(PlaybackSession.started_at >= start_date)
        if owner_id is not None:
            query = query.join(Media, Media.id == PlaybackSession.media_id).filter(Media.uploaded_by == owner_id)
        return query

    def get_content_totals(self, db: Session, owner_id: Optional[int] = None) -> Dict:
        """Media count and summed counters"""
        filters = [Media.is_deleted.is_(False)]
        if owner_id is not None:
            filters.append(Media.uploaded_by == owner_id)

        totals = db.query(
            func.count(Media.id),
            func.coalesce(func.sum(Media.view_count), 0),
            func.coalesce(func.sum(Media.listen_count), 0),
            func.coalesce(func.sum(Media.like_count), 0),
            func.coalesce(func.sum(Media.bookmark_count), 0),
            func.coalesce(func.sum(Media.share_count), 0),
            func.coalesce(func.sum(Media.report_count), 0),
        ).filter(*filters).one()

        by_type = dict(
            db.query(Media.content_type, func.count(Media.id))
            .filter(*filters)
            .group_by(Media.content_type)
            .all()
        )

        return {
            "total_media": totals[0],
            "total_views": int(totals[1]),
            "total_listens": int(totals[2]),
            "total_likes": int(totals[3]),
            "total_bookmarks": int(totals[4]),
            "total_shares": int(totals[5]),
            "total_reports": int(totals[6]),
            "media_by_type": by_type,
        }

    def get_top_media(self, db: Session, owner_id: Optional[int] = None, limit: int = 5) -> List[Dict]:
        top = (
            self._media_query(db, owner_id)
            .order_by(desc(Media.view_count + Media.listen_count), Media.like_count.desc())
            .limit(limit)
            .all()
        )
        return [
            {
                "id": m.id,
                "title": m.title,
                "content_type": m.content_type,
                "view_count": m.view_count,
                "listen_count": m.listen_count,
                "like_count": m.like_count,
            }
            for m in top
        ]

    def get_playback_stats(self, db: Session, owner_id: Optional[int] = None, days: int = 30) -> Dict:
        """Session activity in the last N days"""
        start_date = datetime.utcnow() - timedelta(days=days)
        sessions = self._sessions_query(db, owner_id, start_date)

        total_sessions = sessions.count()
        unique_listeners = sessions.with_entities(func.count(func.distinct(PlaybackSession.user_id))).scalar() or 0
        total_watch_time = sessions.with_entities(func.sum(PlaybackSession.total_watch_time)).scalar() or 0
        completed = sessions.filter(PlaybackSession.end_reason == PlaybackEndReason.COMPLETED.value).count()

        return {
            "total_sessions": total_sessions,
            "unique_listeners": unique_listeners,
            "total_watch_time_hours": round(total_watch_time / 3600, 2),
            "average_session_minutes": round(total_watch_time / total_sessions / 60, 2) if total_sessions else 0,
            "completion_rate": round(completed / total_sessions * 100, 2) if total_sessions else 0,
            "period_days": days,
        }

    def get_daily_usage_stats(self, db: Session, owner_id: Optional[int] = None, days: int = 7) -> List[Dict]:
        """Sessions and unique users per day, oldest first"""
        daily_stats = []

        for i in range(days):
            date = datetime.utcnow().date() - timedelta(days=i)
            start_date = datetime.combine(date, datetime.min.time())
            end_date = start_date + timedelta(days=1)

            day = self._sessions_query(db, owner_id, start_date).filter(PlaybackSession.started_at < end_date)
            watch_time = day.with_entities(func.sum(PlaybackSession.total_watch_time)).scalar() or 0

            daily_stats.append({
                "date": date.isoformat(),
                "sessions": day.count(),
                "unique_users": day.with_entities(func.count(func.distinct(PlaybackSession.user_id))).scalar() or 0,
                "watch_time_hours": round(watch_time / 3600, 2),
            })

        return list(reversed(daily_stats))

    def get_dashboard(self, db: Session, owner_id: Optional[int] = None, days: int = 30) -> Dict:
        dashboard = {
            "scope": "platform" if owner_id is None else "creator",
            "time_range_days": days,
            "content": self.get_content_totals(db, owner_id),
            "playback": self.get_playback_stats(db, owner_id, days),
            "top_media": self.get_top_media(db, owner_id),
            "daily": self.get_daily_usage_stats(db, owner_id, min(days, 30)),
        }

        if owner_id is None:
            start_date = datetime.utcnow() - timedelta(days=days)
            dashboard["users"] = {
                "total_users": db.query(func.count(User.id)).scalar() or 0,
                "new_users": db.query(func.count(User.id)).filter(User.created_at >= start_date).scalar() or 0,
                "active_users": db.query(func.count(User.id)).filter(User.is_active.is_(True)).scalar() or 0,
            }
            dashboard["moderation"] = {
                "pending_reports": db.query(func.count(MediaReport.id))
                .filter(MediaReport.status == ReportStatus.PENDING.value)
                .scalar() or 0,
                "media_under_review": db.query(func.count(Media.id))
                .filter(Media.moderation_status == "under_review")
                .scalar() or 0,
            }

        return dashboard

    def get_media_analytics(self, db: Session, media_id: int) -> Dict:
        media = db.query(Media).filter(Media.id == media_id, Media.is_deleted.is_(False)).first()
        if media is None:
            raise NotFoundError("Media not found")

        session_count, avg_watch_time, unique_listeners = db.query(
            func.count(PlaybackSession.id),
            func.avg(PlaybackSession.total_watch_time),
            func.count(func.distinct(PlaybackSession.user_id)),
        ).filter(PlaybackSession.media_id == media_id).one()

        plays = (media.view_count or 0) + (media.listen_count or 0)
        interactions = (media.like_count or 0) + (media.bookmark_count or 0) + (media.share_count or 0)

        return {
            "media_id": media.id,
            "title": media.title,
            "content_type": media.content_type,
            "views": media.view_count,
            "listens": media.listen_count,
            "likes": media.like_count,
            "bookmarks": media.bookmark_count,
            "shares": media.share_count,
            "reports": media.report_count,
            "moderation_status": media.moderation_status,
            "playback_sessions": session_count or 0,
            "unique_listeners": unique_listeners or 0,
            "average_watch_time_seconds": round(avg_watch_time or 0, 2),
            "engagement_rate": round(interactions / plays * 100, 2) if plays else 0,
        }

    def get_user_engagement(self, db: Session, user_id: int, days: int = 30) -> Dict:
        start_date = datetime.utcnow() - timedelta(days=days)
        sessions = db.query(PlaybackSession).filter(
            PlaybackSession.user_id == user_id,
            PlaybackSession.started_at >= start_date,
        )
        watch_time = sessions.with_entities(func.sum(PlaybackSession.total_watch_time)).scalar() or 0

        def count(model, owner_column, created_column):
            return (
                db.query(func.count(model.id))
                .filter(owner_column == user_id, created_column >= start_date)
                .scalar() or 0
            )

        return {
            "time_range_days": days,
            "playback_sessions": sessions.count(),
            "media_played": sessions.with_entities(func.count(func.distinct(PlaybackSession.media_id))).scalar() or 0,
            "total_watch_time_hours": round(watch_time / 3600, 2),
            "bookmarks": count(Bookmark, Bookmark.user_id, Bookmark.created_at),
            "reports_filed": count(MediaReport, MediaReport.reporter_id, MediaReport.created_at),
            "poll_votes": count(PollVote, PollVote.user_id, PollVote.voted_at),
            "forum_posts": count(ForumPost, ForumPost.user_id, ForumPost.created_at),
            "prayer_posts": count(PrayerPost, PrayerPost.author_id, PrayerPost.created_at),
        }


analytics_service = AnalyticsService()
