"""Media CRUD, devotionals and analytics"""

from datetime import datetime, timedelta

from app.models.devotional import Devotional
from app.tests.helpers import auth_headers, make_media


# ==================== Media ====================

def test_create_media_sets_uploader(client, user):
    res = client.post(
        "/api/v1/media",
        json={"title": "  Morning Worship ", "contentType": "music", "duration": 240},
        headers=auth_headers(user),
    )

    assert res.status_code == 201
    data = res.json()["data"]
    assert data["title"] == "Morning Worship"
    assert data["uploadedBy"] == user.id


def test_list_media_excludes_hidden_and_deleted(client, db, other_user, media):
    make_media(db, other_user, title="Hidden", is_hidden=True)
    make_media(db, other_user, title="Gone", is_deleted=True)

    body = client.get("/api/v1/media").json()
    assert [m["title"] for m in body["data"]] == [media.title]
    assert body["pagination"]["total"] == 1


def test_only_uploader_updates_media(client, user, other_user, media):
    res = client.put(f"/api/v1/media/{media.id}", json={"title": "Mine now"}, headers=auth_headers(user))
    assert res.status_code == 403

    res = client.put(f"/api/v1/media/{media.id}", json={"title": "Renamed"}, headers=auth_headers(other_user))
    assert res.json()["data"]["title"] == "Renamed"


def test_delete_media_is_soft(client, db, other_user, media):
    res = client.delete(f"/api/v1/media/{media.id}", headers=auth_headers(other_user))

    assert res.status_code == 200
    db.refresh(media)
    assert media.is_deleted is True
    assert client.get(f"/api/v1/media/{media.id}").status_code == 404


# ==================== Devotionals ====================

def test_regular_user_cannot_publish_devotional(client, user):
    res = client.post(
        "/api/v1/devotionals", json={"title": "Daily Bread", "content": "..."}, headers=auth_headers(user)
    )
    assert res.status_code == 403


def test_creator_publishes_devotional(client, other_user):
    res = client.post(
        "/api/v1/devotionals",
        json={"title": "Daily Bread", "content": "Give us this day", "scriptureReference": "Matthew 6:11"},
        headers=auth_headers(other_user),
    )

    assert res.status_code == 201
    assert res.json()["data"]["authorId"] == other_user.id
    assert res.json()["data"]["publishedAt"] is not None

    listing = client.get("/api/v1/devotionals").json()["data"]
    assert listing["pagination"]["total"] == 1


def test_scheduled_devotionals_are_not_listed(client, db, admin):
    db.add(Devotional(title="Tomorrow", content="Soon", author_id=admin.id,
                      published_at=datetime.utcnow() + timedelta(days=1)))
    db.commit()

    assert client.get("/api/v1/devotionals").json()["data"]["pagination"]["total"] == 0


# ==================== Analytics ====================

def test_dashboard_scope_depends_on_role(client, other_user, admin, media):
    creator = client.get("/api/v1/analytics/dashboard", headers=auth_headers(other_user)).json()["data"]
    assert creator["scope"] == "creator"
    assert creator["content"]["totalMedia"] == 1
    assert "users" not in creator

    platform = client.get("/api/v1/analytics/dashboard", headers=auth_headers(admin)).json()["data"]
    assert platform["scope"] == "platform"
    assert platform["users"]["totalUsers"] == 2


def test_dashboard_time_range_is_validated(client, user):
    res = client.get("/api/v1/analytics/dashboard", params={"timeRange": 0}, headers=auth_headers(user))
    assert res.status_code == 400


def test_media_analytics_owner_only(client, user, other_user, media):
    assert client.get(f"/api/v1/analytics/media/{media.id}", headers=auth_headers(user)).status_code == 403

    res = client.get(f"/api/v1/analytics/media/{media.id}", headers=auth_headers(other_user))
    assert res.status_code == 200
    assert res.json()["data"]["mediaId"] == media.id
    assert res.json()["data"]["engagementRate"] == 0


def test_media_analytics_still_served_for_hidden_media(client, db, other_user, media):
    media.is_hidden = True
    db.commit()

    res = client.get(f"/api/v1/analytics/media/{media.id}", headers=auth_headers(other_user))
    assert res.status_code == 200
    assert res.json()["data"]["mediaId"] == media.id


def test_user_engagement_counts_activity(client, user, media):
    headers = auth_headers(user)
    client.post(f"/api/v1/bookmarks/{media.id}", headers=headers)

    data = client.get("/api/v1/analytics/user-engagement", headers=headers).json()["data"]
    assert data["bookmarks"] == 1
    assert data["playbackSessions"] == 0
