from datetime import datetime, timedelta

import pytest

from app.models.notification import Notification
from app.tests.helpers import auth_headers


@pytest.fixture
def inbox(db, user, other_user):
    rows = [
        Notification(user_id=user.id, title="Liked", message="m", type="like"),
        Notification(user_id=user.id, title="Bookmarked", message="m", type="bookmark"),
        Notification(user_id=user.id, title="Old", message="m", type="system", is_read=True),
        Notification(user_id=user.id, title="Expired", message="m", type="system",
                     expires_at=datetime.utcnow() - timedelta(days=1)),
        Notification(user_id=other_user.id, title="Not yours", message="m", type="like"),
    ]
    db.add_all(rows)
    db.commit()
    return rows


def test_list_skips_expired_and_others(client, user, inbox):
    body = client.get("/api/v1/notifications", headers=auth_headers(user)).json()
    assert body["pagination"]["total"] == 3


def test_list_filters(client, user, inbox):
    headers = auth_headers(user)
    by_type = client.get("/api/v1/notifications", params={"type": "like"}, headers=headers).json()
    assert [n["title"] for n in by_type["data"]] == ["Liked"]

    unread = client.get("/api/v1/notifications", params={"unreadOnly": "true"}, headers=headers).json()
    assert unread["pagination"]["total"] == 2


def test_unread_count_and_read_all(client, user, inbox):
    headers = auth_headers(user)
    assert client.get("/api/v1/notifications/unread-count", headers=headers).json()["data"] == {"unreadCount": 2}

    res = client.patch("/api/v1/notifications/read-all", headers=headers)
    # The expired row is unread too and gets marked along with the rest
    assert res.json()["message"] == "Marked 3 notifications as read"
    assert client.get("/api/v1/notifications/unread-count", headers=headers).json()["data"] == {"unreadCount": 0}


def test_mark_read_of_other_users_notification_is_404(client, user, inbox):
    res = client.patch(f"/api/v1/notifications/{inbox[4].id}/read", headers=auth_headers(user))
    assert res.status_code == 404


def test_mark_read(client, user, inbox):
    res = client.patch(f"/api/v1/notifications/{inbox[0].id}/read", headers=auth_headers(user))
    assert res.json()["data"]["isRead"] is True
    assert res.json()["data"]["readAt"] is not None


def test_preferences_roundtrip(client, user):
    headers = auth_headers(user)
    defaults = client.get("/api/v1/notifications/preferences", headers=headers).json()["data"]
    assert defaults["bookmarkNotifications"] is True

    updated = client.put(
        "/api/v1/notifications/preferences", json={"bookmarkNotifications": False}, headers=headers
    ).json()["data"]
    assert updated["bookmarkNotifications"] is False
    assert updated["inAppEnabled"] is True
