from app.models.bookmark import Bookmark
from app.tests.helpers import auth_headers


def test_toggle_twice_restores_state(client, db, user, media):
    headers = auth_headers(user)

    first = client.post(f"/api/v1/bookmarks/{media.id}/toggle", headers=headers)
    assert first.json()["data"] == {"bookmarked": True, "bookmarkCount": 1}

    second = client.post(f"/api/v1/bookmarks/{media.id}/toggle", headers=headers)
    assert second.json()["data"] == {"bookmarked": False, "bookmarkCount": 0}
    assert db.query(Bookmark).count() == 0


def test_add_is_idempotent(client, user, media):
    headers = auth_headers(user)

    client.post(f"/api/v1/bookmarks/{media.id}", headers=headers)
    res = client.post(f"/api/v1/bookmarks/{media.id}", headers=headers)

    assert res.status_code == 200
    assert res.json()["data"] == {"bookmarked": True, "bookmarkCount": 1}


def test_remove_without_bookmark_keeps_count_at_zero(client, db, user, media):
    res = client.delete(f"/api/v1/bookmarks/{media.id}", headers=auth_headers(user))

    assert res.json()["data"] == {"bookmarked": False, "bookmarkCount": 0}
    db.refresh(media)
    assert media.bookmark_count == 0


def test_owner_is_notified_of_bookmark(client, dispatcher, user, other_user, media):
    client.post(f"/api/v1/bookmarks/{media.id}", headers=auth_headers(user))

    assert dispatcher.channels() == ["in_app", "realtime"]
    assert dispatcher.events[0].name == "media.bookmarked"
    assert dispatcher.events[0].recipients == [other_user.id]


def test_toggle_broadcasts_count_to_media_room(client, dispatcher, user, media):
    headers = auth_headers(user)
    client.post(f"/api/v1/bookmarks/{media.id}/toggle", headers=headers)
    client.post(f"/api/v1/bookmarks/{media.id}/toggle", headers=headers)

    live = [e for e in dispatcher.events if e.channel == "realtime"]
    assert [e.name for e in live] == ["content-bookmark-update"] * 2
    assert live[0].recipients == [f"content:media:{media.id}"]
    assert live[0].payload == {
        "mediaId": media.id, "bookmarkCount": 1, "userBookmarked": True, "userId": user.id,
    }
    assert live[1].payload["bookmarkCount"] == 0
    assert live[1].payload["userBookmarked"] is False


def test_repeated_add_does_not_broadcast(client, dispatcher, user, media):
    headers = auth_headers(user)
    client.post(f"/api/v1/bookmarks/{media.id}", headers=headers)
    client.post(f"/api/v1/bookmarks/{media.id}", headers=headers)
    client.delete(f"/api/v1/bookmarks/{media.id}", headers=headers)
    client.delete(f"/api/v1/bookmarks/{media.id}", headers=headers)

    assert dispatcher.channels().count("realtime") == 2


def test_status_and_listing(client, user, media):
    headers = auth_headers(user)
    client.post(f"/api/v1/bookmarks/{media.id}", headers=headers)

    status = client.get(f"/api/v1/bookmarks/{media.id}/status", headers=headers)
    assert status.json()["data"] == {"bookmarked": True, "bookmarkCount": 1}

    listing = client.get("/api/v1/bookmarks", headers=headers).json()
    assert listing["pagination"]["total"] == 1
    assert listing["data"][0]["media"]["id"] == media.id


def test_bookmark_missing_media_is_404(client, user):
    res = client.post("/api/v1/bookmarks/4242", headers=auth_headers(user))
    assert res.status_code == 404


def test_bookmark_hidden_media_is_404(client, db, user, media):
    media.is_hidden = True
    db.commit()

    assert client.post(f"/api/v1/bookmarks/{media.id}", headers=auth_headers(user)).status_code == 404
    assert db.query(Bookmark).count() == 0
