"""Playback session lifecycle through the HTTP API"""

import pytest

from app.models.playback import PlaybackSession
from app.models.watch_progress import WatchProgress
from app.tests.helpers import auth_headers, make_media


def start(client, user, media_id, duration=100, **body):
    payload = {"duration": duration, **body}
    return client.post(
        f"/api/v1/media/{media_id}/playback/start",
        json=payload,
        headers=auth_headers(user),
    )


def end(client, user, session_id, **body):
    return client.post(
        "/api/v1/playback/end",
        json={"sessionId": session_id, **body},
        headers=auth_headers(user),
    )


def test_start_requires_authentication(client, media):
    res = client.post(f"/api/v1/media/{media.id}/playback/start", json={"duration": 100})
    assert res.status_code == 401
    assert res.json()["success"] is False


def test_start_creates_active_session(client, user, media):
    res = start(client, user, media.id)

    assert res.status_code == 200
    data = res.json()["data"]
    assert data["session"]["isActive"] is True
    assert data["session"]["mediaId"] == media.id
    assert data["previousSessionPaused"] is None
    assert data["resumeFrom"] == 0


def test_start_unknown_media_is_404(client, user):
    res = start(client, user, 9999)
    assert res.status_code == 404
    assert res.json()["message"] == "Media not found"


def test_start_invalid_media_id_is_400(client, user):
    res = start(client, user, "abc")
    assert res.status_code == 400


def test_new_session_supersedes_previous(client, db, user, media, other_user):
    second = make_media(db, other_user, title="Second Sermon")

    first_id = start(client, user, media.id, position=40).json()["data"]["session"]["id"]
    res = start(client, user, second.id)

    paused = res.json()["data"]["previousSessionPaused"]
    assert paused == {"sessionId": first_id, "mediaId": media.id, "position": 40}

    active = db.query(PlaybackSession).filter(
        PlaybackSession.user_id == user.id, PlaybackSession.is_active.is_(True)
    ).all()
    assert len(active) == 1
    assert active[0].media_id == second.id


def test_start_resumes_from_library_position(client, db, user, media):
    db.add(WatchProgress(user_id=user.id, media_id=media.id, position=25.0))
    db.commit()

    res = start(client, user, media.id)
    assert res.json()["data"]["resumeFrom"] == 25


def test_position_is_clamped_to_duration(client, user, media):
    res = start(client, user, media.id, duration=50, position=80)
    assert res.json()["data"]["resumeFrom"] == 50


def test_end_above_threshold_records_one_view(client, db, user, media):
    session_id = start(client, user, media.id).json()["data"]["session"]["id"]

    res = end(client, user, session_id, finalPosition=30)

    assert res.status_code == 200
    assert res.json()["data"]["viewRecorded"] is True
    db.refresh(media)
    assert media.view_count == 1
    assert media.listen_count == 0


def test_end_below_threshold_records_nothing(client, db, user, media):
    session_id = start(client, user, media.id).json()["data"]["session"]["id"]

    res = end(client, user, session_id, finalPosition=29)

    assert res.json()["data"]["viewRecorded"] is False
    db.refresh(media)
    assert media.view_count == 0


def test_audio_counts_a_listen(client, db, user, other_user):
    sermon = make_media(db, other_user, title="Audio Sermon", content_type="sermon")
    session_id = start(client, user, sermon.id).json()["data"]["session"]["id"]

    end(client, user, session_id, finalPosition=90, reason="completed")

    db.refresh(sermon)
    assert sermon.listen_count == 1
    assert sermon.view_count == 0


def test_ending_twice_is_rejected_and_counts_once(client, db, user, media):
    session_id = start(client, user, media.id).json()["data"]["session"]["id"]

    assert end(client, user, session_id, finalPosition=100).status_code == 200
    second = end(client, user, session_id, finalPosition=100)

    assert second.status_code == 400
    assert second.json()["message"] == "Playback session has already ended"
    db.refresh(media)
    assert media.view_count == 1


def test_other_users_session_is_forbidden(client, user, other_user, media):
    session_id = start(client, user, media.id).json()["data"]["session"]["id"]

    res = client.post(
        "/api/v1/playback/pause",
        json={"sessionId": session_id},
        headers=auth_headers(other_user),
    )
    assert res.status_code == 403


def test_progress_pause_and_resume(client, user, media):
    headers = auth_headers(user)
    session_id = start(client, user, media.id).json()["data"]["session"]["id"]

    res = client.post(
        "/api/v1/playback/progress",
        json={"sessionId": session_id, "position": 20, "duration": 100, "progressPercentage": 20},
        headers=headers,
    )
    assert res.json()["data"]["currentPosition"] == 20
    assert res.json()["data"]["totalWatchTime"] == 20

    paused = client.post("/api/v1/playback/pause", json={"sessionId": session_id}, headers=headers)
    assert paused.json()["data"]["isPaused"] is True

    resumed = client.post("/api/v1/playback/resume", json={"sessionId": session_id}, headers=headers)
    assert resumed.json()["data"]["isPaused"] is False


def test_active_session_lookup(client, user, media):
    headers = auth_headers(user)
    empty = client.get("/api/v1/playback/active", headers=headers)
    assert empty.json()["data"] == {"session": None}

    start(client, user, media.id)
    res = client.get("/api/v1/playback/active", headers=headers)
    assert res.json()["data"]["media"]["id"] == media.id


@pytest.mark.parametrize("path", ["/api/v1/playback/cleanup"])
def test_cleanup_is_admin_only(client, user, admin, path):
    assert client.post(path, headers=auth_headers(user)).status_code == 403
    res = client.post(path, headers=auth_headers(admin))
    assert res.status_code == 200
    assert res.json()["data"] == {"endedSessions": 0}
