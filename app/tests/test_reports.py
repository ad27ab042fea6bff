"""Media reporting and the admin moderation queue"""

from app.models.media import ModerationStatus
from app.models.report import MediaReport
from app.tests.helpers import auth_headers, make_user


def report(client, reporter, media_id, reason="spam", **body):
    return client.post(
        f"/api/v1/media/{media_id}/report",
        json={"reason": reason, **body},
        headers=auth_headers(reporter),
    )


def test_report_is_created_pending(client, db, user, media):
    res = report(client, user, media.id, description="  Not gospel  ")

    assert res.status_code == 201
    body = res.json()
    assert body["message"] == "Media reported successfully"
    assert body["report"]["status"] == "pending"
    assert body["report"]["mediaId"] == media.id

    stored = db.query(MediaReport).one()
    assert stored.description == "Not gospel"
    db.refresh(media)
    assert media.report_count == 1


def test_duplicate_report_is_rejected(client, db, user, media):
    assert report(client, user, media.id).status_code == 201

    res = report(client, user, media.id, reason="violence")

    assert res.status_code == 400
    assert res.json()["message"] == "You have already reported this media"
    db.refresh(media)
    assert media.report_count == 1


def test_cannot_report_own_content(client, other_user, media):
    res = report(client, other_user, media.id)
    assert res.status_code == 400
    assert res.json()["message"] == "You cannot report your own content"


def test_invalid_reason_fails_validation(client, user, media):
    res = report(client, user, media.id, reason="boring")
    assert res.status_code == 400
    assert res.json()["message"] == "Validation failed"


def test_threshold_moves_media_under_review_once(client, db, media):
    reporters = [make_user(db, f"reporter{i}@example.com") for i in range(4)]

    for reporter in reporters[:2]:
        report(client, reporter, media.id)
    db.refresh(media)
    assert media.moderation_status == ModerationStatus.APPROVED.value

    report(client, reporters[2], media.id)
    db.refresh(media)
    assert media.moderation_status == ModerationStatus.UNDER_REVIEW.value

    report(client, reporters[3], media.id)
    db.refresh(media)
    assert media.report_count == 4
    assert media.moderation_status == ModerationStatus.UNDER_REVIEW.value


def test_admins_are_alerted(client, dispatcher, user, admin, media):
    report(client, user, media.id)

    names = {(e.channel, e.name) for e in dispatcher.events}
    assert ("email", "media.reported") in names
    assert ("in_app", "media.reported") in names
    in_app = next(e for e in dispatcher.events if e.channel == "in_app")
    assert in_app.recipients == [admin.id]


def test_pending_queue_is_admin_only(client, user, admin, media):
    report(client, user, media.id)

    assert client.get("/api/v1/media-reports/pending", headers=auth_headers(user)).status_code == 403

    res = client.get("/api/v1/media-reports/pending", headers=auth_headers(admin))
    assert res.status_code == 200
    assert res.json()["pagination"]["total"] == 1


def test_resolving_report_hides_media(client, db, dispatcher, user, admin, media):
    report_id = report(client, user, media.id).json()["report"]["id"]

    res = client.post(
        f"/api/v1/media-reports/{report_id}/review",
        json={"status": "resolved", "adminNotes": "Removed"},
        headers=auth_headers(admin),
    )

    assert res.status_code == 200
    assert res.json()["data"]["status"] == "resolved"
    assert res.json()["data"]["reviewedBy"] == admin.id
    db.refresh(media)
    assert media.is_hidden is True
    assert media.moderation_status == ModerationStatus.REJECTED.value
    assert any(e.name == "report.reviewed" and e.recipients == [user.id] for e in dispatcher.events)

    hidden = client.get(f"/api/v1/media/{media.id}", headers=auth_headers(user))
    assert hidden.status_code == 404


def test_dismissing_report_keeps_media_visible(client, db, user, admin, media):
    report_id = report(client, user, media.id).json()["report"]["id"]

    client.post(
        f"/api/v1/media-reports/{report_id}/review",
        json={"status": "dismissed"},
        headers=auth_headers(admin),
    )

    db.refresh(media)
    assert media.is_hidden is False
