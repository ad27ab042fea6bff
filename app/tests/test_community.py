"""Polls and forums"""

from datetime import datetime, timedelta, timezone

import pytest

from app.models.forum import Forum
from app.models.poll import Poll, PollVote
from app.tests.helpers import auth_headers, make_user


@pytest.fixture
def poll(db, user):
    poll = Poll(question="Which service time?", options=["8am", "10am", "6pm"], author_id=user.id)
    db.add(poll)
    db.commit()
    db.refresh(poll)
    return poll


@pytest.fixture
def forum(db, admin):
    forum = Forum(title="Prayer Requests", description="Share what is on your heart", created_by=admin.id)
    db.add(forum)
    db.commit()
    db.refresh(forum)
    return forum


# ==================== Polls ====================

def test_create_poll_accepts_title_alias(client, user):
    res = client.post(
        "/api/v1/polls",
        json={"title": "Favourite hymn?", "options": [" Amazing Grace ", "Be Thou My Vision"]},
        headers=auth_headers(user),
    )

    assert res.status_code == 201
    data = res.json()["data"]
    assert data["question"] == "Favourite hymn?"
    assert [o["text"] for o in data["options"]] == ["Amazing Grace", "Be Thou My Vision"]
    assert data["totalVotes"] == 0


@pytest.mark.parametrize(
    "body",
    [
        {"question": "Too few options?", "options": ["only one"]},
        {"question": "Blank option here?", "options": ["yes", "   "]},
        {"options": ["a", "b"]},
    ],
)
def test_create_poll_validation(client, user, body):
    res = client.post("/api/v1/polls", json=body, headers=auth_headers(user))
    assert res.status_code == 400


def test_create_poll_rejects_past_close_time(client, user):
    past = (datetime.utcnow() - timedelta(hours=1)).isoformat()
    res = client.post(
        "/api/v1/polls",
        json={"question": "Already closed?", "options": ["a", "b"], "closesAt": past},
        headers=auth_headers(user),
    )
    assert res.status_code == 400
    assert res.json()["message"] == "Poll close time must be in the future"


def test_close_time_offset_is_converted_to_utc(client, user):
    headers = auth_headers(user)
    # an hour ago in UTC, written in UTC+5
    past = (datetime.now(timezone.utc) - timedelta(hours=1)).astimezone(timezone(timedelta(hours=5)))
    res = client.post(
        "/api/v1/polls",
        json={"question": "Already closed?", "options": ["a", "b"], "closesAt": past.isoformat()},
        headers=headers,
    )
    assert res.status_code == 400

    # an hour ahead in UTC, written in UTC-5
    future = (datetime.now(timezone.utc) + timedelta(hours=1)).astimezone(timezone(timedelta(hours=-5)))
    res = client.post(
        "/api/v1/polls",
        json={"question": "Still open?", "options": ["a", "b"], "closesAt": future.isoformat()},
        headers=headers,
    )
    assert res.status_code == 201
    data = res.json()["data"]
    assert data["isActive"] is True
    stored = datetime.fromisoformat(data["closesAt"])
    assert abs(stored - future.astimezone(timezone.utc).replace(tzinfo=None)) < timedelta(seconds=1)


def test_voting_again_replaces_vote(client, db, poll, other_user):
    headers = auth_headers(other_user)

    client.post(f"/api/v1/polls/{poll.id}/vote", json={"optionIndexes": [0]}, headers=headers)
    res = client.post(f"/api/v1/polls/{poll.id}/vote", json={"optionIndexes": [2]}, headers=headers)

    data = res.json()["data"]
    assert data["totalVotes"] == 1
    assert data["userVoteIndexes"] == [2]
    assert [o["votesCount"] for o in data["options"]] == [0, 0, 1]
    assert [o["percentage"] for o in data["options"]] == [0, 0, 100]
    assert db.query(PollVote).count() == 1


def test_single_select_rejects_multiple_options(client, poll, other_user):
    res = client.post(
        f"/api/v1/polls/{poll.id}/vote", json={"optionIndexes": [0, 1]}, headers=auth_headers(other_user)
    )
    assert res.status_code == 400
    assert res.json()["message"] == "This poll allows only one option"


def test_vote_out_of_range(client, poll, other_user):
    res = client.post(
        f"/api/v1/polls/{poll.id}/vote", json={"optionIndexes": [3]}, headers=auth_headers(other_user)
    )
    assert res.status_code == 400
    assert res.json()["message"] == "Invalid option index"


def test_closed_poll_rejects_votes(client, db, poll, other_user):
    poll.closes_at = datetime.utcnow() - timedelta(minutes=1)
    db.commit()

    res = client.post(
        f"/api/v1/polls/{poll.id}/vote", json={"optionIndexes": [0]}, headers=auth_headers(other_user)
    )
    assert res.status_code == 400
    assert res.json()["message"] == "This poll is closed"


def test_percentages_are_rounded(client, db, poll):
    for i, index in enumerate([0, 0, 1]):
        voter = make_user(db, f"voter{i}@example.com")
        client.post(f"/api/v1/polls/{poll.id}/vote", json={"optionIndexes": [index]}, headers=auth_headers(voter))

    data = client.get(f"/api/v1/polls/{poll.id}").json()["data"]
    assert [o["percentage"] for o in data["options"]] == [67, 33, 0]
    assert data["userVoted"] is False


def test_only_author_or_admin_can_delete_poll(client, poll, other_user, admin):
    assert client.delete(f"/api/v1/polls/{poll.id}", headers=auth_headers(other_user)).status_code == 403
    assert client.delete(f"/api/v1/polls/{poll.id}", headers=auth_headers(admin)).status_code == 200
    assert client.get(f"/api/v1/polls/{poll.id}").status_code == 404


# ==================== Forums ====================

def test_create_forum_is_admin_only(client, user, admin):
    body = {"title": "Testimonies", "description": "Share what God has done"}

    assert client.post("/api/v1/forums", json=body, headers=auth_headers(user)).status_code == 403

    res = client.post("/api/v1/forums", json=body, headers=auth_headers(admin))
    assert res.status_code == 201
    assert res.json()["data"]["createdBy"] == admin.id


def test_forum_list_is_invalidated_on_create(client, admin, forum):
    first = client.get("/api/v1/forums").json()["data"]
    assert first["pagination"]["total"] == 1

    client.post(
        "/api/v1/forums",
        json={"title": "Bible Study", "description": "Weekly study notes"},
        headers=auth_headers(admin),
    )
    second = client.get("/api/v1/forums").json()["data"]
    assert second["pagination"]["total"] == 2


def test_posting_updates_forum_counters(client, db, forum, user, other_user):
    for author in (user, user, other_user):
        res = client.post(
            f"/api/v1/forums/{forum.id}/posts",
            json={"content": "Praying for you all"},
            headers=auth_headers(author),
        )
        assert res.status_code == 201

    db.refresh(forum)
    assert forum.posts_count == 3
    assert forum.participants_count == 2

    posts = client.get(f"/api/v1/forums/{forum.id}/posts").json()["data"]
    assert posts["pagination"]["total"] == 3


def test_post_rejects_invalid_link(client, forum, user):
    res = client.post(
        f"/api/v1/forums/{forum.id}/posts",
        json={"content": "Look", "embeddedLinks": [{"url": "ftp://x", "type": "video"}]},
        headers=auth_headers(user),
    )
    assert res.status_code == 400


def test_only_author_edits_post(client, forum, user, admin):
    post_id = client.post(
        f"/api/v1/forums/{forum.id}/posts", json={"content": "Original"}, headers=auth_headers(user)
    ).json()["data"]["id"]

    res = client.put(f"/api/v1/forums/posts/{post_id}", json={"content": "Edited"}, headers=auth_headers(admin))
    assert res.status_code == 403
    assert res.json()["message"] == "You can only edit your own posts"

    res = client.put(f"/api/v1/forums/posts/{post_id}", json={"content": "Edited"}, headers=auth_headers(user))
    assert res.json()["data"]["content"] == "Edited"


def test_admin_deletes_post_and_count_drops(client, db, forum, user, admin):
    post_id = client.post(
        f"/api/v1/forums/{forum.id}/posts", json={"content": "Remove me"}, headers=auth_headers(user)
    ).json()["data"]["id"]

    res = client.delete(f"/api/v1/forums/posts/{post_id}", headers=auth_headers(admin))

    assert res.status_code == 200
    db.refresh(forum)
    assert forum.posts_count == 0
