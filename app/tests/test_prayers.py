from app.models.prayer import PrayerPost
from app.services.prayer_search import score_prayer
from app.tests.helpers import auth_headers


def test_score_prayer_text_match():
    prayer = PrayerPost(content="Lord give me strength today")
    assert score_prayer(prayer, "strength") == 0.85


def test_score_caps_at_one():
    prayer = PrayerPost(
        content="unused",
        prayer_text="I need strength",
        verse_text="The Lord is my strength",
        verse_reference="Psalm 28:7",
    )
    assert score_prayer(prayer, "strength") == 1.0


def test_score_reference_only():
    prayer = PrayerPost(content="Pray for my family", verse_reference="John 3:16")
    # 7 for the reference, no word hits in the text
    assert score_prayer(prayer, "john 3:16") == 0.35


def test_search_requires_query(client):
    res = client.get("/api/v1/prayers/search", params={"q": "  "})
    assert res.status_code == 400
    assert res.json()["message"] == "Search query is required"


def test_search_orders_by_relevance(client, db, user):
    db.add_all([
        PrayerPost(author_id=user.id, content="Pray for peace", verse_reference="Peace Psalm"),
        PrayerPost(author_id=user.id, content="Peace in my home", prayer_text="Peace in my home"),
        PrayerPost(author_id=user.id, content="Unrelated request"),
    ])
    db.commit()

    res = client.get("/api/v1/prayers/search", params={"q": "peace"})

    data = res.json()["data"]
    assert data["pagination"]["total"] == 2
    scores = [p["relevanceScore"] for p in data["prayers"]]
    assert scores == sorted(scores, reverse=True)
    assert data["prayers"][0]["verseReference"] == "Peace Psalm"
    assert scores == [1.0, 0.85]


def test_create_defaults_prayer_text(client, user):
    res = client.post(
        "/api/v1/prayers",
        json={"content": "Healing for my mother"},
        headers=auth_headers(user),
    )

    assert res.status_code == 201
    assert res.json()["data"]["prayerText"] == "Healing for my mother"
    assert res.json()["data"]["authorId"] == user.id


def test_only_author_can_edit(client, user, other_user):
    created = client.post(
        "/api/v1/prayers", json={"content": "Guidance"}, headers=auth_headers(user)
    ).json()["data"]

    res = client.put(
        f"/api/v1/prayers/{created['id']}",
        json={"content": "Changed"},
        headers=auth_headers(other_user),
    )
    assert res.status_code == 403
    assert res.json()["message"] == "You can only modify your own prayer"
