import pytest

from app.models.bookmark import Bookmark
from app.models.song import CopyrightFreeSong
from app.tests.helpers import auth_headers, make_media


@pytest.fixture
def catalog(db, other_user, media):
    song = CopyrightFreeSong(title="Amazing Grace", singer="Choir", file_url="https://cdn.example.com/a.mp3",
                             view_count=50)
    db.add(song)
    make_media(db, other_user, title="Hidden Grace", is_hidden=True)
    make_media(db, other_user, title="Deleted Grace", is_deleted=True)
    make_media(db, other_user, title="Worship Night", description="Songs of praise")
    db.commit()
    return {"media": media, "song": song}


def test_query_is_required(client):
    res = client.get("/api/v1/search")
    assert res.status_code == 400
    assert res.json()["message"] == "Search query is required"


def test_limit_over_maximum_is_400(client):
    res = client.get("/api/v1/search", params={"q": "grace", "limit": 101})
    assert res.status_code == 400
    assert res.json()["message"] == "Invalid limit. Maximum is 100"


@pytest.mark.parametrize("params", [{"sort": "random"}, {"contentType": "podcasts"}])
def test_invalid_options_are_400(client, params):
    assert client.get("/api/v1/search", params={"q": "grace", **params}).status_code == 400


def test_search_merges_media_and_songs(client, catalog):
    data = client.get("/api/v1/search", params={"q": "grace"}).json()["data"]

    assert data["total"] == 2
    assert data["breakdown"] == {"media": 1, "copyrightFree": 1}
    assert [r["type"] for r in data["results"]] == ["copyright-free", "media"]
    assert data["hasMore"] is False


def test_content_type_filter(client, catalog):
    data = client.get("/api/v1/search", params={"q": "grace", "contentType": "media"}).json()["data"]
    assert data["total"] == 1
    assert data["results"][0]["title"] == "Grace Sermon"


def test_library_flag_for_signed_in_user(client, db, user, catalog):
    db.add(Bookmark(user_id=user.id, media_id=catalog["media"].id))
    db.commit()

    data = client.get(
        "/api/v1/search", params={"q": "grace", "contentType": "media"}, headers=auth_headers(user)
    ).json()["data"]

    assert data["results"][0]["isInLibrary"] is True


def test_results_are_cached_per_user(client, cache, user, catalog):
    client.get("/api/v1/search", params={"q": "grace"})
    client.get("/api/v1/search", params={"q": "Grace "})
    client.get("/api/v1/search", params={"q": "grace"}, headers=auth_headers(user))

    assert cache.hits == 1
    assert cache.misses == 2


def test_suggestions_match_title_prefix(client, catalog):
    data = client.get("/api/v1/search/suggestions", params={"q": "gra"}).json()["data"]
    assert data == ["Grace Sermon"]

    assert client.get("/api/v1/search/suggestions", params={"q": "g"}).json()["data"] == []


def test_cached_results_match_fresh_ones(client, cache, catalog):
    fresh = client.get("/api/v1/search", params={"q": "grace"}).json()["data"]
    cached = client.get("/api/v1/search", params={"q": "grace"}).json()["data"]

    assert cache.hits == 1
    assert cached["results"] == fresh["results"]
    assert "T" in cached["results"][0]["createdAt"]


def test_wildcards_in_query_match_literally(client, db, other_user, catalog):
    make_media(db, other_user, title="100% Faith", description="All in")

    data = client.get("/api/v1/search", params={"q": "_race"}).json()["data"]
    assert data["total"] == 0

    data = client.get("/api/v1/search", params={"q": "%", "contentType": "media"}).json()["data"]
    assert [r["title"] for r in data["results"]] == ["100% Faith"]

    assert client.get("/api/v1/search/suggestions", params={"q": "__"}).json()["data"] == []
