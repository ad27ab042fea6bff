import asyncio
from datetime import date

import aiohttp
import pytest

from app.models.bible import BibleBook, BibleChapter, BibleVerse
from app.services import bible as bible_service
from app.config import settings
from app.services.bible import VerseRange, parse_reference
from app.tests.helpers import FakeHTTPSession


@pytest.fixture
def john(db):
    """John 3:16-18 and Genesis 1:1"""
    genesis = BibleBook(name="Genesis", abbreviation="Gen", testament="old", order=1, chapter_count=50)
    book = BibleBook(name="John", abbreviation="Jhn", testament="new", order=43, chapter_count=21)
    db.add_all([genesis, book])
    db.flush()
    db.add(BibleChapter(book_id=book.id, book_name="John", chapter_number=3, verse_count=36, testament="new"))
    db.add(BibleVerse(book_id=genesis.id, book_name="Genesis", chapter_number=1, verse_number=1,
                      text="In the beginning God created the heavens and the earth.", testament="old"))
    texts = {
        16: "For God so loved the world, that he gave his one and only Son.",
        17: "For God didn't send his Son into the world to judge the world.",
        18: "He who believes in him is not judged.",
    }
    for number, text in texts.items():
        db.add(BibleVerse(book_id=book.id, book_name="John", chapter_number=3,
                          verse_number=number, text=text, testament="new"))
    db.commit()
    return book


@pytest.mark.parametrize(
    "reference, expected",
    [
        ("John 3:16-18", VerseRange("John", 3, 16, 18)),
        ("John 3:16", VerseRange("John", 3, 16, 16)),
        ("Psalms 23", VerseRange("Psalms", 23, 1, None)),
        ("1 Corinthians  13:4", VerseRange("1 Corinthians", 13, 4, 4)),
        ("  Song of Solomon 2:1 ", VerseRange("Song of Solomon", 2, 1, 1)),
    ],
)
def test_parse_reference(reference, expected):
    assert parse_reference(reference) == expected


@pytest.mark.parametrize("reference", ["", "John", "John three", "3:16"])
def test_parse_reference_rejects_garbage(reference):
    assert parse_reference(reference) is None


def test_book_lookup_by_abbreviation(client, john):
    res = client.get("/api/v1/bible/books/jhn")
    assert res.status_code == 200
    assert res.json()["data"]["name"] == "John"


def test_unknown_book_is_404(client, john):
    res = client.get("/api/v1/bible/books/Hezekiah")
    assert res.status_code == 404
    assert res.json()["message"] == "Book not found"


def test_invalid_testament_is_400(client):
    assert client.get("/api/v1/bible/books/testament/middle").status_code == 400


def test_books_by_testament(client, john):
    res = client.get("/api/v1/bible/books/testament/OLD")
    assert [b["name"] for b in res.json()["data"]] == ["Genesis"]


def test_chapter_zero_is_400(client, john):
    res = client.get("/api/v1/bible/books/John/chapters/0")
    assert res.status_code == 400
    assert res.json()["message"] == "Invalid chapter number"


def test_verse_lookup(client, john):
    res = client.get("/api/v1/bible/books/John/chapters/3/verses/16")
    data = res.json()["data"]
    assert data["reference"] == "John 3:16"
    assert data["text"].startswith("For God so loved")


def test_verse_range(client, john):
    res = client.get("/api/v1/bible/verses/range/John 3:16-17")
    verses = res.json()["data"]["verses"]
    assert [v["verseNumber"] for v in verses] == [16, 17]


def test_bad_range_reference_is_400(client, john):
    assert client.get("/api/v1/bible/verses/range/nonsense").status_code == 400


def test_search_requires_query(client):
    res = client.get("/api/v1/bible/search")
    assert res.status_code == 400
    assert res.json()["message"] == "Search query is required"


def test_search_filters_by_book_prefix(client, john):
    res = client.get("/api/v1/bible/search", params={"q": "God", "book": "jo"})
    data = res.json()["data"]
    assert data["count"] == 2
    assert {v["bookName"] for v in data["results"]} == {"John"}


def test_advanced_search_falls_back_to_keywords(client, john):
    res = client.get("/api/v1/bible/search/advanced", params={"q": "loved world"})

    data = res.json()["data"]
    assert data["source"] == "keyword"
    first = data["results"][0]
    assert first["relevanceScore"] == 1.0
    assert "**loved**" in first["highlightedText"]


def test_verse_of_the_day_is_stable(db, john):
    day = date(2026, 3, 1)
    first = bible_service.get_verse_of_the_day(db, day)
    second = bible_service.get_verse_of_the_day(db, day)
    assert first.id == second.id


def test_stats_are_camelized(client, john):
    stats = client.get("/api/v1/bible/stats").json()["data"]
    assert stats["totalBooks"] == 2
    assert stats["newTestamentVerses"] == 3
    assert stats["oldTestamentVerses"] == 1


def test_translations_default(client, john):
    data = client.get("/api/v1/bible/translations").json()["data"]
    assert data == [{"code": "WEB", "name": "World English Bible", "count": 4}]


@pytest.mark.parametrize(
    "session",
    [
        FakeHTTPSession(error=asyncio.TimeoutError()),
        FakeHTTPSession(error=aiohttp.ClientConnectionError("refused")),
        FakeHTTPSession(body=[{"reference": "John 3:16"}]),
        FakeHTTPSession(body={"results": "none"}),
    ],
)
def test_advanced_search_falls_back_when_ai_service_fails(client, john, monkeypatch, session):
    monkeypatch.setattr(settings, "AI_SEARCH_URL", "http://ai.test/search")
    monkeypatch.setattr(aiohttp, "ClientSession", session)

    res = client.get("/api/v1/bible/search/advanced", params={"q": "loved world"})

    assert res.status_code == 200
    assert res.json()["data"]["source"] == "keyword"
    assert session.requests == ["http://ai.test/search"]


def test_advanced_search_uses_ai_results(client, john, monkeypatch):
    monkeypatch.setattr(settings, "AI_SEARCH_URL", "http://ai.test/search")
    monkeypatch.setattr(aiohttp, "ClientSession", FakeHTTPSession(body={"results": [{"reference": "John 3:16"}]}))

    data = client.get("/api/v1/bible/search/advanced", params={"q": "love"}).json()["data"]
    assert data == {"results": [{"reference": "John 3:16"}], "source": "ai"}
