"""
Bible text lookups, keyword search and the AI-assisted advanced search.

Book names match case-insensitively on name or abbreviation. The advanced
search calls the external AI service over aiohttp and falls back to keyword
search when the service is not configured or fails.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional

import aiohttp
from sqlalchemy import func, or_
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from ..config import settings
from ..models.bible import BibleBook, BibleChapter, BibleVerse, Testament
from ..utils.errors import ExternalServiceError
from ..utils.query import LIKE_ESCAPE, escape_like

logger = logging.getLogger(__name__)

POPULAR_REFERENCES = [
    ("John", 3, 16),
    ("Jeremiah", 29, 11),
    ("Romans", 8, 28),
    ("Philippians", 4, 13),
    ("Psalms", 23, 1),
    ("Proverbs", 3, 5),
    ("Matthew", 28, 19),
    ("1 Corinthians", 13, 4),
    ("Galatians", 5, 22),
    ("Ephesians", 2, 8),
]

READING_PLANS = [
    {
        "id": "bible-in-year",
        "name": "Bible in a Year",
        "description": "Read through the entire Bible in 365 days",
        "duration": 365,
    },
    {
        "id": "new-testament-30",
        "name": "New Testament in 30 Days",
        "description": "Read through the New Testament in 30 days",
        "duration": 30,
    },
    {
        "id": "psalms-proverbs",
        "name": "Psalms and Proverbs",
        "description": "Read through Psalms and Proverbs monthly",
        "duration": 30,
    },
]

TRANSLATION_NAMES = {
    "WEB": "World English Bible",
    "KJV": "King James Version",
    "ASV": "American Standard Version",
    "NIV": "New International Version",
    "AMP": "Amplified Bible",
    "DARBY": "Darby Translation",
    "YLT": "Young's Literal Translation",
    "ESV": "English Standard Version",
    "NASB": "New American Standard Bible",
    "NLT": "New Living Translation",
}

_REFERENCE_PATTERNS = (
    re.compile(r"^(.+?)\s+(\d+):(\d+)-(\d+)$"),  # John 3:16-18
    re.compile(r"^(.+?)\s+(\d+):(\d+)$"),        # John 3:16
    re.compile(r"^(.+?)\s+(\d+)$"),              # John 3
)


@dataclass
class VerseRange:
    book_name: str
    chapter: int
    start_verse: int = 1
    end_verse: Optional[int] = None


def parse_reference(reference: str) -> Optional[VerseRange]:
    """'Book C:V-V', 'Book C:V' or 'Book C'; None when unparseable"""
    clean = re.sub(r"\s+", " ", (reference or "").strip())
    for pattern in _REFERENCE_PATTERNS:
        match = pattern.match(clean)
        if not match:
            continue
        groups = match.groups()
        start = int(groups[2]) if len(groups) > 2 else 1
        if len(groups) > 3:
            end = int(groups[3])
        elif len(groups) > 2:
            end = start  # single verse
        else:
            end = None  # whole chapter
        return VerseRange(
            book_name=groups[0].strip(),
            chapter=int(groups[1]),
            start_verse=start,
            end_verse=end,
        )
    return None


def _name_matches(column, name: str):
    return func.lower(column) == name.strip().lower()


# ==================== Books & chapters ====================

def get_books(db: Session, testament: Optional[str] = None) -> List[BibleBook]:
    query = db.query(BibleBook).filter(BibleBook.is_active.is_(True))
    if testament:
        query = query.filter(BibleBook.testament == testament)
    return query.order_by(BibleBook.order).all()


def get_book(db: Session, name: str) -> Optional[BibleBook]:
    return (
        db.query(BibleBook)
        .filter(or_(_name_matches(BibleBook.name, name), _name_matches(BibleBook.abbreviation, name)))
        .filter(BibleBook.is_active.is_(True))
        .first()
    )


def get_chapters(db: Session, book_name: str) -> List[BibleChapter]:
    book = get_book(db, book_name)
    if book is None:
        return []
    return (
        db.query(BibleChapter)
        .filter(BibleChapter.book_id == book.id, BibleChapter.is_active.is_(True))
        .order_by(BibleChapter.chapter_number)
        .all()
    )


def get_chapter(db: Session, book_name: str, chapter: int) -> Optional[BibleChapter]:
    book = get_book(db, book_name)
    if book is None:
        return None
    return (
        db.query(BibleChapter)
        .filter(
            BibleChapter.book_id == book.id,
            BibleChapter.chapter_number == chapter,
            BibleChapter.is_active.is_(True),
        )
        .first()
    )


# ==================== Verses ====================

def _verses(db: Session, book: BibleBook):
    return db.query(BibleVerse).filter(BibleVerse.book_id == book.id, BibleVerse.is_active.is_(True))


def get_verses(db: Session, book_name: str, chapter: int) -> List[BibleVerse]:
    book = get_book(db, book_name)
    if book is None:
        return []
    return (
        _verses(db, book)
        .filter(BibleVerse.chapter_number == chapter)
        .order_by(BibleVerse.verse_number)
        .all()
    )


def get_verse(db: Session, book_name: str, chapter: int, verse: int) -> Optional[BibleVerse]:
    book = get_book(db, book_name)
    if book is None:
        return None
    return (
        _verses(db, book)
        .filter(BibleVerse.chapter_number == chapter, BibleVerse.verse_number == verse)
        .first()
    )


def get_verse_range(db: Session, verse_range: VerseRange) -> List[BibleVerse]:
    book = get_book(db, verse_range.book_name)
    if book is None:
        return []
    query = _verses(db, book).filter(
        BibleVerse.chapter_number == verse_range.chapter,
        BibleVerse.verse_number >= verse_range.start_verse,
    )
    if verse_range.end_verse is not None:
        query = query.filter(BibleVerse.verse_number <= verse_range.end_verse)
    return query.order_by(BibleVerse.verse_number).all()


def get_random_verse(db: Session) -> Optional[BibleVerse]:
    return (
        db.query(BibleVerse)
        .filter(BibleVerse.is_active.is_(True))
        .order_by(func.random())
        .first()
    )


def get_verse_of_the_day(db: Session, today: Optional[date] = None) -> Optional[BibleVerse]:
    """Same verse all day: day-of-year modulo the verse count"""
    today = today or date.today()
    query = db.query(BibleVerse).filter(BibleVerse.is_active.is_(True))
    total = query.count()
    if not total:
        return None
    offset = today.timetuple().tm_yday % total
    return query.order_by(BibleVerse.id).offset(offset).first()


def get_popular_verses(db: Session, limit: int = 10) -> List[BibleVerse]:
    verses = []
    for book_name, chapter, verse_number in POPULAR_REFERENCES[:limit]:
        verse = get_verse(db, book_name, chapter, verse_number)
        if verse is not None:
            verses.append(verse)
    return verses


# ==================== Search ====================

def _resolve_book_prefix(db: Session, book: str) -> Optional[BibleBook]:
    """'pro' -> Proverbs; first match on name or abbreviation prefix"""
    prefix = f"{escape_like(book.strip().lower())}%"
    return (
        db.query(BibleBook)
        .filter(or_(
            func.lower(BibleBook.name).like(prefix, escape=LIKE_ESCAPE),
            func.lower(BibleBook.abbreviation).like(prefix, escape=LIKE_ESCAPE),
        ))
        .filter(BibleBook.is_active.is_(True))
        .order_by(BibleBook.order)
        .first()
    )


def search(
    db: Session,
    query: str,
    book: Optional[str] = None,
    testament: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> List[BibleVerse]:
    q = db.query(BibleVerse).filter(
        BibleVerse.is_active.is_(True),
        BibleVerse.text.ilike(f"%{escape_like(query.strip())}%", escape=LIKE_ESCAPE),
    )
    if book:
        match = _resolve_book_prefix(db, book)
        if match is not None:
            q = q.filter(BibleVerse.book_id == match.id)
        else:
            q = q.filter(_name_matches(BibleVerse.book_name, book))
    if testament:
        q = q.filter(BibleVerse.testament == testament)

    return (
        q.order_by(BibleVerse.book_id, BibleVerse.chapter_number, BibleVerse.verse_number)
        .offset(offset)
        .limit(limit)
        .all()
    )


def _search_terms(query: str) -> List[str]:
    return [word for word in query.lower().split() if len(word) > 2]


def keyword_search(db: Session, query: str, book: Optional[str] = None, limit: int = 20) -> Dict[str, Any]:
    """Term-based search with highlighted matches, used when AI search is unavailable"""
    terms = _search_terms(query) or [query.strip().lower()]

    q = db.query(BibleVerse).filter(
        BibleVerse.is_active.is_(True),
        or_(*[BibleVerse.text.ilike(f"%{escape_like(term)}%", escape=LIKE_ESCAPE) for term in terms]),
    )
    if book:
        q = q.filter(_name_matches(BibleVerse.book_name, book))
    verses = q.limit(limit).all()

    results = []
    for verse in verses:
        lowered = verse.text.lower()
        matched = [term for term in terms if term in lowered]
        highlighted = verse.text
        for term in terms:
            highlighted = re.sub(f"({re.escape(term)})", r"**\1**", highlighted, flags=re.IGNORECASE)
        results.append({
            "verse": verse,
            "relevance_score": round(len(matched) / len(terms), 2) if terms else 0.5,
            "matched_terms": matched,
            "highlighted_text": highlighted,
        })

    results.sort(key=lambda r: r["relevance_score"], reverse=True)
    return {
        "results": results,
        "query_interpretation": f'Searching for "{query}"',
        "search_terms": terms,
        "source": "keyword",
    }


async def _ai_search(query: str, limit: int, book: Optional[str], testament: Optional[str]) -> List[dict]:
    payload = {"query": query, "limit": limit}
    if book:
        payload["book"] = book
    if testament:
        payload["testament"] = testament

    headers = {"Content-Type": "application/json"}
    if settings.AI_SEARCH_API_KEY:
        headers["Authorization"] = f"Bearer {settings.AI_SEARCH_API_KEY}"

    timeout = aiohttp.ClientTimeout(total=settings.AI_SEARCH_TIMEOUT)
    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(settings.AI_SEARCH_URL, json=payload, headers=headers) as response:
                response.raise_for_status()
                body = await response.json(content_type=None)
    except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
        raise ExternalServiceError(f"AI search request failed: {e!r}") from e

    results = body.get("results") if isinstance(body, dict) else None
    if not isinstance(results, list):
        raise ExternalServiceError("AI search returned no results list")
    return results


async def advanced_search(
    db: Session,
    query: str,
    book: Optional[str] = None,
    testament: Optional[str] = None,
    limit: int = 20,
) -> Dict[str, Any]:
    if settings.is_ai_search_enabled:
        try:
            results = await _ai_search(query, limit, book, testament)
            logger.info(f"🤖 AI Bible search '{query}' returned {len(results)} results")
            return {"results": results[:limit], "source": "ai"}
        except ExternalServiceError as e:
            logger.warning(f"⚠️ AI Bible search failed, using keyword search: {e}")

    return await run_in_threadpool(keyword_search, db, query, book, limit)


# ==================== Reference data ====================

def get_stats(db: Session) -> Dict[str, int]:
    def count(model, testament=None):
        q = db.query(func.count(model.id)).filter(model.is_active.is_(True))
        if testament:
            q = q.filter(model.testament == testament)
        return q.scalar() or 0

    old, new = Testament.OLD.value, Testament.NEW.value
    return {
        "total_books": count(BibleBook),
        "total_chapters": count(BibleChapter),
        "total_verses": count(BibleVerse),
        "old_testament_books": count(BibleBook, old),
        "new_testament_books": count(BibleBook, new),
        "old_testament_chapters": count(BibleChapter, old),
        "new_testament_chapters": count(BibleChapter, new),
        "old_testament_verses": count(BibleVerse, old),
        "new_testament_verses": count(BibleVerse, new),
    }


def get_reading_plans() -> List[dict]:
    return [dict(plan, readings=[]) for plan in READING_PLANS]


def get_translations(db: Session) -> List[dict]:
    rows = (
        db.query(BibleVerse.translation, func.count(BibleVerse.id))
        .filter(BibleVerse.is_active.is_(True))
        .group_by(BibleVerse.translation)
        .order_by(func.count(BibleVerse.id).desc())
        .all()
    )
    if not rows:
        return [{"code": "WEB", "name": TRANSLATION_NAMES["WEB"], "count": 0}]
    return [
        {"code": code, "name": TRANSLATION_NAMES.get(code, code), "count": count}
        for code, count in rows
    ]
