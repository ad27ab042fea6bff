"""
Bible endpoints: books, chapters, verses, search and reference data.
Reference data that never changes at runtime is served through the cache.
"""
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool
import logging

from ...database import get_db
from ...models.bible import Testament
from ...schemas.bible import BibleBookOut, BibleChapterOut, BibleVerseOut
from ...services import bible as bible_service
from ...services.cache import CacheService, CacheTTL, get_cache, make_key
from ...utils import response
from ...utils.controller import handle_service_error

logger = logging.getLogger(__name__)

router = APIRouter()

TESTAMENTS = [t.value for t in Testament]


def _verse(verse) -> BibleVerseOut:
    return BibleVerseOut.model_validate(verse)


def _check_positive(value: int, label: str) -> None:
    if value < 1:
        response.bad_request(f"Invalid {label} number")


def _require_book(db: Session, book: str):
    found = bible_service.get_book(db, book)
    if found is None:
        response.not_found("Book not found")
    return found


# ==================== Books ====================

@router.get("/books")
async def get_all_books(
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    try:
        def produce():
            books = bible_service.get_books(db)
            return jsonable_encoder([BibleBookOut.model_validate(b) for b in books])

        books = await cache.get_or_set(
            make_key("bible:books"), lambda: run_in_threadpool(produce), CacheTTL.BIBLE
        )
        return response.success(books, "Books retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to get books")


@router.get("/books/testament/{testament}")
def get_books_by_testament(testament: str, db: Session = Depends(get_db)):
    try:
        testament = testament.lower()
        if testament not in TESTAMENTS:
            response.bad_request('Invalid testament. Must be "old" or "new"')
        books = bible_service.get_books(db, testament)
        return response.success([BibleBookOut.model_validate(b) for b in books], "Books retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to get books by testament", testament=testament)


@router.get("/books/{book}")
def get_book(book: str, db: Session = Depends(get_db)):
    try:
        found = _require_book(db, book)
        return response.success(BibleBookOut.model_validate(found), "Book retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to get book", book=book)


@router.get("/books/{book}/chapters")
def get_chapters(book: str, db: Session = Depends(get_db)):
    try:
        _require_book(db, book)
        chapters = bible_service.get_chapters(db, book)
        return response.success(
            [BibleChapterOut.model_validate(c) for c in chapters], "Chapters retrieved successfully"
        )
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to get chapters", book=book)


@router.get("/books/{book}/chapters/{chapter}")
def get_chapter(book: str, chapter: int, db: Session = Depends(get_db)):
    try:
        _check_positive(chapter, "chapter")
        found = bible_service.get_chapter(db, book, chapter)
        if found is None:
            response.not_found("Chapter not found")
        return response.success(BibleChapterOut.model_validate(found), "Chapter retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to get chapter", book=book, chapter=chapter)


@router.get("/books/{book}/chapters/{chapter}/verses")
def get_verses(book: str, chapter: int, db: Session = Depends(get_db)):
    try:
        _check_positive(chapter, "chapter")
        verses = bible_service.get_verses(db, book, chapter)
        if not verses:
            response.not_found("Chapter not found")
        return response.success([_verse(v) for v in verses], "Verses retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to get verses", book=book, chapter=chapter)


@router.get("/books/{book}/chapters/{chapter}/verses/{verse}")
def get_verse(book: str, chapter: int, verse: int, db: Session = Depends(get_db)):
    try:
        _check_positive(chapter, "chapter")
        _check_positive(verse, "verse")
        found = bible_service.get_verse(db, book, chapter, verse)
        if found is None:
            response.not_found("Verse not found")
        return response.success(_verse(found), "Verse retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to get verse", book=book, chapter=chapter, verse=verse)


# ==================== Verses ====================

@router.get("/verses/range/{reference}")
def get_verse_range(reference: str, db: Session = Depends(get_db)):
    try:
        parsed = bible_service.parse_reference(reference)
        if parsed is None:
            response.bad_request('Invalid reference format. Use "Book Chapter:Verse-Verse"')
        verses = bible_service.get_verse_range(db, parsed)
        if not verses:
            response.not_found("No verses found for this reference")
        return response.success(
            {"reference": reference, "verses": [_verse(v) for v in verses]},
            "Verses retrieved successfully",
        )
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to get verse range", reference=reference)


@router.get("/verses/random")
def get_random_verse(db: Session = Depends(get_db)):
    try:
        verse = bible_service.get_random_verse(db)
        if verse is None:
            response.not_found("No verses available")
        return response.success(_verse(verse), "Random verse retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to get random verse")


@router.get("/verses/daily")
def get_verse_of_the_day(db: Session = Depends(get_db)):
    try:
        verse = bible_service.get_verse_of_the_day(db)
        if verse is None:
            response.not_found("No verses available")
        return response.success(_verse(verse), "Verse of the day retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to get verse of the day")


@router.get("/verses/popular")
def get_popular_verses(limit: int = Query(10, ge=1, le=50), db: Session = Depends(get_db)):
    try:
        verses = bible_service.get_popular_verses(db, limit)
        return response.success([_verse(v) for v in verses], "Popular verses retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to get popular verses")


# ==================== Search ====================

@router.get("/search")
def search_bible(
    q: Optional[str] = None,
    book: Optional[str] = None,
    testament: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
    db: Session = Depends(get_db),
):
    try:
        if not q or not q.strip():
            response.bad_request("Search query is required")
        if testament and testament not in TESTAMENTS:
            response.bad_request('Invalid testament. Must be "old" or "new"')
        limit = max(1, min(limit, 100))
        offset = max(0, offset)

        verses = bible_service.search(db, q, book, testament, limit, offset)
        return response.success(
            {"query": q, "results": [_verse(v) for v in verses], "count": len(verses)},
            "Search completed successfully",
        )
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to search Bible", q=q)


@router.get("/search/advanced")
async def advanced_search(
    q: Optional[str] = None,
    book: Optional[str] = None,
    testament: Optional[str] = None,
    limit: int = 20,
    db: Session = Depends(get_db),
):
    try:
        if not q or not q.strip():
            response.bad_request("Search query is required")
        limit = max(1, min(limit, 100))

        result = await bible_service.advanced_search(db, q.strip(), book, testament, limit)
        if result["source"] == "keyword":
            result["results"] = [
                dict(item, verse=_verse(item["verse"])) for item in result["results"]
            ]
        return response.success(response.camelize(jsonable_encoder(result)), "Search completed successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to search Bible", q=q)


# ==================== Reference data ====================

@router.get("/stats")
async def get_bible_stats(
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    try:
        stats = await cache.get_or_set(
            make_key("bible:stats"),
            lambda: run_in_threadpool(lambda: response.camelize(bible_service.get_stats(db))),
            CacheTTL.BIBLE,
        )
        return response.success(stats, "Bible statistics retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to get Bible stats")


@router.get("/reading-plans")
def get_reading_plans():
    return response.success(bible_service.get_reading_plans(), "Reading plans retrieved successfully")


@router.get("/translations")
async def get_translations(
    db: Session = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    try:
        translations = await cache.get_or_set(
            make_key("bible:translations"),
            lambda: run_in_threadpool(bible_service.get_translations, db),
            CacheTTL.BIBLE,
        )
        return response.success(translations, "Translations retrieved successfully")
    except HTTPException:
        raise
    except Exception as e:
        raise handle_service_error(db, e, "Failed to get translations")
