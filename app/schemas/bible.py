from typing import Optional

from .base import CamelModel


class BibleBookOut(CamelModel):
    id: int
    name: str
    abbreviation: str
    testament: str
    order: int
    chapter_count: int


class BibleChapterOut(CamelModel):
    id: int
    book_name: str
    chapter_number: int
    verse_count: int
    testament: str


class BibleVerseOut(CamelModel):
    id: int
    book_name: str
    chapter_number: int
    verse_number: int
    text: str
    translation: str
    testament: str
    reference: Optional[str] = None
