from sqlalchemy import Column, Integer, String, Boolean, Text, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from enum import Enum
from ..database import Base


class Testament(str, Enum):
    OLD = "old"
    NEW = "new"


class BibleBook(Base):
    __tablename__ = "bible_books"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False, index=True)
    abbreviation = Column(String(10), nullable=False, index=True)
    testament = Column(String(3), nullable=False, index=True)
    order = Column(Integer, nullable=False)
    chapter_count = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)

    chapters = relationship("BibleChapter", back_populates="book", order_by="BibleChapter.chapter_number")


class BibleChapter(Base):
    __tablename__ = "bible_chapters"

    id = Column(Integer, primary_key=True, index=True)
    book_id = Column(Integer, ForeignKey("bible_books.id", ondelete="CASCADE"), nullable=False, index=True)
    book_name = Column(String(50), nullable=False)
    chapter_number = Column(Integer, nullable=False)
    verse_count = Column(Integer, default=0)
    testament = Column(String(3), nullable=False)
    is_active = Column(Boolean, default=True)

    book = relationship("BibleBook", back_populates="chapters")

    __table_args__ = (
        UniqueConstraint("book_id", "chapter_number", name="uq_bible_chapter"),
    )


class BibleVerse(Base):
    __tablename__ = "bible_verses"

    id = Column(Integer, primary_key=True, index=True)
    book_id = Column(Integer, ForeignKey("bible_books.id", ondelete="CASCADE"), nullable=False, index=True)
    book_name = Column(String(50), nullable=False)
    chapter_number = Column(Integer, nullable=False)
    verse_number = Column(Integer, nullable=False)
    text = Column(Text, nullable=False)
    translation = Column(String(10), nullable=False, default="WEB")
    testament = Column(String(3), nullable=False)
    is_active = Column(Boolean, default=True)

    book = relationship("BibleBook")

    __table_args__ = (
        Index("ix_bible_verse_ref", "book_name", "chapter_number", "verse_number"),
    )

    @property
    def reference(self) -> str:
        return f"{self.book_name} {self.chapter_number}:{self.verse_number}"
