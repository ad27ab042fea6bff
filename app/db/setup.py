# app/db/setup.py
"""Database setup - creates tables and seeds reference data and the admin account"""
from sqlalchemy.orm import Session
from ..database import Base, engine, SessionLocal
from ..config import settings
from ..models.user import User, UserRole
from ..models.bible import BibleBook, Testament
from ..models.hymn import Hymn, HymnCategory, HymnSource
from ..utils.security import get_password_hash
from .. import models  # noqa: F401  registers every model with Base.metadata
import logging

logger = logging.getLogger(__name__)

# (name, abbreviation, chapters)
OLD_TESTAMENT = [
    ("Genesis", "Gen", 50), ("Exodus", "Exod", 40), ("Leviticus", "Lev", 27),
    ("Numbers", "Num", 36), ("Deuteronomy", "Deut", 34), ("Joshua", "Josh", 24),
    ("Judges", "Judg", 21), ("Ruth", "Ruth", 4), ("1 Samuel", "1Sam", 31),
    ("2 Samuel", "2Sam", 24), ("1 Kings", "1Kgs", 22), ("2 Kings", "2Kgs", 25),
    ("1 Chronicles", "1Chr", 29), ("2 Chronicles", "2Chr", 36), ("Ezra", "Ezra", 10),
    ("Nehemiah", "Neh", 13), ("Esther", "Esth", 10), ("Job", "Job", 42),
    ("Psalms", "Ps", 150), ("Proverbs", "Prov", 31), ("Ecclesiastes", "Eccl", 12),
    ("Song of Solomon", "Song", 8), ("Isaiah", "Isa", 66), ("Jeremiah", "Jer", 52),
    ("Lamentations", "Lam", 5), ("Ezekiel", "Ezek", 48), ("Daniel", "Dan", 12),
    ("Hosea", "Hos", 14), ("Joel", "Joel", 3), ("Amos", "Amos", 9),
    ("Obadiah", "Obad", 1), ("Jonah", "Jonah", 4), ("Micah", "Mic", 7),
    ("Nahum", "Nah", 3), ("Habakkuk", "Hab", 3), ("Zephaniah", "Zeph", 3),
    ("Haggai", "Hag", 2), ("Zechariah", "Zech", 14), ("Malachi", "Mal", 4),
]

NEW_TESTAMENT = [
    ("Matthew", "Matt", 28), ("Mark", "Mark", 16), ("Luke", "Luke", 24),
    ("John", "John", 21), ("Acts", "Acts", 28), ("Romans", "Rom", 16),
    ("1 Corinthians", "1Cor", 16), ("2 Corinthians", "2Cor", 13), ("Galatians", "Gal", 6),
    ("Ephesians", "Eph", 6), ("Philippians", "Phil", 4), ("Colossians", "Col", 4),
    ("1 Thessalonians", "1Thess", 5), ("2 Thessalonians", "2Thess", 3), ("1 Timothy", "1Tim", 6),
    ("2 Timothy", "2Tim", 4), ("Titus", "Titus", 3), ("Philemon", "Phlm", 1),
    ("Hebrews", "Heb", 13), ("James", "Jas", 5), ("1 Peter", "1Pet", 5),
    ("2 Peter", "2Pet", 3), ("1 John", "1John", 5), ("2 John", "2John", 1),
    ("3 John", "3John", 1), ("Jude", "Jude", 1), ("Revelation", "Rev", 22),
]

HYMNS_TO_SEED = [
    {
        "title": "Amazing Grace",
        "author": "John Newton",
        "year": 1779,
        "category": HymnCategory.TRADITIONAL.value,
        "scripture": ["Ephesians 2:8", "1 Chronicles 17:16"],
        "tags": ["grace", "salvation"],
        "meter": "8.6.8.6",
    },
    {
        "title": "Holy, Holy, Holy",
        "author": "Reginald Heber",
        "composer": "John B. Dykes",
        "year": 1826,
        "category": HymnCategory.WORSHIP.value,
        "scripture": ["Revelation 4:8", "Isaiah 6:3"],
        "tags": ["trinity", "worship"],
        "meter": "11.12.12.10",
    },
    {
        "title": "To God Be the Glory",
        "author": "Fanny Crosby",
        "composer": "William H. Doane",
        "year": 1875,
        "category": HymnCategory.PRAISE.value,
        "scripture": ["John 3:16"],
        "tags": ["praise", "salvation"],
    },
    {
        "title": "Joy to the World",
        "author": "Isaac Watts",
        "year": 1719,
        "category": HymnCategory.CHRISTMAS.value,
        "scripture": ["Psalms 98:4"],
        "tags": ["christmas", "joy"],
        "meter": "8.6.8.6",
    },
    {
        "title": "Christ the Lord Is Risen Today",
        "author": "Charles Wesley",
        "year": 1739,
        "category": HymnCategory.EASTER.value,
        "scripture": ["Matthew 28:6", "1 Corinthians 15:55"],
        "tags": ["easter", "resurrection"],
        "meter": "7.7.7.7 with alleluias",
    },
]


def create_tables():
    """Create all database tables"""
    Base.metadata.create_all(bind=engine)
    logger.info("✅ All tables created successfully!")


def seed_bible_books(db: Session) -> int:
    if db.query(BibleBook.id).first() is not None:
        logger.info("⏭️  Bible books already seeded, skipping...")
        return 0

    order = 0
    for testament, books in ((Testament.OLD.value, OLD_TESTAMENT), (Testament.NEW.value, NEW_TESTAMENT)):
        for name, abbreviation, chapters in books:
            order += 1
            db.add(BibleBook(
                name=name,
                abbreviation=abbreviation,
                testament=testament,
                order=order,
                chapter_count=chapters,
            ))
    db.commit()
    logger.info(f"✅ Seeded {order} Bible books")
    return order


def seed_hymns(db: Session) -> int:
    created = 0
    for hymn_data in HYMNS_TO_SEED:
        if db.query(Hymn.id).filter(Hymn.title == hymn_data["title"]).first():
            continue
        db.add(Hymn(source=HymnSource.MANUAL.value, lyrics=[], **hymn_data))
        created += 1
    db.commit()
    logger.info(f"✅ Seeded {created} hymns")
    return created


def seed_admin(db: Session):
    """Create the FIRST_SUPERUSER account when configured and missing"""
    email = settings.FIRST_SUPERUSER_EMAIL
    password = settings.FIRST_SUPERUSER_PASSWORD
    if not email or not password:
        logger.info("ℹ️ FIRST_SUPERUSER_* not set, skipping admin seed")
        return None

    existing = db.query(User).filter(User.email == email.lower()).first()
    if existing:
        logger.info(f"⏭️  Admin {email} already exists, skipping...")
        return existing

    admin = User(
        email=email.lower(),
        hashed_password=get_password_hash(password),
        full_name="Admin User",
        role=UserRole.ADMIN.value,
        is_superuser=True,
        is_active=True,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info(f"✅ Admin user created: {admin.email}")
    return admin


def setup_database():
    create_tables()
    db = SessionLocal()
    try:
        seed_bible_books(db)
        seed_hymns(db)
        seed_admin(db)
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Database seeding failed: {e}", exc_info=True)
        raise
    finally:
        db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    setup_database()
