"""
Prayer post search with in-memory relevance scoring.

Every match is loaded, scored and sorted before the page is sliced, so the
cost grows with the number of matches rather than the page size.
"""

from typing import Any, Dict, List, Tuple

from sqlalchemy.orm import Session

from ..models.prayer import PrayerPost
from ..utils.query import build_text_search

SEARCH_FIELDS = ("content", "prayer_text", "verse_text", "verse_reference")


def score_prayer(prayer: PrayerPost, query: str) -> float:
    """Relevance in [0, 1], rounded to 2 decimals"""
    q = query.lower()
    prayer_text = (prayer.prayer_text or prayer.content or "").lower()
    verse_text = (prayer.verse_text or "").lower()
    verse_reference = (prayer.verse_reference or "").lower()

    score = 0.0
    if q in prayer_text:
        score += 10 + 5  # match plus exact phrase bonus
    if q in verse_text:
        score += 8
    if q in verse_reference:
        score += 7

    for word in q.split():
        if word in prayer_text:
            score += 2
        if word in verse_text:
            score += 1.5

    return round(min(1.0, score / 20), 2)


def search_prayers(db: Session, query: str, page: int, limit: int) -> Tuple[List[Dict[str, Any]], int]:
    """
    Returns the requested page of (prayer, relevance) dicts and the total
    match count. Ties keep newest first.
    """
    matches = (
        db.query(PrayerPost)
        .filter(build_text_search(PrayerPost, query, SEARCH_FIELDS))
        .order_by(PrayerPost.created_at.desc())
        .all()
    )

    scored = [{"prayer": p, "relevance_score": score_prayer(p, query)} for p in matches]
    scored.sort(key=lambda item: item["relevance_score"], reverse=True)

    start = (page - 1) * limit
    return scored[start:start + limit], len(scored)
