"""
Poll voting and result shaping.

A user holds at most one vote per poll; voting again replaces the previous
selection. Percentages are rounded per option, so they need not sum to 100.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from ..models.poll import Poll, PollVote
from ..utils.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def get_poll(db: Session, poll_id: int) -> Poll:
    poll = db.query(Poll).filter(Poll.id == poll_id, Poll.is_active.is_(True)).first()
    if poll is None:
        raise NotFoundError("Poll not found")
    return poll


def normalize_closes_at(closes_at: Optional[datetime]) -> Optional[datetime]:
    """Returns closes_at as naive UTC, rejecting times that are not in the future"""
    if closes_at is None:
        return None
    if closes_at.tzinfo is not None:
        closes_at = closes_at.astimezone(timezone.utc).replace(tzinfo=None)
    if closes_at <= datetime.utcnow():
        raise ValidationError("Poll close time must be in the future")
    return closes_at


def vote(db: Session, poll: Poll, user_id: int, option_indexes: List[int]) -> PollVote:
    if not poll.is_open:
        raise ValidationError("This poll is closed")

    indexes = list(dict.fromkeys(option_indexes))
    if any(i < 0 or i >= len(poll.options) for i in indexes):
        raise ValidationError("Invalid option index")
    if not poll.multi_select and len(indexes) != 1:
        raise ValidationError("This poll allows only one option")

    existing = (
        db.query(PollVote)
        .filter(PollVote.poll_id == poll.id, PollVote.user_id == user_id)
        .first()
    )
    if existing is not None:
        existing.option_indexes = indexes
        existing.voted_at = datetime.utcnow()
        record = existing
    else:
        record = PollVote(poll_id=poll.id, user_id=user_id, option_indexes=indexes)
        db.add(record)

    db.commit()
    db.refresh(poll)
    logger.info(f"🗳️ User {user_id} voted {indexes} on poll {poll.id}")
    return record


def serialize_poll(poll: Poll, user_id: Optional[int] = None) -> Dict[str, Any]:
    counts = [0] * len(poll.options or [])
    user_indexes: List[int] = []
    for v in poll.votes:
        for index in v.option_indexes or []:
            if 0 <= index < len(counts):
                counts[index] += 1
        if user_id is not None and v.user_id == user_id:
            user_indexes = list(v.option_indexes or [])

    total_votes = sum(counts)
    return {
        "id": poll.id,
        "question": poll.question,
        "title": poll.question,
        "description": poll.description,
        "options": [
            {
                "index": i,
                "text": label,
                "votes_count": counts[i],
                "percentage": round(counts[i] / total_votes * 100) if total_votes else 0,
            }
            for i, label in enumerate(poll.options or [])
        ],
        "multi_select": poll.multi_select,
        "closes_at": poll.closes_at,
        "author_id": poll.author_id,
        "total_votes": total_votes,
        "is_active": poll.is_open,
        "user_voted": bool(user_indexes),
        "user_vote_indexes": user_indexes,
        "created_at": poll.created_at,
    }
