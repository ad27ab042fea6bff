from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from ..database import Base


class Poll(Base):
    __tablename__ = "polls"

    id = Column(Integer, primary_key=True, index=True)
    question = Column(String(200), nullable=False)
    description = Column(String(500), nullable=True)
    options = Column(JSON, nullable=False)  # list of option labels
    multi_select = Column(Boolean, default=False, nullable=False)
    closes_at = Column(DateTime, nullable=True)
    author_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    is_active = Column(Boolean, default=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    votes = relationship("PollVote", back_populates="poll", cascade="all, delete-orphan")

    @property
    def is_open(self) -> bool:
        return self.closes_at is None or self.closes_at > datetime.utcnow()


class PollVote(Base):
    __tablename__ = "poll_votes"

    id = Column(Integer, primary_key=True, index=True)
    poll_id = Column(Integer, ForeignKey("polls.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    option_indexes = Column(JSON, nullable=False)
    voted_at = Column(DateTime, default=datetime.utcnow)

    poll = relationship("Poll", back_populates="votes")

    __table_args__ = (
        UniqueConstraint("poll_id", "user_id", name="uq_poll_vote_user"),
    )
