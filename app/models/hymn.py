from sqlalchemy import Column, Integer, String, Boolean, DateTime, Float, JSON
from datetime import datetime
from enum import Enum
from ..database import Base


class HymnCategory(str, Enum):
    PRAISE = "praise"
    WORSHIP = "worship"
    TRADITIONAL = "traditional"
    CONTEMPORARY = "contemporary"
    GOSPEL = "gospel"
    CHRISTMAS = "christmas"
    EASTER = "easter"


class HymnSource(str, Enum):
    HYMNARY = "hymnary"
    OPENHYMNAL = "openhymnal"
    MANUAL = "manual"


class Hymn(Base):
    __tablename__ = "hymns"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False, index=True)
    author = Column(String(255), nullable=True)
    composer = Column(String(255), nullable=True)
    year = Column(Integer, nullable=True)
    category = Column(String(30), nullable=False, index=True)

    lyrics = Column(JSON, default=list)
    scripture = Column(JSON, default=list)
    tags = Column(JSON, default=list)

    audio_url = Column(String(1000), nullable=True)
    thumbnail_url = Column(String(1000), nullable=True)
    duration = Column(Float, nullable=True)
    hymn_number = Column(String(20), nullable=True)
    meter = Column(String(50), nullable=True)
    key = Column(String(10), nullable=True)

    source = Column(String(20), default=HymnSource.MANUAL.value, nullable=False, index=True)
    external_id = Column(String(100), nullable=True, index=True)

    view_count = Column(Integer, default=0, nullable=False)
    like_count = Column(Integer, default=0, nullable=False)
    comment_count = Column(Integer, default=0, nullable=False)
    share_count = Column(Integer, default=0, nullable=False)
    bookmark_count = Column(Integer, default=0, nullable=False)

    is_active = Column(Boolean, default=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
