"""SQLAlchemy model for voice-memo recordings."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, String, Text

from memoria.models.base import Base


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_id() -> str:
    return str(uuid.uuid4())


class RecordingType(str, Enum):
    """Kind of conversation captured by a recording."""

    MEETING = "meeting"
    CALL = "call"
    NOTE = "note"
    OTHER = "other"


class Recording(Base):
    __tablename__ = "recordings"

    id = Column(String(36), primary_key=True, default=new_id)
    title = Column(Text, nullable=False)
    audio_url = Column(Text, nullable=True)
    duration = Column(Integer, nullable=False, default=0)  # seconds
    transcript = Column(Text, nullable=True)
    summary = Column(Text, nullable=True)
    tasks = Column(JSON, nullable=False, default=list)
    diary_entry = Column(Text, nullable=True)
    # "metadata" is reserved on declarative classes.
    metadata_ = Column(
        "metadata",
        JSON,
        nullable=False,
        default=lambda: {"type": RecordingType.OTHER.value},
    )
    speakers = Column(JSON, nullable=True)
    analysis_source = Column(String(16), nullable=True)
    processed = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)


__all__ = ["Recording", "RecordingType", "new_id", "utc_now"]
