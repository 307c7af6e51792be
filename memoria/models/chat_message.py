"""SQLAlchemy model for assistant chat history."""

from __future__ import annotations

from enum import Enum

from sqlalchemy import JSON, Column, DateTime, String, Text

from memoria.models.base import Base
from memoria.models.recording import new_id, utc_now


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(Base):
    __tablename__ = "chat_messages"

    id = Column(String(36), primary_key=True, default=new_id)
    role = Column(String(16), nullable=False)
    content = Column(Text, nullable=False)
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, index=True)


__all__ = ["ChatMessage", "ChatRole"]
