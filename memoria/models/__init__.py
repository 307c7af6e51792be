"""SQLAlchemy models for the MVC architecture."""

from .base import Base
from .chat_message import ChatMessage, ChatRole  # noqa: F401
from .log import RequestLog  # noqa: F401
from .recording import Recording, RecordingType  # noqa: F401

__all__ = [
    "Base",
    "ChatMessage",
    "ChatRole",
    "Recording",
    "RecordingType",
    "RequestLog",
]
