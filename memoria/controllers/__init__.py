"""FastAPI routers acting as controllers in the MVC architecture."""

from . import ai_config, chat, process, recordings, transcribe

__all__ = ["ai_config", "chat", "process", "recordings", "transcribe"]
