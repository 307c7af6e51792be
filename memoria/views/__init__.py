"""Pydantic schemas used as views in the MVC architecture."""

from .ai_config import (
    ProviderChangeResponse,
    ProvidersResponse,
    ProviderTestRequest,
    ProviderTestResponse,
    ProviderView,
)
from .chat import ChatMessageCreate, ChatMessageResponse
from .common import ErrorResponse, HealthResponse
from .process import PendingProcessResponse, RecordingProcessResponse, TranscriptionResponse
from .recordings import (
    RecordingCreate,
    RecordingMetadata,
    RecordingResponse,
    RecordingUpdate,
    TaskView,
)

__all__ = [
    "RecordingCreate",
    "RecordingMetadata",
    "RecordingResponse",
    "RecordingUpdate",
    "TaskView",
    "ProviderView",
    "ProvidersResponse",
    "ProviderChangeResponse",
    "ProviderTestRequest",
    "ProviderTestResponse",
    "ChatMessageCreate",
    "ChatMessageResponse",
    "PendingProcessResponse",
    "RecordingProcessResponse",
    "TranscriptionResponse",
    "ErrorResponse",
    "HealthResponse",
]
