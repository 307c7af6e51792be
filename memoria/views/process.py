"""Schemas for batch processing and transcription results."""

from typing import List

from pydantic import BaseModel, Field

from .recordings import RecordingResponse


class PendingProcessResponse(BaseModel):
    message: str
    processed: int
    failed: int
    skipped: int
    failedIds: List[str] = Field(default_factory=list)


class TranscriptionResponse(BaseModel):
    transcription: str
    filename: str
    size: int
    provider: str


class RecordingProcessResponse(BaseModel):
    message: str
    recording: RecordingResponse
