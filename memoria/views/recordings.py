"""Pydantic schemas for recordings and their analysis."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field

from memoria.models.recording import RecordingType
from memoria.services.response_contract import TaskPriority


class TaskView(BaseModel):
    """Action item extracted from a recording."""

    id: str = Field(..., min_length=1)
    title: str
    description: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    completed: bool = False
    dueDate: Optional[date] = Field(
        None,
        validation_alias=AliasChoices("dueDate", "due_date"),
        serialization_alias="dueDate",
    )

    class Config:
        populate_by_name = True


class RecordingMetadata(BaseModel):
    type: RecordingType = RecordingType.OTHER
    participants: Optional[List[str]] = None
    tags: Optional[List[str]] = None


class RecordingCreate(BaseModel):
    """Payload to store a new recording."""

    title: Optional[str] = Field(None, max_length=500)
    audioUrl: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("audioUrl", "audio_url"),
    )
    duration: int = Field(0, ge=0)
    transcript: Optional[str] = None
    summary: Optional[str] = None
    tasks: List[TaskView] = Field(default_factory=list)
    diaryEntry: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("diaryEntry", "diary_entry"),
    )
    metadata: RecordingMetadata = Field(default_factory=RecordingMetadata)
    processed: bool = False

    class Config:
        populate_by_name = True


class RecordingUpdate(BaseModel):
    """Partial update; only fields present in the body are written."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    audioUrl: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("audioUrl", "audio_url"),
    )
    duration: Optional[int] = Field(None, ge=0)
    transcript: Optional[str] = None
    summary: Optional[str] = None
    tasks: Optional[List[TaskView]] = None
    diaryEntry: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("diaryEntry", "diary_entry"),
    )
    metadata: Optional[RecordingMetadata] = None
    processed: Optional[bool] = None

    class Config:
        populate_by_name = True


class RecordingResponse(BaseModel):
    """Serialized recording as consumed by the client application."""

    id: str
    title: str
    audioUrl: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("audioUrl", "audio_url"),
        serialization_alias="audioUrl",
    )
    duration: int = 0
    transcript: Optional[str] = None
    summary: Optional[str] = None
    tasks: List[Dict[str, Any]] = Field(default_factory=list)
    diaryEntry: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("diaryEntry", "diary_entry"),
        serialization_alias="diaryEntry",
    )
    metadata: Dict[str, Any] = Field(default_factory=dict)
    speakers: Optional[List[Dict[str, Any]]] = None
    processed: bool = False
    analysisSource: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("analysisSource", "analysis_source"),
        serialization_alias="analysisSource",
    )
    createdAt: datetime = Field(
        ...,
        validation_alias=AliasChoices("createdAt", "created_at"),
        serialization_alias="createdAt",
    )

    class Config:
        populate_by_name = True
        from_attributes = True
