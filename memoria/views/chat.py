"""Schemas for the assistant chat history."""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, Field

from memoria.models.chat_message import ChatRole


class ChatMessageCreate(BaseModel):
    role: ChatRole = ChatRole.USER
    content: str = Field(..., min_length=1)
    metadata: Optional[Dict[str, Any]] = None


class ChatMessageResponse(BaseModel):
    id: str
    role: ChatRole
    content: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
    createdAt: datetime = Field(
        ...,
        validation_alias=AliasChoices("createdAt", "created_at"),
        serialization_alias="createdAt",
    )

    class Config:
        populate_by_name = True

