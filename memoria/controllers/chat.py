"""Assistant chat over the user's stored recordings."""

from __future__ import annotations

import logging

from fastapi import APIRouter

from memoria.controllers.dependencies import ChatStoreDep, DispatcherDep, RecordStoreDep
from memoria.models.chat_message import ChatMessage, ChatRole
from memoria.services.errors import ProviderError
from memoria.services.prompt_builder import build_recordings_context
from memoria.views import ChatMessageCreate, ChatMessageResponse

router = APIRouter(prefix="/api/chat", tags=["chat"])

logger = logging.getLogger(__name__)

APOLOGY_MESSAGE = (
    "Lo siento, no puedo responder en este momento debido a un problema técnico. "
    "Tu mensaje se ha guardado correctamente."
)


def _serialize_message(message: ChatMessage) -> ChatMessageResponse:
    return ChatMessageResponse(
        id=message.id,
        role=message.role,
        content=message.content,
        metadata=dict(message.metadata_ or {}),
        createdAt=message.created_at,
    )


@router.get("/messages", response_model=list[ChatMessageResponse])
async def list_messages(chat_store: ChatStoreDep) -> list[ChatMessageResponse]:
    return [_serialize_message(message) for message in await chat_store.list_all()]


@router.post("/messages", response_model=list[ChatMessageResponse])
async def post_message(
    payload: ChatMessageCreate,
    chat_store: ChatStoreDep,
    record_store: RecordStoreDep,
    dispatcher: DispatcherDep,
) -> list[ChatMessageResponse]:
    """Store the message; a user message also gets an assistant reply.

    Provider failures store an apology as the reply instead of failing the
    request, so the user's message is never lost.
    """

    message = await chat_store.create(payload.role.value, payload.content, payload.metadata)
    if payload.role is not ChatRole.USER:
        return [_serialize_message(message)]

    recordings = await record_store.list_all()
    context = build_recordings_context(
        [
            {
                "title": recording.title,
                "transcript": recording.transcript,
                "summary": recording.summary,
                "created_at": recording.created_at,
            }
            for recording in recordings
        ]
    )
    try:
        reply_text = await dispatcher.chat(payload.content, context)
    except ProviderError as exc:
        logger.warning("Respuesta de chat no disponible: %s", exc)
        reply_text = APOLOGY_MESSAGE

    reply = await chat_store.create(ChatRole.ASSISTANT.value, reply_text)
    return [_serialize_message(message), _serialize_message(reply)]
