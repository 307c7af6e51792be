"""Speech-to-text endpoint backed by the active provider."""

from __future__ import annotations

import logging
import mimetypes

from fastapi import APIRouter, File, HTTPException, UploadFile, status

from memoria.controllers.dependencies import DispatcherDep
from memoria.services.errors import CapabilityUnsupportedError, ProviderError
from memoria.views import TranscriptionResponse

router = APIRouter(prefix="/api", tags=["transcribe"])

logger = logging.getLogger(__name__)

_AUDIO_FILE_UPLOAD = File(...)


def resolve_content_type(audio_file: UploadFile) -> str:
    """Accept any audio upload, guessing the type from the filename if needed."""

    content_type = audio_file.content_type
    if not content_type or content_type == "application/octet-stream":
        guessed_type, _ = mimetypes.guess_type(audio_file.filename or "")
        content_type = guessed_type or "audio/webm"

    if not content_type.startswith("audio/") and content_type != "video/webm":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only audio files are supported",
        )
    return content_type


@router.post("/transcribe", response_model=TranscriptionResponse)
async def transcribe_audio(
    dispatcher: DispatcherDep,
    audio: UploadFile = _AUDIO_FILE_UPLOAD,
) -> TranscriptionResponse:
    content_type = resolve_content_type(audio)
    audio_bytes = await audio.read()
    await audio.close()
    if not audio_bytes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No audio file provided",
        )

    filename = audio.filename or "recording.webm"
    try:
        transcription = await dispatcher.transcribe(audio_bytes, filename, content_type)
    except CapabilityUnsupportedError as exc:
        raise HTTPException(
            status_code=status.HTTP_501_NOT_IMPLEMENTED,
            detail=str(exc),
        ) from exc
    except ProviderError as exc:
        logger.warning("Transcripción fallida: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Transcription failed: {exc}",
        ) from exc

    active = dispatcher.registry.get_active()
    return TranscriptionResponse(
        transcription=transcription,
        filename=filename,
        size=len(audio_bytes),
        provider=active.kind.value if active else "none",
    )
