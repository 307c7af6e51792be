"""Endpoints for recording storage and on-demand analysis."""

from __future__ import annotations

import logging
from datetime import datetime, time, timezone

from fastapi import APIRouter, HTTPException, Response, status

from memoria.controllers.dependencies import DispatcherDep, GuardDep, RecordStoreDep
from memoria.models.recording import Recording
from memoria.services.errors import AnalysisInProgressError, MissingTranscriptError
from memoria.services.recording_analysis import analyze_recording
from memoria.views import RecordingCreate, RecordingResponse, RecordingUpdate

router = APIRouter(prefix="/api/recordings", tags=["recordings"])

logger = logging.getLogger(__name__)

# Request field -> column attribute.
_FIELD_MAP = {
    "title": "title",
    "audioUrl": "audio_url",
    "duration": "duration",
    "transcript": "transcript",
    "summary": "summary",
    "tasks": "tasks",
    "diaryEntry": "diary_entry",
    "metadata": "metadata_",
    "processed": "processed",
}
_NOT_NULL_COLUMNS = frozenset({"title", "duration", "tasks", "metadata_", "processed"})


def default_title(moment: datetime | None = None) -> str:
    moment = moment or datetime.now()
    return f"Grabación {moment.strftime('%d/%m/%Y %H:%M:%S')}"


def serialize_recording(recording: Recording) -> RecordingResponse:
    return RecordingResponse(
        id=recording.id,
        title=recording.title,
        audioUrl=recording.audio_url,
        duration=recording.duration or 0,
        transcript=recording.transcript,
        summary=recording.summary,
        tasks=list(recording.tasks or []),
        diaryEntry=recording.diary_entry,
        metadata=dict(recording.metadata_ or {}),
        speakers=recording.speakers,
        processed=bool(recording.processed),
        analysisSource=recording.analysis_source,
        createdAt=recording.created_at,
    )


def _column_values(payload: RecordingCreate | RecordingUpdate, *, exclude_unset: bool) -> dict:
    # Nested tasks and metadata are always dumped whole.
    data = payload.model_dump(mode="json", by_alias=True)
    if exclude_unset:
        data = {key: value for key, value in data.items() if key in payload.model_fields_set}
    return {_FIELD_MAP[key]: value for key, value in data.items() if key in _FIELD_MAP}


def _parse_bound(value: str, *, end_of_day: bool) -> datetime:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid date: {value}",
        ) from None
    if end_of_day and len(value) == 10:
        parsed = datetime.combine(parsed.date(), time.max)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


async def _get_recording_or_404(store: RecordStoreDep, recording_id: str) -> Recording:
    recording = await store.get(recording_id)
    if not recording:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Recording not found",
        )
    return recording


@router.get("", response_model=list[RecordingResponse])
async def list_recordings(store: RecordStoreDep) -> list[RecordingResponse]:
    """Return every recording, newest first."""

    return [serialize_recording(recording) for recording in await store.list_all()]


@router.get("/search/{query}", response_model=list[RecordingResponse])
async def search_recordings(query: str, store: RecordStoreDep) -> list[RecordingResponse]:
    if not query.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Search query cannot be empty",
        )
    return [serialize_recording(recording) for recording in await store.search(query)]


@router.get("/date/{start}/{end}", response_model=list[RecordingResponse])
async def recordings_between(start: str, end: str, store: RecordStoreDep) -> list[RecordingResponse]:
    """Recordings created in ``[start, end]``; date-only ``end`` covers the whole day."""

    start_at = _parse_bound(start, end_of_day=False)
    end_at = _parse_bound(end, end_of_day=True)
    if start_at > end_at:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Start date must not be after end date",
        )
    recordings = await store.list_between(start_at, end_at)
    return [serialize_recording(recording) for recording in recordings]


@router.get("/{recording_id}", response_model=RecordingResponse)
async def get_recording(recording_id: str, store: RecordStoreDep) -> RecordingResponse:
    return serialize_recording(await _get_recording_or_404(store, recording_id))


@router.post(
    "",
    response_model=RecordingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_recording(payload: RecordingCreate, store: RecordStoreDep) -> RecordingResponse:
    """Store a new recording; an empty title gets a timestamped default."""

    fields = _column_values(payload, exclude_unset=False)
    if not (fields.get("title") or "").strip():
        fields["title"] = default_title()
    recording = await store.create(fields)
    logger.info("Grabación creada id=%s title=%s", recording.id, recording.title)
    return serialize_recording(recording)


@router.patch("/{recording_id}", response_model=RecordingResponse)
async def update_recording(
    recording_id: str,
    payload: RecordingUpdate,
    store: RecordStoreDep,
) -> RecordingResponse:
    await _get_recording_or_404(store, recording_id)
    fields = {
        key: value
        for key, value in _column_values(payload, exclude_unset=True).items()
        if value is not None or key not in _NOT_NULL_COLUMNS
    }
    if not fields:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No fields provided for update",
        )
    recording = await store.update(recording_id, **fields)
    if recording is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Recording not found",
        )
    return serialize_recording(recording)


@router.delete("/{recording_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recording(recording_id: str, store: RecordStoreDep) -> Response:
    if not await store.delete(recording_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Recording not found",
        )
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{recording_id}/analyze", response_model=RecordingResponse)
async def analyze_recording_endpoint(
    recording_id: str,
    store: RecordStoreDep,
    dispatcher: DispatcherDep,
    guard: GuardDep,
) -> RecordingResponse:
    """Run summary, task and diary extraction (plus speakers) on the stored transcript."""

    recording = await _get_recording_or_404(store, recording_id)
    try:
        updated = await analyze_recording(store, dispatcher, guard, recording)
    except MissingTranscriptError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Transcript is required",
        ) from None
    except AnalysisInProgressError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Analysis already in progress for this recording",
        ) from None
    except LookupError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Recording not found",
        ) from None
    return serialize_recording(updated)
