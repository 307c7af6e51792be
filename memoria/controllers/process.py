"""Batch and single re-runs of the analysis pipeline."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from memoria.controllers.dependencies import DispatcherDep, GuardDep, RecordStoreDep
from memoria.controllers.recordings import serialize_recording
from memoria.services.errors import AnalysisInProgressError
from memoria.services.recording_analysis import (
    analyze_recording,
    process_pending,
    transcript_or_placeholder,
)
from memoria.views import PendingProcessResponse, RecordingProcessResponse

router = APIRouter(prefix="/api/process", tags=["process"])


@router.post("/pending", response_model=PendingProcessResponse)
async def process_pending_recordings(
    store: RecordStoreDep,
    dispatcher: DispatcherDep,
    guard: GuardDep,
) -> PendingProcessResponse:
    """Analyse every recording not yet processed, one after another."""

    report = await process_pending(store, dispatcher, guard)
    return PendingProcessResponse(
        message=report.message,
        processed=report.processed,
        failed=report.failed,
        skipped=report.skipped,
        failedIds=report.failed_ids,
    )


@router.post("/{recording_id}", response_model=RecordingProcessResponse)
async def process_recording(
    recording_id: str,
    store: RecordStoreDep,
    dispatcher: DispatcherDep,
    guard: GuardDep,
) -> RecordingProcessResponse:
    """Re-run analysis on one recording and return it updated."""

    recording = await store.get(recording_id)
    if not recording:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Recording not found",
        )
    try:
        updated = await analyze_recording(
            store,
            dispatcher,
            guard,
            recording,
            transcript=transcript_or_placeholder(recording),
        )
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
    return RecordingProcessResponse(
        message="Grabación procesada correctamente",
        recording=serialize_recording(updated),
    )
