"""Run the analysis pipeline over stored recordings and persist the outcome."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from memoria.models.recording import Recording
from memoria.services.analysis_dispatcher import AnalysisDispatcher
from memoria.services.analysis_guard import AnalysisGuard
from memoria.services.errors import MissingTranscriptError
from memoria.services.record_store import RecordStore

logger = logging.getLogger("memoria.services.analysis")

MISSING_TRANSCRIPT = "Transcripción no disponible"


def transcript_or_placeholder(recording: Recording) -> str:
    """Stored transcript, or a fixed placeholder when it is blank."""

    return (recording.transcript or "").strip() or MISSING_TRANSCRIPT


@dataclass
class PendingReport:
    processed: int = 0
    failed: int = 0
    skipped: int = 0
    failed_ids: list[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        return (
            f"Procesadas {self.processed} grabaciones"
            f" ({self.failed} con error, {self.skipped} en curso)"
        )


async def analyze_recording(
    store: RecordStore,
    dispatcher: AnalysisDispatcher,
    guard: AnalysisGuard,
    recording: Recording,
    transcript: str | None = None,
) -> Recording:
    """Analyse ``recording`` and write summary, tasks, diary and speakers back.

    ``transcript`` overrides the stored one. Raises ``MissingTranscriptError``
    when neither is usable and ``AnalysisInProgressError`` when another
    analysis of the same recording is running.
    """

    text = transcript if transcript is not None else recording.transcript
    if not text or not text.strip():
        raise MissingTranscriptError(recording.id)

    record_id = recording.id
    with guard.claim(record_id):
        result = await dispatcher.analyze(
            text,
            recording.title,
            float(recording.duration) if recording.duration else None,
        )
        updated = await store.update(
            record_id,
            processed=True,
            **result.to_record_fields(),
        )

    if updated is None:
        # Deleted while the provider was working.
        raise LookupError(record_id)

    logger.info(
        "Grabación %s analizada source=%s tasks=%s",
        record_id,
        result.source.value,
        len(result.tasks),
    )
    return updated


async def process_pending(
    store: RecordStore,
    dispatcher: AnalysisDispatcher,
    guard: AnalysisGuard,
) -> PendingReport:
    """Sequentially analyse every unprocessed recording.

    Failures are logged per item and counted; recordings already being
    analysed are skipped.
    """

    report = PendingReport()
    pending = await store.list_pending()
    logger.info("Procesando %s grabaciones pendientes", len(pending))

    for recording in pending:
        if guard.is_running(recording.id):
            report.skipped += 1
            continue
        try:
            await analyze_recording(
                store,
                dispatcher,
                guard,
                recording,
                transcript=transcript_or_placeholder(recording),
            )
        except Exception:
            logger.exception("Error procesando la grabación %s", recording.id)
            report.failed += 1
            report.failed_ids.append(recording.id)
        else:
            report.processed += 1

    return report


__all__ = [
    "MISSING_TRANSCRIPT",
    "PendingReport",
    "analyze_recording",
    "process_pending",
    "transcript_or_placeholder",
]
