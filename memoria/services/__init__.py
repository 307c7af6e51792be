"""Analysis core: provider dispatch, response extraction and storage helpers."""

from .analysis_dispatcher import AnalysisDispatcher
from .analysis_guard import AnalysisGuard
from .errors import (
    AnalysisInProgressError,
    CapabilityUnsupportedError,
    MissingTranscriptError,
    ProviderError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    UnparsableResponseError,
)
from .record_store import ChatStore, RecordStore
from .recording_analysis import (
    MISSING_TRANSCRIPT,
    PendingReport,
    analyze_recording,
    process_pending,
    transcript_or_placeholder,
)
from .speaker_segmenter import SpeakerSegmenter

__all__ = [
    "AnalysisDispatcher",
    "AnalysisGuard",
    "SpeakerSegmenter",
    "RecordStore",
    "ChatStore",
    "MISSING_TRANSCRIPT",
    "transcript_or_placeholder",
    "PendingReport",
    "analyze_recording",
    "process_pending",
    "AnalysisInProgressError",
    "CapabilityUnsupportedError",
    "MissingTranscriptError",
    "ProviderError",
    "ProviderTimeoutError",
    "ProviderUnavailableError",
    "UnparsableResponseError",
]
