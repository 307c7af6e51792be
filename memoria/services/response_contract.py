"""Pydantic models and best-effort extraction for provider JSON replies.

Providers routinely wrap the requested JSON in explanatory prose, so the
extractor looks for a JSON *island*: everything from the first ``{`` to the
last ``}``. This is a greedy scan, not a balanced-brace parser. When a reply
holds two separate objects the island spans both and decoding fails, which
sends the caller down its fallback path.
"""

from __future__ import annotations

import json
import uuid
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator

from memoria.services.errors import UnparsableResponseError

FALLBACK_SUMMARY_LABEL = "Resumen"
FALLBACK_DIARY_LABEL = "Entrada de diario"
_PLACEHOLDER_IDS = {"", "uuid", "id"}


class AnalysisSource(str, Enum):
    """Provenance of a result: real provider output or deterministic fallback."""

    PROVIDER = "provider"
    FALLBACK = "fallback"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def new_task_id() -> str:
    return str(uuid.uuid4())


class AnalysisTask(BaseModel):
    id: str = Field(default_factory=new_task_id)
    title: str = ""
    description: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    completed: bool = False
    due_date: Optional[date] = Field(
        default=None,
        validation_alias=AliasChoices("dueDate", "due_date"),
        serialization_alias="dueDate",
    )

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("id", mode="before")
    @classmethod
    def regenerate_missing_id(cls, value: Any) -> str:
        text = str(value).strip() if value is not None else ""
        if text.lower() in _PLACEHOLDER_IDS:
            return new_task_id()
        return text

    @field_validator("title", "description", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("priority", mode="before")
    @classmethod
    def coerce_priority(cls, value: Any) -> str:
        text = str(value or "").strip().lower()
        return text if text in {p.value for p in TaskPriority} else TaskPriority.MEDIUM.value

    @field_validator("completed", mode="before")
    @classmethod
    def coerce_completed(cls, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.strip().lower() in {"true", "1", "yes", "si", "sí"}
        return bool(value)

    @field_validator("due_date", mode="before")
    @classmethod
    def parse_due_date(cls, value: Any) -> Optional[date]:
        if value in (None, ""):
            return None
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value).strip()[:10])
        except ValueError:
            return None


class SpeakerSegment(BaseModel):
    start: float = Field(validation_alias=AliasChoices("start", "startSeconds"))
    end: float = Field(validation_alias=AliasChoices("end", "endSeconds"))
    text: str = ""
    confidence: float = 0.5

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, value: Any) -> float:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return 0.5
        return max(0.0, min(1.0, number))

    @field_validator("text", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()


class SpeakerCharacteristics(BaseModel):
    gender: Optional[str] = None
    age_range: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("ageRange", "age_range"),
        serialization_alias="ageRange",
    )
    language: Optional[str] = None
    accent: Optional[str] = None

    model_config = {"populate_by_name": True, "extra": "ignore"}


class Speaker(BaseModel):
    id: str
    name: str = ""
    segments: List[SpeakerSegment] = Field(default_factory=list)
    characteristics: Optional[SpeakerCharacteristics] = None

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> str:
        return str(value)

    @field_validator("name", mode="before")
    @classmethod
    def coerce_name(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("segments", mode="before")
    @classmethod
    def drop_malformed_segments(cls, value: Any) -> list:
        if not isinstance(value, list):
            return []
        segments = []
        for item in value:
            try:
                segments.append(SpeakerSegment.model_validate(item))
            except ValidationError:
                continue
        return segments


class SpeakerChange(BaseModel):
    timestamp: float
    speaker_id: str = Field(
        validation_alias=AliasChoices("speakerId", "speaker_id"),
        serialization_alias="speakerId",
    )
    text: str = ""

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("speaker_id", mode="before")
    @classmethod
    def coerce_speaker_id(cls, value: Any) -> Any:
        return value if value is None else str(value)


class SpeakerAnalysis(BaseModel):
    speakers: List[Speaker] = Field(default_factory=list)
    speaker_changes: List[SpeakerChange] = Field(
        default_factory=list,
        validation_alias=AliasChoices("speakerChanges", "speaker_changes"),
        serialization_alias="speakerChanges",
    )
    transcript: str = ""
    source: AnalysisSource = AnalysisSource.PROVIDER

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("speakers", mode="before")
    @classmethod
    def assign_missing_speaker_ids(cls, value: Any) -> list:
        if not isinstance(value, list):
            return []
        speakers = []
        for index, item in enumerate(value, start=1):
            if isinstance(item, Speaker):
                speakers.append(item)
                continue
            if not isinstance(item, dict):
                continue
            if str(item.get("id") or "").strip() == "":
                item = {**item, "id": f"speaker_{index}"}
            speakers.append(item)
        return speakers

    @field_validator("speaker_changes", mode="before")
    @classmethod
    def drop_malformed_changes(cls, value: Any) -> list:
        if not isinstance(value, list):
            return []
        changes = []
        for item in value:
            try:
                changes.append(SpeakerChange.model_validate(item))
            except ValidationError:
                continue
        return changes


class AnalysisResult(BaseModel):
    summary: str = ""
    tasks: List[AnalysisTask] = Field(default_factory=list)
    diary_entry: str = Field(
        default="",
        validation_alias=AliasChoices("diaryEntry", "diary_entry"),
        serialization_alias="diaryEntry",
    )
    speakers: Optional[List[Speaker]] = None
    source: AnalysisSource = AnalysisSource.PROVIDER

    model_config = {"populate_by_name": True, "extra": "ignore"}

    @field_validator("summary", "diary_entry", mode="before")
    @classmethod
    def coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, list):
            return "\n".join(f"• {item}" for item in value)
        return str(value)

    @field_validator("tasks", mode="before")
    @classmethod
    def drop_malformed_tasks(cls, value: Any) -> list:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]

    def to_record_fields(self) -> Dict[str, Any]:
        """Return the JSON-ready fields persisted onto a recording."""

        return {
            "summary": self.summary,
            "tasks": [task.model_dump(mode="json", by_alias=True) for task in self.tasks],
            "diary_entry": self.diary_entry,
            "speakers": (
                [speaker.model_dump(mode="json", by_alias=True, exclude_none=True) for speaker in self.speakers]
                if self.speakers is not None
                else None
            ),
            "analysis_source": self.source.value,
        }


def _clean_json_payload(payload: str) -> str:
    """Strip Markdown code fences around the reply."""

    cleaned = payload.strip()
    if cleaned.startswith("```json"):
        cleaned = cleaned[7:]
    elif cleaned.startswith("```"):
        cleaned = cleaned[3:]

    if cleaned.endswith("```"):
        cleaned = cleaned[:-3]

    return cleaned.strip()


def extract_json_island(payload: str | None) -> str | None:
    """Return the text from the first ``{`` to the last ``}`` or None."""

    if not payload:
        return None
    cleaned = _clean_json_payload(payload)
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end == -1 or end < start:
        return None
    return cleaned[start : end + 1]


def decode_json_island(payload: str | None) -> Dict[str, Any]:
    """Decode the JSON island of ``payload`` into a dict."""

    island = extract_json_island(payload)
    if island is None:
        raise UnparsableResponseError("No JSON object found in response")
    try:
        data = json.loads(island)
    except json.JSONDecodeError as exc:
        raise UnparsableResponseError(f"Invalid JSON object: {exc}") from exc
    if not isinstance(data, dict):
        raise UnparsableResponseError("JSON island is not an object")
    return data


def ensure_unique_task_ids(tasks: List[AnalysisTask]) -> List[AnalysisTask]:
    """Regenerate identifiers that collide with an earlier task."""

    seen: set[str] = set()
    unique: list[AnalysisTask] = []
    for task in tasks:
        if task.id in seen:
            task = task.model_copy(update={"id": new_task_id()})
        seen.add(task.id)
        unique.append(task)
    return unique


def fallback_analysis(
    transcript: str,
    *,
    summary_chars: int = 200,
    diary_chars: int = 300,
) -> AnalysisResult:
    """Deterministic result built from prefixes of the transcript."""

    return AnalysisResult(
        summary=f"{FALLBACK_SUMMARY_LABEL}: {transcript[:summary_chars]}...",
        tasks=[],
        diary_entry=f"{FALLBACK_DIARY_LABEL}: {transcript[:diary_chars]}...",
        source=AnalysisSource.FALLBACK,
    )


def parse_analysis(payload: str | None) -> AnalysisResult:
    """Strict-ish variant of ``extract_analysis`` that raises on failure."""

    data = decode_json_island(payload)
    # Speaker turns only come from the segmentation pass; provenance is ours to set.
    data.pop("speakers", None)
    data.pop("source", None)
    try:
        result = AnalysisResult.model_validate(data)
    except ValidationError as exc:
        raise UnparsableResponseError(f"Analysis contract violated: {exc}") from exc
    result.source = AnalysisSource.PROVIDER
    result.tasks = ensure_unique_task_ids(result.tasks)
    return result


def extract_analysis(
    raw_text: str | None,
    transcript: str,
    *,
    summary_chars: int = 200,
    diary_chars: int = 300,
) -> AnalysisResult:
    """Decode an analysis reply, degrading to ``fallback_analysis`` on failure."""

    try:
        return parse_analysis(raw_text)
    except UnparsableResponseError:
        return fallback_analysis(
            transcript,
            summary_chars=summary_chars,
            diary_chars=diary_chars,
        )


__all__ = [
    "AnalysisSource",
    "TaskPriority",
    "AnalysisTask",
    "SpeakerSegment",
    "SpeakerCharacteristics",
    "Speaker",
    "SpeakerChange",
    "SpeakerAnalysis",
    "AnalysisResult",
    "extract_json_island",
    "decode_json_island",
    "ensure_unique_task_ids",
    "fallback_analysis",
    "parse_analysis",
    "extract_analysis",
]
