"""Speaker segmentation pass layered on top of the chat dispatch path."""

from __future__ import annotations

import logging
import re
from typing import Awaitable, Callable

from pydantic import ValidationError

from memoria.services.errors import ProviderError, UnparsableResponseError
from memoria.services.prompt_builder import (
    build_characteristics_prompt,
    build_speaker_prompt,
)
from memoria.services.response_contract import (
    AnalysisSource,
    Speaker,
    SpeakerAnalysis,
    SpeakerCharacteristics,
    SpeakerSegment,
    decode_json_island,
)

logger = logging.getLogger("memoria.services.analysis")

ChatCallable = Callable[[str], Awaitable[str]]

FALLBACK_SPEAKER_ID = "speaker_1"
FALLBACK_SPEAKER_NAME = "Hablante Principal"
FALLBACK_CONFIDENCE = 0.8

SPEAKER_NAMES = (
    "Persona 1",
    "Persona 2",
    "Persona 3",
    "Persona 4",
    "Hablante A",
    "Hablante B",
    "Hablante C",
    "Hablante D",
    "Participante 1",
    "Participante 2",
    "Participante 3",
    "Participante 4",
)

UNKNOWN_CHARACTERISTICS = SpeakerCharacteristics(
    gender="unknown",
    age_range="unknown",
    language="español",
    accent="desconocido",
)

_SENTENCE_BOUNDARY = re.compile(r"[.!?]+")


def split_sentences(transcript: str) -> list[str]:
    """Split on sentence-terminal punctuation, dropping blank pieces."""

    return [piece.strip() for piece in _SENTENCE_BOUNDARY.split(transcript) if piece.strip()]


def fallback_segmentation(transcript: str, duration_seconds: float) -> SpeakerAnalysis:
    """One synthetic speaker, duration split evenly across the sentences."""

    sentences = split_sentences(transcript)
    count = len(sentences)
    bounds = [duration_seconds * index / count for index in range(count)] + [duration_seconds]
    segments = [
        SpeakerSegment(
            start=bounds[index],
            end=bounds[index + 1],
            text=sentence,
            confidence=FALLBACK_CONFIDENCE,
        )
        for index, sentence in enumerate(sentences)
    ]
    speaker = Speaker(
        id=FALLBACK_SPEAKER_ID,
        name=FALLBACK_SPEAKER_NAME,
        segments=segments,
    )
    return SpeakerAnalysis(
        speakers=[speaker],
        speaker_changes=[],
        transcript=transcript,
        source=AnalysisSource.FALLBACK,
    )


def generate_speaker_names(count: int) -> list[str]:
    """Return up to ``count`` display names, then numbered ones."""

    names = list(SPEAKER_NAMES[: max(count, 0)])
    for index in range(len(names), count):
        names.append(f"Persona {index + 1}")
    return names


class SpeakerSegmenter:
    """Partition a transcript into speaker turns.

    The provider is asked first. Any provider error or unusable reply
    produces ``fallback_segmentation`` instead, marked with
    ``source=fallback``.
    """

    def __init__(self, chat: ChatCallable, *, with_characteristics: bool = False) -> None:
        self._chat = chat
        self._with_characteristics = with_characteristics

    async def segment(self, transcript: str, duration_seconds: float) -> SpeakerAnalysis:
        try:
            raw_response = await self._chat(build_speaker_prompt(transcript, duration_seconds))
        except ProviderError as exc:
            logger.warning("Segmentación por proveedor falló (%s); usando heurística", exc)
            return fallback_segmentation(transcript, duration_seconds)

        try:
            data = decode_json_island(raw_response)
            analysis = SpeakerAnalysis.model_validate(
                {
                    "speakers": data.get("speakers") or [],
                    "speakerChanges": data.get("speakerChanges") or [],
                    "transcript": transcript,
                }
            )
        except (UnparsableResponseError, ValidationError) as exc:
            logger.warning("Respuesta de hablantes no interpretable: %s", exc)
            return fallback_segmentation(transcript, duration_seconds)

        if not analysis.speakers:
            logger.info("El proveedor no devolvió hablantes; usando heurística")
            return fallback_segmentation(transcript, duration_seconds)

        analysis = self._normalize(analysis, duration_seconds)
        if self._with_characteristics and len(analysis.speakers) == 1:
            characteristics = await self.identify_characteristics(transcript)
            analysis.speakers[0].characteristics = characteristics
        return analysis

    async def identify_characteristics(self, transcript: str) -> SpeakerCharacteristics:
        try:
            raw_response = await self._chat(build_characteristics_prompt(transcript))
            return SpeakerCharacteristics.model_validate(decode_json_island(raw_response))
        except (ProviderError, UnparsableResponseError, ValidationError) as exc:
            logger.warning("No se pudieron identificar características de voz: %s", exc)
            return UNKNOWN_CHARACTERISTICS.model_copy()

    @staticmethod
    def _normalize(analysis: SpeakerAnalysis, duration_seconds: float) -> SpeakerAnalysis:
        """Clamp times to [0, duration], order segments, fill missing names."""

        names = generate_speaker_names(len(analysis.speakers))

        def clamp(value: float) -> float:
            return max(0.0, min(float(duration_seconds), value))

        speakers: list[Speaker] = []
        for index, speaker in enumerate(analysis.speakers):
            segments = []
            for segment in speaker.segments:
                start = clamp(segment.start)
                end = max(start, clamp(segment.end))
                segments.append(segment.model_copy(update={"start": start, "end": end}))
            segments.sort(key=lambda item: item.start)
            speakers.append(
                speaker.model_copy(
                    update={
                        "name": speaker.name.strip() or names[index],
                        "segments": segments,
                    }
                )
            )

        changes = sorted(
            (
                change.model_copy(update={"timestamp": clamp(change.timestamp)})
                for change in analysis.speaker_changes
            ),
            key=lambda item: item.timestamp,
        )
        return analysis.model_copy(
            update={
                "speakers": speakers,
                "speaker_changes": changes,
                "source": AnalysisSource.PROVIDER,
            }
        )


__all__ = [
    "SpeakerSegmenter",
    "ChatCallable",
    "fallback_segmentation",
    "generate_speaker_names",
    "split_sentences",
    "FALLBACK_CONFIDENCE",
]
