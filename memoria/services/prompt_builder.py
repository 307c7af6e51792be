"""Prompt templates for the analysis dispatcher.

Every template is plain string concatenation: transcripts come from the
authenticated single user and are not escaped. Each analysis-style prompt
spells out the exact JSON object expected back; providers still wrap it in
prose, which ``response_contract`` tolerates.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Mapping, Sequence

ANALYSIS_JSON_SHAPE = (
    "{\n"
    '  "summary": "resumen en viñetas aquí",\n'
    '  "tasks": [\n'
    "    {\n"
    '      "id": "uuid",\n'
    '      "title": "título de tarea",\n'
    '      "description": "descripción",\n'
    '      "priority": "high|medium|low",\n'
    '      "completed": false,\n'
    '      "dueDate": "YYYY-MM-DD (opcional)"\n'
    "    }\n"
    "  ],\n"
    '  "diaryEntry": "entrada de diario aquí"\n'
    "}"
)

SPEAKER_JSON_SHAPE = (
    "{\n"
    '  "speakers": [\n'
    "    {\n"
    '      "id": "speaker_1",\n'
    '      "name": "Persona 1",\n'
    '      "segments": [\n'
    "        {\n"
    '          "start": 0,\n'
    '          "end": 30,\n'
    '          "text": "texto hablado",\n'
    '          "confidence": 0.9\n'
    "        }\n"
    "      ]\n"
    "    }\n"
    "  ],\n"
    '  "speakerChanges": [\n'
    "    {\n"
    '      "timestamp": 30,\n'
    '      "speakerId": "speaker_2",\n'
    '      "text": "cambio de hablante"\n'
    "    }\n"
    "  ]\n"
    "}"
)

CHARACTERISTICS_JSON_SHAPE = (
    "{\n"
    '  "gender": "male|female|unknown",\n'
    '  "ageRange": "young|adult|senior|unknown",\n'
    '  "language": "español",\n'
    '  "accent": "español peninsular"\n'
    "}"
)

NO_CONTEXT = "No hay contexto específico disponible."
RECORDING_CONTEXT_CHARS = 500


def build_analysis_prompt(transcript: str, title: str) -> str:
    """Ask for summary, tasks and diary entry as one JSON object."""

    return (
        "Analiza la siguiente transcripción y proporciona:\n"
        "1. Un resumen en viñetas\n"
        "2. Lista de tareas identificadas con prioridad\n"
        "3. Una entrada de diario personal en tono natural\n\n"
        f'Título de la grabación: "{title}"\n\n'
        f"Transcripción: {transcript}\n\n"
        "Responde en formato JSON:\n"
        f"{ANALYSIS_JSON_SHAPE}"
    )


def build_chat_prompt(user_message: str, context: str | None = None) -> str:
    return (
        "Eres un asistente personal inteligente. Responde de manera útil y amigable.\n\n"
        f"Contexto: {context or NO_CONTEXT}\n\n"
        f"Pregunta del usuario: {user_message}\n\n"
        "Responde en español de manera natural y útil:"
    )


def build_speaker_prompt(transcript: str, duration_seconds: float) -> str:
    """Ask the provider to split ``transcript`` into timed speaker turns."""

    return (
        "Analiza la siguiente transcripción y identifica los diferentes hablantes.\n\n"
        f"Transcripción: {transcript}\n"
        f"Duración del audio: {_format_seconds(duration_seconds)} segundos\n\n"
        "Identifica:\n"
        "1. Cambios de hablante en el texto\n"
        "2. Patrones de habla de cada persona\n"
        "3. Estimaciones de tiempo basadas en la duración\n\n"
        "Responde en formato JSON:\n"
        f"{SPEAKER_JSON_SHAPE}"
    )


def build_characteristics_prompt(transcript: str) -> str:
    return (
        "Analiza las características de voz en esta transcripción:\n\n"
        f'"{transcript}"\n\n'
        "Identifica:\n"
        "1. Género (masculino/femenino/desconocido)\n"
        "2. Rango de edad (joven/adulto/mayor/desconocido)\n"
        "3. Idioma detectado\n"
        "4. Acento o región\n\n"
        "Responde en formato JSON:\n"
        f"{CHARACTERISTICS_JSON_SHAPE}"
    )


def build_recordings_context(recordings: Sequence[Mapping[str, object]]) -> str:
    """Flatten stored recordings into the JSON context handed to chat prompts."""

    entries: list[dict[str, str]] = []
    for recording in recordings:
        created_at = recording.get("created_at")
        date = created_at.date().isoformat() if isinstance(created_at, datetime) else ""
        transcript = str(recording.get("transcript") or "")
        content = (
            recording.get("summary")
            or transcript[:RECORDING_CONTEXT_CHARS]
            or "Sin contenido disponible"
        )
        entries.append(
            {
                "title": str(recording.get("title") or ""),
                "date": date,
                "content": str(content),
            }
        )
    if not entries:
        return NO_CONTEXT
    return (
        "Tienes acceso a las siguientes conversaciones del usuario:\n"
        + json.dumps(entries, ensure_ascii=False, indent=2)
    )


def _format_seconds(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:.1f}"


__all__ = [
    "build_analysis_prompt",
    "build_chat_prompt",
    "build_speaker_prompt",
    "build_characteristics_prompt",
    "build_recordings_context",
]
