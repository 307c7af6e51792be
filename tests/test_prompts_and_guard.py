"""Tests for prompt construction and the per-recording analysis guard."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from memoria.services.analysis_guard import AnalysisGuard
from memoria.services.errors import AnalysisInProgressError
from memoria.services.prompt_builder import (
    NO_CONTEXT,
    build_analysis_prompt,
    build_chat_prompt,
    build_recordings_context,
    build_speaker_prompt,
)


def test_analysis_prompt_embeds_title_transcript_and_shape():
    prompt = build_analysis_prompt("Comprar pan.", "Lista")

    assert '"Lista"' in prompt
    assert "Comprar pan." in prompt
    assert '"diaryEntry"' in prompt


def test_speaker_prompt_formats_whole_seconds():
    assert "Duración del audio: 20 segundos" in build_speaker_prompt("Hola.", 20.0)
    assert "Duración del audio: 12.5 segundos" in build_speaker_prompt("Hola.", 12.5)


def test_chat_prompt_without_context_uses_placeholder():
    assert NO_CONTEXT in build_chat_prompt("hola")
    assert "Contexto: datos" in build_chat_prompt("hola", "datos")


def test_recordings_context_prefers_summary_and_truncates_transcript():
    created = datetime(2024, 3, 1, 9, 30, tzinfo=timezone.utc)

    context = build_recordings_context(
        [
            {"title": "A", "summary": "resumen", "transcript": "x" * 900, "created_at": created},
            {"title": "B", "summary": None, "transcript": "y" * 900, "created_at": created},
            {"title": "C", "summary": None, "transcript": None, "created_at": None},
        ]
    )

    entries = json.loads(context[context.index("[") :])
    assert entries[0] == {"title": "A", "date": "2024-03-01", "content": "resumen"}
    assert entries[1]["content"] == "y" * 500
    assert entries[2]["date"] == ""
    assert entries[2]["content"] == "Sin contenido disponible"


def test_recordings_context_empty():
    assert build_recordings_context([]) == NO_CONTEXT


def test_guard_allows_one_claim_per_recording():
    guard = AnalysisGuard()

    with guard.claim("rec-1"):
        assert guard.is_running("rec-1")
        with pytest.raises(AnalysisInProgressError):
            with guard.claim("rec-1"):
                pass
        with guard.claim("rec-2"):
            assert guard.is_running("rec-2")

    assert not guard.is_running("rec-1")
    assert not guard.is_running("rec-2")


def test_guard_releases_on_error():
    guard = AnalysisGuard()

    with pytest.raises(RuntimeError):
        with guard.claim("rec-1"):
            raise RuntimeError("provider exploded")

    assert not guard.is_running("rec-1")
