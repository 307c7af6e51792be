"""Tests for provider dispatch, degradation to fallback and speaker attachment."""

from __future__ import annotations

import asyncio
import json
import threading

import pytest

from memoria.services.analysis_dispatcher import AnalysisDispatcher
from memoria.services.errors import (
    CapabilityUnsupportedError,
    ProviderError,
    ProviderTimeoutError,
    ProviderUnavailableError,
)
from memoria.services.providers import (
    ProviderClient,
    ProviderConfig,
    ProviderEntry,
    ProviderKind,
    ProviderRegistry,
)
from memoria.services.response_contract import AnalysisSource

TRANSCRIPT = "Necesito comprar leche. Reunión mañana a las 10."

ANALYSIS_REPLY = json.dumps(
    {
        "summary": "• Comprar leche\n• Reunión a las 10",
        "tasks": [
            {"id": "uuid", "title": "Comprar leche", "priority": "high"},
            {"id": "uuid", "title": "Reunión", "priority": "medium"},
        ],
        "diaryEntry": "Hoy planifiqué la compra y la reunión.",
    }
)


class ScriptedClient(ProviderClient):
    """Returns canned replies, or raises when a reply is an exception."""

    def __init__(self, entry, replies, **kwargs):
        super().__init__(entry)
        self.replies = list(replies)
        self.prompts: list[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, BaseException):
            raise reply
        return reply


class SlowClient(ProviderClient):
    async def complete(self, prompt: str) -> str:
        await asyncio.sleep(5)
        return "{}"


def _entry(kind: ProviderKind = ProviderKind.OPENAI) -> ProviderEntry:
    return ProviderEntry(
        name=kind.value,
        kind=kind,
        config=ProviderConfig(model="test-model", base_url="http://provider.test", api_key="k"),
    )


def _dispatcher(replies, **kwargs) -> tuple[AnalysisDispatcher, dict]:
    registry = ProviderRegistry([_entry(), _entry(ProviderKind.GROQ)], ProviderKind.OPENAI)
    created: dict[ProviderKind, ScriptedClient] = {}

    def factory(entry, **options):
        client = ScriptedClient(entry, replies)
        created[entry.kind] = client
        return client

    return AnalysisDispatcher(registry, client_factory=factory, **kwargs), created


def test_analyze_parses_provider_reply_with_unique_task_ids():
    dispatcher, _ = _dispatcher([ANALYSIS_REPLY])

    result = asyncio.run(dispatcher.analyze(TRANSCRIPT, "Notas"))

    assert result.source is AnalysisSource.PROVIDER
    assert result.summary.startswith("• Comprar leche")
    ids = [task.id for task in result.tasks]
    assert len(ids) == 2
    assert all(ids) and len(set(ids)) == 2


def test_analyze_without_duration_leaves_speakers_unset():
    dispatcher, created = _dispatcher([ANALYSIS_REPLY])

    result = asyncio.run(dispatcher.analyze(TRANSCRIPT, "Notas"))

    assert result.speakers is None
    assert "speakers" not in result.model_dump(exclude_none=True)
    assert len(created[ProviderKind.OPENAI].prompts) == 1


@pytest.mark.parametrize(
    "error",
    [
        ProviderUnavailableError("openai", "connection refused"),
        ProviderError("openai", "HTTP 500"),
        RuntimeError("unexpected client bug"),
    ],
)
def test_analyze_degrades_when_provider_throws(error):
    dispatcher, _ = _dispatcher([error])

    result = asyncio.run(dispatcher.analyze(TRANSCRIPT, "Notas"))

    assert result.source is AnalysisSource.FALLBACK
    assert result.tasks == []
    assert result.summary == f"Resumen: {TRANSCRIPT[:200]}..."
    assert result.diary_entry == f"Entrada de diario: {TRANSCRIPT[:300]}..."


def test_analyze_with_duration_and_failing_provider_uses_fallback_speakers():
    dispatcher, _ = _dispatcher([ProviderUnavailableError("openai", "down")])

    result = asyncio.run(dispatcher.analyze(TRANSCRIPT, "Notas", 20))

    assert result.source is AnalysisSource.FALLBACK
    assert result.speakers is not None
    segments = result.speakers[0].segments
    assert [(s.start, s.end) for s in segments] == [(0, 10), (10, 20)]
    assert [s.text for s in segments] == ["Necesito comprar leche", "Reunión mañana a las 10"]
    assert all(s.confidence == 0.8 for s in segments)


def test_analyze_with_duration_uses_provider_speakers():
    speaker_reply = json.dumps(
        {
            "speakers": [
                {"id": "speaker_1", "name": "Ana", "segments": [{"start": 0, "end": 20, "text": "todo"}]}
            ]
        }
    )
    dispatcher, created = _dispatcher([ANALYSIS_REPLY, speaker_reply])

    result = asyncio.run(dispatcher.analyze(TRANSCRIPT, "Notas", 20))

    assert result.source is AnalysisSource.PROVIDER
    assert [speaker.name for speaker in result.speakers] == ["Ana"]
    assert len(created[ProviderKind.OPENAI].prompts) == 2


def test_analyze_unparsable_reply_degrades():
    dispatcher, _ = _dispatcher(["Lo siento, no entiendo la petición."])

    result = asyncio.run(dispatcher.analyze(TRANSCRIPT, "Notas"))

    assert result.source is AnalysisSource.FALLBACK
    assert result.tasks == []


def test_analyze_times_out_to_fallback():
    registry = ProviderRegistry([_entry()], ProviderKind.OPENAI)
    dispatcher = AnalysisDispatcher(
        registry,
        client_factory=lambda entry, **options: SlowClient(entry),
        timeout=0.05,
    )

    result = asyncio.run(dispatcher.analyze(TRANSCRIPT, "Notas"))

    assert result.source is AnalysisSource.FALLBACK


def test_chat_surfaces_timeout():
    registry = ProviderRegistry([_entry()], ProviderKind.OPENAI)
    dispatcher = AnalysisDispatcher(
        registry,
        client_factory=lambda entry, **options: SlowClient(entry),
        timeout=0.05,
    )

    with pytest.raises(ProviderTimeoutError):
        asyncio.run(dispatcher.chat("hola"))


def test_chat_uses_currently_active_provider():
    dispatcher, created = _dispatcher(["respuesta"])
    dispatcher.registry.set_active("groq")

    reply = asyncio.run(dispatcher.chat("hola", "contexto"))

    assert reply == "respuesta"
    assert ProviderKind.GROQ in created
    assert ProviderKind.OPENAI not in created
    assert "contexto" in created[ProviderKind.GROQ].prompts[0]


def test_chat_wraps_unexpected_errors():
    dispatcher, _ = _dispatcher([ValueError("bad")])

    with pytest.raises(ProviderError):
        asyncio.run(dispatcher.chat("hola"))


def test_transcribe_unsupported_backend_raises_capability_error():
    dispatcher, _ = _dispatcher(["unused"])

    with pytest.raises(CapabilityUnsupportedError):
        asyncio.run(dispatcher.transcribe(b"audio", "nota.webm", "audio/webm"))


def test_no_active_provider_degrades_analysis_and_fails_chat():
    registry = ProviderRegistry([_entry()], ProviderKind.GROQ)
    dispatcher = AnalysisDispatcher(registry, client_factory=lambda entry, **options: None)

    result = asyncio.run(dispatcher.analyze(TRANSCRIPT, "Notas"))

    assert result.source is AnalysisSource.FALLBACK
    with pytest.raises(ProviderUnavailableError):
        asyncio.run(dispatcher.chat("hola"))


def test_clients_are_built_once_per_backend():
    calls: list[ProviderKind] = []
    registry = ProviderRegistry([_entry(), _entry(ProviderKind.GROQ)], ProviderKind.OPENAI)

    def factory(entry, **options):
        calls.append(entry.kind)
        assert options["timeout"] == 60.0
        return ScriptedClient(entry, ["ok"])

    dispatcher = AnalysisDispatcher(registry, client_factory=factory)
    dispatcher.warm_up()
    asyncio.run(dispatcher.chat("hola"))

    assert calls == [ProviderKind.OPENAI, ProviderKind.GROQ]


def test_lazily_built_clients_are_constructed_off_the_event_loop():
    loop_thread = threading.get_ident()
    build_threads: list[int] = []
    registry = ProviderRegistry([_entry(ProviderKind.OLLAMA)], ProviderKind.OLLAMA)

    def factory(entry, **options):
        build_threads.append(threading.get_ident())
        return ScriptedClient(entry, ["hola"])

    dispatcher = AnalysisDispatcher(registry, client_factory=factory)

    assert asyncio.run(dispatcher.chat("hola")) == "hola"
    assert asyncio.run(dispatcher.chat("otra vez")) == "hola"
    assert len(build_threads) == 1
    assert build_threads[0] != loop_thread
