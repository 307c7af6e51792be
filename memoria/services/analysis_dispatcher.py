"""Provider dispatch for transcript analysis, chat and transcription.

``analyze`` never raises for provider-level problems: a failed call, a
timeout or an unparsable reply all degrade to the deterministic fallback
result from ``response_contract``. ``chat`` and ``transcribe`` surface
``ProviderError`` to the caller instead.
"""

from __future__ import annotations

import asyncio
import logging
import time
from functools import partial
from typing import Any, Callable

from fastapi.concurrency import run_in_threadpool

from memoria.config.settings import Settings
from memoria.services.errors import (
    ProviderError,
    ProviderTimeoutError,
    ProviderUnavailableError,
)
from memoria.services.prompt_builder import build_analysis_prompt, build_chat_prompt
from memoria.services.providers import (
    ProviderClient,
    ProviderEntry,
    ProviderKind,
    ProviderRegistry,
    create_provider_client,
)
from memoria.services.response_contract import (
    AnalysisResult,
    AnalysisSource,
    extract_analysis,
    fallback_analysis,
)
from memoria.services.speaker_segmenter import SpeakerSegmenter
from memoria.telemetry import observe_analysis, observe_provider_call

logger = logging.getLogger("memoria.services.analysis")

ClientFactory = Callable[..., ProviderClient]
SegmenterFactory = Callable[..., SpeakerSegmenter]


def _truncate(value: str, max_length: int = 500) -> str:
    if len(value) <= max_length:
        return value
    return value[: max_length - 3] + "..."


class AnalysisDispatcher:
    """Route prompts to the active provider and normalise what comes back."""

    def __init__(
        self,
        registry: ProviderRegistry,
        *,
        client_factory: ClientFactory = create_provider_client,
        segmenter_factory: SegmenterFactory = SpeakerSegmenter,
        timeout: float = 60.0,
        probe_timeout: float = 2.0,
        temperature: float = 0.7,
        max_tokens: int = 1000,
        summary_chars: int = 200,
        diary_chars: int = 300,
        speaker_characteristics: bool = False,
    ) -> None:
        self._registry = registry
        self._client_factory = client_factory
        self._segmenter_factory = segmenter_factory
        self._timeout = timeout
        self._probe_timeout = probe_timeout
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._summary_chars = summary_chars
        self._diary_chars = diary_chars
        self._speaker_characteristics = speaker_characteristics
        self._clients: dict[ProviderKind, ProviderClient] = {}

    @classmethod
    def from_settings(cls, registry: ProviderRegistry, settings: Settings) -> "AnalysisDispatcher":
        analysis = settings.analysis
        return cls(
            registry,
            timeout=analysis.provider_timeout_seconds,
            probe_timeout=analysis.probe_timeout_seconds,
            temperature=analysis.temperature,
            max_tokens=analysis.max_tokens,
            summary_chars=analysis.summary_prefix_chars,
            diary_chars=analysis.diary_prefix_chars,
            speaker_characteristics=analysis.speaker_characteristics,
        )

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    def client_for(self, entry: ProviderEntry) -> ProviderClient:
        """Return the cached client for ``entry``, building it on first use."""

        client = self._clients.get(entry.kind)
        if client is None:
            client = self._client_factory(
                entry,
                timeout=self._timeout,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                probe_timeout=self._probe_timeout,
            )
            self._clients[entry.kind] = client
        return client

    def warm_up(self) -> None:
        """Build every client up front (Ollama probes its server here)."""

        for entry in self._registry.entries():
            try:
                self.client_for(entry)
            except Exception:  # pragma: no cover - configuration issue
                logger.exception("No se pudo inicializar el cliente %s", entry.kind.value)

    async def analyze(
        self,
        transcript: str,
        title: str,
        duration_seconds: float | None = None,
    ) -> AnalysisResult:
        """Summary, tasks and diary entry; speakers too when a duration is known."""

        entry = self._registry.get_active_entry()
        provider_label = entry.kind.value if entry else "none"
        logger.info(
            "Analizando transcripción provider=%s title=%s chars=%s duration=%s",
            provider_label,
            title,
            len(transcript),
            duration_seconds,
        )

        try:
            client = await self._require_client(entry)
            raw_response = await self._complete(client, build_analysis_prompt(transcript, title))
        except ProviderError as exc:
            logger.warning("Proveedor %s falló; usando resultado degradado: %s", provider_label, exc)
            result = fallback_analysis(
                transcript,
                summary_chars=self._summary_chars,
                diary_chars=self._diary_chars,
            )
        else:
            logger.info(
                "Respuesta cruda provider=%s: %s",
                provider_label,
                _truncate(raw_response),
            )
            result = extract_analysis(
                raw_response,
                transcript,
                summary_chars=self._summary_chars,
                diary_chars=self._diary_chars,
            )
            if result.source is AnalysisSource.FALLBACK:
                logger.warning("Respuesta sin JSON interpretable provider=%s", provider_label)

        if duration_seconds is not None and duration_seconds > 0:
            try:
                segmenter = self._segmenter_factory(
                    partial(self._chat_with, entry),
                    with_characteristics=self._speaker_characteristics,
                )
                voice_analysis = await segmenter.segment(transcript, duration_seconds)
                result.speakers = voice_analysis.speakers
            except Exception:
                logger.exception("Segmentación de hablantes falló; se omite 'speakers'")

        observe_analysis(provider_label, result.source.value)
        return result

    async def chat(self, message: str, context: str | None = None) -> str:
        """Free-form chat through the active provider; raises ``ProviderError``."""

        return await self._chat_with(self._registry.get_active_entry(), message, context)

    async def transcribe(self, audio_bytes: bytes, filename: str, content_type: str) -> str:
        """Speech-to-text on the active provider; raises ``ProviderError``."""

        client = await self._require_client(self._registry.get_active_entry())
        return await self._bounded(
            client,
            client.transcribe(audio_bytes, filename, content_type),
        )

    async def _chat_with(
        self,
        entry: ProviderEntry | None,
        message: str,
        context: str | None = None,
    ) -> str:
        client = await self._require_client(entry)
        return await self._complete(client, build_chat_prompt(message, context))

    async def _require_client(self, entry: ProviderEntry | None) -> ProviderClient:
        if entry is None:
            raise ProviderUnavailableError("none", "no active AI provider")
        client = self._clients.get(entry.kind)
        if client is not None:
            return client
        # Construction may probe the backend synchronously (Ollama).
        try:
            return await run_in_threadpool(self.client_for, entry)
        except Exception as exc:
            raise ProviderUnavailableError(entry.name, exc) from exc

    async def _complete(self, client: ProviderClient, prompt: str) -> str:
        return await self._bounded(client, client.complete(prompt))

    async def _bounded(self, client: ProviderClient, call: Any) -> Any:
        """Await ``call`` under the per-call timeout; every failure becomes ProviderError."""

        started = time.perf_counter()
        try:
            result = await asyncio.wait_for(call, timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            error = ProviderTimeoutError(client.name, f"no response after {self._timeout}s")
            observe_provider_call(client.kind.value, time.perf_counter() - started, error)
            raise error from exc
        except ProviderError as exc:
            observe_provider_call(client.kind.value, time.perf_counter() - started, exc)
            raise
        except Exception as exc:
            observe_provider_call(client.kind.value, time.perf_counter() - started, exc)
            raise ProviderError(client.name, exc) from exc

        observe_provider_call(client.kind.value, time.perf_counter() - started)
        return result


__all__ = ["AnalysisDispatcher"]
