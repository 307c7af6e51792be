"""HTTP clients for the supported chat-completion backends.

Each client issues exactly one request per ``complete`` call, waits for the
whole body (no streaming) and returns the raw text. Transport, status and
payload problems are all raised as ``ProviderError`` subclasses; nothing is
retried here.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Mapping

import httpx

from memoria.services.errors import (
    CapabilityUnsupportedError,
    ProviderError,
    ProviderTimeoutError,
    ProviderUnavailableError,
)
from memoria.services.providers.registry import ProviderEntry, ProviderKind

logger = logging.getLogger(__name__)


class ProviderClient(ABC):
    """Common surface for every backend variant."""

    def __init__(
        self,
        entry: ProviderEntry,
        *,
        timeout: float = 60.0,
        temperature: float = 0.7,
        max_tokens: int = 1000,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.entry = entry
        self._timeout = timeout
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._transport = transport

    @property
    def name(self) -> str:
        return self.entry.name

    @property
    def kind(self) -> ProviderKind:
        return self.entry.kind

    @abstractmethod
    async def complete(self, prompt: str) -> str:
        """Send ``prompt`` and return the full text reply."""

    async def transcribe(self, audio_bytes: bytes, filename: str, content_type: str) -> str:
        raise CapabilityUnsupportedError(self.name, "audio transcription")

    def _http_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    def _auth_headers(self) -> dict[str, str]:
        api_key = self.entry.config.api_key
        if not api_key:
            raise ProviderUnavailableError(self.name, "API key not configured")
        return {"Authorization": f"Bearer {api_key}"}

    async def _post(
        self,
        url: str,
        *,
        json_body: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        files: Mapping[str, Any] | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> Any:
        """POST and decode the JSON body, mapping httpx failures to ProviderError."""

        async with self._http_client() as client:
            try:
                response = await client.post(
                    url,
                    json=json_body,
                    headers=headers,
                    files=files,
                    data=data,
                )
                response.raise_for_status()
                return response.json()
            except httpx.TimeoutException as exc:
                raise ProviderTimeoutError(self.name, exc) from exc
            except httpx.HTTPStatusError as exc:
                raise ProviderError(
                    self.name,
                    f"HTTP {exc.response.status_code}: {exc.response.reason_phrase}",
                ) from exc
            except httpx.RequestError as exc:
                raise ProviderUnavailableError(self.name, exc) from exc
            except ValueError as exc:
                raise ProviderError(self.name, f"invalid JSON body: {exc}") from exc


class OpenAICompatibleClient(ProviderClient):
    """``/chat/completions`` backends: OpenAI, Groq, Together."""

    async def complete(self, prompt: str) -> str:
        headers = self._auth_headers()
        payload = {
            "model": self.entry.config.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self._max_tokens,
            "temperature": self._temperature,
        }
        data = await self._post(
            f"{self.entry.config.base_url}/chat/completions",
            json_body=payload,
            headers=headers,
        )
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise ProviderError(self.name, f"malformed completion payload: {exc!r}") from exc
        return content or ""


class OpenAIClient(OpenAICompatibleClient):
    """OpenAI is the only backend with speech-to-text."""

    async def transcribe(self, audio_bytes: bytes, filename: str, content_type: str) -> str:
        if not audio_bytes:
            raise ProviderError(self.name, "empty audio payload")
        headers = self._auth_headers()
        data = await self._post(
            f"{self.entry.config.base_url}/audio/transcriptions",
            headers=headers,
            files={"file": (filename, audio_bytes, content_type)},
            data={"model": self.entry.config.transcription_model or "whisper-1"},
        )
        try:
            return str(data["text"]).strip()
        except (KeyError, TypeError) as exc:
            raise ProviderError(self.name, f"malformed transcription payload: {exc!r}") from exc


class OllamaClient(ProviderClient):
    """Local Ollama server using ``/api/generate`` with ``stream=false``.

    The server is probed once at construction; ``available`` is then kept
    up to date by every ``complete`` call.
    """

    def __init__(
        self,
        entry: ProviderEntry,
        *,
        probe: bool = True,
        probe_timeout: float = 2.0,
        **kwargs: Any,
    ) -> None:
        super().__init__(entry, **kwargs)
        self.available: bool | None = None
        if probe:
            self.available = self._probe(probe_timeout)

    def _probe(self, timeout: float) -> bool:
        try:
            response = httpx.get(f"{self.entry.config.base_url}/api/tags", timeout=timeout)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Ollama no disponible en %s: %s", self.entry.config.base_url, exc)
            return False
        logger.info("Ollama disponible en %s", self.entry.config.base_url)
        return True

    async def complete(self, prompt: str) -> str:
        if self.available is False:
            logger.info("Ollama marcado como no disponible; se intenta de nuevo")
        payload = {
            "model": self.entry.config.model,
            "prompt": prompt,
            "stream": False,
        }
        try:
            data = await self._post(f"{self.entry.config.base_url}/api/generate", json_body=payload)
            text = data["response"]
        except ProviderError:
            self.available = False
            raise
        except (KeyError, TypeError) as exc:
            self.available = False
            raise ProviderError(self.name, f"malformed generate payload: {exc!r}") from exc
        self.available = True
        return text or ""


class HuggingFaceClient(ProviderClient):
    """Hugging Face hosted inference API (text-generation task)."""

    async def complete(self, prompt: str) -> str:
        headers = self._auth_headers()
        payload = {
            "inputs": prompt,
            "parameters": {
                "max_new_tokens": self._max_tokens,
                "temperature": self._temperature,
                "return_full_text": False,
            },
        }
        data = await self._post(
            f"{self.entry.config.base_url}/{self.entry.config.model}",
            json_body=payload,
            headers=headers,
        )
        if isinstance(data, Mapping) and data.get("error"):
            raise ProviderError(self.name, data["error"])
        first = data[0] if isinstance(data, list) and data else data
        if not isinstance(first, Mapping) or "generated_text" not in first:
            raise ProviderError(self.name, "malformed inference payload")
        return str(first["generated_text"])


_CLIENT_TYPES: dict[ProviderKind, type[ProviderClient]] = {
    ProviderKind.OPENAI: OpenAIClient,
    ProviderKind.OLLAMA: OllamaClient,
    ProviderKind.GROQ: OpenAICompatibleClient,
    ProviderKind.TOGETHER: OpenAICompatibleClient,
    ProviderKind.HUGGINGFACE: HuggingFaceClient,
}


def create_provider_client(entry: ProviderEntry, **kwargs: Any) -> ProviderClient:
    """Instantiate the client variant matching ``entry.kind``."""

    client_type = _CLIENT_TYPES[entry.kind]
    if client_type is not OllamaClient:
        kwargs.pop("probe", None)
        kwargs.pop("probe_timeout", None)
    return client_type(entry, **kwargs)


__all__ = [
    "ProviderClient",
    "OpenAICompatibleClient",
    "OpenAIClient",
    "OllamaClient",
    "HuggingFaceClient",
    "create_provider_client",
]
