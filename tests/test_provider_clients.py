"""HTTP-level tests for the provider clients using ``httpx.MockTransport``."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from memoria.services.errors import (
    CapabilityUnsupportedError,
    ProviderError,
    ProviderTimeoutError,
    ProviderUnavailableError,
)
from memoria.services.providers import (
    HuggingFaceClient,
    OllamaClient,
    OpenAIClient,
    OpenAICompatibleClient,
    ProviderConfig,
    ProviderEntry,
    ProviderKind,
    create_provider_client,
)


def _entry(kind: ProviderKind, *, api_key: str | None = "secret", base_url: str = "http://provider.test/v1") -> ProviderEntry:
    return ProviderEntry(
        name=kind.value,
        kind=kind,
        config=ProviderConfig(
            model="test-model",
            base_url=base_url,
            api_key=api_key,
            transcription_model="whisper-1",
        ),
        requires_api_key=kind is not ProviderKind.OLLAMA,
    )


def test_openai_compatible_posts_chat_completion():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"choices": [{"message": {"content": "hola"}}]})

    client = OpenAICompatibleClient(
        _entry(ProviderKind.GROQ),
        max_tokens=42,
        temperature=0.1,
        transport=httpx.MockTransport(handler),
    )

    assert asyncio.run(client.complete("prompt")) == "hola"
    assert seen["url"] == "http://provider.test/v1/chat/completions"
    assert seen["auth"] == "Bearer secret"
    assert seen["body"] == {
        "model": "test-model",
        "messages": [{"role": "user", "content": "prompt"}],
        "max_tokens": 42,
        "temperature": 0.1,
    }


def test_missing_api_key_is_unavailable():
    client = OpenAICompatibleClient(_entry(ProviderKind.OPENAI, api_key=None))

    with pytest.raises(ProviderUnavailableError):
        asyncio.run(client.complete("prompt"))


def test_http_error_status_maps_to_provider_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(429, json={"error": "rate"}))
    client = OpenAICompatibleClient(_entry(ProviderKind.TOGETHER), transport=transport)

    with pytest.raises(ProviderError) as excinfo:
        asyncio.run(client.complete("prompt"))

    assert "HTTP 429" in str(excinfo.value)
    assert not isinstance(excinfo.value, ProviderUnavailableError)


def test_connection_failure_maps_to_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = OpenAICompatibleClient(_entry(ProviderKind.GROQ), transport=httpx.MockTransport(handler))

    with pytest.raises(ProviderUnavailableError):
        asyncio.run(client.complete("prompt"))


def test_transport_timeout_maps_to_timeout_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    client = OpenAICompatibleClient(_entry(ProviderKind.GROQ), transport=httpx.MockTransport(handler))

    with pytest.raises(ProviderTimeoutError):
        asyncio.run(client.complete("prompt"))


def test_malformed_completion_payload_raises():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"choices": []}))
    client = OpenAICompatibleClient(_entry(ProviderKind.GROQ), transport=transport)

    with pytest.raises(ProviderError):
        asyncio.run(client.complete("prompt"))


def test_openai_transcription_posts_multipart():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["content_type"] = request.headers.get("content-type", "")
        seen["body"] = request.content
        return httpx.Response(200, json={"text": "  hola mundo  "})

    client = OpenAIClient(_entry(ProviderKind.OPENAI), transport=httpx.MockTransport(handler))

    text = asyncio.run(client.transcribe(b"RIFFdata", "nota.webm", "audio/webm"))

    assert text == "hola mundo"
    assert seen["url"] == "http://provider.test/v1/audio/transcriptions"
    assert seen["content_type"].startswith("multipart/form-data")
    assert b"whisper-1" in seen["body"]
    assert b"RIFFdata" in seen["body"]


@pytest.mark.parametrize("kind", [ProviderKind.GROQ, ProviderKind.TOGETHER, ProviderKind.HUGGINGFACE])
def test_other_backends_do_not_transcribe(kind):
    client = create_provider_client(_entry(kind))

    with pytest.raises(CapabilityUnsupportedError):
        asyncio.run(client.transcribe(b"audio", "nota.webm", "audio/webm"))


def test_ollama_generate_updates_availability():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"response": "respuesta local", "done": True})

    client = OllamaClient(
        _entry(ProviderKind.OLLAMA, api_key=None, base_url="http://ollama.test"),
        probe=False,
        transport=httpx.MockTransport(handler),
    )
    assert client.available is None

    assert asyncio.run(client.complete("prompt")) == "respuesta local"
    assert client.available is True
    assert seen["url"] == "http://ollama.test/api/generate"
    assert seen["body"] == {"model": "test-model", "prompt": "prompt", "stream": False}


def test_ollama_failure_marks_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = OllamaClient(
        _entry(ProviderKind.OLLAMA, api_key=None, base_url="http://ollama.test"),
        probe=False,
        transport=httpx.MockTransport(handler),
    )

    with pytest.raises(ProviderUnavailableError):
        asyncio.run(client.complete("prompt"))
    assert client.available is False


def test_ollama_probe_checks_tags(monkeypatch: pytest.MonkeyPatch):
    requested: list[str] = []

    def fake_get(url, timeout):
        requested.append(url)
        return httpx.Response(200, json={"models": []}, request=httpx.Request("GET", url))

    monkeypatch.setattr("memoria.services.providers.clients.httpx.get", fake_get)

    client = OllamaClient(_entry(ProviderKind.OLLAMA, api_key=None, base_url="http://ollama.test"))

    assert client.available is True
    assert requested == ["http://ollama.test/api/tags"]


def test_huggingface_reads_generated_text():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        return httpx.Response(200, json=[{"generated_text": "texto"}])

    client = HuggingFaceClient(
        _entry(ProviderKind.HUGGINGFACE, base_url="http://hf.test/models"),
        transport=httpx.MockTransport(handler),
    )

    assert asyncio.run(client.complete("prompt")) == "texto"
    assert seen["url"] == "http://hf.test/models/test-model"


def test_huggingface_error_payload_raises():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"error": "loading"}))
    client = HuggingFaceClient(_entry(ProviderKind.HUGGINGFACE), transport=transport)

    with pytest.raises(ProviderError):
        asyncio.run(client.complete("prompt"))


def test_factory_selects_variant_and_drops_probe_options():
    client = create_provider_client(_entry(ProviderKind.OPENAI), timeout=5, probe_timeout=1)
    assert isinstance(client, OpenAIClient)

    groq = create_provider_client(_entry(ProviderKind.GROQ), probe=False)
    assert type(groq) is OpenAICompatibleClient
