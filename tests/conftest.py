"""Shared test configuration: isolated SQLite database and log files."""

from __future__ import annotations

import asyncio
import os
import sys
import tempfile
from types import SimpleNamespace
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

# Must be set before memoria.config.settings is imported anywhere.
_TMP_DIR = Path(tempfile.mkdtemp(prefix="memoria-tests-"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR / 'test.sqlite'}"
os.environ["LOG_FILE"] = str(_TMP_DIR / "app.log")
os.environ["ANALYSIS_LOG_FILE"] = str(_TMP_DIR / "analysis.log")
os.environ["PERSIST_REQUEST_LOGS"] = "false"
os.environ["AI_DEFAULT_PROVIDER"] = "openai"
os.environ["AI_PROBE_TIMEOUT_SECONDS"] = "0.2"
os.environ.pop("OLLAMA_BASE_URL", None)


@pytest.fixture(scope="session", autouse=True)
def database_schema() -> None:
    """Create the tables once; TestClient is used without lifespan events."""

    from memoria.database import init_models

    asyncio.run(init_models())


class FakeProviderClient:
    """Stands in for an HTTP provider client; replies are scripted per test."""

    def __init__(self, entry, script: "ProviderScript") -> None:
        self.entry = entry
        self._script = script

    @property
    def name(self) -> str:
        return self.entry.name

    @property
    def kind(self):
        return self.entry.kind

    async def complete(self, prompt: str) -> str:
        self._script.prompts.append(prompt)
        reply = self._script.next_reply()
        if isinstance(reply, BaseException):
            raise reply
        return reply

    async def transcribe(self, audio_bytes: bytes, filename: str, content_type: str) -> str:
        from memoria.services.errors import CapabilityUnsupportedError

        if self._script.transcription is None:
            raise CapabilityUnsupportedError(self.name, "audio transcription")
        return self._script.transcription


class ProviderScript:
    def __init__(self) -> None:
        self.replies: list = []
        self.default: object = "{}"
        self.prompts: list[str] = []
        self.transcription: str | None = None

    def next_reply(self):
        return self.replies.pop(0) if self.replies else self.default


@pytest.fixture
def provider_script() -> ProviderScript:
    return ProviderScript()


@pytest.fixture
def api(provider_script: ProviderScript):
    """TestClient with a fresh registry, guard and scripted dispatcher."""

    from fastapi.testclient import TestClient

    from memoria.config.settings import settings
    from memoria.controllers.dependencies import (
        get_analysis_dispatcher,
        get_analysis_guard,
        get_provider_registry,
    )
    from memoria.main import app
    from memoria.services.analysis_dispatcher import AnalysisDispatcher
    from memoria.services.analysis_guard import AnalysisGuard
    from memoria.services.providers import ProviderRegistry

    registry = ProviderRegistry.from_settings(settings)
    dispatcher = AnalysisDispatcher(
        registry,
        client_factory=lambda entry, **options: FakeProviderClient(entry, provider_script),
        timeout=5,
    )
    guard = AnalysisGuard()

    app.dependency_overrides[get_provider_registry] = lambda: registry
    app.dependency_overrides[get_analysis_dispatcher] = lambda: dispatcher
    app.dependency_overrides[get_analysis_guard] = lambda: guard

    yield SimpleNamespace(client=TestClient(app), registry=registry, guard=guard)

    app.dependency_overrides.clear()
