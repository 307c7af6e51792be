"""Catalog of known AI backends and the process-wide active selection.

The selection is seeded from the environment at startup (local Ollama when
``OLLAMA_BASE_URL`` is set, OpenAI otherwise) and only changes through the
``/api/ai-config/providers/{name}`` endpoint. It is not persisted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence

from memoria.config.settings import Settings

logger = logging.getLogger(__name__)


class ProviderKind(str, Enum):
    """Transport families understood by the provider clients."""

    OPENAI = "openai"
    OLLAMA = "ollama"
    GROQ = "groq"
    TOGETHER = "together"
    HUGGINGFACE = "huggingface"


@dataclass(frozen=True)
class ProviderConfig:
    """Connection settings for one backend."""

    model: str
    base_url: str | None = None
    api_key: str | None = None
    transcription_model: str | None = None


@dataclass(frozen=True)
class ProviderEntry:
    name: str
    kind: ProviderKind
    config: ProviderConfig
    requires_api_key: bool = True

    @property
    def has_config(self) -> bool:
        if self.requires_api_key:
            return bool(self.config.api_key)
        return bool(self.config.base_url)


@dataclass(frozen=True)
class ProviderDescriptor:
    """Public view of a registry entry (never exposes credentials)."""

    name: str
    kind: ProviderKind
    enabled: bool
    has_config: bool
    model: str


def _secret(value) -> str | None:
    if value is None:
        return None
    return value.get_secret_value() or None


def build_provider_entries(settings: Settings) -> list[ProviderEntry]:
    """Return the static catalog, ordered as shown to the user."""

    return [
        ProviderEntry(
            name="OpenAI",
            kind=ProviderKind.OPENAI,
            config=ProviderConfig(
                model=settings.openai.model,
                base_url=settings.openai.base_url,
                api_key=_secret(settings.openai.api_key),
                transcription_model=settings.openai.transcription_model,
            ),
        ),
        ProviderEntry(
            name="Ollama (Local)",
            kind=ProviderKind.OLLAMA,
            config=ProviderConfig(
                model=settings.ollama.model,
                base_url=settings.ollama.resolved_base_url,
            ),
            requires_api_key=False,
        ),
        ProviderEntry(
            name="Groq",
            kind=ProviderKind.GROQ,
            config=ProviderConfig(
                model=settings.groq.model,
                base_url=settings.groq.base_url,
                api_key=_secret(settings.groq.api_key),
            ),
        ),
        ProviderEntry(
            name="Together AI",
            kind=ProviderKind.TOGETHER,
            config=ProviderConfig(
                model=settings.together.model,
                base_url=settings.together.base_url,
                api_key=_secret(settings.together.api_key),
            ),
        ),
        ProviderEntry(
            name="Hugging Face",
            kind=ProviderKind.HUGGINGFACE,
            config=ProviderConfig(
                model=settings.huggingface.model,
                base_url=settings.huggingface.base_url,
                api_key=_secret(settings.huggingface.api_key),
            ),
        ),
    ]


def default_provider_kind(settings: Settings) -> ProviderKind:
    """Pick the startup provider from the environment."""

    override = (settings.analysis.default_provider or "").strip().lower()
    if override:
        try:
            return ProviderKind(override)
        except ValueError:
            logger.warning("AI_DEFAULT_PROVIDER desconocido: %s; se ignora", override)

    if settings.ollama.base_url:
        return ProviderKind.OLLAMA
    return ProviderKind.OPENAI


class ProviderRegistry:
    """Ordered catalog with exactly one entry flagged active.

    ``set_active`` is last-write-wins; callers that need a stable provider
    for the duration of a request should read ``get_active_entry`` once.
    """

    def __init__(self, entries: Sequence[ProviderEntry], active: ProviderKind) -> None:
        self._entries: dict[ProviderKind, ProviderEntry] = {
            entry.kind: entry for entry in entries
        }
        self._active: ProviderKind | None = active if active in self._entries else None

    @classmethod
    def from_settings(cls, settings: Settings) -> "ProviderRegistry":
        registry = cls(build_provider_entries(settings), default_provider_kind(settings))
        logger.info("Proveedor de IA activo al iniciar: %s", registry._active)
        return registry

    def list(self) -> list[ProviderDescriptor]:
        return [self._describe(entry) for entry in self._entries.values()]

    def get_active(self) -> ProviderDescriptor | None:
        entry = self.get_active_entry()
        return self._describe(entry) if entry else None

    def get_active_entry(self) -> ProviderEntry | None:
        if self._active is None:
            return None
        return self._entries.get(self._active)

    def get_entry(self, kind: ProviderKind | str) -> ProviderEntry | None:
        resolved = self._resolve_kind(kind)
        return self._entries.get(resolved) if resolved else None

    def set_active(self, kind: ProviderKind | str) -> bool:
        """Flag ``kind`` active and every other entry inactive."""

        resolved = self._resolve_kind(kind)
        if resolved is None or resolved not in self._entries:
            return False
        if resolved != self._active:
            logger.info("Proveedor de IA cambiado: %s -> %s", self._active, resolved)
        self._active = resolved
        return True

    def entries(self) -> Iterable[ProviderEntry]:
        return tuple(self._entries.values())

    def _describe(self, entry: ProviderEntry) -> ProviderDescriptor:
        return ProviderDescriptor(
            name=entry.name,
            kind=entry.kind,
            enabled=entry.kind == self._active,
            has_config=entry.has_config,
            model=entry.config.model,
        )

    @staticmethod
    def _resolve_kind(kind: ProviderKind | str) -> ProviderKind | None:
        if isinstance(kind, ProviderKind):
            return kind
        try:
            return ProviderKind(str(kind).strip().lower())
        except ValueError:
            return None


__all__ = [
    "ProviderKind",
    "ProviderConfig",
    "ProviderEntry",
    "ProviderDescriptor",
    "ProviderRegistry",
    "build_provider_entries",
    "default_provider_kind",
]
