"""AI backend catalog and per-backend HTTP clients."""

from .clients import (
    HuggingFaceClient,
    OllamaClient,
    OpenAIClient,
    OpenAICompatibleClient,
    ProviderClient,
    create_provider_client,
)
from .registry import (
    ProviderConfig,
    ProviderDescriptor,
    ProviderEntry,
    ProviderKind,
    ProviderRegistry,
)

__all__ = [
    "ProviderClient",
    "OpenAICompatibleClient",
    "OpenAIClient",
    "OllamaClient",
    "HuggingFaceClient",
    "create_provider_client",
    "ProviderConfig",
    "ProviderDescriptor",
    "ProviderEntry",
    "ProviderKind",
    "ProviderRegistry",
]
