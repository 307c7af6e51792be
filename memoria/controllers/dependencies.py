"""Common FastAPI dependencies reused across controllers."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from memoria.config.settings import settings
from memoria.database import get_session
from memoria.services.analysis_dispatcher import AnalysisDispatcher
from memoria.services.analysis_guard import AnalysisGuard
from memoria.services.providers import ProviderRegistry
from memoria.services.record_store import ChatStore, RecordStore

SessionDep = Annotated[AsyncSession, Depends(get_session)]

# Process-wide state: the active provider is chosen from the environment at
# import and only changed through POST /api/ai-config/providers/{name}.
_registry = ProviderRegistry.from_settings(settings)
_dispatcher = AnalysisDispatcher.from_settings(_registry, settings)
_guard = AnalysisGuard()


def get_provider_registry() -> ProviderRegistry:
    return _registry


def get_analysis_dispatcher() -> AnalysisDispatcher:
    return _dispatcher


def get_analysis_guard() -> AnalysisGuard:
    return _guard


def get_record_store(session: SessionDep) -> RecordStore:
    return RecordStore(session)


def get_chat_store(session: SessionDep) -> ChatStore:
    return ChatStore(session)


RegistryDep = Annotated[ProviderRegistry, Depends(get_provider_registry)]
DispatcherDep = Annotated[AnalysisDispatcher, Depends(get_analysis_dispatcher)]
GuardDep = Annotated[AnalysisGuard, Depends(get_analysis_guard)]
RecordStoreDep = Annotated[RecordStore, Depends(get_record_store)]
ChatStoreDep = Annotated[ChatStore, Depends(get_chat_store)]


__all__ = [
    "SessionDep",
    "RegistryDep",
    "DispatcherDep",
    "GuardDep",
    "RecordStoreDep",
    "ChatStoreDep",
    "get_provider_registry",
    "get_analysis_dispatcher",
    "get_analysis_guard",
    "get_record_store",
    "get_chat_store",
]
