"""Endpoints to inspect and switch the active AI provider."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status

from memoria.controllers.dependencies import DispatcherDep, RegistryDep
from memoria.services.errors import ProviderError
from memoria.services.providers import ProviderDescriptor
from memoria.views import (
    ProviderChangeResponse,
    ProvidersResponse,
    ProviderTestRequest,
    ProviderTestResponse,
    ProviderView,
)

router = APIRouter(prefix="/api/ai-config", tags=["ai-config"])

logger = logging.getLogger(__name__)


def _serialize_provider(descriptor: ProviderDescriptor) -> ProviderView:
    return ProviderView(
        name=descriptor.name,
        type=descriptor.kind.value,
        enabled=descriptor.enabled,
        hasConfig=descriptor.has_config,
        model=descriptor.model,
    )


@router.get("/providers", response_model=ProvidersResponse)
async def list_providers(registry: RegistryDep) -> ProvidersResponse:
    active = registry.get_active()
    return ProvidersResponse(
        providers=[_serialize_provider(descriptor) for descriptor in registry.list()],
        activeProvider=_serialize_provider(active) if active else None,
    )


@router.post("/providers/{name}", response_model=ProviderChangeResponse)
async def set_active_provider(name: str, registry: RegistryDep) -> ProviderChangeResponse:
    """Switch the process-wide active provider."""

    if not registry.set_active(name):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown provider: {name}",
        )
    active = registry.get_active()
    logger.info("Proveedor de IA activo cambiado a %s", active.kind.value)
    return ProviderChangeResponse(
        message=f"Proveedor cambiado a {active.name}",
        activeProvider=_serialize_provider(active),
    )


@router.post("/test", response_model=ProviderTestResponse)
async def test_provider(payload: ProviderTestRequest, dispatcher: DispatcherDep) -> ProviderTestResponse:
    """Send ``message`` straight to the active provider and echo its reply."""

    try:
        reply = await dispatcher.chat(payload.message)
    except ProviderError as exc:
        logger.warning("Prueba de proveedor fallida: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Provider error: {exc}",
        ) from exc
    return ProviderTestResponse(response=reply)
