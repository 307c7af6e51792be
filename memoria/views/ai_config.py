"""Schemas for the AI provider administration endpoints."""

from typing import List, Optional

from pydantic import BaseModel, Field


class ProviderView(BaseModel):
    name: str
    type: str
    enabled: bool
    hasConfig: bool
    model: Optional[str] = None


class ProvidersResponse(BaseModel):
    providers: List[ProviderView]
    activeProvider: Optional[ProviderView] = None


class ProviderChangeResponse(BaseModel):
    message: str
    activeProvider: ProviderView


class ProviderTestRequest(BaseModel):
    """Free-form message sent verbatim to the active provider."""

    message: str = Field(..., min_length=1)


class ProviderTestResponse(BaseModel):
    response: str
