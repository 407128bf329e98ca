# -*- coding: utf-8 -*-
"""API routes for providers."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Path
from pydantic import BaseModel, Field

from ...providers import (
    ConfigStore,
    Provider,
    ProviderNotFound,
    mask_api_key,
)
from ..deps import get_store

router = APIRouter(prefix="/providers", tags=["providers"])


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


class ProviderRequest(BaseModel):
    """Request body for creating or updating a provider.

    On update, fields left as ``None`` keep their current value.
    """

    model_config = {"populate_by_name": True}

    name: Optional[str] = Field(default=None, description="Unique name")
    endpoint: Optional[str] = Field(
        default=None,
        description="Base URL without /v1",
    )
    type: Optional[str] = Field(default=None, description="Provider type")
    api_key: Optional[str] = Field(
        default=None,
        alias="apiKey",
        description="API key for the provider",
    )


class ValidityRequest(BaseModel):
    model_config = {"populate_by_name": True}

    is_valid: bool = Field(..., alias="isValid")


class ProviderInfo(BaseModel):
    """Provider as returned by the API (API key masked)."""

    model_config = {"protected_namespaces": ()}

    id: str
    name: str
    endpoint: str
    type: str
    is_valid: bool = False
    has_api_key: bool = Field(
        default=False,
        description="Whether api_key is configured",
    )
    current_api_key: str = Field(
        default="",
        description="Currently configured API key (masked)",
    )
    model_count: int = 0


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _build_provider_info(
    provider: Provider,
    store: ConfigStore,
) -> ProviderInfo:
    return ProviderInfo(
        id=provider.id,
        name=provider.name,
        endpoint=provider.endpoint,
        type=provider.type,
        is_valid=provider.is_valid,
        has_api_key=bool(provider.api_key),
        current_api_key=mask_api_key(provider.api_key),
        model_count=len(store.get_models_by_provider(provider.id)),
    )


def _request_fields(body: ProviderRequest) -> dict:
    return body.model_dump(exclude_none=True)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get(
    "",
    response_model=List[ProviderInfo],
    summary="List all providers",
)
async def list_all_providers(
    store: ConfigStore = Depends(get_store),
) -> List[ProviderInfo]:
    """List providers in collection order."""
    return [_build_provider_info(p, store) for p in store.get_providers()]


@router.get(
    "/{provider_id}",
    response_model=ProviderInfo,
    summary="Get one provider",
)
async def get_one_provider(
    provider_id: str = Path(..., description="Provider identifier"),
    store: ConfigStore = Depends(get_store),
) -> ProviderInfo:
    provider = store.get_provider(provider_id)
    if provider is None:
        raise ProviderNotFound(provider_id)
    return _build_provider_info(provider, store)


@router.post(
    "",
    response_model=ProviderInfo,
    status_code=201,
    summary="Create a provider",
    description="The store assigns the id. Names must be unique "
    "(case-insensitive).",
)
async def create_provider(
    body: ProviderRequest = Body(..., description="Provider to create"),
    store: ConfigStore = Depends(get_store),
) -> ProviderInfo:
    data = {"type": "openai", "api_key": "", **_request_fields(body)}
    provider = store.add_provider(data)
    return _build_provider_info(provider, store)


@router.put(
    "/{provider_id}",
    response_model=ProviderInfo,
    summary="Update a provider",
)
async def update_provider(
    provider_id: str = Path(..., description="Provider identifier"),
    body: ProviderRequest = Body(..., description="Fields to change"),
    store: ConfigStore = Depends(get_store),
) -> ProviderInfo:
    current = store.get_provider(provider_id)
    if current is None:
        raise ProviderNotFound(provider_id)
    provider = store.update_provider(
        current.model_copy(update=_request_fields(body)),
    )
    return _build_provider_info(provider, store)


@router.put(
    "/{provider_id}/validity",
    response_model=ProviderInfo,
    summary="Record a connectivity test outcome",
)
async def set_validity(
    provider_id: str = Path(..., description="Provider identifier"),
    body: ValidityRequest = Body(...),
    store: ConfigStore = Depends(get_store),
) -> ProviderInfo:
    provider = store.set_provider_validity(provider_id, body.is_valid)
    return _build_provider_info(provider, store)


@router.delete(
    "/{provider_id}",
    status_code=204,
    summary="Delete a provider and its models",
)
async def delete_provider(
    provider_id: str = Path(..., description="Provider identifier"),
    store: ConfigStore = Depends(get_store),
) -> None:
    store.delete_provider(provider_id)
