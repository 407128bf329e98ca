# -*- coding: utf-8 -*-
"""API routes for models."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Path, Query
from pydantic import BaseModel, Field

from ...providers import ROLES, ConfigStore, Model, ModelNotFound
from ..deps import get_store

router = APIRouter(prefix="/models", tags=["models"])


class CostRequest(BaseModel):
    input: float = 0
    output: float = 0


class ModelRequest(BaseModel):
    """Request body for creating or updating a model.

    On update, fields left as ``None`` keep their current value.
    """

    model_config = {"protected_namespaces": (), "populate_by_name": True}

    name: Optional[str] = None
    provider_id: Optional[str] = Field(default=None, alias="providerId")
    model_id: Optional[str] = Field(default=None, alias="modelId")
    swe_score: Optional[float] = Field(
        default=None,
        alias="sweScore",
        description="SWE-bench score in percent",
    )
    max_tokens: Optional[int] = Field(default=None, alias="maxTokens")
    cost_per_1m_tokens: Optional[CostRequest] = Field(
        default=None,
        alias="costPer1MTokens",
    )
    allowed_roles: Optional[List[str]] = Field(
        default=None,
        alias="allowedRoles",
    )


def _request_fields(body: ModelRequest) -> dict:
    return body.model_dump(exclude_none=True)


@router.get(
    "",
    summary="List models",
    description="Models in collection order, optionally filtered.",
)
async def list_models(
    provider_id: Optional[str] = Query(default=None, alias="providerId"),
    role: Optional[str] = Query(default=None, description=", ".join(ROLES)),
    store: ConfigStore = Depends(get_store),
) -> List[dict]:
    if role is not None:
        models = store.get_models_by_role(role)
    else:
        models = store.get_models()
    if provider_id is not None:
        models = [m for m in models if m.provider_id == provider_id]
    return [m.to_dict() for m in models]


@router.get("/{model_id}", summary="Get one model")
async def get_one_model(
    model_id: str = Path(..., description="Model record id"),
    store: ConfigStore = Depends(get_store),
) -> dict:
    model = store.get_model(model_id)
    if model is None:
        raise ModelNotFound(model_id)
    return model.to_dict()


@router.post("", status_code=201, summary="Create a model")
async def create_model(
    body: ModelRequest = Body(..., description="Model to create"),
    store: ConfigStore = Depends(get_store),
) -> dict:
    data = _request_fields(body)
    data.setdefault("allowed_roles", ["main", "fallback"])
    return store.add_model(data).to_dict()


@router.put("/{model_id}", summary="Update a model")
async def update_model(
    model_id: str = Path(..., description="Model record id"),
    body: ModelRequest = Body(..., description="Fields to change"),
    store: ConfigStore = Depends(get_store),
) -> dict:
    current = store.get_model(model_id)
    if current is None:
        raise ModelNotFound(model_id)
    changes = _request_fields(body)
    merged = Model.model_validate({**current.model_dump(), **changes})
    return store.update_model(merged).to_dict()


@router.delete("/{model_id}", status_code=204, summary="Delete a model")
async def delete_model(
    model_id: str = Path(..., description="Model record id"),
    store: ConfigStore = Depends(get_store),
) -> None:
    store.delete_model(model_id)
