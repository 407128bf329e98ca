# -*- coding: utf-8 -*-
"""API routes moving configuration between the store and documents."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Body, Depends
from pydantic import BaseModel, Field

from ...providers import ConfigExchange, ConfigStore, DocumentError
from ..deps import get_project_dir, get_store

router = APIRouter(tags=["exchange"])


class ProjectRequest(BaseModel):
    project_dir: Optional[str] = Field(
        default=None,
        description="Target project; defaults to the server's project",
    )


def _exchange(
    store: ConfigStore,
    body: Optional[ProjectRequest],
    default_dir: Optional[Path],
) -> ConfigExchange:
    project_dir = (body.project_dir if body else None) or default_dir
    if not project_dir:
        raise DocumentError("No project directory configured")
    return ConfigExchange.for_project(store, project_dir)


@router.get(
    "/configuration",
    summary="Editor-format backup of all providers and models",
)
async def get_configuration(
    store: ConfigStore = Depends(get_store),
) -> dict:
    return store.export_configuration().to_dict()


@router.get(
    "/exchange/preview",
    summary="Deployment documents the current configuration produces",
)
async def preview_deployment(
    store: ConfigStore = Depends(get_store),
) -> dict:
    return ConfigExchange(store).build_deployment().to_dict()


@router.post(
    "/exchange/export",
    summary="Write supported-models.json and config.json",
)
async def export_deployment(
    body: Optional[ProjectRequest] = Body(default=None),
    store: ConfigStore = Depends(get_store),
    default_dir: Optional[Path] = Depends(get_project_dir),
) -> dict:
    exchange = _exchange(store, body, default_dir)
    return exchange.export_to_deployment_files().to_dict()


@router.post(
    "/exchange/import",
    summary="Replace the configuration with the deployment documents",
)
async def import_deployment(
    body: Optional[ProjectRequest] = Body(default=None),
    store: ConfigStore = Depends(get_store),
    default_dir: Optional[Path] = Depends(get_project_dir),
) -> dict:
    exchange = _exchange(store, body, default_dir)
    result = exchange.import_from_deployment_files()
    return {
        "providers": [p.to_dict() for p in result.providers],
        "models": [m.to_dict() for m in result.models],
    }
