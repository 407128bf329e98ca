# -*- coding: utf-8 -*-
"""FastAPI application exposing the configuration store."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ..constant import DOCS_ENABLED
from ..providers import (
    ConfigError,
    ConfigStore,
    DocumentError,
    DuplicateModelId,
    DuplicateName,
    KeyCollision,
    ModelNotFound,
    ProviderNotFound,
    ValidationFailed,
)
from .routers import exchange, models, providers

logger = logging.getLogger(__name__)

# Error type -> HTTP status; anything else is a server-side failure.
_STATUS_BY_ERROR = (
    (ValidationFailed, 400),
    (DocumentError, 400),
    ((ProviderNotFound, ModelNotFound), 404),
    ((DuplicateName, DuplicateModelId, KeyCollision), 409),
)


def status_for(exc: ConfigError) -> int:
    for types, status in _STATUS_BY_ERROR:
        if isinstance(exc, types):
            return status
    return 500


async def config_error_handler(
    request: Request,
    exc: ConfigError,
) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error("%s %s failed: %s", request.method, request.url, exc)
    return JSONResponse(
        status_code=status,
        content={"error_code": exc.error_code, "detail": exc.messages},
    )


def create_app(
    store: ConfigStore,
    project_dir: Optional[Union[str, Path]] = None,
) -> FastAPI:
    """Build the API around an already loaded *store*."""
    app = FastAPI(
        title="modelbridge",
        docs_url="/docs" if DOCS_ENABLED else None,
        redoc_url="/redoc" if DOCS_ENABLED else None,
        openapi_url="/openapi.json" if DOCS_ENABLED else None,
    )
    app.state.store = store
    app.state.project_dir = Path(project_dir) if project_dir else None
    app.add_exception_handler(ConfigError, config_error_handler)
    for module in (providers, models, exchange):
        app.include_router(module.router, prefix="/api")
    return app
