# -*- coding: utf-8 -*-
"""Serve the configuration API over HTTP."""
from __future__ import annotations

import os
from typing import Optional

import click

from ..constant import DEFAULT_LOG_LEVEL, LOG_LEVEL_ENV
from .utils import get_config, get_store, handle_config_errors


@click.command("app")
@click.option("--host", default="127.0.0.1", show_default=True)
@click.option("--port", default=8088, type=int, show_default=True)
@click.option(
    "--project",
    default=None,
    type=click.Path(file_okay=False),
    help="Project used by /api/exchange (defaults to the saved one).",
)
@click.pass_context
@handle_config_errors
def app_cmd(
    ctx: click.Context,
    host: str,
    port: int,
    project: Optional[str],
) -> None:
    """Run the HTTP API for editing providers and models."""
    import uvicorn

    from ..app import create_app

    app = create_app(
        get_store(ctx),
        project_dir=project or get_config(ctx).project_dir,
    )
    uvicorn.run(
        app,
        host=host,
        port=port,
        log_level=os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).lower(),
    )
