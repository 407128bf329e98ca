# -*- coding: utf-8 -*-
"""modelbridge command line entry point."""
from __future__ import annotations

import logging
import os

import click

from ..constant import DEFAULT_LOG_LEVEL, LOG_LEVEL_ENV, WORKING_DIR
from .app_cmd import app_cmd
from .exchange_cmd import (
    backup_cmd,
    export_cmd,
    import_cmd,
    project_group,
    reset_cmd,
    restore_cmd,
)
from .models_cmd import models_group
from .providers_cmd import providers_group

LOG_LEVELS = ("critical", "error", "warning", "info", "debug")


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--working-dir",
    type=click.Path(file_okay=False),
    default=str(WORKING_DIR),
    show_default=True,
    help="Directory holding the stored configuration.",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help=f"Log level (default: ${LOG_LEVEL_ENV} or {DEFAULT_LOG_LEVEL}).",
)
@click.pass_context
def cli(ctx: click.Context, working_dir: str, log_level: str | None) -> None:
    """Edit model providers and sync them with deployment documents."""
    level = log_level or os.environ.get(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL)
    os.environ[LOG_LEVEL_ENV] = level
    setup_logging(level)
    ctx.ensure_object(dict)
    ctx.obj["working_dir"] = working_dir


cli.add_command(providers_group)
cli.add_command(models_group)
cli.add_command(export_cmd)
cli.add_command(import_cmd)
cli.add_command(backup_cmd)
cli.add_command(restore_cmd)
cli.add_command(reset_cmd)
cli.add_command(project_group)
cli.add_command(app_cmd)


if __name__ == "__main__":
    cli()
