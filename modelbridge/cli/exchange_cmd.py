# -*- coding: utf-8 -*-
"""CLI commands moving configuration in and out of the store."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import click

from ..config.config import save_config
from ..providers import (
    ConfigExchange,
    ConfigurationBackup,
    ProjectDocuments,
    StorageError,
)
from .utils import (
    config_path,
    echo_error,
    get_config,
    get_store,
    handle_config_errors,
    print_json,
)


def _project_dir(ctx: click.Context, project: Optional[str]) -> Path:
    """--project wins over the project saved with ``project set``."""
    if project:
        return Path(project).expanduser()
    saved = get_config(ctx).project_dir
    if not saved:
        echo_error(
            "No project configured. Pass --project or run "
            "'modelbridge project set <dir>'.",
        )
        raise SystemExit(1)
    return Path(saved).expanduser()


def _exchange(ctx: click.Context, project: Optional[str]) -> ConfigExchange:
    return ConfigExchange.for_project(
        get_store(ctx),
        _project_dir(ctx, project),
        backup=get_config(ctx).backup_documents,
    )


project_option = click.option(
    "--project",
    default=None,
    type=click.Path(file_okay=False),
    help="Target project directory (defaults to the saved one).",
)


# ---------------------------------------------------------------------------
# export / import
# ---------------------------------------------------------------------------


@click.command("export")
@project_option
@click.option(
    "--dry-run",
    is_flag=True,
    help="Print the deployment documents instead of writing them.",
)
@click.pass_context
@handle_config_errors
def export_cmd(
    ctx: click.Context,
    project: Optional[str],
    dry_run: bool,
) -> None:
    """Write supported-models.json and config.json into the project."""
    if dry_run:
        exchange = ConfigExchange(get_store(ctx))
        print_json(exchange.build_deployment().to_dict())
        return
    exchange = _exchange(ctx, project)
    deployment = exchange.export_to_deployment_files()
    documents: ProjectDocuments = exchange.writer
    for name in ProjectDocuments.LOCATIONS:
        click.echo(f"✓ Wrote {documents.path_for(name)}")
    roles = deployment.config.models.model_dump(exclude_none=True)
    for role, slot in roles.items():
        click.echo(f"  {role:9s}: {slot['provider']} / {slot['model']}")


@click.command("import")
@project_option
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
@handle_config_errors
def import_cmd(
    ctx: click.Context,
    project: Optional[str],
    yes: bool,
) -> None:
    """Replace the configuration with the project's deployment documents."""
    exchange = _exchange(ctx, project)
    if not yes and not click.confirm(
        "This replaces all providers and models. Continue?",
        default=False,
    ):
        click.echo("Aborted.")
        return
    result = exchange.import_from_deployment_files()
    click.echo(
        f"✓ Imported {len(result.providers)} provider(s) and "
        f"{len(result.models)} model(s)",
    )


# ---------------------------------------------------------------------------
# backup / restore / reset
# ---------------------------------------------------------------------------


@click.command("backup")
@click.option(
    "--output",
    "-o",
    default=None,
    type=click.Path(dir_okay=False),
    help="Backup file (default: print to stdout).",
)
@click.pass_context
@handle_config_errors
def backup_cmd(ctx: click.Context, output: Optional[str]) -> None:
    """Export providers and models in the editor format."""
    backup = get_store(ctx).export_configuration().to_dict()
    if output is None:
        print_json(backup)
        return
    with open(output, "w", encoding="utf-8") as fh:
        json.dump(backup, fh, indent=2, ensure_ascii=False)
    click.echo(f"✓ Backup written to {output}")


@click.command("restore")
@click.argument("backup_file", type=click.Path(exists=True, dir_okay=False))
@click.pass_context
@handle_config_errors
def restore_cmd(ctx: click.Context, backup_file: str) -> None:
    """Replace the configuration with an editor-format BACKUP_FILE."""
    try:
        with open(backup_file, "r", encoding="utf-8") as fh:
            backup = ConfigurationBackup.model_validate(json.load(fh))
    except ValueError as exc:
        raise StorageError(f"Unreadable backup {backup_file}: {exc}") from exc
    result = get_store(ctx).import_configuration(
        backup.providers,
        backup.models,
    )
    click.echo(
        f"✓ Restored {len(result.providers)} provider(s) and "
        f"{len(result.models)} model(s)",
    )


@click.command("reset")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
@handle_config_errors
def reset_cmd(ctx: click.Context, yes: bool) -> None:
    """Discard everything and start from the default providers."""
    if not yes and not click.confirm(
        "Delete all providers and models?",
        default=False,
    ):
        click.echo("Aborted.")
        return
    get_store(ctx).reset()
    click.echo("✓ Configuration reset to defaults")


# ---------------------------------------------------------------------------
# project
# ---------------------------------------------------------------------------


@click.group("project")
def project_group() -> None:
    """Remember the target project holding the deployment documents."""


@project_group.command("set")
@click.argument("directory", type=click.Path(file_okay=False))
@click.pass_context
def project_set_cmd(ctx: click.Context, directory: str) -> None:
    """Save DIRECTORY as the default project."""
    config = get_config(ctx)
    config.project_dir = str(Path(directory).expanduser().resolve())
    save_config(config, config_path(ctx))
    click.echo(f"✓ Project: {config.project_dir}")


@project_group.command("show")
@click.pass_context
def project_show_cmd(ctx: click.Context) -> None:
    """Show the saved project and where its documents live."""
    project_dir = get_config(ctx).project_dir
    if not project_dir:
        click.echo("(no project configured)")
        return
    click.echo(f"Project: {project_dir}")
    documents = ProjectDocuments(project_dir)
    for name in ProjectDocuments.LOCATIONS:
        path = documents.path_for(name)
        state = "exists" if path.is_file() else "missing"
        click.echo(f"  {name:22s} {path} ({state})")
