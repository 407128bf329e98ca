# -*- coding: utf-8 -*-
"""CLI commands for managing providers."""
from __future__ import annotations

from typing import Optional

import click

from ..providers import PROVIDER_TYPES, mask_api_key
from .utils import (
    get_store,
    handle_config_errors,
    print_json,
    resolve_provider,
)


# ---------------------------------------------------------------------------
# Group
# ---------------------------------------------------------------------------


@click.group("providers")
def providers_group() -> None:
    """Manage model providers (name, endpoint, API key, type)."""


# ---------------------------------------------------------------------------
# list
# ---------------------------------------------------------------------------


@providers_group.command("list")
@click.option("--json", "as_json", is_flag=True, help="Print JSON.")
@click.pass_context
@handle_config_errors
def list_cmd(ctx: click.Context, as_json: bool) -> None:
    """Show all providers and how many models each offers."""
    store = get_store(ctx)
    providers = store.get_providers()

    if as_json:
        rows = []
        for p in providers:
            row = p.to_dict()
            row["apiKey"] = mask_api_key(p.api_key)
            rows.append(row)
        print_json(rows)
        return

    click.echo("\n=== Providers ===")
    if not providers:
        click.echo("  (none)")
    for p in providers:
        count = len(store.get_models_by_provider(p.id))
        mark = "✓" if p.is_valid else "✗"
        click.echo(f"\n{'─' * 44}")
        click.echo(f"  {p.name} ({p.id}) [{mark}]")
        click.echo(f"{'─' * 44}")
        click.echo(f"  {'endpoint':16s}: {p.endpoint}")
        click.echo(f"  {'type':16s}: {p.type}")
        click.echo(
            f"  {'api_key':16s}: {mask_api_key(p.api_key) or '(not set)'}",
        )
        click.echo(f"  {'models':16s}: {count}")
    click.echo()


# ---------------------------------------------------------------------------
# add
# ---------------------------------------------------------------------------


@providers_group.command("add")
@click.option("--name", prompt="Provider name", help="Unique display name.")
@click.option(
    "--endpoint",
    prompt="Base URL (without /v1)",
    help="API base URL, e.g. https://api.openai.com",
)
@click.option(
    "--type",
    "ptype",
    type=click.Choice(PROVIDER_TYPES),
    default="openai",
    show_default=True,
    help="Request shape used downstream.",
)
@click.option(
    "--api-key",
    prompt="API key",
    default="",
    hide_input=True,
    show_default=False,
    help="API key (may be left empty).",
)
@click.pass_context
@handle_config_errors
def add_cmd(
    ctx: click.Context,
    name: str,
    endpoint: str,
    ptype: str,
    api_key: str,
) -> None:
    """Add a provider."""
    store = get_store(ctx)
    provider = store.add_provider(
        {
            "name": name,
            "endpoint": endpoint.strip(),
            "type": ptype,
            "apiKey": api_key,
        },
    )
    click.echo(f"✓ Added provider {provider.name} ({provider.id})")


# ---------------------------------------------------------------------------
# update
# ---------------------------------------------------------------------------


@providers_group.command("update")
@click.argument("provider")
@click.option("--name", default=None, help="New display name.")
@click.option("--endpoint", default=None, help="New base URL.")
@click.option(
    "--type",
    "ptype",
    type=click.Choice(PROVIDER_TYPES),
    default=None,
    help="New request shape.",
)
@click.option("--api-key", default=None, help="New API key.")
@click.pass_context
@handle_config_errors
def update_cmd(
    ctx: click.Context,
    provider: str,
    name: Optional[str],
    endpoint: Optional[str],
    ptype: Optional[str],
    api_key: Optional[str],
) -> None:
    """Update PROVIDER (id or name); unspecified fields are kept."""
    store = get_store(ctx)
    current = resolve_provider(store, provider)
    changes = {
        key: value
        for key, value in (
            ("name", name),
            ("endpoint", endpoint),
            ("type", ptype),
            ("api_key", api_key),
        )
        if value is not None
    }
    if not changes:
        click.echo("Nothing to update.")
        return
    updated = store.update_provider(current.model_copy(update=changes))
    click.echo(f"✓ Updated provider {updated.name} ({updated.id})")


# ---------------------------------------------------------------------------
# delete
# ---------------------------------------------------------------------------


@providers_group.command("delete")
@click.argument("provider")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
@handle_config_errors
def delete_cmd(ctx: click.Context, provider: str, yes: bool) -> None:
    """Delete PROVIDER (id or name) together with its models."""
    store = get_store(ctx)
    current = resolve_provider(store, provider)
    count = len(store.get_models_by_provider(current.id))
    if not yes and not click.confirm(
        f"Delete {current.name} and its {count} model(s)?",
        default=False,
    ):
        click.echo("Aborted.")
        return
    store.delete_provider(current.id)
    click.echo(f"✓ Deleted provider {current.name} and {count} model(s)")


# ---------------------------------------------------------------------------
# mark
# ---------------------------------------------------------------------------


@providers_group.command("mark")
@click.argument("provider")
@click.option(
    "--valid/--invalid",
    default=True,
    help="Connectivity outcome to record.",
)
@click.pass_context
@handle_config_errors
def mark_cmd(ctx: click.Context, provider: str, valid: bool) -> None:
    """Record the outcome of a connectivity test for PROVIDER."""
    store = get_store(ctx)
    current = resolve_provider(store, provider)
    store.set_provider_validity(current.id, valid)
    click.echo(
        f"✓ {current.name} marked {'valid' if valid else 'invalid'}",
    )
