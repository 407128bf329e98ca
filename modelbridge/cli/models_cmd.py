# -*- coding: utf-8 -*-
"""CLI commands for managing the models offered by providers."""
from __future__ import annotations

from typing import Optional, Tuple

import click

from ..providers import ROLES, Model
from .utils import (
    echo_error,
    get_store,
    handle_config_errors,
    print_json,
    resolve_provider,
)


def _format_model(model: Model, provider_name: str) -> str:
    score = "N/A" if model.swe_score is None else f"{model.swe_score:g}%"
    roles = ", ".join(model.allowed_roles) or "(inert)"
    cost = model.cost_per_1m_tokens
    return (
        f"  {model.model_id:40s} {provider_name:16s} "
        f"swe={score:7s} in=${cost.input:g} out=${cost.output:g} "
        f"[{roles}]"
    )


@click.group("models")
def models_group() -> None:
    """Manage models and the roles they may fill."""


# ---------------------------------------------------------------------------
# list
# ---------------------------------------------------------------------------


@models_group.command("list")
@click.option("--provider", default=None, help="Only this provider.")
@click.option(
    "--role",
    type=click.Choice(ROLES),
    default=None,
    help="Only models allowed in this role.",
)
@click.option("--json", "as_json", is_flag=True, help="Print JSON.")
@click.pass_context
@handle_config_errors
def list_cmd(
    ctx: click.Context,
    provider: Optional[str],
    role: Optional[str],
    as_json: bool,
) -> None:
    """List models in collection order."""
    store = get_store(ctx)
    if role is not None:
        models = store.get_models_by_role(role)
    else:
        models = store.get_models()
    if provider is not None:
        pid = resolve_provider(store, provider).id
        models = [m for m in models if m.provider_id == pid]

    if as_json:
        print_json([m.to_dict() for m in models])
        return

    names = {p.id: p.name for p in store.get_providers()}
    if not models:
        click.echo("No models configured.")
        return
    for model in models:
        click.echo(_format_model(model, names.get(model.provider_id, "?")))


# ---------------------------------------------------------------------------
# add / update
# ---------------------------------------------------------------------------


def _model_options(func):
    """Options shared by ``add`` and ``update``."""
    options = [
        click.option("--name", default=None, help="Display name."),
        click.option(
            "--swe-score",
            type=float,
            default=None,
            help="SWE-bench score in percent (0-100).",
        ),
        click.option(
            "--max-tokens",
            type=int,
            default=None,
            help="Maximum tokens.",
        ),
        click.option(
            "--input-cost",
            type=float,
            default=None,
            help="USD per 1M input tokens.",
        ),
        click.option(
            "--output-cost",
            type=float,
            default=None,
            help="USD per 1M output tokens.",
        ),
        click.option(
            "--role",
            "roles",
            multiple=True,
            type=click.Choice(ROLES),
            help="Allowed role; repeat for several.",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@models_group.command("add")
@click.option("--provider", default=None, help="Provider id or name.")
@click.option("--model-id", prompt="Model ID", help="Upstream model id.")
@_model_options
@click.pass_context
@handle_config_errors
def add_cmd(
    ctx: click.Context,
    provider: Optional[str],
    model_id: str,
    name: Optional[str],
    swe_score: Optional[float],
    max_tokens: Optional[int],
    input_cost: Optional[float],
    output_cost: Optional[float],
    roles: Tuple[str, ...],
) -> None:
    """Add a model to a provider (roles default to main + fallback)."""
    store = get_store(ctx)
    owner = resolve_provider(store, provider, "Select provider for model")
    model = store.add_model(
        {
            "name": name or "",
            "providerId": owner.id,
            "modelId": model_id.strip(),
            "sweScore": swe_score,
            "maxTokens": max_tokens,
            "costPer1MTokens": {
                "input": input_cost or 0,
                "output": output_cost or 0,
            },
            "allowedRoles": list(roles) if roles else ["main", "fallback"],
        },
    )
    click.echo(f"✓ Added model {model.model_id} ({model.id}) to {owner.name}")


@models_group.command("update")
@click.argument("model")
@click.option("--model-id", default=None, help="New upstream model id.")
@click.option("--provider", default=None, help="Move to provider.")
@click.option(
    "--no-roles",
    is_flag=True,
    help="Clear allowed roles (model becomes inert).",
)
@_model_options
@click.pass_context
@handle_config_errors
def update_cmd(
    ctx: click.Context,
    model: str,
    model_id: Optional[str],
    provider: Optional[str],
    no_roles: bool,
    name: Optional[str],
    swe_score: Optional[float],
    max_tokens: Optional[int],
    input_cost: Optional[float],
    output_cost: Optional[float],
    roles: Tuple[str, ...],
) -> None:
    """Update MODEL (store id); unspecified fields are kept."""
    store = get_store(ctx)
    current = store.get_model(model)
    if current is None:
        echo_error(f"Unknown model: {model}")
        raise SystemExit(1)

    changes: dict = {}
    if model_id is not None:
        changes["model_id"] = model_id.strip()
    if provider is not None:
        changes["provider_id"] = resolve_provider(store, provider).id
    if name is not None:
        changes["name"] = name
    if swe_score is not None:
        changes["swe_score"] = swe_score
    if max_tokens is not None:
        changes["max_tokens"] = max_tokens
    if input_cost is not None or output_cost is not None:
        prices = (("input", input_cost), ("output", output_cost))
        changes["cost_per_1m_tokens"] = current.cost_per_1m_tokens.model_copy(
            update={k: v for k, v in prices if v is not None},
        )
    if no_roles:
        changes["allowed_roles"] = []
    elif roles:
        changes["allowed_roles"] = list(roles)

    if not changes:
        click.echo("Nothing to update.")
        return
    updated = store.update_model(current.model_copy(update=changes))
    click.echo(f"✓ Updated model {updated.model_id} ({updated.id})")


# ---------------------------------------------------------------------------
# delete
# ---------------------------------------------------------------------------


@models_group.command("delete")
@click.argument("model")
@click.pass_context
@handle_config_errors
def delete_cmd(ctx: click.Context, model: str) -> None:
    """Delete MODEL (store id)."""
    store = get_store(ctx)
    removed = store.delete_model(model)
    click.echo(f"✓ Deleted model {removed.model_id} ({removed.id})")
