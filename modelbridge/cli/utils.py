# -*- coding: utf-8 -*-
"""Shared helpers for CLI commands."""
from __future__ import annotations

import functools
import json
from pathlib import Path
from typing import Any, Callable, List, Optional

import click

from ..config.config import Config, load_config
from ..constant import CONFIG_FILE
from ..providers import ConfigError, ConfigStore, JsonFileBlobStore, Provider


def print_json(data: Any) -> None:
    click.echo(json.dumps(data, ensure_ascii=False, indent=2))


def echo_error(message: str) -> None:
    click.echo(click.style(f"Error: {message}", fg="red"), err=True)


def handle_config_errors(func: Callable) -> Callable:
    """Report :class:`ConfigError` in red and exit with status 1."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ConfigError as exc:
            echo_error(exc.message)
            for line in exc.errors:
                click.echo(click.style(f"  - {line}", fg="red"), err=True)
            raise SystemExit(1)

    return wrapper


def working_dir(ctx: click.Context) -> Path:
    return Path((ctx.obj or {})["working_dir"])


def config_path(ctx: click.Context) -> Path:
    return working_dir(ctx) / CONFIG_FILE


def get_config(ctx: click.Context) -> Config:
    obj = ctx.ensure_object(dict)
    if "config" not in obj:
        obj["config"] = load_config(config_path(ctx))
    return obj["config"]


def get_store(ctx: click.Context) -> ConfigStore:
    """Open (once per invocation) the store under the working directory."""
    obj = ctx.ensure_object(dict)
    if "store" not in obj:
        config = get_config(ctx)
        store = ConfigStore(
            JsonFileBlobStore(working_dir(ctx)),
            key=config.storage_key,
        )
        obj["store"] = store.load()
    return obj["store"]


def prompt_choice(
    prompt_text: str,
    options: List[str],
    default: Optional[str] = None,
) -> str:
    """Let the user pick one of *options* by number or by exact text."""
    for index, option in enumerate(options, start=1):
        click.echo(f"  {index}. {option}")
    default_index = options.index(default) + 1 if default in options else None
    answer = click.prompt(
        prompt_text,
        default=str(default_index) if default_index else None,
    ).strip()
    if answer.isdigit() and 1 <= int(answer) <= len(options):
        return options[int(answer) - 1]
    if answer in options:
        return answer
    raise click.BadParameter(f"'{answer}' is not one of the listed options")


def resolve_provider(
    store: ConfigStore,
    ref: Optional[str],
    prompt_text: str = "Select provider",
) -> Provider:
    """Resolve a provider by id or name, prompting when *ref* is None."""
    if ref is None:
        providers = store.get_providers()
        if not providers:
            echo_error("No providers configured.")
            raise SystemExit(1)
        labels = [f"{p.name} ({p.id})" for p in providers]
        chosen = prompt_choice(prompt_text, options=labels)
        return providers[labels.index(chosen)]
    provider = store.find_provider(ref)
    if provider is None:
        echo_error(f"Unknown provider: {ref}")
        raise SystemExit(1)
    return provider
