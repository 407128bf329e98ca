# -*- coding: utf-8 -*-
"""Tool settings (config.json in the working directory)."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

from ..constant import CONFIG_FILE, STORAGE_KEY, WORKING_DIR

logger = logging.getLogger(__name__)


class Config(BaseModel):
    """Root config (config.json)."""

    project_dir: Optional[str] = Field(
        default=None,
        description="Target project holding the deployment documents",
    )
    storage_key: str = Field(
        default=STORAGE_KEY,
        description="Blob store key of the editor configuration",
    )
    # Keep a .bak of each deployment document before overwriting it.
    backup_documents: bool = True


def get_config_path() -> Path:
    """Return the default config.json path."""
    return WORKING_DIR / CONFIG_FILE


def load_config(path: Optional[Path] = None) -> Config:
    """Load config.json; a missing or unreadable file gives defaults."""
    if path is None:
        path = get_config_path()
    if not path.is_file():
        return Config()
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return Config.model_validate(json.load(fh))
    except (json.JSONDecodeError, ValueError) as exc:
        logger.warning("Ignoring unreadable %s: %s", path, exc)
        return Config()


def save_config(config: Config, path: Optional[Path] = None) -> None:
    """Write tool settings to config.json."""
    if path is None:
        path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(
            config.model_dump(mode="json"),
            fh,
            indent=2,
            ensure_ascii=False,
        )
