# -*- coding: utf-8 -*-
"""FastAPI dependencies resolving the objects stored on ``app.state``."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from fastapi import Request

from ..providers import ConfigStore


def get_store(request: Request) -> ConfigStore:
    return request.app.state.store


def get_project_dir(request: Request) -> Optional[Path]:
    return getattr(request.app.state, "project_dir", None)
