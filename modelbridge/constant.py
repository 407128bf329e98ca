# -*- coding: utf-8 -*-
import os
from pathlib import Path

WORKING_DIR = (
    Path(os.environ.get("MODELBRIDGE_WORKING_DIR", "~/.modelbridge"))
    .expanduser()
    .resolve()
)

# Key of the editor blob inside the blob store.
STORAGE_KEY = os.environ.get("MODELBRIDGE_STORAGE_KEY", "taskmaster-ui-config")

CONFIG_FILE = os.environ.get("MODELBRIDGE_CONFIG_FILE", "config.json")

# Env key for app log level (used by CLI and the API server).
LOG_LEVEL_ENV = "MODELBRIDGE_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "warning"

# When True, expose /docs, /redoc, /openapi.json
# (dev only; keep False in prod).
DOCS_ENABLED = os.environ.get(
    "MODELBRIDGE_OPENAPI_DOCS",
    "false",
).lower() in (
    "true",
    "1",
    "yes",
)

# Where the deployment documents live inside a target project.
SUPPORTED_MODELS_RELPATH = (
    Path("scripts") / "modules" / "supported-models.json"
)
DEPLOYMENT_CONFIG_RELPATH = Path(".taskmaster") / "config.json"
