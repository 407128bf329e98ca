# -*- coding: utf-8 -*-
"""Import/export between the store and the deployment documents."""

from __future__ import annotations

import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Protocol, Union, runtime_checkable

from ..constant import DEPLOYMENT_CONFIG_RELPATH, SUPPORTED_MODELS_RELPATH
from .errors import DocumentError, ValidationFailed
from .models import (
    CONFIG_DOC,
    SUPPORTED_MODELS_DOC,
    DeploymentConfig,
    EditorConfig,
)
from .store import ConfigStore
from .transformer import to_deployment_format, to_editor_format
from .validator import validate_deployment_shape, validate_editor_batch

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Document collaborators
# ---------------------------------------------------------------------------


@runtime_checkable
class DocumentReader(Protocol):
    def read(self, name: str) -> Optional[Dict[str, Any]]:
        ...


@runtime_checkable
class DocumentWriter(Protocol):
    def write(
        self,
        name: str,
        document: Dict[str, Any],
        *,
        backup: Optional[bool] = None,
    ) -> None:
        ...


class ProjectDocuments:
    """Reads and writes the deployment documents of a target project.

    ``supported-models.json`` lives at ``scripts/modules/`` and
    ``config.json`` at ``.taskmaster/`` relative to *project_dir*. Writes
    are atomic per file; with *backup* the previous file is kept as
    ``<name>.bak``.
    """

    LOCATIONS = {
        SUPPORTED_MODELS_DOC: SUPPORTED_MODELS_RELPATH,
        CONFIG_DOC: DEPLOYMENT_CONFIG_RELPATH,
    }

    def __init__(
        self,
        project_dir: Union[str, Path],
        *,
        backup: bool = True,
    ):
        self.project_dir = Path(project_dir).expanduser()
        self.backup = backup

    def path_for(self, name: str) -> Path:
        try:
            return self.project_dir / self.LOCATIONS[name]
        except KeyError:
            raise DocumentError(
                f"Unknown deployment document '{name}'",
            ) from None

    def read(self, name: str) -> Optional[Dict[str, Any]]:
        path = self.path_for(name)
        if not path.is_file():
            return None
        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = json.load(fh)
        except json.JSONDecodeError as exc:
            raise DocumentError(f"{path} is not valid JSON: {exc}") from exc
        except OSError as exc:
            raise DocumentError(f"Failed to read {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise DocumentError(f"{path} must contain a JSON object")
        return data

    def write(
        self,
        name: str,
        document: Dict[str, Any],
        *,
        backup: Optional[bool] = None,
    ) -> None:
        """Atomically write *document*; *backup* overrides the default."""
        path = self.path_for(name)
        try:
            content = json.dumps(
                document,
                indent=2,
                ensure_ascii=False,
                allow_nan=False,
            )
        except ValueError as exc:
            raise DocumentError(f"Cannot serialize {path}: {exc}") from exc
        if backup is None:
            backup = self.backup
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            if backup and path.is_file():
                shutil.copy2(path, path.with_name(path.name + ".bak"))
            fd, tmp = tempfile.mkstemp(
                dir=str(path.parent),
                prefix=f".{path.name}.",
                suffix=".tmp",
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(content + "\n")
                os.replace(tmp, path)
            finally:
                if os.path.exists(tmp):
                    os.unlink(tmp)
        except OSError as exc:
            raise DocumentError(f"Failed to write {path}: {exc}") from exc
        logger.info("Wrote %s", path)


# ---------------------------------------------------------------------------
# Exchange
# ---------------------------------------------------------------------------


class ConfigExchange:
    """Drives the transformer between a store and the deployment documents.

    Neither direction mutates the store unless every stage succeeded.
    """

    def __init__(
        self,
        store: ConfigStore,
        reader: Optional[DocumentReader] = None,
        writer: Optional[DocumentWriter] = None,
    ):
        self.store = store
        self.reader = reader
        self.writer = writer

    @classmethod
    def for_project(
        cls,
        store: ConfigStore,
        project_dir: Union[str, Path],
        *,
        backup: bool = True,
    ) -> "ConfigExchange":
        documents = ProjectDocuments(project_dir, backup=backup)
        return cls(store, reader=documents, writer=documents)

    def build_deployment(self) -> DeploymentConfig:
        """Transform the current store contents and check the result."""
        snapshot = self.store.snapshot()
        deployment = to_deployment_format(snapshot.providers, snapshot.models)
        shape = validate_deployment_shape(deployment.to_dict())
        if not shape.is_valid:
            raise ValidationFailed(shape.errors, "Invalid deployment config")
        return deployment

    def export_to_deployment_files(self) -> DeploymentConfig:
        """Write ``supported-models.json`` and ``config.json``.

        Both documents are built and checked before anything is written.
        If the second write fails the first document is restored from
        its previous content when a reader is available, without touching
        its ``.bak`` copy. A ``supported-models.json`` that did not exist
        or could not be parsed before the export has nothing to restore,
        so the newly written file is left in place.
        """
        if self.writer is None:
            raise DocumentError("No document writer configured")
        deployment = self.build_deployment()

        previous = None
        if self.reader is not None:
            try:
                previous = self.reader.read(SUPPORTED_MODELS_DOC)
            except DocumentError as exc:
                logger.warning(
                    "Overwriting unreadable %s: %s",
                    SUPPORTED_MODELS_DOC,
                    exc,
                )

        self.writer.write(
            SUPPORTED_MODELS_DOC,
            deployment.supported_models_document(),
        )
        try:
            self.writer.write(CONFIG_DOC, deployment.config_document())
        except Exception:
            if previous is not None:
                logger.warning(
                    "Writing %s failed, restoring previous %s",
                    CONFIG_DOC,
                    SUPPORTED_MODELS_DOC,
                )
                self.writer.write(
                    SUPPORTED_MODELS_DOC,
                    previous,
                    backup=False,
                )
            raise

        logger.info(
            "Exported %d provider key(s) to deployment documents",
            len(deployment.config.providers),
        )
        return deployment

    def read_deployment(self) -> Dict[str, Any]:
        """Read both documents into a ``{supportedModels, config}`` dict."""
        if self.reader is None:
            raise DocumentError("No document reader configured")
        supported = self.reader.read(SUPPORTED_MODELS_DOC)
        if supported is None:
            raise DocumentError(f"{SUPPORTED_MODELS_DOC} not found")
        config = self.reader.read(CONFIG_DOC)
        return {"supportedModels": supported, "config": config or {}}

    def import_from_deployment_files(self) -> EditorConfig:
        """Replace the store contents with the deployment documents."""
        document = self.read_deployment()
        shape = validate_deployment_shape(document)
        if not shape.is_valid:
            raise ValidationFailed(shape.errors, "Invalid deployment config")

        editor = to_editor_format(document, id_factory=self.store.new_id)
        batch = validate_editor_batch(editor.providers, editor.models)
        if not batch.is_valid:
            raise ValidationFailed(batch.errors)

        result = self.store.import_configuration(
            editor.providers,
            editor.models,
        )
        logger.info(
            "Imported %d provider(s), %d model(s) from deployment documents",
            len(result.providers),
            len(result.models),
        )
        return result
