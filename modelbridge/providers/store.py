# -*- coding: utf-8 -*-
"""Authoritative provider/model collections and their persistence."""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Protocol,
    Tuple,
    Union,
    runtime_checkable,
)

from pydantic import BaseModel, ValidationError

from ..constant import STORAGE_KEY
from .errors import (
    DuplicateModelId,
    DuplicateName,
    KeyCollision,
    ModelNotFound,
    ProviderNotFound,
    StorageError,
    ValidationFailed,
)
from .models import (
    ROLES,
    ConfigurationBackup,
    EditorConfig,
    Model,
    Provider,
    ValidationResult,
    provider_key,
)
from .registry import default_providers
from .transformer import model_display_name
from .validator import validate_editor_batch, validate_model, validate_provider

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0.0"

ProviderInput = Union[Provider, Mapping[str, Any]]
ModelInput = Union[Model, Mapping[str, Any]]


# ---------------------------------------------------------------------------
# Blob stores
# ---------------------------------------------------------------------------


@runtime_checkable
class BlobStore(Protocol):
    """Opaque key-value store holding serialized configuration."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class MemoryBlobStore:
    """Blob store kept in a dict (tests, ephemeral sessions)."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileBlobStore:
    """One ``<key>.json`` file per key under *directory*.

    Writes go to a temporary file which then replaces the target, so a
    reader never sees a half-written blob.
    """

    _UNSAFE = re.compile(r"[^A-Za-z0-9_.-]")

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory).expanduser()

    def path_for(self, key: str) -> Path:
        return self.directory / f"{self._UNSAFE.sub('_', key)}.json"

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.is_file():
            return None
        with open(path, "r", encoding="utf-8") as fh:
            return fh.read()

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(value)
            os.replace(tmp, path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        if path.is_file():
            path.unlink()


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


def _coerce(record: Any, cls) -> Any:
    if isinstance(record, cls):
        return record.model_copy(deep=True)
    try:
        return cls.model_validate(record)
    except ValidationError as exc:
        raise ValidationFailed(
            [
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in exc.errors()
            ],
        ) from exc


def _copies(records: Iterable[BaseModel]) -> List[Any]:
    return [r.model_copy(deep=True) for r in records]


class ConfigStore:
    """Owner of the provider and model collections.

    Every mutation validates its input, re-checks the cross-entity
    invariants against the current collections, persists the complete
    candidate state through the blob store and only then commits it in
    memory. A failed write therefore leaves both the blob and the
    in-memory state as they were.

    Invariants:

    * every model's ``provider_id`` names a live provider;
    * provider names are unique ignoring case, and so are the
      deployment keys derived from them;
    * ``(provider_id, model_id)`` pairs are unique;
    * ids are never handed out twice.

    Mutations are serialized behind a re-entrant lock so threaded hosts
    cannot interleave a check with another caller's write.
    """

    def __init__(
        self,
        blob_store: BlobStore,
        key: str = STORAGE_KEY,
        *,
        seed_defaults: bool = True,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.blob_store = blob_store
        self.key = key
        self.seed_defaults = seed_defaults
        self._clock = clock
        self._lock = threading.RLock()
        self._providers: List[Provider] = []
        self._models: List[Model] = []
        self._id_sequence = 0
        self.last_updated: Optional[str] = None

    # -- identity -----------------------------------------------------------

    def new_id(self, prefix: str = "item") -> str:
        """Return an id never handed out before by this store."""
        with self._lock:
            live = {p.id for p in self._providers}
            live.update(m.id for m in self._models)
            while True:
                self._id_sequence += 1
                candidate = (
                    f"{prefix}_{self._id_sequence}_{uuid.uuid4().hex[:8]}"
                )
                if candidate not in live:
                    return candidate

    # -- persistence --------------------------------------------------------

    def _persist(
        self,
        providers: List[Provider],
        models: List[Model],
    ) -> None:
        now = self._clock().isoformat()
        blob = {
            "providers": [p.to_dict() for p in providers],
            "models": [m.to_dict() for m in models],
            "lastUpdated": now,
            "idSequence": self._id_sequence,
        }
        try:
            self.blob_store.set(
                self.key,
                json.dumps(
                    blob,
                    indent=2,
                    ensure_ascii=False,
                    allow_nan=False,
                ),
            )
        except (OSError, ValueError) as exc:
            raise StorageError(
                f"Failed to save configuration: {exc}",
            ) from exc
        self.last_updated = now
        logger.debug(
            "Persisted %d provider(s), %d model(s) under '%s'",
            len(providers),
            len(models),
            self.key,
        )

    def _commit(
        self,
        providers: List[Provider],
        models: List[Model],
    ) -> None:
        self._persist(providers, models)
        self._providers = providers
        self._models = models

    def load(self) -> "ConfigStore":
        """Restore the collections from the blob store.

        An absent or empty blob starts from the default provider set. A
        stored configuration whose providers were all deleted stays empty.
        A blob that cannot be parsed or breaks an invariant raises
        :class:`StorageError`.
        """
        with self._lock:
            try:
                raw = self.blob_store.get(self.key)
            except OSError as exc:
                raise StorageError(
                    f"Failed to load configuration: {exc}",
                ) from exc

            providers: List[Provider] = []
            models: List[Model] = []
            if raw:
                try:
                    data = json.loads(raw)
                    providers = [
                        Provider.model_validate(p)
                        for p in data.get("providers") or []
                    ]
                    models = [
                        Model.model_validate(m)
                        for m in data.get("models") or []
                    ]
                    sequence = int(data.get("idSequence") or 0)
                except (ValueError, TypeError, AttributeError) as exc:
                    raise StorageError(
                        f"Stored configuration '{self.key}' is corrupt: "
                        f"{exc}",
                    ) from exc
                errors = self._batch_errors(providers, models)
                if errors:
                    raise StorageError(
                        f"Stored configuration '{self.key}' is inconsistent",
                        errors=errors,
                    )
                self._id_sequence = max(self._id_sequence, sequence)
                self.last_updated = data.get("lastUpdated")

            if not raw and self.seed_defaults:
                logger.info("No stored configuration, seeding defaults")
                self._commit(default_providers(), models)
            else:
                self._providers = providers
                self._models = models
            logger.info(
                "Loaded %d provider(s), %d model(s)",
                len(self._providers),
                len(self._models),
            )
            return self

    def reset(self) -> None:
        """Drop the stored configuration and start from the defaults."""
        with self._lock:
            try:
                self.blob_store.delete(self.key)
            except OSError as exc:
                raise StorageError(
                    f"Failed to reset configuration: {exc}",
                ) from exc
            self._providers = []
            self._models = []
            self._commit(
                default_providers() if self.seed_defaults else [],
                [],
            )
            logger.info("Configuration reset to defaults")

    # -- queries ------------------------------------------------------------

    def get_providers(self) -> List[Provider]:
        with self._lock:
            return _copies(self._providers)

    def get_models(self) -> List[Model]:
        with self._lock:
            return _copies(self._models)

    def get_provider(self, provider_id: str) -> Optional[Provider]:
        with self._lock:
            for p in self._providers:
                if p.id == provider_id:
                    return p.model_copy(deep=True)
        return None

    def find_provider(self, ref: str) -> Optional[Provider]:
        """Look a provider up by id, then by case-insensitive name."""
        found = self.get_provider(ref)
        if found is not None:
            return found
        with self._lock:
            for p in self._providers:
                if p.name.lower() == ref.strip().lower():
                    return p.model_copy(deep=True)
        return None

    def get_model(self, model_id: str) -> Optional[Model]:
        with self._lock:
            for m in self._models:
                if m.id == model_id:
                    return m.model_copy(deep=True)
        return None

    def get_models_by_provider(self, provider_id: str) -> List[Model]:
        with self._lock:
            return _copies(
                m for m in self._models if m.provider_id == provider_id
            )

    def get_models_by_role(self, role: str) -> List[Model]:
        """Models carrying *role*, in collection (insertion) order."""
        if role not in ROLES:
            raise ValidationFailed(
                [f"Unknown role '{role}' (allowed: {', '.join(ROLES)})"],
            )
        with self._lock:
            return _copies(m for m in self._models if role in m.allowed_roles)

    def snapshot(self) -> EditorConfig:
        with self._lock:
            return EditorConfig(
                providers=_copies(self._providers),
                models=_copies(self._models),
            )

    # -- invariant checks ---------------------------------------------------

    @staticmethod
    def _require_valid(result: ValidationResult, what: str) -> None:
        if not result.is_valid:
            logger.warning("Rejected %s: %s", what, "; ".join(result.errors))
            raise ValidationFailed(result.errors, f"Invalid {what} data")

    def _check_provider_unique(self, candidate: Provider) -> None:
        name = candidate.name.lower()
        key = provider_key(candidate.name)
        for other in self._providers:
            if other.id == candidate.id:
                continue
            if other.name.lower() == name:
                raise DuplicateName(candidate.name)
            if provider_key(other.name) == key:
                raise KeyCollision(key, [other.name, candidate.name])

    def _require_provider(self, provider_id: str) -> None:
        if not any(p.id == provider_id for p in self._providers):
            raise ProviderNotFound(provider_id)

    def _check_model_unique(self, candidate: Model) -> None:
        for other in self._models:
            if (
                other.id != candidate.id
                and other.provider_id == candidate.provider_id
                and other.model_id == candidate.model_id
            ):
                raise DuplicateModelId(
                    candidate.provider_id,
                    candidate.model_id,
                )

    @staticmethod
    def _index(records: List[Any], record_id: str) -> int:
        for index, record in enumerate(records):
            if record.id == record_id:
                return index
        return -1

    # -- providers ----------------------------------------------------------

    def add_provider(self, data: ProviderInput) -> Provider:
        """Create a provider; the store assigns its id."""
        self._require_valid(validate_provider(data), "provider")
        with self._lock:
            provider = _coerce(data, Provider)
            provider.name = provider.name.strip()
            provider.id = self.new_id("provider")
            self._check_provider_unique(provider)
            self._commit([*self._providers, provider], list(self._models))
            logger.info("Added provider '%s' (%s)", provider.name, provider.id)
            return provider.model_copy(deep=True)

    def update_provider(self, data: ProviderInput) -> Provider:
        """Replace an existing provider, matched by id."""
        self._require_valid(validate_provider(data), "provider")
        with self._lock:
            provider = _coerce(data, Provider)
            provider.name = provider.name.strip()
            index = self._index(self._providers, provider.id)
            if index < 0:
                raise ProviderNotFound(provider.id)
            self._check_provider_unique(provider)
            providers = list(self._providers)
            providers[index] = provider
            self._commit(providers, list(self._models))
            logger.info(
                "Updated provider '%s' (%s)",
                provider.name,
                provider.id,
            )
            return provider.model_copy(deep=True)

    def delete_provider(self, provider_id: str) -> Provider:
        """Remove a provider and every model it offers in a single write."""
        with self._lock:
            index = self._index(self._providers, provider_id)
            if index < 0:
                raise ProviderNotFound(provider_id)
            removed = self._providers[index]
            providers = [p for p in self._providers if p.id != provider_id]
            models = [m for m in self._models if m.provider_id != provider_id]
            cascaded = len(self._models) - len(models)
            self._commit(providers, models)
            logger.info(
                "Deleted provider '%s' (%s) and %d model(s)",
                removed.name,
                provider_id,
                cascaded,
            )
            return removed.model_copy(deep=True)

    def set_provider_validity(
        self,
        provider_id: str,
        is_valid: bool,
    ) -> Provider:
        """Record the outcome of a connectivity test."""
        with self._lock:
            index = self._index(self._providers, provider_id)
            if index < 0:
                raise ProviderNotFound(provider_id)
            providers = list(self._providers)
            providers[index] = providers[index].model_copy(
                update={"is_valid": bool(is_valid)},
            )
            self._commit(providers, list(self._models))
            return providers[index].model_copy(deep=True)

    # -- models -------------------------------------------------------------

    def _prepare_model(self, data: ModelInput) -> Model:
        model = _coerce(data, Model)
        model.model_id = model.model_id.strip()
        if not model.name:
            model.name = model_display_name(model.model_id)
        self._require_provider(model.provider_id)
        return model

    def add_model(self, data: ModelInput) -> Model:
        """Create a model under an existing provider."""
        self._require_valid(validate_model(data), "model")
        with self._lock:
            model = self._prepare_model(data)
            model.id = self.new_id("model")
            self._check_model_unique(model)
            self._commit(list(self._providers), [*self._models, model])
            logger.info(
                "Added model '%s' (%s) to provider %s",
                model.model_id,
                model.id,
                model.provider_id,
            )
            return model.model_copy(deep=True)

    def update_model(self, data: ModelInput) -> Model:
        """Replace an existing model, matched by id."""
        self._require_valid(validate_model(data), "model")
        with self._lock:
            model = self._prepare_model(data)
            index = self._index(self._models, model.id)
            if index < 0:
                raise ModelNotFound(model.id)
            self._check_model_unique(model)
            models = list(self._models)
            models[index] = model
            self._commit(list(self._providers), models)
            logger.info("Updated model '%s' (%s)", model.model_id, model.id)
            return model.model_copy(deep=True)

    def delete_model(self, model_id: str) -> Model:
        with self._lock:
            index = self._index(self._models, model_id)
            if index < 0:
                raise ModelNotFound(model_id)
            removed = self._models[index]
            models = [m for m in self._models if m.id != model_id]
            self._commit(list(self._providers), models)
            logger.info("Deleted model '%s' (%s)", removed.model_id, model_id)
            return removed.model_copy(deep=True)

    # -- import / export ----------------------------------------------------

    @staticmethod
    def _batch_errors(
        providers: List[Any],
        models: List[Any],
    ) -> List[str]:
        """Every field and cross-entity violation of a complete batch."""
        errors = list(validate_editor_batch(providers, models).errors)
        if errors:
            return errors

        seen_ids: Dict[str, str] = {}
        names: Dict[str, int] = {}
        keys: Dict[str, Tuple[int, str]] = {}
        for index, p in enumerate(providers, start=1):
            if not p.id:
                errors.append(f"Provider {index}: id is required")
            elif p.id in seen_ids:
                errors.append(f"Provider {index}: duplicate id '{p.id}'")
            seen_ids[p.id] = "provider"
            lowered = p.name.strip().lower()
            if lowered in names:
                errors.append(
                    f"Provider {index}: name '{p.name}' duplicates "
                    f"provider {names[lowered]}",
                )
            else:
                names[lowered] = index
                key = provider_key(p.name)
                if key in keys:
                    other_index, other_name = keys[key]
                    errors.append(
                        f"Provider {index}: name '{p.name}' shares the "
                        f"deployment key '{key}' with '{other_name}' "
                        f"(provider {other_index})",
                    )
                else:
                    keys[key] = (index, p.name)

        pairs: Dict[Tuple[str, str], int] = {}
        for index, m in enumerate(models, start=1):
            if not m.id:
                errors.append(f"Model {index}: id is required")
            elif m.id in seen_ids:
                errors.append(f"Model {index}: duplicate id '{m.id}'")
            seen_ids[m.id] = "model"
            pair = (m.provider_id, m.model_id)
            if pair in pairs:
                errors.append(
                    f"Model {index}: model id '{m.model_id}' duplicates "
                    f"model {pairs[pair]} of the same provider",
                )
            else:
                pairs[pair] = index
        return errors

    def import_configuration(
        self,
        providers: Iterable[ProviderInput],
        models: Iterable[ModelInput],
    ) -> EditorConfig:
        """Replace both collections with a complete, valid batch.

        All violations are collected and reported together; nothing is
        replaced unless the whole batch is acceptable. Ids are kept as
        given.
        """
        providers = list(providers)
        models = list(models)
        errors = list(validate_editor_batch(providers, models).errors)
        if not errors:
            providers = [_coerce(p, Provider) for p in providers]
            models = [_coerce(m, Model) for m in models]
            errors = self._batch_errors(providers, models)
        if errors:
            logger.warning(
                "Rejected import of %d provider(s), %d model(s): %d error(s)",
                len(providers),
                len(models),
                len(errors),
            )
            raise ValidationFailed(errors, "Invalid configuration batch")

        with self._lock:
            self._commit(providers, models)
            logger.info(
                "Imported %d provider(s), %d model(s)",
                len(providers),
                len(models),
            )
            return self.snapshot()

    def export_configuration(self) -> ConfigurationBackup:
        """Editor-format backup of the current collections."""
        with self._lock:
            return ConfigurationBackup(
                providers=_copies(self._providers),
                models=_copies(self._models),
                exported_at=self._clock().isoformat(),
                version=BACKUP_VERSION,
            )


# ---------------------------------------------------------------------------
# Utilities
# ---------------------------------------------------------------------------


def mask_api_key(api_key: str, visible_chars: int = 4) -> str:
    """Mask an API key for safe display.

    Example: ``"sk-abcdefghijk"`` → ``"sk-****hijk"``
    """
    if not api_key:
        return ""
    if len(api_key) <= visible_chars:
        return "*" * len(api_key)
    prefix = api_key[:3] if len(api_key) > 3 else ""
    suffix = api_key[-visible_chars:]
    hidden_len = len(api_key) - len(prefix) - visible_chars
    return f"{prefix}{'*' * max(hidden_len, 4)}{suffix}"
