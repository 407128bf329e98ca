# -*- coding: utf-8 -*-
"""Conversion between the editor format and the deployment documents.

The editor format is the ``{providers, models}`` pair kept by the store.
The deployment format is the ``supported-models.json`` / ``config.json``
pair consumed by the task runner. The two directions are not inverses:

* ids are regenerated on the way back into the editor format;
* providers listed only in ``config.providers`` (no models) are dropped;
* ``config.models`` role assignments are not read back, role membership
  comes solely from each entry's ``allowed_roles``.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections import OrderedDict
from typing import Any, Callable, Dict, Iterable, List, Mapping, Union

from pydantic import BaseModel

from .errors import KeyCollision, TransformInvalid, ValidationFailed
from .models import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_ROLES,
    ROLES,
    CostPer1MTokens,
    DeploymentConfig,
    DeploymentProvider,
    DeploymentSettings,
    EditorConfig,
    Model,
    Provider,
    RoleAssignment,
    RoleModels,
    SupportedModelEntry,
    provider_key,
)
from .registry import fallback_definition
from .validator import (
    validate_deployment_shape,
    validate_editor_batch,
    validate_supported_entry,
)

logger = logging.getLogger(__name__)

IdFactory = Callable[[str], str]


def generate_id(prefix: str = "item") -> str:
    """Return a fresh opaque id such as ``model_1718000000000_3f9a1c2b7``."""
    return f"{prefix}_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def model_display_name(model_id: str) -> str:
    """Derive a display name from an upstream model id.

    ``"deepseek-ai/DeepSeek-R1"`` becomes ``"DeepSeek R1"``.
    """
    name = model_id.split("/")[-1].replace("-", " ")
    return " ".join(w[:1].upper() + w[1:] for w in name.split(" ") if w)


def normalize_endpoint(endpoint: str) -> str:
    """Strip trailing slashes and a trailing ``/v1`` from *endpoint*."""
    endpoint = (endpoint or "").strip().rstrip("/")
    if endpoint.endswith("/v1"):
        endpoint = endpoint[: -len("/v1")].rstrip("/")
    return endpoint


def _to_fraction(score: Any) -> Any:
    return None if score is None else round(score / 100, 6)


def _to_percentage(score: Any) -> Any:
    return None if score is None else round(score * 100, 4)


def _coerce(records: Iterable[Union[BaseModel, Mapping]], cls) -> List[Any]:
    return [
        r if isinstance(r, cls) else cls.model_validate(r) for r in records
    ]


def check_key_collisions(providers: Iterable[Provider]) -> None:
    """Raise :class:`KeyCollision` if two providers share a deployment key."""
    seen: Dict[str, List[str]] = OrderedDict()
    for provider in providers:
        seen.setdefault(provider_key(provider.name), []).append(provider.name)
    for key, names in seen.items():
        if len(names) > 1:
            raise KeyCollision(key, names)


# ---------------------------------------------------------------------------
# Editor -> deployment
# ---------------------------------------------------------------------------


def _supported_entry(model: Model) -> SupportedModelEntry:
    return SupportedModelEntry(
        id=model.model_id,
        swe_score=_to_fraction(model.swe_score),
        cost_per_1m_tokens=CostPer1MTokens(
            input=model.cost_per_1m_tokens.input or 0,
            output=model.cost_per_1m_tokens.output or 0,
        ),
        allowed_roles=list(model.allowed_roles),
        max_tokens=(
            DEFAULT_MAX_TOKENS
            if model.max_tokens is None
            else model.max_tokens
        ),
    )


def _select_roles(
    models: List[Model],
    keys_by_provider: Dict[str, str],
) -> RoleModels:
    """First model in collection order carrying a role wins that role."""
    assigned: Dict[str, RoleAssignment] = {}
    for role in ROLES:
        for model in models:
            if role in model.allowed_roles:
                assigned[role] = RoleAssignment(
                    provider=keys_by_provider[model.provider_id],
                    model=model.model_id,
                )
                break
    return RoleModels(**assigned)


def _check_deployment_output(result: DeploymentConfig) -> None:
    errors = list(validate_deployment_shape(result.to_dict()).errors)
    for key, entries in result.supported_models.items():
        for index, entry in enumerate(entries, start=1):
            errors.extend(
                f"Provider {key}, Model {index}: {e}"
                for e in validate_supported_entry(entry).errors
            )
    if errors:
        raise TransformInvalid(errors)


def to_deployment_format(
    providers: Iterable[Union[Provider, Mapping]],
    models: Iterable[Union[Model, Mapping]],
) -> DeploymentConfig:
    """Build the deployment documents from editor-format collections.

    Raises:
        ValidationFailed: an input record is invalid or references a
            missing provider.
        KeyCollision: two provider names normalize to the same key.
        TransformInvalid: the produced documents fail validation.
    """
    providers = list(providers)
    models = list(models)
    check = validate_editor_batch(providers, models)
    if not check.is_valid:
        raise ValidationFailed(check.errors)

    providers = _coerce(providers, Provider)
    models = _coerce(models, Model)
    check_key_collisions(providers)

    keys_by_provider = {p.id: provider_key(p.name) for p in providers}

    supported: Dict[str, List[SupportedModelEntry]] = OrderedDict()
    for provider in providers:
        entries = [
            _supported_entry(m) for m in models if m.provider_id == provider.id
        ]
        if entries:
            supported[keys_by_provider[provider.id]] = entries

    result = DeploymentConfig(
        supported_models=supported,
        config=DeploymentSettings(
            models=_select_roles(models, keys_by_provider),
            providers={
                keys_by_provider[p.id]: DeploymentProvider(
                    name=p.name,
                    endpoint=p.endpoint,
                    type=p.type,
                    api_key=p.api_key,
                )
                for p in providers
            },
        ),
    )
    _check_deployment_output(result)
    logger.debug(
        "Built deployment config: %d provider key(s), %d with models",
        len(result.config.providers),
        len(result.supported_models),
    )
    return result


# ---------------------------------------------------------------------------
# Deployment -> editor
# ---------------------------------------------------------------------------


def _editor_provider(
    key: str,
    settings: Mapping[str, Any],
    new_id: str,
) -> Provider:
    defn = fallback_definition(key)
    api_key = settings.get("apiKey") or ""
    return Provider(
        id=new_id,
        name=settings.get("name") or defn.name,
        endpoint=normalize_endpoint(
            settings.get("endpoint") or defn.default_endpoint,
        ),
        type=settings.get("type") or defn.type,
        api_key=api_key,
        is_valid=bool(api_key),
    )


def _editor_model(
    entry: Mapping[str, Any],
    provider_id: str,
    new_id: str,
) -> Model:
    cost = entry.get("cost_per_1m_tokens") or {}
    roles = entry.get("allowed_roles")
    max_tokens = entry.get("max_tokens")
    return Model(
        id=new_id,
        name=model_display_name(entry["id"]),
        provider_id=provider_id,
        model_id=entry["id"],
        swe_score=_to_percentage(entry.get("swe_score")),
        max_tokens=DEFAULT_MAX_TOKENS if max_tokens is None else max_tokens,
        cost_per_1m_tokens=CostPer1MTokens(
            input=cost.get("input") or 0,
            output=cost.get("output") or 0,
        ),
        allowed_roles=list(DEFAULT_ROLES if roles is None else roles),
    )


def _as_document(deployment: Any) -> Mapping[str, Any]:
    if isinstance(deployment, DeploymentConfig):
        return deployment.to_dict()
    if isinstance(deployment, Mapping):
        return deployment
    raise ValidationFailed(["Deployment configuration must be an object"])


def to_editor_format(
    deployment: Union[DeploymentConfig, Mapping[str, Any]],
    *,
    id_factory: IdFactory = generate_id,
) -> EditorConfig:
    """Synthesize editor-format providers and models from deployment docs.

    *deployment* is a :class:`DeploymentConfig` or a mapping with
    ``supportedModels`` and ``config`` keys. New ids come from
    *id_factory* (called with ``"provider"`` or ``"model"``).

    Raises:
        ValidationFailed: the documents are malformed.
        TransformInvalid: the synthesized records fail validation.
    """
    document = _as_document(deployment)
    shape = validate_deployment_shape(document)
    if not shape.is_valid:
        raise ValidationFailed(shape.errors)

    supported: Mapping[str, List[Any]] = document["supportedModels"]
    config: Mapping[str, Any] = document.get("config") or {}
    config_providers = config.get("providers") or {}
    if not isinstance(config_providers, Mapping):
        raise ValidationFailed(["config.providers must be an object"])

    entry_errors: List[str] = []
    for key, entries in supported.items():
        settings = config_providers.get(key)
        if settings is not None and not isinstance(settings, Mapping):
            entry_errors.append(f"config.providers.{key} must be an object")
        for index, entry in enumerate(entries, start=1):
            entry_errors.extend(
                f"Provider {key}, Model {index}: {e}"
                for e in validate_supported_entry(entry).errors
            )
    if entry_errors:
        raise ValidationFailed(entry_errors)

    providers: List[Provider] = []
    models: List[Model] = []
    for key, entries in supported.items():
        provider = _editor_provider(
            key,
            config_providers.get(key) or {},
            id_factory("provider"),
        )
        providers.append(provider)
        models.extend(
            _editor_model(entry, provider.id, id_factory("model"))
            for entry in entries
        )

    dropped = [k for k in config_providers if k not in supported]
    if dropped:
        logger.info(
            "Skipping provider(s) without models: %s",
            ", ".join(dropped),
        )

    check = validate_editor_batch(providers, models)
    if not check.is_valid:
        raise TransformInvalid(check.errors)
    return EditorConfig(providers=providers, models=models)
