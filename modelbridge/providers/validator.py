# -*- coding: utf-8 -*-
"""Structural validation of provider/model records and config documents.

Every function here is pure and reports *all* violations it finds through
a :class:`ValidationResult`; nothing is raised for invalid input. Checks
that need the whole collection (name uniqueness, model id uniqueness,
provider existence) belong to the store, except for
:func:`validate_editor_batch` which looks at a self-contained batch.
"""

from __future__ import annotations

import math
import re
from numbers import Real
from typing import Any, Dict, Iterable, List, Mapping, Union
from urllib.parse import urlparse

from pydantic import BaseModel

from .models import PROVIDER_TYPES, ROLES, ValidationResult, provider_key

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
_NAME_RE = re.compile(r"^[\w .\-]+$")

Record = Union[BaseModel, Mapping[str, Any]]

# snake_case spellings accepted in plain dicts
_ALIASES = {
    "api_key": "apiKey",
    "is_valid": "isValid",
    "provider_id": "providerId",
    "model_id": "modelId",
    "swe_score": "sweScore",
    "max_tokens": "maxTokens",
    "cost_per_1m_tokens": "costPer1MTokens",
    "allowed_roles": "allowedRoles",
}


def _as_dict(record: Record) -> Dict[str, Any]:
    if isinstance(record, BaseModel):
        return record.model_dump(by_alias=True)
    if not isinstance(record, Mapping):
        return {}
    return {_ALIASES.get(k, k): v for k, v in record.items()}


def _is_number(value: Any) -> bool:
    return isinstance(value, Real) and not isinstance(value, bool)


def _check_non_negative(
    errors: List[str],
    label: str,
    value: Any,
    *,
    integer: bool = False,
) -> None:
    if value is None:
        return
    if integer and (not isinstance(value, int) or isinstance(value, bool)):
        errors.append(f"{label} must be an integer")
    elif not _is_number(value):
        errors.append(f"{label} must be a number")
    elif not math.isfinite(value):
        errors.append(f"{label} must be a finite number")
    elif value < 0:
        errors.append(f"{label} must not be negative")


def _check_roles(errors: List[str], label: str, roles: Any) -> None:
    if roles is None:
        return
    if not isinstance(roles, (list, tuple)):
        errors.append(f"{label} must be a list")
        return
    unknown = [r for r in roles if r not in ROLES]
    if unknown:
        errors.append(
            f"{label} contains unknown role(s): "
            + ", ".join(str(r) for r in unknown)
            + f" (allowed: {', '.join(ROLES)})",
        )


def _check_cost(errors: List[str], label: str, cost: Any) -> None:
    if cost is None:
        return
    if isinstance(cost, BaseModel):
        cost = cost.model_dump()
    if not isinstance(cost, Mapping):
        errors.append(f"{label} must be an object with input and output")
        return
    _check_non_negative(errors, f"{label}.input", cost.get("input"))
    _check_non_negative(errors, f"{label}.output", cost.get("output"))


# ---------------------------------------------------------------------------
# Single records
# ---------------------------------------------------------------------------


def validate_endpoint(endpoint: Any) -> ValidationResult:
    """Check that *endpoint* is an http(s) base URL without ``/v1``."""
    errors: List[str] = []
    if not isinstance(endpoint, str) or not endpoint.strip():
        errors.append("Endpoint is required")
        return ValidationResult.from_errors(errors)
    parsed = urlparse(endpoint.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        errors.append("Endpoint must be an http:// or https:// URL")
    if endpoint.strip().rstrip("/").endswith("/v1"):
        errors.append("Endpoint must not end with /v1")
    return ValidationResult.from_errors(errors)


def validate_provider(provider: Record) -> ValidationResult:
    """Validate the fields of a single provider record."""
    data = _as_dict(provider)
    errors: List[str] = []

    if "id" in data and not isinstance(data["id"], str):
        errors.append("Provider id must be a string")

    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        errors.append("Name is required")
    else:
        stripped = name.strip()
        if not NAME_MIN_LENGTH <= len(stripped) <= NAME_MAX_LENGTH:
            errors.append(
                f"Name must be {NAME_MIN_LENGTH}-{NAME_MAX_LENGTH} "
                "characters long",
            )
        if not _NAME_RE.match(stripped):
            errors.append(
                "Name may only contain letters, digits, spaces, "
                "'_', '-' and '.'",
            )
        elif not provider_key(stripped):
            errors.append(
                "Name must contain at least one ASCII letter or digit",
            )

    errors.extend(validate_endpoint(data.get("endpoint")).errors)

    ptype = data.get("type")
    if not ptype:
        errors.append("Type is required")
    elif ptype not in PROVIDER_TYPES:
        errors.append(
            f"Type '{ptype}' is not one of: {', '.join(PROVIDER_TYPES)}",
        )

    api_key = data.get("apiKey")
    if api_key is not None and not isinstance(api_key, str):
        errors.append("API key must be a string")

    is_valid = data.get("isValid")
    if is_valid is not None and not isinstance(is_valid, bool):
        errors.append("isValid must be a boolean")

    return ValidationResult.from_errors(errors)


def validate_model(model: Record) -> ValidationResult:
    """Validate the fields of a single model record."""
    data = _as_dict(model)
    errors: List[str] = []

    if "id" in data and not isinstance(data["id"], str):
        errors.append("Model id must be a string")

    name = data.get("name")
    if name is not None and not isinstance(name, str):
        errors.append("Name must be a string")

    model_id = data.get("modelId")
    if not isinstance(model_id, str) or not model_id.strip():
        errors.append("Model ID is required")

    provider_id = data.get("providerId")
    if not isinstance(provider_id, str) or not provider_id.strip():
        errors.append("Provider ID is required")

    score = data.get("sweScore")
    _check_non_negative(errors, "SWE score", score)
    if _is_number(score) and math.isfinite(score) and score > 100:
        errors.append("SWE score must be a percentage between 0 and 100")

    _check_non_negative(
        errors,
        "Max tokens",
        data.get("maxTokens"),
        integer=True,
    )
    _check_cost(errors, "Cost per 1M tokens", data.get("costPer1MTokens"))
    _check_roles(errors, "Allowed roles", data.get("allowedRoles"))

    return ValidationResult.from_errors(errors)


# ---------------------------------------------------------------------------
# Batches and documents
# ---------------------------------------------------------------------------


def validate_editor_batch(
    providers: Iterable[Record],
    models: Iterable[Record],
) -> ValidationResult:
    """Validate every record of a batch plus its provider references."""
    errors: List[str] = []
    provider_ids = set()
    for index, provider in enumerate(providers, start=1):
        result = validate_provider(provider)
        errors.extend(f"Provider {index}: {e}" for e in result.errors)
        provider_ids.add(_as_dict(provider).get("id"))

    for index, model in enumerate(models, start=1):
        result = validate_model(model)
        errors.extend(f"Model {index}: {e}" for e in result.errors)
        provider_id = _as_dict(model).get("providerId")
        if provider_id and provider_id not in provider_ids:
            errors.append(f"Model {index}: Referenced provider not found")

    return ValidationResult.from_errors(errors)


def validate_deployment_shape(document: Any) -> ValidationResult:
    """Check the two-section deployment structure.

    This is a shape check only: ``supportedModels`` and ``config`` must be
    present, each provider key must map to an array and every entry needs
    an ``id``.
    """
    if isinstance(document, BaseModel):
        document = document.model_dump(by_alias=True)
    if not isinstance(document, Mapping):
        return ValidationResult.from_errors(
            ["Deployment configuration must be an object"],
        )

    errors: List[str] = []
    supported = document.get("supportedModels")
    if supported is None:
        errors.append("Missing supportedModels section")
    elif not isinstance(supported, Mapping):
        errors.append("supportedModels must be an object")
    else:
        for key, entries in supported.items():
            if not isinstance(entries, list):
                errors.append(f"Provider {key}: Models must be an array")
                continue
            for index, entry in enumerate(entries, start=1):
                if not isinstance(entry, Mapping) or not entry.get("id"):
                    errors.append(
                        f"Provider {key}, Model {index}: ID is required",
                    )

    config = document.get("config")
    if config is None:
        errors.append("Missing config section")
    elif not isinstance(config, Mapping):
        errors.append("config must be an object")

    return ValidationResult.from_errors(errors)


def validate_supported_entry(entry: Record) -> ValidationResult:
    """Validate one ``supported-models.json`` entry (fractional score)."""
    if isinstance(entry, BaseModel):
        entry = entry.model_dump()
    errors: List[str] = []
    if not isinstance(entry, Mapping):
        return ValidationResult.from_errors(["Entry must be an object"])
    if not isinstance(entry.get("id"), str) or not entry.get("id"):
        errors.append("ID is required")
    score = entry.get("swe_score")
    _check_non_negative(errors, "swe_score", score)
    if _is_number(score) and math.isfinite(score) and score > 1:
        errors.append("swe_score must be a fraction between 0 and 1")
    _check_non_negative(
        errors,
        "max_tokens",
        entry.get("max_tokens"),
        integer=True,
    )
    _check_cost(errors, "cost_per_1m_tokens", entry.get("cost_per_1m_tokens"))
    _check_roles(errors, "allowed_roles", entry.get("allowed_roles"))
    return ValidationResult.from_errors(errors)


__all__ = [
    "validate_deployment_shape",
    "validate_editor_batch",
    "validate_endpoint",
    "validate_model",
    "validate_provider",
    "validate_supported_entry",
]
