# -*- coding: utf-8 -*-
"""Pydantic data models for providers, models and both config formats."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

PROVIDER_TYPES = ("openai", "anthropic", "google", "custom")
ROLES = ("main", "fallback", "research")

# Roles given to a deployment entry that carries no ``allowed_roles``.
DEFAULT_ROLES = ["main", "fallback"]
DEFAULT_MAX_TOKENS = 200000

SUPPORTED_MODELS_DOC = "supported-models.json"
CONFIG_DOC = "config.json"

_KEY_STRIP_RE = re.compile(r"[^a-z0-9]")


def provider_key(name: str) -> str:
    """Deployment key for a provider name: lower-cased, alphanumeric only.

    ``"Polo AI"`` and ``"PoloAI"`` both map to ``"poloai"``.
    """
    return _KEY_STRIP_RE.sub("", (name or "").lower())


class _AliasedModel(BaseModel):
    """Records are read/written with camelCase keys but accept both."""

    model_config = {"protected_namespaces": (), "populate_by_name": True}

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Editor representation
# ---------------------------------------------------------------------------


class CostPer1MTokens(_AliasedModel):
    """Price in USD per one million tokens."""

    input: float = Field(default=0, description="Input token cost")
    output: float = Field(default=0, description="Output token cost")


class Provider(_AliasedModel):
    """A named upstream API endpoint configuration."""

    id: str = Field(default="", description="Opaque id assigned by the store")
    name: str = Field(default="", description="Display name, unique")
    endpoint: str = Field(default="", description="Base URL without /v1")
    api_key: str = Field(default="", alias="apiKey", description="API key")
    type: str = Field(
        default="openai",
        description="Request shape used downstream",
    )
    is_valid: bool = Field(
        default=False,
        alias="isValid",
        description="Outcome of the last connectivity test",
    )


class Model(_AliasedModel):
    """A specific upstream model offered by a provider."""

    id: str = Field(default="", description="Opaque id assigned by the store")
    name: str = Field(default="", description="Human-readable model name")
    provider_id: str = Field(default="", alias="providerId")
    model_id: str = Field(
        default="",
        alias="modelId",
        description="Model identifier used in API calls",
    )
    swe_score: Optional[float] = Field(
        default=None,
        alias="sweScore",
        description="SWE-bench score as a percentage (0-100)",
    )
    max_tokens: Optional[int] = Field(default=None, alias="maxTokens")
    cost_per_1m_tokens: CostPer1MTokens = Field(
        default_factory=CostPer1MTokens,
        alias="costPer1MTokens",
    )
    allowed_roles: List[str] = Field(
        default_factory=list,
        alias="allowedRoles",
    )


class EditorConfig(BaseModel):
    """The ``{providers, models}`` pair edited interactively."""

    providers: List[Provider] = Field(default_factory=list)
    models: List[Model] = Field(default_factory=list)


class ConfigurationBackup(_AliasedModel):
    """Editor-format export written by ``backup`` commands."""

    providers: List[Provider] = Field(default_factory=list)
    models: List[Model] = Field(default_factory=list)
    exported_at: str = Field(default="", alias="exportedAt")
    version: str = "1.0.0"


# ---------------------------------------------------------------------------
# Deployment representation
# ---------------------------------------------------------------------------


class SupportedModelEntry(BaseModel):
    """One entry of ``supported-models.json``."""

    id: str
    swe_score: Optional[float] = None
    cost_per_1m_tokens: CostPer1MTokens = Field(
        default_factory=CostPer1MTokens,
    )
    allowed_roles: List[str] = Field(
        default_factory=lambda: list(DEFAULT_ROLES),
    )
    max_tokens: Optional[int] = DEFAULT_MAX_TOKENS


class RoleAssignment(BaseModel):
    """Model chosen for one role in ``config.json``."""

    provider: str
    model: str


class RoleModels(BaseModel):
    main: Optional[RoleAssignment] = None
    fallback: Optional[RoleAssignment] = None
    research: Optional[RoleAssignment] = None


class DeploymentProvider(_AliasedModel):
    """Provider connection block of ``config.json``."""

    name: str = ""
    endpoint: str = ""
    type: str = ""
    api_key: str = Field(default="", alias="apiKey")


class DeploymentSettings(BaseModel):
    """Top-level structure of ``config.json``."""

    models: RoleModels = Field(default_factory=RoleModels)
    providers: Dict[str, DeploymentProvider] = Field(default_factory=dict)


class DeploymentConfig(BaseModel):
    """The two deployment documents, keyed the way they are consumed."""

    model_config = {"populate_by_name": True}

    supported_models: Dict[str, List[SupportedModelEntry]] = Field(
        default_factory=dict,
        alias="supportedModels",
    )
    config: DeploymentSettings = Field(default_factory=DeploymentSettings)

    def supported_models_document(self) -> Dict[str, Any]:
        return {
            key: [entry.model_dump(mode="json") for entry in entries]
            for key, entries in self.supported_models.items()
        }

    def config_document(self) -> Dict[str, Any]:
        # Unassigned roles are left out, not written as null.
        return {
            "models": self.config.models.model_dump(
                mode="json",
                exclude_none=True,
            ),
            "providers": {
                key: provider.to_dict()
                for key, provider in self.config.providers.items()
            },
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "supportedModels": self.supported_models_document(),
            "config": self.config_document(),
        }


class ValidationResult(BaseModel):
    """Outcome of a structural check: every violation found."""

    is_valid: bool = True
    errors: List[str] = Field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: List[str]) -> "ValidationResult":
        return cls(is_valid=not errors, errors=list(errors))
