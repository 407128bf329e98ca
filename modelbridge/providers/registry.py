# -*- coding: utf-8 -*-
"""Well-known provider definitions and the default provider set."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from .models import Provider


class ProviderDefinition(BaseModel):
    """Static definition of a well-known deployment provider key."""

    key: str = Field(..., description="Deployment provider key")
    name: str = Field(..., description="Human-readable provider name")
    default_endpoint: str = Field(
        default="",
        description="Default API base URL",
    )
    type: str = Field(
        default="openai",
        description="Request shape (openai-compatible unless native)",
    )


# ---------------------------------------------------------------------------
# Provider definitions
# ---------------------------------------------------------------------------

PROVIDER_OPENAI = ProviderDefinition(
    key="openai",
    name="OpenAI",
    default_endpoint="https://api.openai.com",
    type="openai",
)

PROVIDER_ANTHROPIC = ProviderDefinition(
    key="anthropic",
    name="Anthropic",
    default_endpoint="https://api.anthropic.com",
    type="anthropic",
)

PROVIDER_GOOGLE = ProviderDefinition(
    key="google",
    name="Google",
    default_endpoint="https://generativelanguage.googleapis.com",
    type="google",
)

PROVIDER_POLO = ProviderDefinition(
    key="polo",
    name="PoloAI",
    default_endpoint="https://api.polo.ai",
)

PROVIDER_FOAPI = ProviderDefinition(
    key="foapi",
    name="FoApi",
    default_endpoint="https://v2.voct.top",
)

PROVIDER_PERPLEXITY = ProviderDefinition(
    key="perplexity",
    name="Perplexity",
    default_endpoint="https://api.perplexity.ai",
)

PROVIDER_XAI = ProviderDefinition(
    key="xai",
    name="xAI",
    default_endpoint="https://api.x.ai",
)

PROVIDER_OPENROUTER = ProviderDefinition(
    key="openrouter",
    name="OpenRouter",
    default_endpoint="https://openrouter.ai/api",
)

# Registry: provider key -> ProviderDefinition
PROVIDERS: dict[str, ProviderDefinition] = {
    defn.key: defn
    for defn in (
        PROVIDER_OPENAI,
        PROVIDER_ANTHROPIC,
        PROVIDER_GOOGLE,
        PROVIDER_POLO,
        PROVIDER_FOAPI,
        PROVIDER_PERPLEXITY,
        PROVIDER_XAI,
        PROVIDER_OPENROUTER,
    )
}


def get_provider(key: str) -> Optional[ProviderDefinition]:
    """Return a provider definition by key, or None if not found."""
    return PROVIDERS.get(key)


def fallback_definition(key: str) -> ProviderDefinition:
    """Definition for *key*, synthesized when the key is not well known."""
    defn = get_provider(key)
    if defn is not None:
        return defn
    return ProviderDefinition(
        key=key,
        name=key[:1].upper() + key[1:],
        default_endpoint="",
        type="openai",
    )


# ---------------------------------------------------------------------------
# Defaults seeded into an empty store
# ---------------------------------------------------------------------------


def default_providers() -> List[Provider]:
    """Fresh copies of the providers an empty configuration starts with."""
    return [
        Provider(
            id=f"provider_{defn.key}_default",
            name=defn.name,
            endpoint=defn.default_endpoint,
            type=defn.type,
        )
        for defn in (PROVIDER_OPENAI, PROVIDER_ANTHROPIC, PROVIDER_FOAPI)
    ]
