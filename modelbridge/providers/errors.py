# -*- coding: utf-8 -*-
"""Error types raised by the store, transformer and exchange."""

from __future__ import annotations

from typing import Iterable, List, Optional


class ConfigError(Exception):
    """Base error carrying a list of human-readable messages."""

    error_code = "config_error"

    def __init__(
        self,
        message: str,
        *,
        errors: Optional[Iterable[str]] = None,
    ) -> None:
        self.errors: List[str] = list(errors or [])
        super().__init__(message)
        self.message = message

    @property
    def messages(self) -> List[str]:
        """Headline followed by every detail line."""
        return [self.message, *self.errors]

    def __str__(self) -> str:
        if not self.errors:
            return self.message
        return f"{self.message}: {'; '.join(self.errors)}"


class ValidationFailed(ConfigError):
    """One or more records failed field-level validation."""

    error_code = "validation_failed"

    def __init__(self, errors: Iterable[str], message: str = "") -> None:
        super().__init__(message or "Invalid configuration", errors=errors)


class DuplicateName(ConfigError):
    """A provider with the same (case-insensitive) name already exists."""

    error_code = "duplicate_name"

    def __init__(self, name: str) -> None:
        super().__init__(f"Provider name '{name}' already exists")
        self.name = name


class DuplicateModelId(ConfigError):
    """The provider already offers a model with this model id."""

    error_code = "duplicate_model_id"

    def __init__(self, provider_id: str, model_id: str) -> None:
        super().__init__(
            f"Model '{model_id}' already exists for provider "
            f"'{provider_id}'",
        )
        self.provider_id = provider_id
        self.model_id = model_id


class ProviderNotFound(ConfigError):
    error_code = "provider_not_found"

    def __init__(self, provider_id: str) -> None:
        super().__init__(f"Provider '{provider_id}' not found")
        self.provider_id = provider_id


class ModelNotFound(ConfigError):
    error_code = "model_not_found"

    def __init__(self, model_id: str) -> None:
        super().__init__(f"Model '{model_id}' not found")
        self.model_id = model_id


class TransformInvalid(ConfigError):
    """The transformer produced output that fails validation (a defect)."""

    error_code = "transform_invalid"

    def __init__(self, errors: Iterable[str], message: str = "") -> None:
        super().__init__(
            message or "Transformed configuration is invalid",
            errors=errors,
        )


class KeyCollision(ConfigError):
    """Two provider names normalize to the same deployment key."""

    error_code = "key_collision"

    def __init__(self, key: str, names: Iterable[str]) -> None:
        self.key = key
        self.names = list(names)
        quoted = ", ".join(f"'{n}'" for n in self.names)
        super().__init__(
            f"Providers {quoted} share the deployment key '{key}'",
        )


class StorageError(ConfigError):
    """Reading or writing the persisted blob failed."""

    error_code = "storage_error"


class DocumentError(ConfigError):
    """Reading or writing a deployment document failed."""

    error_code = "document_error"
