# -*- coding: utf-8 -*-
"""Provider/model configuration: models, validation, transform, store."""

from .errors import (
    ConfigError,
    DocumentError,
    DuplicateModelId,
    DuplicateName,
    KeyCollision,
    ModelNotFound,
    ProviderNotFound,
    StorageError,
    TransformInvalid,
    ValidationFailed,
)
from .exchange import (
    ConfigExchange,
    DocumentReader,
    DocumentWriter,
    ProjectDocuments,
)
from .models import (
    CONFIG_DOC,
    PROVIDER_TYPES,
    ROLES,
    SUPPORTED_MODELS_DOC,
    ConfigurationBackup,
    CostPer1MTokens,
    DeploymentConfig,
    EditorConfig,
    Model,
    Provider,
    ValidationResult,
    provider_key,
)
from .registry import (
    PROVIDERS,
    ProviderDefinition,
    default_providers,
)
from .store import (
    BlobStore,
    ConfigStore,
    JsonFileBlobStore,
    MemoryBlobStore,
    mask_api_key,
)
from .transformer import to_deployment_format, to_editor_format
from .validator import (
    validate_deployment_shape,
    validate_editor_batch,
    validate_model,
    validate_provider,
)

__all__ = [
    # errors
    "ConfigError",
    "DocumentError",
    "DuplicateModelId",
    "DuplicateName",
    "KeyCollision",
    "ModelNotFound",
    "ProviderNotFound",
    "StorageError",
    "TransformInvalid",
    "ValidationFailed",
    # exchange
    "ConfigExchange",
    "DocumentReader",
    "DocumentWriter",
    "ProjectDocuments",
    # models
    "CONFIG_DOC",
    "PROVIDER_TYPES",
    "ROLES",
    "SUPPORTED_MODELS_DOC",
    "ConfigurationBackup",
    "CostPer1MTokens",
    "DeploymentConfig",
    "EditorConfig",
    "Model",
    "Provider",
    "ValidationResult",
    "provider_key",
    # registry
    "PROVIDERS",
    "ProviderDefinition",
    "default_providers",
    # store
    "BlobStore",
    "ConfigStore",
    "JsonFileBlobStore",
    "MemoryBlobStore",
    "mask_api_key",
    # transformer
    "to_deployment_format",
    "to_editor_format",
    # validator
    "validate_deployment_shape",
    "validate_editor_batch",
    "validate_model",
    "validate_provider",
]
