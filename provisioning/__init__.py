"""
Model provisioning layer.

Catalog lookup, acquisition (download, alternative sources, placeholder
synthesis), the model registry kept in the ContentStore, and the
tokenizer compatibility validator.
"""

from .types import (
    ArchitectureFamily,
    InstalledModelRecord,
    ModelDescriptor,
    ProvisioningError,
    TokenizerSidecar,
    TransportError,
    UnknownModelError,
    ValidationResult,
)
from .catalog import DEFAULT_DESCRIPTORS, ModelCatalog
from .registry import ModelRegistry
from .url_rules import DEFAULT_URL_RULES, UrlRewriteRule, generate_alternative_urls, load_url_rules
from .placeholder import PLACEHOLDER_MARKER, build_placeholder, is_placeholder
from .acquisition import SIDECAR_FILENAME, AcquisitionEngine
from .compatibility import CompatibilityValidator, TokenizerState

__all__ = [
    "ArchitectureFamily",
    "InstalledModelRecord",
    "ModelDescriptor",
    "ProvisioningError",
    "TokenizerSidecar",
    "TransportError",
    "UnknownModelError",
    "ValidationResult",
    "DEFAULT_DESCRIPTORS",
    "ModelCatalog",
    "ModelRegistry",
    "DEFAULT_URL_RULES",
    "UrlRewriteRule",
    "generate_alternative_urls",
    "load_url_rules",
    "PLACEHOLDER_MARKER",
    "build_placeholder",
    "is_placeholder",
    "SIDECAR_FILENAME",
    "AcquisitionEngine",
    "CompatibilityValidator",
    "TokenizerState",
]
