"""
Infrastructure module exports.

Configuration and bootstrap for all subsystem components.
"""

from .config import InfraConfig, get_config, ContentStoreBackendType, InferenceBackendType, TokenizerModeType
from .bootstrap import InfraBootstrap, bootstrap_infrastructure

__all__ = [
    "InfraConfig",
    "get_config",
    "ContentStoreBackendType",
    "InferenceBackendType",
    "TokenizerModeType",
    "InfraBootstrap",
    "bootstrap_infrastructure",
]
