"""
Provisioning records and contracts.

ModelDescriptor is static catalog data; InstalledModelRecord and
TokenizerSidecar are persisted (ContentStore and BlobStore respectively)
as JSON produced by these pydantic models.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import FrozenSet, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ArchitectureFamily(str, Enum):
    """Declared architecture of a catalog model."""

    TEXT_GENERATION = "text-generation"
    MASKED_LANGUAGE_MODEL = "masked-language-model"
    SENTENCE_EMBEDDING = "sentence-embedding"


class ProvisioningError(Exception):
    """Base class for provisioning failures."""


class UnknownModelError(ProvisioningError):
    """Model identifier is not in the catalog. Fatal and non-retryable."""


class TransportError(ProvisioningError):
    """A network probe or transfer failed."""


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ModelDescriptor(BaseModel):
    """Static description of a downloadable model."""

    model_config = ConfigDict(frozen=True)

    model_id: str
    display_name: str
    primary_artifact: str = "model.onnx"
    config_file: Optional[str] = None
    vocab_file: Optional[str] = None
    merges_file: Optional[str] = None
    architecture: ArchitectureFamily
    tokenizer_source: str
    required_artifacts: FrozenSet[str] = frozenset({"model.onnx", "tokenizer"})
    source_url: Optional[str] = None
    size_hint: Optional[str] = None
    description: str = ""


class InstalledModelRecord(BaseModel):
    """One record per installed model, owned by the AcquisitionEngine."""

    model_id: str
    path: str
    architecture: ArchitectureFamily
    tokenizer_source: str
    descriptor: ModelDescriptor
    installed_at: str = Field(default_factory=utc_now)
    status: Literal["ready"] = "ready"


class TokenizerSidecar(BaseModel):
    """Metadata file written next to the primary artifact."""

    tokenizer_source: str
    architecture: ArchitectureFamily
    configured_at: str = Field(default_factory=utc_now)
    status: Literal["ready"] = "ready"
    repaired: bool = False


class ValidationResult(BaseModel):
    """Outcome of a compatibility check."""

    is_valid: bool
    model_id: Optional[str] = None
    tokenizer_source: Optional[str] = None
    issue: Optional[str] = None
    detail: Optional[str] = None
    recommendation: Optional[str] = None
