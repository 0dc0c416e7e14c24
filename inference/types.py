from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class ReadinessState(str, Enum):
    UNINITIALIZED = "UNINITIALIZED"
    INITIALIZING = "INITIALIZING"
    READY_WITH_MODEL = "READY_WITH_MODEL"
    READY_FALLBACK_ONLY = "READY_FALLBACK_ONLY"


class FallbackReason:
    NO_MODEL_SELECTED = "no-model-selected"
    MODEL_FILE_MISSING = "model-file-missing"
    RUNTIME_LOAD_FAILED = "runtime-load-failed"
    INFERENCE_FAILED = "inference-failed"
    EMERGENCY = "emergency-fallback"


class RuntimeLoadError(Exception):
    """Artifact could not be turned into a runtime session (placeholders included)."""


class InferenceError(Exception):
    """A loaded runtime session failed while serving a request."""


# Model-used labels for the two non-model paths
FALLBACK_MODEL_USED = "rule-based-fallback"
EMERGENCY_MODEL_USED = "identity"

MODEL_CONFIDENCE = 0.92
FALLBACK_CONFIDENCE = 0.75
EMERGENCY_CONFIDENCE = 0.5


@dataclass
class EnhancementResult:
    enhanced_text: str
    processing_time_ms: int
    model_used: str
    confidence: float
    is_fallback: bool
    fallback_reason: Optional[str] = None
    tokens_generated: int = 0


@dataclass
class ModelStatus:
    """Read-only projection for diagnostic surfaces."""

    state: ReadinessState
    has_real_model: bool
    status: str
    model_type: str
    tokenizer_status: str
    error: Optional[str] = None


@dataclass
class Diagnostics:
    state: ReadinessState
    selected_model: Optional[str]
    bound_model: Optional[str]
    installed_models: List[str] = field(default_factory=list)
    artifact_paths: Dict[str, Optional[str]] = field(default_factory=dict)
    content_store_entries: Dict[str, Optional[str]] = field(default_factory=dict)
    last_fallback_reason: Optional[str] = None
    last_error: Optional[str] = None
    backend: Optional[str] = None
    tokenizer: Optional[str] = None
    status: Optional[ModelStatus] = None
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
