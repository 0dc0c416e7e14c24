"""
Inference layer for text enhancement.

This package keeps callers agnostic of whether a runtime model or the
rule-based rewriter produced the text.

Supported backends:
- SimulatedBackend: Validates the artifact, serves requests via the rewriter (default for CI/tests)
- OnnxRuntimeBackend: Local onnxruntime session

Example usage:
    from inference import EnhancementOrchestrator, StyleConfig

    result = await orchestrator.enhance("Hello, world!", StyleConfig(role="casual_writer"))
    print(result.enhanced_text, result.is_fallback)
"""

from .types import (
    Diagnostics,
    EnhancementResult,
    FallbackReason,
    InferenceError,
    ModelStatus,
    ReadinessState,
    RuntimeLoadError,
)
from .base import GenerationRequest, InferenceBackend, RuntimeSession
from .style import StyleConfig, style_tag_for_prompt
from .tokenization import HashTokenizer, SubwordTokenizer, Tokenizer, create_tokenizer
from .simulated import SimulatedBackend
from .onnx import OnnxRuntimeBackend
from .orchestrator import EnhancementOrchestrator, EnhancementSession

__all__ = [
    "Diagnostics",
    "EnhancementResult",
    "FallbackReason",
    "InferenceError",
    "ModelStatus",
    "ReadinessState",
    "RuntimeLoadError",
    "GenerationRequest",
    "InferenceBackend",
    "RuntimeSession",
    "StyleConfig",
    "style_tag_for_prompt",
    "HashTokenizer",
    "SubwordTokenizer",
    "Tokenizer",
    "create_tokenizer",
    "SimulatedBackend",
    "OnnxRuntimeBackend",
    "EnhancementOrchestrator",
    "EnhancementSession",
]
