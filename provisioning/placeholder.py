"""
Placeholder artifact synthesis.

When every network path for a model is exhausted, acquisition writes a
small, clearly labelled text payload at the path a real artifact would
occupy. Nothing downstream can tell the difference by path; a runtime
backend rejects it when it tries to load it as a real session.
"""

from typing import Dict

from .types import ArchitectureFamily, utc_now

PLACEHOLDER_MARKER = "# Placeholder model artifact"

_GENERIC_CAPABILITIES = {
    "type": "Generic text model",
    "capabilities": "Text enhancement, content improvement",
    "reference": "Generic model simulation",
}

CAPABILITY_DESCRIPTIONS: Dict[str, Dict[str, str]] = {
    "gpt2-onnx": {
        "type": "GPT-2 text generation model (ONNX)",
        "capabilities": "Text generation, content completion, creative writing, text enhancement",
        "reference": "OpenAI GPT-2 Base converted to ONNX",
    },
    "bert-base-onnx": {
        "type": "BERT Base Uncased model (ONNX)",
        "capabilities": "Text understanding, sentence enhancement, context analysis",
        "reference": "Google BERT Base Uncased converted to ONNX",
    },
    "minilm-onnx": {
        "type": "Sentence-MiniLM model (ONNX)",
        "capabilities": "Sentence processing, text similarity, semantic enhancement",
        "reference": "Sentence-MiniLM-L6-v2 in ONNX format",
    },
    "distilbert-onnx": {
        "type": "DistilBERT Base model (ONNX)",
        "capabilities": "Fast text understanding, efficient enhancement",
        "reference": "DistilBERT Base Uncased in ONNX format",
    },
    "tinyllama-chat": {
        "type": "TinyLlama chat model",
        "capabilities": "Conversational text, text enhancement, creative writing",
        "reference": "TinyLlama 1.1B Chat",
    },
}


def describe_capabilities(model_id: str) -> Dict[str, str]:
    return CAPABILITY_DESCRIPTIONS.get(model_id, _GENERIC_CAPABILITIES)


def build_placeholder(model_id: str, architecture: ArchitectureFamily, error: str) -> str:
    info = describe_capabilities(model_id)
    return (
        f"{PLACEHOLDER_MARKER}: {model_id}\n"
        f"# Architecture: {architecture.value}\n"
        f"# Type: {info['type']}\n"
        f"# Capabilities: {info['capabilities']}\n"
        f"# Stands in for: {info['reference']}\n"
        f"#\n"
        f"# Status: placeholder (real artifact download failed)\n"
        f"# Download error: {error}\n"
        f"#\n"
        f"# Enhancement requests served with this artifact use the rule-based\n"
        f"# rewriter. Re-run acquisition to replace it with the real model.\n"
        f"#\n"
        f"# Generated: {utc_now()}\n"
        f"# Model ID: {model_id}\n"
    )


def is_placeholder(head: str) -> bool:
    """True when the first bytes of an artifact carry the placeholder marker."""
    return head.lstrip().startswith(PLACEHOLDER_MARKER)
