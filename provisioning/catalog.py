"""
Model catalog.

Static table mapping a model identifier to its remote source, required
artifact set and declared tokenizer/architecture family. Pure lookup,
no side effects.
"""

from typing import Dict, Iterable, List, Optional

from .types import ArchitectureFamily, ModelDescriptor, UnknownModelError

DEFAULT_DESCRIPTORS: List[ModelDescriptor] = [
    ModelDescriptor(
        model_id="gpt2-onnx",
        display_name="GPT-2 Base (ONNX)",
        config_file="config.json",
        vocab_file="vocab.json",
        merges_file="merges.txt",
        architecture=ArchitectureFamily.TEXT_GENERATION,
        tokenizer_source="Xenova/gpt2",
        source_url="https://huggingface.co/openai-community/gpt2/resolve/main/onnx/model.onnx",
        size_hint="500MB",
        description="GPT-2 text generation model. High-quality text generation and enhancement.",
    ),
    ModelDescriptor(
        model_id="bert-base-onnx",
        display_name="BERT Base Uncased (ONNX)",
        config_file="config.json",
        vocab_file="vocab.txt",
        architecture=ArchitectureFamily.MASKED_LANGUAGE_MODEL,
        tokenizer_source="Xenova/bert-base-uncased",
        source_url="https://huggingface.co/google-bert/bert-base-uncased/resolve/main/onnx/model.onnx",
        size_hint="420MB",
        description="BERT masked language model. Good for text understanding.",
    ),
    ModelDescriptor(
        model_id="minilm-onnx",
        display_name="MiniLM-L6-v2 (ONNX)",
        config_file="config.json",
        vocab_file="vocab.txt",
        architecture=ArchitectureFamily.SENTENCE_EMBEDDING,
        tokenizer_source="Xenova/all-MiniLM-L6-v2",
        source_url="https://huggingface.co/sentence-transformers/all-MiniLM-L6-v2/resolve/main/onnx/model.onnx",
        size_hint="90MB",
        description="Lightweight sentence transformer. Fast and efficient.",
    ),
    ModelDescriptor(
        model_id="distilbert-onnx",
        display_name="DistilBERT Base (ONNX)",
        config_file="config.json",
        vocab_file="vocab.txt",
        architecture=ArchitectureFamily.MASKED_LANGUAGE_MODEL,
        tokenizer_source="Xenova/distilbert-base-uncased",
        source_url="https://huggingface.co/distilbert/distilbert-base-uncased/resolve/main/onnx/model.onnx",
        size_hint="250MB",
        description="Smaller, faster BERT variant. Good balance of speed and quality.",
    ),
]


class ModelCatalog:
    """Immutable identifier -> ModelDescriptor lookup."""

    def __init__(self, descriptors: Optional[Iterable[ModelDescriptor]] = None):
        entries = DEFAULT_DESCRIPTORS if descriptors is None else descriptors
        self._descriptors: Dict[str, ModelDescriptor] = {d.model_id: d for d in entries}

    def describe(self, model_id: str) -> ModelDescriptor:
        """Raises UnknownModelError for identifiers not in the catalog."""
        try:
            return self._descriptors[model_id]
        except KeyError:
            raise UnknownModelError(f"Unknown model configuration: {model_id}") from None

    def describe_all(self) -> List[ModelDescriptor]:
        return list(self._descriptors.values())

    def __contains__(self, model_id: object) -> bool:
        return model_id in self._descriptors
