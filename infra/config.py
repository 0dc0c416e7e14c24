"""
Infrastructure configuration system.

Environment-based backend selection with sensible defaults.
All components default to a local-first stack.
"""

import os
import random
from typing import List, Literal, Optional
from dataclasses import dataclass

import httpx

from inference import InferenceBackend, OnnxRuntimeBackend, SimulatedBackend
from provisioning import UrlRewriteRule, load_url_rules
from services.rewrite import RuleBasedRewriter, StyleRewriter
from storage import ContentStore, InMemoryContentStore, LocalBlobStore, SQLiteContentStore


ContentStoreBackendType = Literal["sqlite", "memory"]
InferenceBackendType = Literal["onnx", "simulated"]
TokenizerModeType = Literal["hash", "subword"]


def _optional_int(value: Optional[str]) -> Optional[int]:
    return int(value) if value not in (None, "") else None


@dataclass
class InfraConfig:
    """Infrastructure configuration from environment."""

    # Storage
    data_dir: str
    content_store_backend: ContentStoreBackendType
    content_store_path: str

    # Inference
    inference_backend: InferenceBackendType
    tokenizer_mode: TokenizerModeType
    rewriter_seed: Optional[int]

    # Acquisition
    url_rewrite_rules_file: Optional[str]
    download_user_agent: str
    download_timeout_s: float
    min_artifact_bytes: int
    progress_divider: int
    placeholder_step_delay_s: float

    @classmethod
    def from_env(cls) -> "InfraConfig":
        """
        Load configuration from environment variables.

        Defaults prioritize a local-first stack:
        - Content store: sqlite under DATA_DIR
        - Inference: onnx (simulated when onnxruntime is missing)
        - Tokenizer: hash
        """
        data_dir = os.getenv("DATA_DIR", "./data")
        return cls(
            # Storage Configuration
            data_dir=data_dir,
            content_store_backend=os.getenv("CONTENT_STORE_BACKEND", "sqlite"),  # type: ignore
            content_store_path=os.getenv("CONTENT_STORE_PATH") or os.path.join(data_dir, "content.db"),

            # Inference Configuration
            inference_backend=os.getenv("INFERENCE_BACKEND", "onnx"),  # type: ignore
            tokenizer_mode=os.getenv("TOKENIZER_MODE", "hash"),  # type: ignore
            rewriter_seed=_optional_int(os.getenv("REWRITER_SEED")),

            # Acquisition Configuration
            url_rewrite_rules_file=os.getenv("URL_REWRITE_RULES_FILE") or None,
            download_user_agent=os.getenv("DOWNLOAD_USER_AGENT", "NoteEditor/1.0"),
            download_timeout_s=float(os.getenv("DOWNLOAD_TIMEOUT_S", "60")),
            min_artifact_bytes=int(os.getenv("MIN_ARTIFACT_BYTES", "1024")),
            progress_divider=int(os.getenv("PROGRESS_DIVIDER", "10")),
            placeholder_step_delay_s=float(os.getenv("PLACEHOLDER_STEP_DELAY_S", "0.15")),
        )

    @property
    def effective_tokenizer_mode(self) -> str:
        return self.tokenizer_mode if self.tokenizer_mode in ("hash", "subword") else "hash"

    def create_content_store(self) -> ContentStore:
        """Create content store instance based on configuration."""
        if self.content_store_backend == "memory":
            return InMemoryContentStore()
        # Default to sqlite
        return SQLiteContentStore(self.content_store_path)

    def create_blob_store(self, http_client: Optional[httpx.AsyncClient] = None) -> LocalBlobStore:
        return LocalBlobStore(
            self.data_dir,
            http_client=http_client,
            timeout_s=self.download_timeout_s,
            progress_divider=self.progress_divider,
        )

    def create_rewriter(self) -> StyleRewriter:
        return RuleBasedRewriter(random.Random(self.rewriter_seed))

    def create_inference_backend(self, rewriter: StyleRewriter) -> InferenceBackend:
        """Create inference backend instance based on configuration."""
        if self.inference_backend == "onnx":
            try:
                return OnnxRuntimeBackend(rewriter)
            except ImportError:
                # onnxruntime not installed, fall back to simulated
                return SimulatedBackend(rewriter)
        elif self.inference_backend == "simulated":
            return SimulatedBackend(rewriter)
        else:
            # Default to simulated
            return SimulatedBackend(rewriter)

    def load_url_rules(self) -> List[UrlRewriteRule]:
        return load_url_rules(self.url_rewrite_rules_file)


def get_config() -> InfraConfig:
    """Get infrastructure configuration from the current environment."""
    return InfraConfig.from_env()
