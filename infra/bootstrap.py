"""
Infrastructure initialization and bootstrap.

Builds every component from configuration and wires them together. Each
call constructs a fresh, independent graph; whoever owns the app session
keeps the instance (FastAPI keeps it on app.state).
"""

import logging
from typing import Optional

import httpx

from inference import EnhancementOrchestrator, InferenceBackend
from provisioning import AcquisitionEngine, CompatibilityValidator, ModelCatalog, ModelRegistry
from services.rewrite import StyleRewriter
from storage import BlobStore, ContentStore

from .config import InfraConfig, get_config

logger = logging.getLogger(__name__)


class InfraBootstrap:
    """
    Bootstrap infrastructure based on configuration.

    Args:
        config: Configuration (defaults to the environment)
        content_store: Override the configured content store (tests)
        http_client: Shared HTTP client for probes and downloads; when
                     given, the caller owns its lifetime
    """

    def __init__(
        self,
        config: Optional[InfraConfig] = None,
        content_store: Optional[ContentStore] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config or get_config()
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(timeout=self.config.download_timeout_s)

        self.content_store: ContentStore = content_store or self.config.create_content_store()
        self.blob_store: BlobStore = self.config.create_blob_store(self.http_client)
        self.catalog = ModelCatalog()
        self.registry = ModelRegistry(self.content_store)

        self.engine = AcquisitionEngine(
            self.catalog,
            self.registry,
            self.blob_store,
            http_client=self.http_client,
            url_rules=self.config.load_url_rules(),
            user_agent=self.config.download_user_agent,
            timeout_s=self.config.download_timeout_s,
            min_artifact_bytes=self.config.min_artifact_bytes,
            placeholder_step_delay_s=self.config.placeholder_step_delay_s,
        )
        self.validator = CompatibilityValidator(self.engine, self.registry)

        self.rewriter: StyleRewriter = self.config.create_rewriter()
        self.backend: InferenceBackend = self.config.create_inference_backend(self.rewriter)
        self.orchestrator = EnhancementOrchestrator(
            self.engine,
            self.registry,
            self.validator,
            self.backend,
            self.rewriter,
            tokenizer_mode=self.config.effective_tokenizer_mode,
            tokenizer_cache_dir=f"{self.blob_store.document_dir}/tokenizers",
        )
        logger.info(f"Infrastructure ready: {self!r}")

    async def aclose(self) -> None:
        """Release the HTTP client if this bootstrap created it."""
        if self._owns_client:
            await self.http_client.aclose()

    def __repr__(self) -> str:
        """String representation showing configured backends."""
        return (
            f"InfraBootstrap(content_store={type(self.content_store).__name__}, "
            f"data_dir={self.config.data_dir}, "
            f"backend={self.backend.name}, "
            f"tokenizer={self.config.effective_tokenizer_mode})"
        )


def bootstrap_infrastructure(config: Optional[InfraConfig] = None) -> InfraBootstrap:
    """
    Bootstrap all infrastructure components.

    Args:
        config: Optional custom configuration

    Returns:
        A new InfraBootstrap instance
    """
    return InfraBootstrap(config)
