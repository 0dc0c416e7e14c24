"""
Simulated inference backend.

Loads an artifact only to check that it is a real, non-placeholder file,
then serves every request through the style rewriter. Used when no numeric
runtime is installed, and in CI.
"""

import asyncio
import logging
import os
from typing import Optional

from provisioning.placeholder import is_placeholder
from services.rewrite import StyleRewriter

from .base import GenerationRequest, InferenceBackend, RuntimeSession
from .tokenization import Tokenizer
from .types import InferenceError, RuntimeLoadError

logger = logging.getLogger(__name__)

_HEAD_BYTES = 256


def read_artifact_head(artifact_path: str) -> str:
    """First bytes of an artifact, decoded leniently. Raises RuntimeLoadError."""
    try:
        if os.path.getsize(artifact_path) == 0:
            raise RuntimeLoadError(f"Artifact is empty: {artifact_path}")
        with open(artifact_path, "rb") as f:
            head = f.read(_HEAD_BYTES)
    except OSError as e:
        raise RuntimeLoadError(f"Cannot read artifact {artifact_path}: {e}") from e
    return head.decode("utf-8", errors="ignore")


class SimulatedBackend(InferenceBackend):

    name = "simulated"

    def __init__(self, rewriter: StyleRewriter):
        self.rewriter = rewriter

    async def load(self, artifact_path: str) -> RuntimeSession:
        loop = asyncio.get_running_loop()
        head = await loop.run_in_executor(None, read_artifact_head, artifact_path)
        if is_placeholder(head):
            raise RuntimeLoadError(f"Artifact is a placeholder, not a loadable model: {artifact_path}")
        logger.info(f"Simulated session bound to {artifact_path}")
        return RuntimeSession(artifact_path=artifact_path, backend=self.name)

    async def generate(
        self,
        session: RuntimeSession,
        tokenizer: Optional[Tokenizer],
        request: GenerationRequest,
    ) -> str:
        try:
            if tokenizer is not None:
                input_ids = tokenizer.encode(request.prompt)
                logger.debug(f"Simulated run over {len(input_ids)} input tokens")
            return self.rewriter.style_rewrite(request.text, request.style_tag)
        except Exception as e:
            raise InferenceError(f"Simulated generation failed: {e}") from e
