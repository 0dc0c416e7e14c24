"""
ONNX Runtime inference backend.

Loads the primary artifact as an onnxruntime.InferenceSession and runs the
tokenized prompt through it. Decoding model output into prose is not wired
up: once the run succeeds, the text itself comes from the style rewriter.

Requires: pip install onnxruntime numpy
"""

import asyncio
import logging
from typing import Dict, List, Optional

from services.rewrite import StyleRewriter

from .base import GenerationRequest, InferenceBackend, RuntimeSession
from .simulated import read_artifact_head
from .tokenization import HashTokenizer, Tokenizer
from .types import InferenceError, RuntimeLoadError

try:
    import numpy as np
    import onnxruntime as ort
    ONNXRUNTIME_AVAILABLE = True
except ImportError:
    ONNXRUNTIME_AVAILABLE = False

logger = logging.getLogger(__name__)

# Longest prompt handed to the session, in tokens
MAX_INPUT_TOKENS = 512


class OnnxRuntimeBackend(InferenceBackend):

    name = "onnx"

    def __init__(self, rewriter: StyleRewriter, providers: Optional[List[str]] = None):
        if not ONNXRUNTIME_AVAILABLE:
            raise ImportError(
                "onnxruntime not installed. Install with: pip install onnxruntime numpy"
            )
        self.rewriter = rewriter
        self.providers = providers or ["CPUExecutionProvider"]

    def _create_session(self, artifact_path: str):
        read_artifact_head(artifact_path)
        return ort.InferenceSession(artifact_path, providers=self.providers)

    async def load(self, artifact_path: str) -> RuntimeSession:
        loop = asyncio.get_running_loop()
        try:
            handle = await loop.run_in_executor(None, self._create_session, artifact_path)
        except RuntimeLoadError:
            raise
        except Exception as e:
            raise RuntimeLoadError(f"ONNX session creation failed for {artifact_path}: {e}") from e
        logger.info(f"ONNX session loaded from {artifact_path}")
        return RuntimeSession(artifact_path=artifact_path, backend=self.name, handle=handle)

    def _feeds(self, handle, input_ids: List[int]) -> Dict[str, "np.ndarray"]:
        ids = np.array([input_ids], dtype=np.int64)
        feeds = {}
        for node in handle.get_inputs():
            if node.name == "input_ids":
                feeds[node.name] = ids
            elif node.name == "attention_mask":
                feeds[node.name] = np.ones_like(ids)
            elif node.name == "token_type_ids":
                feeds[node.name] = np.zeros_like(ids)
            else:
                raise InferenceError(f"Unsupported model input: {node.name}")
        return feeds

    def _run(self, handle, input_ids: List[int]):
        outputs = handle.run(None, self._feeds(handle, input_ids))
        if not outputs or outputs[0] is None:
            raise InferenceError("No valid output from ONNX model")
        return outputs

    async def generate(
        self,
        session: RuntimeSession,
        tokenizer: Optional[Tokenizer],
        request: GenerationRequest,
    ) -> str:
        if session.handle is None:
            raise InferenceError("Session has no runtime handle")
        input_ids = (tokenizer or HashTokenizer()).encode(request.prompt)[:MAX_INPUT_TOKENS]

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, self._run, session.handle, input_ids)
            return self.rewriter.style_rewrite(request.text, request.style_tag)
        except InferenceError:
            raise
        except Exception as e:
            raise InferenceError(f"ONNX inference failed: {e}") from e
