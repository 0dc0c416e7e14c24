from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from .tokenization import Tokenizer


@dataclass
class RuntimeSession:
    """Handle returned by a backend for one loaded artifact."""

    artifact_path: str
    backend: str
    handle: Optional[Any] = None


@dataclass
class GenerationRequest:
    text: str
    system_prompt: str
    style_tag: str
    max_tokens: int = 150
    temperature: float = 0.7

    @property
    def prompt(self) -> str:
        return f'{self.system_prompt}\n\nText to improve: "{self.text}"\n\nImproved text:'


class InferenceBackend(ABC):
    """
    Abstract runtime boundary.
    The orchestrator depends ONLY on this interface.
    """

    name: str = "backend"

    @abstractmethod
    async def load(self, artifact_path: str) -> RuntimeSession:
        """Build a runtime session from an artifact. Raises RuntimeLoadError."""
        raise NotImplementedError

    @abstractmethod
    async def generate(
        self,
        session: RuntimeSession,
        tokenizer: Optional[Tokenizer],
        request: GenerationRequest,
    ) -> str:
        """Produce enhanced text. Raises InferenceError."""
        raise NotImplementedError
