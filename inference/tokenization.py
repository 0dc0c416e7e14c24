"""
Pluggable tokenizers.

- HashTokenizer: small fixed vocabulary plus a stable string hash for every
  other word. Always available.
- SubwordTokenizer: the real subword tokenizer published with the model's
  tokenizer source, fetched through huggingface_hub.

Selected by TOKENIZER_MODE at configuration time.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

try:
    from huggingface_hub import hf_hub_download
    from tokenizers import Tokenizer as _HFTokenizer
    SUBWORD_AVAILABLE = True
except ImportError:
    SUBWORD_AVAILABLE = False

logger = logging.getLogger(__name__)

COMMON_VOCAB: Dict[str, int] = {
    "the": 1, "a": 2, "an": 3, "and": 4, "or": 5, "but": 6, "in": 7, "on": 8, "at": 9, "to": 10,
    "for": 11, "of": 12, "with": 13, "by": 14, "from": 15, "is": 16, "was": 17, "are": 18,
    "were": 19, "this": 20, "that": 21, "these": 22, "those": 23, "text": 24, "improve": 25,
    "enhanced": 26,
}
HASH_BUCKETS = 50000
HASH_OFFSET = 100


def _string_hash(word: str) -> int:
    # 32-bit "h * 31 + c" hash; Python's hash() is salted per process
    h = 0
    for ch in word:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


class Tokenizer(ABC):
    """Text -> token ids."""

    name: str = "tokenizer"

    @abstractmethod
    def encode(self, text: str) -> List[int]:
        raise NotImplementedError


class HashTokenizer(Tokenizer):

    name = "hash"

    def encode(self, text: str) -> List[int]:
        ids = []
        for word in text.lower().split():
            token = COMMON_VOCAB.get(word)
            if token is None:
                token = _string_hash(word) % HASH_BUCKETS + HASH_OFFSET
            ids.append(token)
        return ids


class SubwordTokenizer(Tokenizer):
    """
    Wraps a `tokenizers.Tokenizer` loaded from a tokenizer.json.

    Use `from_source` to download the file for a tokenizer source such as
    "Xenova/gpt2"; construction from an in-memory tokenizer is for tests.
    """

    def __init__(self, tokenizer, source: str):
        self._tokenizer = tokenizer
        self.source = source
        self.name = f"subword:{source}"

    @classmethod
    def from_source(cls, source: str, cache_dir: Optional[str] = None) -> "SubwordTokenizer":
        """Blocking: may download. Run it in an executor."""
        if not SUBWORD_AVAILABLE:
            raise ImportError(
                "tokenizers/huggingface_hub not installed. Install with: pip install tokenizers huggingface_hub"
            )
        path = hf_hub_download(repo_id=source, filename="tokenizer.json", cache_dir=cache_dir)
        return cls(_HFTokenizer.from_file(path), source)

    def encode(self, text: str) -> List[int]:
        return list(self._tokenizer.encode(text).ids)


def create_tokenizer(mode: str, source: str, cache_dir: Optional[str] = None) -> Tokenizer:
    """
    Build the tokenizer for a model's tokenizer source.

    Raises whatever the subword loader raises; callers treat that as
    "no tokenizer loaded".
    """
    if mode == "subword":
        return SubwordTokenizer.from_source(source, cache_dir=cache_dir)
    if mode != "hash":
        logger.warning(f"Unknown tokenizer mode '{mode}', using hash tokenizer")
    return HashTokenizer()
