"""
In-memory content store for testing and development.

Deterministic, no external dependencies, same contract as SQLiteContentStore.
"""

from typing import Dict, List, Optional, Sequence

from .base import ContentStore, ContentStoreError


class InMemoryContentStore(ContentStore):
    """Dictionary-backed key-value store."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.storage: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self.storage.get(key)

    async def set(self, key: str, value: str) -> None:
        if not isinstance(value, str):
            raise ContentStoreError(f"Value for '{key}' must be a string")
        self.storage[key] = value

    async def remove(self, keys: Sequence[str]) -> None:
        for key in keys:
            self.storage.pop(key, None)

    async def list_keys(self) -> List[str]:
        return sorted(self.storage)


class UnavailableContentStore(ContentStore):
    """
    Content store that always fails.

    Used to verify that callers degrade gracefully when persistence is down.
    """

    async def get(self, key: str) -> Optional[str]:
        raise ContentStoreError("Content store is unavailable")

    async def set(self, key: str, value: str) -> None:
        raise ContentStoreError("Content store is unavailable")

    async def remove(self, keys: Sequence[str]) -> None:
        raise ContentStoreError("Content store is unavailable")

    async def list_keys(self) -> List[str]:
        raise ContentStoreError("Content store is unavailable")
