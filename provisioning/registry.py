"""
Typed access to the provisioning records kept in the ContentStore.

Keys:
- "installed_models"  InstalledModelsIndex (JSON list of ids, unique)
- "model_<id>"        InstalledModelRecord per installed model
- "current_model"     SelectedModelPointer (absent means fallback only)
- "llm_config"        persisted enhancement style configuration

Corrupted JSON is treated as absent and logged. ContentStoreError is
left to the caller, which decides how much degradation it tolerates.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from .types import InstalledModelRecord
from storage.base import ContentStore

logger = logging.getLogger(__name__)

INSTALLED_MODELS_KEY = "installed_models"
SELECTED_MODEL_KEY = "current_model"
STYLE_CONFIG_KEY = "llm_config"
RECORD_KEY_PREFIX = "model_"


def record_key(model_id: str) -> str:
    return f"{RECORD_KEY_PREFIX}{model_id}"


class ModelRegistry:
    """Reads and writes the registry entries of one ContentStore."""

    def __init__(self, store: ContentStore):
        self.store = store

    async def _read_json(self, key: str) -> Optional[Any]:
        raw = await self.store.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring corrupted content store entry {key}: {e}")
            return None

    # ── Installed records ─────────────────────────────────────────────────

    async def get_record(self, model_id: str) -> Optional[InstalledModelRecord]:
        data = await self._read_json(record_key(model_id))
        if data is None:
            return None
        try:
            return InstalledModelRecord.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed record for {model_id}: {e}")
            return None

    async def put_record(self, record: InstalledModelRecord) -> None:
        await self.store.set(record_key(record.model_id), record.model_dump_json())

    async def delete_record(self, model_id: str) -> None:
        await self.store.remove([record_key(model_id)])

    # ── Installed index ───────────────────────────────────────────────────

    async def list_installed(self) -> List[str]:
        data = await self._read_json(INSTALLED_MODELS_KEY)
        if not isinstance(data, list):
            return []
        return list(dict.fromkeys(str(item) for item in data))

    async def add_installed(self, model_id: str) -> None:
        installed = await self.list_installed()
        if model_id not in installed:
            installed.append(model_id)
            await self.store.set(INSTALLED_MODELS_KEY, json.dumps(installed))

    async def remove_installed(self, model_id: str) -> None:
        installed = await self.list_installed()
        updated = [item for item in installed if item != model_id]
        await self.store.set(INSTALLED_MODELS_KEY, json.dumps(updated))

    # ── Selected pointer ──────────────────────────────────────────────────

    async def get_selected(self) -> Optional[str]:
        value = await self.store.get(SELECTED_MODEL_KEY)
        return value or None

    async def set_selected(self, model_id: str) -> None:
        await self.store.set(SELECTED_MODEL_KEY, model_id)

    async def clear_selected(self) -> None:
        await self.store.remove([SELECTED_MODEL_KEY])

    # ── Style configuration ───────────────────────────────────────────────

    async def get_style_config(self) -> Optional[Dict[str, Any]]:
        data = await self._read_json(STYLE_CONFIG_KEY)
        return data if isinstance(data, dict) else None

    async def put_style_config(self, config: Dict[str, Any]) -> None:
        await self.store.set(STYLE_CONFIG_KEY, json.dumps(config))
