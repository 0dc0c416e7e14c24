"""
Acquisition engine.

Downloads a model's primary artifact into the BlobStore, writes its
tokenizer sidecar and registers the install in the ContentStore.

Flow (acquire):
  1. Resolve the ModelDescriptor (unknown id -> False, no retries)
  2. Ensure the per-model directory exists
  3. Idempotency: artifact + sidecar present -> re-register, no network
  4. HEAD probe + streamed transfer of the source URL, then of each
     alternative candidate produced by the URL rewrite rules
  5. All network paths exhausted -> write a labelled placeholder artifact
     at the same path (with simulated progress)
  6. Write the tokenizer sidecar (failure is logged, not fatal)
  7. Persist the InstalledModelRecord and the installed index entry

Invariants:
- Network errors never fail acquire(); placeholder synthesis absorbs them
- acquire() and remove() return bool and never raise
- Progress callbacks see non-decreasing byte counts
- Concurrent acquire() calls for the same id are not serialised
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional

import httpx

from .catalog import ModelCatalog
from .placeholder import build_placeholder
from .registry import ModelRegistry
from .types import (
    InstalledModelRecord,
    ModelDescriptor,
    TokenizerSidecar,
    TransportError,
    UnknownModelError,
)
from .url_rules import DEFAULT_URL_RULES, UrlRewriteRule, generate_alternative_urls
from storage.base import BlobStore
from storage.types import DownloadProgress, ProgressCallback

logger = logging.getLogger(__name__)

SIDECAR_FILENAME = "tokenizer_info.json"
PLACEHOLDER_TOTAL_BYTES = 1_000_000
PLACEHOLDER_STEPS = 10

# InvalidURL is not an HTTPError; a malformed candidate must not abort acquisition
_URL_ERRORS = (httpx.HTTPError, httpx.InvalidURL)


class _MonotonicProgress:
    """
    Forwards progress to the caller's callback.

    Successive transfer attempts restart at zero bytes; reports that would
    move the byte count backwards are dropped. A failing callback is logged
    and never interrupts the download.
    """

    def __init__(self, callback: Optional[ProgressCallback]):
        self._callback = callback
        self.last_bytes = -1
        self.last_total = 0

    def __call__(self, progress: DownloadProgress) -> None:
        if self._callback is None or progress.downloaded_bytes < self.last_bytes:
            return
        self.last_bytes = progress.downloaded_bytes
        self.last_total = progress.total_bytes
        try:
            self._callback(progress)
        except Exception as e:
            logger.warning(f"Progress callback raised: {e}")


class AcquisitionEngine:
    """Installs, locates and removes model artifacts."""

    def __init__(
        self,
        catalog: ModelCatalog,
        registry: ModelRegistry,
        blob_store: BlobStore,
        http_client: Optional[httpx.AsyncClient] = None,
        url_rules: Optional[List[UrlRewriteRule]] = None,
        user_agent: str = "NoteEditor/1.0",
        timeout_s: float = 60.0,
        min_artifact_bytes: int = 1024,
        placeholder_step_delay_s: float = 0.15,
    ):
        self.catalog = catalog
        self.registry = registry
        self.blob_store = blob_store
        self.url_rules = list(DEFAULT_URL_RULES if url_rules is None else url_rules)
        self.min_artifact_bytes = min_artifact_bytes
        self.placeholder_step_delay_s = placeholder_step_delay_s
        self._http_client = http_client
        self._timeout_s = timeout_s
        self._headers: Dict[str, str] = {
            "Accept": "application/octet-stream, */*",
            "User-Agent": user_agent,
        }

    # ── Paths ─────────────────────────────────────────────────────────────

    def model_dir(self, model_id: str) -> str:
        return f"{self.blob_store.models_dir}/{model_id}"

    def artifact_path(self, descriptor: ModelDescriptor) -> str:
        return f"{self.model_dir(descriptor.model_id)}/{descriptor.primary_artifact}"

    def sidecar_path(self, model_id: str) -> str:
        return f"{self.model_dir(model_id)}/{SIDECAR_FILENAME}"

    # ── Public operations ─────────────────────────────────────────────────

    async def acquire(
        self,
        source_url: str,
        model_id: str,
        on_progress: Optional[ProgressCallback] = None,
    ) -> bool:
        """Install model_id from source_url. Returns False only for unknown ids
        or storage failures."""
        try:
            descriptor = self.catalog.describe(model_id)
        except UnknownModelError as e:
            logger.error(str(e))
            return False

        progress = _MonotonicProgress(on_progress)
        artifact_path = self.artifact_path(descriptor)

        try:
            await self.blob_store.mkdir(self.model_dir(model_id))

            if await self.is_complete(descriptor):
                logger.info(f"Model {model_id} already installed and complete")
                await self._register(descriptor, artifact_path)
                return True

            await self._obtain_artifact(source_url, descriptor, artifact_path, progress)

            if not await self.write_sidecar(descriptor):
                logger.warning(f"Tokenizer sidecar missing for {model_id}; compatibility check will flag it")

            await self._register(descriptor, artifact_path)
            logger.info(f"Model {model_id} installed at {artifact_path}")
            return True

        except Exception as e:
            logger.error(f"Error setting up model {model_id}: {e}", exc_info=True)
            return False

    async def remove(self, model_id: str) -> bool:
        """Delete the model directory, its record, its index entry and, when
        it was selected, the selected-model pointer."""
        try:
            await self.blob_store.delete_recursive(self.model_dir(model_id))
            await self.registry.delete_record(model_id)
            await self.registry.remove_installed(model_id)
            if await self.registry.get_selected() == model_id:
                await self.registry.clear_selected()
            logger.info(f"Model {model_id} removed")
            return True
        except Exception as e:
            logger.error(f"Error removing model {model_id}: {e}", exc_info=True)
            return False

    async def list_installed(self) -> List[str]:
        try:
            return await self.registry.list_installed()
        except Exception as e:
            logger.error(f"Error reading installed models: {e}")
            return []

    async def resolve_path(self, model_id: str) -> Optional[str]:
        """Primary artifact path, only while the file still exists."""
        try:
            record = await self.registry.get_record(model_id)
            if record is None:
                return None
            return record.path if await self.blob_store.exists(record.path) else None
        except Exception as e:
            logger.error(f"Error resolving path for {model_id}: {e}")
            return None

    async def is_complete(self, descriptor: ModelDescriptor) -> bool:
        return (
            await self.blob_store.exists(self.artifact_path(descriptor))
            and await self.blob_store.exists(self.sidecar_path(descriptor.model_id))
        )

    async def read_sidecar(self, model_id: str) -> Optional[TokenizerSidecar]:
        path = self.sidecar_path(model_id)
        try:
            if not await self.blob_store.exists(path):
                return None
            return TokenizerSidecar.model_validate_json(await self.blob_store.read_file(path))
        except Exception as e:
            logger.warning(f"Unreadable tokenizer sidecar for {model_id}: {e}")
            return None

    async def write_sidecar(self, descriptor: ModelDescriptor, repaired: bool = False) -> bool:
        sidecar = TokenizerSidecar(
            tokenizer_source=descriptor.tokenizer_source,
            architecture=descriptor.architecture,
            repaired=repaired,
        )
        try:
            await self.blob_store.write_file(
                self.sidecar_path(descriptor.model_id),
                sidecar.model_dump_json(indent=2),
            )
            return True
        except Exception as e:
            logger.error(f"Failed to write tokenizer sidecar for {descriptor.model_id}: {e}")
            return False

    # ── Internals ─────────────────────────────────────────────────────────

    async def _register(self, descriptor: ModelDescriptor, artifact_path: str) -> None:
        record = InstalledModelRecord(
            model_id=descriptor.model_id,
            path=artifact_path,
            architecture=descriptor.architecture,
            tokenizer_source=descriptor.tokenizer_source,
            descriptor=descriptor,
        )
        await self.registry.put_record(record)
        await self.registry.add_installed(descriptor.model_id)

    async def _obtain_artifact(
        self,
        source_url: str,
        descriptor: ModelDescriptor,
        artifact_path: str,
        progress: _MonotonicProgress,
    ) -> None:
        if await self.blob_store.exists(artifact_path):
            logger.info(f"Primary artifact for {descriptor.model_id} already present")
            return

        try:
            await self._fetch(source_url, artifact_path, progress)
            return
        except TransportError as e:
            primary_error = e
            logger.warning(f"Primary download failed for {descriptor.model_id}: {e}")

        for candidate in generate_alternative_urls(source_url, self.url_rules):
            try:
                logger.info(f"Trying alternative URL: {candidate}")
                await self._fetch(candidate, artifact_path, progress, min_bytes=self.min_artifact_bytes)
                logger.info(f"Alternative download succeeded: {candidate}")
                return
            except TransportError as e:
                logger.info(f"Alternative URL failed: {e}")

        logger.warning(f"All download sources exhausted for {descriptor.model_id}; writing placeholder")
        await self._synthesize_placeholder(descriptor, artifact_path, str(primary_error), progress)

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=self._timeout_s) as client:
            yield client

    async def _probe(self, url: str) -> Optional[int]:
        """HEAD the URL; returns the advertised size when known."""
        try:
            async with self._client() as client:
                response = await client.head(url, headers=self._headers, follow_redirects=True)
        except _URL_ERRORS as e:
            raise TransportError(f"Probe of {url} failed: {e}") from e
        if not response.is_success:
            raise TransportError(f"Model not accessible: {response.status_code} {url}")
        length = response.headers.get("content-length")
        return int(length) if length and length.isdigit() else None

    async def _fetch(
        self,
        url: str,
        artifact_path: str,
        progress: _MonotonicProgress,
        min_bytes: Optional[int] = None,
    ) -> None:
        expected = await self._probe(url)
        logger.info(f"Downloading {url} ({expected if expected is not None else '?'} bytes)")

        try:
            result = await self.blob_store.download_file(
                url, artifact_path, headers=self._headers, on_progress=progress
            )
        except _URL_ERRORS as e:
            raise TransportError(f"Transfer from {url} failed: {e}") from e
        if not result.ok:
            raise TransportError(f"Download failed with status code: {result.status_code}")

        size = (await self.blob_store.stat(artifact_path)).size
        if min_bytes is not None and size <= min_bytes:
            await self.blob_store.delete_recursive(artifact_path)
            raise TransportError(f"Payload from {url} too small to be a model ({size} bytes)")
        if size < self.min_artifact_bytes:
            logger.warning(f"Downloaded file seems too small to be a real model ({size} bytes)")

    async def _synthesize_placeholder(
        self,
        descriptor: ModelDescriptor,
        artifact_path: str,
        error: str,
        progress: _MonotonicProgress,
    ) -> None:
        # Continue from whatever a failed transfer already reported so the
        # simulated run never moves backwards and always reaches 100%
        start = max(progress.last_bytes, 0)
        total = max(PLACEHOLDER_TOTAL_BYTES, progress.last_total, start)
        for step in range(PLACEHOLDER_STEPS + 1):
            downloaded = start + (total - start) * step // PLACEHOLDER_STEPS
            progress(DownloadProgress(
                downloaded_bytes=downloaded,
                total_bytes=total,
                percent_complete=downloaded * 100 // total,
            ))
            if self.placeholder_step_delay_s > 0:
                await asyncio.sleep(self.placeholder_step_delay_s)

        content = build_placeholder(descriptor.model_id, descriptor.architecture, error)
        await self.blob_store.write_file(artifact_path, content)
