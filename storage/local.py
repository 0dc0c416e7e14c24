"""
Local filesystem blob store.

Persists model artifacts and sidecar files under a per-app private
directory and streams HTTP downloads straight to disk.

Download behaviour:
- Streams with httpx.AsyncClient (redirects followed, transport timeout only)
- Writes to "<dest>.part" and renames into place on a 2xx status, so an
  interrupted transfer never leaves a truncated file at dest
- Progress is reported every `progress_divider` percent and once at
  completion, never per chunk
"""

import asyncio
import logging
import os
import shutil
from contextlib import asynccontextmanager
from functools import partial
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Dict, Optional, Union

import httpx

from .base import BlobNotFoundError, BlobStore, BlobStoreError
from .types import DownloadProgress, DownloadResult, FileStat, ProgressCallback

logger = logging.getLogger(__name__)

PART_SUFFIX = ".part"


class LocalBlobStore(BlobStore):
    """Blob store rooted at a local directory."""

    def __init__(
        self,
        base_dir: Union[str, Path],
        http_client: Optional[httpx.AsyncClient] = None,
        timeout_s: float = 60.0,
        progress_divider: int = 10,
        chunk_size: int = 64 * 1024,
    ):
        """
        Args:
            base_dir: Root of the per-app private storage
            http_client: Shared client (tests inject one backed by
                         httpx.MockTransport). When None a client is created
                         per download.
            timeout_s: Transport timeout for downloads
            progress_divider: Report progress every N percent
            chunk_size: Streaming chunk size in bytes
        """
        self._base_dir = Path(base_dir)
        self._base_dir.mkdir(parents=True, exist_ok=True)
        self._http_client = http_client
        self._timeout_s = timeout_s
        self._progress_divider = max(1, progress_divider)
        self._chunk_size = chunk_size

    @property
    def document_dir(self) -> str:
        return str(self._base_dir)

    async def _run(self, fn: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, partial(fn, *args))
        except FileNotFoundError as e:
            raise BlobNotFoundError(str(e)) from e
        except OSError as e:
            raise BlobStoreError(f"Filesystem operation failed: {e}") from e

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(timeout=self._timeout_s) as client:
            yield client

    async def exists(self, path: str) -> bool:
        return await self._run(os.path.exists, path)

    async def mkdir(self, path: str) -> None:
        await self._run(partial(os.makedirs, path, exist_ok=True))

    async def write_file(self, path: str, content: Union[str, bytes]) -> None:
        target = Path(path)
        if isinstance(content, str):
            await self._run(partial(target.write_text, content, encoding="utf-8"))
        else:
            await self._run(target.write_bytes, content)

    async def read_file(self, path: str) -> str:
        return await self._run(partial(Path(path).read_text, encoding="utf-8"))

    async def stat(self, path: str) -> FileStat:
        result = await self._run(os.stat, path)
        return FileStat(path=path, size=result.st_size, is_dir=os.path.isdir(path))

    async def delete_recursive(self, path: str) -> None:
        def _delete(target: str) -> None:
            if os.path.isdir(target):
                shutil.rmtree(target)
            elif os.path.exists(target):
                os.remove(target)

        await self._run(_delete, path)

    async def download_file(
        self,
        url: str,
        dest_path: str,
        headers: Optional[Dict[str, str]] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> DownloadResult:
        part_path = dest_path + PART_SUFFIX
        loop = asyncio.get_running_loop()

        async with self._client() as client:
            async with client.stream(
                "GET", url, headers=headers, follow_redirects=True
            ) as response:
                if not response.is_success:
                    logger.warning(f"Download of {url} returned {response.status_code}")
                    return DownloadResult(status_code=response.status_code)

                total = int(response.headers.get("content-length") or 0)
                written = 0
                next_report = self._progress_divider
                handle = await self._run(open, part_path, "wb")
                try:
                    async for chunk in response.aiter_bytes(self._chunk_size):
                        await loop.run_in_executor(None, handle.write, chunk)
                        written += len(chunk)
                        if on_progress and total > 0:
                            percent = min(100, int(written * 100 / total))
                            if percent >= next_report and percent < 100:
                                on_progress(DownloadProgress(written, total, percent))
                                next_report = (percent // self._progress_divider + 1) * self._progress_divider
                except BaseException:
                    handle.close()
                    await self.delete_recursive(part_path)
                    raise
                handle.close()

        await self._run(os.replace, part_path, dest_path)
        if on_progress and total > 0:
            on_progress(DownloadProgress(written, total, 100))
        logger.info(f"Downloaded {written} bytes from {url} to {dest_path}")
        return DownloadResult(
            status_code=response.status_code,
            bytes_written=written,
            content_length=total or None,
        )
