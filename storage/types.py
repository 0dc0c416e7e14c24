from dataclasses import dataclass
from typing import Callable, Optional


@dataclass
class FileStat:
    path: str
    size: int
    is_dir: bool = False


@dataclass
class DownloadProgress:
    """Progress snapshot handed to download callbacks."""

    downloaded_bytes: int
    total_bytes: int
    percent_complete: int


ProgressCallback = Callable[[DownloadProgress], None]


@dataclass
class DownloadResult:
    status_code: int
    bytes_written: int = 0
    content_length: Optional[int] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300
